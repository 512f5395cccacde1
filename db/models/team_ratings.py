"""
Team Ratings Snapshot Table

One row per (team_id, season, date_calculated) holding every metric the
ratings engine computes. Snapshots are append-only by date: a run
replaces the rows of its own date for its league/season and never touches
other dates, which are kept for trend display.
"""

from datetime import date, datetime
from uuid import UUID

from peewee import (
    AutoField,
    BooleanField,
    CharField,
    DateField,
    DateTimeField,
    FloatField,
    IntegerField,
    PeeweeException,
    SmallIntegerField,
    UUIDField,
    chunked,
    fn,
)

from core.errors import SnapshotWriteError
from db.base import BaseModel, db

# Rows per INSERT statement (keeps bound parameters under old SQLite limits)
INSERT_BATCH_SIZE = 15

RANK_FIELDS = ("rpi_rank", "pcr", "projected_rank", "power_index_rank", "adj_net_rank")


class TeamRating(BaseModel):
    """
    Computed ratings for a team as of a calculation date.

    Attributes:
        team_id, season, league: Team identity and scope
        date_calculated: Snapshot date (unique with team_id and season)
        -- Records --
        games_played, wins, losses, win_pct: Overall record, all completed games
        league_games, league_wins, league_losses: In-league record
        -- RPI --
        wp, owp, oowp, rpi, rpi_rank
        q1_wins .. q4_losses: Quadrant tallies (in-league games)
        -- Efficiency --
        ortg, drtg, net_rating, pace: Raw possession-weighted ratings
        efg_pct, tov_pct, oreb_pct, ft_rate: Offensive four factors
        opp_efg_pct, opp_tov_pct, opp_oreb_pct, opp_ft_rate: Defensive four factors
        adj_ortg, adj_drtg, adj_net, adj_net_rank
        sos, osos, dsos, nsos: Schedule strength
        converged, solver_iterations: Solver outcome for the run
        -- Composite --
        qwp, qwi, pcr, projected_rank, is_automatic_qualifier,
        power_index, power_index_rank
    """

    id = AutoField(primary_key=True)
    team_id = CharField(max_length=50)
    season = CharField(max_length=10, index=True)
    league = CharField(max_length=20, index=True)
    date_calculated = DateField()
    team_name = CharField(max_length=100)
    conference = CharField(max_length=100, null=True)

    # Records
    games_played = SmallIntegerField(default=0)
    wins = SmallIntegerField(default=0)
    losses = SmallIntegerField(default=0)
    win_pct = FloatField(null=True)
    league_games = SmallIntegerField(default=0)
    league_wins = SmallIntegerField(default=0)
    league_losses = SmallIntegerField(default=0)

    # RPI
    wp = FloatField(null=True)
    owp = FloatField(null=True)
    oowp = FloatField(null=True)
    rpi = FloatField(null=True)
    rpi_rank = IntegerField(null=True)

    # Quadrants
    q1_wins = SmallIntegerField(default=0)
    q1_losses = SmallIntegerField(default=0)
    q2_wins = SmallIntegerField(default=0)
    q2_losses = SmallIntegerField(default=0)
    q3_wins = SmallIntegerField(default=0)
    q3_losses = SmallIntegerField(default=0)
    q4_wins = SmallIntegerField(default=0)
    q4_losses = SmallIntegerField(default=0)

    # Raw efficiency and four factors
    ortg = FloatField(null=True)
    drtg = FloatField(null=True)
    net_rating = FloatField(null=True)
    pace = FloatField(null=True)
    efg_pct = FloatField(null=True)
    tov_pct = FloatField(null=True)
    oreb_pct = FloatField(null=True)
    ft_rate = FloatField(null=True)
    opp_efg_pct = FloatField(null=True)
    opp_tov_pct = FloatField(null=True)
    opp_oreb_pct = FloatField(null=True)
    opp_ft_rate = FloatField(null=True)

    # Adjusted efficiency
    adj_ortg = FloatField(null=True)
    adj_drtg = FloatField(null=True)
    adj_net = FloatField(null=True)
    adj_net_rank = IntegerField(null=True)
    sos = FloatField(null=True)
    osos = FloatField(null=True)
    dsos = FloatField(null=True)
    nsos = FloatField(null=True)
    converged = BooleanField(default=True)
    solver_iterations = SmallIntegerField(default=0)

    # Composite
    qwp = FloatField(null=True)
    qwi = FloatField(null=True)
    pcr = IntegerField(null=True)
    projected_rank = IntegerField(null=True)
    is_automatic_qualifier = BooleanField(default=False)
    power_index = FloatField(null=True)
    power_index_rank = IntegerField(null=True)

    # Audit columns
    pipeline_run_id = UUIDField(null=True, index=True)
    created_at = DateTimeField(default=datetime.utcnow)

    class Meta:
        table_name = "team_ratings"
        indexes = (
            # Unique: one row per team per season per date
            (("team_id", "season", "date_calculated"), True),
            # Fetch a whole league/season for a date (rankings)
            (("league", "season", "date_calculated"), False),
        )

    def __repr__(self) -> str:
        return (
            f"<TeamRating("
            f"team_id={self.team_id}, "
            f"season={self.season}, "
            f"date={self.date_calculated}, "
            f"rpi={self.rpi}, "
            f"adj_net={self.adj_net})>"
        )

    @classmethod
    def write_snapshot(
        cls,
        league: str,
        season: str,
        date_calculated: date,
        rows: list[dict],
        pipeline_run_id: UUID | None = None,
    ) -> int:
        """
        Replace the league/season snapshot for a date in one transaction.

        Each row is upserted on (team_id, season, date_calculated). Rows of
        the same date for teams missing from ``rows`` are removed so the
        stored set always equals the last run's full team set. Any database
        error rolls the whole write back; earlier snapshots stay untouched.

        Args:
            league: League identifier
            season: Season identifier; every row must carry the same season
            date_calculated: Snapshot date
            rows: One dict per team, keys matching column names
            pipeline_run_id: Optional pipeline run UUID

        Returns:
            Number of rows written

        Raises:
            SnapshotWriteError: If a row belongs to another league/season or the write fails
        """
        for row in rows:
            if row.get("season", season) != season or row.get("league", league) != league:
                raise SnapshotWriteError(
                    f"row for team {row.get('team_id')} is scoped "
                    f"{row.get('league')}/{row.get('season')}, expected {league}/{season}",
                    league=league,
                    season=season,
                )

        now = datetime.utcnow()
        records = [
            {
                **row,
                "league": league,
                "season": season,
                "date_calculated": date_calculated,
                "pipeline_run_id": pipeline_run_id,
                "created_at": now,
            }
            for row in rows
        ]
        team_ids = [r["team_id"] for r in records]
        update_fields = [
            field
            for name, field in cls._meta.fields.items()
            if name not in ("id", "team_id", "season", "date_calculated")
        ]

        try:
            with db.atomic():
                stale = cls.delete().where(
                    (cls.league == league)
                    & (cls.season == season)
                    & (cls.date_calculated == date_calculated)
                )
                if team_ids:
                    stale = stale.where(cls.team_id.not_in(team_ids))
                stale.execute()

                for batch in chunked(records, INSERT_BATCH_SIZE):
                    (
                        cls.insert_many(batch)
                        .on_conflict(
                            conflict_target=[cls.team_id, cls.season, cls.date_calculated],
                            preserve=update_fields,
                        )
                        .execute()
                    )
        except PeeweeException as e:
            raise SnapshotWriteError(
                f"snapshot write failed: {type(e).__name__}: {e}",
                league=league,
                season=season,
            ) from e

        return len(records)

    @classmethod
    def get_latest_date(cls, season: str, league: str | None = None, team_id: str | None = None) -> date | None:
        """Most recent snapshot date for a season (optionally one league or team)."""
        query = cls.select(fn.MAX(cls.date_calculated)).where(cls.season == season)
        if league is not None:
            query = query.where(cls.league == league)
        if team_id is not None:
            query = query.where(cls.team_id == team_id)
        return query.scalar()

    @classmethod
    def get_for_team(
        cls,
        team_id: str,
        season: str,
        date_calculated: date | None = None,
    ) -> "TeamRating | None":
        """Snapshot for a team on a date, or the latest one when no date is given."""
        query = cls.select().where((cls.team_id == team_id) & (cls.season == season))
        if date_calculated is not None:
            return query.where(cls.date_calculated == date_calculated).first()
        return query.order_by(cls.date_calculated.desc()).first()

    @classmethod
    def get_ranked(
        cls,
        league: str,
        season: str,
        rank_field: str,
        date_calculated: date,
    ) -> list["TeamRating"]:
        """Teams holding a value in ``rank_field`` on a date, best rank first."""
        if rank_field not in RANK_FIELDS:
            raise ValueError(f"Unknown rank field '{rank_field}'. Available: {', '.join(RANK_FIELDS)}")
        column = getattr(cls, rank_field)
        return list(
            cls.select()
            .where(
                (cls.league == league)
                & (cls.season == season)
                & (cls.date_calculated == date_calculated)
                & (column.is_null(False))
            )
            .order_by(column, cls.team_name)
        )
