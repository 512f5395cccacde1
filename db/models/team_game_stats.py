"""
Team Game Stats Fact Table

Box score totals for one team in one game. Possessions and efficiency
ratings are derived by the ratings engine and never stored here.
"""

from peewee import (
    AutoField,
    CharField,
    SmallIntegerField,
)

from db.base import BaseModel


class TeamGameStat(BaseModel):
    """
    Per-game box score totals for a team.

    Attributes:
        game_id, season: Game this row belongs to
        team_id: Team the totals are for
        pts: Points
        fgm, fga, fg3m, fg3a, ftm, fta: Shooting makes / attempts
        oreb, dreb: Offensive / defensive rebounds
        ast, tov, stl, blk, pf: Other counting stats
        minutes: Team minutes played
    """

    id = AutoField(primary_key=True)
    game_id = CharField(max_length=50)
    season = CharField(max_length=10, index=True)
    team_id = CharField(max_length=50)

    pts = SmallIntegerField(null=True)
    fgm = SmallIntegerField(null=True)
    fga = SmallIntegerField(null=True)
    fg3m = SmallIntegerField(null=True)
    fg3a = SmallIntegerField(null=True)
    ftm = SmallIntegerField(null=True)
    fta = SmallIntegerField(null=True)
    oreb = SmallIntegerField(null=True)
    dreb = SmallIntegerField(null=True)
    ast = SmallIntegerField(null=True)
    tov = SmallIntegerField(null=True)
    stl = SmallIntegerField(null=True)
    blk = SmallIntegerField(null=True)
    pf = SmallIntegerField(null=True)
    minutes = SmallIntegerField(null=True)

    class Meta:
        table_name = "team_game_stats"
        indexes = (
            (("game_id", "season", "team_id"), True),
        )

    def __repr__(self) -> str:
        return f"<TeamGameStat(game={self.game_id}, team={self.team_id}, pts={self.pts})>"

    @classmethod
    def get_season_stats(cls, season: str, game_ids: list[str]) -> list["TeamGameStat"]:
        """Box score rows for the given games of a season."""
        if not game_ids:
            return []
        return list(
            cls.select()
            .where((cls.season == season) & (cls.game_id.in_(game_ids)))
            .order_by(cls.game_id, cls.team_id)
        )
