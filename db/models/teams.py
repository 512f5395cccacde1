"""
Teams Dimension Table

One row per team per season. Team identity is (team_id, season); the same
school keeps its team_id across seasons but carries a separate row (and
possibly a different conference) each season.
"""

from datetime import datetime

from peewee import (
    AutoField,
    BooleanField,
    CharField,
    DateTimeField,
)

from db.base import BaseModel


class Team(BaseModel):
    """
    Team master data for one season.

    Attributes:
        id: Auto-incrementing primary key
        team_id: Provider team identifier (stable across seasons)
        season: Season identifier (e.g., '2025-26')
        league: League identifier (e.g., 'mens', 'womens')
        name: Display name, also the final ranking tie-break
        conference: Conference name (null for independents / non-league opponents)
        is_league_member: False for out-of-league opponents kept for display
        created_at: When this record was first created
        updated_at: When this record was last modified
    """

    id = AutoField(primary_key=True)
    team_id = CharField(max_length=50)
    season = CharField(max_length=10, index=True)
    league = CharField(max_length=20, index=True)
    name = CharField(max_length=100)
    conference = CharField(max_length=100, null=True)
    is_league_member = BooleanField(default=True)
    created_at = DateTimeField(default=datetime.utcnow)
    updated_at = DateTimeField(default=datetime.utcnow)

    class Meta:
        table_name = "teams"
        indexes = (
            (("team_id", "season"), True),
            (("league", "season"), False),
        )

    def __repr__(self) -> str:
        return f"<Team(team_id='{self.team_id}', season='{self.season}', name='{self.name}')>"

    def save(self, *args, **kwargs):
        """Override save to auto-update updated_at timestamp."""
        self.updated_at = datetime.utcnow()
        return super().save(*args, **kwargs)

    @classmethod
    def upsert_team(
        cls,
        team_id: str,
        season: str,
        league: str,
        name: str,
        conference: str | None = None,
        is_league_member: bool = True,
    ) -> "Team":
        """
        Insert or update a team for a season.

        Returns:
            The created or updated Team instance
        """
        defaults = {
            "league": league,
            "name": name,
            "conference": conference,
            "is_league_member": is_league_member,
        }
        record, created = cls.get_or_create(
            team_id=team_id,
            season=season,
            defaults=defaults,
        )
        if not created:
            for key, value in defaults.items():
                setattr(record, key, value)
            record.save()
        return record

    @classmethod
    def get_season_teams(cls, league: str, season: str) -> list["Team"]:
        """All teams (members and tracked opponents) for a league/season."""
        return list(
            cls.select()
            .where((cls.league == league) & (cls.season == season))
            .order_by(cls.team_id)
        )
