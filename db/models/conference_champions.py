"""
Conference Champions Table

Conference tournament champions per league/season, written by the
ingestion side once a conference tournament final is played. Read by the
ratings pipeline as automatic qualifiers for Projected Rank.
"""

from peewee import AutoField, CharField

from db.base import BaseModel


class ConferenceChampion(BaseModel):
    """
    Attributes:
        league, season: Scope
        conference: Conference name (matches Team.conference)
        team_id: Champion team
    """

    id = AutoField(primary_key=True)
    league = CharField(max_length=20)
    season = CharField(max_length=10)
    conference = CharField(max_length=100)
    team_id = CharField(max_length=50)

    class Meta:
        table_name = "conference_champions"
        indexes = (
            (("league", "season", "conference"), True),
        )

    @classmethod
    def get_champion(cls, league: str, season: str, conference: str) -> str | None:
        """Champion team_id for a conference, or None if not decided yet."""
        row = (
            cls.select(cls.team_id)
            .where(
                (cls.league == league)
                & (cls.season == season)
                & (cls.conference == conference)
            )
            .first()
        )
        return row.team_id if row else None
