"""
Games Table

Game schedule and results for one league/season. A game is terminal once
both scores are recorded; only terminal games feed the ratings engine.
"""

from datetime import date, datetime

from peewee import (
    BooleanField,
    CharField,
    DateField,
    DateTimeField,
    IntegerField,
)

from db.base import BaseModel


class Game(BaseModel):
    """
    Game schedule and results.

    Exactly one location mode holds: either home/away, or is_neutral with
    home_team/away_team naming the two participants arbitrarily.

    Attributes:
        game_id: Provider game ID
        season: Season identifier (e.g., '2025-26')
        league: League identifier
        game_date: Date of the game
        home_team_id: Home (or first neutral-site) participant
        away_team_id: Away (or second neutral-site) participant
        home_score / away_score: Final scores (null until completed)
        is_neutral: True for neutral-site games
        home_in_league / away_in_league: League membership of each participant
        is_postseason: Conference or national tournament game
        is_national_tournament: National tournament game
    """

    game_id = CharField(max_length=50)
    season = CharField(max_length=10, index=True)
    league = CharField(max_length=20, index=True)
    game_date = DateField(index=True)
    home_team_id = CharField(max_length=50)
    away_team_id = CharField(max_length=50)
    home_score = IntegerField(null=True)
    away_score = IntegerField(null=True)
    is_neutral = BooleanField(default=False)
    home_in_league = BooleanField(default=True)
    away_in_league = BooleanField(default=True)
    is_postseason = BooleanField(default=False)
    is_national_tournament = BooleanField(default=False)
    updated_at = DateTimeField(default=datetime.utcnow)

    class Meta:
        table_name = "games"
        indexes = (
            (("game_id", "season"), True),
            (("league", "season", "game_date"), False),
        )

    def __repr__(self) -> str:
        return (
            f"<Game("
            f"id={self.game_id}, "
            f"date={self.game_date}, "
            f"{self.away_team_id}@{self.home_team_id})>"
        )

    def save(self, *args, **kwargs):
        """Override save to auto-update updated_at timestamp."""
        self.updated_at = datetime.utcnow()
        return super().save(*args, **kwargs)

    @property
    def is_completed(self) -> bool:
        """Check if both final scores are recorded."""
        return self.home_score is not None and self.away_score is not None

    @classmethod
    def upsert_game(cls, game_id: str, season: str, game_data: dict) -> "Game":
        """
        Insert or update a game record.

        Args:
            game_id: Provider game ID
            season: Season identifier
            game_data: Dict with game fields

        Returns:
            The created or updated Game instance
        """
        game, created = cls.get_or_create(
            game_id=game_id,
            season=season,
            defaults=game_data,
        )

        if not created:
            for key, value in game_data.items():
                if value is not None:
                    setattr(game, key, value)
            game.save()

        return game

    @classmethod
    def get_completed_games(
        cls,
        league: str,
        season: str,
        through_date: date | None = None,
    ) -> list["Game"]:
        """
        Completed games for a league/season, ordered by date then id.

        Args:
            league: League identifier
            season: Season identifier
            through_date: Only games on or before this date (inclusive)
        """
        query = cls.select().where(
            (cls.league == league)
            & (cls.season == season)
            & (cls.home_score.is_null(False))
            & (cls.away_score.is_null(False))
        )
        if through_date:
            query = query.where(cls.game_date <= through_date)
        return list(query.order_by(cls.game_date, cls.game_id))
