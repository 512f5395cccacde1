"""
Season Store Extractor

Loads teams, completed games with both box scores, and conference
champions for one league/season from the database and assembles the
in-memory SeasonDataset.
"""

from collections import defaultdict
from datetime import date
from typing import Any, Optional

from core.errors import DatasetConsistencyError
from db.models.conference_champions import ConferenceChampion
from db.models.games import Game as GameRow
from db.models.team_game_stats import TeamGameStat
from db.models.teams import Team as TeamRow
from pipelines.extractors.base import BaseExtractor
from pipelines.season import (
    BoxScore,
    Game,
    SeasonDataset,
    SeasonScope,
    Team,
    build_season_dataset,
)


class SeasonStoreExtractor(BaseExtractor):
    """
    Extractor for the team/game store.

    All reads for a run happen here, up front; the transformers then work
    purely in memory.
    """

    def __init__(self):
        super().__init__("season_store")

    def extract(self, scope: SeasonScope, **kwargs: Any) -> SeasonDataset:
        """
        Load and validate the dataset for a scope.

        Keyword Args:
            through_date: Only games on or before this date
            exclude_national_tournament: Drop national tournament games

        Raises:
            DatasetConsistencyError: If the stored data is incoherent
        """
        teams = self.load_teams(scope.league, scope.season)
        games = self.load_games(scope.league, scope.season, kwargs.get("through_date"))
        return build_season_dataset(
            scope,
            teams,
            games,
            exclude_national_tournament=kwargs.get("exclude_national_tournament", False),
        )

    def load_teams(self, league: str, season: str) -> list[Team]:
        """Every team of a league/season, members and tracked opponents."""
        rows = TeamRow.get_season_teams(league, season)
        teams = []
        for row in rows:
            if row.season != season:
                raise DatasetConsistencyError(
                    f"team {row.team_id} belongs to season {row.season}, expected {season}",
                    team_id=row.team_id,
                )
            teams.append(
                Team(
                    team_id=row.team_id,
                    name=row.name,
                    conference=row.conference,
                    is_league_member=row.is_league_member,
                )
            )
        self._loaded("teams", SeasonScope(league, season), len(teams))
        return teams

    def load_games(
        self,
        league: str,
        season: str,
        through_date: Optional[date] = None,
    ) -> list[Game]:
        """
        Completed games with their box scores attached.

        A game missing one side's box score keeps None for that side; the
        transformers then leave it out of rating aggregation.

        Raises:
            DatasetConsistencyError: If a box score belongs to a team that did
                not play in its game
        """
        rows = GameRow.get_completed_games(league, season, through_date)
        stats_by_game: dict[str, dict[str, BoxScore]] = defaultdict(dict)
        for stat in TeamGameStat.get_season_stats(season, [g.game_id for g in rows]):
            stats_by_game[stat.game_id][stat.team_id] = BoxScore.from_row(stat.__data__)

        games = []
        for row in rows:
            boxes = stats_by_game.get(row.game_id, {})
            for team_id in boxes:
                if team_id not in (row.home_team_id, row.away_team_id):
                    raise DatasetConsistencyError(
                        f"box score for team {team_id} attached to game {row.game_id} "
                        f"between {row.home_team_id} and {row.away_team_id}",
                        game_id=row.game_id,
                        team_id=team_id,
                    )
            games.append(
                Game(
                    game_id=row.game_id,
                    game_date=row.game_date,
                    home_team_id=row.home_team_id,
                    away_team_id=row.away_team_id,
                    home_score=row.home_score,
                    away_score=row.away_score,
                    is_neutral=row.is_neutral,
                    home_in_league=row.home_in_league,
                    away_in_league=row.away_in_league,
                    is_postseason=row.is_postseason,
                    is_national_tournament=row.is_national_tournament,
                    home_stats=boxes.get(row.home_team_id),
                    away_stats=boxes.get(row.away_team_id),
                )
            )
        self._loaded("games", SeasonScope(league, season), len(games))
        return games

    def conference_champion(self, league: str, season: str, conference: str) -> Optional[str]:
        return ConferenceChampion.get_champion(league, season, conference)

    def load_champions(self, dataset: SeasonDataset) -> dict[str, Optional[str]]:
        """Champion (or None) for every conference of the dataset's members."""
        scope = dataset.scope
        return {
            conference: self.conference_champion(scope.league, scope.season, conference)
            for conference in dataset.conferences()
        }
