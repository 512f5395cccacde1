"""
Season Dataset

In-memory representation of every team and completed game for one
(league, season) scope. Built once per run and shared read-only by every
transformer; nothing downstream mutates it.

Each game is expanded into two directed TeamGame edges (team -> opponent),
so per-team views of the schedule form a multigraph keyed by opponent
identity. Opponent exclusion in OWP filters on that identity rather than
on game counts, which keeps repeated meetings correct.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from core.errors import DatasetConsistencyError
from core.logging import get_logger

log = get_logger("ratings.dataset")

HOME = "home"
AWAY = "away"
NEUTRAL = "neutral"


@dataclass(frozen=True)
class SeasonScope:
    """The (league, season) pair every computation is parameterized by."""

    league: str
    season: str

    def __str__(self) -> str:
        return f"{self.league}/{self.season}"


@dataclass(frozen=True)
class Team:
    """Team identity for one season."""

    team_id: str
    name: str
    conference: Optional[str] = None
    is_league_member: bool = True


@dataclass(frozen=True)
class BoxScore:
    """Box score totals for one team in one game. Missing fields count as zero."""

    pts: int = 0
    fgm: int = 0
    fga: int = 0
    fg3m: int = 0
    fg3a: int = 0
    ftm: int = 0
    fta: int = 0
    oreb: int = 0
    dreb: int = 0
    ast: int = 0
    tov: int = 0
    stl: int = 0
    blk: int = 0
    pf: int = 0
    minutes: int = 0

    @classmethod
    def from_row(cls, row: dict) -> "BoxScore":
        """Build from a mapping of column -> value, treating None/missing as zero."""
        return cls(**{name: int(row.get(name) or 0) for name in cls.__dataclass_fields__})


@dataclass(frozen=True)
class Game:
    """
    A completed (or scheduled) game between two participants.

    For neutral-site games home_team_id / away_team_id simply name the two
    participants; is_neutral decides the location mode.
    """

    game_id: str
    game_date: date
    home_team_id: str
    away_team_id: str
    home_score: Optional[int]
    away_score: Optional[int]
    is_neutral: bool = False
    home_in_league: bool = True
    away_in_league: bool = True
    is_postseason: bool = False
    is_national_tournament: bool = False
    home_stats: Optional[BoxScore] = None
    away_stats: Optional[BoxScore] = None

    @property
    def is_completed(self) -> bool:
        """Terminal once both scores are recorded and a winner exists."""
        return (
            self.home_score is not None
            and self.away_score is not None
            and self.home_score != self.away_score
        )

    @property
    def is_league_game(self) -> bool:
        """Both participants are league members."""
        return self.home_in_league and self.away_in_league


@dataclass(frozen=True)
class TeamGame:
    """One directed edge of the schedule multigraph: a game from one team's side."""

    game_id: str
    game_date: date
    team_id: str
    opponent_id: str
    location: str  # home, away, neutral
    points_for: int
    points_against: int
    in_league: bool
    stats: Optional[BoxScore] = None
    opponent_stats: Optional[BoxScore] = None

    @property
    def won(self) -> bool:
        return self.points_for > self.points_against


def game_edges(game: Game) -> tuple[TeamGame, TeamGame]:
    """Split a completed game into its home-side and away-side edges."""
    if game.is_neutral:
        home_loc, away_loc = NEUTRAL, NEUTRAL
    else:
        home_loc, away_loc = HOME, AWAY
    in_league = game.is_league_game

    home_edge = TeamGame(
        game_id=game.game_id,
        game_date=game.game_date,
        team_id=game.home_team_id,
        opponent_id=game.away_team_id,
        location=home_loc,
        points_for=game.home_score,
        points_against=game.away_score,
        in_league=in_league,
        stats=game.home_stats,
        opponent_stats=game.away_stats,
    )
    away_edge = TeamGame(
        game_id=game.game_id,
        game_date=game.game_date,
        team_id=game.away_team_id,
        opponent_id=game.home_team_id,
        location=away_loc,
        points_for=game.away_score,
        points_against=game.home_score,
        in_league=in_league,
        stats=game.away_stats,
        opponent_stats=game.home_stats,
    )
    return home_edge, away_edge


@dataclass
class SeasonDataset:
    """
    All teams and completed games for one scope.

    Attributes:
        scope: League/season the dataset belongs to
        teams: team_id -> Team, ordered by team_id
        games: Completed games ordered by (game_date, game_id)
        schedules: team_id -> directed edges, in game order
    """

    scope: SeasonScope
    teams: dict[str, Team]
    games: list[Game]
    schedules: dict[str, list[TeamGame]] = field(default_factory=dict)

    def __post_init__(self):
        if not self.schedules:
            self.schedules = {team_id: [] for team_id in self.teams}
            for game in self.games:
                home_edge, away_edge = game_edges(game)
                self.schedules[home_edge.team_id].append(home_edge)
                self.schedules[away_edge.team_id].append(away_edge)

    @property
    def member_ids(self) -> list[str]:
        """League members, in team_id order."""
        return [tid for tid, team in self.teams.items() if team.is_league_member]

    def edges(self, team_id: str, league_only: bool = False) -> list[TeamGame]:
        """A team's directed edges, optionally restricted to in-league games."""
        edges = self.schedules.get(team_id, [])
        if league_only:
            return [e for e in edges if e.in_league]
        return edges

    def conferences(self) -> list[str]:
        """Distinct conferences of league members, in name order."""
        return sorted(
            {t.conference for t in self.teams.values() if t.is_league_member and t.conference}
        )


def build_season_dataset(
    scope: SeasonScope,
    teams: Iterable[Team],
    games: Iterable[Game],
    exclude_national_tournament: bool = False,
) -> SeasonDataset:
    """
    Validate and assemble the dataset for one scope.

    Non-terminal games (missing or tied scores) are dropped. Teams and games
    are put in a canonical order so results never depend on load order.

    Args:
        scope: League/season being computed
        teams: Every team that can appear in a game, members or not
        games: Games of the scope, completed or not
        exclude_national_tournament: Drop national tournament games

    Raises:
        DatasetConsistencyError: A game references an unknown team, lists the
            same team on both sides, or a team id is duplicated
    """
    team_map: dict[str, Team] = {}
    for team in sorted(teams, key=lambda t: t.team_id):
        if team.team_id in team_map:
            raise DatasetConsistencyError(
                f"team {team.team_id} appears twice in {scope}", team_id=team.team_id
            )
        team_map[team.team_id] = team

    kept: list[Game] = []
    skipped = 0
    for game in sorted(games, key=lambda g: (g.game_date, g.game_id)):
        for team_id in (game.home_team_id, game.away_team_id):
            if team_id not in team_map:
                raise DatasetConsistencyError(
                    f"game {game.game_id} references team {team_id} absent from {scope}",
                    game_id=game.game_id,
                    team_id=team_id,
                )
        if game.home_team_id == game.away_team_id:
            raise DatasetConsistencyError(
                f"game {game.game_id} lists {game.home_team_id} on both sides",
                game_id=game.game_id,
                team_id=game.home_team_id,
            )
        if not game.is_completed:
            skipped += 1
            continue
        if exclude_national_tournament and game.is_national_tournament:
            skipped += 1
            continue
        kept.append(game)

    log.info(
        "dataset_built",
        league=scope.league,
        season=scope.season,
        teams=len(team_map),
        games=len(kept),
        skipped_games=skipped,
    )
    return SeasonDataset(scope=scope, teams=team_map, games=kept)
