"""Shared pytest fixtures and dataset builders."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

import pytest

from db.base import close_db, db, init_db
from pipelines.season import BoxScore, Game, SeasonScope, Team, build_season_dataset

SCOPE = SeasonScope(league="mens", season="2025-26")
SEASON_START = date(2025, 11, 1)


def box(pts: int, fga: int = 80, oreb: int = 10, tov: int = 19, fta: int = 25, **extra) -> BoxScore:
    """
    Box score with exactly 100 possessions by default (80 - 10 + 19 + 0.44 x 25),
    so ORTG equals points.
    """
    return BoxScore(pts=pts, fga=fga, oreb=oreb, tov=tov, fta=fta, **extra)


def game(
    game_id: str,
    home: str,
    away: str,
    home_score: Optional[int],
    away_score: Optional[int],
    day: int = 0,
    neutral: bool = False,
    home_in_league: bool = True,
    away_in_league: bool = True,
    with_stats: bool = True,
    **flags,
) -> Game:
    """A game on SEASON_START + day with 100-possession box scores on both sides."""
    return Game(
        game_id=game_id,
        game_date=SEASON_START + timedelta(days=day),
        home_team_id=home,
        away_team_id=away,
        home_score=home_score,
        away_score=away_score,
        is_neutral=neutral,
        home_in_league=home_in_league,
        away_in_league=away_in_league,
        home_stats=box(home_score) if with_stats and home_score is not None else None,
        away_stats=box(away_score) if with_stats and away_score is not None else None,
        **flags,
    )


def teams(*ids: str, conference: Optional[str] = None, members: bool = True) -> list[Team]:
    """Teams named after their ids ("A" -> "Team A")."""
    return [
        Team(team_id=tid, name=f"Team {tid}", conference=conference, is_league_member=members)
        for tid in ids
    ]


def dataset(team_list: list[Team], games: list[Game], **kwargs):
    return build_season_dataset(SCOPE, team_list, games, **kwargs)


# Round robin: A beats everyone, B beats C and D, C beats D. 100 possessions a side.
ROUND_ROBIN_GAMES = [
    ("g1", "A", "B", 90, 70),
    ("g2", "A", "C", 85, 75),
    ("g3", "A", "D", 95, 60),
    ("g4", "B", "C", 80, 70),
    ("g5", "B", "D", 75, 65),
    ("g6", "C", "D", 72, 70),
]


@pytest.fixture
def round_robin():
    """4-team, 6-game round robin dataset."""
    games = [
        game(gid, home, away, hs, aws, day=i)
        for i, (gid, home, away, hs, aws) in enumerate(ROUND_ROBIN_GAMES)
    ]
    return dataset(teams("A", "B", "C", "D", conference="North"), games)


@pytest.fixture
def database(tmp_path):
    """Bind the model proxy to a fresh SQLite file with all tables created."""
    init_db(f"sqlite:///{tmp_path / 'ratings.db'}")
    yield db
    close_db()
