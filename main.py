"""
Team Ratings Engine

Command-line entry point: recomputes ratings for one or more
league/season scopes and writes dated snapshots.

Usage:
    python main.py --league mens --season 2025-26
    python main.py --all-leagues --season 2025-26 --date 2026-03-01
    python main.py --league womens --min-games 5

Environment Variables:
    DATABASE_URL - Database URL understood by playhouse.db_url
    LOG_LEVEL / LOG_FORMAT - Logging configuration
"""

import argparse
import asyncio
import sys
from datetime import date, datetime
from typing import Optional

from core.logging import get_logger, setup_logging
from core.settings import settings
from db.base import close_db, init_db
from pipelines import run_all_scopes
from pipelines.config import RatingOptions
from pipelines.season import SeasonScope
from schemas.common import ApiStatus


def _parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD argument."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date '{value}', expected YYYY-MM-DD")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compute team ratings snapshots")
    parser.add_argument("--league", default=settings.default_league, help="League to compute (default: %(default)s)")
    parser.add_argument("--season", default=settings.default_season, help="Season to compute (default: %(default)s)")
    parser.add_argument("--date", type=_parse_date, default=None, help="Compute as of this date (YYYY-MM-DD)")
    parser.add_argument("--min-games", type=int, default=None, help="Minimum in-league games for composite ranks")
    parser.add_argument("--all-leagues", action="store_true", help="Run every configured league for the season")
    return parser


def run(
    league: str,
    season: str,
    run_date: Optional[date] = None,
    min_games: Optional[int] = None,
    all_leagues: bool = False,
) -> int:
    """
    Compute ratings for the requested scopes.

    Returns:
        Process exit code: 0 if every scope succeeded, 1 otherwise
    """
    log = get_logger("main")

    leagues = settings.leagues if all_leagues else [league]
    scopes = [SeasonScope(league=lg, season=season) for lg in leagues]
    options = RatingOptions.from_settings(settings, min_games=min_games)

    init_db()
    log.info("database_initialized")

    try:
        results = asyncio.run(run_all_scopes(scopes, options=options, date_override=run_date))
    finally:
        close_db()

    failed = [scope for scope, result in results.items() if result.status != ApiStatus.SUCCESS]
    for scope, result in results.items():
        log.info(
            "scope_result",
            scope=scope,
            status=result.status,
            records_processed=result.records_processed,
        )
    return 1 if failed else 0


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging(
        log_level=settings.log_level,
        json_format=settings.log_format == "json",
        service_name=settings.service_name,
    )

    return run(
        league=args.league,
        season=args.season,
        run_date=args.date,
        min_games=args.min_games,
        all_leagues=args.all_leagues,
    )


if __name__ == "__main__":
    sys.exit(main())
