from typing import Optional

from peewee import DatabaseProxy, Model
from playhouse.db_url import connect

# Bound to a concrete database by init_db(); tests bind a temporary SQLite file
db = DatabaseProxy()


class BaseModel(Model):
    class Meta:
        database = db


def get_models() -> list:
    """Models in foreign-key dependency order (dimension tables first)."""
    from .models.pipeline_run import PipelineRun
    from .models.teams import Team
    from .models.games import Game
    from .models.team_game_stats import TeamGameStat
    from .models.conference_champions import ConferenceChampion
    from .models.team_ratings import TeamRating

    return [PipelineRun, Team, Game, TeamGameStat, ConferenceChampion, TeamRating]


def init_db(database_url: Optional[str] = None):
    """
    Bind the database proxy and create tables if they don't exist.

    Args:
        database_url: URL understood by playhouse.db_url
                      (e.g. "postgresql+pool://user:pw@host/db", "sqlite:///ratings.db").
                      Defaults to settings.database_url.

    Returns:
        The concrete peewee Database the proxy now points to
    """
    if database_url is None:
        from core.settings import settings

        database_url = settings.database_url

    database = connect(database_url)
    db.initialize(database)
    db.connect(reuse_if_open=True)

    # safe=True is idempotent
    db.create_tables(get_models(), safe=True)
    return database


def close_db():
    """Close database connection."""
    if not db.is_closed():
        db.close()
