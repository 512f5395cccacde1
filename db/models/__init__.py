"""
Ratings Store Models

Inputs written by the ingestion side (teams, games, box scores,
conference champions) and outputs written by the ratings engine
(team rating snapshots, pipeline run audit).
"""

from db.models.pipeline_run import PipelineRun
from db.models.teams import Team
from db.models.games import Game
from db.models.team_game_stats import TeamGameStat
from db.models.conference_champions import ConferenceChampion
from db.models.team_ratings import TeamRating

__all__ = [
    # Audit
    "PipelineRun",
    # Inputs
    "Team",
    "Game",
    "TeamGameStat",
    "ConferenceChampion",
    # Outputs
    "TeamRating",
]
