"""
Ratings Errors

Exception hierarchy for a ratings run. Input-data problems (zero
possessions, empty opponent sets, teams without games) never raise: they
resolve to documented fallback values inside the transformers. Only the
failures below abort a run, and none of them are retried here.
"""

from typing import Optional


class RatingsError(Exception):
    """Base class for errors that abort a ratings run."""

    pass


class DatasetConsistencyError(RatingsError):
    """Raised when the season dataset is incoherent (e.g. unknown team)."""

    def __init__(
        self,
        message: str,
        game_id: Optional[str] = None,
        team_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.game_id = game_id
        self.team_id = team_id


class RunCancelledError(RatingsError):
    """
    Raised when a run is aborted on request.

    iteration is the number of committed solver updates when the solver
    was interrupted, None when the run stopped outside the solver.
    """

    def __init__(self, message: str, iteration: Optional[int] = None):
        super().__init__(message)
        self.iteration = iteration


class SnapshotWriteError(RatingsError):
    """Raised when persisting a snapshot fails. The transaction is rolled back."""

    def __init__(self, message: str, league: str, season: str):
        super().__init__(message)
        self.league = league
        self.season = season
