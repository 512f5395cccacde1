"""
Base Extractor

Abstract base class for data extractors.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from core.logging import get_logger
from pipelines.season import SeasonDataset, SeasonScope


class BaseExtractor(ABC):
    """
    Reads everything one ratings run needs for a scope, up front.

    Subclasses return a validated SeasonDataset and the conference
    champions for it; transformers never reach back into the source.
    """

    def __init__(self, name: str):
        self.name = name
        self.log = get_logger(f"extractor.{name}")

    @abstractmethod
    def extract(self, scope: SeasonScope, **kwargs: Any) -> SeasonDataset:
        """
        Load and validate the dataset for a scope.

        Raises:
            DatasetConsistencyError: If the source data is incoherent
        """

    @abstractmethod
    def load_champions(self, dataset: SeasonDataset) -> dict[str, Optional[str]]:
        """conference -> champion team_id (None when not decided) for the dataset's members."""

    def _loaded(self, entity: str, scope: SeasonScope, count: int) -> None:
        self.log.debug(f"{entity}_loaded", league=scope.league, season=scope.season, count=count)
