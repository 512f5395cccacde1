"""
Data Extractors

Reusable components for reading source data.
"""

from pipelines.extractors.base import BaseExtractor
from pipelines.extractors.season_store import SeasonStoreExtractor

__all__ = [
    "BaseExtractor",
    "SeasonStoreExtractor",
]
