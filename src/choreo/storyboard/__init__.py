"""Storyboard storage and ingestion."""

from .ingestion import IngestionFailure, IngestionReport, SequenceIngestion
from .store import StoryboardStore

__all__ = ["IngestionFailure", "IngestionReport", "SequenceIngestion", "StoryboardStore"]
