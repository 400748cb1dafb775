"""CronPilot data models."""

from .ingestion import ExternalItem, IngestedItem, IngestionReport, ItemStatus, TrackedResource
from .jobs import JobDefinition, OverlapPolicy

__all__ = [
    "ExternalItem",
    "IngestedItem",
    "IngestionReport",
    "ItemStatus",
    "JobDefinition",
    "OverlapPolicy",
    "TrackedResource",
]
