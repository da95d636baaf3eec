"""Durable storage for aggregated result sets."""

from .aggregated_store import (
    BaseAggregatedResultStore,
    SqliteAggregatedResultStore,
    StoredAggregation,
)

__all__ = [
    "BaseAggregatedResultStore",
    "SqliteAggregatedResultStore",
    "StoredAggregation",
]
