"""
ANR deduplication and grouping.

This package provides:
- Stack trace hashing and similarity scoring
- The grouping engine that assigns ANR occurrences to records and groups
- The repository interface the engine persists through
- Listing and analytics over stored ANRs
"""

from .analytics import get_analytics, list_anrs
from .engine import ANRGroupingEngine
from .repository import ANRRepository, InMemoryANRRepository
from .similarity import (
    SIMILARITY_THRESHOLD,
    calculate_levenshtein_similarity,
    calculate_similarity,
    extract_stack_trace_pattern,
    generate_stack_trace_hash,
    levenshtein_distance,
)

__all__ = [
    "ANRGroupingEngine",
    "ANRRepository",
    "InMemoryANRRepository",
    "SIMILARITY_THRESHOLD",
    "calculate_levenshtein_similarity",
    "calculate_similarity",
    "extract_stack_trace_pattern",
    "generate_stack_trace_hash",
    "get_analytics",
    "levenshtein_distance",
    "list_anrs",
]
