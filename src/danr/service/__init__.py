"""
Query boundary for profiling sessions and ANR reports.

Services here never raise for domain failures; every operation returns an
OperationResult carrying either data or an error message.
"""

from .anr_service import ANRService
from .profile_service import SESSION_NOT_FOUND, ProfileService

__all__ = [
    "ANRService",
    "ProfileService",
    "SESSION_NOT_FOUND",
]
