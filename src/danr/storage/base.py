"""
Abstract base class for sample store implementations.

This module defines the SampleStore abstract base class, the persistence
boundary between the profiling core and wherever session data actually
lives. The interface covers:
- Saving and loading the sample sequence of a java session
- Saving and loading the raw trace bytes of a simpleperf session
- Deleting a session's data and inspecting what is stored

Loads are total: a session with nothing stored yields an empty sample list
or ``None`` rather than an error, so the aggregators downstream never have
to special-case missing data.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from ..models.profile import ProfileSample


class SampleStore(ABC):
    """Abstract base class for sample storage backends."""

    @abstractmethod
    def save_samples(self, session_id: str, samples: Sequence[ProfileSample]) -> str:
        """
        Persist the samples of a session, replacing any previous copy.

        Args:
            session_id: Session identifier
            samples: Samples to store

        Returns:
            Location of the stored samples (path or key)
        """
        pass

    @abstractmethod
    def load_samples(self, session_id: str) -> List[ProfileSample]:
        """
        Load the samples of a session.

        Returns:
            The stored samples, or an empty list if none are stored
        """
        pass

    @abstractmethod
    def save_raw_trace(self, session_id: str, trace_bytes: bytes) -> str:
        """
        Persist raw trace bytes verbatim.

        Returns:
            Location of the stored trace (path or key)
        """
        pass

    @abstractmethod
    def load_raw_trace(self, session_id: str) -> Optional[bytes]:
        """
        Load raw trace bytes.

        Returns:
            The stored bytes, or None if no trace is stored
        """
        pass

    @abstractmethod
    def delete_session(self, session_id: str) -> None:
        """Remove samples and raw trace of a session if present."""
        pass

    @abstractmethod
    def samples_exist(self, session_id: str) -> bool:
        pass

    @abstractmethod
    def get_file_size(self, session_id: str) -> int:
        """
        Size in bytes of what is stored for a session.

        Returns:
            Combined size of samples and raw trace, 0 if nothing is stored
        """
        pass
