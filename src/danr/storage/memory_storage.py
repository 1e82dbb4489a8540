"""
In-process sample store.

Holds the same encoded bytes the file store would write, so loads go through
the real codec. Used by tests and by one-shot CLI runs.
"""

import logging
from typing import Dict, List, Optional, Sequence

from ..models.profile import ProfileSample
from .base import SampleStore
from .codec import decode_samples, encode_samples

logger = logging.getLogger(__name__)


class MemorySampleStore(SampleStore):
    """Sample store keeping encoded session data in dictionaries."""

    def __init__(self, compress_level: int = 9):
        self.compress_level = compress_level
        self._samples: Dict[str, bytes] = {}
        self._traces: Dict[str, bytes] = {}

    def save_samples(self, session_id: str, samples: Sequence[ProfileSample]) -> str:
        self._samples[session_id] = encode_samples(samples, self.compress_level)
        logger.debug(f"Stored {len(samples)} samples for session {session_id} in memory")
        return f"memory://{session_id}.samples.gz"

    def load_samples(self, session_id: str) -> List[ProfileSample]:
        data = self._samples.get(session_id)
        return decode_samples(data) if data is not None else []

    def save_raw_trace(self, session_id: str, trace_bytes: bytes) -> str:
        self._traces[session_id] = bytes(trace_bytes)
        return f"memory://{session_id}.perfetto-trace"

    def load_raw_trace(self, session_id: str) -> Optional[bytes]:
        return self._traces.get(session_id)

    def delete_session(self, session_id: str) -> None:
        self._samples.pop(session_id, None)
        self._traces.pop(session_id, None)

    def samples_exist(self, session_id: str) -> bool:
        return session_id in self._samples

    def get_file_size(self, session_id: str) -> int:
        return len(self._samples.get(session_id, b"")) + len(self._traces.get(session_id, b""))
