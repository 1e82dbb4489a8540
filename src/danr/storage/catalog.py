"""
Session metadata catalog.

Keeps the metadata of every uploaded session (without samples) so callers
can resolve a session id before loading its data. The catalog is optionally
persisted as a JSON index file next to the sample files.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from ..models.profile import ProfileSession

logger = logging.getLogger(__name__)


class SessionCatalog:
    """
    Index of session metadata keyed by session id.

    Args:
        index_path: JSON file to load from and save to; None keeps the
            catalog in memory only
    """

    def __init__(self, index_path: Optional[Path] = None):
        self.index_path = Path(index_path) if index_path is not None else None
        self._sessions: Dict[str, ProfileSession] = {}
        if self.index_path is not None and self.index_path.exists():
            self._load()

    def _load(self) -> None:
        try:
            with open(self.index_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            for entry in data.get("sessions", []):
                session = ProfileSession.from_dict(entry)
                self._sessions[session.session_id] = session
            logger.debug(f"Loaded {len(self._sessions)} sessions from {self.index_path}")
        except Exception as e:
            logger.error(f"Failed to load session catalog from {self.index_path}: {e}")
            raise

    def _save(self) -> None:
        if self.index_path is None:
            return
        try:
            self.index_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.index_path, "w", encoding="utf-8") as f:
                json.dump(
                    {"sessions": [s.metadata_dict() for s in self._sessions.values()]},
                    f,
                    indent=2,
                    ensure_ascii=False,
                )
        except Exception as e:
            logger.error(f"Failed to save session catalog to {self.index_path}: {e}")
            raise

    def add(self, session: ProfileSession) -> None:
        """Register or replace a session; samples are not kept."""
        self._sessions[session.session_id] = ProfileSession(
            session_id=session.session_id,
            device_id=session.device_id,
            start_time=session.start_time,
            end_time=session.end_time,
            sampling_interval_ms=session.sampling_interval_ms,
            total_samples=session.total_samples,
            has_root=session.has_root,
            profiler_type=session.profiler_type,
        )
        self._save()

    def get(self, session_id: str) -> Optional[ProfileSession]:
        return self._sessions.get(session_id)

    def list(self, device_id: Optional[str] = None, limit: int = 20, skip: int = 0) -> List[ProfileSession]:
        """Sessions newest first, optionally for one device."""
        sessions = [
            s for s in self._sessions.values()
            if device_id is None or s.device_id == device_id
        ]
        sessions.sort(key=lambda s: s.start_time, reverse=True)
        return sessions[skip:skip + limit]

    def count(self, device_id: Optional[str] = None) -> int:
        return sum(1 for s in self._sessions.values() if device_id is None or s.device_id == device_id)

    def remove(self, session_id: str) -> bool:
        """Returns False when the id was unknown."""
        if self._sessions.pop(session_id, None) is None:
            return False
        self._save()
        return True

    def session_ids(self) -> List[str]:
        return list(self._sessions)

    def clear(self) -> None:
        self._sessions.clear()
        self._save()
