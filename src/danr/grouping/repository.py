"""
Persistence interface for ANR records and groups.

The grouping engine only talks to an :class:`ANRRepository`; the database
backed implementation lives with the service that owns the database. The
in-memory implementation here backs tests, the CLI and single-process use.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from ..models.anr import ANRGroup, ANRRecord

logger = logging.getLogger(__name__)


class ANRRepository(ABC):
    """Abstract storage for ANR records and ANR groups."""

    @abstractmethod
    def find_anr_by_hash(self, stack_trace_hash: str) -> Optional[ANRRecord]:
        """Return the ANR whose main thread trace hashes to ``stack_trace_hash``."""
        pass

    @abstractmethod
    def get_anr(self, anr_id: str) -> Optional[ANRRecord]:
        pass

    @abstractmethod
    def save_anr(self, anr: ANRRecord) -> None:
        """Insert or replace an ANR record."""
        pass

    @abstractmethod
    def delete_anr(self, anr_id: str) -> None:
        pass

    @abstractmethod
    def list_anrs(self) -> List[ANRRecord]:
        """All ANR records in insertion order."""
        pass

    @abstractmethod
    def find_group_by_hash(self, stack_trace_hash: str) -> Optional[ANRGroup]:
        """Return the group whose representative hash is ``stack_trace_hash``."""
        pass

    @abstractmethod
    def get_group(self, group_id: str) -> Optional[ANRGroup]:
        pass

    @abstractmethod
    def save_group(self, group: ANRGroup) -> None:
        """Insert or replace a group."""
        pass

    @abstractmethod
    def delete_group(self, group_id: str) -> None:
        pass

    @abstractmethod
    def list_groups(self) -> List[ANRGroup]:
        """All groups in insertion order."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove every ANR and group."""
        pass


class InMemoryANRRepository(ANRRepository):
    """
    Dictionary backed repository.

    Records are held by reference, so mutations made by the engine are
    visible immediately; ``save_*`` still has to be called for new entries.
    """

    def __init__(self):
        self._anrs: Dict[str, ANRRecord] = {}
        self._anr_ids_by_hash: Dict[str, str] = {}
        self._groups: Dict[str, ANRGroup] = {}

    def find_anr_by_hash(self, stack_trace_hash: str) -> Optional[ANRRecord]:
        anr_id = self._anr_ids_by_hash.get(stack_trace_hash)
        return self._anrs.get(anr_id) if anr_id is not None else None

    def get_anr(self, anr_id: str) -> Optional[ANRRecord]:
        return self._anrs.get(anr_id)

    def save_anr(self, anr: ANRRecord) -> None:
        self._anrs[anr.anr_id] = anr
        self._anr_ids_by_hash[anr.stack_trace_hash] = anr.anr_id

    def delete_anr(self, anr_id: str) -> None:
        anr = self._anrs.pop(anr_id, None)
        if anr is not None and self._anr_ids_by_hash.get(anr.stack_trace_hash) == anr_id:
            del self._anr_ids_by_hash[anr.stack_trace_hash]

    def list_anrs(self) -> List[ANRRecord]:
        return list(self._anrs.values())

    def find_group_by_hash(self, stack_trace_hash: str) -> Optional[ANRGroup]:
        for group in self._groups.values():
            if group.stack_trace_hash == stack_trace_hash:
                return group
        return None

    def get_group(self, group_id: str) -> Optional[ANRGroup]:
        return self._groups.get(group_id)

    def save_group(self, group: ANRGroup) -> None:
        self._groups[group.group_id] = group

    def delete_group(self, group_id: str) -> None:
        self._groups.pop(group_id, None)

    def list_groups(self) -> List[ANRGroup]:
        return list(self._groups.values())

    def clear(self) -> None:
        self._anrs.clear()
        self._anr_ids_by_hash.clear()
        self._groups.clear()
        logger.debug("In-memory ANR repository cleared")
