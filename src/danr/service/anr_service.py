"""
Caller-facing ANR operations.
"""

import logging
from datetime import datetime
from typing import Any, Mapping, Optional

from ..grouping import ANRGroupingEngine, InMemoryANRRepository, get_analytics, list_anrs
from ..models.config import AppConfig
from ..models.results import OperationResult
from ..validation import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class ANRService:
    """Wraps the grouping engine so domain failures become failed results."""

    def __init__(self, engine: ANRGroupingEngine):
        self.engine = engine

    @classmethod
    def from_config(cls, config: AppConfig) -> "ANRService":
        return cls(ANRGroupingEngine(
            InMemoryANRRepository(),
            similarity_threshold=config.grouping.similarity_threshold,
            pattern_depth=config.grouping.pattern_depth,
        ))

    def submit_anr(self, anr_data: Mapping[str, Any]) -> OperationResult:
        try:
            anr = self.engine.create_or_update_anr(anr_data)
        except ValidationError as e:
            logger.warning(f"Rejected ANR report: {e}")
            return OperationResult.fail(str(e))
        return OperationResult.ok(anr)

    def get_anr(self, anr_id: str) -> OperationResult:
        anr = self.engine.get_anr(anr_id)
        if anr is None:
            return OperationResult.fail("ANR not found")
        return OperationResult.ok(anr)

    def list_anrs(
        self,
        device_model: Optional[str] = None,
        os_version: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        is_main_thread: Optional[bool] = None,
        sort: Optional[str] = None,
        limit: int = 50,
        skip: int = 0,
    ) -> OperationResult:
        """Filtered page of ANRs with ``total``, ``page`` and ``pageSize``."""
        try:
            page, total = list_anrs(
                self.engine.repository,
                device_model=device_model,
                os_version=os_version,
                start_date=start_date,
                end_date=end_date,
                is_main_thread=is_main_thread,
                sort=sort,
                limit=limit,
                skip=skip,
            )
        except ValidationError as e:
            logger.warning(f"Invalid ANR listing request: {e}")
            return OperationResult.fail(str(e))

        return OperationResult.ok({
            "anrs": [a.to_dict() for a in page],
            "total": total,
            "page": int(skip) // int(limit) + 1,
            "pageSize": int(limit),
        })

    def delete_anr(self, anr_id: str) -> OperationResult:
        try:
            self.engine.delete_anr(anr_id)
        except NotFoundError as e:
            return OperationResult.fail(str(e))
        return OperationResult.ok(message="ANR deleted successfully")

    def delete_all_anrs(self) -> OperationResult:
        self.engine.delete_all()
        return OperationResult.ok(message="All ANRs deleted successfully")

    def list_groups(self) -> OperationResult:
        return OperationResult.ok([g.to_dict() for g in self.engine.get_groups()])

    def get_group_members(self, group_id: str) -> OperationResult:
        try:
            members = self.engine.get_group_members(group_id)
        except NotFoundError as e:
            return OperationResult.fail(str(e))
        return OperationResult.ok([a.to_dict() for a in members])

    def analytics(self) -> OperationResult:
        return OperationResult.ok(get_analytics(self.engine.repository))
