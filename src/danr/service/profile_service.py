"""
Caller-facing profiling operations.

Each operation resolves a session through the catalog, loads its samples from
the store and hands them to a pure analysis function. Domain failures
(unknown session, invalid parameters, missing trace data) come back as a
failed :class:`OperationResult` rather than an exception.
"""

import logging
from pathlib import Path
from typing import Callable, Optional

from ..analysis import (
    aggregate_to_flame_graph,
    create_timeline_summary,
    get_native_functions,
    get_thread_summary,
    get_top_functions,
    parse_native_functions,
)
from ..export import PerfettoExporter, export_to_perfetto_json
from ..models.config import AppConfig
from ..models.profile import ProfilerType, ProfileSession
from ..models.results import NativeFunctionsResult, OperationResult
from ..storage import SampleStore, SessionCatalog, create_storage_from_config, ingest_upload
from ..validation import NotFoundError, ValidationError, validate_positive_integer

logger = logging.getLogger(__name__)

SESSION_NOT_FOUND = "Profile session not found"
CATALOG_FILE_NAME = "sessions.json"


class ProfileService:
    """
    Profiling operations over a sample store and a session catalog.

    Args:
        store: Where samples and raw traces live
        catalog: Session metadata index
        exporter: Chrome Trace exporter; default settings if omitted
        default_top_functions_limit: Limit used when none is given
        default_native_functions_limit: Limit used when none is given
    """

    def __init__(
        self,
        store: SampleStore,
        catalog: SessionCatalog,
        exporter: Optional[PerfettoExporter] = None,
        default_top_functions_limit: int = 20,
        default_native_functions_limit: int = 100,
    ):
        self.store = store
        self.catalog = catalog
        self.exporter = exporter or PerfettoExporter()
        self.default_top_functions_limit = default_top_functions_limit
        self.default_native_functions_limit = default_native_functions_limit

    @classmethod
    def from_config(cls, config: AppConfig) -> "ProfileService":
        store = create_storage_from_config(config.storage)
        index_path: Optional[Path] = None
        if config.storage.format == "file":
            index_path = config.storage.data_dir / CATALOG_FILE_NAME
        return cls(
            store=store,
            catalog=SessionCatalog(index_path),
            exporter=PerfettoExporter(
                gap_multiplier=config.export.gap_multiplier,
                pid=config.export.pid,
                process_name=config.export.process_name,
            ),
            default_top_functions_limit=config.query.default_top_functions_limit,
            default_native_functions_limit=config.query.default_native_functions_limit,
        )

    def _run(self, context: str, operation: Callable[[], OperationResult]) -> OperationResult:
        try:
            return operation()
        except (ValidationError, NotFoundError) as e:
            logger.warning(f"{context} failed: {e}")
            return OperationResult.fail(str(e))

    def _find_session(self, session_id: str) -> Optional[ProfileSession]:
        return self.catalog.get(session_id)

    def _load_session(self, session_id: str) -> Optional[ProfileSession]:
        """Catalog metadata with the stored samples attached."""
        metadata = self._find_session(session_id)
        if metadata is None:
            return None
        return ProfileSession(
            session_id=metadata.session_id,
            device_id=metadata.device_id,
            start_time=metadata.start_time,
            end_time=metadata.end_time,
            sampling_interval_ms=metadata.sampling_interval_ms,
            total_samples=metadata.total_samples,
            has_root=metadata.has_root,
            profiler_type=metadata.profiler_type,
            samples=self.store.load_samples(session_id),
        )

    def upload(self, data: bytes, device_id: str, session_id: str) -> OperationResult:
        """
        Ingest an upload body and register its session.

        Returns:
            Result whose data holds ``sessionId``, ``totalSamples`` and
            ``profilerType``
        """
        def operation() -> OperationResult:
            session = ingest_upload(data, device_id, session_id, self.store)
            self.catalog.add(session)
            logger.info(
                f"Registered {session.profiler_type.value} session {session.session_id} "
                f"from device {device_id}"
            )
            return OperationResult.ok({
                "sessionId": session.session_id,
                "totalSamples": session.total_samples,
                "profilerType": session.profiler_type.value,
            })

        return self._run("Profile upload", operation)

    def list_sessions(
        self, device_id: Optional[str] = None, limit: int = 20, skip: int = 0
    ) -> OperationResult:
        """Session metadata, newest first, with paging info."""
        def operation() -> OperationResult:
            page_size = validate_positive_integer(limit, min_value=1, field_name="limit")
            offset = validate_positive_integer(skip, min_value=0, field_name="skip")
            sessions = self.catalog.list(device_id, limit=page_size, skip=offset)
            return OperationResult.ok({
                "sessions": [s.metadata_dict() for s in sessions],
                "total": self.catalog.count(device_id),
                "page": offset // page_size + 1,
                "pageSize": page_size,
            })

        return self._run("Session listing", operation)

    def get_session(self, session_id: str) -> OperationResult:
        session = self._load_session(session_id)
        if session is None:
            return OperationResult.fail(SESSION_NOT_FOUND)
        return OperationResult.ok(session)

    def get_flame_graph(self, session_id: str, thread: Optional[str] = None) -> OperationResult:
        session = self._load_session(session_id)
        if session is None:
            return OperationResult.fail(SESSION_NOT_FOUND)
        return OperationResult.ok(aggregate_to_flame_graph(session_id, session.samples, thread))

    def get_top_functions(self, session_id: str, limit: Optional[int] = None) -> OperationResult:
        def operation() -> OperationResult:
            count = validate_positive_integer(
                self.default_top_functions_limit if limit is None else limit,
                min_value=1,
                field_name="limit",
            )
            session = self._load_session(session_id)
            if session is None:
                return OperationResult.fail(SESSION_NOT_FOUND)
            return OperationResult.ok([f.to_dict() for f in get_top_functions(session.samples, count)])

        return self._run("Top functions", operation)

    def get_native_functions(self, session_id: str, limit: Optional[int] = None) -> OperationResult:
        def operation() -> OperationResult:
            count = validate_positive_integer(
                self.default_native_functions_limit if limit is None else limit,
                min_value=1,
                field_name="limit",
            )
            session = self._load_session(session_id)
            if session is None:
                return OperationResult.fail(SESSION_NOT_FOUND)
            return OperationResult.ok(NativeFunctionsResult(
                session_id=session_id,
                profiler_type=session.profiler_type.value,
                total_functions=len(parse_native_functions(session.samples)),
                functions=get_native_functions(session.samples, count),
            ))

        return self._run("Native functions", operation)

    def get_thread_summary(self, session_id: str) -> OperationResult:
        session = self._load_session(session_id)
        if session is None:
            return OperationResult.fail(SESSION_NOT_FOUND)
        return OperationResult.ok([s.to_dict() for s in get_thread_summary(session.samples)])

    def get_timeline(self, session_id: str) -> OperationResult:
        session = self._load_session(session_id)
        if session is None:
            return OperationResult.fail(SESSION_NOT_FOUND)
        return OperationResult.ok(create_timeline_summary(session.samples))

    def export_perfetto(self, session_id: str, minified: bool = False) -> OperationResult:
        """Result data is the Chrome Trace JSON text."""
        session = self._load_session(session_id)
        if session is None:
            return OperationResult.fail(SESSION_NOT_FOUND)
        return OperationResult.ok(
            export_to_perfetto_json(session, minified=minified, exporter=self.exporter)
        )

    def get_raw_trace(self, session_id: str) -> OperationResult:
        """Result data is the raw ``perf.data`` bytes of a simpleperf session."""
        session = self._find_session(session_id)
        if session is None:
            return OperationResult.fail(SESSION_NOT_FOUND)
        if session.profiler_type is not ProfilerType.SIMPLEPERF:
            return OperationResult.fail("Raw trace only available for simpleperf sessions")

        trace_bytes = self.store.load_raw_trace(session_id)
        if trace_bytes is None:
            return OperationResult.fail("Trace file not found")
        return OperationResult.ok(trace_bytes)

    def delete_session(self, session_id: str) -> OperationResult:
        def operation() -> OperationResult:
            self.store.delete_session(session_id)
            if not self.catalog.remove(session_id):
                return OperationResult.fail(SESSION_NOT_FOUND)
            logger.info(f"Deleted profile session {session_id}")
            return OperationResult.ok(message="Profile session deleted successfully")

        return self._run("Session deletion", operation)

    def delete_all_sessions(self) -> OperationResult:
        session_ids = self.catalog.session_ids()
        for session_id in session_ids:
            self.store.delete_session(session_id)
        self.catalog.clear()
        logger.info(f"Deleted {len(session_ids)} profile sessions")
        return OperationResult.ok(message="All profile sessions deleted successfully")
