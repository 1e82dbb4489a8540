"""
danr: Android ANR grouping and CPU profile analysis.

This package turns the raw reports and profiling uploads of the DANR device
SDK into queryable results.

The package is organized into specialized modules:
- models: Wire and result data structures
- validation: Input validation and error handling
- config: Configuration management (conf/config.toml)
- grouping: Stack trace similarity and ANR deduplication
- storage: Sample codec, sample stores and the session catalog
- analysis: Flame graphs, top functions, thread summaries
- export: Chrome Trace / Perfetto export
- service: Caller-facing operations returning OperationResult
- cli: Command-line interface

Usage:
    From command line:
        danr --data-dir ./profiles export <session-id> -o trace.json

    Programmatically:
        from danr import ProfileService, get_config
        service = ProfileService.from_config(get_config())
        result = service.get_flame_graph(session_id)
"""

# Main interfaces
from .config import clear_config_cache, get_config, set_config_path
from .service import ANRService, ProfileService

# Core operations
from .analysis import (
    aggregate_to_flame_graph,
    create_timeline_summary,
    get_native_functions,
    get_thread_summary,
    get_top_functions,
)
from .export import PerfettoExporter, export_to_perfetto_json, export_to_perfetto_json_minified
from .grouping import ANRGroupingEngine, InMemoryANRRepository, calculate_similarity, generate_stack_trace_hash

# Model classes for external use
from .models import (
    ANRGroup,
    ANRRecord,
    AppConfig,
    OperationResult,
    ProfileSample,
    ProfileSession,
    ThreadSnapshot,
)

__version__ = "0.1.0"

__all__ = [
    # Main interfaces
    "get_config",
    "set_config_path",
    "clear_config_cache",
    "ProfileService",
    "ANRService",
    # Core operations
    "aggregate_to_flame_graph",
    "create_timeline_summary",
    "get_native_functions",
    "get_thread_summary",
    "get_top_functions",
    "PerfettoExporter",
    "export_to_perfetto_json",
    "export_to_perfetto_json_minified",
    "ANRGroupingEngine",
    "InMemoryANRRepository",
    "calculate_similarity",
    "generate_stack_trace_hash",
    # Models
    "ANRGroup",
    "ANRRecord",
    "AppConfig",
    "OperationResult",
    "ProfileSample",
    "ProfileSession",
    "ThreadSnapshot",
]
