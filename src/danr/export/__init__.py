"""
Trace export formats.
"""

from .perfetto import (
    ActiveSpan,
    PerfettoExporter,
    export_to_perfetto_json,
    export_to_perfetto_json_minified,
)

__all__ = [
    "ActiveSpan",
    "PerfettoExporter",
    "export_to_perfetto_json",
    "export_to_perfetto_json_minified",
]
