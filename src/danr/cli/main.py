"""
Command-line interface for the danr profiling core.

This module provides the ``danr`` entry point: it ingests profile uploads
saved on disk, runs the analyses over stored sessions and groups ANR reports,
printing JSON results to stdout (or to ``--output``).
"""

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from ..config import get_config, set_config_path
from ..grouping import ANRGroupingEngine, InMemoryANRRepository
from ..models.results import OperationResult
from ..service import ANRService, ProfileService
from ..validation import ValidationError, handle_cli_error, validate_path_exists

# --- Logging Setup ---
# Results go to stdout, so log lines are kept on stderr.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="danr",
        description="Analyze Android CPU profiles and group ANR reports.",
    )
    parser.add_argument("--config", type=Path, help="Path to config.toml.")
    parser.add_argument(
        "--data-dir",
        type=Path,
        help="Override the [storage] data_dir from the configuration.",
    )
    parser.add_argument("-o", "--output", type=Path, help="Write the result to this file.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Store an uploaded profile body (JSON or gzip).")
    ingest.add_argument("file", type=Path)
    ingest.add_argument("--device-id", required=True)
    ingest.add_argument("--session-id", required=True)

    flamegraph = subparsers.add_parser("flamegraph", help="Per-thread flame graphs.")
    flamegraph.add_argument("session_id")
    flamegraph.add_argument("--thread", help="Case-insensitive thread name filter.")

    top_functions = subparsers.add_parser("top-functions", help="Most frequent frames.")
    top_functions.add_argument("session_id")
    top_functions.add_argument("--limit", type=int)

    thread_summary = subparsers.add_parser("thread-summary", help="CPU and states per thread.")
    thread_summary.add_argument("session_id")

    native_functions = subparsers.add_parser("native-functions", help="Simpleperf hot functions.")
    native_functions.add_argument("session_id")
    native_functions.add_argument("--limit", type=int)

    timeline = subparsers.add_parser("timeline", help="Per-sample CPU and state series.")
    timeline.add_argument("session_id")

    export = subparsers.add_parser("export", help="Chrome Trace JSON for ui.perfetto.dev.")
    export.add_argument("session_id")
    export.add_argument("--minified", action="store_true")

    sessions = subparsers.add_parser("sessions", help="List stored sessions.")
    sessions.add_argument("--device-id")
    sessions.add_argument("--limit", type=int, default=20)
    sessions.add_argument("--skip", type=int, default=0)

    anr_group = subparsers.add_parser("anr-group", help="Group ANR report files.")
    anr_group.add_argument("files", type=Path, nargs="+")

    return parser


def _read_anr_reports(path: Path) -> List[Any]:
    validate_path_exists(path, field_name=str(path))
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return data if isinstance(data, list) else [data]


def _emit(result: OperationResult, output: Optional[Path]) -> None:
    if not result.success:
        logger.error(result.message)
        sys.exit(1)

    if isinstance(result.data, str):
        text = result.data
    else:
        text = json.dumps(result.to_dict(), indent=2, ensure_ascii=False)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text, encoding="utf-8")
        logger.info(f"Result written to {output}")
    else:
        sys.stdout.write(text + "\n")


def _run_anr_group(args: argparse.Namespace, service: ANRService) -> OperationResult:
    submitted = 0
    for path in args.files:
        for report in _read_anr_reports(path):
            result = service.submit_anr(report)
            if not result.success:
                logger.warning(f"Skipping report from {path}: {result.message}")
                continue
            submitted += 1
    logger.info(f"Grouped {submitted} ANR reports")
    return service.list_groups()


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Main command-line interface for danr.

    Raises:
        SystemExit: On configuration errors, invalid input or failed operations
    """
    args = build_parser().parse_args(argv)

    if args.config is not None:
        set_config_path(args.config)

    try:
        app_config = get_config()
    except Exception as e:
        handle_cli_error(error=e, context="configuration loading", exit_code=1, logger=logger)

    if args.data_dir is not None:
        app_config = dataclasses.replace(
            app_config,
            storage=dataclasses.replace(app_config.storage, data_dir=args.data_dir),
        )

    if args.command == "anr-group":
        anr_service = ANRService(ANRGroupingEngine(
            InMemoryANRRepository(),
            similarity_threshold=app_config.grouping.similarity_threshold,
            pattern_depth=app_config.grouping.pattern_depth,
        ))
        try:
            result = _run_anr_group(args, anr_service)
        except (ValidationError, json.JSONDecodeError) as e:
            handle_cli_error(error=e, context="reading ANR reports", exit_code=1, logger=logger)
        _emit(result, args.output)
        return

    service = ProfileService.from_config(app_config)

    if args.command == "ingest":
        try:
            validate_path_exists(args.file, field_name="file")
        except ValidationError as e:
            handle_cli_error(error=e, context="upload file validation", exit_code=1, logger=logger)
        result = service.upload(args.file.read_bytes(), args.device_id, args.session_id)
    elif args.command == "flamegraph":
        result = service.get_flame_graph(args.session_id, args.thread)
    elif args.command == "top-functions":
        result = service.get_top_functions(args.session_id, args.limit)
    elif args.command == "thread-summary":
        result = service.get_thread_summary(args.session_id)
    elif args.command == "native-functions":
        result = service.get_native_functions(args.session_id, args.limit)
    elif args.command == "timeline":
        result = service.get_timeline(args.session_id)
    elif args.command == "export":
        result = service.export_perfetto(args.session_id, minified=args.minified)
    else:
        result = service.list_sessions(args.device_id, limit=args.limit, skip=args.skip)

    _emit(result, args.output)


if __name__ == "__main__":
    main_cli()
