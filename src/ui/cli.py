"""CLI shell around the parallel chunk processor."""
from __future__ import annotations

import argparse
import threading
from pathlib import Path
from typing import Any, Dict, List, Sequence

from common.config import load_processor_config
from common.errors import BackendError
from common.models import ProcessorConfig, RunProgress
from common.progress import BenchmarkRecorder
from common.units import format_byte_size
from core.chunking import LineCounter
from core.processing import Processor, process_file


class RowCounter:
    """Thread-safe job that tallies rows and chunks across workers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.rows = 0
        self.chunks = 0

    def __call__(self, header: Sequence[str], rows: List[str]) -> None:
        with self._lock:
            self.rows += len(rows)
            self.chunks += 1


def resolve_config(args: argparse.Namespace) -> ProcessorConfig:
    overrides: Dict[str, Any] = {}
    if args.workers is not None:
        overrides["number_of_workers"] = args.workers
    if args.no_header:
        overrides["has_header"] = False
    if args.separator is not None:
        overrides["separator"] = args.separator
    if args.chunk_size is not None:
        overrides["bytes_per_worker"] = args.chunk_size
    return load_processor_config(
        args.profile,
        config_path=Path(args.config) if args.config else None,
        overrides={"profile": overrides} if overrides else None,
    )


def render_progress(progress: RunProgress) -> None:
    if progress.phase in {"buffer-grown", "run-failed", "run-cancelled"}:
        print(f"[progress] {progress.phase} {progress.detail or ''}".rstrip())


def command_count(args: argparse.Namespace) -> None:
    path = Path(args.input)
    if not path.is_file():
        raise SystemExit(f"Input file '{path}' not found.")
    config = resolve_config(args)
    print(
        f"Processing {path} using profile '{args.profile}' "
        f"(workers={config.number_of_workers}, chunk={format_byte_size(config.bytes_per_worker)}, "
        f"header={'on' if config.header_config.has_header else 'off'}, "
        f"buffered<={format_byte_size(config.memory_bound_bytes)})"
    )
    counter = RowCounter()
    header, summary = process_file(
        path,
        counter,
        config,
        progress_log=Path(args.progress_log) if args.progress_log else None,
        progress_callback=render_progress,
    )
    if header:
        print(f"[count] header: {', '.join(header)}")
    print(
        f"[count] rows={summary.rows_delivered} chunks={summary.chunks_processed} "
        f"bytes={summary.bytes_read} duration={summary.duration_seconds:.3f}s "
        f"rate={summary.rows_per_second:.0f} rows/s"
    )
    if args.benchmark_log:
        BenchmarkRecorder(Path(args.benchmark_log)).record(str(path), summary.to_metrics())
    if args.verify:
        expected = LineCounter().count(path, skip_header=config.header_config.has_header)
        if expected != summary.rows_delivered:
            raise SystemExit(f"[verify] mismatch: counted {expected} lines, delivered {summary.rows_delivered}")
        print(f"[verify] ok: {expected} lines")


def command_header(args: argparse.Namespace) -> None:
    path = Path(args.input)
    if not path.is_file():
        raise SystemExit(f"Input file '{path}' not found.")
    config = resolve_config(args)
    if not config.header_config.has_header:
        raise SystemExit("Header mode is disabled; nothing to print.")
    with path.open("rb") as handle:
        processor = Processor(handle, config)
    for idx, name in enumerate(processor.header):
        print(f"{idx}\t{name}")


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("input", help="Line-oriented input file (CSV, TSV, logs)")
    parser.add_argument(
        "--profile",
        default="default",
        help="Configuration profile from config/defaults.json",
    )
    parser.add_argument("--config", help="Alternative configuration JSON")
    parser.add_argument("--workers", type=int, help="Number of worker threads (min 1)")
    parser.add_argument(
        "--no-header",
        action="store_true",
        help="Treat the first line as data instead of field names",
    )
    parser.add_argument("--separator", help="Header field separator")
    parser.add_argument(
        "--chunk-size",
        help="Bytes per chunk, plain integer or binary size such as 5KB or 10MB",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="parallel-lines",
        description="Process large line-oriented files in parallel chunks",
    )
    subparsers = parser.add_subparsers(dest="command")

    count = subparsers.add_parser("count", help="Count rows delivered across all chunks")
    _add_common_options(count)
    count.add_argument(
        "--progress-log",
        help="Optional JSONL file capturing state transitions and per-chunk progress",
    )
    count.add_argument(
        "--benchmark-log",
        help="Optional JSONL file to append throughput metrics",
    )
    count.add_argument(
        "--verify",
        action="store_true",
        help="Re-count lines sequentially and fail if the delivered row count differs",
    )
    count.set_defaults(func=command_count)

    header = subparsers.add_parser("header", help="Print the header fields of a file")
    _add_common_options(header)
    header.set_defaults(func=command_header)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    try:
        args.func(args)
    except BackendError as exc:
        print(f"[error] {exc}")
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
