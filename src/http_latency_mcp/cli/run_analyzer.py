from __future__ import annotations
import argparse
import logging
import sys
from typing import List, Optional

from http_latency_mcp.capture.reader import CaptureError, read_packets
from http_latency_mcp.core.config import PipelineConfig, classifier_imports_from_env
from http_latency_mcp.core.pipeline import LatencyPipeline
from http_latency_mcp.core.registry import ClassifierRegistry


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="http-latency",
        description="Per URL HTTP response latency over time from a pcap/pcapng capture.",
    )
    parser.add_argument("capture_file", help="pcap or pcapng capture file")
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="aggregation interval in seconds (default 60, or HTTP_LATENCY_INTERVAL)",
    )
    parser.add_argument(
        "--classifier",
        default=None,
        help="payload classifier name: prefix (default) or dpkt_http",
    )
    parser.add_argument(
        "--max-pending",
        type=int,
        default=None,
        help="evict the oldest unanswered request beyond this many (0 for no limit)",
    )
    parser.add_argument(
        "--pending-ttl",
        type=float,
        default=None,
        help="evict unanswered requests older than this many seconds of trace time (0 for no limit)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Example:
      http-latency --interval=30 trace.pcapng
      HTTP_LATENCY_CLASSIFIER=dpkt_http python -m http_latency_mcp.cli.run_analyzer trace.pcap
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
    )

    try:
        config = PipelineConfig.from_env().update(
            interval_seconds=args.interval,
            classifier=args.classifier,
            max_pending=args.max_pending,
            pending_ttl_seconds=args.pending_ttl,
        )
    except ValueError as e:
        parser.error(str(e))

    try:
        imports = classifier_imports_from_env()
    except ValueError as e:
        parser.error(f"HTTP_LATENCY_CLASSIFIERS: {e}")

    registry = ClassifierRegistry()
    registry.load_from_import_paths(imports)
    try:
        classifier = registry.get(config.classifier)
    except KeyError:
        parser.error(
            f"unknown classifier {config.classifier!r}, choose from {', '.join(registry.list())}"
        )

    pipeline = LatencyPipeline(config=config, classifier=classifier, log=print)
    try:
        report = pipeline.run(read_packets(args.capture_file))
    except CaptureError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(report.render())
    logging.getLogger(__name__).debug("stats: %s", report.stats)
    return 0


if __name__ == "__main__":
    sys.exit(main())
