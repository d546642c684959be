from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List
from .models import AggregationBucket, Connection

REPORT_TITLE = "Aggregated Connections by URL:"
RULE_WIDTH = 105


def _utc(ts: float) -> datetime:
    return datetime.fromtimestamp(ts, tz=timezone.utc)


def rfc3339(ts: float) -> str:
    return _utc(ts).strftime("%Y-%m-%dT%H:%M:%SZ")


def format_latency(latency_ms: float) -> str:
    return f"{latency_ms:.3f} ms"


def format_connection(seq: int, conn: Connection) -> str:
    """
    One live log line per matched connection.

    Example:
      1 [2024-01-01T00:00:00Z] 10.0.0.1:51000 -> 10.0.0.2:80 | 100.000 ms | http://x.com/a
    """
    return (
        f"{seq} [{rfc3339(conn.connection_ts)}] "
        f"{conn.src}:{conn.src_port} -> {conn.dst}:{conn.dst_port} | "
        f"{format_latency(conn.latency_ms)} | {conn.url}"
    )


def _row(ts: str, url: str, count: str, avg: str) -> str:
    return f"{ts:<20} | {url:<40} | {count:<15} | {avg}"


def render_report(buckets: Iterable[AggregationBucket]) -> str:
    """
    Render the final table.

    Buckets are printed in the order given, which is creation order.
    A group row with the interval start is printed whenever it changes.
    No state is kept between calls, rendering the same buckets twice
    gives the same text.
    """
    lines: List[str] = [
        "",
        REPORT_TITLE,
        _row("Timestamp", "URL", "Connections No.", "Average Response Time"),
        "-" * RULE_WIDTH,
    ]

    last_ts = None
    for b in buckets:
        ts = _utc(b.interval_start).strftime("%Y-%m-%d %H:%M")
        if ts != last_ts:
            last_ts = ts
            lines.append(_row(ts, "", "", ""))
        lines.append(_row("", b.url, str(b.connection_count), format_latency(b.mean_latency_ms)))

    return "\n".join(lines)


def report_rows(buckets: Iterable[AggregationBucket]) -> List[Dict[str, Any]]:
    """
    Same data as render_report, as JSON friendly rows for MCP tools.
    """
    return [
        {
            "interval_start": rfc3339(b.interval_start),
            "url": b.url,
            "connections": b.connection_count,
            "avg_ms": b.mean_latency_ms,
        }
        for b in buckets
    ]
