from __future__ import annotations
import logging
from typing import Callable, Dict, List, Optional, Sequence
from .flow import identify
from .models import Connection, Event, PendingRequest, RequestEvent, ResponseEvent
from .tracker import RequestTracker

logger = logging.getLogger(__name__)

ConnectionSink = Callable[[int, Connection], None]


def extract_host(header_lines: Sequence[str]) -> Optional[str]:
    """
    Value of the first Host header, header names compared case insensitively.
    """
    for line in header_lines:
        name, sep, value = line.partition(":")
        if sep and name.strip().lower() == "host":
            host = value.strip()
            return host or None
    return None


def extract_url(request_line: str, header_lines: Sequence[str]) -> Optional[str]:
    """
    Build http://<host><path> from a request line like "GET /a HTTP/1.1".

    Returns None when the request line has no target field or there is no
    Host header. A target without a leading slash gets one, so an empty
    target becomes "/".
    """
    parts = request_line.split(" ")
    if len(parts) < 2:
        return None

    host = extract_host(header_lines)
    if host is None:
        return None

    path = parts[1]
    if not path.startswith("/"):
        path = "/" + path
    return "http://" + host + path


class Correlator:
    """
    Matches responses to the requests that caused them.

    Per flow key the state is either no request or awaiting response.
    A request event moves the flow to awaiting response, any response event
    on the mirrored flow moves it back, whether or not a Connection results.

    Events are handled strictly in the order they are given. Reordering an
    out of order source is the caller's job.

    Outputs:
      sinks
        Called with (sequence number, Connection) for every matched
        successful pair. Sequence numbers start at 1.

      log
        Operator facing notices, correlation misses.
    """

    def __init__(
        self,
        tracker: RequestTracker,
        log: Callable[[str], None],
        sinks: Optional[List[ConnectionSink]] = None,
    ):
        self.tracker = tracker
        self.log = log
        self.sinks: List[ConnectionSink] = list(sinks or [])

        self.sequence = 1

        self.requests = 0
        self.responses = 0
        self.dropped_requests = 0
        self.misses = 0
        self.discarded = 0
        self.clock_anomalies = 0
        self.connections = 0

    def add_sink(self, sink: ConnectionSink) -> None:
        self.sinks.append(sink)

    def handle(self, event: Event) -> Optional[Connection]:
        if isinstance(event, RequestEvent):
            self.on_request(event)
            return None
        if isinstance(event, ResponseEvent):
            return self.on_response(event)
        raise TypeError(f"unsupported event type {type(event).__name__}")

    def on_request(self, event: RequestEvent) -> None:
        self.requests += 1

        url = extract_url(event.request_line, event.header_lines)
        if url is None:
            self.dropped_requests += 1
            return

        key = identify(event.src, event.src_port, event.dst, event.dst_port)
        self.tracker.put(
            key,
            PendingRequest(
                flow_key=key,
                src=event.src,
                src_port=event.src_port,
                dst=event.dst,
                dst_port=event.dst_port,
                request_ts=event.ts,
                url=url,
            ),
        )

    def on_response(self, event: ResponseEvent) -> Optional[Connection]:
        self.responses += 1

        # The response flows server to client, its destination is the client.
        key = identify(event.src, event.src_port, event.dst, event.dst_port).mirrored()
        req = self.tracker.take_and_remove(key)
        if req is None:
            self.misses += 1
            self.log(f"Request not found for source IP: {event.src}:{event.src_port}")
            return None

        if not event.is_success:
            self.discarded += 1
            return None

        latency_ms = (event.ts - req.request_ts) * 1000.0
        if latency_ms < 0:
            self.clock_anomalies += 1
            logger.warning(
                "negative latency %.3f ms for %s, response precedes request, connection skipped",
                latency_ms,
                key.label(),
            )
            return None

        conn = Connection(
            src=req.src,
            src_port=req.src_port,
            dst=req.dst,
            dst_port=req.dst_port,
            connection_ts=req.request_ts,
            latency_ms=latency_ms,
            url=req.url,
        )

        seq = self.sequence
        self.sequence += 1
        self.connections += 1
        for sink in self.sinks:
            sink(seq, conn)
        return conn

    def stats(self) -> Dict[str, int]:
        return {
            "requests": self.requests,
            "responses": self.responses,
            "dropped_requests": self.dropped_requests,
            "misses": self.misses,
            "discarded": self.discarded,
            "clock_anomalies": self.clock_anomalies,
            "connections": self.connections,
        }
