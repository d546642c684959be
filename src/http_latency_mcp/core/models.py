from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple, Union


@dataclass
class Packet:
    """
    Normalized TCP segment that the capture reader outputs.

    This decouples classifiers from link layer and container specifics.

    Fields:
      ts
        Unix time in seconds, capture timestamp of the packet.

      src, dst
        IP addresses as strings, IPv4 or IPv6.

      src_port, dst_port
        TCP ports.

      payload
        Application layer bytes. Never empty, the reader drops empty segments.
    """

    ts: float
    src: str
    src_port: int
    dst: str
    dst_port: int
    payload: bytes


@dataclass(frozen=True)
class FlowKey:
    """
    Directional identity of a transport flow.

    A request is stored under identify(client, server). The response travels
    server to client, so it is looked up with the mirrored key.
    """

    src: str
    src_port: int
    dst: str
    dst_port: int

    def mirrored(self) -> "FlowKey":
        return FlowKey(self.dst, self.dst_port, self.src, self.src_port)

    def label(self) -> str:
        return f"{self.src}:{self.src_port}->{self.dst}:{self.dst_port}"


@dataclass(frozen=True)
class RequestEvent:
    src: str
    src_port: int
    dst: str
    dst_port: int
    ts: float
    request_line: str
    header_lines: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ResponseEvent:
    src: str
    src_port: int
    dst: str
    dst_port: int
    ts: float
    status_line: str
    is_success: bool = True


Event = Union[RequestEvent, ResponseEvent]


@dataclass
class PendingRequest:
    """
    A request waiting for its response. Owned by RequestTracker only.
    """

    flow_key: FlowKey
    src: str
    src_port: int
    dst: str
    dst_port: int
    request_ts: float
    url: str


@dataclass(frozen=True)
class Connection:
    """
    A matched request/response pair.

    connection_ts
      Time of the original request, Unix seconds.

    latency_ms
      Response time minus request time, in milliseconds. Never negative.
    """

    src: str
    src_port: int
    dst: str
    dst_port: int
    connection_ts: float
    latency_ms: float
    url: str


@dataclass
class AggregationBucket:
    """
    Latency accumulator for one (interval, URL) pair.

    url is the representative string, taken from the first connection
    folded into the bucket.
    """

    interval_start: float
    url: str
    url_hash: int
    mean_latency_ms: float = 0.0
    connection_count: int = 0

    def add(self, latency_ms: float) -> None:
        """
        Incremental mean, no running total kept.
        """
        self.connection_count += 1
        self.mean_latency_ms += (latency_ms - self.mean_latency_ms) / self.connection_count
