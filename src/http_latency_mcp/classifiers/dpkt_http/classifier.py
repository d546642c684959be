from __future__ import annotations

import logging
from io import BytesIO
from typing import Any, Dict, List, Optional, Tuple

import dpkt

from http_latency_mcp.core.classifier_base import Classifier
from http_latency_mcp.core.models import Event, Packet, RequestEvent, ResponseEvent

log = logging.getLogger(__name__)

SUCCESS_STATUS = 200


def _start_line(payload: bytes) -> str:
    return payload.split(b"\r\n", 1)[0].decode("latin-1").strip()


def _header_lines(headers: Dict[str, Any]) -> Tuple[str, ...]:
    """
    Flatten dpkt's header dict back into "name: value" lines.
    dpkt lower cases names and collects repeated headers into a list.
    """
    out: List[str] = []
    for name, value in headers.items():
        values = value if isinstance(value, list) else [value]
        for v in values:
            out.append(f"{name}: {v}")
    return tuple(out)


def _parse(msg_cls, payload: bytes):
    """
    Parse payload with dpkt.http.Request or dpkt.http.Response.

    Returns (message or None, headers) or None when dpkt rejects the payload.

    Only the first segment of a message is seen, so a body announced by
    Content-Length is usually cut short and dpkt raises NeedData. The start
    line and headers were already accepted at that point, only the headers
    are parsed again.
    """
    try:
        msg = msg_cls(payload)
        return msg, msg.headers
    except dpkt.NeedData:
        f = BytesIO(payload)
        f.readline()
        try:
            return None, dpkt.http.parse_headers(f)
        except dpkt.UnpackError:
            return None
    except (dpkt.UnpackError, ValueError):
        return None


class DpktHttpClassifier:
    """
    Classifier backed by dpkt's HTTP parser.

    Differences from the prefix classifier:
      Every method dpkt knows counts as a request, not only GET.
      Every well formed status line counts as a response. is_success is
      True only for status 200, so a failed response consumes its request
      without producing a connection.
    """

    name = "dpkt_http"

    def __init__(self):
        self._requests = 0
        self._responses = 0
        self._rejected = 0

    def classify(self, packet: Packet) -> Optional[Event]:
        payload = packet.payload
        if payload.startswith(b"HTTP/"):
            return self._response(packet)
        return self._request(packet)

    def _request(self, packet: Packet) -> Optional[Event]:
        parsed = _parse(dpkt.http.Request, packet.payload)
        if parsed is None:
            self._rejected += 1
            return None

        _, headers = parsed
        self._requests += 1
        return RequestEvent(
            src=packet.src,
            src_port=packet.src_port,
            dst=packet.dst,
            dst_port=packet.dst_port,
            ts=packet.ts,
            request_line=_start_line(packet.payload),
            header_lines=_header_lines(headers),
        )

    def _response(self, packet: Packet) -> Optional[Event]:
        parsed = _parse(dpkt.http.Response, packet.payload)
        if parsed is None:
            self._rejected += 1
            log.debug("unparsable response from %s:%d", packet.src, packet.src_port)
            return None

        msg, _ = parsed
        status_line = _start_line(packet.payload)
        if msg is not None:
            status = int(msg.status)
        else:
            status = int(status_line.split(None, 2)[1])

        self._responses += 1
        return ResponseEvent(
            src=packet.src,
            src_port=packet.src_port,
            dst=packet.dst,
            dst_port=packet.dst_port,
            ts=packet.ts,
            status_line=status_line,
            is_success=status == SUCCESS_STATUS,
        )

    def status(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "requests": self._requests,
            "responses": self._responses,
            "rejected": self._rejected,
        }


def build_classifier() -> Classifier:
    return DpktHttpClassifier()
