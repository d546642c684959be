from __future__ import annotations
from typing import Any, Dict, Optional

from http_latency_mcp.core.classifier_base import Classifier
from http_latency_mcp.core.models import Event, Packet, RequestEvent, ResponseEvent


class PrefixClassifier:
    """
    String prefix classifier, the behaviour of the reference tool.

    Request
      payload starts with "GET " and contains "HTTP/"

    Response
      payload starts with "HTTP/" and contains "200 OK"

    Status lines without "200 OK" are not classified at all, so every
    ResponseEvent it emits is a success. Use dpkt_http to see failed
    responses consume their request.
    """

    name = "prefix"

    def __init__(self):
        self._requests = 0
        self._responses = 0

    def classify(self, packet: Packet) -> Optional[Event]:
        text = packet.payload.decode("latin-1")

        if text.startswith("GET ") and "HTTP/" in text:
            lines = text.split("\r\n")
            self._requests += 1
            return RequestEvent(
                src=packet.src,
                src_port=packet.src_port,
                dst=packet.dst,
                dst_port=packet.dst_port,
                ts=packet.ts,
                request_line=lines[0],
                header_lines=tuple(_header_block(lines[1:])),
            )

        if text.startswith("HTTP/") and "200 OK" in text:
            self._responses += 1
            return ResponseEvent(
                src=packet.src,
                src_port=packet.src_port,
                dst=packet.dst,
                dst_port=packet.dst_port,
                ts=packet.ts,
                status_line=text.split("\r\n", 1)[0],
                is_success=True,
            )

        return None

    def status(self) -> Dict[str, Any]:
        return {"name": self.name, "requests": self._requests, "responses": self._responses}


def _header_block(lines):
    for line in lines:
        if not line:
            break
        yield line


def build_classifier() -> Classifier:
    return PrefixClassifier()
