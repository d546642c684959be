from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

from .models import Event, Packet


class Classifier(Protocol):
    """
    Required interface for a payload classifier plugin.

    A classifier is responsible for
    1. Deciding whether a packet starts an HTTP request or response
    2. Turning it into a RequestEvent or ResponseEvent

    It must not keep per flow state. Correlation belongs to the core.

    The core never imports specific classifiers directly.
    It loads them via registry using import paths.
    """

    name: str

    def classify(self, packet: Packet) -> Optional[Event]:
        """
        Return an event, or None when the packet is not interesting.
        Must not raise on arbitrary payload bytes.
        """
        ...

    def status(self) -> Dict[str, Any]:
        """
        Counters for the classifier_status tool.
        """
        ...
