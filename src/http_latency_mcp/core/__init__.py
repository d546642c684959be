"""
Core modules that must remain protocol neutral.

Keep capture parsing and payload classification out of this package.
"""

from .models import Connection, FlowKey, Packet, RequestEvent, ResponseEvent
from .flow import identify
from .tracker import RequestTracker
from .correlator import Correlator
from .aggregator import Aggregator
from .pipeline import LatencyPipeline, LatencyReport
from .server import HttpLatencyMCPServer

__all__ = [
    "Connection",
    "FlowKey",
    "Packet",
    "RequestEvent",
    "ResponseEvent",
    "identify",
    "RequestTracker",
    "Correlator",
    "Aggregator",
    "LatencyPipeline",
    "LatencyReport",
    "HttpLatencyMCPServer",
]
