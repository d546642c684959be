"""
http_latency_mcp

Per URL HTTP latency over time, reconstructed from a packet capture.

Core ideas
1. The capture reader decodes frames into Packet
2. Pluggable classifiers turn packets into request and response events
3. Core correlates events into connections and aggregates them per interval
   and URL, without knowing how events were classified
"""

__all__ = ["core", "capture", "classifiers", "cli"]
