from __future__ import annotations
import logging
from http_latency_mcp.capture.reader import read_packets
from http_latency_mcp.core.config import PipelineConfig, classifier_imports_from_env
from http_latency_mcp.core.server import HttpLatencyMCPServer


def main() -> None:
    """
    Load classifiers from HTTP_LATENCY_CLASSIFIERS and defaults from
    HTTP_LATENCY_* env vars.

    Example:
      export HTTP_LATENCY_CLASSIFIERS='[
        "http_latency_mcp.classifiers.prefix.classifier:build_classifier",
        "http_latency_mcp.classifiers.dpkt_http.classifier:build_classifier"
      ]'
      export HTTP_LATENCY_INTERVAL=60
      python -m http_latency_mcp.cli.run_server
    """
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    server = HttpLatencyMCPServer(
        classifier_imports=classifier_imports_from_env(),
        packet_source=read_packets,
        config=PipelineConfig.from_env(),
    )
    server.run()


if __name__ == "__main__":
    main()
