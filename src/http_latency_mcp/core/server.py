from __future__ import annotations
import sys
from typing import Any, Callable, Dict, Iterable, List, Optional

from mcp.server.fastmcp import FastMCP

from .config import PipelineConfig
from .models import Packet
from .pipeline import LatencyPipeline, LatencyReport
from .registry import ClassifierRegistry


class HttpLatencyMCPServer:
    """
    MCP server around the latency pipeline.

    Responsibilities:
      Load configured classifiers and report their counters
      Read captures through the injected packet_source, core never parses files
      Hold the default pipeline configuration
      Expose capture analysis as tools
      Keep the last report for follow up questions
    """

    def __init__(
        self,
        classifier_imports: List[str],
        packet_source: Callable[[str], Iterable[Packet]],
        config: Optional[PipelineConfig] = None,
    ):
        self.packet_source = packet_source
        self.config = (config or PipelineConfig()).validate()
        self.registry = ClassifierRegistry()
        self.registry.load_from_import_paths(classifier_imports)
        self.registry.get(self.config.classifier)
        self.last: Optional[Dict[str, Any]] = None
        self.mcp = FastMCP("http_latency_mcp")

        self._register_tools()

    def _log(self, msg: str) -> None:
        # stdout carries the stdio transport
        print(msg, file=sys.stderr)

    def analyze(
        self,
        path: str,
        interval_seconds: Optional[float] = None,
        classifier: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Run one capture through a fresh pipeline and return the report as a dict.
        """
        config = self.config.update(interval_seconds=interval_seconds, classifier=classifier)
        connections: List[str] = []

        def log(line: str) -> None:
            connections.append(line)
            self._log(line)

        pipeline = LatencyPipeline(
            config=config,
            classifier=self.registry.get(config.classifier),
            log=log,
        )
        report: LatencyReport = pipeline.run(self.packet_source(path))

        result = report.as_dict()
        result["capture"] = path
        result["classifier"] = config.classifier
        result["log"] = connections
        result["table"] = report.render()
        self.last = result
        return result

    def configure(self, **overrides: Any) -> Dict[str, Any]:
        """
        Change the defaults used by later analyze calls.
        Raises ValueError for invalid values and KeyError for unknown classifiers.
        """
        config = self.config.update(**overrides)
        self.registry.get(config.classifier)
        self.config = config
        return self.config.as_dict()

    def _register_tools(self) -> None:
        @self.mcp.tool()
        def list_classifiers() -> List[str]:
            return self.registry.list()

        @self.mcp.tool()
        def classifier_status(name: str) -> Dict[str, Any]:
            return self.registry.describe(name)

        @self.mcp.tool()
        def get_config() -> Dict[str, Any]:
            return self.config.as_dict()

        @self.mcp.tool()
        def set_config(
            interval_seconds: Optional[float] = None,
            classifier: Optional[str] = None,
            max_pending: Optional[int] = None,
            pending_ttl_seconds: Optional[float] = None,
        ) -> Dict[str, Any]:
            # 0 switches a tracker bound off again
            return self.configure(
                interval_seconds=interval_seconds,
                classifier=classifier,
                max_pending=max_pending,
                pending_ttl_seconds=pending_ttl_seconds,
            )

        @self.mcp.tool()
        def analyze_capture(
            path: str,
            interval_seconds: Optional[float] = None,
            classifier: Optional[str] = None,
        ) -> Dict[str, Any]:
            return self.analyze(path, interval_seconds=interval_seconds, classifier=classifier)

        @self.mcp.tool()
        def last_report() -> Dict[str, Any]:
            if self.last is None:
                return {"error": "no capture analyzed yet"}
            return self.last

    def run(self) -> None:
        self.mcp.run()
