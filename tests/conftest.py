import pytest

from http_latency_mcp.core.config import PipelineConfig
from http_latency_mcp.core.pipeline import LatencyPipeline
from http_latency_mcp.core.tracker import RequestTracker
from http_latency_mcp.classifiers.prefix.classifier import PrefixClassifier


@pytest.fixture
def log_lines():
    return []


@pytest.fixture
def log(log_lines):
    def _log(msg: str) -> None:
        log_lines.append(msg)
    return _log


@pytest.fixture
def tracker():
    return RequestTracker()


@pytest.fixture
def config():
    return PipelineConfig(interval_seconds=60)


@pytest.fixture
def pipeline(config, log):
    return LatencyPipeline(config=config, classifier=PrefixClassifier(), log=log)


@pytest.fixture
def write_capture(tmp_path):
    def _write(data: bytes, name: str = "trace.pcap") -> str:
        path = tmp_path / name
        path.write_bytes(data)
        return str(path)
    return _write
