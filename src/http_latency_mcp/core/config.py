from __future__ import annotations
import json
import os
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, List, Mapping, Optional

DEFAULT_CLASSIFIER_IMPORTS = [
    "http_latency_mcp.classifiers.prefix.classifier:build_classifier",
    "http_latency_mcp.classifiers.dpkt_http.classifier:build_classifier",
]

# update() treats 0 as "no bound" for these
CLEARABLE_BOUNDS = ("max_pending", "pending_ttl_seconds")


@dataclass
class PipelineConfig:
    """
    Runtime parameters of a LatencyPipeline.

    interval_seconds
      Width of the aggregation buckets. Must be positive.

    classifier
      Name of the classifier that turns packets into events.
      "prefix" reproduces the reference string prefix test.

    max_pending, pending_ttl_seconds
      Optional bounds for the request tracker. None means unbounded.
      Passing 0 to update() clears a bound that was set earlier.
    """

    interval_seconds: float = 60.0
    classifier: str = "prefix"
    max_pending: Optional[int] = None
    pending_ttl_seconds: Optional[float] = None

    def validate(self) -> "PipelineConfig":
        if float(self.interval_seconds) <= 0:
            raise ValueError("interval_seconds must be positive")
        if self.max_pending is not None and int(self.max_pending) < 1:
            raise ValueError("max_pending must be at least 1")
        if self.pending_ttl_seconds is not None and float(self.pending_ttl_seconds) <= 0:
            raise ValueError("pending_ttl_seconds must be positive")
        if not self.classifier:
            raise ValueError("classifier must not be empty")
        return self

    def update(self, **overrides: Any) -> "PipelineConfig":
        """
        Return a validated copy with every non None override applied.
        A tracker bound of 0 switches that bound off.
        """
        changes = {k: v for k, v in overrides.items() if v is not None}
        for name in CLEARABLE_BOUNDS:
            if changes.get(name) == 0:
                changes[name] = None
        return replace(self, **changes).validate()

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "PipelineConfig":
        """
        Read overrides from the environment.

        Example:
          export HTTP_LATENCY_INTERVAL=30
          export HTTP_LATENCY_CLASSIFIER=dpkt_http
          export HTTP_LATENCY_MAX_PENDING=100000
          export HTTP_LATENCY_PENDING_TTL=120
        """
        env = os.environ if environ is None else environ

        def opt(name: str, conv):
            raw = env.get(name, "").strip()
            return conv(raw) if raw else None

        return cls().update(
            interval_seconds=opt("HTTP_LATENCY_INTERVAL", float),
            classifier=opt("HTTP_LATENCY_CLASSIFIER", str),
            max_pending=opt("HTTP_LATENCY_MAX_PENDING", int),
            pending_ttl_seconds=opt("HTTP_LATENCY_PENDING_TTL", float),
        )


def classifier_imports_from_env(environ: Optional[Mapping[str, str]] = None) -> List[str]:
    """
    Classifier import strings from HTTP_LATENCY_CLASSIFIERS, a JSON list.
    Falls back to the bundled classifiers.
    """
    env = os.environ if environ is None else environ
    raw = env.get("HTTP_LATENCY_CLASSIFIERS", "").strip()
    if not raw:
        return list(DEFAULT_CLASSIFIER_IMPORTS)

    imports = json.loads(raw)
    if not isinstance(imports, list) or not all(isinstance(p, str) for p in imports):
        raise ValueError("HTTP_LATENCY_CLASSIFIERS must be a JSON list of import strings")
    return imports
