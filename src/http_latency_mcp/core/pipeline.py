from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional
from .aggregator import Aggregator
from .classifier_base import Classifier
from .config import PipelineConfig
from .correlator import Correlator
from .models import AggregationBucket, Connection, Event, Packet
from .report import format_connection, render_report, report_rows
from .tracker import RequestTracker


@dataclass
class LatencyReport:
    """
    Result of one pipeline run.

    buckets
      Aggregation buckets in creation order.

    stats
      Counters: packets, events, requests, responses, dropped_requests,
      misses, discarded, clock_anomalies, connections, pending, superseded,
      evicted.
    """

    interval_seconds: float
    buckets: List[AggregationBucket]
    stats: Dict[str, int] = field(default_factory=dict)

    def render(self) -> str:
        return render_report(self.buckets)

    def rows(self) -> List[Dict[str, Any]]:
        return report_rows(self.buckets)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "interval_seconds": self.interval_seconds,
            "stats": dict(self.stats),
            "buckets": self.rows(),
        }


class LatencyPipeline:
    """
    Owns all state for one pass over a capture.

    packets -> classifier -> Correlator (RequestTracker) -> Aggregator

    Every matched connection is also written to log as a live line.
    Nothing is shared between pipelines, build a new one per capture.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        classifier: Optional[Classifier] = None,
        log: Callable[[str], None] = print,
        on_connection: Optional[Callable[[Connection], None]] = None,
    ):
        self.config = (config or PipelineConfig()).validate()
        self.classifier = classifier
        self.log = log

        self.tracker = RequestTracker(
            max_pending=self.config.max_pending,
            pending_ttl_seconds=self.config.pending_ttl_seconds,
        )
        self.aggregator = Aggregator(self.config.interval_seconds)
        self.correlator = Correlator(self.tracker, log=log)
        self.correlator.add_sink(self._live_log)
        self.correlator.add_sink(lambda _seq, conn: self.aggregator.fold(conn))
        if on_connection is not None:
            self.correlator.add_sink(lambda _seq, conn: on_connection(conn))

        self.packets = 0
        self.events = 0

    def _live_log(self, seq: int, conn: Connection) -> None:
        self.log(format_connection(seq, conn))

    def process(self, packet: Packet) -> Optional[Connection]:
        """
        Classify one packet and feed the event, if any.
        """
        if self.classifier is None:
            raise RuntimeError("pipeline has no classifier, use feed() for events")

        self.packets += 1
        event = self.classifier.classify(packet)
        if event is None:
            return None
        return self.feed(event)

    def feed(self, event: Event) -> Optional[Connection]:
        """
        Feed one classified event. Events must arrive in capture order.
        """
        self.events += 1
        self.tracker.expire(event.ts)
        return self.correlator.handle(event)

    def run(self, packets: Iterable[Packet]) -> LatencyReport:
        for packet in packets:
            self.process(packet)
        return self.finalize()

    def run_events(self, events: Iterable[Event]) -> LatencyReport:
        for event in events:
            self.feed(event)
        return self.finalize()

    def finalize(self) -> LatencyReport:
        stats: Dict[str, int] = {"packets": self.packets, "events": self.events}
        stats.update(self.correlator.stats())
        stats.update(self.tracker.status())
        return LatencyReport(
            interval_seconds=self.aggregator.interval_seconds,
            buckets=self.aggregator.buckets(),
            stats=stats,
        )
