from __future__ import annotations
import logging
from collections import OrderedDict
from typing import Dict, Optional
from .models import FlowKey, PendingRequest

log = logging.getLogger(__name__)


class RequestTracker:
    """
    Pending requests keyed by flow identity.

    At most one pending request exists per flow key. A newer request on the
    same flow replaces the older one (last request wins).

    Bounds:
      max_pending
        None keeps every unanswered request until the run ends, which is what
        the reference tool does. Set it to cap memory on traces with many
        unanswered requests, the oldest inserted entry is evicted first.

      pending_ttl_seconds
        None disables age based eviction. Otherwise expire(now_ts) drops
        requests older than the TTL, measured in trace time.

    The tracker is not thread safe. All events must be funnelled through one
    writer, LatencyPipeline does that.
    """

    def __init__(
        self,
        max_pending: Optional[int] = None,
        pending_ttl_seconds: Optional[float] = None,
    ):
        if max_pending is not None and int(max_pending) < 1:
            raise ValueError("max_pending must be at least 1")
        if pending_ttl_seconds is not None and float(pending_ttl_seconds) <= 0:
            raise ValueError("pending_ttl_seconds must be positive")

        self.max_pending = int(max_pending) if max_pending is not None else None
        self.pending_ttl_seconds = (
            float(pending_ttl_seconds) if pending_ttl_seconds is not None else None
        )
        self._pending: "OrderedDict[FlowKey, PendingRequest]" = OrderedDict()

        self.superseded = 0
        self.evicted = 0

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, key: FlowKey) -> bool:
        return key in self._pending

    def put(self, key: FlowKey, request: PendingRequest) -> None:
        if key in self._pending:
            self.superseded += 1
            del self._pending[key]
        self._pending[key] = request

        if self.max_pending is not None:
            while len(self._pending) > self.max_pending:
                old_key, _ = self._pending.popitem(last=False)
                self.evicted += 1
                log.debug("evicted pending request %s, tracker full", old_key.label())

    def take_and_remove(self, key: FlowKey) -> Optional[PendingRequest]:
        """
        Remove and return the pending request for key, None if there is none.
        """
        return self._pending.pop(key, None)

    def expire(self, now_ts: float) -> int:
        """
        Drop requests older than pending_ttl_seconds relative to now_ts.

        Entries are kept in insertion order and the trace is processed in
        capture order, so the scan stops at the first entry that is young enough.
        """
        if self.pending_ttl_seconds is None:
            return 0

        cutoff = now_ts - self.pending_ttl_seconds
        dropped = 0
        while self._pending:
            key, req = next(iter(self._pending.items()))
            if req.request_ts >= cutoff:
                break
            del self._pending[key]
            dropped += 1
            log.debug("expired pending request %s", key.label())

        self.evicted += dropped
        return dropped

    def status(self) -> Dict[str, int]:
        return {
            "pending": len(self._pending),
            "superseded": self.superseded,
            "evicted": self.evicted,
        }
