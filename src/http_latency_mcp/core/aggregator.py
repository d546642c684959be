from __future__ import annotations
import math
from typing import Dict, List, Tuple
from .flow import fnv1a_64
from .models import AggregationBucket, Connection

BucketKey = Tuple[float, int, str]


class Aggregator:
    """
    Folds connections into fixed width time buckets per URL.

    Buckets are epoch aligned: a connection at ts lands in the bucket that
    starts at floor(ts / interval) * interval.

    The key is (interval start, FNV-1a hash of the URL, URL). The URL string
    is part of the key so two URLs with the same hash never share a bucket.

    Buckets are also kept in creation order, which is the order the report
    prints them in. That list is append only.
    """

    def __init__(self, interval_seconds: float = 60.0):
        if float(interval_seconds) <= 0:
            raise ValueError("interval_seconds must be positive")
        self.interval_seconds = float(interval_seconds)
        self._by_key: Dict[BucketKey, AggregationBucket] = {}
        self._ordered: List[AggregationBucket] = []

    def __len__(self) -> int:
        return len(self._ordered)

    def interval_start(self, ts: float) -> float:
        return math.floor(ts / self.interval_seconds) * self.interval_seconds

    def fold(self, conn: Connection) -> AggregationBucket:
        start = self.interval_start(conn.connection_ts)
        url_hash = fnv1a_64(conn.url)
        key = (start, url_hash, conn.url)

        bucket = self._by_key.get(key)
        if bucket is None:
            bucket = AggregationBucket(interval_start=start, url=conn.url, url_hash=url_hash)
            self._by_key[key] = bucket
            self._ordered.append(bucket)

        bucket.add(conn.latency_ms)
        return bucket

    def buckets(self) -> List[AggregationBucket]:
        return list(self._ordered)
