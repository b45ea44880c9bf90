# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Booking metrics: an in-process snapshot mirrored into prometheus_client.

The engine reports lifecycle events (holds placed, paid, cancelled,
extended, expired), contention (lost compare-and-set, id collisions,
rejected operations) and per-operation latency through one
MetricsCollector. The snapshot answers ``get_metrics()`` and
``get_counter()`` without scraping; the Prometheus series are what an
exporter serves.

Usage:
    >>> collector = get_metrics_collector()
    >>> collector.inc_counter(BOOKINGS_TOTAL)
    >>> collector.get_counter(BOOKINGS_TOTAL)
    1
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Any, ClassVar

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Histogram,
)

from .constants import (
    BOOKINGS_TOTAL,
    CANCELLATIONS_TOTAL,
    CAS_CONFLICTS_TOTAL,
    EXTENSIONS_TOTAL,
    HOLDS_EXPIRED_TOTAL,
    ID_COLLISIONS_TOTAL,
    LATENCY_BUCKETS,
    OPERATION_LATENCY_SECONDS,
    OPERATIONS_REJECTED_TOTAL,
    PAYMENTS_TOTAL,
)

logger = logging.getLogger(__name__)

COUNTER = "counter"
HISTOGRAM = "histogram"


@dataclass
class MetricDefinition:
    """Name, type, help text and label set of one booking metric."""

    name: str
    metric_type: str
    description: str
    label_names: tuple[str, ...] = ()
    buckets: list[float] | None = None


def _define(
    name: str,
    metric_type: str,
    description: str,
    *label_names: str,
    buckets: list[float] | None = None,
) -> tuple[str, MetricDefinition]:
    return name, MetricDefinition(
        name, metric_type, description, label_names, buckets
    )


METRIC_DEFINITIONS: dict[str, MetricDefinition] = dict(
    [
        _define(BOOKINGS_TOTAL, COUNTER, "Holds placed"),
        _define(PAYMENTS_TOTAL, COUNTER, "Holds confirmed by payment"),
        _define(CANCELLATIONS_TOTAL, COUNTER, "Holds released by the holder"),
        _define(EXTENSIONS_TOTAL, COUNTER, "Hold deadlines pushed back"),
        _define(
            HOLDS_EXPIRED_TOTAL,
            COUNTER,
            "Stale holds rewritten to EXPIRED when an operation touched them",
            "operation",
        ),
        _define(
            OPERATIONS_REJECTED_TOTAL,
            COUNTER,
            "Engine operations that ended in a booking error",
            "operation",
            "reason",
        ),
        _define(
            CAS_CONFLICTS_TOTAL,
            COUNTER,
            "State transitions lost to a concurrent writer",
            "operation",
        ),
        _define(ID_COLLISIONS_TOTAL, COUNTER, "Generated booking ids already taken"),
        _define(
            OPERATION_LATENCY_SECONDS,
            HISTOGRAM,
            "Wall time of one engine operation including store calls",
            "operation",
            buckets=LATENCY_BUCKETS,
        ),
    ]
)


class MetricsCollector:
    """
    Counts booking events and times engine operations.

    Every series is keyed by its sorted ``k=v`` label string, the same key
    ``get_metrics()`` reports. A metric accepts at most
    MAX_LABEL_COMBINATIONS distinct keys; later ones are dropped with a
    warning. Histograms keep the most recent HISTOGRAM_WINDOW observations.

    Safe to share between threads and between engines.
    """

    MAX_LABEL_COMBINATIONS: ClassVar[int] = 1000
    HISTOGRAM_WINDOW: ClassVar[int] = 5000

    def __init__(
        self,
        enable_prometheus: bool = True,
        registry: CollectorRegistry | None = None,
    ) -> None:
        """
        Args:
            enable_prometheus: Mirror every update into Prometheus series
            registry: Registry for those series; the process-wide default
                when omitted
        """
        self._enable_prometheus = enable_prometheus
        self._registry = registry if registry is not None else REGISTRY
        self._lock = threading.RLock()

        self._counters: dict[str, dict[str, int]] = defaultdict(
            lambda: defaultdict(int)
        )
        self._histograms: dict[str, dict[str, deque[float]]] = defaultdict(
            lambda: defaultdict(lambda: deque(maxlen=self.HISTOGRAM_WINDOW))
        )
        self._series: dict[str, set[str]] = defaultdict(set)

        self._prom: dict[str, Counter | Histogram] = {}
        # Names another collector already registered in the same registry
        self._unregistrable: set[str] = set()

        logger.debug(
            f"MetricsCollector created, prometheus export "
            f"{'on' if enable_prometheus else 'off'}"
        )

    @staticmethod
    def _series_key(labels: dict[str, str] | None) -> str:
        if not labels:
            return ""
        return ",".join(f"{k}={v}" for k, v in sorted(labels.items()))

    def _admit(self, name: str, key: str) -> bool:
        known = self._series[name]
        if key in known:
            return True
        if len(known) >= self.MAX_LABEL_COMBINATIONS:
            logger.warning(
                f"Cardinality limit ({self.MAX_LABEL_COMBINATIONS}) reached "
                f"for {name}, dropping series {key!r}"
            )
            return False
        known.add(key)
        return True

    def _prometheus_metric(
        self, name: str, metric_type: str
    ) -> Counter | Histogram | None:
        """Registered Prometheus metric for name, created on first use."""
        if not self._enable_prometheus or name in self._unregistrable:
            return None

        with self._lock:
            metric = self._prom.get(name)
            if metric is not None:
                return metric

            defn = METRIC_DEFINITIONS.get(name) or MetricDefinition(
                name, metric_type, f"Ad hoc {metric_type}: {name}"
            )
            try:
                if metric_type == HISTOGRAM:
                    metric = Histogram(
                        name,
                        defn.description,
                        list(defn.label_names),
                        buckets=defn.buckets or LATENCY_BUCKETS,
                        registry=self._registry,
                    )
                else:
                    metric = Counter(
                        name,
                        defn.description,
                        list(defn.label_names),
                        registry=self._registry,
                    )
            except ValueError as e:
                logger.warning(
                    f"Failed to create Prometheus {metric_type} {name}: {e}"
                )
                self._unregistrable.add(name)
                return None

            self._prom[name] = metric
            return metric

    # === Recording ===

    def inc_counter(
        self,
        name: str,
        value: int = 1,
        labels: dict[str, str] | None = None,
    ) -> None:
        """
        Add value to a counter series.

        Raises:
            ValueError: If value is negative
        """
        if value < 0:
            raise ValueError("Counter increment must be non-negative")

        key = self._series_key(labels)
        with self._lock:
            if not self._admit(name, key):
                return
            self._counters[name][key] += value

        counter = self._prometheus_metric(name, COUNTER)
        if counter is not None:
            (counter.labels(**labels) if labels else counter).inc(value)

    def observe_histogram(
        self,
        name: str,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        key = self._series_key(labels)
        with self._lock:
            if not self._admit(name, key):
                return
            self._histograms[name][key].append(value)

        histogram = self._prometheus_metric(name, HISTOGRAM)
        if histogram is not None:
            (histogram.labels(**labels) if labels else histogram).observe(value)

    # === Reading ===

    def get_counter(self, name: str, labels: dict[str, str] | None = None) -> int:
        """Current value of one counter series, 0 if it was never touched."""
        with self._lock:
            return self._counters.get(name, {}).get(self._series_key(labels), 0)

    def get_metrics(self) -> dict[str, Any]:
        """
        JSON-ready copy of the snapshot.

        Counters map name to ``{series_key: value}``. Histograms map name to
        ``{series_key: {"count", "sum", "avg", "min", "max"}}`` over the
        retained observations.
        """
        with self._lock:
            counters = {name: dict(series) for name, series in self._counters.items()}
            histograms = {
                name: {
                    key: _summarize(observations)
                    for key, observations in series.items()
                    if observations
                }
                for name, series in self._histograms.items()
            }
        return {"counters": counters, "histograms": histograms}

    def reset(self) -> None:
        """Forget the snapshot. Prometheus series keep their values."""
        with self._lock:
            self._counters.clear()
            self._histograms.clear()
            self._series.clear()
        logger.debug("Metrics snapshot cleared")

    @property
    def prometheus_enabled(self) -> bool:
        return self._enable_prometheus

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry


def _summarize(observations: deque[float]) -> dict[str, float]:
    total = sum(observations)
    return {
        "count": len(observations),
        "sum": total,
        "avg": total / len(observations),
        "min": min(observations),
        "max": max(observations),
    }


# =============================================================================
# Process-wide collector
# =============================================================================

_global_collector: MetricsCollector | None = None
_collector_lock = threading.Lock()


def get_metrics_collector(enable_prometheus: bool = True) -> MetricsCollector:
    """
    The collector engines use when none is injected.

    ``enable_prometheus`` only matters on the call that creates it.
    """
    global _global_collector

    if _global_collector is None:
        with _collector_lock:
            if _global_collector is None:
                _global_collector = MetricsCollector(
                    enable_prometheus=enable_prometheus
                )
    return _global_collector


def reset_metrics_collector() -> None:
    """Drop the process-wide collector so the next lookup builds a fresh one."""
    global _global_collector
    with _collector_lock:
        if _global_collector is not None:
            _global_collector.reset()
        _global_collector = None


__all__ = [
    "METRIC_DEFINITIONS",
    "MetricDefinition",
    "MetricsCollector",
    "get_metrics_collector",
    "reset_metrics_collector",
]
