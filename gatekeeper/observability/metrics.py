"""Prometheus-style metrics collector. Thread-safe, in-memory. No real Prometheus dependency."""

import threading
from collections import deque
from typing import Any

GATE_OUTCOMES = "gate_outcomes"
AUDIT_RESULTS = "audit_results"
AUDIT_WRITE_FAILURES = "audit_write_failures"
OPERATION_LATENCY_MS = "operation_latency_ms"

# Latency samples kept per series; older ones roll off.
MAX_SAMPLES = 1024


def _series(name: str, labels: dict[str, str]) -> str:
    """name:k1=v1,k2=v2 with labels in sorted order; plain name when unlabelled."""
    if not labels:
        return name
    return name + ":" + ",".join(f"{k}={labels[k]}" for k in sorted(labels))


def _percentile(ordered: list[float], fraction: float) -> float:
    if not ordered:
        return 0.0
    index = min(len(ordered) - 1, int(round(fraction * (len(ordered) - 1))))
    return ordered[index]


class MetricsCollector:
    """
    In-memory registry of gate outcomes, audit results, audit write failures
    and per-operation latency. Counters may carry a category label; latency
    series carry an operation label. Exposed by GET /metrics.
    """

    def __init__(self, max_samples: int = MAX_SAMPLES) -> None:
        self._lock = threading.Lock()
        self._max_samples = max_samples
        self._counters: dict[str, float] = {}
        self._counters_by_labels: dict[str, dict[str, float]] = {}
        self._histograms: dict[str, deque[float]] = {}
        self._observations: dict[str, int] = {}

    def increment(
        self,
        name: str,
        value: float = 1.0,
        *,
        category: str | None = None,
    ) -> None:
        """Increment a counter. Optional category for dimensional metrics (e.g. gate outcome)."""
        with self._lock:
            if category is None:
                self._counters[name] = self._counters.get(name, 0) + value
                return
            labelled = self._counters_by_labels.setdefault(name, {})
            key = _series(name, {"category": category})
            labelled[key] = labelled.get(key, 0) + value

    def observe_latency(
        self,
        name: str,
        latency_ms: float,
        *,
        operation: str | None = None,
    ) -> None:
        """Record a latency observation (histogram-style). Optional operation label."""
        key = _series(name, {"operation": operation} if operation is not None else {})
        with self._lock:
            samples = self._histograms.get(key)
            if samples is None:
                samples = self._histograms[key] = deque(maxlen=self._max_samples)
            samples.append(latency_ms)
            self._observations[key] = self._observations.get(key, 0) + 1

    def get_counter(self, name: str, *, category: str | None = None) -> float:
        with self._lock:
            if category is None:
                return self._counters.get(name, 0)
            return self._counters_by_labels.get(name, {}).get(_series(name, {"category": category}), 0)

    def export_metrics(self) -> dict[str, Any]:
        """
        Snapshot of every series. Histogram count is the lifetime number of
        observations; sum and percentiles cover the retained window.
        """
        with self._lock:
            histograms = {}
            for key, samples in self._histograms.items():
                ordered = sorted(samples)
                histograms[key] = {
                    "count": self._observations[key],
                    "sum": sum(ordered),
                    "p50": _percentile(ordered, 0.5),
                    "p95": _percentile(ordered, 0.95),
                    "max": ordered[-1] if ordered else 0.0,
                }
            return {
                "counters": dict(self._counters),
                "counters_by_labels": {k: dict(v) for k, v in self._counters_by_labels.items()},
                "histograms": histograms,
            }

    def reset(self) -> None:
        """Reset all metrics (for tests)."""
        with self._lock:
            self._counters.clear()
            self._counters_by_labels.clear()
            self._histograms.clear()
            self._observations.clear()
