# =============================================================================
# File: profilesync/infra/metrics/prometheus.py
# Description: Prometheus collectors for the engine, no-ops unless enabled
# =============================================================================

import os
from typing import Optional, Sequence

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram

METRICS_PREFIX = "profilesync"

# Adapter calls are bounded by adapter_timeout_seconds (default 10s)
LATENCY_BUCKETS = (0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)


def metrics_enabled() -> bool:
    return os.getenv("ENABLE_METRICS", "false").lower() == "true"


class NullMetric:
    """Accepts every call the engine makes on a collector and records nothing."""

    def __init__(self, name: str, labels: Sequence[str] = ()):
        self.name = name
        self.labelnames = tuple(labels)

    def labels(self, *args, **kwargs) -> "NullMetric":
        return self

    def inc(self, amount: float = 1) -> None:
        pass

    def dec(self, amount: float = 1) -> None:
        pass

    def set(self, value: float) -> None:
        pass

    def observe(self, value: float) -> None:
        pass


class MetricsFactory:
    """
    Builds prefixed collectors on `registry` when ENABLE_METRICS=true, and a
    NullMetric otherwise. The flag is read when each collector is created,
    i.e. when profile_sync_metrics is first imported.
    """

    registry: CollectorRegistry = REGISTRY

    @classmethod
    def counter(cls, name: str, description: str, labels: Optional[Sequence[str]] = None):
        if not metrics_enabled():
            return NullMetric(name, labels or ())
        return Counter(f"{METRICS_PREFIX}_{name}", description, labels or (), registry=cls.registry)

    @classmethod
    def gauge(cls, name: str, description: str, labels: Optional[Sequence[str]] = None):
        if not metrics_enabled():
            return NullMetric(name, labels or ())
        return Gauge(f"{METRICS_PREFIX}_{name}", description, labels or (), registry=cls.registry)

    @classmethod
    def histogram(
        cls,
        name: str,
        description: str,
        labels: Optional[Sequence[str]] = None,
        buckets: Sequence[float] = LATENCY_BUCKETS,
    ):
        if not metrics_enabled():
            return NullMetric(name, labels or ())
        return Histogram(
            f"{METRICS_PREFIX}_{name}", description, labels or (), registry=cls.registry, buckets=buckets
        )
