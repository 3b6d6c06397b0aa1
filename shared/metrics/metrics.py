"""Prometheus metrics for the account and position planes."""

from contextlib import contextmanager
from typing import Optional
import time

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest


class CoreMetrics:
    """
    Metrics for the core, on an injectable registry.

    Tracks:
    - Hierarchy builds (latency, node count, excluded copiers)
    - Snapshot replacements and rejected push payloads
    - Host queries per broker operation
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()
        self._init_metrics()

    def _init_metrics(self):
        # ============ Account Plane ============
        self.hierarchy_builds = Counter(
            'hierarchy_builds_total',
            'Account hierarchy computations',
            registry=self.registry
        )

        self.hierarchy_build_latency = Histogram(
            'hierarchy_build_latency_seconds',
            'Account hierarchy build latency',
            buckets=(0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5),
            registry=self.registry
        )

        self.hierarchy_nodes = Gauge(
            'hierarchy_nodes',
            'Nodes in the most recent hierarchy',
            registry=self.registry
        )

        self.excluded_accounts = Counter(
            'hierarchy_excluded_accounts_total',
            'Copier accounts dropped because their master is not in the account set',
            registry=self.registry
        )

        # ============ Position Plane ============
        self.snapshot_replacements = Counter(
            'live_snapshot_replacements_total',
            'Wholesale snapshot replacements',
            registry=self.registry
        )

        self.rejected_payloads = Counter(
            'rejected_payloads_total',
            'Inbound payloads that failed validation',
            ['payload_type'],
            registry=self.registry
        )

        self.host_queries = Counter(
            'broker_host_queries_total',
            'Host queries against the broker adapter',
            ['operation'],
            registry=self.registry
        )

    @contextmanager
    def time_hierarchy_build(self):
        """Context manager for timing one hierarchy build."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.hierarchy_build_latency.observe(time.perf_counter() - start)
            self.hierarchy_builds.inc()

    def export(self) -> bytes:
        """Render the registry in Prometheus text format."""
        return generate_latest(self.registry)

    def value(self, name: str, labels: Optional[dict] = None) -> float:
        """Read a sample value (0.0 when the sample has not been recorded yet)."""
        sample = self.registry.get_sample_value(name, labels or {})
        return sample if sample is not None else 0.0
