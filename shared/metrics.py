"""
Shared metrics configuration for the CRPT document client.
"""

from typing import Dict, Any, Optional

from prometheus_client import Counter, Histogram, Gauge, CollectorRegistry


class MetricsCollector:
    """Centralized metrics collector for the client and its gate.

    Each collector owns its registry unless one is passed in, so several
    clients in one process never collide on metric names.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up gate and submission metrics."""
        self._setup_gate_metrics()
        self._setup_request_metrics()

    def _setup_gate_metrics(self):
        """Set up rate gate metrics."""
        self._metrics["crpt_gate_admissions_total"] = Counter(
            "crpt_gate_admissions_total",
            "Total gate admissions",
            ["gate", "outcome"],
            registry=self.registry
        )

        self._metrics["crpt_gate_resets_total"] = Counter(
            "crpt_gate_resets_total",
            "Total gate window resets",
            ["gate"],
            registry=self.registry
        )

        self._metrics["crpt_gate_failures_total"] = Counter(
            "crpt_gate_failures_total",
            "Total failed gated operations",
            ["gate"],
            registry=self.registry
        )

        self._metrics["crpt_gate_waiting"] = Gauge(
            "crpt_gate_waiting",
            "Callers currently blocked on the gate",
            ["gate"],
            registry=self.registry
        )

    def _setup_request_metrics(self):
        """Set up document submission metrics."""
        self._metrics["crpt_requests_total"] = Counter(
            "crpt_requests_total",
            "Total document submissions",
            ["status"],
            registry=self.registry
        )

        self._metrics["crpt_request_duration_seconds"] = Histogram(
            "crpt_request_duration_seconds",
            "Document submission duration in seconds",
            registry=self.registry
        )

    def record_admission(self, gate: str, waited: bool):
        """Record one gate admission."""
        outcome = "waited" if waited else "immediate"
        self._metrics["crpt_gate_admissions_total"].labels(gate=gate, outcome=outcome).inc()

    def record_reset(self, gate: str):
        """Record one gate window reset."""
        self._metrics["crpt_gate_resets_total"].labels(gate=gate).inc()

    def record_failure(self, gate: str):
        """Record a failed gated operation."""
        self._metrics["crpt_gate_failures_total"].labels(gate=gate).inc()

    def set_waiting(self, gate: str, value: int):
        """Set the number of blocked callers."""
        self._metrics["crpt_gate_waiting"].labels(gate=gate).set(value)

    def record_request(self, status: str, duration: float):
        """Record one document submission."""
        self._metrics["crpt_requests_total"].labels(status=status).inc()
        self._metrics["crpt_request_duration_seconds"].observe(duration)

    def sample(self, name: str, labels: Optional[Dict[str, str]] = None) -> Optional[float]:
        """Read the current value of a sample from this collector's registry."""
        return self.registry.get_sample_value(name, labels or {})


def get_metrics_collector(registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector bound to a registry."""
    return MetricsCollector(registry)
