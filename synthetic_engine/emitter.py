import logging

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    push_to_gateway,
    delete_from_gateway,
)

from synthetic_engine.config import PUSHGATEWAY_URL, PROM_JOB

logger = logging.getLogger(__name__)

# Production UX latency buckets (ms)
LATENCY_BUCKETS_MS = (
    100, 250, 500, 750,
    1000, 1500, 2000,
    3000, 4000, 5000,
    7000, 10000, 15000, 30000
)


class MetricEmitter:
    """Only place that talks to the events sink."""

    def __init__(self, events):
        self.events = events

    def counter(self, name, delta=1):
        self.events.emit("counter", name, delta)

    def histogram(self, name, value):
        self.events.emit("histogram", name, value)


# ================= PROMETHEUS SINK =================

class PrometheusEvents:
    """Events sink backed by a prometheus_client registry.

    Metric names built by the pipeline contain dots and URLs, so they travel
    as a ``metric`` label on a fixed set of collectors. Every observation is
    also kept in ``observations`` for the end-of-run report.
    """

    def __init__(self, env="local", run_id="", registry=None, buckets=LATENCY_BUCKETS_MS):
        self.env = env
        self.run_id = run_id
        self.registry = registry or CollectorRegistry()
        self.observations = []

        self.started = Counter(
            "synthetic_scenarios_started_total",
            "Scenarios started",
            ["env", "run_id"],
            registry=self.registry,
        )
        self.counters = Counter(
            "synthetic_browser_events_total",
            "Browser event counters",
            ["env", "run_id", "metric"],
            registry=self.registry,
        )
        self.histograms = Histogram(
            "synthetic_browser_observations",
            "Browser timing and size observations",
            ["env", "run_id", "metric"],
            buckets=buckets,
            registry=self.registry,
        )

    def emit(self, kind, *args):
        if kind == "started":
            self.started.labels(self.env, self.run_id).inc()
        elif kind == "counter":
            name, delta = args
            self.counters.labels(self.env, self.run_id, name).inc(delta)
        elif kind == "histogram":
            name, value = args
            self.histograms.labels(self.env, self.run_id, name).observe(value)
        else:
            raise ValueError(f"Unknown event kind: {kind}")
        self.observations.append((kind, *args))

    def _grouping_key(self):
        return {"run_id": self.run_id, "env": self.env}

    def push(self, gateway=PUSHGATEWAY_URL, job=PROM_JOB):
        try:
            push_to_gateway(gateway, job=job, registry=self.registry,
                            grouping_key=self._grouping_key())
        except Exception as exc:
            logger.warning("Could not push metrics to %s: %s", gateway, exc)

    def cleanup(self, gateway=PUSHGATEWAY_URL, job=PROM_JOB):
        try:
            delete_from_gateway(gateway, job=job, grouping_key=self._grouping_key())
            logger.info("Cleared stale metrics for job: %s", job)
        except Exception as exc:
            logger.warning("Could not delete old metrics: %s", exc)
