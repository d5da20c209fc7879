"""Prometheus collector for Centrifugo node statistics using prometheus_client."""
import logging
import threading
import time
from typing import Iterator, List, Optional, Tuple

from prometheus_client import CollectorRegistry, Counter, Histogram
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric

from centrifugo_exporter.client import CentrifugoClient
from centrifugo_exporter.errors import ScrapeError
from centrifugo_exporter.registry import NODE_METRICS, UP
from centrifugo_exporter.series import MetricIdentity, MetricKind, Observation

logger = logging.getLogger(__name__)


def metric_family(identity: MetricIdentity) -> Metric:
    """Create an empty metric family of the identity's kind."""
    if identity.kind is MetricKind.COUNTER:
        return CounterMetricFamily(identity.name, identity.help)
    return GaugeMetricFamily(identity.name, identity.help)


class CentrifugoCollector:
    """
    Scrapes one Centrifugo node and maps its statistics onto fixed series.

    Implements the prometheus_client custom collector protocol: ``describe``
    lists every series up front, ``collect`` performs a scrape. Scrapes are
    serialized by a single lock; overlapping callers wait and then run their
    own scrape.
    """

    def __init__(self, client: CentrifugoClient, self_metrics: Optional["SelfMetrics"] = None):
        self.client = client
        self.self_metrics = self_metrics
        self._lock = threading.Lock()
        self._up = 0.0

    @property
    def availability(self) -> float:
        """1.0 if the last scrape succeeded, 0.0 otherwise."""
        return self._up

    def identities(self) -> List[MetricIdentity]:
        """Return every identity this collector can ever emit."""
        return list(NODE_METRICS.values()) + [UP]

    def scrape(self) -> List[Observation]:
        """
        Fetch node statistics and convert them to observations.

        Never raises: on failure only ``up = 0`` is returned.
        """
        with self._lock:
            start = time.time()
            try:
                metrics = self.client.fetch_node_status()
            except ScrapeError as e:
                logger.error(f"Can't scrape centrifugo: {e}")
                return self._failed(start)
            except Exception:
                logger.exception("Unexpected error while scraping centrifugo")
                return self._failed(start)

            self._up = 1.0
            observations = [Observation(UP, self._up)]
            for key, value in metrics.items():
                identity = NODE_METRICS.get(key)
                if identity is None:
                    continue
                observations.append(Observation(identity, float(value)))

            if self.self_metrics:
                self.self_metrics.record_scrape(time.time() - start, success=True)
            logger.debug(f"Scraped {len(observations) - 1} known metrics from {len(metrics)} fields")
            return observations

    def _failed(self, start: float) -> List[Observation]:
        self._up = 0.0
        if self.self_metrics:
            self.self_metrics.record_scrape(time.time() - start, success=False)
        return [Observation(UP, self._up)]

    def describe(self) -> Iterator[Metric]:
        for identity in self.identities():
            yield metric_family(identity)

    def collect(self) -> Iterator[Metric]:
        for observation in self.scrape():
            family = metric_family(observation.identity)
            family.add_metric([], observation.value)
            yield family


class SelfMetrics:
    """Self-monitoring metrics for the exporter."""

    def __init__(self, registry=None, prefix="centrifugo_exporter_"):
        if registry is None:
            registry = CollectorRegistry()

        self.scrapes_total = Counter(
            f"{prefix}scrapes_total",
            "Total number of scrapes of the centrifugo API",
            registry=registry
        )

        self.scrape_errors_total = Counter(
            f"{prefix}scrape_errors_total",
            "Total number of failed scrapes of the centrifugo API",
            registry=registry
        )

        self.scrape_duration_seconds = Histogram(
            f"{prefix}scrape_duration_seconds",
            "Duration of each scrape of the centrifugo API in seconds",
            buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
            registry=registry
        )

    def record_scrape(self, duration: float, success: bool):
        """Record the outcome of one scrape."""
        self.scrapes_total.inc()
        if not success:
            self.scrape_errors_total.inc()
        self.scrape_duration_seconds.observe(duration)


def build_registry(client: CentrifugoClient) -> Tuple[CollectorRegistry, CentrifugoCollector]:
    """Create a registry holding the node collector and the self-metrics."""
    # Custom registry keeps default Python/process metrics out of the output
    registry = CollectorRegistry()
    collector = CentrifugoCollector(client, SelfMetrics(registry=registry))
    registry.register(collector)
    logger.info(f"Registered {len(collector.identities())} centrifugo metrics")
    return registry, collector
