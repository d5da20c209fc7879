"""Data structures for metric identities and observations."""
from dataclasses import dataclass
from enum import Enum


class MetricKind(str, Enum):
    """Prometheus type of an exported series."""
    COUNTER = "counter"
    GAUGE = "gauge"


@dataclass(frozen=True)
class MetricIdentity:
    """Stable description of a metric series, independent of its value."""
    key: str
    name: str
    help: str
    kind: MetricKind


@dataclass(frozen=True)
class Observation:
    """A single value emitted for an identity during one scrape."""
    identity: MetricIdentity
    value: float

    @property
    def name(self) -> str:
        return self.identity.name
