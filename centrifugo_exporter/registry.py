"""Fixed table of Centrifugo node metrics exported by the collector."""
from types import MappingProxyType
from typing import Dict, Mapping

from centrifugo_exporter.series import MetricIdentity, MetricKind

NAMESPACE = "centrifugo"

UP_KEY = "up"


def _identity(key: str, help_text: str, kind: MetricKind) -> MetricIdentity:
    name = f"{NAMESPACE}_{key}"
    if kind is MetricKind.COUNTER:
        name += "_total"
    return MetricIdentity(key=key, name=name, help=help_text, kind=kind)


_COUNTERS = {
    "client_bytes_in": "number of bytes coming to client API (bytes sent from clients)",
    "client_bytes_out": "number of bytes coming out of client API (bytes sent to clients)",
    "client_num_connect": "number of connections of client API",
    "client_num_msg_published": "number of messages published via client API",
    "client_num_msg_queued": "number of messages put into client queues",
    "client_num_msg_sent": "number of messages actually sent to client",
    "client_num_subscribe": "subscribes via client API",
    "node_num_client_msg_published": "number of messages published",
    "http_api_num_requests": "number of requests to server HTTP API",
}

_GAUGES = {
    "node_num_clients": "number of connected authorized clients",
    "node_num_unique_clients": "number of unique clients connected",
    "node_num_channels": "number of active channels",
}


def _build() -> Dict[str, MetricIdentity]:
    table: Dict[str, MetricIdentity] = {}
    for key, help_text in _COUNTERS.items():
        table[key] = _identity(key, help_text, MetricKind.COUNTER)
    for key, help_text in _GAUGES.items():
        table[key] = _identity(key, help_text, MetricKind.GAUGE)
    return table


# Upstream field name -> identity. Read-only for the process lifetime.
NODE_METRICS: Mapping[str, MetricIdentity] = MappingProxyType(_build())

UP = MetricIdentity(
    key=UP_KEY,
    name=f"{NAMESPACE}_up",
    help="Was the last scrape of centrifugo successful.",
    kind=MetricKind.GAUGE,
)
