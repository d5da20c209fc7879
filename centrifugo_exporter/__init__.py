"""Prometheus exporter for Centrifugo node statistics."""

__version__ = "0.2.0"
