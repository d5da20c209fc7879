"""Exception types raised by the exporter."""


class ExporterError(Exception):
    """Base class for exporter errors."""


class ConfigError(ExporterError):
    """Invalid or incomplete configuration. Fatal at startup."""


class ScrapeError(ExporterError):
    """A single scrape of the Centrifugo API failed."""
