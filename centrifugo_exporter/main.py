"""Main entry point for the Centrifugo exporter."""
import argparse
import logging
import sys
from typing import List, Optional

from pythonjsonlogger import jsonlogger

from centrifugo_exporter import __version__
from centrifugo_exporter.client import configure
from centrifugo_exporter.collector import build_registry
from centrifugo_exporter.config import Config, apply_env_overrides, build_config, load_config
from centrifugo_exporter.errors import ConfigError
from centrifugo_exporter.web import create_app

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
JSON_FIELDS = "%(asctime)s %(levelname)s %(name)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def build_formatter(log_format: str) -> logging.Formatter:
    """Return the formatter for the configured log format."""
    if log_format == "json":
        return jsonlogger.JsonFormatter(JSON_FIELDS, datefmt=DATE_FORMAT)
    return logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(log_level: str, log_format: str):
    """Setup logging configuration."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(build_formatter(log_format))
    logging.basicConfig(level=level, handlers=[handler])

    # Reduce noise from some libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Centrifugo Exporter - Export Centrifugo node statistics to Prometheus"
    )
    parser.add_argument("--version", action="store_true", help="Print version information.")
    parser.add_argument("--config", "-c", help="Path to an optional YAML configuration file")
    parser.add_argument(
        "--web.listen-address", dest="listen_address",
        help="Address to listen on for web interface and telemetry. (default :9273)"
    )
    parser.add_argument(
        "--web.telemetry-path", dest="telemetry_path",
        help="Path under which to expose metrics. (default /metrics)"
    )
    parser.add_argument(
        "--centrifugo.server", dest="uri",
        help="HTTP API address of a centrifugo server. (prefix with https:// to connect over HTTPS)"
    )
    parser.add_argument("--centrifugo.secret", dest="secret", help="centrifugo secret token")
    parser.add_argument(
        "--centrifugo.timeout", dest="timeout",
        help="Timeout on HTTP requests to centrifugo, e.g. 200ms or 1s. (default 200ms)"
    )
    parser.add_argument("--log.level", dest="log_level", help="Log level (default INFO)")
    parser.add_argument("--log.format", dest="log_format", choices=["text", "json"], help="Log format")
    return parser


def resolve_config(args: argparse.Namespace) -> Config:
    """Merge defaults, YAML file, environment and explicit flags, in that order."""
    base = load_config(args.config) if args.config else build_config(apply_env_overrides({}))
    raw = base.model_dump(by_alias=True)

    flags = {
        ("centrifugo", "uri"): args.uri,
        ("centrifugo", "secret"): args.secret,
        ("centrifugo", "timeout_s"): args.timeout,
        ("web", "listen_address"): args.listen_address,
        ("web", "telemetry_path"): args.telemetry_path,
        ("global", "log_level"): args.log_level,
        ("global", "log_format"): args.log_format,
    }
    for (section, field), value in flags.items():
        if value is not None:
            raw[section][field] = value

    return build_config(raw)


def main(argv: Optional[List[str]] = None):
    """Main function."""
    args = build_parser().parse_args(argv)

    if args.version:
        print("version", __version__)
        return 0

    try:
        config = resolve_config(args)
    except ConfigError as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 1

    setup_logging(config.global_.log_level, config.global_.log_format)
    logger = logging.getLogger(__name__)

    logger.info(f"Centrifugo Exporter {__version__}")

    try:
        client = configure(config.centrifugo.uri, config.centrifugo.secret, config.centrifugo.timeout_s)
    except ConfigError as e:
        logger.error(str(e))
        return 1

    registry, _ = build_registry(client)
    app = create_app(registry, config.web.telemetry_path)

    import uvicorn

    logger.info(f"Listening on {config.web.listen_address}")
    uvicorn.run(
        app,
        host=config.web.host,
        port=config.web.port,
        log_level=config.global_.log_level.lower()
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
