"""Configuration models using Pydantic for validation."""
import os
import re
from typing import Any, Dict, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from centrifugo_exporter.errors import ConfigError

_DURATION_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: Union[str, int, float]) -> float:
    """
    Parse a duration into seconds.

    Accepts numbers (seconds) and Go-style strings such as ``200ms``,
    ``1.5s`` or ``1m30s``.
    """
    if isinstance(value, bool):
        raise ValueError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)

    text = str(value).strip()
    try:
        return float(text)
    except ValueError:
        pass

    pos = 0
    total = 0.0
    for match in _DURATION_RE.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos == 0 or pos != len(text):
        raise ValueError(f"invalid duration: {value!r}")
    return total


def split_listen_address(address: str) -> Tuple[str, int]:
    """Split ``host:port`` (host optional, as in ``:9273``) for the web server."""
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ValueError(f"listen address must be host:port, got {address!r}")
    host = host.strip("[]") or "0.0.0.0"
    try:
        port_num = int(port)
    except ValueError:
        raise ValueError(f"invalid port in listen address {address!r}")
    if not 0 < port_num < 65536:
        raise ValueError(f"port out of range in listen address {address!r}")
    return host, port_num


class CentrifugoConfig(BaseModel):
    """Upstream Centrifugo server configuration."""
    uri: str = "http://localhost:8000"
    secret: str = ""
    timeout_s: float = 0.2

    @field_validator('timeout_s', mode='before')
    @classmethod
    def validate_timeout(cls, v):
        seconds = parse_duration(v)
        if not 0 < seconds < float("inf"):
            raise ValueError("timeout must be positive")
        return seconds


class WebConfig(BaseModel):
    """Metrics HTTP endpoint configuration."""
    listen_address: str = ":9273"
    telemetry_path: str = "/metrics"

    @field_validator('listen_address')
    @classmethod
    def validate_listen_address(cls, v):
        split_listen_address(v)
        return v

    @field_validator('telemetry_path')
    @classmethod
    def validate_telemetry_path(cls, v):
        if not v.startswith("/") or v == "/":
            raise ValueError("telemetry path must start with '/' and not be the root")
        return v

    @property
    def host(self) -> str:
        return split_listen_address(self.listen_address)[0]

    @property
    def port(self) -> int:
        return split_listen_address(self.listen_address)[1]


class GlobalConfig(BaseModel):
    """Global configuration settings."""
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "text"

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {v}")
        return level


class Config(BaseModel):
    """Root configuration model."""
    global_: GlobalConfig = Field(default_factory=GlobalConfig, alias="global")
    centrifugo: CentrifugoConfig = Field(default_factory=CentrifugoConfig)
    web: WebConfig = Field(default_factory=WebConfig)

    model_config = {"populate_by_name": True}


_ENV_OVERRIDES = {
    "CENTRIFUGO_SERVER": ("centrifugo", "uri"),
    "CENTRIFUGO_SECRET": ("centrifugo", "secret"),
    "CENTRIFUGO_TIMEOUT": ("centrifugo", "timeout_s"),
    "LOG_LEVEL": ("global", "log_level"),
}


def apply_env_overrides(raw_config: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay environment variables onto a raw config mapping."""
    for env_name, (section, field) in _ENV_OVERRIDES.items():
        if env_value := os.getenv(env_name):
            raw_config.setdefault(section, {})[field] = env_value
    return raw_config


def build_config(raw_config: Optional[Dict[str, Any]] = None) -> Config:
    """Validate a raw config mapping, raising ConfigError on failure."""
    try:
        return Config(**(raw_config or {}))
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}") from e


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from an optional YAML file plus environment overrides."""
    import yaml

    raw_config: Dict[str, Any] = {}
    if config_path:
        if not os.path.exists(config_path):
            raise ConfigError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r') as f:
            try:
                raw_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(raw_config, dict):
            raise ConfigError(f"Configuration root must be a mapping: {config_path}")

    return build_config(apply_env_overrides(raw_config))
