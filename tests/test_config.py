"""Tests for configuration loading and validation."""
import pytest

from centrifugo_exporter.config import load_config, parse_duration, split_listen_address
from centrifugo_exporter.errors import ConfigError


@pytest.mark.parametrize("value, expected", [
    ("200ms", 0.2),
    ("1s", 1.0),
    ("1.5s", 1.5),
    ("1m30s", 90.0),
    ("0.5", 0.5),
    (2, 2.0),
])
def test_parse_duration(value, expected):
    assert parse_duration(value) == pytest.approx(expected)


@pytest.mark.parametrize("value", ["", "ms", "10 parsecs", "1s2", True])
def test_parse_duration_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_duration(value)


def test_split_listen_address():
    assert split_listen_address(":9273") == ("0.0.0.0", 9273)
    assert split_listen_address("127.0.0.1:8080") == ("127.0.0.1", 8080)
    assert split_listen_address("[::1]:9273") == ("::1", 9273)
    with pytest.raises(ValueError):
        split_listen_address("9273")


def test_defaults_without_file(monkeypatch):
    for name in ("CENTRIFUGO_SERVER", "CENTRIFUGO_SECRET", "CENTRIFUGO_TIMEOUT", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    config = load_config()

    assert config.centrifugo.uri == "http://localhost:8000"
    assert config.centrifugo.secret == ""
    assert config.centrifugo.timeout_s == pytest.approx(0.2)
    assert config.web.port == 9273
    assert config.web.telemetry_path == "/metrics"
    assert config.global_.log_level == "INFO"


def test_yaml_file_and_env_overrides(tmp_path, monkeypatch):
    path = tmp_path / "exporter.yaml"
    path.write_text(
        "global:\n"
        "  log_level: debug\n"
        "centrifugo:\n"
        "  uri: centrifugo:8000\n"
        "  secret: from-file\n"
        "  timeout_s: 1s\n"
        "web:\n"
        "  listen_address: 127.0.0.1:9999\n"
    )
    monkeypatch.setenv("CENTRIFUGO_SECRET", "from-env")
    monkeypatch.delenv("CENTRIFUGO_SERVER", raising=False)
    monkeypatch.delenv("CENTRIFUGO_TIMEOUT", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    config = load_config(str(path))

    assert config.centrifugo.uri == "centrifugo:8000"
    assert config.centrifugo.secret == "from-env"
    assert config.centrifugo.timeout_s == 1.0
    assert config.web.host == "127.0.0.1"
    assert config.web.port == 9999
    assert config.global_.log_level == "DEBUG"


def test_missing_file_is_config_error(tmp_path):
    with pytest.raises(ConfigError):
        load_config(str(tmp_path / "missing.yaml"))


@pytest.mark.parametrize("content", [
    "centrifugo:\n  timeout_s: -1\n",
    "web:\n  telemetry_path: metrics\n",
    "web:\n  listen_address: nowhere\n",
    "global:\n  log_level: chatty\n",
    "- just\n- a list\n",
])
def test_invalid_file_is_config_error(tmp_path, content, monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("CENTRIFUGO_TIMEOUT", raising=False)
    path = tmp_path / "bad.yaml"
    path.write_text(content)
    with pytest.raises(ConfigError):
        load_config(str(path))
