"""Shared fixtures faking the Centrifugo HTTP API."""
import json

import pytest
import requests

from centrifugo_exporter.client import configure


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code=200, payload=None, text=None, reason="OK"):
        self.status_code = status_code
        self.reason = reason
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        return json.loads(self.text)


class FakeCentrifugo:
    """Records every request and replies with a queued behaviour."""

    def __init__(self):
        self.calls = []
        self.reply = FakeResponse(payload={"data": {"metrics": {}}})

    def __call__(self, url, data=None, headers=None, timeout=None):
        self.calls.append({"url": url, "data": data, "headers": headers, "timeout": timeout})
        if isinstance(self.reply, Exception):
            raise self.reply
        if callable(self.reply):
            return self.reply()
        return self.reply

    def reply_metrics(self, metrics):
        self.reply = FakeResponse(payload={"data": {"metrics": metrics}})

    def refuse(self):
        self.reply = requests.ConnectionError("Connection refused")


@pytest.fixture
def centrifugo(monkeypatch):
    fake = FakeCentrifugo()
    monkeypatch.setattr(requests, "post", fake)
    return fake


@pytest.fixture
def client():
    return configure("localhost:8000", "secret", 0.2)
