"""Client for the Centrifugo HTTP API node statistics command."""
import hashlib
import hmac
import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit

import requests
from pydantic import BaseModel, Field, ValidationError

from centrifugo_exporter.errors import ConfigError, ScrapeError

logger = logging.getLogger(__name__)

DEFAULT_SCHEME = "http"
SUPPORTED_SCHEMES = ("http", "https")
API_PATH = "/api/"

NodeMetrics = Dict[str, float]


class NodeData(BaseModel):
    """`data` section of a node command reply."""
    metrics: Dict[str, Optional[float]] = Field(default_factory=dict)


class NodeResponse(BaseModel):
    """Envelope carrying node statistics or an application error."""
    data: NodeData = Field(default_factory=NodeData)
    error: Optional[str] = None


class CommandReply(BaseModel):
    """One entry of a batched API reply."""
    method: str = ""
    error: Optional[str] = None
    body: Optional[NodeResponse] = None


def sign(secret: str, body: bytes) -> str:
    """Return the X-API-Sign value for a request body."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def encode_commands(commands: List[Dict[str, Any]]) -> bytes:
    """Serialize API commands exactly as they are signed and sent."""
    return json.dumps(commands, separators=(",", ":")).encode("utf-8")


def decode_node_status(payload: Any) -> NodeMetrics:
    """
    Extract node metrics from a decoded API reply.

    Accepts either the bare envelope ``{"data": {"metrics": {...}}}`` or the
    batched form ``[{"method": "node", "error": "", "body": {...}}]``.

    Raises:
        ScrapeError: on an application error or an unexpected shape
    """
    try:
        if isinstance(payload, list):
            if not payload:
                raise ScrapeError("empty reply from centrifugo")
            reply = CommandReply.model_validate(payload[0])
            if reply.error:
                raise ScrapeError(reply.error)
            response = reply.body or NodeResponse()
        elif isinstance(payload, dict):
            response = NodeResponse.model_validate(payload)
        else:
            raise ScrapeError(f"unexpected reply type: {type(payload).__name__}")
    except ValidationError as e:
        raise ScrapeError(f"malformed node reply: {e}") from e

    if response.error:
        raise ScrapeError(response.error)
    # null values carry no sample
    return {k: v for k, v in response.data.metrics.items() if v is not None}


class CentrifugoClient:
    """Issues signed node status requests against one Centrifugo server."""

    def __init__(self, endpoint: str, secret: str, timeout: float):
        self._endpoint = endpoint
        self._secret = secret
        self._timeout = timeout

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def timeout(self) -> float:
        return self._timeout

    def fetch_node_status(self) -> NodeMetrics:
        """
        Query the node command and return its metrics.

        Raises:
            ScrapeError: on transport failure, timeout, non-200 status,
                malformed JSON or an error reported by Centrifugo
        """
        body = encode_commands([{"method": "node"}])
        headers = {
            "X-API-Sign": sign(self._secret, body),
            "Content-Type": "application/json",
        }

        try:
            resp = requests.post(
                self._endpoint,
                data=body,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise ScrapeError(f"request to {self._endpoint} failed: {e}") from e

        if resp.status_code != 200:
            raise ScrapeError(f"wrong status code: {resp.status_code} {resp.reason}")

        try:
            payload = resp.json()
        except ValueError as e:
            raise ScrapeError(f"invalid JSON in response: {e}") from e

        metrics = decode_node_status(payload)
        logger.debug(f"Fetched {len(metrics)} node metrics from {self._endpoint}")
        return metrics


def normalize_uri(uri: str) -> str:
    """Prefix a bare host:port with the default scheme."""
    uri = uri.strip()
    if "://" not in uri:
        uri = f"{DEFAULT_SCHEME}://{uri}"
    return uri


def configure(uri: str, secret: str, timeout: float) -> CentrifugoClient:
    """
    Validate the upstream endpoint and build a client for it.

    A URI without a path is given the default ``/api/`` endpoint; a URI
    carrying a path is used verbatim.

    Raises:
        ConfigError: if the URI is unparseable, has no host or an
            unsupported scheme, or the timeout is not positive
    """
    uri = normalize_uri(uri)
    try:
        parts = urlsplit(uri)
        # Accessing .port validates it
        parts.port
    except ValueError as e:
        raise ConfigError(f"invalid centrifugo URL: {e}") from e

    if not parts.hostname or parts.scheme not in SUPPORTED_SCHEMES:
        raise ConfigError(f"invalid centrifugo URL: {uri}")

    if timeout is None or not 0 < timeout < float("inf"):
        raise ConfigError(f"timeout must be positive, got {timeout}")

    if not parts.path:
        endpoint = parts._replace(path=API_PATH).geturl()
    else:
        endpoint = uri

    logger.info(f"Centrifugo API endpoint: {endpoint} (timeout {timeout}s)")
    return CentrifugoClient(endpoint, secret, timeout)
