"""HTTP surface for the exporter using FastAPI."""
import logging
import time

from fastapi import FastAPI
from fastapi.responses import HTMLResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from centrifugo_exporter import __version__

logger = logging.getLogger(__name__)

LANDING_PAGE = """<html>
<head><title>Centrifugo Exporter</title></head>
<body>
<h1>Centrifugo Exporter</h1>
<p><a href='{telemetry_path}'>Metrics</a></p>
</body>
</html>
"""


def create_app(registry: CollectorRegistry, telemetry_path: str = "/metrics") -> FastAPI:
    """
    Build the exporter web application.

    Args:
        registry: Registry rendered on every request to the telemetry path
        telemetry_path: Path under which metrics are exposed
    """
    app = FastAPI(title="Centrifugo Exporter", version=__version__)
    landing_page = LANDING_PAGE.format(telemetry_path=telemetry_path)

    # Sync handlers run in the threadpool, so scrapes may overlap and rely
    # on the collector lock.
    @app.get(telemetry_path)
    def metrics():
        """Render all registered metrics in the Prometheus text format."""
        return Response(content=generate_latest(registry), media_type=CONTENT_TYPE_LATEST)

    @app.get("/healthz")
    def healthz():
        """Health check endpoint."""
        return {"status": "healthy", "timestamp": time.time()}

    @app.get("/", response_class=HTMLResponse)
    def index():
        return landing_page

    logger.info(f"Serving metrics under {telemetry_path}")
    return app
