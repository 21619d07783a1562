"""HTTP front end serving probes and self metrics using FastAPI."""
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, JSONResponse, Response
from prometheus_client import CollectorRegistry, CONTENT_TYPE_LATEST, generate_latest
import logging
import time

import httpx

from json_exporter.collector import ProbeMetrics, probe_registry
from json_exporter.config import Config
from json_exporter.fetcher import ProbeError, create_client, fetch_json
from json_exporter.series import gather

logger = logging.getLogger(__name__)

INDEX_HTML = """<html>
<head><title>Json Exporter</title></head>
<body>
<h1>Json Exporter</h1>
<p><a href="/probe">Run a probe</a></p>
<p><a href="/metrics">Metrics</a></p>
</body>
</html>"""


def _walk_document(prefix: str, data):
    registry = probe_registry(prefix, data)
    return registry, gather(registry)


class ExporterAPI:
    """FastAPI application exposing JSON targets as Prometheus metrics."""

    def __init__(self, config: Config, client: Optional[httpx.AsyncClient] = None):
        """
        Initialize the exporter API.

        Args:
            config: Exporter configuration
            client: HTTP client for fetching targets, built from config if omitted
        """
        self.config = config
        self.client = client or create_client(config.http_client)

        # Own registry so /metrics only carries the exporter's metrics
        self.registry = CollectorRegistry()
        self.probe_metrics = ProbeMetrics(
            registry=self.registry,
            prefix=config.global_.metrics_prefix
        )

        self.app = FastAPI(title="JSON Exporter", lifespan=self._lifespan)

        # Setup routes
        self._setup_routes()

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        yield
        await self.client.aclose()
        logger.info("HTTP client closed")

    def _setup_routes(self):
        """Setup API routes."""

        @self.app.get("/", response_class=HTMLResponse)
        async def index():
            return INDEX_HTML

        @self.app.get("/healthz")
        async def healthz():
            """Health check endpoint."""
            return {"status": "healthy", "timestamp": time.time()}

        @self.app.get("/metrics")
        async def metrics():
            """Exporter self metrics."""
            return Response(generate_latest(self.registry), media_type=CONTENT_TYPE_LATEST)

        @self.app.get("/probe")
        async def probe(
            target: str = "",
            prefix: str = "",
            output: str = Query(default="prometheus", alias="format", pattern="^(prometheus|json)$"),
        ):
            """Fetch a JSON target and expose its numeric values as gauges."""
            if not target:
                raise HTTPException(status_code=400, detail="Target parameter is missing")

            start = time.perf_counter()
            try:
                data = await fetch_json(self.client, target)
            except ProbeError as e:
                logger.error(f"Probe of {target} failed: {e}")
                self.probe_metrics.record_probe("failure", time.perf_counter() - start)
                raise HTTPException(status_code=500, detail=str(e))

            # CPU bound
            registry, points = await run_in_threadpool(_walk_document, prefix, data)
            self.probe_metrics.record_probe("success", time.perf_counter() - start)
            self.probe_metrics.set_probe_samples(len(points))
            logger.debug(f"Probe of {target} produced {len(points)} samples")

            if output == "json":
                return JSONResponse([p.to_dict() for p in points])

            return Response(generate_latest(registry), media_type=CONTENT_TYPE_LATEST)

    def run(self, host: str = "0.0.0.0", port: int = 9116):
        """Run the API server."""
        import uvicorn
        uvicorn.run(self.app, host=host, port=port, log_level="info")
