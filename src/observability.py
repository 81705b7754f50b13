"""
Observability Server - Liveness, readiness and metrics endpoints.

Serves:
- GET /internal/isalive: always ALIVE while the process runs
- GET /internal/isready: READY once the readiness check passes, 503 before
- GET /internal/metrics: Prometheus text exposition
"""

import logging
from typing import Callable, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

logger = logging.getLogger(__name__)

ReadinessCheck = Callable[[], bool]


def create_app(
    registry: CollectorRegistry, is_ready: Optional[ReadinessCheck] = None
) -> FastAPI:
    """Create the FastAPI app for the internal endpoints."""
    app = FastAPI(
        title="Kafka Connect Operator",
        description="Health and metrics endpoints",
        docs_url=None,
        redoc_url=None,
    )

    @app.get("/internal/isalive", response_class=PlainTextResponse)
    async def is_alive():
        return "ALIVE"

    @app.get("/internal/isready", response_class=PlainTextResponse)
    async def is_ready_endpoint():
        if is_ready is not None and not is_ready():
            return PlainTextResponse("NOT READY", status_code=503)
        return "READY"

    @app.get("/internal/metrics")
    async def metrics():
        return Response(generate_latest(registry), media_type=CONTENT_TYPE_LATEST)

    return app


class ObservabilityServer:
    """Runs the internal endpoints with uvicorn."""

    def __init__(
        self,
        registry: CollectorRegistry,
        is_ready: Optional[ReadinessCheck] = None,
        host: str = "0.0.0.0",
        port: int = 8080,
    ):
        self.host = host
        self.port = port
        self.app = create_app(registry, is_ready)
        self.server: Optional[uvicorn.Server] = None

    async def start(self) -> None:
        """Serve until stop() is called."""
        config = uvicorn.Config(
            self.app,
            host=self.host,
            port=self.port,
            log_level="warning",
            access_log=False,
        )
        self.server = uvicorn.Server(config)

        logger.info(f"Starting observability server on {self.host}:{self.port}")
        await self.server.serve()
        logger.info("Observability server stopped")

    async def stop(self) -> None:
        """Ask the server to shut down gracefully."""
        logger.info("Stopping observability server")
        if self.server:
            self.server.should_exit = True
