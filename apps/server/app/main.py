"""FastAPI host that owns the log shipper and exposes its metrics."""

from __future__ import annotations

import logging
import re
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import uvicorn
from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import PlainTextResponse

from log_shipper import LogShipper, ShippingHandler

from .config import ServerSettings
from .models import (
    ConfigResponse,
    HealthResponse,
    IndexResponse,
    LogShippingConfig,
    LogShippingMetrics,
    MetricsResponse,
    MetricsTokenConfig,
)

logger = logging.getLogger("server")
logging.basicConfig(level=logging.INFO)

_ORIGIN = re.compile(r"^(https?://[^/?#]+).*")


def _origin(url: str) -> str:
    return _ORIGIN.sub(r"\1", url)


def get_settings(request: Request) -> ServerSettings:
    return request.app.state.settings


def get_shipper(request: Request) -> LogShipper:
    return request.app.state.shipper


def require_metrics_auth(
    settings: ServerSettings = Depends(get_settings),
    authorization: Optional[str] = Header(default=None),
) -> None:
    if not settings.metrics_token:
        logger.warning("METRICS_TOKEN not set. /metrics endpoint is unsecured")
        return
    auth = authorization or ""
    if not auth.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Unauthorized")
    if auth[len("Bearer "):].strip() != settings.metrics_token:
        raise HTTPException(status_code=403, detail="Forbidden")


def create_app(settings: ServerSettings, shipper: Optional[LogShipper] = None) -> FastAPI:
    shipper = shipper or LogShipper(settings.shipping)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await shipper.start()
        handler: Optional[ShippingHandler] = None
        if shipper.enabled:
            logger.info(
                "Remote log shipping enabled (provider=%s, target=%s)",
                shipper.config.provider.value,
                _origin(settings.shipping.url) if settings.shipping.url else "provider default",
            )
            handler = ShippingHandler(shipper)
            logging.getLogger().addHandler(handler)
        logger.info("Server startup complete (metrics token=%s)", bool(settings.metrics_token))
        try:
            yield
        finally:
            if handler is not None:
                logging.getLogger().removeHandler(handler)
            await shipper.aclose()

    app = FastAPI(title="Payment Server", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.shipper = shipper

    @app.get("/", response_model=IndexResponse)
    def index() -> IndexResponse:
        return IndexResponse(
            message="Payment server - log shipping metrics and health endpoints",
            endpoints=["/healthz", "/config", "/metrics", "/metrics/prometheus"],
        )

    @app.get("/healthz", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse()

    @app.get("/config", response_model=ConfigResponse)
    def config(
        settings: ServerSettings = Depends(get_settings),
        shipper: LogShipper = Depends(get_shipper),
    ) -> ConfigResponse:
        return ConfigResponse(
            metrics=MetricsTokenConfig(token_present=bool(settings.metrics_token)),
            log_shipping=LogShippingConfig(
                enabled=shipper.enabled,
                provider=settings.shipping.provider_name or None,
            ),
        )

    @app.get("/metrics", response_model=MetricsResponse, dependencies=[Depends(require_metrics_auth)])
    def metrics(shipper: LogShipper = Depends(get_shipper)) -> MetricsResponse:
        return MetricsResponse(log_shipping=LogShippingMetrics.from_snapshot(shipper.snapshot()))

    @app.get("/metrics/prometheus", dependencies=[Depends(require_metrics_auth)])
    def prometheus_metrics(shipper: LogShipper = Depends(get_shipper)) -> PlainTextResponse:
        return PlainTextResponse(shipper.metrics.exposition(), media_type="text/plain; version=0.0.4")

    return app


settings = ServerSettings.from_env()
app = create_app(settings)


if __name__ == "__main__":
    uvicorn.run("apps.server.app.main:app", host=settings.host, port=settings.port)
