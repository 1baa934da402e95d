"""
IRMA Authentication Bridge REST API

FastAPI application exposing the bridge flows, health and metrics endpoints.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import httpx
from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse, RedirectResponse, Response

from . import __version__
from .bridge import IrmaBridge
from .config import BridgeConfig, ServiceConfig, load_config
from .exceptions import AuthIrmaError
from .metrics import BridgeMetrics
from .models import ErrorResponse, SessionCompletePost, StartAuthRequest, StartAuthResponse
from .monitoring import init_sentry

logger = logging.getLogger(__name__)


def get_bridge(request: Request) -> IrmaBridge:
    """Dependency to get the bridge shared by all handlers."""
    return request.app.state.bridge


def create_app(
    config: BridgeConfig | None = None,
    service_config: ServiceConfig | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        config: Bridge configuration, loaded from ``CONFIG`` if omitted
        service_config: Process settings, read from the environment if omitted
        transport: httpx transport for outgoing requests (tests)
    """
    service_config = service_config or ServiceConfig.from_env()
    config = config or load_config(service_config)
    init_sentry(config.sentry_dsn)

    app = FastAPI(
        title="IRMA Authentication Bridge",
        description="Attribute disclosure authentication backed by an IRMA server",
        version=__version__,
    )
    metrics = BridgeMetrics()
    app.state.bridge = IrmaBridge(config, metrics, transport=transport)

    @app.exception_handler(AuthIrmaError)
    async def bridge_error_handler(request: Request, exc: AuthIrmaError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
        body = ErrorResponse(error=type(exc).__name__, detail=exc.message)
        return JSONResponse(status_code=int(exc.status_code), content=body.model_dump())

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

    if service_config.metrics_enabled:

        @app.get("/metrics")
        async def prometheus_metrics() -> Response:
            return Response(content=metrics.export(), media_type=metrics.content_type)

    @app.post("/start_authentication", response_model=StartAuthResponse)
    async def start_authentication(
        request: StartAuthRequest, bridge: IrmaBridge = Depends(get_bridge)
    ):
        """Start an authentication session for the requested attributes."""
        client_url = await bridge.start_authentication(
            request.attributes, request.continuation, request.attr_url
        )
        return StartAuthResponse(client_url=client_url)

    @app.get("/auth/{qr}/{continuation}")
    async def auth_ui(qr: str, continuation: str, bridge: IrmaBridge = Depends(get_bridge)):
        """Send the user to the IRMA disclosure page."""
        return RedirectResponse(
            bridge.auth_ui_redirect(qr, continuation), status_code=status.HTTP_303_SEE_OTHER
        )

    @app.get("/decorated_continue/{attributes}/{continuation}")
    async def decorated_continue(
        attributes: str,
        continuation: str,
        token: str,
        bridge: IrmaBridge = Depends(get_bridge),
    ):
        """Return the user to the caller with the sealed result attached."""
        target = await bridge.decorated_continue(attributes, continuation, token)
        return RedirectResponse(target, status_code=status.HTTP_303_SEE_OTHER)

    @app.post("/session_complete/{attributes}/{attr_url}", status_code=204)
    async def session_complete(
        attributes: str,
        attr_url: str,
        body: SessionCompletePost,
        bridge: IrmaBridge = Depends(get_bridge),
    ) -> Response:
        """IRMA server callback for out-of-band sessions."""
        await bridge.session_complete(attributes, attr_url, body.token)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return app
