"""
FastAPI LUIS Proxy Application Factory
======================================

This is the main entry point for the proxy service that sits between the
conversational-design tool and the NLU backends.

Architecture:
    Design tool → LUIS proxy (this service) → LUIS authoring API
                                            → Rasa NLU (/parse)

Routers:
    - /apps, /examples, /train, /publish, /assignedkey : LUIS authoring calls
    - /parse          : Rasa NLU parse call
    - /config         : Runtime backend configuration
    - /               : Liveness check (plain text)
    - /health         : Health check endpoint
    - /api-docs.json  : Generated API document

Environment Variables:
    - LUIS_SERVER_URL: Backend base URL
    - LUIS_APP_ID: Default application ID
    - LUIS_APP_KEY: Default subscription key
    - LUIS_VERSION_ID: Application version (default: 0.1)
    - LOG_LEVEL: Logging level (default: INFO)

Running the Service:
    Development:
        uvicorn luis_proxy.app.main:app --reload --host 0.0.0.0 --port 8080

    Production:
        luis-proxy
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Dict, Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from .config import PORT, Settings, get_settings
from .docs import install_openapi
from .models import HealthResponse
from .proxy import AppState, proxy_router
from .store import ConfigStore, LuisConfig

SERVICE_NAME = "luis-proxy"
SERVICE_VERSION = "1.0.0"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Origin, X-Requested-With, Content-Type, Accept",
}


# Configure structured JSON logging
def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "module": "%(module)s", "function": "%(funcName)s"}',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


# Lifespan context manager for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup: configure logging, open the backend HTTP client and report the
    initial backend config.
    Shutdown: close the backend HTTP client.
    """
    app_state: AppState = app.state.app_state
    settings = app_state.settings

    setup_logging(settings.LOG_LEVEL)
    logger = logging.getLogger("luis_proxy.main")

    app_state.open_forwarder()

    config = app_state.config_store.read()
    logger.info(
        "LUIS proxy server starting",
        extra={
            "port": PORT,
            "base_url": config.base_url,
            "app_id": config.app_id,
            "version_id": config.version_id,
        }
    )

    yield

    logger.info("Shutting down LUIS proxy server")
    await app_state.close_forwarder()
    logger.info("Closed backend HTTP client")


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> FastAPI:
    """
    Application factory function.

    Creates and configures the FastAPI application instance with:
        - Config store seeded from the environment
        - Backend transport for the httpx.AsyncClient opened by the lifespan
        - CORS headers on every response
        - Route handlers and exception handlers

    Args:
        settings: Settings to use instead of the environment
        transport: httpx transport for backend calls (tests inject a mock)

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="luis-server",
        description="Proxy adapting design-tool requests to the LUIS and Rasa NLU APIs",
        version=SERVICE_VERSION,
        lifespan=lifespan,
        openapi_url="/api-docs.json",
        docs_url="/docs",
        redoc_url=None
    )

    app.state.app_state = AppState(
        settings=settings,
        config_store=ConfigStore(LuisConfig.from_settings(settings)),
        transport=transport,
    )

    @app.middleware("http")
    async def add_cors_headers(request: Request, call_next) -> Response:
        """
        Attach the fixed CORS headers and strip entity tags.

        Preflight requests are answered directly with 200.
        """
        if request.method == "OPTIONS":
            response = Response(status_code=200)
        else:
            response = await call_next(request)

        response.headers.update(CORS_HEADERS)
        if "etag" in response.headers:
            del response.headers["etag"]
        return response

    app.include_router(proxy_router)

    # Liveness endpoint
    @app.get("/", tags=["System"], response_class=PlainTextResponse)
    async def root() -> str:
        return "LUIS Proxy Server v1.0"

    # Health check endpoint
    @app.get("/health", tags=["System"], response_model=HealthResponse)
    async def health_check() -> Dict[str, str]:
        """
        Health check endpoint.

        Returns:
            dict: Service health information
        """
        return {
            "status": "ok",
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION
        }

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Global exception handler for unhandled errors.

        Logs the error and returns the standard error body. Runs outside the
        HTTP middleware, so the CORS headers are added here as well.
        """
        logger = logging.getLogger("luis_proxy.main")
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__
            },
            exc_info=True
        )

        return JSONResponse(
            status_code=500,
            content={
                "status": 500,
                "message": "An unexpected error occurred"
            },
            headers=CORS_HEADERS
        )

    install_openapi(app)

    return app


# Create app instance for uvicorn
app = create_app()


def run() -> None:
    """Console entry point: serve the app on the fixed port."""
    settings = get_settings()

    uvicorn.run(
        "luis_proxy.app.main:app",
        host=settings.PROXY_HOST,
        port=PORT,
        log_level=settings.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    run()
