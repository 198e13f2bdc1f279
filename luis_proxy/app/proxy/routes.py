"""
Proxy Routes - NLU Backend Request Forwarding
=============================================

This module implements the endpoints the conversational-design tool calls.
Each one rewrites the request for the LUIS authoring API (or the self-hosted
Rasa server, for /parse) and relays the backend's answer.

Request Flow:
-------------
1. Read path parameters and the raw inbound body (no schema validation)
2. Read one snapshot of the runtime config
3. Build URL, headers and body from the route table entry
4. Forward through the shared HTTP client
5. Relay the backend body with status 200, or answer
   500 {"status": 500, "message": ...} and log the cause

Endpoints:
----------
- POST /apps/{app_name}          : Import an application
- POST /examples                 : Add training examples
- POST /train, /train/{app_id}   : Start training
- GET  /train, /train/{app_id}   : Training status
- POST /publish/{app_id}         : Publish an application
- POST /assignedkey/{app_id}     : Assign the subscription key to the version
- POST /parse                    : Parse an utterance (Rasa)
- POST /config                   : Update the runtime config
"""

import json
import logging
from typing import Any, Dict, List, Optional, Union
from urllib.parse import parse_qsl

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, Response

from ..docs import json_body, schema_ref
from ..models import (
    ConfigPayload,
    ErrorResponse,
    Example,
    JSONApp,
    Message,
    ParseResponse,
    StatusResponse,
)
from ..store import ConfigStore, ConfigUpdate, LuisConfig
from .forwarder import BackendCallError, Forwarder
from .route_table import (
    ADD_EXAMPLES,
    ASSIGN_KEY,
    IMPORT_APP,
    PARSE,
    PUBLISH,
    START_TRAINING,
    TRAINING_STATUS,
    BackendRoute,
    BodyMode,
    ResponseMode,
    build_headers,
)
from .state import AppState

logger = logging.getLogger("luis_proxy.proxy.routes")

# Create router
proxy_router = APIRouter()

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

ERROR_RESPONSES: Dict[int, Dict[str, Any]] = {
    500: {"model": ErrorResponse, "description": "Backend call failed"},
}


# ============================================================================
# Dependencies
# ============================================================================

def get_app_state(request: Request) -> AppState:
    """
    Dependency to get the application state container.

    Raises:
        HTTPException: If the application state was never attached
    """
    app_state = getattr(request.app.state, "app_state", None)
    if app_state is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Application state not initialized"
        )
    return app_state


def get_config_store(app_state: AppState = Depends(get_app_state)) -> ConfigStore:
    return app_state.config_store


def get_forwarder(app_state: AppState = Depends(get_app_state)) -> Forwarder:
    """
    Dependency to get the backend forwarder.

    Raises:
        HTTPException: If the lifespan has not opened the backend client
    """
    if app_state.forwarder is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Backend client not available"
        )
    return app_state.forwarder


def get_max_body_bytes(app_state: AppState = Depends(get_app_state)) -> int:
    return app_state.settings.MAX_BODY_BYTES


# ============================================================================
# Body Handling
# ============================================================================

async def read_body(request: Request, max_bytes: int) -> bytes:
    """
    Read the inbound body as the bytes to forward.

    JSON (or any non-form) bodies are returned exactly as received.
    URL-encoded form bodies are converted to a JSON object. Blank values are
    kept and a repeated key becomes a list of its values. An empty body
    becomes ``{}``.

    Args:
        request: Inbound request
        max_bytes: Largest body accepted

    Returns:
        Body bytes for the backend request

    Raises:
        HTTPException: 413 if the body exceeds ``max_bytes``
    """
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="Request body too large"
        )

    body = await request.body()
    if len(body) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="Request body too large"
        )

    logger.debug("Received body", extra={"path": request.url.path, "size": len(body)})

    content_type = request.headers.get("content-type", "")
    if content_type.split(";")[0].strip().lower() == FORM_CONTENT_TYPE:
        return json.dumps(form_to_dict(body)).encode("utf-8")

    if not body:
        return b"{}"

    return body


def form_to_dict(body: bytes) -> Dict[str, Union[str, List[str]]]:
    """Decode a URL-encoded body, collecting repeated keys into lists."""
    fields: Dict[str, Union[str, List[str]]] = {}
    for key, value in parse_qsl(body.decode("utf-8", errors="replace"), keep_blank_values=True):
        if key not in fields:
            fields[key] = value
        elif isinstance(fields[key], list):
            fields[key].append(value)
        else:
            fields[key] = [fields[key], value]
    return fields


def error_response(message: str) -> JSONResponse:
    """Standard failure body for a proxied operation."""
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(status=500, message=message).model_dump()
    )


# ============================================================================
# Relay
# ============================================================================

async def relay(
    route: BackendRoute,
    forwarder: Forwarder,
    config: LuisConfig,
    app_id: Optional[str] = None,
    body: Optional[bytes] = None,
    params: Optional[Dict[str, str]] = None
) -> Response:
    """
    Forward one request described by ``route`` and build the reply.

    Args:
        route: Route table entry
        forwarder: Backend HTTP forwarder
        config: Config snapshot for this request
        app_id: Application ID from the path; defaults to the configured one
        body: Inbound body bytes (used by INBOUND routes only)
        params: Outbound query parameters

    Returns:
        Response relayed to the caller
    """
    app_key = config.app_key.get_secret_value()
    url = route.build_url(
        base_url=config.base_url,
        app_id=app_id if app_id is not None else config.app_id,
        version_id=config.version_id,
    )
    headers = build_headers(route, app_key)

    if route.body is BodyMode.INBOUND:
        content = body
    elif route.body is BodyMode.APP_KEY:
        content = json.dumps(app_key).encode("utf-8")
    else:
        content = None

    try:
        result = await forwarder.forward(
            route,
            url,
            headers,
            body=content,
            params=params,
        )
    except BackendCallError as e:
        logger.error(
            f"{route.error_message}: {e.detail}",
            exc_info=True,
            extra={
                "route": route.name,
                "url": url,
                "backend_status": e.status_code,
            }
        )
        return error_response(route.error_message)

    if route.response is ResponseMode.RAW:
        return Response(
            content=result.content,
            status_code=status.HTTP_200_OK,
            media_type=result.content_type or "application/json",
        )

    if route.response is ResponseMode.EMPTY:
        return Response(status_code=status.HTTP_200_OK)

    return JSONResponse(status_code=status.HTTP_200_OK, content=result.payload)


# ============================================================================
# LUIS Endpoints
# ============================================================================

@proxy_router.post(
    "/apps/{app_name}",
    tags=["LUIS"],
    summary="Imports an application to LUIS.",
    responses={200: {"description": "The ID of the imported application."}, **ERROR_RESPONSES},
    openapi_extra=json_body(schema_ref(JSONApp)),
)
async def import_app(
    app_name: str,
    request: Request,
    store: ConfigStore = Depends(get_config_store),
    forwarder: Forwarder = Depends(get_forwarder),
    max_body_bytes: int = Depends(get_max_body_bytes)
):
    """
    Import a LUIS application document under ``app_name``.

    The backend's answer (the new application ID) is relayed verbatim.
    """
    body = await read_body(request, max_body_bytes)
    return await relay(
        IMPORT_APP,
        forwarder,
        store.read(),
        body=body,
        params={"appName": app_name},
    )


@proxy_router.post(
    "/examples",
    tags=["LUIS"],
    summary="Deploy training examples to LUIS.",
    responses=ERROR_RESPONSES,
    openapi_extra=json_body({"type": "array", "items": schema_ref(Example)}),
)
async def add_examples(
    request: Request,
    store: ConfigStore = Depends(get_config_store),
    forwarder: Forwarder = Depends(get_forwarder),
    max_body_bytes: int = Depends(get_max_body_bytes)
):
    """Post a batch of labelled examples to the configured application version."""
    body = await read_body(request, max_body_bytes)
    return await relay(ADD_EXAMPLES, forwarder, store.read(), body=body)


@proxy_router.post(
    "/train",
    tags=["LUIS"],
    summary="Sends a training request for the configured application version.",
    responses=ERROR_RESPONSES,
)
async def start_training(
    store: ConfigStore = Depends(get_config_store),
    forwarder: Forwarder = Depends(get_forwarder)
):
    return await relay(START_TRAINING, forwarder, store.read())


@proxy_router.post(
    "/train/{app_id}",
    tags=["LUIS"],
    summary="Sends a training request for the given application.",
    responses=ERROR_RESPONSES,
)
async def start_training_for_app(
    app_id: str,
    store: ConfigStore = Depends(get_config_store),
    forwarder: Forwarder = Depends(get_forwarder)
):
    return await relay(START_TRAINING, forwarder, store.read(), app_id=app_id)


@proxy_router.get(
    "/train",
    tags=["LUIS"],
    summary="Gets the training status of the configured application version.",
    responses=ERROR_RESPONSES,
)
async def training_status(
    store: ConfigStore = Depends(get_config_store),
    forwarder: Forwarder = Depends(get_forwarder)
):
    return await relay(TRAINING_STATUS, forwarder, store.read())


@proxy_router.get(
    "/train/{app_id}",
    tags=["LUIS"],
    summary="Gets the training status of the given application.",
    responses=ERROR_RESPONSES,
)
async def training_status_for_app(
    app_id: str,
    store: ConfigStore = Depends(get_config_store),
    forwarder: Forwarder = Depends(get_forwarder)
):
    return await relay(TRAINING_STATUS, forwarder, store.read(), app_id=app_id)


@proxy_router.post(
    "/publish/{app_id}",
    tags=["LUIS"],
    summary="Publishes a specific version of the application.",
    responses=ERROR_RESPONSES,
    openapi_extra=json_body({"type": "object"}),
)
async def publish(
    app_id: str,
    request: Request,
    store: ConfigStore = Depends(get_config_store),
    forwarder: Forwarder = Depends(get_forwarder),
    max_body_bytes: int = Depends(get_max_body_bytes)
):
    body = await read_body(request, max_body_bytes)
    return await relay(PUBLISH, forwarder, store.read(), app_id=app_id, body=body)


@proxy_router.post(
    "/assignedkey/{app_id}",
    tags=["LUIS"],
    summary="Assigns the subscription key to the given application version.",
    responses=ERROR_RESPONSES,
)
async def assign_key(
    app_id: str,
    store: ConfigStore = Depends(get_config_store),
    forwarder: Forwarder = Depends(get_forwarder)
):
    """
    Assign the configured subscription key to the application version.

    The inbound body is ignored; the backend receives the JSON-encoded key.
    """
    return await relay(ASSIGN_KEY, forwarder, store.read(), app_id=app_id)


# ============================================================================
# Rasa Endpoint
# ============================================================================

@proxy_router.post(
    "/parse",
    tags=["Rasa"],
    summary="Send a message to Rasa.",
    responses={200: {"model": ParseResponse}, **ERROR_RESPONSES},
    openapi_extra=json_body(schema_ref(Message)),
)
async def parse(
    request: Request,
    store: ConfigStore = Depends(get_config_store),
    forwarder: Forwarder = Depends(get_forwarder),
    max_body_bytes: int = Depends(get_max_body_bytes)
):
    body = await read_body(request, max_body_bytes)
    return await relay(PARSE, forwarder, store.read(), body=body)


# ============================================================================
# Config Endpoint
# ============================================================================

@proxy_router.post(
    "/config",
    tags=["Config"],
    summary="Update the configuration of this proxy.",
    response_model=StatusResponse,
    openapi_extra=json_body(schema_ref(ConfigPayload)),
)
async def update_config(
    request: Request,
    store: ConfigStore = Depends(get_config_store),
    max_body_bytes: int = Depends(get_max_body_bytes)
):
    """
    Replace url/appId/appKey.

    Omitted or empty fields reset to the environment defaults. Bodies that
    are not JSON objects count as empty.
    """
    body = await read_body(request, max_body_bytes)
    try:
        payload = json.loads(body)
    except ValueError:
        logger.warning("Config body is not valid JSON, resetting to defaults")
        payload = {}

    store.update(ConfigUpdate.from_body(payload))
    return {"status": "OK"}
