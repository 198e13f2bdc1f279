"""
API document served at /api-docs.json.

FastAPI generates the paths from the routers. Request bodies are read raw by
the handlers, so their schemas are attached through ``openapi_extra`` and the
referenced models are merged into ``components/schemas`` here.
"""

from typing import Any, Dict, Type

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel
from pydantic.json_schema import models_json_schema

from .models import DOCUMENTED_MODELS

REF_TEMPLATE = "#/components/schemas/{model}"


def schema_ref(model: Type[BaseModel]) -> Dict[str, str]:
    return {"$ref": REF_TEMPLATE.format(model=model.__name__)}


def json_body(schema: Dict[str, Any]) -> Dict[str, Any]:
    """``openapi_extra`` fragment declaring a required JSON request body."""
    return {
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": schema}},
        }
    }


def install_openapi(app: FastAPI) -> None:
    """Replace ``app.openapi`` with a generator that also publishes the payload models."""

    def openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        document = get_openapi(
            title=app.title,
            version=app.version,
            description=app.description,
            routes=app.routes,
        )

        _, definitions = models_json_schema(
            [(model, "validation") for model in DOCUMENTED_MODELS],
            ref_template=REF_TEMPLATE,
        )
        schemas = document.setdefault("components", {}).setdefault("schemas", {})
        for name, definition in definitions.get("$defs", {}).items():
            schemas.setdefault(name, definition)

        app.openapi_schema = document
        return document

    app.openapi = openapi
