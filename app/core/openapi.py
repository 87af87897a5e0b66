"""OpenAPI customization.

Adds tag descriptions and a shared error response schema so every error
status documented on a route points at the same envelope.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

ERROR_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "error": {
            "type": "object",
            "properties": {
                "code": {"type": "string"},
                "message": {"type": "string"},
                "request_id": {"type": "string", "nullable": True},
                "details": {"type": "object"},
            },
            "required": ["code", "message"],
        }
    },
}

TAGS = [
    {
        "name": "Packages",
        "description": "Package search and rate-limited metadata refresh.",
    },
    {
        "name": "Health",
        "description": "Liveness and readiness checks.",
    },
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation.

    - Registers ``components.schemas.ErrorResponse``
    - Points every documented 4xx/5xx response without content at it
    - Adds tags metadata if not present
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        components = schema.setdefault("components", {})
        components.setdefault("schemas", {}).setdefault("ErrorResponse", ERROR_SCHEMA)

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        error_ref = {
            "application/json": {"schema": {"$ref": "#/components/schemas/ErrorResponse"}}
        }
        for methods in schema.get("paths", {}).values():
            for operation in methods.values():
                if not isinstance(operation, dict):
                    continue
                for status_code, response in operation.get("responses", {}).items():
                    if status_code[0] in "45" and status_code != "422":
                        response.setdefault("content", error_ref)

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
