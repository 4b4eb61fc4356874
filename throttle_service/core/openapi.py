"""OpenAPI customization utilities.

Enriches the generated schema with:
- Tags metadata
- A shared 429 response (with rate limit headers) on every throttled operation

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

_RATE_LIMIT_HEADERS = {
    "Retry-After": "Seconds until the current window resets.",
    "X-RateLimit-Limit": "Requests allowed per window.",
    "X-RateLimit-Remaining": "Requests left in the current window.",
    "X-RateLimit-Reset": "UNIX epoch seconds when the window resets.",
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and the 429 response.

    Health endpoints are not throttled and keep their generated responses.
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        responses = components.setdefault("responses", {})
        responses.setdefault(
            "TooManyRequests",
            {
                "description": "Rate limit exceeded for this caller.",
                "headers": {
                    name: {"description": description, "schema": {"type": "integer"}}
                    for name, description in _RATE_LIMIT_HEADERS.items()
                },
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {
                "name": "Throttle",
                "description": "Rate limit decisions and the configured policy table.",
            },
            {
                "name": "Health",
                "description": "Liveness checks.",
            },
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            if path.endswith("/health"):
                continue
            for method_obj in methods.values():
                if isinstance(method_obj, dict):
                    method_obj.setdefault("responses", {}).setdefault(
                        "429", {"$ref": "#/components/responses/TooManyRequests"}
                    )

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
