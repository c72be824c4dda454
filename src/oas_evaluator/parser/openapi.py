"""OpenAPI 3.x / Swagger 2.0 document normalizer.

Turns either dialect into one flat, ordered list of Endpoint models.
"""

import logging
import re
from pathlib import Path

from .base import HTTP_METHODS, Endpoint
from .detect import detect_dialect, load_spec

logger = logging.getLogger(__name__)

NO_BODY_METHODS = ("get", "head")


def parse_openapi(source: str | Path) -> list[Endpoint]:
    """Load a spec file or URL and normalize it."""
    return normalize(load_spec(source))


def normalize(doc: dict) -> list[Endpoint]:
    """Normalize a decoded spec document into endpoints, in declaration order.

    Raises UnsupportedVersion when the document is neither Swagger 2.0
    nor OpenAPI 3.x.
    """
    dialect = detect_dialect(doc)
    base_url = _base_url(doc)

    info = doc.get("info") or {}
    spec_title = str(info.get("title") or "Unknown API")
    spec_version = str(info.get("version") or "Unknown Version")

    if dialect == "swagger2":
        fallback_prefix = doc.get("basePath") or ""
        body_schema = _swagger_body_schema
    else:
        fallback_prefix = ""
        body_schema = _openapi_body_schema

    endpoints = []
    paths = doc.get("paths") or {}

    for raw_path, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue
        path_params = path_item.get("parameters") or []

        for key, operation in path_item.items():
            method = str(key).lower()
            if method not in HTTP_METHODS:
                continue
            if not isinstance(operation, dict):
                operation = {}

            params = [*path_params, *(operation.get("parameters") or [])]
            request_body = None
            if method not in NO_BODY_METHODS:
                request_body = body_schema(operation, params)

            endpoints.append(
                Endpoint(
                    path=f"{base_url or fallback_prefix}{raw_path}",
                    method=method,
                    operation_id=str(operation.get("operationId") or _operation_id(str(key), raw_path)),
                    summary=str(operation.get("summary") or f"{str(key).upper()} {raw_path}"),
                    description=str(operation.get("description") or ""),
                    parameters=params,
                    request_body_schema=request_body,
                    # YAML loads unquoted status codes as ints
                    responses={str(k): v for k, v in (operation.get("responses") or {}).items()},
                    spec_title=spec_title,
                    spec_version=spec_version,
                    tags=[str(t) for t in operation.get("tags") or []],
                    deprecated=bool(operation.get("deprecated", False)),
                )
            )

    logger.debug("Normalized %d endpoints from %s %s", len(endpoints), spec_title, spec_version)
    return endpoints


def _base_url(doc: dict) -> str:
    url = ""
    servers = doc.get("servers")
    if isinstance(servers, list) and servers and isinstance(servers[0], dict):
        url = servers[0].get("url") or ""
    elif doc.get("host"):
        schemes = doc.get("schemes") or []
        scheme = schemes[0] if schemes else "https"
        url = f"{scheme}://{doc['host']}{doc.get('basePath') or ''}"
    return url[:-1] if url.endswith("/") else url


def _operation_id(method: str, raw_path: str) -> str:
    return method + re.sub(r"[^a-zA-Z0-9]", "", raw_path)


def _swagger_body_schema(operation: dict, params: list[dict]) -> dict | None:
    for p in params:
        if isinstance(p, dict) and p.get("in") == "body" and p.get("schema"):
            return p["schema"]
    return None


def _openapi_body_schema(operation: dict, params: list[dict]) -> dict | None:
    body = operation.get("requestBody")
    if not isinstance(body, dict):
        return None
    content = body.get("content")
    if not isinstance(content, dict) or not content:
        return None
    # Fallback: first declared content type
    ct_data = content.get("application/json", next(iter(content.values())))
    if not isinstance(ct_data, dict):
        return None
    return ct_data.get("schema")


def response_schema(endpoint: Endpoint, status_code: str) -> dict | None:
    """Schema of a declared response: first content type (3.x) or `schema` (2.0)."""
    response = endpoint.responses.get(str(status_code))
    if not isinstance(response, dict):
        return None
    content = response.get("content")
    if content:
        first = next(iter(content.values()))
        return first.get("schema")
    return response.get("schema")


def response_description(endpoint: Endpoint, status_code: str) -> str | None:
    response = endpoint.responses.get(str(status_code))
    if not isinstance(response, dict):
        return None
    return response.get("description") or None


def response_headers(endpoint: Endpoint, status_code: str) -> dict | None:
    response = endpoint.responses.get(str(status_code))
    if not isinstance(response, dict):
        return None
    return response.get("headers") or None
