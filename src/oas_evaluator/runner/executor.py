"""Test runner: sends one request per endpoint and records the outcome.

Endpoints are tested strictly one at a time, in input order, so the returned
list lines up with the endpoint list. A failing endpoint never stops the run:
any request error becomes a status-0 record and store errors are only logged.
"""

import asyncio
import logging
import re
import time
from datetime import date, datetime, timezone
from typing import Any, Iterable
from urllib.parse import urlsplit

import httpx
from pydantic_core import to_jsonable_python

from oas_evaluator.config import Settings
from oas_evaluator.errors import PersistenceFailure, TransportFailure, UnsupportedMethod
from oas_evaluator.generator.dummy import synthesize
from oas_evaluator.parser.base import HTTP_METHODS, Endpoint, TestResult
from oas_evaluator.parser.schema import RefResolver
from oas_evaluator.runner.store import ResultStore

logger = logging.getLogger(__name__)

BODY_METHODS = ("post", "put", "patch")

COMMON_PATH_VALUES = {
    "id": "1",
    "userId": "123",
    "petId": "456",
    "orderId": "789",
    "username": "testuser",
    "status": "available",
    "category": "dogs",
    "tag": "tag1",
}

PLACEHOLDER_RE = re.compile(r"\{([^}]+)\}")


def resolve_path_param(name: str, today: date | None = None) -> str:
    """Pick a stand-in value for a `{name}` path placeholder."""
    if name in COMMON_PATH_VALUES:
        return COMMON_PATH_VALUES[name]
    lowered = name.lower()
    if "id" in lowered:
        return "42"
    if "name" in lowered:
        return "test_name"
    if "date" in lowered:
        return (today or date.today()).isoformat()
    return "test_value"


def resolve_url(path: str) -> str:
    """Turn an endpoint path into a concrete absolute URL.

    Raises TransportFailure when the path is not an absolute URL.
    """
    parts = urlsplit(path)
    if not parts.scheme or not parts.netloc:
        raise TransportFailure(f"Invalid URL: {path}")
    host = parts.netloc.rsplit("@", 1)[-1]
    pathname = PLACEHOLDER_RE.sub(lambda m: resolve_path_param(m.group(1)), parts.path)
    return f"{parts.scheme}://{host}{pathname}"


def build_headers(pairs: Iterable[str | tuple[str, str]]) -> dict[str, str]:
    """Build the caller header map from "Name: value" strings or (name, value) pairs.

    Entries with an empty name are dropped.
    """
    headers = {}
    for pair in pairs:
        if isinstance(pair, str):
            name, _, value = pair.partition(":")
        else:
            name, value = pair
        name = name.strip()
        if name:
            headers[name] = value.strip()
    return headers


async def run_tests(
    endpoints: Iterable[Endpoint],
    headers: dict[str, str] | None = None,
    *,
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
    store: ResultStore | None = None,
    resolver: RefResolver | None = None,
) -> list[TestResult]:
    """Test every endpoint in order and return one result per supported endpoint.

    A passed-in client is used as-is and left open; otherwise one is created
    for the run.
    """
    settings = settings or Settings()
    if client is None:
        async with httpx.AsyncClient(timeout=settings.request_timeout) as owned:
            return await _run(endpoints, headers or {}, settings, owned, store, resolver)
    return await _run(endpoints, headers or {}, settings, client, store, resolver)


def run_tests_sync(endpoints: Iterable[Endpoint], headers: dict[str, str] | None = None, **kwargs) -> list[TestResult]:
    return asyncio.run(run_tests(endpoints, headers, **kwargs))


async def _run(
    endpoints: Iterable[Endpoint],
    headers: dict[str, str],
    settings: Settings,
    client: httpx.AsyncClient,
    store: ResultStore | None,
    resolver: RefResolver | None,
) -> list[TestResult]:
    results = []
    for endpoint in endpoints:
        try:
            result = await _test_endpoint(endpoint, headers, settings, client, resolver)
        except UnsupportedMethod as e:
            logger.warning("%s, skipping %s", e, endpoint.path)
            continue

        if store is not None:
            await _persist(store, result)
        results.append(result)
    return results


async def _test_endpoint(
    endpoint: Endpoint,
    headers: dict[str, str],
    settings: Settings,
    client: httpx.AsyncClient,
    resolver: RefResolver | None,
) -> TestResult:
    method = endpoint.method.lower()
    if method not in HTTP_METHODS:
        raise UnsupportedMethod(endpoint.method)

    start = time.perf_counter()
    request_body = None
    try:
        url = resolve_url(endpoint.path)
        if method in BODY_METHODS:
            request_body = synthesize(endpoint.request_body_schema, resolver)
        logger.info("Testing %s %s", method.upper(), url)
        response = await _send(client, method, url, headers, request_body, settings.request_timeout)
        status, status_text = response.status_code, response.reason_phrase
        response_headers, data = dict(response.headers), _decode_body(response)
    except TransportFailure as e:
        logger.error("Request error for %s %s: %s", method.upper(), endpoint.path, e)
        status, status_text = 0, "Request Failed"
        response_headers, data = {}, {"error": str(e)}
    except Exception as e:
        # e.g. non-ASCII header values rejected by httpx
        logger.exception("Error testing endpoint %s %s", method.upper(), endpoint.path)
        status, status_text = 0, "Request Failed"
        response_headers, data = {}, {"error": str(e) or type(e).__name__}

    duration = round((time.perf_counter() - start) * 1000)
    return TestResult(
        endpoint=endpoint,
        status=status,
        status_text=status_text,
        headers=response_headers,
        data=data,
        request_body=request_body,
        timestamp=_now_iso(),
        duration=max(duration, 0),
        spec_title=endpoint.spec_title or "Unknown",
        spec_version=endpoint.spec_version or "Unknown",
    )


async def _send(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    headers: dict[str, str],
    body: Any,
    timeout: float,
) -> httpx.Response:
    # every status code is an outcome; only missing responses are failures
    kwargs: dict[str, Any] = {"headers": dict(headers), "timeout": timeout}
    if method in BODY_METHODS:
        # YAML examples may carry dates
        kwargs["json"] = to_jsonable_python(body)
    try:
        return await client.request(method.upper(), url, **kwargs)
    except (httpx.RequestError, httpx.InvalidURL) as e:
        raise TransportFailure(str(e) or type(e).__name__) from e


async def _persist(store: ResultStore, result: TestResult) -> None:
    endpoint = result.endpoint
    try:
        await store.save(result)
    except PersistenceFailure as e:
        logger.warning("Could not save test result to store: %s", e)
        return
    logger.info("Saved test result for %s %s", endpoint.method.upper(), endpoint.path)


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return ""
    try:
        return response.json()
    except ValueError:
        return response.text


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
