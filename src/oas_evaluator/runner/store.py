"""HTTP client for the result store backend."""

import logging

import httpx
from pydantic import ValidationError

from oas_evaluator.config import DEFAULT_STORE_TIMEOUT
from oas_evaluator.errors import PersistenceFailure
from oas_evaluator.parser.base import TestResult

logger = logging.getLogger(__name__)


class ResultStore:
    """Saves result records to, and reads them back from, `{base_url}/test-results`."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_STORE_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client = client

    @property
    def url(self) -> str:
        return f"{self.base_url}/test-results"

    async def save(self, result: TestResult) -> None:
        """POST one record. Raises PersistenceFailure on any error."""
        response = await self._request("POST", json=result.to_wire())
        logger.debug("Store accepted record with status %d", response.status_code)

    async def history(self) -> list[TestResult]:
        """GET every stored record, in the order the store returns them."""
        response = await self._request("GET")
        try:
            records = response.json()
        except ValueError as e:
            raise PersistenceFailure(f"Store returned invalid JSON: {e}") from e
        # paginated stores wrap the list
        if isinstance(records, dict):
            records = records.get("results", [])
        if not isinstance(records, list):
            raise PersistenceFailure("Store returned an unexpected payload")
        try:
            return [TestResult.model_validate(r) for r in records]
        except ValidationError as e:
            raise PersistenceFailure(f"Store returned malformed records: {e}") from e

    async def _request(self, method: str, **kwargs) -> httpx.Response:
        try:
            if self.client is not None:
                response = await self.client.request(method, self.url, timeout=self.timeout, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.request(method, self.url, **kwargs)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise PersistenceFailure(f"{method} {self.url} failed: {e}") from e
        return response
