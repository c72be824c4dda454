"""Data models shared by the parser, the runner and the result store.

Field names are snake_case in Python and camelCase on the wire, so an
exported result file has the same record shape the result store accepts.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

HTTP_METHODS = ("get", "post", "put", "delete", "patch", "options", "head")


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_wire(self) -> dict:
        """Dump as a JSON-ready dict using camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class Endpoint(WireModel):
    """One (path, method) pair extracted from a spec document."""

    path: str  # https://petstore.example/v1/pets/{petId}
    method: str  # lower-case
    operation_id: str
    summary: str
    description: str = ""
    parameters: list[dict[str, Any]] = []
    request_body_schema: dict[str, Any] | None = None
    responses: dict[str, Any] = {}
    spec_title: str = "Unknown API"
    spec_version: str = "Unknown Version"
    tags: list[str] = []
    deprecated: bool = False


class TestResult(WireModel):
    """Outcome of sending one request for one endpoint.

    A status of 0 means no HTTP response was received.
    """

    __test__ = False  # not a pytest class

    endpoint: Endpoint
    status: int
    status_text: str
    headers: dict[str, Any] = {}
    data: Any = None
    request_body: Any = None
    timestamp: str
    duration: int = Field(default=0, ge=0)  # milliseconds
    spec_title: str = "Unknown"
    spec_version: str = "Unknown"
    # filled in by the result store
    id: str | None = Field(default=None, alias="_id")
    created_at: str | None = None
    updated_at: str | None = None

    def to_wire(self) -> dict:
        data = super().to_wire()
        for key in ("_id", "createdAt", "updatedAt"):
            if data.get(key) is None:
                data.pop(key, None)
        return data

    @property
    def passed(self) -> bool:
        return 200 <= self.status < 300
