"""End-to-end runs of the CLI against a mocked HTTP server."""

import json
from pathlib import Path
from unittest.mock import patch

import httpx
from click.testing import CliRunner

from oas_evaluator.cli import main

FIXTURES = Path(__file__).parent / "fixtures"

RealAsyncClient = httpx.AsyncClient


class MockServer:
    """Answers like a tiny petstore and records what it was sent."""

    def __init__(self, store_up: bool = True):
        self.api_calls: list[httpx.Request] = []
        self.saved: list[dict] = []
        self.store_up = store_up

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == "store.test":
            if not self.store_up:
                raise httpx.ConnectError("store offline", request=request)
            self.saved.append(json.loads(request.content))
            return httpx.Response(201, json={"_id": str(len(self.saved))})

        self.api_calls.append(request)
        if request.method == "POST":
            return httpx.Response(201, json={"id": 1})
        if request.method == "DELETE":
            return httpx.Response(405, json={"error": "not allowed"})
        return httpx.Response(200, json=[])

    def client_factory(self, **kwargs):
        return RealAsyncClient(transport=httpx.MockTransport(self.handler), **kwargs)


def _run(server: MockServer, *args: str):
    with patch("httpx.AsyncClient", side_effect=server.client_factory):
        return CliRunner().invoke(main, list(args))


class TestEndToEnd:
    def test_petstore_run_with_store(self, tmp_path):
        server = MockServer()
        output = tmp_path / "results.json"
        result = _run(
            server, "run", str(FIXTURES / "petstore.yaml"),
            "--store-url", "http://store.test/api",
            "-H", "X-Api-Key: secret",
            "-o", str(output),
        )

        assert result.exit_code == 0, result.output
        assert [f"{r.method} {r.url}" for r in server.api_calls] == [
            "GET http://petstore.test/v1/pets",
            "POST http://petstore.test/v1/pets",
            "GET http://petstore.test/v1/pets/456",
            "DELETE http://petstore.test/v1/pets/456",
        ]
        assert all(r.headers["X-Api-Key"] == "secret" for r in server.api_calls)
        assert len(server.saved) == 4

        records = json.loads(output.read_text(encoding="utf-8"))
        assert [r["status"] for r in records] == [200, 201, 200, 405]
        # $ref bodies stay empty unless --resolve-refs is given
        assert records[1]["requestBody"] == {}
        assert "Success rate: 75.0% (3/4)" in result.output

    def test_resolve_refs_builds_body(self, tmp_path):
        server = MockServer()
        output = tmp_path / "results.json"
        result = _run(
            server, "run", str(FIXTURES / "petstore.yaml"),
            "--no-store", "--resolve-refs", "--filter", "POST /v1/pets", "-o", str(output),
        )

        assert result.exit_code == 0, result.output
        body = json.loads(server.api_calls[0].content)
        assert body["name"] == "Rex"
        assert body.get("tag") in (None, "dog", "cat")
        assert server.saved == []

    def test_store_offline_still_reports(self, tmp_path):
        server = MockServer(store_up=False)
        output = tmp_path / "results.json"
        result = _run(
            server, "run", str(FIXTURES / "petstore_v2.json"),
            "--store-url", "http://store.test/api", "-o", str(output),
        )

        assert result.exit_code == 0, result.output
        records = json.loads(output.read_text(encoding="utf-8"))
        assert len(records) == 4
        assert records[0]["requestBody"] == {"name": "doggie"}
        assert [r["status"] for r in records] == [201, 200, 200, 200]
