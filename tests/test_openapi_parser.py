from pathlib import Path

import pytest

from oas_evaluator.errors import UnsupportedVersion
from oas_evaluator.parser.openapi import (
    normalize,
    parse_openapi,
    response_description,
    response_headers,
    response_schema,
)

FIXTURES = Path(__file__).parent / "fixtures"


def _openapi(paths: dict, **extra) -> dict:
    return {"openapi": "3.0.3", "info": {"title": "T", "version": "1"}, "paths": paths, **extra}


def _swagger(paths: dict, **extra) -> dict:
    return {"swagger": "2.0", "info": {"title": "T", "version": "1"}, "paths": paths, **extra}


class TestOpenApiPetstore:
    @pytest.fixture
    def endpoints(self):
        return parse_openapi(FIXTURES / "petstore.yaml")

    def test_endpoint_count_and_order(self, endpoints):
        assert [(e.method, e.path) for e in endpoints] == [
            ("get", "http://petstore.test/v1/pets"),
            ("post", "http://petstore.test/v1/pets"),
            ("get", "http://petstore.test/v1/pets/{petId}"),
            ("delete", "http://petstore.test/v1/pets/{petId}"),
        ]

    def test_get_pets(self, endpoints):
        get_pets = endpoints[0]
        assert get_pets.summary == "List all pets"
        assert get_pets.operation_id == "listPets"
        assert get_pets.tags == ["pets"]
        assert get_pets.request_body_schema is None
        assert [p["name"] for p in get_pets.parameters] == ["X-Request-Id", "limit"]
        assert "200" in get_pets.responses

    def test_post_prefers_json_body(self, endpoints):
        post_pets = endpoints[1]
        assert post_pets.request_body_schema == {"$ref": "#/components/schemas/NewPet"}
        assert post_pets.operation_id == "postpets"

    def test_duplicate_parameters_are_kept(self, endpoints):
        get_pet = endpoints[2]
        assert [p["name"] for p in get_pet.parameters] == ["petId", "petId"]
        assert get_pet.parameters[1]["description"] == "The id of the pet to retrieve"

    def test_fallbacks(self, endpoints):
        delete_pet = endpoints[3]
        assert delete_pet.summary == "DELETE /pets/{petId}"
        assert delete_pet.operation_id == "deletepetspetId"
        assert delete_pet.description == ""
        assert delete_pet.tags == []
        assert delete_pet.deprecated is True

    def test_spec_info_shared(self, endpoints):
        assert {(e.spec_title, e.spec_version) for e in endpoints} == {("Swagger Petstore", "1.0.0")}


class TestOpenApi:
    def test_first_content_type_when_no_json(self):
        doc = _openapi({
            "/upload": {
                "post": {
                    "requestBody": {"content": {
                        "multipart/form-data": {"schema": {"type": "object", "title": "form"}},
                        "text/plain": {"schema": {"type": "string"}},
                    }}
                }
            }
        })
        assert normalize(doc)[0].request_body_schema == {"type": "object", "title": "form"}

    def test_no_request_body(self):
        doc = _openapi({"/x": {"put": {}}})
        assert normalize(doc)[0].request_body_schema is None

    def test_get_and_head_never_have_body(self):
        body = {"content": {"application/json": {"schema": {"type": "object"}}}}
        doc = _openapi({"/x": {"get": {"requestBody": body}, "head": {"requestBody": body}}})
        assert all(e.request_body_schema is None for e in normalize(doc))

    def test_no_servers_keeps_raw_path(self):
        assert normalize(_openapi({"/pets": {"get": {}}}))[0].path == "/pets"

    def test_method_keys_are_case_insensitive(self):
        endpoints = normalize(_openapi({"/x": {"GET": {}, "Options": {}, "summary": "s", "servers": []}}))
        assert [e.method for e in endpoints] == ["get", "options"]
        assert endpoints[0].operation_id == "GETx"
        assert endpoints[0].summary == "GET /x"

    def test_unrecognized_methods_yield_nothing(self):
        assert normalize(_openapi({"/x": {"trace": {}, "connect": {}}})) == []

    def test_missing_info_defaults(self):
        endpoints = normalize({"openapi": "3.1.0", "paths": {"/x": {"get": {}}}})
        assert endpoints[0].spec_title == "Unknown API"
        assert endpoints[0].spec_version == "Unknown Version"

    def test_empty_paths(self):
        assert normalize({"openapi": "3.0.0"}) == []

    def test_null_content_entries_give_no_body(self):
        doc = _openapi({
            "/a": {"post": {"requestBody": {"content": {"application/json": None}}}},
            "/b": {"post": {"requestBody": {"content": {"application/json": None, "text/plain": {"schema": {"type": "string"}}}}}},
            "/c": {"post": {"requestBody": {"content": None}}},
            "/d": {"post": {"requestBody": "inline"}},
        })
        assert [e.request_body_schema for e in normalize(doc)] == [None, None, None, None]

    def test_yaml_scalars_become_strings(self, tmp_path):
        f = tmp_path / "spec.yaml"
        f.write_text(
            "openapi: 3.0.0\n"
            "info: {title: 2024, version: 1.0}\n"
            "paths:\n"
            "  /x:\n"
            "    get:\n"
            "      operationId: 123\n"
            "      summary: 2024\n"
            "      description: 1.5\n"
            "      tags: [1, v2]\n",
            encoding="utf-8",
        )
        endpoint = parse_openapi(f)[0]
        assert endpoint.operation_id == "123"
        assert endpoint.summary == "2024"
        assert endpoint.description == "1.5"
        assert endpoint.tags == ["1", "v2"]
        assert endpoint.spec_title == "2024"


class TestSwagger:
    @pytest.fixture
    def endpoints(self):
        return parse_openapi(FIXTURES / "petstore_v2.json")

    def test_base_url(self, endpoints):
        assert endpoints[0].path == "http://x.test/v1/pet"

    def test_body_parameter_schema(self, endpoints):
        add_pet = endpoints[0]
        assert add_pet.request_body_schema["properties"]["name"]["example"] == "doggie"
        assert add_pet.summary == "Add a new pet"

    def test_no_body_parameter(self, endpoints):
        assert endpoints[1].method == "put"
        assert endpoints[1].request_body_schema is None

    def test_head_ignores_body_parameter(self, endpoints):
        head = endpoints[3]
        assert head.method == "head"
        assert head.request_body_schema is None

    def test_scheme_defaults_to_https(self):
        doc = _swagger({"/a": {"get": {}}}, host="x.test", basePath="/v1/")
        assert normalize(doc)[0].path == "https://x.test/v1/a"

    def test_no_host_falls_back_to_base_path(self):
        doc = _swagger({"/a": {"get": {}}}, basePath="/api")
        assert normalize(doc)[0].path == "/api/a"

    def test_body_from_path_level_parameter(self):
        doc = _swagger({
            "/a": {
                "parameters": [{"in": "body", "name": "b", "schema": {"type": "string"}}],
                "post": {"parameters": [{"in": "body", "name": "c", "schema": {"type": "integer"}}]},
            }
        })
        assert normalize(doc)[0].request_body_schema == {"type": "string"}


class TestVersion:
    @pytest.mark.parametrize("doc", [
        {"paths": {}},
        {"swagger": "1.2", "paths": {}},
        {"openapi": "2.0", "paths": {}},
        ["not", "a", "mapping"],
    ])
    def test_unsupported(self, doc):
        with pytest.raises(UnsupportedVersion):
            normalize(doc)


class TestResponseHelpers:
    @pytest.fixture
    def get_pets(self):
        return parse_openapi(FIXTURES / "petstore.yaml")[0]

    def test_response_schema_openapi(self, get_pets):
        assert response_schema(get_pets, "200")["type"] == "array"
        assert response_schema(get_pets, 404) is None

    def test_response_schema_swagger(self):
        put = parse_openapi(FIXTURES / "petstore_v2.json")[1]
        assert response_schema(put, "200") == {"type": "object"}

    def test_description_and_headers(self, get_pets):
        assert response_description(get_pets, "200") == "A paged array of pets"
        assert "x-next" in response_headers(get_pets, "200")
        assert response_headers(get_pets, "500") is None
