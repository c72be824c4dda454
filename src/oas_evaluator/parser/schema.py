"""Typed schema nodes decoded from raw JSON-Schema-like mappings.

A raw schema is decoded once into one of a closed set of node types, so the
dummy-data generator can dispatch on the node type instead of probing keys.
"""

import logging
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, ValidationError

logger = logging.getLogger(__name__)


class SchemaBase(BaseModel):
    """Keywords every node may carry."""

    model_config = ConfigDict(frozen=True)

    read_only: bool = False
    example: Any = None

    @property
    def has_example(self) -> bool:
        # an explicit `example: 0` or `example: ""` still counts
        return "example" in self.model_fields_set


class EmptySchema(SchemaBase):
    """Absent, malformed or type-less schema without properties/items."""


class RefSchema(SchemaBase):
    ref: str


class OneOfSchema(SchemaBase):
    members: list[SchemaBase] = []


class AnyOfSchema(SchemaBase):
    members: list[SchemaBase] = []


class AllOfSchema(SchemaBase):
    members: list[SchemaBase] = []


class ObjectSchema(SchemaBase):
    properties: dict[str, SchemaBase] = {}
    required: list[str] = []


class ArraySchema(SchemaBase):
    items: SchemaBase = EmptySchema()
    min_items: int | None = None
    max_items: int | None = None


class StringSchema(SchemaBase):
    format: str | None = None
    pattern: str | None = None
    enum: list[Any] | None = None
    default: Any = None
    min_length: int | None = None
    max_length: int | None = None

    @property
    def has_default(self) -> bool:
        return "default" in self.model_fields_set


class NumberSchema(SchemaBase):
    integer: bool = False
    enum: list[Any] | None = None
    default: Any = None
    minimum: float | None = None
    maximum: float | None = None

    @property
    def has_default(self) -> bool:
        return "default" in self.model_fields_set


class BooleanSchema(SchemaBase):
    pass


class NullSchema(SchemaBase):
    pass


SchemaNode = Union[
    EmptySchema,
    RefSchema,
    OneOfSchema,
    AnyOfSchema,
    AllOfSchema,
    ObjectSchema,
    ArraySchema,
    StringSchema,
    NumberSchema,
    BooleanSchema,
    NullSchema,
]

COMPOSITES = (
    ("oneOf", OneOfSchema),
    ("anyOf", AnyOfSchema),
    ("allOf", AllOfSchema),
)


def decode_schema(raw: Any) -> SchemaNode:
    """Decode a raw schema mapping. Never raises; junk becomes EmptySchema."""
    try:
        return _decode(raw)
    except ValidationError as e:
        logger.debug("Ignoring malformed schema: %s", e)
        return EmptySchema()


def _decode(raw: Any) -> SchemaNode:
    if not isinstance(raw, dict):
        return EmptySchema()

    common = _common(raw)

    if "$ref" in raw:
        return RefSchema(ref=str(raw["$ref"]), **common)

    for key, node_cls in COMPOSITES:
        if key in raw:
            members = raw[key] if isinstance(raw[key], list) else []
            return node_cls(members=[decode_schema(m) for m in members], **common)

    schema_type = _schema_type(raw.get("type"))
    if schema_type == "object":
        return _decode_object(raw, common)
    if schema_type == "array":
        return _decode_array(raw, common)
    if schema_type == "string":
        return StringSchema(
            format=_str_or_none(raw.get("format")),
            pattern=_str_or_none(raw.get("pattern")),
            enum=_enum(raw),
            min_length=_int_or_none(raw.get("minLength")),
            max_length=_int_or_none(raw.get("maxLength")),
            **_with_default(raw),
            **common,
        )
    if schema_type in ("number", "integer"):
        return NumberSchema(
            integer=schema_type == "integer",
            enum=_enum(raw),
            minimum=_number_or_none(raw.get("minimum")),
            maximum=_number_or_none(raw.get("maximum")),
            **_with_default(raw),
            **common,
        )
    if schema_type == "boolean":
        return BooleanSchema(**common)
    if schema_type == "null":
        return NullSchema(**common)

    if "properties" in raw:
        return _decode_object(raw, common)
    if "items" in raw:
        return _decode_array(raw, common)
    return EmptySchema(**common)


def _decode_object(raw: dict, common: dict) -> ObjectSchema:
    properties = raw.get("properties")
    if not isinstance(properties, dict):
        properties = {}
    required = raw.get("required")
    return ObjectSchema(
        properties={str(name): decode_schema(prop) for name, prop in properties.items()},
        required=[str(r) for r in required] if isinstance(required, list) else [],
        **common,
    )


def _decode_array(raw: dict, common: dict) -> ArraySchema:
    return ArraySchema(
        items=decode_schema(raw.get("items") or {}),
        min_items=_int_or_none(raw.get("minItems")),
        max_items=_int_or_none(raw.get("maxItems")),
        **common,
    )


def _common(raw: dict) -> dict:
    common: dict[str, Any] = {"read_only": raw.get("readOnly") is True}
    if "example" in raw:
        common["example"] = raw["example"]
    return common


def _with_default(raw: dict) -> dict:
    return {"default": raw["default"]} if "default" in raw else {}


def _schema_type(value: Any) -> str | None:
    # OpenAPI 3.1 allows a list such as ["string", "null"]
    if isinstance(value, list):
        non_null = [v for v in value if v != "null"]
        if non_null:
            return str(non_null[0])
        return "null" if value else None
    return value if isinstance(value, str) else None


def _enum(raw: dict) -> list | None:
    values = raw.get("enum")
    return list(values) if isinstance(values, list) and values else None


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _int_or_none(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)


def _number_or_none(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


class RefResolver:
    """Resolves local `#/...` references against the document they came from.

    Only used when explicitly requested; without a resolver every `$ref`
    synthesizes to an empty object.
    """

    def __init__(self, document: dict):
        self.document = document

    def resolve(self, ref: str) -> dict | None:
        if not ref.startswith("#/"):
            return None
        node: Any = self.document
        for token in ref[2:].split("/"):
            token = token.replace("~1", "/").replace("~0", "~")
            if not isinstance(node, dict) or token not in node:
                return None
            node = node[token]
        return node if isinstance(node, dict) else None
