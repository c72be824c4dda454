"""Dummy request payload generator.

Walks a schema and returns one plausible value for it. Values forced by the
schema (example, enum, default) are returned as-is; everything else comes
from Faker and is random.
"""

import base64
import math
from datetime import timezone
from typing import Any

from faker import Faker

from oas_evaluator.parser.schema import (
    AllOfSchema,
    AnyOfSchema,
    ArraySchema,
    BooleanSchema,
    NullSchema,
    NumberSchema,
    ObjectSchema,
    OneOfSchema,
    RefResolver,
    RefSchema,
    SchemaBase,
    StringSchema,
    decode_schema,
)

fake = Faker()

MAX_REF_DEPTH = 8
DEFAULT_MIN_ITEMS = 1
DEFAULT_MAX_ITEMS = 3
DEFAULT_MAX_LENGTH = 50
DEFAULT_MINIMUM = 0
DEFAULT_MAXIMUM = 1000


def synthesize(schema: Any, resolver: RefResolver | None = None) -> Any:
    """Generate one value for a raw schema mapping or a decoded node.

    `$ref` nodes become `{}` unless a resolver is given.
    """
    node = schema if isinstance(schema, SchemaBase) else decode_schema(schema)
    return DummyDataGenerator(resolver).generate(node)


class DummyDataGenerator:
    """Recursive walker over decoded schema nodes."""

    def __init__(self, resolver: RefResolver | None = None):
        self.resolver = resolver
        self._ref_depth = 0

    def generate(self, node: SchemaBase) -> Any:
        if isinstance(node, RefSchema):
            return self._generate_ref(node)
        if isinstance(node, (OneOfSchema, AnyOfSchema)):
            return self.generate(node.members[0]) if node.members else {}
        if isinstance(node, AllOfSchema):
            merged: dict[str, Any] = {}
            for member in node.members:
                value = self.generate(member)
                if isinstance(value, dict):
                    merged.update(value)
            return merged
        if isinstance(node, ObjectSchema):
            return self._generate_object(node)
        if isinstance(node, ArraySchema):
            return self._generate_array(node)
        if isinstance(node, StringSchema):
            return self._generate_string(node)
        if isinstance(node, NumberSchema):
            return self._generate_number(node)
        if isinstance(node, BooleanSchema):
            return fake.pybool()
        if isinstance(node, NullSchema):
            return None
        return {}

    def _generate_ref(self, node: RefSchema) -> Any:
        if self.resolver is None or self._ref_depth >= MAX_REF_DEPTH:
            return {}
        target = self.resolver.resolve(node.ref)
        if target is None:
            return {}
        self._ref_depth += 1
        try:
            return self.generate(decode_schema(target))
        finally:
            self._ref_depth -= 1

    def _generate_object(self, node: ObjectSchema) -> Any:
        if node.has_example:
            return node.example
        result = {}
        for name, prop in node.properties.items():
            # server-assigned required fields are left for the server to fill
            if prop.read_only and name in node.required:
                continue
            result[name] = self.generate(prop)
        return result

    def _generate_array(self, node: ArraySchema) -> Any:
        if node.has_example:
            return node.example
        min_items = node.min_items or DEFAULT_MIN_ITEMS
        max_items = node.max_items or DEFAULT_MAX_ITEMS
        count = max(min_items, min(max_items, fake.random_int(1, 3)))
        return [self.generate(node.items) for _ in range(count)]

    def _generate_string(self, node: StringSchema) -> Any:
        if node.has_example:
            return node.example
        if node.enum:
            return fake.random_element(node.enum)
        if node.has_default:
            return node.default

        fmt = node.format
        if fmt == "date":
            return fake.past_date().isoformat()
        if fmt == "date-time":
            return fake.past_datetime(tzinfo=timezone.utc).isoformat()
        if fmt == "email":
            return fake.email()
        if fmt in ("uri", "url", "hostname"):
            return fake.url()
        if fmt == "uuid":
            return fake.uuid4()
        if fmt == "password":
            return fake.password()
        if fmt == "byte":
            return base64.b64encode(fake.word().encode()).decode()
        if fmt == "binary":
            return fake.word()
        if fmt == "ipv4":
            return fake.ipv4()
        if fmt == "ipv6":
            return fake.ipv6()

        # no pattern-conformant generation, any word will do
        if node.pattern:
            return fake.word()

        min_length = node.min_length or 1
        max_length = node.max_length or DEFAULT_MAX_LENGTH
        if min_length > 20:
            return fake.paragraph()[:max_length]
        return " ".join(fake.words())[:max_length]

    def _generate_number(self, node: NumberSchema) -> Any:
        if node.has_example:
            return node.example
        if node.enum:
            return fake.random_element(node.enum)
        if node.has_default:
            return node.default

        low = node.minimum if node.minimum is not None else DEFAULT_MINIMUM
        high = node.maximum if node.maximum is not None else DEFAULT_MAXIMUM
        if node.integer:
            low, high = math.ceil(low), math.floor(high)
            # no integer fits between fractional bounds; never exceed maximum
            if low >= high:
                return min(low, high)
            return fake.random_int(low, high)
        if low >= high:
            return min(low, high)
        return min(max(round(fake.random.uniform(low, high), 2), low), high)
