"""Route parameter helpers: location, visibility and schema construction."""

import inspect
import logging
from numbers import Number

from route_oas.constants import ARRAY
from route_oas.introspection.registry import BuildContext
from route_oas.introspection.types import declaration_for, is_array_type, schema_for_type
from route_oas.model.schema import Schema

logger = logging.getLogger(__name__)

NON_BODY_LOCATIONS = ("query", "header", "path")


def _doc(spec: dict) -> dict:
    return spec.get("documentation") or {}


def _location_hint(spec: dict) -> str | None:
    doc = _doc(spec)
    hint = doc.get("param_type") or doc.get("in")
    return str(hint).lower() if hint else None


def call_if_callable(value):
    """Evaluate zero-argument callables; other values pass through."""
    if callable(value) and not isinstance(value, type):
        return value()
    return value


# --- location ---------------------------------------------------------------


def resolve_location(name: str, spec: dict, path_params: list[str], body_name: str | None = None) -> str:
    """Where a parameter lives: path, query, header, cookie or body."""
    if name in path_params:
        return "path"
    hint = _location_hint(spec)
    if hint:
        return hint
    if body_name:
        return "body"
    return "query"


def is_body_param(spec: dict) -> bool:
    if _location_hint(spec) == "body":
        return True
    return spec.get("type") in (dict, "Hash", "dict")


def is_explicit_non_body(spec: dict) -> bool:
    return _location_hint(spec) in NON_BODY_LOCATIONS


def is_hidden(spec: dict) -> bool:
    """Required params are always documented."""
    if spec.get("required"):
        return False
    return bool(call_if_callable(_doc(spec).get("hidden")))


# --- schema enhancement -------------------------------------------------------


def _numeric_bounds(values):
    if isinstance(values, range):
        return values.start, values.stop - 1
    if (
        isinstance(values, tuple)
        and len(values) == 2
        and any(isinstance(v, Number) and not isinstance(v, bool) for v in values)
    ):
        return values
    return None


def _resolve_values(values):
    if isinstance(values, dict) and "value" in values:
        values = values["value"]
    if callable(values) and not isinstance(values, type):
        try:
            arity = len(inspect.signature(values).parameters)
        except (TypeError, ValueError):
            arity = 0
        # one-argument callables are validators, not value lists
        if arity != 0:
            return None
        values = values()
    return values


class SchemaEnhancer:
    """Applies parameter documentation (desc, bounds, values, ...) to a schema."""

    @classmethod
    def apply(cls, schema: Schema, spec: dict, doc: dict | None = None) -> None:
        doc = doc if doc is not None else _doc(spec)

        if schema.description is None and (doc.get("desc") or spec.get("desc")):
            schema.description = doc.get("desc") or spec.get("desc")
        if spec.get("allow_nil") or spec.get("nullable") or doc.get("nullable"):
            schema.nullable = True

        for key in ("additional_properties", "unevaluated_properties"):
            if key in doc:
                setattr(schema, key, doc[key])
        defs = doc.get("defs", doc.get("$defs"))
        if isinstance(defs, dict):
            schema.defs = defs

        if doc.get("format"):
            schema.format = doc["format"]
        if doc.get("example") is not None:
            schema.examples = doc["example"]

        for key in ("minimum", "maximum", "min_length", "max_length", "pattern"):
            if key in doc:
                setattr(schema, key, doc[key])

        cls._apply_values(schema, spec.get("values"))

    @staticmethod
    def _apply_values(schema: Schema, values) -> None:
        if values is None:
            return
        values = _resolve_values(values)
        bounds = _numeric_bounds(values)
        if bounds is not None:
            low, high = bounds
            if low is not None:
                schema.minimum = low
            if high is not None:
                schema.maximum = high
        elif isinstance(values, range):
            schema.enum = list(values)
        elif isinstance(values, (list, tuple, set, frozenset)) and values:
            schema.enum = list(values)


# --- schema construction -------------------------------------------------------


class ParamSchemaBuilder:
    """Builds the schema for one parameter spec."""

    def __init__(self, ctx: BuildContext):
        self.ctx = ctx

    def build(self, spec: dict) -> Schema:
        doc = _doc(spec)
        schema = self._base_schema(spec, doc)
        if self.ctx.is_canonical(schema):
            # decorate a wrapper so the shared definition stays untouched
            wrapper = Schema(all_of=[schema])
            SchemaEnhancer.apply(wrapper, spec, doc)
            return wrapper if _has_decoration(wrapper) else schema
        SchemaEnhancer.apply(schema, spec, doc)
        return schema

    def _base_schema(self, spec: dict, doc: dict) -> Schema:
        raw_type = spec.get("type") or doc.get("type")
        doc_type = doc.get("type")
        element_type = spec.get("elements") or spec.get("of")

        if is_array_type(raw_type) and element_type is not None:
            return Schema(type=ARRAY, items=schema_for_type(element_type, self.ctx))
        if raw_type in (list, "Array", "array") and declaration_for(doc_type, self.ctx) is not None:
            return Schema(type=ARRAY, items=schema_for_type(doc_type, self.ctx))

        if doc.get("is_array") and declaration_for(doc_type, self.ctx) is not None:
            return Schema(type=ARRAY, items=schema_for_type(doc_type, self.ctx))

        return schema_for_type(raw_type, self.ctx)


def _has_decoration(schema: Schema) -> bool:
    return any(
        getattr(schema, key) is not None
        for key in ("description", "nullable", "format", "examples", "minimum", "maximum", "enum", "pattern")
    )
