"""Response side of an operation."""

import logging
import re

from route_oas.builders.content_types import resolve_content_types
from route_oas.builders.response_parsers import DEFAULT_PARSERS
from route_oas.constants import ARRAY, OBJECT, STRING
from route_oas.declarations.route import Application, Route
from route_oas.errors import InvalidResponseSpecError
from route_oas.introspection.entity import extensions_of
from route_oas.introspection.registry import BuildContext
from route_oas.introspection.types import resolve_schema_type, schema_for_type
from route_oas.model.api import MediaType, Response
from route_oas.model.schema import Schema

logger = logging.getLogger(__name__)


def underscore(name: str) -> str:
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    name = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", name)
    return name.replace("-", "_").lower()


def pluralize(word: str) -> str:
    if re.search(r"[^aeiou]y$", word):
        return word[:-1] + "ies"
    if re.search(r"(s|x|z|ch|sh)$", word):
        return word + "es"
    return word + "s"


def _array(schema: Schema) -> Schema:
    return Schema(type=ARRAY, items=schema)


class ResponseBuilder:
    def __init__(self, route: Route, ctx: BuildContext, app: Application | None = None, parsers=None):
        self.route = route
        self.ctx = ctx
        self.app = app
        self.parsers = [p() for p in (parsers or DEFAULT_PARSERS)]

    def build(self) -> list[Response]:
        return [self._from_group(specs) for specs in self._grouped(self._specs()).values()]

    def _specs(self) -> list[dict]:
        for parser in self.parsers:
            if parser.applicable(self.route):
                return parser.parse(self.route)
        return []

    def _grouped(self, specs: list[dict]) -> dict[str, list[dict]]:
        groups: dict[str, list[dict]] = {}
        for spec in specs:
            groups.setdefault(str(spec["code"]), []).append(spec)
        return groups

    # --- schemas ----------------------------------------------------------------

    def _schema(self, entity) -> Schema:
        if entity is None:
            return Schema(type=STRING)
        return schema_for_type(entity, self.ctx)

    def _merged_schema(self, specs: list[dict]) -> Schema:
        schema = Schema(type=OBJECT)
        for spec in specs:
            prop = self._schema(spec.get("entity"))
            if spec.get("is_array"):
                prop = _array(prop)
            schema.add_property(str(spec["as"]), prop, required=bool(spec.get("required")))
        return schema

    def _one_of_schema(self, specs: list[dict]) -> Schema:
        branches = []
        for spec in specs:
            if not spec.get("one_of"):
                schema = self._schema(spec.get("entity"))
                branches.append(_array(schema) if spec.get("is_array") else schema)
                continue
            for item in spec["one_of"]:
                entity = _item_entity(item)
                if entity is None:
                    raise InvalidResponseSpecError(
                        f"one_of items must include 'model' or 'entity' ({self.route.method} {self.route.path})"
                    )
                is_array = item.get("is_array", spec.get("is_array"))
                schema = self._schema(entity)
                branches.append(_array(schema) if is_array else schema)
        return Schema(one_of=branches)

    def _root_wrapped(self, schema: Schema, entity, is_array: bool) -> Schema:
        root = (self.route.settings.get("swagger") or {}).get("root")
        if not root:
            return schema
        if root is True:
            key = _root_key(entity)
            key = pluralize(key) if is_array else key
        else:
            key = str(root)
        wrapper = Schema(type=OBJECT)
        wrapper.add_property(key, schema)
        return wrapper

    # --- responses ----------------------------------------------------------------

    def _from_group(self, specs: list[dict]) -> Response:
        first = specs[0]
        aliased = [s for s in specs if s.get("as") is not None]
        if aliased:
            first = aliased[0]
            schema = self._merged_schema(aliased)
            examples = _merged_examples(aliased)
        elif any(s.get("one_of") for s in specs):
            schema = self._one_of_schema(specs)
            examples = _merged_examples(specs)
        else:
            entity = first.get("entity")
            schema = self._schema(entity)
            if first.get("is_array"):
                schema = _array(schema)
            schema = self._root_wrapped(schema, entity, bool(first.get("is_array")))
            examples = first.get("examples")

        message = first.get("message")
        return Response(
            http_status=str(first["code"]),
            description=str(message) if message else "Success",
            media_types=[MediaType(mime_type=mime, schema_node=schema) for mime in resolve_content_types(self.route, self.app)],
            headers=self._headers(first.get("headers")),
            extensions=first.get("extensions") or extensions_of(self.route.documentation),
            examples=examples,
        )

    def _headers(self, headers) -> list[dict]:
        if isinstance(headers, list):
            return headers
        if not isinstance(headers, dict):
            headers = self.route.documentation.get("headers")
        if not isinstance(headers, dict):
            return []
        return [_header(name, spec) for name, spec in headers.items()]


def _header(name: str, spec) -> dict:
    spec = spec if isinstance(spec, dict) else {}
    schema = {"type": resolve_schema_type(spec.get("type"))}
    description = spec.get("description") or spec.get("desc")
    if description:
        schema["description"] = description
    return {"name": str(name), "schema": schema}


def _item_entity(item):
    if isinstance(item, dict):
        return item.get("model") or item.get("entity")
    return None


def _merged_examples(specs: list[dict]):
    merged = {}
    for spec in specs:
        if isinstance(spec.get("examples"), dict):
            merged.update(spec["examples"])
    return merged or None


def _root_key(entity) -> str:
    if entity is None:
        return "data"
    name = entity.__name__ if isinstance(entity, type) else str(entity)
    name = name.split(".")[-1]
    name = re.sub(r"(Entity|Serializer)$", "", name)
    return underscore(name)
