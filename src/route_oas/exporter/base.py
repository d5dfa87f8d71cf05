"""Shared exporter machinery.

An exporter walks the API model once and renders a plain dict. Canonical
schemas are rendered as ``$ref``s; every name referenced that way is
recorded by the RefTracker and emitted once in the definitions section.
"""

import re
from typing import Any

from route_oas.model.api import API, Operation, Response
from route_oas.model.schema import Schema

REF_NAME_PATTERN = re.compile(r"[^A-Za-z0-9_\-]")
SENTENCE_END = re.compile(r"\.\s")


def sanitize_ref_name(name: str) -> str:
    return REF_NAME_PATTERN.sub("_", name.replace("::", "_"))


def first_sentence(text: str | None) -> str | None:
    if not text:
        return None
    return SENTENCE_END.split(text, maxsplit=1)[0].strip() or None


def is_mime_keyed(examples) -> bool:
    return isinstance(examples, dict) and bool(examples) and all("/" in str(k) for k in examples)


class RefTracker:
    """Ordered record of the canonical schemas referenced during one export."""

    def __init__(self):
        self.schemas: dict[str, Schema] = {}

    def track(self, schema: Schema) -> str:
        name = sanitize_ref_name(schema.canonical_name)
        self.schemas.setdefault(name, schema)
        return name

    def names(self) -> list[str]:
        return list(self.schemas)


class SchemaRenderer:
    """Schema -> dict for one OpenAPI version.

    Subclasses override the version-specific hooks: nullable encoding,
    examples, discriminator form and the 2020-12 keywords.
    """

    ref_prefix = "#/definitions/"

    def __init__(self, tracker: RefTracker):
        self.tracker = tracker

    def ref(self, schema: Schema) -> dict:
        return {"$ref": f"{self.ref_prefix}{self.tracker.track(schema)}"}

    def render_or_ref(self, schema: Schema | None) -> dict:
        if schema is None:
            return {}
        if schema.canonical_name:
            return self.ref(schema)
        return self.render(schema)

    def render(self, schema: Schema | None) -> dict:
        if schema is None:
            return {}
        data: dict[str, Any] = {}
        if schema.type is not None:
            data["type"] = schema.type
        if schema.format:
            data["format"] = schema.format
        if schema.description:
            data["description"] = schema.description
        if schema.properties:
            data["properties"] = {name: self.render_or_ref(prop) for name, prop in schema.properties.items()}
        if schema.items is not None:
            data["items"] = self.render_or_ref(schema.items)
        if schema.required:
            data["required"] = list(schema.required)
        if schema.enum is not None:
            data["enum"] = list(schema.enum)
        if schema.all_of:
            data["allOf"] = [self.render_or_ref(part) for part in schema.all_of]
        self.apply_alternatives(data, schema)
        if schema.discriminator:
            data["discriminator"] = self.discriminator(schema.discriminator)
        if schema.additional_properties is not None:
            data["additionalProperties"] = schema.additional_properties
        self.apply_bounds(data, schema)
        self.apply_version_keywords(data, schema)
        if schema.examples is not None:
            self.apply_example(data, schema.examples)
        data.update(schema.extensions)
        if schema.nullable:
            data = self.apply_nullable(data)
        return data

    def apply_bounds(self, data: dict, schema: Schema) -> None:
        if schema.minimum is not None:
            data["minimum"] = schema.minimum
        if schema.maximum is not None:
            data["maximum"] = schema.maximum
        if schema.exclusive_minimum:
            data["exclusiveMinimum"] = True
        if schema.exclusive_maximum:
            data["exclusiveMaximum"] = True
        for attr, key in (
            ("min_length", "minLength"),
            ("max_length", "maxLength"),
            ("min_items", "minItems"),
            ("max_items", "maxItems"),
        ):
            value = getattr(schema, attr)
            if value is not None:
                data[key] = value
        if schema.pattern:
            data["pattern"] = schema.pattern

    # --- version hooks ---------------------------------------------------------

    def discriminator(self, name: str):
        return name

    def apply_alternatives(self, data: dict, schema: Schema) -> None:
        for key, parts in (("oneOf", schema.one_of), ("anyOf", schema.any_of)):
            if parts:
                data[key] = [self.render_or_ref(part) for part in parts]

    def apply_version_keywords(self, data: dict, schema: Schema) -> None:
        pass

    def apply_example(self, data: dict, example) -> None:
        data["example"] = example

    def apply_nullable(self, data: dict) -> dict:
        data["nullable"] = True
        return data


class BaseExporter:
    renderer_class = SchemaRenderer

    def __init__(self, api: API):
        self.api = api
        self.tracker = RefTracker()
        self.renderer = self.renderer_class(self.tracker)

    def generate(self) -> dict:
        raise NotImplementedError

    # --- tags ------------------------------------------------------------------

    def used_tag_names(self) -> set[str]:
        return {name for _, op in self.api.operations() for name in op.tag_names}

    def build_tags(self) -> list[dict]:
        used = self.used_tag_names()
        tags, seen = [], set()
        for tag in self.api.tag_defs:
            name = tag.get("name")
            if name in seen or name not in used:
                continue
            seen.add(name)
            tags.append(dict(tag))
        return tags

    # --- paths -----------------------------------------------------------------

    def build_paths(self) -> dict:
        paths: dict[str, dict] = {}
        for path in self.api.paths:
            item = paths.setdefault(path.template, {})
            for op in path.operations:
                item[op.http_method] = self.build_operation(op)
        return paths

    def build_operation(self, op: Operation) -> dict:
        data: dict[str, Any] = {}
        if op.operation_id:
            data["operationId"] = op.operation_id
        summary = op.summary or first_sentence(op.description)
        if summary:
            data["summary"] = summary
        if op.description:
            data["description"] = op.description
        if op.deprecated:
            data["deprecated"] = True
        if op.tag_names:
            data["tags"] = list(op.tag_names)
        data.update(self.operation_fields(op))
        ensure_error_response(data.get("responses"))
        if op.security:
            data["security"] = list(op.security)
        data.update(op.extensions)
        return data

    def operation_fields(self, op: Operation) -> dict:
        """Parameters, body and responses in the version's shape."""
        raise NotImplementedError

    def build_responses(self, responses: list[Response]) -> dict:
        return {resp.http_status: self.build_response(resp) for resp in responses}

    def build_response(self, resp: Response) -> dict:
        raise NotImplementedError

    # --- definitions -----------------------------------------------------------

    def build_definitions(self) -> dict:
        """Render every referenced schema, following new refs breadth first."""
        for schema in self.api.registered_schemas:
            if schema.canonical_name:
                self.tracker.track(schema)

        definitions: dict[str, dict] = {}
        pending = self.tracker.names()
        processed: set[str] = set()
        while pending:
            name = pending.pop(0)
            if name in processed:
                continue
            processed.add(name)
            definitions[name] = self.renderer.render(self.tracker.schemas[name])
            pending.extend(n for n in self.tracker.names() if n not in processed and n not in pending)
        return definitions


def ensure_error_response(responses: dict | None) -> None:
    """Declared responses without any 4xx get a generic 400."""
    if not responses:
        return
    if any(str(code).startswith("4") for code in responses):
        return
    responses["400"] = {"description": "Bad Request"}
