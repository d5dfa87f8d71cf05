"""Swagger 2.0 exporter."""

from route_oas.constants import MIME_JSON, STRING
from route_oas.exporter.base import BaseExporter, SchemaRenderer, is_mime_keyed, sanitize_ref_name
from route_oas.model.api import Operation, Parameter, RequestBody, Response
from route_oas.model.schema import Schema

# Schema type -> inline parameter type/format
PRIMITIVE_MAPPINGS = {
    "integer": ("integer", "int32"),
    "long": ("integer", "int64"),
    "float": ("number", "float"),
    "double": ("number", "double"),
    "byte": ("string", "byte"),
    "date": ("string", "date"),
    "dateTime": ("string", "date-time"),
    "binary": ("string", "binary"),
    "password": ("string", "password"),
    "email": ("string", "email"),
    "uuid": ("string", "uuid"),
}
INLINE_TYPES = set(PRIMITIVE_MAPPINGS) | {"string", "number", "boolean", "file", "array"}
COLLECTION_FORMATS = ("csv", "ssv", "tsv", "pipes", "multi", "brackets")

# keys a non-body parameter may carry next to its type
INLINE_PARAM_KEYS = (
    "items",
    "enum",
    "minimum",
    "maximum",
    "exclusiveMinimum",
    "exclusiveMaximum",
    "minLength",
    "maxLength",
    "pattern",
    "minItems",
    "maxItems",
    "x-oneOf",
    "x-anyOf",
)


class OAS2SchemaRenderer(SchemaRenderer):
    ref_prefix = "#/definitions/"

    def apply_alternatives(self, data: dict, schema: Schema) -> None:
        """Swagger 2.0 has no oneOf/anyOf: describe the first alternative and
        keep the full list under an x- extension."""
        degraded = False
        for key, parts in (("oneOf", schema.one_of), ("anyOf", schema.any_of)):
            if not parts:
                continue
            data[f"x-{key}"] = [self.render_or_ref(part) for part in parts]
            if degraded:
                continue
            degraded = True
            first = parts[0]
            if first.canonical_name:
                data.setdefault("allOf", []).append(self.ref(first))
            else:
                for name, value in self.render(first).items():
                    data.setdefault(name, value)


class OAS2Exporter(BaseExporter):
    renderer_class = OAS2SchemaRenderer

    def generate(self) -> dict:
        doc = {"swagger": "2.0", "info": self.build_info()}
        if self.api.host:
            doc["host"] = self.api.host
        if self.api.base_path:
            doc["basePath"] = self.api.base_path
        if self.api.schemes:
            doc["schemes"] = list(self.api.schemes)
        doc["consumes"] = [MIME_JSON]
        doc["produces"] = [MIME_JSON]
        tags = self.build_tags()
        if tags:
            doc["tags"] = tags
        doc["paths"] = self.build_paths()
        definitions = self.build_definitions()
        if definitions:
            doc["definitions"] = definitions
        if self.api.security_definitions:
            doc["securityDefinitions"] = dict(self.api.security_definitions)
        if self.api.security:
            doc["security"] = list(self.api.security)
        return doc

    def build_info(self) -> dict:
        info = {"title": self.api.title, "version": self.api.version}
        if self.api.description:
            info["description"] = self.api.description
        if self.api.license:
            info["license"] = dict(self.api.license)
        return info

    # --- operations --------------------------------------------------------------

    def operation_fields(self, op: Operation) -> dict:
        parameters = [self.build_parameter(param) for param in op.parameters]
        if op.request_body is not None:
            parameters.append(self.build_body_parameter(op.request_body))
        data = {
            "consumes": list(op.consumes or [MIME_JSON]),
            "produces": list(op.produces or [MIME_JSON]),
        }
        if parameters:
            data["parameters"] = parameters
        data["responses"] = self.build_responses(op.responses)
        return data

    def build_parameter(self, param: Parameter) -> dict:
        schema = param.schema_node
        data = {"name": param.name, "in": param.location, "required": param.required}
        if param.description:
            data["description"] = param.description

        alternatives = schema.one_of or schema.any_of
        inline_type = schema.type if schema.type is not None or not alternatives else alternatives[0].type
        if schema.canonical_name or inline_type not in INLINE_TYPES:
            data["schema"] = self.renderer.render_or_ref(schema)
            return data

        rendered = self.renderer.render(schema)
        type_, default_format = PRIMITIVE_MAPPINGS.get(inline_type, (inline_type, None))
        data["type"] = type_
        fmt = schema.format or (alternatives[0].format if schema.type is None else None) or default_format
        if fmt:
            data["format"] = fmt
        for key in INLINE_PARAM_KEYS:
            if key in rendered:
                data[key] = rendered[key]
        if schema.type == "array" and param.collection_format in COLLECTION_FORMATS:
            data["collectionFormat"] = param.collection_format
        return data

    def body_name(self, body: RequestBody) -> str:
        if body.body_name:
            return body.body_name
        schema = body.media_types[0].schema_node if body.media_types else None
        if schema is not None and schema.canonical_name:
            return sanitize_ref_name(schema.canonical_name)
        return "body"

    def build_body_parameter(self, body: RequestBody) -> dict:
        data = {"name": self.body_name(body), "in": "body", "required": body.required}
        if body.description:
            data["description"] = body.description
        if body.media_types:
            data["schema"] = self.renderer.render_or_ref(body.media_types[0].schema_node)
        examples = {mt.mime_type: mt.examples for mt in body.media_types if mt.examples is not None}
        if examples:
            data["x-examples"] = examples
        data.update(body.extensions)
        return data

    # --- responses ---------------------------------------------------------------

    def build_response(self, resp: Response) -> dict:
        data = {"description": resp.description}
        media = resp.media_types[0] if resp.media_types else None
        if media is not None:
            data["schema"] = self.renderer.render_or_ref(media.schema_node)
        if resp.headers:
            data["headers"] = self.build_headers(resp.headers)
        examples = (media.examples if media is not None else None) or resp.examples
        if examples is not None:
            if not is_mime_keyed(examples):
                examples = {media.mime_type if media is not None else MIME_JSON: examples}
            data["examples"] = examples
        data.update(resp.extensions)
        return data

    def build_headers(self, headers: list[dict]) -> dict:
        result = {}
        for header in headers:
            name = header.get("name") or header.get("key")
            if not name:
                continue
            schema = header.get("schema") or {}
            entry = {"type": schema.get("type") or STRING}
            description = header.get("description") or schema.get("description")
            if description:
                entry["description"] = description
            result[name] = entry
        return result
