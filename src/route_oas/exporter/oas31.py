"""OpenAPI 3.1 exporter.

3.1 schemas are JSON Schema 2020-12: null is a type rather than a
``nullable`` flag, examples are arrays and exclusive bounds are numbers.
"""

from route_oas.constants import DEFAULT_LICENSE_NAME, DEFAULT_LICENSE_URL
from route_oas.exporter.oas3 import OAS3Exporter, OAS3SchemaRenderer
from route_oas.model.schema import Schema

SCHEMA_DIALECT = "https://spec.openapis.org/oas/3.1/draft/2021-05"
NULL_SCHEMA = {"type": "null"}


class OAS31SchemaRenderer(OAS3SchemaRenderer):
    def apply_bounds(self, data: dict, schema: Schema) -> None:
        super().apply_bounds(data, schema)
        if schema.exclusive_minimum and schema.minimum is not None:
            data["exclusiveMinimum"] = data.pop("minimum")
        if schema.exclusive_maximum and schema.maximum is not None:
            data["exclusiveMaximum"] = data.pop("maximum")

    def apply_version_keywords(self, data: dict, schema: Schema) -> None:
        if schema.unevaluated_properties is not None:
            data["unevaluatedProperties"] = schema.unevaluated_properties
        if schema.defs:
            data["$defs"] = dict(schema.defs)

    def apply_example(self, data: dict, example) -> None:
        data["examples"] = [example]

    def apply_nullable(self, data: dict) -> dict:
        if "type" in data:
            types = list(data["type"]) if isinstance(data["type"], list) else [data["type"]]
            if "null" not in types:
                types.append("null")
            data["type"] = types
            if "enum" in data and None not in data["enum"]:
                data["enum"].append(None)
        elif "anyOf" in data:
            data["anyOf"].append(dict(NULL_SCHEMA))
        elif "oneOf" in data:
            data["oneOf"].append(dict(NULL_SCHEMA))
        elif "allOf" in data:
            data["anyOf"] = [{"allOf": data.pop("allOf")}, dict(NULL_SCHEMA)]
        return data


class OAS31Exporter(OAS3Exporter):
    renderer_class = OAS31SchemaRenderer
    openapi_version = "3.1.0"

    def generate(self) -> dict:
        doc = super().generate()
        doc["$schema"] = SCHEMA_DIALECT
        return doc

    def build_license(self) -> dict:
        license_ = dict(self.api.license or {"name": DEFAULT_LICENSE_NAME, "url": DEFAULT_LICENSE_URL})
        license_.setdefault("name", DEFAULT_LICENSE_NAME)
        if license_.get("identifier"):
            license_.pop("url", None)
        else:
            license_.pop("identifier", None)
            license_.setdefault("url", DEFAULT_LICENSE_URL)
        return license_
