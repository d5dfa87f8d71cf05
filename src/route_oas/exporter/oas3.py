"""OpenAPI 3.0 exporter.

The 3.1 exporter subclasses this one and swaps in its schema renderer.
"""

from route_oas.constants import DEFAULT_LICENSE_NAME, DEFAULT_LICENSE_URL, DEFAULT_SERVER_URL, STRING
from route_oas.exporter.base import BaseExporter, SchemaRenderer, is_mime_keyed
from route_oas.model.api import MediaType, Operation, Parameter, RequestBody, Response


class OAS3SchemaRenderer(SchemaRenderer):
    ref_prefix = "#/components/schemas/"

    def discriminator(self, name: str):
        return {"propertyName": name}


class OAS3Exporter(BaseExporter):
    renderer_class = OAS3SchemaRenderer
    openapi_version = "3.0.0"

    def generate(self) -> dict:
        doc = {"openapi": self.openapi_version, "info": self.build_info(), "servers": self.build_servers()}
        tags = self.build_tags()
        if tags:
            doc["tags"] = tags
        doc["paths"] = self.build_paths()
        components = self.build_components()
        if components:
            doc["components"] = components
        if self.api.security:
            doc["security"] = list(self.api.security)
        return doc

    def build_info(self) -> dict:
        info = {"title": self.api.title, "version": self.api.version}
        if self.api.description:
            info["description"] = self.api.description
        info["license"] = self.build_license()
        return info

    def build_license(self) -> dict:
        license_ = dict(self.api.license or {"name": DEFAULT_LICENSE_NAME, "url": DEFAULT_LICENSE_URL})
        license_.setdefault("name", DEFAULT_LICENSE_NAME)
        license_.pop("identifier", None)
        license_.setdefault("url", DEFAULT_LICENSE_URL)
        return license_

    def build_servers(self) -> list[dict]:
        servers = [s if isinstance(s, dict) else {"url": str(s)} for s in self.api.servers]
        return servers or [{"url": DEFAULT_SERVER_URL}]

    def build_components(self) -> dict:
        components = {}
        schemas = self.build_definitions()
        if schemas:
            components["schemas"] = schemas
        if self.api.security_definitions:
            components["securitySchemes"] = dict(self.api.security_definitions)
        return components

    # --- operations --------------------------------------------------------------

    def operation_fields(self, op: Operation) -> dict:
        data = {}
        if op.parameters:
            data["parameters"] = [self.build_parameter(param) for param in op.parameters]
        if op.request_body is not None:
            data["requestBody"] = self.build_request_body(op.request_body)
        data["responses"] = self.build_responses(op.responses)
        return data

    def build_parameter(self, param: Parameter) -> dict:
        data = {"name": param.name, "in": param.location, "required": param.required}
        if param.description:
            data["description"] = param.description
        if param.style:
            data["style"] = param.style
        if param.explode is not None:
            data["explode"] = param.explode
        data["schema"] = self.renderer.render_or_ref(param.schema_node)
        return data

    def build_media_type(self, media: MediaType, example=None) -> dict:
        entry = {"schema": self.renderer.render_or_ref(media.schema_node)}
        example = media.examples if media.examples is not None else example
        if example is not None:
            entry["example"] = example
        entry.update(media.extensions)
        return entry

    def build_request_body(self, body: RequestBody) -> dict:
        data = {}
        if body.description:
            data["description"] = body.description
        data["required"] = body.required
        data["content"] = {mt.mime_type: self.build_media_type(mt) for mt in body.media_types}
        data.update(body.extensions)
        return data

    # --- responses ---------------------------------------------------------------

    def _example_for(self, resp: Response, mime: str):
        if resp.examples is None:
            return None
        if is_mime_keyed(resp.examples):
            return resp.examples.get(mime)
        return resp.examples

    def build_response(self, resp: Response) -> dict:
        data = {"description": resp.description or "Response"}
        if resp.headers:
            data["headers"] = self.build_headers(resp.headers)
        if resp.media_types:
            data["content"] = {
                mt.mime_type: self.build_media_type(mt, self._example_for(resp, mt.mime_type)) for mt in resp.media_types
            }
        data.update(resp.extensions)
        return data

    def build_headers(self, headers: list[dict]) -> dict:
        result = {}
        for header in headers:
            name = header.get("name") or header.get("key")
            if not name:
                continue
            schema = dict(header.get("schema") or {})
            description = header.get("description") or schema.pop("description", None)
            entry = {}
            if description:
                entry["description"] = description
            entry["schema"] = {"type": schema.get("type") or STRING, **{k: v for k, v in schema.items() if k != "type"}}
            result[name] = entry
        return result
