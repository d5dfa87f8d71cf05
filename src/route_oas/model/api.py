"""API model nodes built from route declarations.

Builders convert routes into these models; exporters render them
into version-specific OpenAPI documents.
"""

from typing import Any

from pydantic import BaseModel, Field

from route_oas.model.schema import Schema


class Parameter(BaseModel):
    """A non-body operation parameter."""

    name: str
    location: str  # path / query / header / cookie
    schema_node: Schema
    required: bool = False
    description: str | None = None
    collection_format: str | None = None  # OAS2: csv / ssv / tsv / pipes / multi / brackets
    style: str | None = None
    explode: bool | None = None


class MediaType(BaseModel):
    mime_type: str
    schema_node: Schema
    examples: Any = None
    extensions: dict[str, Any] = Field(default_factory=dict)


class RequestBody(BaseModel):
    description: str | None = None
    required: bool = False
    media_types: list[MediaType] = Field(default_factory=list)
    extensions: dict[str, Any] = Field(default_factory=dict)
    body_name: str | None = None  # OAS2 body parameter name


class Response(BaseModel):
    http_status: str
    description: str = "Success"
    media_types: list[MediaType] = Field(default_factory=list)
    headers: list[dict] = Field(default_factory=list)  # [{"name": ..., "schema": {"type": ..., "description": ...}}]
    extensions: dict[str, Any] = Field(default_factory=dict)
    examples: Any = None  # {mime: example}


class Operation(BaseModel):
    http_method: str  # lower case
    operation_id: str | None = None
    summary: str | None = None
    description: str | None = None
    deprecated: bool = False
    parameters: list[Parameter] = Field(default_factory=list)
    request_body: RequestBody | None = None
    responses: list[Response] = Field(default_factory=list)
    tag_names: list[str] = Field(default_factory=list)
    security: list[dict] = Field(default_factory=list)
    extensions: dict[str, Any] = Field(default_factory=dict)
    consumes: list[str] = Field(default_factory=list)
    produces: list[str] = Field(default_factory=list)

    def response(self, code) -> Response | None:
        code = str(code)
        for resp in self.responses:
            if resp.http_status == code:
                return resp
        return None


class Path(BaseModel):
    template: str  # /users/{id}
    operations: list[Operation] = Field(default_factory=list)

    def operation(self, method: str) -> Operation | None:
        for op in self.operations:
            if op.http_method == method.lower():
                return op
        return None


class API(BaseModel):
    """Root of the API model."""

    title: str = "API"
    version: str = "1"
    description: str | None = None
    host: str | None = None
    base_path: str | None = None
    schemes: list[str] = Field(default_factory=list)
    servers: list[dict] = Field(default_factory=list)
    license: dict | None = None
    paths: list[Path] = Field(default_factory=list)
    tag_defs: list[dict] = Field(default_factory=list)  # [{"name": ..., "description": ...}]
    security_definitions: dict[str, Any] = Field(default_factory=dict)
    security: list[dict] = Field(default_factory=list)
    registered_schemas: list[Schema] = Field(default_factory=list)

    def path(self, template: str) -> Path | None:
        for path in self.paths:
            if path.template == template:
                return path
        return None

    def add_path(self, template: str) -> Path:
        existing = self.path(template)
        if existing is not None:
            return existing
        path = Path(template=template)
        self.paths.append(path)
        return path

    def add_tag(self, tag) -> None:
        """Register a tag definition; the first definition of a name wins."""
        if isinstance(tag, dict):
            normalized = {str(k): v for k, v in tag.items()}
        else:
            name = str(tag)
            normalized = {"name": name, "description": f"Operations about {name}s"}
        if any(t["name"] == normalized.get("name") for t in self.tag_defs):
            return
        self.tag_defs.append(normalized)

    def operations(self):
        for path in self.paths:
            for op in path.operations:
                yield path, op
