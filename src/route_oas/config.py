"""Options accepted by generate()."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from route_oas.errors import ConfigurationError


class GenerateOptions(BaseModel):
    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    title: str = "API"
    version: str = "1"
    description: str | None = None
    host: str | None = None
    base_path: str | None = None
    schemes: list[str] = Field(default_factory=list)
    servers: list[str | dict[str, Any]] | None = None
    security_definitions: dict[str, Any] = Field(default_factory=dict)
    security: list[dict[str, Any]] = Field(default_factory=list)
    tags: list[str | dict[str, Any]] = Field(default_factory=list)
    namespace: str | None = None
    models: list[Any] = Field(default_factory=list)
    license: dict[str, Any] | None = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_info(cls, data):
        """Accept ``info={"title": ..., "version": ...}`` next to the flat keys."""
        if not isinstance(data, dict) or "info" not in data:
            return data
        data = dict(data)
        info = data.pop("info") or {}
        if not isinstance(info, dict):
            raise ValueError("info must be a mapping")
        for key in ("title", "version", "description", "license"):
            if info.get(key) is not None:
                data[key] = info[key]
        return data

    @field_validator("version", mode="before")
    @classmethod
    def _version_as_string(cls, value):
        return str(value) if isinstance(value, (int, float)) else value

    @field_validator("base_path")
    @classmethod
    def _leading_slash(cls, value):
        if value is None:
            return None
        return value if value.startswith("/") else f"/{value}"

    @field_validator("schemes", "models", mode="before")
    @classmethod
    def _listify(cls, value):
        if value is None:
            return []
        if isinstance(value, (list, tuple)):
            return list(value)
        return [value]

    def server_list(self) -> list[dict[str, Any]]:
        """Explicit servers, or one derived from scheme, host and base path."""
        if self.servers is not None:
            return [{"url": s} if isinstance(s, str) else dict(s) for s in self.servers]
        if not self.host:
            return []
        scheme = self.schemes[0] if self.schemes else "https"
        return [{"url": f"{scheme}://{self.host}{self.base_path or ''}"}]


def load_options(**options) -> GenerateOptions:
    try:
        return GenerateOptions(**options)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid generate options: {exc}") from exc
