"""Route and application declarations.

A route is an HTTP method, a path template and flat parameter specs::

    Route(
        method="POST",
        path="/users/:id(.json)",
        params={
            "id": {"type": int, "desc": "User id"},
            "address": {"type": dict},
            "address[street]": {"type": str, "required": True},
        },
        options={"entity": UserEntity, "tags": ["users"]},
    )

Parameter specs use these keys: type, required, desc, documentation,
values, allow_nil / nullable, elements / of, default.
"""

from typing import Any

from pydantic import BaseModel, Field


class Route(BaseModel):
    method: str
    path: str
    params: dict[str, dict[str, Any]] = Field(default_factory=dict)  # flat bracket keys -> spec
    options: dict[str, Any] = Field(default_factory=dict)
    settings: dict[str, Any] = Field(default_factory=dict)  # {"description": {...}, "swagger": {...}}

    @property
    def http_method(self) -> str:
        return self.method.lower()

    @property
    def description_settings(self) -> dict:
        return self.settings.get("description") or {}

    @property
    def documentation(self) -> dict:
        return self.options.get("documentation") or {}

    def option(self, key: str, default=None):
        """Look up key in route options, then in the description settings."""
        if key in self.options:
            return self.options[key]
        return self.description_settings.get(key, default)


class Application(BaseModel):
    """A collection of routes plus the app-wide content type settings."""

    routes: list[Route] = Field(default_factory=list)
    content_types: dict[str, str] = Field(default_factory=dict)  # format -> mime type
    default_format: str | None = None

    def add_route(self, method: str, path: str, params: dict | None = None, settings: dict | None = None, **options) -> Route:
        route = Route(method=method, path=path, params=params or {}, options=options, settings=settings or {})
        self.routes.append(route)
        return route
