"""Route -> Operation."""

import re

from route_oas.builders.content_types import resolve_content_types
from route_oas.builders.request import RequestBuilder
from route_oas.builders.response import ResponseBuilder
from route_oas.declarations.route import Application, Route
from route_oas.introspection.entity import extensions_of
from route_oas.introspection.registry import BuildContext
from route_oas.model.api import API, Operation


def _as_list(value) -> list:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def path_slug(path: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "_", path, flags=re.IGNORECASE)
    return slug.strip("_")


class OperationBuilder:
    def __init__(
        self,
        route: Route,
        api: API,
        ctx: BuildContext,
        app: Application | None = None,
        template: str | None = None,
        path_param_name_map: dict[str, str] | None = None,
    ):
        self.route = route
        self.api = api
        self.ctx = ctx
        self.app = app
        self.template = template or route.path
        self.name_map = path_param_name_map

    @property
    def operation_id(self) -> str:
        nickname = self.route.option("nickname")
        if nickname:
            return str(nickname)
        slug = path_slug(self.template)
        return f"{self.route.http_method}_{slug}" if slug else self.route.http_method

    def tag_names(self) -> list[str]:
        tags = []
        for tag in _as_list(self.route.option("tags")):
            name = tag.get("name") if isinstance(tag, dict) else tag
            if name is not None and str(name) not in tags:
                tags.append(str(name))
        return tags

    def security(self) -> list[dict]:
        security = self.route.documentation.get("security")
        if security is None:
            security = self.route.options.get("security")
        if security is None:
            security = self.route.options.get("auth")
        return _as_list(security)

    def build(self) -> Operation:
        route = self.route
        desc = route.description_settings
        operation = Operation(
            http_method=route.http_method,
            operation_id=self.operation_id,
            summary=route.options.get("summary") or route.options.get("description") or desc.get("summary") or desc.get("description"),
            description=route.options.get("detail") or desc.get("detail"),
            deprecated=bool(route.option("deprecated")),
            tag_names=self.tag_names(),
            security=self.security(),
            extensions=extensions_of(route.documentation),
            consumes=_as_list(route.option("consumes")),
            produces=resolve_content_types(route, self.app),
        )
        for tag in _as_list(route.option("tags")):
            self.api.add_tag(tag)

        RequestBuilder(route, operation, self.ctx, self.template, self.name_map).build()
        operation.responses = ResponseBuilder(route, self.ctx, self.app).build()
        return operation
