"""Route paths -> API model paths.

Routes are grouped under OpenAPI path templates. Format extensions are
stripped and ``:param`` segments become ``{param}``. Two routes whose
templates differ only in parameter names share the first template, and
the later route's parameters are renamed onto it.
"""

import logging
import re

from route_oas.builders.operation import OperationBuilder
from route_oas.builders.params import call_if_callable
from route_oas.declarations.route import Application, Route
from route_oas.introspection.registry import BuildContext
from route_oas.model.api import API

logger = logging.getLogger(__name__)

# (.json), (.:format), (.json)(.:format)
EXTENSION_PATTERN = re.compile(r"(\(\.[^)]+\))+$")
PATH_PARAMETER_PATTERN = re.compile(r"(?<=/):([^/]+)")
PLACEHOLDER_PATTERN = re.compile(r"\{([^}]+)\}")


def sanitize_path(path: str) -> str:
    path = EXTENSION_PATTERN.sub("", path)
    return PATH_PARAMETER_PATTERN.sub(r"{\1}", path)


def normalize_template(path: str) -> str:
    return PLACEHOLDER_PATTERN.sub("{}", sanitize_path(path))


def map_param_names(canonical: str, incoming: str) -> dict[str, str] | None:
    """Rename map from incoming's params to canonical's, or None if nothing changes."""
    canonical_params = PLACEHOLDER_PATTERN.findall(canonical)
    incoming_params = PLACEHOLDER_PATTERN.findall(incoming)
    if len(canonical_params) != len(incoming_params):
        return None
    mapping = dict(zip(incoming_params, canonical_params))
    if not mapping or all(k == v for k, v in mapping.items()):
        return None
    return mapping


def in_namespace(path: str, namespace: str | None) -> bool:
    if not namespace:
        return True
    prefix = namespace if namespace.startswith("/") else f"/{namespace}"
    path = sanitize_path(path)
    return path == prefix or path.startswith(f"{prefix}/")


def is_hidden_route(route: Route) -> bool:
    hidden = (route.settings.get("swagger") or {}).get("hidden")
    swagger_option = route.options.get("swagger") or {}
    if swagger_option.get("hidden"):
        hidden = swagger_option["hidden"]
    if "hidden" in route.options:
        hidden = route.options["hidden"]
    return bool(call_if_callable(hidden))


class PathBuilder:
    def __init__(self, api: API, app: Application, ctx: BuildContext, namespace: str | None = None):
        self.api = api
        self.app = app
        self.ctx = ctx
        self.namespace = namespace

    def skip(self, route: Route) -> bool:
        if not in_namespace(route.path, self.namespace):
            logger.debug("Skipping %s %s: outside namespace %s", route.method, route.path, self.namespace)
            return True
        if is_hidden_route(route):
            logger.debug("Skipping hidden route %s %s", route.method, route.path)
            return True
        return False

    def build(self) -> None:
        canonical: dict[str, str] = {}
        for route in self.app.routes:
            if self.skip(route):
                continue

            template = sanitize_path(route.path)
            normalized = normalize_template(template)
            name_map = None
            if normalized in canonical:
                name_map = map_param_names(canonical[normalized], template)
                template = canonical[normalized]
            else:
                canonical[normalized] = template

            path = self.api.add_path(template)
            builder = OperationBuilder(route, self.api, self.ctx, app=self.app, template=template, path_param_name_map=name_map)
            path.operations.append(builder.build())
