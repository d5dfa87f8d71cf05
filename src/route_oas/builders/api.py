"""Top-level API model construction."""

import importlib
import logging

from route_oas.builders.paths import PathBuilder
from route_oas.config import GenerateOptions
from route_oas.declarations.route import Application
from route_oas.errors import ModelResolutionError
from route_oas.introspection.registry import BuildContext
from route_oas.model.api import API
from route_oas.model.schema import Schema

logger = logging.getLogger(__name__)


def import_reference(ref: str):
    """Import ``"pkg.module:attr"`` or ``"pkg.module.Attr"``."""
    if ":" in ref:
        module_name, _, attr_path = ref.partition(":")
    else:
        module_name, _, attr_path = ref.rpartition(".")
    if not module_name or not attr_path:
        raise ModelResolutionError(f"Cannot resolve {ref!r}: expected 'module:attr' or 'module.Attr'")
    try:
        target = importlib.import_module(module_name)
    except ImportError as exc:
        raise ModelResolutionError(f"Cannot import module {module_name!r} for {ref!r}: {exc}") from exc
    for part in attr_path.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise ModelResolutionError(f"Module {module_name!r} has no attribute {attr_path!r}") from exc
    return target


class ApiModelBuilder:
    def __init__(self, options: GenerateOptions, ctx: BuildContext | None = None):
        self.options = options
        self.ctx = ctx or BuildContext()
        self.api = API(
            title=options.title,
            version=options.version,
            description=options.description,
            host=options.host,
            base_path=options.base_path,
            schemes=list(options.schemes),
            servers=options.server_list(),
            license=options.license,
            security_definitions=dict(options.security_definitions),
            security=list(options.security),
        )
        for tag in options.tags:
            self.api.add_tag(tag)
        self.api.registered_schemas = self._registered_schemas()

    def _registered_schemas(self) -> list[Schema]:
        schemas = []
        for model in self.options.models:
            if isinstance(model, str):
                model = import_reference(model)
            schema = self.ctx.build(model)
            if schema is None:
                logger.warning("Registered model %r cannot be introspected, skipping", model)
                continue
            schemas.append(schema)
        return schemas

    def add_app(self, app: Application) -> API:
        PathBuilder(self.api, app, self.ctx, namespace=self.options.namespace).build()
        return self.api
