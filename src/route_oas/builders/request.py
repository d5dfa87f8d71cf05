"""Request side of an operation: parameters and request body."""

import logging
import re

from route_oas.constants import BODYLESS_METHODS, MIME_JSON
from route_oas.builders.nested_params import NestedParamsBuilder, nested_roots, split_bracket_key
from route_oas.builders.params import (
    ParamSchemaBuilder,
    is_body_param,
    is_explicit_non_body,
    is_hidden,
    resolve_location,
)
from route_oas.declarations.route import Route
from route_oas.introspection.entity import extensions_of
from route_oas.introspection.registry import BuildContext
from route_oas.model.api import MediaType, Operation, Parameter, RequestBody
from route_oas.model.schema import Schema

logger = logging.getLogger(__name__)

TEMPLATE_PARAM = re.compile(r"\{([^}]+)\}")


def template_params(template: str) -> list[str]:
    return TEMPLATE_PARAM.findall(template)


class RequestBuilder:
    def __init__(
        self,
        route: Route,
        operation: Operation,
        ctx: BuildContext,
        template: str,
        path_param_name_map: dict[str, str] | None = None,
    ):
        self.route = route
        self.operation = operation
        self.ctx = ctx
        self.template = template
        self.name_map = path_param_name_map or {}
        self.schema_builder = ParamSchemaBuilder(ctx)

    @property
    def documentation(self) -> dict:
        return self.route.documentation

    @property
    def contract(self):
        return self.route.options.get("contract") or self.route.settings.get("contract")

    def build(self) -> None:
        path_params = template_params(self.template)
        body_schema = self._build_params(path_params)

        contract = self.contract
        if contract is not None:
            if self._is_bodyless() and not self._allows_body():
                self._add_contract_query_params(contract, path_params)
                return
            body_schema = self.ctx.build(contract)

        self._append_request_body(body_schema, from_contract=contract is not None)

    # --- parameters -------------------------------------------------------------

    def _build_params(self, path_params: list[str]) -> Schema:
        """Add non-body params to the operation and return the body schema."""
        params = self.route.params
        body_name = self.route.options.get("body_name")
        containers = nested_roots(params)
        body_roots: set[str] = set()

        for name, spec in params.items():
            if "[" in name:
                continue
            spec = spec or {}
            param_name = self.name_map.get(name, name)
            if is_hidden(spec):
                logger.debug("Skipping hidden param %s on %s %s", name, self.route.method, self.route.path)
                continue

            location = resolve_location(param_name, spec, path_params, body_name)
            if location != "path" and not is_explicit_non_body(spec):
                if location == "body" or is_body_param(spec) or name in containers:
                    body_roots.add(name)
                    continue

            self.operation.parameters.append(self._parameter(param_name, location, spec))

        # bracket children whose container was never declared
        body_roots.update(root for root in containers if root not in params)
        body_params = {name: spec for name, spec in params.items() if split_bracket_key(name)[0] in body_roots}
        nested = NestedParamsBuilder(self.schema_builder.build)
        return nested.build(body_params, skip=lambda name, spec: is_hidden(spec or {}))

    def _parameter(self, name: str, location: str, spec: dict) -> Parameter:
        doc = spec.get("documentation") or {}
        schema = self.schema_builder.build(spec)
        return Parameter(
            name=name,
            location=location,
            schema_node=schema,
            required=True if location == "path" else bool(spec.get("required")),
            description=doc.get("desc") or spec.get("desc"),
            collection_format=doc.get("collectionFormat") or doc.get("collection_format"),
            style=doc.get("style"),
            explode=doc.get("explode"),
        )

    def _add_contract_query_params(self, contract, path_params: list[str]) -> None:
        schema = self.ctx.build(contract)
        if schema is None:
            return
        required = schema.all_required()
        styles = self.documentation.get("params") or {}
        for name, prop in schema.all_properties().items():
            if name in path_params:
                continue
            style = styles.get(name) or {}
            self.operation.parameters.append(
                Parameter(
                    name=name,
                    location="query",
                    schema_node=prop,
                    required=name in required,
                    description=prop.description,
                    style=style.get("style"),
                    explode=style.get("explode"),
                )
            )

    # --- body -------------------------------------------------------------------

    def _is_bodyless(self) -> bool:
        return self.operation.http_method in BODYLESS_METHODS

    def _allows_body(self) -> bool:
        return bool(self.documentation.get("request_body") or self.route.options.get("request_body"))

    def _append_request_body(self, body_schema: Schema | None, from_contract: bool) -> None:
        if body_schema is None:
            return
        if body_schema.canonical_name is None and body_schema.is_empty():
            return
        if self._is_bodyless() and not self._allows_body():
            return

        if (
            body_schema.canonical_name is None
            and not from_contract
            and not any(prop.canonical_name for prop in body_schema.properties.values())
            and self.operation.operation_id
        ):
            body_schema.canonical_name = f"{self.operation.operation_id}_Request"

        content = self.documentation.get("content") or {}
        media_types = []
        for mime in self.operation.consumes or [MIME_JSON]:
            media_ext = content.get(mime)
            media_types.append(
                MediaType(
                    mime_type=mime,
                    schema_node=body_schema,
                    extensions=extensions_of(media_ext) if isinstance(media_ext, dict) else {},
                )
            )

        self.operation.request_body = RequestBody(
            description=self.documentation.get("body_description"),
            required=bool(body_schema.all_required()),
            media_types=media_types,
            extensions=extensions_of(self.documentation),
            body_name=self.route.options.get("body_name"),
        )
