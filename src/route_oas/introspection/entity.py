"""Entity -> Schema introspection.

Every entity becomes one canonical object schema. Nested entities are
referenced, never inlined, so the exporters emit each once under the
definitions section. A subclass of a concrete entity is rendered as
``allOf: [Parent, {child-only fields}]``.
"""

import logging

from route_oas.constants import ARRAY, OBJECT, STRING
from route_oas.declarations.entity import EntityAdapter, Exposure, find_entity, is_entity
from route_oas.introspection.registry import BuildContext, canonical_name
from route_oas.introspection.types import schema_for_type
from route_oas.model.schema import Schema

logger = logging.getLogger(__name__)


def extensions_of(doc: dict) -> dict:
    return {str(k): v for k, v in doc.items() if str(k).startswith("x-")}


def _defs_of(doc: dict):
    defs = doc.get("defs", doc.get("$defs"))
    return defs if isinstance(defs, dict) else None


def apply_schema_documentation(schema: Schema, doc: dict) -> None:
    """Schema-level keys shared by entities and exposures."""
    if "additional_properties" in doc:
        schema.additional_properties = doc["additional_properties"]
    if "unevaluated_properties" in doc:
        schema.unevaluated_properties = doc["unevaluated_properties"]
    defs = _defs_of(doc)
    if defs is not None:
        schema.defs = defs


class EntityIntrospector:
    def __init__(self, adapter: EntityAdapter | None = None):
        self.adapter = adapter or EntityAdapter()

    def handles(self, source) -> bool:
        return is_entity(source)

    def lookup(self, name: str):
        return find_entity(name)

    def build_schema(self, entity, ctx: BuildContext) -> Schema:
        name = canonical_name(entity, getattr(entity, "__dict__", {}).get("schema_name"))
        parent = self.adapter.parent(entity)
        if parent is not None:
            return ctx.memoized(entity, name, lambda schema: self._populate_inherited(entity, parent, schema, ctx))
        return ctx.memoized(entity, name, lambda schema: self._populate(entity, schema, ctx))

    # --- population -------------------------------------------------------

    def _apply_entity_documentation(self, entity, schema: Schema) -> None:
        doc = self.adapter.documentation(entity)
        if schema.description is None:
            schema.description = doc.get("description") or doc.get("desc")
        if schema.nullable is None and doc.get("nullable"):
            schema.nullable = True
        apply_schema_documentation(schema, doc)
        if doc.get("discriminator"):
            schema.discriminator = str(doc["discriminator"])
        ext = extensions_of(doc)
        if ext:
            schema.extensions.update(ext)

    def _populate(self, entity, schema: Schema, ctx: BuildContext) -> None:
        self._apply_entity_documentation(entity, schema)
        for exposure in self.adapter.exposures(entity):
            if self._merge_target(exposure, ctx) is not None:
                self._merge_into(schema, exposure, ctx)
                continue
            self._add_exposure(schema, exposure, ctx)

    def _populate_inherited(self, entity, parent, schema: Schema, ctx: BuildContext) -> None:
        parent_schema = ctx.build(parent)
        parent_keys = {e.key for e in self.adapter.exposures(parent)}
        inherited = parent_keys | set(parent_schema.all_properties())

        child_only = Schema(type=OBJECT)
        for exposure in self.adapter.exposures(entity):
            if exposure.key in parent_keys:
                continue
            if self._merge_target(exposure, ctx) is not None:
                self._merge_into(child_only, exposure, ctx, skip=inherited)
                continue
            self._add_exposure(child_only, exposure, ctx)

        self._apply_entity_documentation(entity, schema)
        schema.type = None
        schema.all_of = [parent_schema, child_only]

    # --- exposures --------------------------------------------------------

    def _declared_type(self, exposure: Exposure):
        return exposure.using or exposure.documentation.get("type") or exposure.type

    def _merge_target(self, exposure: Exposure, ctx: BuildContext):
        if not self.adapter.merge_flag(exposure):
            return None
        declared = self._declared_type(exposure)
        if isinstance(declared, str):
            declared = ctx.lookup(declared)
        return declared if ctx.can_build(declared) else None

    def _merge_into(self, schema: Schema, exposure: Exposure, ctx: BuildContext, skip=()) -> None:
        target = ctx.build(self._merge_target(exposure, ctx))
        required = target.all_required()
        for prop_name, prop_schema in target.all_properties().items():
            if prop_name in skip:
                continue
            schema.add_property(prop_name, prop_schema, required=prop_name in required)

    def _is_conditional(self, exposure: Exposure) -> bool:
        return bool(self.adapter.condition_predicates(exposure))

    def _add_exposure(self, schema: Schema, exposure: Exposure, ctx: BuildContext) -> None:
        doc = exposure.documentation
        conditional = self._is_conditional(exposure)
        prop = self._exposure_schema(exposure, ctx, force_nullable=conditional)
        if doc.get("is_array"):
            prop = Schema(type=ARRAY, items=prop)

        if conditional:
            # absent whenever the condition fails
            required = False
        elif doc.get("required") is not None:
            required = bool(doc["required"])
        else:
            required = True
        schema.add_property(exposure.key, prop, required=required)

    def _exposure_schema(self, exposure: Exposure, ctx: BuildContext, force_nullable: bool = False) -> Schema:
        doc = exposure.documentation
        declared = self._declared_type(exposure)

        if declared is list:
            base = Schema(type=ARRAY, items=Schema(type=STRING))
        elif declared is dict or isinstance(declared, dict):
            base = Schema(type=OBJECT)
        else:
            base = schema_for_type(declared, ctx)

        tweaks = _exposure_tweaks(doc)
        if force_nullable or doc.get("nullable"):
            tweaks["nullable"] = True

        if ctx.is_canonical(base):
            if not tweaks:
                return base
            # keep the shared definition intact and decorate a wrapper instead
            wrapper = Schema(all_of=[base])
            _apply_tweaks(wrapper, {k: v for k, v in tweaks.items() if k in ("description", "nullable", "examples", "extensions")})
            return wrapper

        _apply_tweaks(base, tweaks)
        return base


def _exposure_tweaks(doc: dict) -> dict:
    tweaks = {}
    if doc.get("values") is not None:
        tweaks["enum"] = list(doc["values"])
    if doc.get("desc") or doc.get("description"):
        tweaks["description"] = doc.get("desc") or doc.get("description")
    if doc.get("format"):
        tweaks["format"] = doc["format"]
    if doc.get("example") is not None:
        tweaks["examples"] = doc["example"]
    for key in ("minimum", "maximum", "min_length", "max_length", "pattern"):
        if key in doc:
            tweaks[key] = doc[key]
    for key in ("additional_properties", "unevaluated_properties"):
        if key in doc:
            tweaks[key] = doc[key]
    defs = _defs_of(doc)
    if defs is not None:
        tweaks["defs"] = defs
    ext = extensions_of(doc)
    if ext:
        tweaks["extensions"] = ext
    return tweaks


def _apply_tweaks(schema: Schema, tweaks: dict) -> None:
    for key, value in tweaks.items():
        if key == "extensions":
            schema.extensions.update(value)
        else:
            setattr(schema, key, value)
