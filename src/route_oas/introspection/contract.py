"""Contract -> Schema introspection.

Field types come from the contract's type descriptors; bounds, enums and
requiredness come from its rules via RuleIndex. Only a ``key?`` that is
asserted unconditionally makes a field required: a field validated
solely inside an implication ("if present, then ...") stays optional.
"""

import logging

from route_oas.constants import ARRAY, INTEGER, NUMBER, OBJECT, STRING
from route_oas.declarations.contract import (
    Array,
    ContractAdapter,
    Hash,
    Maybe,
    Sum,
    Type,
    find_contract,
    is_contract,
    is_nil,
)
from route_oas.introspection.registry import BuildContext, canonical_name
from route_oas.introspection.types import declaration_for, primitive_schema, schema_for_type
from route_oas.model.schema import Schema
from route_oas.rules.constraints import ConstraintSet, extract
from route_oas.rules.rule_index import ARRAY_SEGMENT, RuleIndex, join_path

logger = logging.getLogger(__name__)


# --- constraint application ---------------------------------------------------


def apply_meta(schema: Schema, meta: dict) -> None:
    """Apply type metadata (min_size, gt, pattern, ...) to a leaf schema."""
    if not meta:
        return
    if schema.type == STRING:
        min_length = meta.get("min_size", meta.get("min_length"))
        max_length = meta.get("max_size", meta.get("max_length"))
        if min_length is not None:
            schema.min_length = min_length
        if max_length is not None:
            schema.max_length = max_length
        if meta.get("pattern"):
            schema.pattern = meta["pattern"]
    elif schema.type in (INTEGER, NUMBER):
        if meta.get("gt") is not None:
            schema.minimum = meta["gt"]
            schema.exclusive_minimum = True
        elif meta.get("gteq") is not None:
            schema.minimum = meta["gteq"]
        if meta.get("lt") is not None:
            schema.maximum = meta["lt"]
            schema.exclusive_maximum = True
        elif meta.get("lteq") is not None:
            schema.maximum = meta["lteq"]
    elif schema.type == ARRAY:
        min_items = meta.get("min_size", meta.get("min_items"))
        max_items = meta.get("max_size", meta.get("max_items"))
        if min_items is not None:
            schema.min_items = min_items
        if max_items is not None:
            schema.max_items = max_items


def apply_constraints(schema: Schema, c: ConstraintSet | None) -> None:
    """Apply rule-derived constraints without overriding what is already set."""
    if c is None:
        return
    if schema.type == STRING:
        if schema.min_length is None and c.min_size is not None:
            schema.min_length = c.min_size
        if schema.max_length is None and c.max_size is not None:
            schema.max_length = c.max_size
        if schema.pattern is None and c.pattern:
            schema.pattern = c.pattern
    elif schema.type == ARRAY:
        if schema.min_items is None and c.min_size is not None:
            schema.min_items = c.min_size
        if schema.max_items is None and c.max_size is not None:
            schema.max_items = c.max_size
    elif schema.type in (INTEGER, NUMBER):
        low = c.minimum if c.minimum is not None else c.min_size
        high = c.maximum if c.maximum is not None else c.max_size
        if schema.minimum is None and low is not None:
            schema.minimum = low
        if schema.maximum is None and high is not None:
            schema.maximum = high
        if not schema.exclusive_minimum and c.exclusive_minimum:
            schema.exclusive_minimum = True
        if not schema.exclusive_maximum and c.exclusive_maximum:
            schema.exclusive_maximum = True

    if schema.enum is None and c.enum is not None:
        schema.enum = list(c.enum)
    if c.nullable:
        schema.nullable = True
    if schema.format is None and c.format:
        schema.format = c.format

    if "multipleOf" in c.extensions:
        schema.extensions.setdefault("multipleOf", c.extensions["multipleOf"])
    if c.excluded_values is not None:
        schema.extensions.setdefault("x-excludedValues", list(c.excluded_values))
    if c.type_predicate is not None:
        schema.extensions.setdefault("x-typePredicate", c.type_predicate)
    if c.parity:
        schema.extensions.setdefault("x-numberParity", str(c.parity))


def attach_unhandled(schema: Schema, c: ConstraintSet | None) -> None:
    if c is None:
        return
    visible = c.visible_unhandled()
    if visible:
        schema.extensions["x-unhandledPredicates"] = visible


def _without_nullable(c: ConstraintSet | None) -> ConstraintSet | None:
    if c is None or not c.nullable:
        return c
    return c.model_copy(update={"nullable": None})


def make_nullable(schema: Schema) -> Schema:
    """Nullable version of schema; canonical schemas are wrapped, not touched."""
    if schema.canonical_name is not None:
        return Schema(all_of=[schema], nullable=True)
    schema.nullable = True
    return schema


# --- introspector ---------------------------------------------------------------


class _FieldIndex:
    """Rule-derived lookups for one contract build."""

    def __init__(self, rules: dict):
        self.rules = rules or {}
        self.constraints_by_path, self.required_by_path = RuleIndex.build(self.rules)

    def constraints(self, path: str | None) -> ConstraintSet | None:
        if path is None:
            return None
        return self.constraints_by_path.get(path)

    def is_required(self, name: str, parent: str, type_, key_required: bool = True) -> bool:
        if name in self.required_by_path.get(parent, []):
            return True
        path = join_path(parent, name)
        if path in self.constraints_by_path or (parent == "" and name in self.rules):
            return False
        if getattr(type_, "optional", False) or getattr(type_, "omittable", False):
            return False
        return key_required


class ContractIntrospector:
    def __init__(self, adapter: ContractAdapter | None = None):
        self.adapter = adapter or ContractAdapter()

    def handles(self, source) -> bool:
        return is_contract(source)

    def lookup(self, name: str):
        return find_contract(name)

    def build_schema(self, contract, ctx: BuildContext) -> Schema:
        name = canonical_name(contract, self.adapter.schema_name(contract))
        parent = self.adapter.parent(contract)
        if parent is not None:
            return ctx.memoized(contract, name, lambda schema: self._populate_inherited(contract, parent, schema, ctx))
        return ctx.memoized(contract, name, lambda schema: self._populate(contract, schema, ctx))

    def _populate(self, contract, schema: Schema, ctx: BuildContext, target: Schema | None = None, skip=()) -> None:
        target = target if target is not None else schema
        index = _FieldIndex(self.adapter.rules(contract))
        for field, type_ in self.adapter.types(contract).items():
            field = str(field)
            if field in skip:
                continue
            prop = self.type_schema(type_, field, index, ctx)
            target.add_property(field, prop, required=index.is_required(field, "", type_))

    def _populate_inherited(self, contract, parent, schema: Schema, ctx: BuildContext) -> None:
        parent_schema = ctx.build(parent)
        child_only = Schema(type=OBJECT)
        self._populate(contract, schema, ctx, target=child_only, skip=set(map(str, self.adapter.types(parent))))
        schema.type = None
        schema.all_of = [parent_schema, child_only]

    # --- type descriptors -----------------------------------------------------

    def type_schema(self, type_, path: str | None, index: _FieldIndex, ctx: BuildContext) -> Schema:
        if isinstance(type_, Maybe):
            return make_nullable(self.type_schema(type_.type, path, index, ctx))
        if isinstance(type_, Sum):
            return self._sum_schema(type_, path, index, ctx)
        if isinstance(type_, Hash):
            return self._hash_schema(type_, path, index, ctx)
        if isinstance(type_, Array):
            return self._array_schema(type_, path, index, ctx)
        if isinstance(type_, Type):
            declaration = declaration_for(type_.primitive, ctx)
            if declaration is not None:
                schema = ctx.build(declaration)
                return make_nullable(schema) if type_.optional else schema
            return self._leaf_schema(type_, path, index)

        declaration = declaration_for(type_, ctx)
        if declaration is not None:
            return ctx.build(declaration)
        return schema_for_type(type_, ctx)

    def _sum_schema(self, type_: Sum, path, index: _FieldIndex, ctx: BuildContext) -> Schema:
        branches = [b for b in type_.branches if not is_nil(b)]
        has_null = len(branches) < len(type_.branches)
        if len(branches) >= 2:
            constraints = index.constraints(path)
            parts = [self.type_schema(b, None, index, ctx) for b in branches]
            for part in parts:
                if part.canonical_name is None:
                    apply_constraints(part, _without_nullable(constraints))
            schema = Schema(any_of=parts)
            if constraints is not None and constraints.nullable:
                schema.nullable = True
            attach_unhandled(schema, constraints)
        elif branches:
            schema = self.type_schema(branches[0], path, index, ctx)
        else:
            schema = Schema(type=STRING)
        return make_nullable(schema) if has_null else schema

    def _hash_schema(self, type_: Hash, path, index: _FieldIndex, ctx: BuildContext) -> Schema:
        schema = Schema(type=OBJECT)
        for key in type_.keys:
            child_path = join_path(path, key.name) if path is not None else None
            prop = self.type_schema(key.type, child_path, index, ctx)
            if path is None:
                required = key.required and not getattr(key.type, "optional", False)
            else:
                required = index.is_required(key.name, path, key.type, key.required)
            schema.add_property(key.name, prop, required=required)
        constraints = index.constraints(path)
        if type_.optional or (constraints is not None and constraints.nullable):
            schema.nullable = True
        return schema

    def _array_schema(self, type_: Array, path, index: _FieldIndex, ctx: BuildContext) -> Schema:
        member_path = join_path(path, ARRAY_SEGMENT) if path is not None else None
        items = self.type_schema(type_.member, member_path, index, ctx) if type_.member is not None else Schema(type=STRING)
        schema = Schema(type=ARRAY, items=items)
        constraints = self._constraints_for(type_, path, index)
        if type_.optional:
            schema.nullable = True
        apply_meta(schema, type_.meta)
        apply_constraints(schema, constraints)
        attach_unhandled(schema, constraints)
        return schema

    def _constraints_for(self, type_, path, index: _FieldIndex) -> ConstraintSet:
        constraints = ConstraintSet()
        constraints.merge(index.constraints(path))
        for rule in getattr(type_, "rules", None) or ():
            constraints.merge(extract(rule))
        return constraints

    def _leaf_schema(self, type_: Type, path, index: _FieldIndex) -> Schema:
        constraints = self._constraints_for(type_, path, index)
        schema = primitive_schema(type_.primitive)
        if type_.optional or constraints.nullable:
            schema.nullable = True
        if type_.values is not None:
            schema.enum = list(type_.values)
        elif constraints.enum is not None:
            schema.enum = list(constraints.enum)
        apply_meta(schema, type_.meta)
        apply_constraints(schema, constraints)
        attach_unhandled(schema, constraints)
        return schema
