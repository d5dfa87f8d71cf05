"""Rebuilds nested request bodies from flat bracket-notation params.

Routes declare nested params as flat keys::

    {"address": {...}, "address[street]": {...}, "address[geo][lat]": {...}}

and the body schema needs them back as nested objects.
"""

import re

from route_oas.constants import ARRAY, OBJECT
from route_oas.model.schema import Schema

BRACKET_KEY = re.compile(r"^([^\[]+)\[([^\]]+)\](.*)$")


def split_bracket_key(name: str) -> tuple[str, str | None]:
    """"company[address][street]" -> ("company", "address[street]")."""
    match = BRACKET_KEY.match(name)
    if not match:
        return name, None
    root, first, remainder = match.groups()
    return root, f"{first}{remainder}" if remainder else first


def partition(flat_params: dict) -> tuple[dict, dict]:
    top_level, nested = {}, {}
    for name, spec in flat_params.items():
        (nested if "[" in name else top_level)[name] = spec
    return top_level, nested


def group_by_root(nested: dict) -> dict[str, dict]:
    groups: dict[str, dict] = {}
    for name, spec in nested.items():
        root, rest = split_bracket_key(name)
        if rest is not None:
            groups.setdefault(root, {})[rest] = spec
    return groups


def nested_roots(flat_params: dict) -> set[str]:
    """Top-level names that have bracket children."""
    return set(group_by_root(partition(flat_params)[1]))


class NestedParamsBuilder:
    """Turns flat params into an object schema, recursing into bracket groups.

    build_leaf is called for every param without children and must return
    a fresh (or canonical) Schema for its spec.
    """

    def __init__(self, build_leaf):
        self.build_leaf = build_leaf

    def build(self, flat_params: dict, skip=None) -> Schema:
        schema = Schema(type=OBJECT)
        top_level, nested = partition(flat_params)
        groups = group_by_root(nested)
        for root in groups:
            # children declared without their container
            top_level.setdefault(root, {"type": dict})
        for name, spec in top_level.items():
            if skip is not None and skip(name, spec):
                continue
            if name in groups:
                child = self.build_children(spec, groups[name])
            else:
                child = self.build_leaf(spec)
            schema.add_property(name, child, required=bool(spec.get("required")))
        return schema

    def build_children(self, parent_spec: dict, children: dict) -> Schema:
        if _is_array(parent_spec.get("type")):
            return Schema(type=ARRAY, items=self._object_with_children(parent_spec, children))
        return self._object_with_children(parent_spec, children)

    def _object_with_children(self, parent_spec: dict, children: dict) -> Schema:
        schema = self.build(children)
        doc = parent_spec.get("documentation") or {}
        if doc.get("desc") or parent_spec.get("desc"):
            schema.description = doc.get("desc") or parent_spec.get("desc")
        for key in ("additional_properties", "unevaluated_properties"):
            if key in doc:
                setattr(schema, key, doc[key])
        if doc.get("format"):
            schema.format = doc["format"]
        if doc.get("example") is not None:
            schema.examples = doc["example"]
        return schema


def _is_array(type_) -> bool:
    if type_ in (list, tuple, "Array", "array", "list"):
        return True
    return getattr(type_, "__origin__", None) is list
