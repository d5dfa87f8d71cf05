"""Type resolution shared by the introspectors and the request builders.

Declarations name types in several ways: Python classes (int, datetime),
generic aliases (list[int]), Grape-style strings ("Integer", "[String]",
"[String, Integer]"), and declaration classes or their names. Everything
here turns those into Schema nodes.
"""

import logging
import re
import typing

from route_oas.constants import (
    ARRAY,
    OBJECT,
    PYTHON_TYPE_FORMATS,
    PYTHON_TYPE_MAPPING,
    STRING,
    primitive_type,
)
from route_oas.model.schema import Schema

logger = logging.getLogger(__name__)

TYPED_ARRAY_PATTERN = re.compile(r"^\[(\w+)\]$")
MULTI_TYPE_PATTERN = re.compile(r"^\[(\w+(?:\s*,\s*\w+)+)\]$")


def python_schema_type(py_type) -> str | None:
    """Schema type for a Python class, or None if it isn't a known primitive."""
    if not isinstance(py_type, type):
        return None
    if py_type in PYTHON_TYPE_MAPPING:
        return PYTHON_TYPE_MAPPING[py_type]
    # bool is an int subclass, so it must be checked first
    if issubclass(py_type, bool):
        return PYTHON_TYPE_MAPPING[bool]
    for klass, schema_type in PYTHON_TYPE_MAPPING.items():
        if issubclass(py_type, klass):
            return schema_type
    return None


def python_format(py_type) -> str | None:
    if not isinstance(py_type, type):
        return None
    for klass, fmt in PYTHON_TYPE_FORMATS.items():
        if issubclass(py_type, klass):
            return fmt
    return None


def resolve_schema_type(type_) -> str:
    """Schema type name for a class or type name. Unknown types are strings."""
    if type_ is None:
        return STRING
    if isinstance(type_, type):
        return python_schema_type(type_) or STRING
    name = str(type_)
    if TYPED_ARRAY_PATTERN.match(name):
        return ARRAY
    return primitive_type(name) or STRING


def typed_array_member(type_) -> str | None:
    """"[Integer]" -> "Integer"."""
    if not isinstance(type_, str):
        return None
    match = TYPED_ARRAY_PATTERN.match(type_.strip())
    return match.group(1) if match else None


def multi_types(type_) -> list | None:
    """"[String, Integer]" or (str, int) -> the list of member types."""
    if isinstance(type_, tuple) and len(type_) > 1:
        return list(type_)
    if isinstance(type_, str):
        match = MULTI_TYPE_PATTERN.match(type_.strip())
        if match:
            return [part.strip() for part in match.group(1).split(",")]
    return None


def generic_member(type_):
    """list[T] -> T; None for anything that isn't a parameterized sequence."""
    origin = typing.get_origin(type_)
    if origin in (list, tuple, set, frozenset):
        args = typing.get_args(type_)
        return args[0] if args else str
    return None


def is_array_type(type_) -> bool:
    if type_ in (list, tuple, set, frozenset):
        return True
    if generic_member(type_) is not None:
        return True
    return isinstance(type_, str) and (type_.lower() in ("list", "array") or typed_array_member(type_) is not None)


def primitive_schema(type_) -> Schema:
    """A leaf schema for a primitive class or name."""
    if isinstance(type_, type):
        if issubclass(type_, dict):
            return Schema(type=OBJECT)
        if type_ in (list, tuple, set, frozenset):
            return Schema(type=ARRAY, items=Schema(type=STRING))
        return Schema(type=resolve_schema_type(type_), format=python_format(type_))
    return Schema(type=resolve_schema_type(type_))


def declaration_for(type_, ctx):
    """The declaration class behind type_ (class or registered name), if any."""
    if isinstance(type_, type) and typing.get_origin(type_) is None:
        return type_ if ctx.can_build(type_) else None
    if isinstance(type_, str) and type_.isidentifier():
        found = ctx.lookup(type_)
        if found is None and primitive_type(type_) is None:
            logger.debug("Type name %r is neither a declaration nor a primitive", type_)
        return found
    return None


def schema_for_type(type_, ctx) -> Schema:
    """Resolve any supported type spelling to a schema.

    Declaration classes go through the introspectors and come back as
    their canonical schema; callers must not mutate the result.
    """
    if type_ is None:
        return Schema(type=STRING)

    declaration = declaration_for(type_, ctx)
    if declaration is not None:
        return ctx.build(declaration)

    member = generic_member(type_)
    if member is not None:
        return Schema(type=ARRAY, items=schema_for_type(member, ctx))

    members = multi_types(type_)
    if members:
        return Schema(one_of=[schema_for_type(m, ctx) for m in members])

    if isinstance(type_, list):
        inner = type_[0] if type_ else None
        return Schema(type=ARRAY, items=schema_for_type(inner, ctx))

    member_name = typed_array_member(type_)
    if member_name is not None:
        return Schema(type=ARRAY, items=schema_for_type(member_name, ctx))

    return primitive_schema(type_)
