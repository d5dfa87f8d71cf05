"""Constraint extraction from validation-rule ASTs.

extract() visits a normalized rule tree and folds every predicate it finds
into a ConstraintSet. OR branches are intersected so the result never
claims more than every branch guarantees.
"""

import logging
import re
from numbers import Number
from typing import Any, Callable

from pydantic import BaseModel, Field

from route_oas.rules.ast import AND, EACH, IMPLICATION, KEY, NOT, OR, Node, arg_value, normalize

logger = logging.getLogger(__name__)

# type-check predicates already represented by the resolved schema type
TYPE_CHECK_PREDICATES = (
    "key?", "key", "str?", "int?", "bool?", "boolean?", "array?", "hash?", "number?", "float?",
)


class ConstraintSet(BaseModel):
    """Validation-derived bounds and flags for one field."""

    enum: list[Any] | None = None
    nullable: bool | None = None
    min_size: Any = None
    max_size: Any = None
    minimum: Any = None
    maximum: Any = None
    exclusive_minimum: bool | None = None
    exclusive_maximum: bool | None = None
    pattern: str | None = None
    excluded_values: list[Any] | None = None
    required: bool | None = None  # None means "unknown"
    type_predicate: Any = None
    parity: str | None = None  # odd / even
    format: str | None = None
    extensions: dict[str, Any] = Field(default_factory=dict)
    unhandled_predicates: list[str] = Field(default_factory=list)

    def merge(self, incoming: "ConstraintSet | None") -> "ConstraintSet":
        """Fold incoming into self: first non-None value wins, except required."""
        if incoming is None:
            return self
        for field in (
            "enum", "nullable", "min_size", "max_size", "minimum", "maximum",
            "exclusive_minimum", "exclusive_maximum", "pattern", "excluded_values",
            "type_predicate", "parity", "format",
        ):
            if getattr(self, field) is None and getattr(incoming, field) is not None:
                setattr(self, field, getattr(incoming, field))
        for key, value in incoming.extensions.items():
            self.extensions.setdefault(key, value)
        for name in incoming.unhandled_predicates:
            if name not in self.unhandled_predicates:
                self.unhandled_predicates.append(name)
        if incoming.required is not None:
            self.required = incoming.required
        return self

    def visible_unhandled(self) -> list[str]:
        return [p for p in self.unhandled_predicates if p not in TYPE_CHECK_PREDICATES]


# --- argument extraction -------------------------------------------------


def _numeric(arg) -> Any:
    if isinstance(arg, bool):
        return None
    if isinstance(arg, Number):
        return arg
    if isinstance(arg, (list, tuple)) and len(arg) == 2 and isinstance(arg[0], str):
        value = arg[1]
        if isinstance(value, Number) and not isinstance(value, bool) and arg[0] != "input":
            return value
    return None


def _range(arg) -> tuple[Any, Any, bool] | None:
    """Return (low, high, exclusive_high) for a range-like argument."""
    value = arg_value(arg, "range", "size")
    if value is not None:
        arg = value
    if isinstance(arg, range):
        return arg.start, arg.stop, True
    if (
        isinstance(arg, tuple)
        and len(arg) == 2
        and all(v is None or (isinstance(v, Number) and not isinstance(v, bool)) for v in arg)
    ):
        return arg[0], arg[1], False
    return None


def _list(arg) -> list | None:
    value = arg_value(arg, "list", "set")
    if value is not None:
        arg = value
    if isinstance(arg, (set, frozenset)):
        return sorted(arg, key=repr)
    if isinstance(arg, (list, tuple)):
        return list(arg)
    return None


def _literal(arg) -> Any:
    value = arg_value(arg, "value", "val", "literal", "class", "left", "right")
    if value is not None:
        return value
    if isinstance(arg, (list, tuple)) and arg and isinstance(arg[0], (list, tuple)):
        return _literal(arg[0])
    return arg


def _pattern(arg) -> str | None:
    value = arg_value(arg, "regex", "regexp")
    if value is not None:
        arg = value
    if isinstance(arg, re.Pattern):
        return arg.pattern
    if isinstance(arg, str):
        return arg
    return None


def _is_input(arg) -> bool:
    return isinstance(arg, (list, tuple)) and len(arg) == 2 and arg[0] == "input"


def _plain_args(args: tuple) -> list:
    """Drop ("input", ...) placeholders that carry no constraint information."""
    return [a for a in args if not _is_input(a)]


def _first(args: list):
    return args[0] if args else None


# --- predicate handlers --------------------------------------------------


def _key(c: ConstraintSet, args: list) -> None:
    if c.required is None:
        c.required = True


def _size(c: ConstraintSet, args: list) -> None:
    rng = _range(_first(args))
    if rng:
        low, high, exclusive = rng
        if low is not None:
            c.min_size = low
        if high is not None:
            c.max_size = high - 1 if exclusive else high
        return
    low = _numeric(_first(args))
    high = _numeric(args[1]) if len(args) > 1 else None
    if low is not None:
        c.min_size = low
    if high is not None:
        c.max_size = high


def _min_size(c: ConstraintSet, args: list) -> None:
    low = _numeric(_first(args))
    if low is not None:
        c.min_size = low


def _max_size(c: ConstraintSet, args: list) -> None:
    high = _numeric(_first(args))
    if high is not None:
        c.max_size = high


def _range_predicate(c: ConstraintSet, args: list) -> None:
    rng = _range(_first(args))
    if not rng:
        return
    low, high, exclusive = rng
    if low is not None:
        c.minimum = low
    if high is not None:
        c.maximum = high
        c.exclusive_maximum = exclusive


def _empty(c: ConstraintSet, args: list) -> None:
    c.min_size = 0
    c.max_size = 0


def _nullable(c: ConstraintSet, args: list) -> None:
    c.nullable = True


def _filled(c: ConstraintSet, args: list) -> None:
    c.nullable = False


def _included_in(c: ConstraintSet, args: list) -> None:
    values = _list(_first(args))
    if values is not None:
        c.enum = values


def _excluded_from(c: ConstraintSet, args: list) -> None:
    values = _list(_first(args))
    if values is not None:
        c.excluded_values = values


def _eql(c: ConstraintSet, args: list) -> None:
    value = _literal(_first(args))
    if value is not None:
        c.enum = [value]


def _gt(c: ConstraintSet, args: list) -> None:
    c.minimum = _numeric(_first(args))
    if c.minimum is not None:
        c.exclusive_minimum = True


def _gteq(c: ConstraintSet, args: list) -> None:
    c.minimum = _numeric(_first(args))


def _lt(c: ConstraintSet, args: list) -> None:
    c.maximum = _numeric(_first(args))
    if c.maximum is not None:
        c.exclusive_maximum = True


def _lteq(c: ConstraintSet, args: list) -> None:
    c.maximum = _numeric(_first(args))


def _multiple_of(c: ConstraintSet, args: list) -> None:
    value = _numeric(_first(args))
    if value is not None:
        c.extensions.setdefault("multipleOf", value)


def _format_pattern(c: ConstraintSet, args: list) -> None:
    pattern = _pattern(_first(args))
    if pattern:
        c.pattern = pattern


def _string_format(fmt: str) -> Callable:
    def handler(c: ConstraintSet, args: list) -> None:
        c.format = fmt

    return handler


def _boolean(c: ConstraintSet, args: list) -> None:
    if c.type_predicate is None:
        c.type_predicate = "boolean"


def _type(c: ConstraintSet, args: list) -> None:
    value = _literal(_first(args))
    c.type_predicate = getattr(value, "__name__", value)


def _parity(parity: str) -> Callable:
    def handler(c: ConstraintSet, args: list) -> None:
        c.parity = parity

    return handler


def _bytesize(c: ConstraintSet, args: list) -> None:
    _size(c, args)


def _noop(c: ConstraintSet, args: list) -> None:
    pass


PREDICATE_HANDLERS: dict[str, Callable[[ConstraintSet, list], None]] = {
    "key?": _key,
    "size?": _size,
    "min_size?": _min_size,
    "max_size?": _max_size,
    "bytesize?": _bytesize,
    "min_bytesize?": _min_size,
    "max_bytesize?": _max_size,
    "range?": _range_predicate,
    "empty?": _empty,
    "maybe": _nullable,
    "nil?": _nullable,
    "filled?": _filled,
    "included_in?": _included_in,
    "excluded_from?": _excluded_from,
    "eql?": _eql,
    "true?": lambda c, args: setattr(c, "enum", [True]),
    "false?": lambda c, args: setattr(c, "enum", [False]),
    "gt?": _gt,
    "gteq?": _gteq,
    "min?": _gteq,
    "lt?": _lt,
    "lteq?": _lteq,
    "max?": _lteq,
    "multiple_of?": _multiple_of,
    "divisible_by?": _multiple_of,
    "format?": _format_pattern,
    "uuid?": _string_format("uuid"),
    "uri?": _string_format("uri"),
    "url?": _string_format("uri"),
    "email?": _string_format("email"),
    "date?": _string_format("date"),
    "time?": _string_format("date-time"),
    "date_time?": _string_format("date-time"),
    "bool?": _boolean,
    "boolean?": _boolean,
    "type?": _type,
    "odd?": _parity("odd"),
    "even?": _parity("even"),
    "str?": _noop,
    "int?": _noop,
    "array?": _noop,
    "hash?": _noop,
    "number?": _noop,
    "float?": _noop,
}


def handle_predicate(node: Node, constraints: ConstraintSet) -> None:
    handler = PREDICATE_HANDLERS.get(node.name)
    if handler is None:
        logger.debug("No handler for predicate %s", node.name)
        if node.name not in constraints.unhandled_predicates:
            constraints.unhandled_predicates.append(node.name)
        return
    handler(constraints, _plain_args(node.args))


# --- tree walk -------------------------------------------------------------


def extract(ast) -> ConstraintSet:
    """Extract the constraints expressed by one rule AST."""
    constraints = ConstraintSet()
    _visit(normalize(ast), constraints)
    return constraints


def _visit(node: Node | None, constraints: ConstraintSet) -> None:
    if node is None:
        return
    if node.is_predicate:
        handle_predicate(node, constraints)
    elif node.tag == OR:
        branches = [_branch(child) for child in node.children]
        constraints.merge(intersect(branches))
    elif node.tag == IMPLICATION:
        condition, consequent = node.children
        # the condition only says when the consequent applies
        _visit(condition, ConstraintSet())
        _visit(consequent, constraints)
    elif node.tag == NOT:
        for child in node.children:
            constraints.merge(negate(child))
    elif node.tag in (KEY, EACH, AND):
        for child in node.children:
            constraints.merge(_branch(child))


def _branch(node: Node) -> ConstraintSet:
    c = ConstraintSet()
    _visit(node, c)
    return c


def negate(node: Node) -> ConstraintSet:
    """Constraints implied by ``not(node)``.

    Only nil? and included_in? invert into something a schema can say.
    Anything else is recorded as unhandled.
    """
    result = ConstraintSet()
    if node.is_predicate and node.name in ("nil?", "maybe"):
        result.nullable = False
    elif node.is_predicate and node.name == "included_in?":
        result.excluded_values = _list(_first(_plain_args(node.args)))
    elif node.is_predicate and node.name == "excluded_from?":
        pass
    else:
        label = node.name if node.is_predicate else node.tag
        result.unhandled_predicates.append(f"not({label})")
    return result


# --- OR intersection --------------------------------------------------------

INTERSECTED_SCALARS = ("pattern", "format", "parity", "type_predicate", "required")


def _common(values: list) -> Any:
    first = values[0]
    return first if all(v == first for v in values[1:]) else None


def _bound(branches: list[ConstraintSet], attr: str, flag: str, pick) -> tuple[Any, bool | None]:
    """The tightest bound every branch declares, with the flag of the branches supplying it."""
    values = [getattr(b, attr) for b in branches]
    if any(v is None for v in values):
        return None, None
    chosen = pick(values)
    flags = [bool(getattr(b, flag)) for b in branches if getattr(b, attr) == chosen]
    return chosen, (True if all(flags) else None)


def _size_bound(branches: list[ConstraintSet], attr: str, pick) -> Any:
    values = [getattr(b, attr) for b in branches]
    if any(v is None for v in values):
        return None
    return pick(values)


def intersect(branches: list[ConstraintSet]) -> ConstraintSet | None:
    """Keep only what every branch guarantees."""
    if not branches:
        return None
    if len(branches) == 1:
        return branches[0]

    result = ConstraintSet()
    enums = [b.enum for b in branches]
    if all(e is not None for e in enums):
        result.enum = [v for v in enums[0] if all(v in e for e in enums[1:])]
    excluded = [b.excluded_values for b in branches]
    if all(e is not None for e in excluded):
        common = [v for v in excluded[0] if all(v in e for e in excluded[1:])]
        result.excluded_values = common or None

    result.min_size = _size_bound(branches, "min_size", max)
    result.max_size = _size_bound(branches, "max_size", min)
    result.minimum, result.exclusive_minimum = _bound(branches, "minimum", "exclusive_minimum", max)
    result.maximum, result.exclusive_maximum = _bound(branches, "maximum", "exclusive_maximum", min)

    nullable = [b.nullable for b in branches]
    if any(n is True for n in nullable):
        result.nullable = True
    elif all(n is False for n in nullable):
        result.nullable = False

    for field in INTERSECTED_SCALARS:
        setattr(result, field, _common([getattr(b, field) for b in branches]))
    for key, value in branches[0].extensions.items():
        if all(key in b.extensions and b.extensions[key] == value for b in branches[1:]):
            result.extensions[key] = value
    for branch in branches:
        for name in branch.unhandled_predicates:
            if name not in result.unhandled_predicates:
                result.unhandled_predicates.append(name)
    return result


def extract_all(rules: dict[str, Any], types: dict[str, Any] | None = None) -> dict[str, ConstraintSet]:
    """Constraints per top-level field, from named rules and type-carried rules."""
    result: dict[str, ConstraintSet] = {}
    for name, rule in (rules or {}).items():
        result.setdefault(str(name), ConstraintSet()).merge(extract(rule))
    for name, type_ in (types or {}).items():
        for rule in getattr(type_, "rules", None) or ():
            result.setdefault(str(name), ConstraintSet()).merge(extract(rule))
    return result
