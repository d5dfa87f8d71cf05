"""Rule AST ingestion.

Validation rules arrive as nested tuples/lists tagged with a leading
string, e.g.::

    ("and", [("predicate", ("key?", [("name", "age")])),
             ("key", ("age", ("predicate", ("int?", []))))])

Logical nodes may wrap their children in a list or splat them as
siblings depending on where the AST came from. normalize() turns both
shapes into a single Node tree before any visitor runs.
"""

import logging
from enum import Enum
from typing import Any, NamedTuple

logger = logging.getLogger(__name__)

PREDICATE = "predicate"
AND = "and"
OR = "or"
IMPLICATION = "implication"
NOT = "not"
KEY = "key"
EACH = "each"

# tags that behave like AND once normalized
AND_LIKE = ("and", "set", "rule")
LOGIC_TAGS = (PREDICATE, AND, OR, IMPLICATION, NOT, KEY, EACH, "set", "rule")


class Node(NamedTuple):
    tag: str
    children: tuple = ()
    name: str | None = None  # predicate name or key name
    args: tuple = ()  # predicate arguments

    @property
    def is_predicate(self) -> bool:
        return self.tag == PREDICATE


def _tag_of(value) -> str | None:
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, str):
        return value
    return None


def _is_node(value) -> bool:
    return isinstance(value, (list, tuple)) and len(value) > 0 and _tag_of(value[0]) is not None


def _is_predicate_name(tag: str) -> bool:
    return tag.endswith("?") or tag == "maybe"


def _children_of(raw) -> list:
    """Children of a logical node, for both wrapped and splatted shapes."""
    payload = raw[1:]
    if len(payload) == 1 and isinstance(payload[0], (list, tuple)) and not _is_node(payload[0]):
        # wrapped: ("and", [a, b])
        return list(payload[0])
    return list(payload)


def _predicate(name: str, args) -> Node:
    if args is None:
        args = ()
    elif not isinstance(args, (list, tuple)):
        args = (args,)
    return Node(PREDICATE, (), name, tuple(args))


def normalize(raw) -> Node | None:
    """Normalize a raw rule AST into a Node tree. Returns None for non-AST input."""
    if isinstance(raw, Node):
        return raw
    if not _is_node(raw):
        return None

    tag = _tag_of(raw[0])

    if tag == PREDICATE:
        body = raw[1] if len(raw) > 1 else None
        if not (isinstance(body, (list, tuple)) and body and _tag_of(body[0])):
            logger.debug("Ignoring malformed predicate node: %r", raw)
            return None
        return _predicate(_tag_of(body[0]), body[1] if len(body) > 1 else ())

    if tag not in LOGIC_TAGS and _is_predicate_name(tag):
        # bare predicate: ("size?", args)
        return _predicate(tag, raw[1] if len(raw) > 1 else ())

    if tag == KEY:
        # ("key", (name, value)) or ("key", name, value)
        info = raw[1:] if len(raw) > 1 and not isinstance(raw[1], (list, tuple)) else (raw[1] if len(raw) > 1 else None)
        if not isinstance(info, (list, tuple)) or not info:
            return None
        child = normalize(info[1]) if len(info) > 1 else None
        return Node(KEY, (child,) if child else (), str(info[0]))

    if tag == IMPLICATION:
        pair = _children_of(raw)
        condition = normalize(pair[0]) if len(pair) > 0 else None
        consequent = normalize(pair[1]) if len(pair) > 1 else None
        return Node(IMPLICATION, (condition, consequent))

    if tag in (NOT, EACH):
        kids = _children_of(raw)
        child = normalize(kids[0]) if kids else None
        return Node(tag, (child,) if child else ())

    children = tuple(c for c in (normalize(child) for child in _children_of(raw)) if c is not None)
    if tag == OR:
        return Node(OR, children)
    if tag not in AND_LIKE:
        logger.debug("Treating unknown AST tag %r as a conjunction", tag)
    return Node(AND, children)


def arg_value(arg: Any, *names: str) -> Any:
    """Unwrap a ``(name, value)`` argument pair when its name is one of names."""
    if isinstance(arg, (list, tuple)) and len(arg) == 2 and _tag_of(arg[0]) in names:
        return arg[1]
    return None
