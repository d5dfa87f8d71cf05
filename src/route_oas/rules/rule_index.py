"""Path-indexed view of a contract's rules.

A contract's rules describe nested structures through ``key`` and
``each`` nodes. RuleIndex flattens them into two lookups keyed by a
"/"-joined path ("address/street", "tags/[]"):

- constraints_by_path: the constraints attached directly at that path
- required_by_path: field names required under a parent path ("" is the root)
"""

import logging
from typing import Any

from route_oas.rules.ast import EACH, IMPLICATION, KEY, Node, arg_value, normalize
from route_oas.rules.constraints import ConstraintSet, extract

logger = logging.getLogger(__name__)

ARRAY_SEGMENT = "[]"


def join_path(parent: str, segment: str) -> str:
    return f"{parent}/{segment}" if parent else segment


def _prune(node: Node | None) -> Node | None:
    """Copy of node without nested key/each subtrees."""
    if node is None or node.tag in (KEY, EACH):
        return None
    if node.is_predicate:
        return node
    if node.tag == IMPLICATION:
        return node._replace(children=tuple(_prune(c) for c in node.children))
    children = tuple(c for c in (_prune(c) for c in node.children) if c is not None)
    return node._replace(children=children)


def _key_name(args: tuple) -> str | None:
    for arg in args:
        name = arg_value(arg, "name")
        if name is not None:
            return str(name)
    for arg in args:
        if isinstance(arg, (list, tuple)):
            continue
        if arg is not None:
            return str(arg)
    return None


class RuleIndex:
    def __init__(self):
        self.constraints_by_path: dict[str, ConstraintSet] = {}
        self.required_by_path: dict[str, list[str]] = {}

    @classmethod
    def build(cls, rules: dict[str, Any]) -> tuple[dict[str, ConstraintSet], dict[str, list[str]]]:
        index = cls()
        for name, rule in (rules or {}).items():
            node = normalize(rule)
            if node is None:
                logger.debug("Skipping non-AST rule for %s: %r", name, rule)
                continue
            index._collect_constraints(node, "")
            index._collect_required(node, "", in_condition=False)
            if str(name) not in index.constraints_by_path:
                # rule written without a key wrapper: it constrains the field itself
                direct = extract(node)
                direct.required = None
                index._add(str(name), direct)
        return index.constraints_by_path, index.required_by_path

    def _add(self, path: str, constraints: ConstraintSet) -> None:
        self.constraints_by_path.setdefault(path, ConstraintSet()).merge(constraints)

    def _collect_constraints(self, node: Node | None, path: str) -> None:
        if node is None or node.is_predicate:
            return
        if node.tag in (KEY, EACH):
            child_path = join_path(path, node.name if node.tag == KEY else ARRAY_SEGMENT)
            value = node.children[0] if node.children else None
            direct = extract(_prune(value)) if value is not None else ConstraintSet()
            direct.required = None
            self._add(child_path, direct)
            self._collect_constraints(value, child_path)
            return
        if node.tag == IMPLICATION:
            # only the consequent constrains the value
            self._collect_constraints(node.children[1], path)
            return
        for child in node.children:
            self._collect_constraints(child, path)

    def _collect_required(self, node: Node | None, path: str, in_condition: bool) -> None:
        if node is None:
            return
        if node.is_predicate:
            if node.name == "key?" and not in_condition:
                name = _key_name(node.args)
                if name is None:
                    return
                names = self.required_by_path.setdefault(path, [])
                if name not in names:
                    names.append(name)
            return
        if node.tag == KEY:
            self._collect_required(node.children[0] if node.children else None, join_path(path, node.name), in_condition)
        elif node.tag == EACH:
            self._collect_required(node.children[0] if node.children else None, join_path(path, ARRAY_SEGMENT), in_condition)
        elif node.tag == IMPLICATION:
            condition, consequent = node.children
            self._collect_required(condition, path, True)
            self._collect_required(consequent, path, in_condition)
        else:
            for child in node.children:
                self._collect_required(child, path, in_condition)
