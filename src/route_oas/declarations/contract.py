"""Validation-contract declarations.

A contract names its fields' types and the rules that validate them::

    class CreateUserContract(Contract):
        types = {
            "name": String,
            "age": Integer.optional_(),
            "tags": Array(String),
        }
        rules = {
            "name": required("name", pred("str?"), pred("size?", range(1, 51))),
            "age": optional("age", pred("int?"), pred("gteq?", 0)),
        }

Rules are plain AST tuples (see route_oas.rules.ast), so contracts from
any validation library can be adapted by producing the same shape.
"""

import datetime
import decimal
from typing import Any, get_origin

_CONTRACTS: dict[str, type] = {}


class Type:
    """A primitive type with optional metadata, allowed values and rule ASTs."""

    def __init__(self, primitive, meta=None, values=None, rules=None, optional=False, omittable=False):
        self.primitive = primitive
        self.meta = dict(meta or {})
        self.values = list(values) if values is not None else None
        self.rules = list(rules or [])
        self.optional = optional
        self.omittable = omittable

    def _copy(self, **changes) -> "Type":
        fields = {
            "meta": self.meta,
            "values": self.values,
            "rules": self.rules,
            "optional": self.optional,
            "omittable": self.omittable,
        }
        fields.update(changes)
        return Type(self.primitive, **fields)

    def constrained(self, **meta) -> "Type":
        return self._copy(meta={**self.meta, **meta})

    def with_rules(self, *asts) -> "Type":
        return self._copy(rules=[*self.rules, *asts])

    def enum(self, *values) -> "Type":
        return self._copy(values=list(values))

    def optional_(self) -> "Type":
        return self._copy(optional=True)

    def omittable_(self) -> "Type":
        return self._copy(omittable=True)

    def __or__(self, other):
        return Sum(self, other)

    def __repr__(self):
        name = getattr(self.primitive, "__name__", self.primitive)
        return f"Type({name})"


class Array:
    def __init__(self, member, meta=None, rules=None, optional=False, omittable=False):
        self.member = member
        self.meta = dict(meta or {})
        self.rules = list(rules or [])
        self.optional = optional
        self.omittable = omittable

    def __or__(self, other):
        return Sum(self, other)

    def __repr__(self):
        return f"Array({self.member!r})"


class Key:
    def __init__(self, name: str, type_, required: bool = True):
        self.name = str(name)
        self.type = type_
        self.required = required


class Hash:
    """An inline object type. keys is a {name: type} mapping or a list of Key."""

    def __init__(self, keys=None, optional=False, omittable=False):
        if isinstance(keys, dict):
            keys = [Key(name, type_) for name, type_ in keys.items()]
        self.keys = list(keys or [])
        self.optional = optional
        self.omittable = omittable
        self.rules = []

    def __or__(self, other):
        return Sum(self, other)

    def __repr__(self):
        return f"Hash({[k.name for k in self.keys]})"


class Maybe:
    """Nullable wrapper around another type."""

    def __init__(self, type_):
        self.type = type_
        self.rules = list(getattr(type_, "rules", None) or [])
        self.optional = False
        self.omittable = getattr(type_, "omittable", False)

    def __or__(self, other):
        return Sum(self, other)


class Sum:
    """A union of types, usually built with ``|``."""

    def __init__(self, *branches):
        flat = []
        for branch in branches:
            if isinstance(branch, Sum):
                flat.extend(branch.branches)
            else:
                flat.append(branch)
        self.branches = flat
        self.rules = []
        self.optional = False
        self.omittable = False

    def __or__(self, other):
        return Sum(self, other)

    def __repr__(self):
        return " | ".join(repr(b) for b in self.branches)


String = Type(str)
Integer = Type(int)
Float = Type(float)
Decimal = Type(decimal.Decimal)
Bool = Type(bool)
Date = Type(datetime.date)
DateTime = Type(datetime.datetime)
Nil = Type(type(None))


def Enum(*values, primitive=str) -> Type:
    return Type(primitive, values=values)


def is_nil(type_) -> bool:
    return isinstance(type_, Type) and type_.primitive is type(None)


# --- rule helpers -----------------------------------------------------------


def pred(name: str, *args) -> tuple:
    """A predicate leaf, e.g. pred("size?", range(1, 51))."""
    return ("predicate", (name, list(args)))


def _as_node(item):
    if isinstance(item, str):
        return pred(item)
    return item


def _conjunction(preds) -> tuple | None:
    nodes = [_as_node(p) for p in preds]
    if not nodes:
        return None
    if len(nodes) == 1:
        return nodes[0]
    return ("and", nodes)


def required(name: str, *preds) -> tuple:
    """The key must be present and its value must satisfy preds."""
    return ("and", [pred("key?", ("name", name)), ("key", (name, _conjunction(preds)))])


def optional(name: str, *preds) -> tuple:
    """preds apply only when the key is present."""
    return ("implication", [pred("key?", ("name", name)), ("key", (name, _conjunction(preds)))])


def each(*preds) -> tuple:
    return ("each", _conjunction(preds))


def either(*preds) -> tuple:
    return ("or", [_as_node(p) for p in preds])


# --- contracts --------------------------------------------------------------


class Contract:
    """Base class for contract declarations. types and rules merge across subclasses."""

    types: dict[str, Any] = {}
    rules: dict[str, Any] = {}
    schema_name: str | None = None

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        _CONTRACTS[cls.__name__] = cls
        _CONTRACTS[cls.__qualname__.replace("<locals>.", "")] = cls

    @classmethod
    def _merged(cls, attr: str) -> dict:
        merged: dict = {}
        for klass in reversed(cls.__mro__):
            if isinstance(klass, type) and issubclass(klass, Contract):
                merged.update(klass.__dict__.get(attr, {}))
        return merged

    @classmethod
    def all_types(cls) -> dict[str, Any]:
        return cls._merged("types")

    @classmethod
    def all_rules(cls) -> dict[str, Any]:
        return cls._merged("rules")


def is_contract(value) -> bool:
    return isinstance(value, type) and get_origin(value) is None and issubclass(value, Contract) and value is not Contract


def find_contract(name: str) -> type | None:
    return _CONTRACTS.get(str(name))


class ContractAdapter:
    """Read-only access to a contract's declarations."""

    def types(self, contract) -> dict[str, Any]:
        return contract.all_types()

    def rules(self, contract) -> dict[str, Any]:
        return contract.all_rules()

    def parent(self, contract) -> type | None:
        base = contract.__bases__[0] if contract.__bases__ else None
        return base if is_contract(base) else None

    def schema_name(self, contract) -> str | None:
        return contract.__dict__.get("schema_name")
