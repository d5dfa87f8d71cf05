"""Entity/exposure declarations.

An entity lists the fields it exposes::

    class UserEntity(Entity):
        documentation = {"desc": "A user"}
        exposures = [
            expose("id", type=int, desc="User id"),
            expose("name", type=str),
            expose("posts", using="PostEntity", is_array=True, if_=lambda obj, opts: opts.get("full")),
        ]

Subclasses inherit their parent's exposures. Entities register by name
on definition so string references ("PostEntity") resolve lazily.
"""

from typing import Any, Callable, get_origin

from pydantic import BaseModel, Field

_ENTITIES: dict[str, type] = {}


class Exposure(BaseModel):
    """One exposed field of an entity."""

    key: str
    type: Any = None  # python type, "[T]" string, list[T], entity class or name
    using: Any = None  # entity class or name that renders this field
    conditions: list[Any] = Field(default_factory=list)  # if_/unless callables or flags
    merge: bool = False  # inline the target entity's fields into the parent
    documentation: dict[str, Any] = Field(default_factory=dict)


def expose(
    key: str,
    type: Any = None,
    using: Any = None,
    if_: Callable | Any = None,
    unless: Callable | Any = None,
    merge: bool = False,
    documentation: dict | None = None,
    **doc,
) -> Exposure:
    """Declare an exposure. Extra keyword arguments are documentation keys."""
    documentation = {**(documentation or {}), **doc}
    conditions = [c for c in (if_, unless) if c is not None]
    return Exposure(
        key=str(key),
        type=type,
        using=using,
        conditions=conditions,
        merge=merge,
        documentation=documentation,
    )


class Entity:
    """Base class for entity declarations."""

    exposures: list[Exposure] = []
    documentation: dict[str, Any] = {}
    schema_name: str | None = None  # overrides the class-derived name

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        _ENTITIES[cls.__name__] = cls
        _ENTITIES[cls.__qualname__.replace("<locals>.", "")] = cls

    @classmethod
    def root_exposures(cls) -> list[Exposure]:
        """Exposures across the inheritance chain, parent first.

        A subclass re-exposing a key replaces the inherited exposure in place.
        """
        by_key: dict[str, Exposure] = {}
        for klass in reversed(cls.__mro__):
            if not (isinstance(klass, type) and issubclass(klass, Entity)):
                continue
            for exposure in klass.__dict__.get("exposures", []):
                by_key[exposure.key] = exposure
        return list(by_key.values())


def is_entity(value) -> bool:
    return isinstance(value, type) and get_origin(value) is None and issubclass(value, Entity) and value is not Entity


def find_entity(name: str) -> type | None:
    return _ENTITIES.get(str(name))


class EntityAdapter:
    """Read-only access to an entity's declarations."""

    def exposures(self, entity) -> list[Exposure]:
        return entity.root_exposures()

    def condition_predicates(self, exposure: Exposure) -> list:
        return list(exposure.conditions)

    def merge_flag(self, exposure: Exposure) -> bool:
        return bool(exposure.merge or exposure.documentation.get("merge"))

    def documentation(self, entity) -> dict:
        return dict(getattr(entity, "documentation", None) or {})

    def parent(self, entity) -> type | None:
        base = entity.__bases__[0] if entity.__bases__ else None
        return base if is_entity(base) else None
