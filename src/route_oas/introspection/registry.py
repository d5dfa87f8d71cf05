"""Introspector dispatch and per-run build state.

Each generate() call creates one BuildContext. It carries the schema
registry (source type -> Schema), the stack of types currently being
built, and the introspectors used to dispatch nested references.
"""

import logging
from typing import Any, Callable

from route_oas.constants import OBJECT
from route_oas.model.schema import Schema

logger = logging.getLogger(__name__)

CYCLE_DESCRIPTION = "Cycle detected while introspecting"


def canonical_name(source, schema_name: str | None = None) -> str:
    """Stable definition name for a declaration class."""
    if schema_name:
        return str(schema_name)
    qualname = getattr(source, "__qualname__", None) or getattr(source, "__name__", None) or str(source)
    return qualname.replace("<locals>.", "")


class IntrospectorRegistry:
    """Ordered list of introspectors; the first one that handles a source wins."""

    def __init__(self, introspectors=None):
        self._introspectors = list(introspectors or [])

    def find(self, source):
        for introspector in self._introspectors:
            if introspector.handles(source):
                return introspector
        return None

    def handles(self, source) -> bool:
        return self.find(source) is not None

    def lookup(self, name: str):
        """Resolve a declaration class from its name."""
        for introspector in self._introspectors:
            found = introspector.lookup(name)
            if found is not None:
                return found
        return None

    def build_schema(self, source, ctx: "BuildContext") -> Schema | None:
        introspector = self.find(source)
        if introspector is None:
            return None
        return introspector.build_schema(source, ctx)


def default_registry() -> IntrospectorRegistry:
    from route_oas.introspection.contract import ContractIntrospector
    from route_oas.introspection.entity import EntityIntrospector

    return IntrospectorRegistry([EntityIntrospector(), ContractIntrospector()])


class BuildContext:
    def __init__(self, introspectors: IntrospectorRegistry | None = None):
        self.stack: list[Any] = []
        self.registry: dict[Any, Schema] = {}
        self.introspectors = introspectors or default_registry()

    def can_build(self, source) -> bool:
        return isinstance(source, type) and self.introspectors.handles(source)

    def build(self, source) -> Schema | None:
        return self.introspectors.build_schema(source, self)

    def lookup(self, name: str):
        return self.introspectors.lookup(name)

    def is_canonical(self, schema: Schema | None) -> bool:
        return schema is not None and schema.canonical_name is not None

    def memoized(self, source, name: str, populate: Callable[[Schema], None]) -> Schema:
        """Return the schema for source, building it at most once per run.

        A type that references itself (directly or through others) gets the
        placeholder back instead of recursing.
        """
        existing = self.registry.get(source)
        if existing is not None and source not in self.stack:
            return existing

        schema = existing
        if schema is None:
            schema = Schema(type=OBJECT, canonical_name=name)
            self.registry[source] = schema

        if source in self.stack:
            if schema.description is None:
                schema.description = CYCLE_DESCRIPTION
            logger.debug("Cycle detected at %s, returning placeholder", name)
            return schema

        self.stack.append(source)
        try:
            populate(schema)
        finally:
            self.stack.pop()
        return schema
