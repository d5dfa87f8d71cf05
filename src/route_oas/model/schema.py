"""Version-agnostic schema node.

Schema instances form a directed graph that may contain cycles. A node
with a canonical_name is emitted once in the shared definitions section
and referenced everywhere else, so it must not be mutated once handed out.
Compare nodes by identity (``is``); value equality does not terminate on
cyclic graphs.
"""

from typing import Any

from pydantic import BaseModel, Field


class Schema(BaseModel):
    """A JSON-schema-like node shared by every exporter."""

    type: str | list[str] | None = None  # string / integer / number / boolean / object / array / file
    format: str | None = None
    description: str | None = None
    properties: dict[str, "Schema"] = Field(default_factory=dict)  # insertion ordered
    required: list[str] = Field(default_factory=list)
    items: "Schema | None" = None
    enum: list[Any] | None = None
    minimum: Any = None
    maximum: Any = None
    exclusive_minimum: bool | None = None
    exclusive_maximum: bool | None = None
    min_length: int | None = None
    max_length: int | None = None
    min_items: int | None = None
    max_items: int | None = None
    pattern: str | None = None
    nullable: bool | None = None
    additional_properties: Any = None  # bool or schema dict
    unevaluated_properties: Any = None  # 3.1 only
    examples: Any = None  # a single example value
    extensions: dict[str, Any] = Field(default_factory=dict)
    canonical_name: str | None = None
    all_of: list["Schema"] = Field(default_factory=list)
    one_of: list["Schema"] = Field(default_factory=list)
    any_of: list["Schema"] = Field(default_factory=list)
    discriminator: str | None = None  # property name
    defs: dict[str, Any] = Field(default_factory=dict)  # 3.1 only

    def add_property(self, name: str, schema: "Schema", required: bool = False) -> "Schema":
        name = str(name)
        self.properties[name] = schema
        if required and name not in self.required:
            self.required.append(name)
        return schema

    def is_empty(self) -> bool:
        return not self.properties

    def all_properties(self) -> dict[str, "Schema"]:
        """Properties including those inherited through allOf parts."""
        props: dict[str, Schema] = {}
        for part in self.all_of:
            props.update(part.all_properties())
        props.update(self.properties)
        return props

    def all_required(self) -> list[str]:
        required: list[str] = []
        for part in self.all_of:
            required.extend(n for n in part.all_required() if n not in required)
        required.extend(n for n in self.required if n not in required)
        return required

    def __repr__(self) -> str:
        # the default repr walks children and would recurse forever on cycles
        label = self.canonical_name or self.type or "composite"
        return f"Schema({label!r}, properties={list(self.properties)})"

    __str__ = __repr__


Schema.model_rebuild()
