from __future__ import annotations

import re
from typing import TYPE_CHECKING, Annotated, Iterable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

if TYPE_CHECKING:
    from .evaluator import Environment

IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def is_identifier(value: str) -> bool:
    """Return True if ``value`` is a valid flag identifier."""
    return bool(value) and IDENTIFIER_RE.fullmatch(value) is not None


def validate_identifier(value: str) -> str:
    if not value:
        raise ValueError("Identifier cannot be empty.")
    if not is_identifier(value):
        raise ValueError(f"Invalid identifier: {value!r}")
    return value


class _PredicateNode(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    def matches(self, env: Environment) -> bool:
        """Return True if the flag environment satisfies this predicate."""
        from .evaluator import matches

        return matches(self, env)

    def to_text(self) -> str:
        """Render the canonical text form of this predicate."""
        from .printer import to_text

        return to_text(self)

    def __str__(self) -> str:
        return self.to_text()


class Name(_PredicateNode):
    """Matches when a flag with this name is present, whatever its value."""

    kind: Literal["name"] = "name"
    name: str

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        return validate_identifier(value)


class NameValue(_PredicateNode):
    """Matches when a flag with this name carries exactly this value."""

    kind: Literal["name_value"] = "name_value"
    name: str
    value: str

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        return validate_identifier(value)


class All(_PredicateNode):
    """Conjunction; an empty conjunction is true."""

    kind: Literal["all"] = "all"
    predicates: tuple[Predicate, ...] = ()


class Any(_PredicateNode):
    """Disjunction; an empty disjunction is false."""

    kind: Literal["any"] = "any"
    predicates: tuple[Predicate, ...] = ()


class Not(_PredicateNode):
    kind: Literal["not"] = "not"
    predicate: Predicate


Predicate = Annotated[
    Union[Name, NameValue, All, Any, Not], Field(discriminator="kind")
]

All.model_rebuild()
Any.model_rebuild()
Not.model_rebuild()

_PREDICATE_ADAPTER: TypeAdapter[Predicate] = TypeAdapter(Predicate)


def name(value: str) -> Name:
    return Name(name=value)


def name_value(key: str, value: str) -> NameValue:
    return NameValue(name=key, value=value)


def all_(predicates: Iterable[Predicate]) -> All:
    return All(predicates=tuple(predicates))


def any_(predicates: Iterable[Predicate]) -> Any:
    return Any(predicates=tuple(predicates))


def not_(predicate: Predicate) -> Not:
    return Not(predicate=predicate)


def predicate_to_json(predicate: Predicate, *, indent: int | None = None) -> str:
    """Serialize a predicate tree to JSON, tagging each node with its kind."""
    return _PREDICATE_ADAPTER.dump_json(predicate, indent=indent).decode("utf-8")


def predicate_from_json(data: str | bytes) -> Predicate:
    return _PREDICATE_ADAPTER.validate_json(data)


def predicate_from_dict(data: object) -> Predicate:
    return _PREDICATE_ADAPTER.validate_python(data)
