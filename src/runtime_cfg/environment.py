from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, RootModel, ValidationError, field_validator

from .predicate import validate_identifier

FlagPair = tuple[str, Optional[str]]
FlagMappingValue = Union[None, str, Iterable[str]]


class FlagEnvironmentError(ValueError):
    pass


class Flag(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    key: str
    value: Optional[str] = None

    @field_validator("key")
    @classmethod
    def _validate_key(cls, key: str) -> str:
        return validate_identifier(key)


class FlagEnvironment(BaseModel):
    """Ordered set of active flags; a key may appear more than once."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    flags: tuple[Flag, ...] = ()

    @classmethod
    def from_pairs(cls, pairs: Iterable[FlagPair]) -> "FlagEnvironment":
        flags = []
        for pair in pairs:
            key, value = pair
            flags.append(Flag(key=key, value=value))
        return cls(flags=tuple(flags))

    @classmethod
    def from_mapping(
        cls, mapping: Mapping[str, FlagMappingValue]
    ) -> "FlagEnvironment":
        """Build an environment from ``{key: None | value | [values]}``.

        Collection values expand into one flag per member, in order.
        """
        pairs: list[FlagPair] = []
        for key, value in mapping.items():
            if value is None or isinstance(value, str):
                pairs.append((key, value))
            else:
                pairs.extend((key, item) for item in value)
        return cls.from_pairs(pairs)

    @classmethod
    def load(cls, path: Path) -> "FlagEnvironment":
        """Load an environment from a JSON file.

        Accepts ``{"flags": [[key, value-or-null], ...]}`` or a plain object
        mapping keys to ``null``, a string, or a list of strings.
        """
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise FlagEnvironmentError(
                f"Invalid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})"
            ) from exc
        if not isinstance(payload, dict):
            raise FlagEnvironmentError(
                "Environment JSON must be an object."
            )
        if set(payload) == {"flags"}:
            return cls.from_pairs(
                EnvironmentFile.model_validate(payload).flags
            )
        return cls.from_mapping(FlagMapping.model_validate(payload).root)

    def contains(self, key: str, value: str | None = None) -> bool:
        """Return True if a flag named ``key`` is present.

        When ``value`` is given, the flag must also carry exactly that value;
        flags without a value never satisfy a value query.
        """
        if value is None:
            return any(flag.key == key for flag in self.flags)
        return any(
            flag.key == key and flag.value == value for flag in self.flags
        )

    def values(self, key: str) -> list[str]:
        return [
            flag.value
            for flag in self.flags
            if flag.key == key and flag.value is not None
        ]

    def keys(self) -> list[str]:
        seen: list[str] = []
        for flag in self.flags:
            if flag.key not in seen:
                seen.append(flag.key)
        return seen

    def pairs(self) -> list[FlagPair]:
        return [(flag.key, flag.value) for flag in self.flags]

    def extend(self, pairs: Iterable[FlagPair]) -> "FlagEnvironment":
        """Return a new environment with ``pairs`` appended."""
        extra = FlagEnvironment.from_pairs(pairs)
        return FlagEnvironment(flags=self.flags + extra.flags)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.contains(key)

    def __len__(self) -> int:
        return len(self.flags)


class EnvironmentFile(BaseModel):
    flags: list[tuple[str, Optional[str]]] = Field(default_factory=list)


class FlagMapping(RootModel[dict[str, Union[None, str, list[str]]]]):
    pass


def parse_flag(spec: str) -> FlagPair:
    """Parse ``key``, ``key=value`` or ``key="value"`` into a flag pair."""
    key, sep, value = spec.partition("=")
    key = key.strip()
    if not key:
        raise FlagEnvironmentError(f"Flag has empty name: {spec!r}")
    if not sep:
        return key, None
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] == '"':
        value = value[1:-1]
    return key, value


def format_validation_error(error: ValidationError) -> str:
    parts: list[str] = []
    for err in error.errors():
        loc = ".".join(str(part) for part in err.get("loc", []))
        msg = err.get("msg", "Invalid value")
        if loc:
            parts.append(f"{loc}: {msg}")
        else:
            parts.append(msg)
    return "; ".join(parts)
