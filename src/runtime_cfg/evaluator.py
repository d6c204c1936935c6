from __future__ import annotations

from typing import Callable, Iterable, Iterator, Mapping, Optional, Union

from .environment import FlagEnvironment, FlagMappingValue, FlagPair
from .predicate import All, Any, Name, NameValue, Not, Predicate

Environment = Union[
    FlagEnvironment, Mapping[str, FlagMappingValue], Iterable[FlagPair]
]
FlagLookup = Callable[[str, Optional[str]], bool]


def matches(predicate: Predicate, env: Environment) -> bool:
    """Evaluate ``predicate`` against the active flags in ``env``.

    ``env`` may be a ``FlagEnvironment``, a mapping of flag names to
    ``None``/value/values, or a sequence of ``(key, value)`` pairs.
    """
    return _matches(predicate, _compile_lookup(env))


def _matches(predicate: Predicate, lookup: FlagLookup) -> bool:
    # Explicit stack of open combinators with their unvisited children,
    # so nesting depth is not limited by the interpreter's recursion limit.
    frames: list[tuple[Predicate, Iterator[Predicate]]] = []
    node = predicate
    while True:
        result: bool | None = None
        if isinstance(node, Name):
            result = lookup(node.name, None)
        elif isinstance(node, NameValue):
            result = lookup(node.name, node.value)
        elif isinstance(node, Not):
            frames.append((node, iter((node.predicate,))))
        elif isinstance(node, (All, Any)):
            frames.append((node, iter(node.predicates)))
        else:
            raise TypeError(f"Unknown predicate node: {node!r}")

        while frames:
            parent, children = frames[-1]
            if result is not None:
                if isinstance(parent, Not):
                    frames.pop()
                    result = not result
                    continue
                if isinstance(parent, All) and not result:
                    frames.pop()
                    continue
                if isinstance(parent, Any) and result:
                    frames.pop()
                    continue
            child = next(children, None)
            if child is None:
                frames.pop()
                result = isinstance(parent, All)
                continue
            node = child
            break
        else:
            return bool(result)


def _compile_lookup(env: Environment) -> FlagLookup:
    if isinstance(env, FlagEnvironment):
        return env.contains
    if isinstance(env, Mapping):
        return lambda key, value: _mapping_contains(env, key, value)
    return FlagEnvironment.from_pairs(env).contains


def _mapping_contains(
    mapping: Mapping[str, FlagMappingValue], key: str, value: str | None
) -> bool:
    if key not in mapping:
        return False
    if value is None:
        return True
    candidate = mapping[key]
    if candidate is None:
        return False
    if isinstance(candidate, str):
        return candidate == value
    return any(item == value for item in candidate)
