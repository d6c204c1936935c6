from __future__ import annotations

from typing import Union

from .predicate import All, Any, Name, NameValue, Not, Predicate

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\0": "\\0",
}


def to_text(predicate: Predicate) -> str:
    """Render ``predicate`` in canonical form.

    Combinators always keep their keyword and parentheses, list items are
    joined with ``", "`` and values are double-quoted, so parsing the result
    gives back an equal tree. Nesting depth is bounded only by memory.
    """
    parts: list[str] = []
    pending: list[Union[str, Predicate]] = [predicate]
    while pending:
        item = pending.pop()
        if isinstance(item, str):
            parts.append(item)
        elif isinstance(item, Name):
            parts.append(item.name)
        elif isinstance(item, NameValue):
            parts.append(f"{item.name} = {quote_literal(item.value)}")
        elif isinstance(item, All):
            pending.extend(reversed(_combinator("all", item.predicates)))
        elif isinstance(item, Any):
            pending.extend(reversed(_combinator("any", item.predicates)))
        elif isinstance(item, Not):
            pending.extend(reversed(_combinator("not", (item.predicate,))))
        else:
            raise TypeError(f"Unknown predicate node: {item!r}")
    return "".join(parts)


def quote_literal(value: str) -> str:
    parts = ['"']
    for ch in value:
        if ch in _ESCAPES:
            parts.append(_ESCAPES[ch])
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            parts.append(f"\\u{{{ord(ch):x}}}")
        else:
            parts.append(ch)
    parts.append('"')
    return "".join(parts)


def _combinator(
    keyword: str, predicates: tuple[Predicate, ...]
) -> list[Union[str, Predicate]]:
    """Output pieces for ``keyword(a, b, ...)``, in reading order."""
    pieces: list[Union[str, Predicate]] = [f"{keyword}("]
    for idx, item in enumerate(predicates):
        if idx:
            pieces.append(", ")
        pieces.append(item)
    pieces.append(")")
    return pieces
