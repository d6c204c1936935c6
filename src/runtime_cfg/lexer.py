from __future__ import annotations

import string
from dataclasses import dataclass
from typing import Iterator, Literal

TokenKind = Literal["ident", "literal", "=", ",", "(", ")", "unknown"]

IDENT: TokenKind = "ident"
LITERAL: TokenKind = "literal"
EQ: TokenKind = "="
COMMA: TokenKind = ","
LPAREN: TokenKind = "("
RPAREN: TokenKind = ")"
UNKNOWN: TokenKind = "unknown"

_PUNCTUATION: dict[str, TokenKind] = {"=": EQ, ",": COMMA, "(": LPAREN, ")": RPAREN}
_IDENT_START = set(string.ascii_letters + "_")
_IDENT_CONTINUE = _IDENT_START | set(string.digits)
_SIMPLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "\\": "\\",
    "0": "\0",
    "'": "'",
    '"': '"',
}
_INT_SUFFIXES = (
    "u128", "i128", "usize", "isize",
    "u64", "i64", "u32", "i32", "u16", "i16", "u8", "i8",
)
_FLOAT_SUFFIXES = ("f32", "f64")


@dataclass(frozen=True)
class Token:
    """One lexical token of a predicate.

    ``value`` is the identifier name, the decoded literal contents, or the
    punctuation character. ``text`` is the raw source slice when known.
    ``error`` is set on literals that break the literal rules.
    """

    kind: TokenKind
    value: str
    position: int = 0
    text: str = ""
    error: str | None = None

    @property
    def source(self) -> str:
        return self.text or self.value

    @property
    def end(self) -> int:
        return self.position + len(self.source)


def tokenize(text: str) -> Iterator[Token]:
    """Split predicate text into tokens, lazily.

    Never raises: malformed literals carry ``error`` and stray characters
    become ``unknown`` tokens, leaving the parser to report them.
    """
    idx = 0
    length = len(text)
    while idx < length:
        ch = text[idx]
        if ch.isspace():
            idx += 1
            continue
        if ch in _PUNCTUATION:
            yield Token(_PUNCTUATION[ch], ch, idx, ch)
            idx += 1
            continue
        if ch == '"':
            token, idx = _scan_quoted(text, idx, idx + 1, '"')
            yield token
            continue
        if ch == "'":
            token, idx = _scan_quoted(text, idx, idx + 1, "'")
            yield token
            continue
        if ch == "b" and text.startswith(('b"', "b'"), idx):
            token, idx = _scan_quoted(
                text, idx, idx + 2, text[idx + 1], byte=True
            )
            yield token
            continue
        if ch == "r" and text.startswith(('r"', 'r#'), idx):
            raw = _scan_raw(text, idx)
            if raw is not None:
                token, idx = raw
                yield token
                continue
        if ch in _IDENT_START:
            end = idx + 1
            while end < length and text[end] in _IDENT_CONTINUE:
                end += 1
            word = text[idx:end]
            yield Token(IDENT, word, idx, word)
            idx = end
            continue
        if ch in string.digits:
            token, idx = _scan_number(text, idx)
            yield token
            continue
        yield Token(UNKNOWN, ch, idx, ch)
        idx += 1


def _scan_quoted(
    text: str, start: int, body_start: int, quote: str, *, byte: bool = False
) -> tuple[Token, int]:
    chars: list[str] = []
    error: str | None = None
    idx = body_start
    length = len(text)
    while idx < length:
        ch = text[idx]
        if ch == quote:
            raw = text[start : idx + 1]
            value = "".join(chars)
            if quote == "'" and error is None and len(value) != 1:
                error = "character literal must contain exactly one character"
            return Token(LITERAL, value, start, raw, error), idx + 1
        if ch == "\\":
            if byte and text.startswith("u", idx + 1) and error is None:
                error = "unicode escape in byte literal"
            decoded, idx, escape_error = _scan_escape(text, idx)
            if escape_error is not None and error is None:
                error = escape_error
            chars.append(decoded)
            continue
        if byte and ord(ch) > 0x7F and error is None:
            error = "non-ASCII character in byte literal"
        chars.append(ch)
        idx += 1
    raw = text[start:]
    return (
        Token(LITERAL, "".join(chars), start, raw, "unterminated literal"),
        length,
    )


def _scan_escape(text: str, idx: int) -> tuple[str, int, str | None]:
    """Decode the escape sequence starting at the backslash at ``idx``."""
    if idx + 1 >= len(text):
        return "", idx + 1, "unterminated escape sequence"
    code = text[idx + 1]
    if code in _SIMPLE_ESCAPES:
        return _SIMPLE_ESCAPES[code], idx + 2, None
    if code == "\n":
        # line continuation swallows the following indentation
        end = idx + 2
        while end < len(text) and text[end].isspace():
            end += 1
        return "", end, None
    if code == "x":
        digits = text[idx + 2 : idx + 4]
        if len(digits) != 2 or not all(c in string.hexdigits for c in digits):
            return "", idx + 2, "invalid hex escape"
        return chr(int(digits, 16)), idx + 4, None
    if code == "u":
        if not text.startswith("{", idx + 2):
            return "", idx + 2, "invalid unicode escape"
        close = text.find("}", idx + 3)
        if close == -1:
            return "", idx + 2, "invalid unicode escape"
        digits = text[idx + 3 : close].replace("_", "")
        if (
            not digits
            or len(digits) > 6
            or not all(c in string.hexdigits for c in digits)
        ):
            return "", close + 1, "invalid unicode escape"
        codepoint = int(digits, 16)
        if codepoint > 0x10FFFF or 0xD800 <= codepoint <= 0xDFFF:
            return "", close + 1, "invalid unicode escape"
        return chr(codepoint), close + 1, None
    return "", idx + 2, f"unknown character escape: \\{code}"


def _scan_raw(text: str, start: int) -> tuple[Token, int] | None:
    idx = start + 1
    hashes = 0
    while idx < len(text) and text[idx] == "#":
        hashes += 1
        idx += 1
    if idx >= len(text) or text[idx] != '"':
        return None
    terminator = '"' + "#" * hashes
    close = text.find(terminator, idx + 1)
    if close == -1:
        return (
            Token(LITERAL, text[idx + 1 :], start, text[start:], "unterminated literal"),
            len(text),
        )
    end = close + len(terminator)
    return Token(LITERAL, text[idx + 1 : close], start, text[start:end]), end


def _scan_number(text: str, start: int) -> tuple[Token, int]:
    idx = start
    length = len(text)
    while idx < length:
        ch = text[idx]
        if ch in _IDENT_CONTINUE:
            idx += 1
        elif ch == "." and idx + 1 < length and text[idx + 1] in string.digits:
            idx += 1
        else:
            break
    raw = text[start:idx]
    value = _number_value(raw)
    if value is None:
        return Token(LITERAL, raw, start, raw, "invalid numeric literal"), idx
    return Token(LITERAL, value, start, raw), idx


def _number_value(raw: str) -> str | None:
    digits = raw.replace("_", "")
    prefixed = digits[:2].lower() in ("0x", "0o", "0b")
    for suffix in _INT_SUFFIXES:
        if digits.endswith(suffix) and len(digits) > len(suffix):
            digits = digits[: -len(suffix)]
            return _integer_value(digits)
    for suffix in _FLOAT_SUFFIXES:
        # hex digits may end in "f32", which is not a float suffix there
        if not prefixed and digits.endswith(suffix) and len(digits) > len(suffix):
            digits = digits[: -len(suffix)]
            return _float_value(digits)
    if prefixed:
        return _integer_value(digits)
    if "." in digits or "e" in digits.lower():
        return _float_value(digits)
    return _integer_value(digits)


def _integer_value(digits: str) -> str | None:
    base = {"0x": 16, "0o": 8, "0b": 2}.get(digits[:2].lower(), 10)
    body = digits[2:] if base != 10 else digits
    try:
        return str(int(body, base))
    except ValueError:
        return None


def _float_value(digits: str) -> str | None:
    try:
        float(digits)
    except ValueError:
        return None
    return digits
