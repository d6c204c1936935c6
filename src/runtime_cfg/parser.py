from __future__ import annotations

from typing import Iterable, Iterator

from .lexer import COMMA, EQ, IDENT, LITERAL, LPAREN, RPAREN, Token, tokenize
from .predicate import All, Any, Name, NameValue, Not, Predicate, is_identifier

OPERATORS = ("all", "any", "not")
BOOLEAN_LITERALS = ("true", "false")
END_OF_INPUT = "end of input"
MAX_NESTING_DEPTH = 200


class CfgParseError(ValueError):
    """Base class for predicate parse failures."""

    position: int | None = None


class UnexpectedToken(CfgParseError):
    def __init__(self, expected: str, found: str, position: int) -> None:
        self.expected = expected
        self.found = found
        self.position = position
        super().__init__(f"expected {expected}, found {found} at position {position}")


class UnknownOperator(CfgParseError):
    def __init__(self, token: Token) -> None:
        self.token = token
        self.position = token.position
        super().__init__(f"unexpected operator `{token.value}` at position {token.position}")


class UnterminatedList(CfgParseError):
    def __init__(self, position: int) -> None:
        self.position = position
        super().__init__(f"unterminated list: expected ')' at position {position}")


class NestingTooDeep(CfgParseError):
    def __init__(self, token: Token, limit: int) -> None:
        self.token = token
        self.limit = limit
        self.position = token.position
        super().__init__(
            f"predicate nested deeper than {limit} levels at position {token.position}"
        )


class InvalidLiteral(CfgParseError):
    def __init__(self, token: Token) -> None:
        self.token = token
        self.position = token.position
        super().__init__(
            f"invalid literal {token.source} at position {token.position}: {token.error}"
        )


def parse(tokens: Iterable[Token]) -> Predicate:
    """Parse a token stream into a predicate.

    Stops at the first mismatch and raises a ``CfgParseError`` subclass.
    """
    return _Parser(tokens).parse()


def parse_str(text: str) -> Predicate:
    return parse(tokenize(text))


def describe_token(token: Token | None) -> str:
    if token is None:
        return END_OF_INPUT
    if token.kind == IDENT:
        return f"`{token.value}`"
    if token.kind == LITERAL:
        return f"literal {token.source}"
    if token.kind in (EQ, COMMA, LPAREN, RPAREN):
        return f"'{token.value}'"
    return f"unexpected character {token.source!r}"


class _Parser:
    def __init__(self, tokens: Iterable[Token]) -> None:
        self._tokens: Iterator[Token] = iter(tokens)
        self._current: Token | None = None
        self._end = 0
        self._depth = 0
        self._advance()

    def parse(self) -> Predicate:
        predicate = self._parse_cfg()
        if self._current is not None:
            raise UnexpectedToken(
                END_OF_INPUT,
                describe_token(self._current),
                self._current.position,
            )
        return predicate

    def _advance(self) -> Token | None:
        previous = self._current
        if previous is not None:
            self._end = previous.end
        self._current = next(self._tokens, None)
        current = self._current
        if current is not None and current.kind == LITERAL and current.error:
            raise InvalidLiteral(current)
        return previous

    def _error(self, expected: str) -> CfgParseError:
        token = self._current
        if token is None:
            if self._depth > 0:
                return UnterminatedList(self._end)
            return UnexpectedToken(expected, END_OF_INPUT, self._end)
        return UnexpectedToken(expected, describe_token(token), token.position)

    def _expect(self, kind: str, expected: str) -> Token:
        token = self._current
        if token is None or token.kind != kind:
            raise self._error(expected)
        self._advance()
        return token

    def _parse_cfg(self) -> Predicate:
        ident = self._expect(IDENT, "identifier")
        if not is_identifier(ident.value):
            raise UnexpectedToken("identifier", describe_token(ident), ident.position)
        token = self._current
        if token is not None and token.kind == LPAREN:
            return self._parse_operator(ident)
        if token is not None and token.kind == EQ:
            self._advance()
            return NameValue(name=ident.value, value=self._parse_literal())
        return Name(name=ident.value)

    def _parse_literal(self) -> str:
        token = self._current
        if token is not None and token.kind == LITERAL:
            self._advance()
            return token.value
        if token is not None and token.kind == IDENT and token.value in BOOLEAN_LITERALS:
            self._advance()
            return token.value
        raise self._error("literal")

    def _parse_operator(self, ident: Token) -> Predicate:
        if ident.value not in OPERATORS:
            raise UnknownOperator(ident)
        self._advance()
        self._depth += 1
        if self._depth > MAX_NESTING_DEPTH:
            raise NestingTooDeep(ident, MAX_NESTING_DEPTH)
        if ident.value == "not":
            predicate = self._parse_cfg()
            self._expect(RPAREN, "')'")
            self._depth -= 1
            return Not(predicate=predicate)
        predicates = self._parse_list()
        self._depth -= 1
        if ident.value == "all":
            return All(predicates=predicates)
        return Any(predicates=predicates)

    def _parse_list(self) -> tuple[Predicate, ...]:
        """Parse ``[cfg (',' cfg)* [',']] ')'``; the opening '(' is consumed."""
        predicates: list[Predicate] = []
        while True:
            token = self._current
            if token is not None and token.kind == RPAREN:
                self._advance()
                return tuple(predicates)
            predicates.append(self._parse_cfg())
            token = self._current
            if token is not None and token.kind == COMMA:
                self._advance()
                continue
            if token is not None and token.kind == RPAREN:
                self._advance()
                return tuple(predicates)
            raise self._error("',' or ')'")
