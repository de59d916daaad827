"""Strict-mode markup parser.

Consumes the ``LexToken`` stream of one tag's markup and returns
normalized markup strings (``expression()``, ``argument()``), which the
expression layer then turns into values and lookups. Any deviation from the
grammar raises TemplateSyntaxError, which warn mode downgrades to a warning.
"""

from __future__ import annotations

from ladle._types import LexToken, LexTokenType
from ladle.environment.exceptions import TemplateSyntaxError
from ladle.lexer import Lexer


class MarkupParser:
    """Recursive-descent parser over a tokenized markup fragment.

    Example:
        >>> p = MarkupParser("item in products limit: 2")
        >>> p.consume(LexTokenType.ID)
        'item'
        >>> p.id("in")
        'in'
        >>> p.expression()
        'products'
    """

    __slots__ = ("_tokens", "_pos")

    def __init__(self, markup: str) -> None:
        self._tokens: list[LexToken] = Lexer(markup).tokenize()
        self._pos = 0

    @property
    def position(self) -> int:
        return self._pos

    def jump(self, position: int) -> None:
        self._pos = position

    def _current(self) -> LexToken:
        return self._tokens[min(self._pos, len(self._tokens) - 1)]

    def consume(self, token_type: LexTokenType | None = None) -> str:
        """Consume the current token, optionally requiring its type."""
        token = self._current()
        if token_type is not None and token.type is not token_type:
            raise TemplateSyntaxError(
                f"Expected {token_type.value} but found {token.type.value}"
            )
        self._pos += 1
        return token.value

    def consume_optional(self, token_type: LexTokenType) -> str | None:
        """Consume the current token if it has the given type."""
        token = self._current()
        if token.type is not token_type:
            return None
        self._pos += 1
        return token.value

    def id(self, name: str) -> str | None:
        """Consume the current token if it is the identifier ``name``."""
        token = self._current()
        if token.type is not LexTokenType.ID or token.value != name:
            return None
        self._pos += 1
        return token.value

    def look(self, token_type: LexTokenType, ahead: int = 0) -> bool:
        index = self._pos + ahead
        if index >= len(self._tokens):
            return False
        return self._tokens[index].type is token_type

    def expression(self) -> str:
        """Parse one expression and return its normalized markup."""
        token = self._current()
        kind = token.type
        if kind is LexTokenType.ID:
            return self.variable_signature()
        if kind is LexTokenType.OPEN_SQUARE:
            text = self.consume()
            text += self.expression()
            text += self.consume(LexTokenType.CLOSE_SQUARE)
            return text + self.variable_lookups()
        if kind in (LexTokenType.STRING, LexTokenType.NUMBER):
            return self.consume()
        if kind is LexTokenType.OPEN_ROUND:
            self.consume()
            first = self.expression()
            self.consume(LexTokenType.DOTDOT)
            last = self.expression()
            self.consume(LexTokenType.CLOSE_ROUND)
            return f"({first}..{last})"
        raise TemplateSyntaxError(f"{token!r} is not a valid expression")

    def argument(self) -> str:
        """Parse a filter argument, which may be ``keyword: expression``."""
        text = ""
        if self.look(LexTokenType.ID) and self.look(LexTokenType.COLON, 1):
            text += self.consume() + self.consume() + " "
        return text + self.expression()

    def variable_signature(self) -> str:
        """Parse an identifier and its lookup path, e.g. ``a.b[0].c``."""
        return self.consume(LexTokenType.ID) + self.variable_lookups()

    def variable_lookups(self) -> str:
        text = ""
        while True:
            if self.look(LexTokenType.OPEN_SQUARE):
                text += self.consume()
                text += self.expression()
                text += self.consume(LexTokenType.CLOSE_SQUARE)
            elif self.look(LexTokenType.DOT):
                text += self.consume()
                text += self.consume(LexTokenType.ID)
            else:
                return text
