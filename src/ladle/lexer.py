"""Ladle Tokenizer and markup Lexer.

Two scanners live here:

``Tokenizer``
    Splits template source into raw segments: literal text, ``{% tag %}``
    and ``{{ output }}``. Segments keep their delimiters so the parser can
    tell tags from outputs and detect ``-`` whitespace-control markers.
    Closing delimiters inside quoted strings are skipped, so
    ``{{ "%}" }}`` is one segment.

``Lexer``
    Splits the markup of a single tag into ``LexToken`` values for the
    strict-mode parser (``ladle.parser.markup.MarkupParser``).

Thread-Safety:
Both scanners keep only instance-local state. Create one per source.

Example:
    >>> [t.value for t in Tokenizer("Hi {{ name }}!")]
    ['Hi ', '{{ name }}', '!']
    >>> Lexer("a == 'b'").tokenize()
    [LexToken(id, 'a'), LexToken(comparison, '=='), LexToken(string, "'b'"), LexToken(end_of_string, '')]

"""

from __future__ import annotations

import re
from collections.abc import Iterator

from ladle._types import LexToken, LexTokenType, Token, TokenType
from ladle.environment.exceptions import ErrorCode, TemplateSyntaxError

_OPENERS = re.compile(r"\{[{%]")
_CLOSERS = {"{%": "%}", "{{": "}}"}
_QUOTES = frozenset("'\"")


class Tokenizer:
    """Lazy splitter of template source into raw segments.

    Segments are produced on demand through ``shift()`` or iteration. The
    sequence can only be restarted by building a new Tokenizer.

    Args:
        source: Template source text.
        line_numbers: Track 1-based line numbers on each token.

    Attributes:
        line_number: Line of the next unconsumed character (None when line
            tracking is disabled).
    """

    __slots__ = ("_source", "_pos", "line_number")

    def __init__(self, source: str, line_numbers: bool = False) -> None:
        self._source = source
        self._pos = 0
        self.line_number: int | None = 1 if line_numbers else None

    def shift(self) -> Token | None:
        """Return the next segment, or None at end of input."""
        source = self._source
        pos = self._pos
        if pos >= len(source):
            return None

        match = _OPENERS.search(source, pos)
        if match is None:
            return self._emit(TokenType.TEXT, len(source))
        start = match.start()
        if start > pos:
            return self._emit(TokenType.TEXT, start)

        opener = match.group()
        end = self._find_closer(start + 2, _CLOSERS[opener])
        kind = TokenType.TAG if opener == "{%" else TokenType.OUTPUT
        return self._emit(kind, end)

    def __iter__(self) -> Iterator[Token]:
        while (token := self.shift()) is not None:
            yield token

    def _emit(self, kind: TokenType, end: int) -> Token:
        value = self._source[self._pos:end]
        token = Token(kind, value, self.line_number)
        if self.line_number is not None:
            self.line_number += value.count("\n")
        self._pos = end
        return token

    def _find_closer(self, pos: int, closer: str) -> int:
        """Find the end offset (exclusive) of a segment starting before ``pos``.

        Scans for ``closer`` outside quoted substrings. If a quote is never
        balanced, falls back to the first plain occurrence of ``closer``.
        If there is none at all, the rest of the source is the segment and
        the parser reports it as not properly terminated.
        """
        source = self._source
        length = len(source)
        quote: str | None = None
        i = pos
        while i < length:
            char = source[i]
            if quote is not None:
                if char == quote:
                    quote = None
            elif char in _QUOTES:
                quote = char
            elif source.startswith(closer, i):
                return i + 2
            i += 1

        plain = source.find(closer, pos)
        if plain != -1:
            return plain + 2
        return length


def tokenize(source: str, line_numbers: bool = False) -> list[Token]:
    """Tokenize a whole template eagerly.

    Convenience wrapper around Tokenizer for tests and tooling.
    """
    return list(Tokenizer(source, line_numbers))


# Markup lexer patterns, in matching priority order
_WHITESPACE = re.compile(r"\s*")
_PATTERNS: tuple[tuple[LexTokenType, re.Pattern[str]], ...] = (
    (LexTokenType.COMPARISON, re.compile(r"==|!=|<>|<=?|>=?|contains(?=\s)")),
    (LexTokenType.STRING, re.compile(r"'[^']*'")),
    (LexTokenType.STRING, re.compile(r'"[^"]*"')),
    (LexTokenType.NUMBER, re.compile(r"-?\d+(?:\.\d+)?")),
    (LexTokenType.ID, re.compile(r"[a-zA-Z_][\w-]*\??")),
    (LexTokenType.DOTDOT, re.compile(r"\.\.")),
)
_SPECIALS: dict[str, LexTokenType] = {
    "|": LexTokenType.PIPE,
    ".": LexTokenType.DOT,
    ":": LexTokenType.COLON,
    ",": LexTokenType.COMMA,
    "[": LexTokenType.OPEN_SQUARE,
    "]": LexTokenType.CLOSE_SQUARE,
    "(": LexTokenType.OPEN_ROUND,
    ")": LexTokenType.CLOSE_ROUND,
    "?": LexTokenType.QUESTION,
    "-": LexTokenType.DASH,
}


class Lexer:
    """Markup lexer backing the strict-mode parser.

    Whitespace between tokens is skipped. String literals keep their quotes
    and get no escape processing.

    Raises:
        TemplateSyntaxError: ``Unexpected character X`` for anything that
            matches no token category.
    """

    __slots__ = ("_markup",)

    def __init__(self, markup: str) -> None:
        self._markup = markup

    def tokenize(self) -> list[LexToken]:
        markup = self._markup
        length = len(markup)
        output: list[LexToken] = []
        pos = 0

        while True:
            pos = _WHITESPACE.match(markup, pos).end()  # type: ignore[union-attr]
            if pos >= length:
                break

            for kind, pattern in _PATTERNS:
                match = pattern.match(markup, pos)
                if match:
                    output.append(LexToken(kind, match.group()))
                    pos = match.end()
                    break
            else:
                char = markup[pos]
                special = _SPECIALS.get(char)
                if special is None:
                    raise TemplateSyntaxError(
                        f"Unexpected character {char}",
                        code=ErrorCode.UNEXPECTED_CHARACTER,
                    )
                output.append(LexToken(special, char))
                pos += 1

        output.append(LexToken(LexTokenType.END_OF_STRING))
        return output
