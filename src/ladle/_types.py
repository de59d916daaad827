"""Token types shared by the tokenizer, the markup lexer and the parser.

Two token layers exist:

- ``Token``: a raw template segment (literal text, ``{% tag %}`` or
  ``{{ output }}``) produced by the Tokenizer, delimiters included.
- ``LexToken``: a fine-grained markup token produced by the Lexer from the
  content of one tag, consumed by the strict markup parser.

"""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple


class TokenType(Enum):
    """Kinds of raw template segments."""

    TEXT = "text"
    TAG = "tag"
    OUTPUT = "output"


class Token(NamedTuple):
    """A raw template segment.

    Attributes:
        type: Segment kind.
        value: Segment text, including ``{%``/``%}`` or ``{{``/``}}``.
        lineno: 1-based line where the segment starts, or None when line
            tracking is disabled.
    """

    type: TokenType
    value: str
    lineno: int | None = None

    @property
    def trim_left(self) -> bool:
        """True if the opening delimiter carries a ``-`` trim marker."""
        return self.type is not TokenType.TEXT and self.value[2:3] == "-"

    @property
    def trim_right(self) -> bool:
        """True if the closing delimiter carries a ``-`` trim marker."""
        return (
            self.type is not TokenType.TEXT
            and len(self.value) >= 5
            and self.value[-3:-2] == "-"
        )


class LexTokenType(Enum):
    """Markup token categories, listed in lexer matching priority."""

    COMPARISON = "comparison"
    STRING = "string"
    NUMBER = "number"
    ID = "id"
    DOTDOT = "dotdot"
    PIPE = "pipe"
    DOT = "dot"
    COLON = "colon"
    COMMA = "comma"
    OPEN_SQUARE = "open_square"
    CLOSE_SQUARE = "close_square"
    OPEN_ROUND = "open_round"
    CLOSE_ROUND = "close_round"
    QUESTION = "question"
    DASH = "dash"
    END_OF_STRING = "end_of_string"


class LexToken(NamedTuple):
    """A single markup token."""

    type: LexTokenType
    value: str = ""

    def __repr__(self) -> str:
        return f"LexToken({self.type.value}, {self.value!r})"
