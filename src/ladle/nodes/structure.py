"""Structural tags whose bodies are not rendered as parsed: comment and raw."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from ladle.environment.exceptions import ErrorCode, TemplateSyntaxError
from ladle.nodes.block import Block

if TYPE_CHECKING:
    from ladle.lexer import Tokenizer
    from ladle.parser.context import ParseContext
    from ladle.render_context import Interrupt, RenderContext

_RAW_SYNTAX = re.compile(r"\A\s*\Z")
# Tag names inside raw are matched loosely; the content is never parsed
_FULL_TOKEN_POSSIBLY_INVALID = re.compile(r"\A(.*)\{%-?\s*(\w+)\s*(.*)?-?%\}\Z", re.DOTALL)


class Comment(Block):
    """Discarded section: ``{% comment %}...{% endcomment %}``

    The body is still tokenized so that nested blocks must balance, but
    unknown tags are ignored and nothing is rendered.
    """

    __slots__ = ()

    def unknown_tag(
        self, tag_name: str, markup: str, tokenizer: Tokenizer, parse_context: ParseContext
    ) -> None:
        pass

    @property
    def blank(self) -> bool:
        return True

    def render_to_output(self, context: RenderContext, output: list[str]) -> Interrupt | None:
        return None

    def render(self, context: RenderContext) -> str:
        return ""


class Raw(Block):
    """Verbatim section: ``{% raw %}{{ not parsed }}{% endraw %}``"""

    __slots__ = ("body_text",)

    def __init__(self, tag_name: str, markup: str, parse_context: ParseContext) -> None:
        super().__init__(tag_name, markup, parse_context)
        if not _RAW_SYNTAX.match(markup):
            raise TemplateSyntaxError("Syntax Error in 'raw' tag - Valid syntax: raw")
        self.body_text = ""

    def parse_nested(self, tokenizer: Tokenizer, parse_context: ParseContext) -> None:
        parts: list[str] = []
        while (token := tokenizer.shift()) is not None:
            match = _FULL_TOKEN_POSSIBLY_INVALID.match(token.value)
            if match and match.group(2) == self.block_delimiter:
                if match.group(1):
                    parts.append(match.group(1))
                self.body_text = "".join(parts)
                parse_context.trim_whitespace = token.trim_right
                return
            if token.value:
                parts.append(token.value)

        raise TemplateSyntaxError(
            f"'{self.block_name}' tag was never closed",
            lineno=self.lineno,
            code=ErrorCode.UNCLOSED_BLOCK,
        )

    @property
    def blank(self) -> bool:
        return not self.body_text

    @property
    def nodelist(self) -> list[Any]:
        return [self.body_text]

    def render_to_output(self, context: RenderContext, output: list[str]) -> Interrupt | None:
        output.append(self.body_text)
        return None

    def render(self, context: RenderContext) -> str:
        return self.body_text
