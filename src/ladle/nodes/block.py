"""Recursive block parser and render engine.

Parsing:
``BlockBody.parse`` consumes tokens until it meets a tag name the registry
does not know, then hands that name back to its caller. The caller (a
``Block`` or the ``Document``) decides whether it is its own end delimiter,
a structural continuation such as ``else``/``elsif``/``when``, or an
error. Every nested body costs one level of depth, checked before entering
and restored on every exit path.

Whitespace control is a one-token lookback and lookahead: ``{%-``/``{{-``
strips trailing whitespace off the preceding text node, ``-%}``/``-}}``
strips leading whitespace off the next one.

Rendering:
``BlockBody.render_to_output`` walks its node list, appending text to the
caller's output list. It returns an Interrupt when a ``break`` or
``continue`` stopped it early, which every enclosing body passes on until
the nearest ``for`` consumes it. Each node costs one render score point and
its output length counts towards render length; exceeding either ceiling
raises TemplateMemoryError, which aborts the render. Any other error raised
by a node is replaced by ``RenderContext.handle_error`` output.

"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from ladle._types import TokenType
from ladle.environment.exceptions import (
    ErrorCode,
    StackLevelError,
    TemplateError,
    TemplateMemoryError,
    TemplateSyntaxError,
)
from ladle.nodes.base import Tag
from ladle.nodes.output import Output
from ladle.utils.constants import CONTENT_OF_VARIABLE, FULL_TOKEN, WHITESPACE_OR_NOTHING

if TYPE_CHECKING:
    from ladle.lexer import Tokenizer
    from ladle.parser.context import ParseContext
    from ladle.render_context import Interrupt, RenderContext

# Top-level tags that can only appear inside a block
_STRUCTURAL_TAGS = frozenset({"else", "elsif", "when", "end"})


class BlockBody:
    """An ordered list of nodes: text, Output and Tag instances.

    ``nodelist`` is filled during parsing and treated as read-only after.

    Attributes:
        nodelist: Parsed nodes in source order.
        blank: True while every node is whitespace-only text or a blank tag.
    """

    __slots__ = ("nodelist", "blank")

    def __init__(self) -> None:
        self.nodelist: list[Any] = []
        self.blank = True

    # -- parsing -----------------------------------------------------------

    def parse(
        self, tokenizer: Tokenizer, parse_context: ParseContext
    ) -> tuple[str | None, str | None]:
        """Parse nodes until an unregistered tag or end of input.

        Returns:
            ``(tag_name, markup)`` of the unregistered tag, or
            ``(None, None)`` at end of input.

        Raises:
            TemplateSyntaxError: For unterminated tags or outputs and
                invalid markup.
        """
        parse_context.line_number = tokenizer.line_number
        while (token := tokenizer.shift()) is not None:
            value = token.value
            if not value:
                continue
            parse_context.line_number = token.lineno

            if token.type is TokenType.TAG:
                self._whitespace_handler(token.trim_left, token.trim_right, parse_context)
                match = FULL_TOKEN.match(value)
                if match is None:
                    raise TemplateSyntaxError(
                        f"Tag '{value}' was not properly terminated with regexp: %}}",
                        code=ErrorCode.UNCLOSED_TAG,
                    )
                tag_name, markup = match.group(1), match.group(2)
                tag_class = parse_context.tags.get(tag_name)
                if tag_class is None:
                    return tag_name, markup

                tag = tag_class.parse(tag_name, markup, tokenizer, parse_context)
                self.blank = self.blank and tag.blank
                self.nodelist.append(tag)

            elif token.type is TokenType.OUTPUT:
                self._whitespace_handler(token.trim_left, token.trim_right, parse_context)
                match = CONTENT_OF_VARIABLE.match(value)
                if match is None:
                    raise TemplateSyntaxError(
                        f"Variable '{value}' was not properly terminated with regexp: }}}}",
                        code=ErrorCode.UNCLOSED_VARIABLE,
                    )
                self.nodelist.append(Output.parse(match.group(1), parse_context))
                self.blank = False

            else:
                if parse_context.trim_whitespace:
                    value = value.lstrip()
                parse_context.trim_whitespace = False
                self.nodelist.append(value)
                self.blank = self.blank and WHITESPACE_OR_NOTHING.match(value) is not None

            parse_context.line_number = tokenizer.line_number

        return None, None

    def _whitespace_handler(
        self, trim_left: bool, trim_right: bool, parse_context: ParseContext
    ) -> None:
        if trim_left and self.nodelist and isinstance(self.nodelist[-1], str):
            self.nodelist[-1] = self.nodelist[-1].rstrip()
        parse_context.trim_whitespace = trim_right

    # -- rendering ---------------------------------------------------------

    def render(self, context: RenderContext) -> str:
        """Render to a string, dropping any pending interrupt."""
        output: list[str] = []
        self.render_to_output(context, output)
        return "".join(output)

    def render_to_output(self, context: RenderContext, output: list[str]) -> Interrupt | None:
        """Render every node into ``output``.

        Returns:
            The Interrupt that stopped this body early, or None.
        """
        context.resource_limits.render_score += len(self.nodelist)

        for node in self.nodelist:
            if isinstance(node, str):
                self._check_resources(context, len(node))
                output.append(node)
                continue

            interrupt = self._render_node_to_output(node, output, context)
            if interrupt is not None:
                return interrupt
        return None

    def _render_node_to_output(
        self, node: Any, output: list[str], context: RenderContext
    ) -> Interrupt | None:
        buffer: list[str] = []
        try:
            interrupt = node.render_to_output(context, buffer)
            text = "".join(buffer)
            self._check_resources(context, len(text))
        except TemplateMemoryError:
            raise
        except Exception as e:
            output.append(context.handle_error(e, node.lineno))
            return None

        if not node.blank:
            output.append(text)
        return interrupt

    @staticmethod
    def _check_resources(context: RenderContext, length: int) -> None:
        limits = context.resource_limits
        limits.render_length += length
        limits.check()

    def children(self) -> Sequence[Any]:
        return self.nodelist

    def __repr__(self) -> str:
        return f"<{type(self).__name__} nodes={len(self.nodelist)}>"


class Block(Tag):
    """A tag with a body, closed by ``end<tag_name>``.

    Subclasses with several bodies (``if``/``elsif``, ``for``/``else``)
    override ``unknown_tag`` to start a new body on continuation tags, and
    ``parse_nested`` to choose which body each ``parse_body`` call fills.
    """

    __slots__ = ("body", "_blank")

    def __init__(self, tag_name: str, markup: str, parse_context: ParseContext) -> None:
        super().__init__(tag_name, markup, parse_context)
        self.body = BlockBody()
        self._blank = True

    def parse_nested(self, tokenizer: Tokenizer, parse_context: ParseContext) -> None:
        while self.parse_body(self.body, tokenizer, parse_context):
            pass

    def parse_body(
        self, body: BlockBody, tokenizer: Tokenizer, parse_context: ParseContext
    ) -> bool:
        """Parse one stretch of ``body``.

        Returns:
            True if parsing should continue (a continuation tag was handled),
            False once the end delimiter was reached.

        Raises:
            StackLevelError: Nesting deeper than ``parse_context.max_depth``.
            TemplateSyntaxError: The block is never closed, or a misplaced
                or unknown tag was found.
        """
        if parse_context.depth >= parse_context.max_depth:
            raise StackLevelError("Nesting too deep", lineno=parse_context.line_number)

        parse_context.depth += 1
        try:
            end_tag_name, end_tag_markup = body.parse(tokenizer, parse_context)
            self._blank = self._blank and body.blank

            if end_tag_name == self.block_delimiter:
                return False
            if end_tag_name is None:
                raise TemplateSyntaxError(
                    f"'{self.block_name}' tag was never closed",
                    lineno=self.lineno,
                    code=ErrorCode.UNCLOSED_BLOCK,
                )
            self.unknown_tag(end_tag_name, end_tag_markup or "", tokenizer, parse_context)
        finally:
            parse_context.depth -= 1
        return True

    def unknown_tag(
        self, tag_name: str, markup: str, tokenizer: Tokenizer, parse_context: ParseContext
    ) -> None:
        """Handle a tag the registry does not know, found inside this block."""
        if tag_name == "else":
            raise TemplateSyntaxError(
                f"{self.block_name} tag does not expect 'else' tag",
                code=ErrorCode.UNEXPECTED_TAG,
            )
        if tag_name.startswith("end"):
            raise TemplateSyntaxError(
                f"'{tag_name}' is not a valid delimiter for {self.block_name} tags. "
                f"use {self.block_delimiter}",
                code=ErrorCode.UNEXPECTED_TAG,
            )
        raise TemplateSyntaxError(f"Unknown tag '{tag_name}'", code=ErrorCode.UNKNOWN_TAG)

    @property
    def block_name(self) -> str:
        return self.tag_name

    @property
    def block_delimiter(self) -> str:
        return f"end{self.block_name}"

    @property
    def blank(self) -> bool:
        return self._blank

    @property
    def nodelist(self) -> Sequence[Any]:
        return self.body.nodelist

    def render_to_output(self, context: RenderContext, output: list[str]) -> Interrupt | None:
        return self.body.render_to_output(context, output)

    def render(self, context: RenderContext) -> str:
        return self.body.render(context)


class Document(BlockBody):
    """Root body of a template.

    Has no end delimiter: it parses until end of input, and any tag name
    that surfaces at the top level is an error.
    """

    __slots__ = ()

    @classmethod
    def from_tokens(cls, tokenizer: Tokenizer, parse_context: ParseContext) -> Document:
        document = cls()
        document.parse(tokenizer, parse_context)
        return document

    def parse(
        self, tokenizer: Tokenizer, parse_context: ParseContext
    ) -> tuple[str | None, str | None]:
        """Parse the whole template.

        Syntax errors without a location get the current line and the
        template name.
        """
        try:
            if parse_context.depth >= parse_context.max_depth:
                raise StackLevelError("Nesting too deep")
            parse_context.depth += 1
            try:
                end_tag_name, _ = super().parse(tokenizer, parse_context)
            finally:
                parse_context.depth -= 1
            if end_tag_name is not None:
                self.unknown_tag(end_tag_name)
        except TemplateError as e:
            if e.lineno is None:
                e.lineno = parse_context.line_number
            if e.template_name is None:
                e.template_name = parse_context.template_name
            raise
        return None, None

    def unknown_tag(self, tag_name: str) -> None:
        if tag_name in _STRUCTURAL_TAGS or tag_name.startswith("end"):
            raise TemplateSyntaxError(
                f"Unexpected outer '{tag_name}' tag", code=ErrorCode.UNEXPECTED_TAG
            )
        raise TemplateSyntaxError(f"Unknown tag '{tag_name}'", code=ErrorCode.UNKNOWN_TAG)
