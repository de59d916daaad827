"""Base classes for Ladle template nodes.

A BlockBody's node list holds three kinds of nodes:

- ``str``: literal text, rendered verbatim.
- ``Output``: a ``{{ expression | filters }}`` segment (frozen dataclass).
- ``Tag``: anything produced by a registered tag class.

Tags are constructed once at parse time and never mutated afterwards, so a
parsed tree can be rendered concurrently. All render-time state lives on
the RenderContext.

"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

from ladle.environment.exceptions import TemplateSyntaxError
from ladle.parser.context import ErrorMode

if TYPE_CHECKING:
    from ladle.lexer import Tokenizer
    from ladle.parser.context import ParseContext
    from ladle.render_context import Interrupt, RenderContext

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Tag:
    """Base class for all tags.

    Subclasses parse their markup in ``__init__`` and raise
    TemplateSyntaxError for invalid markup. Block tags additionally
    override ``parse_nested`` to consume their body tokens.

    Capabilities used by the render engine and tooling:
        render(context): output text of a leaf tag
        render_to_output(context, output): append output, return an Interrupt
        blank: output is discarded (assign-like tags)
        nodelist / children(): nested nodes, for tree walkers

    Attributes:
        tag_name: Name the tag was registered and invoked under.
        markup: Raw markup following the tag name.
        lineno: Line the tag starts on, or None without line tracking.
    """

    __slots__ = ("tag_name", "markup", "lineno")

    def __init__(self, tag_name: str, markup: str, parse_context: ParseContext) -> None:
        self.tag_name = tag_name
        self.markup = markup
        self.lineno = parse_context.line_number

    @classmethod
    def parse(
        cls,
        tag_name: str,
        markup: str,
        tokenizer: Tokenizer,
        parse_context: ParseContext,
    ) -> Tag:
        """Build a tag and let it consume any nested tokens."""
        tag = cls(tag_name, markup, parse_context)
        tag.parse_nested(tokenizer, parse_context)
        return tag

    def parse_nested(self, tokenizer: Tokenizer, parse_context: ParseContext) -> None:
        """Consume nested tokens. Leaf tags consume nothing."""

    @property
    def raw(self) -> str:
        return f"{self.tag_name} {self.markup}"

    @property
    def blank(self) -> bool:
        return False

    @property
    def nodelist(self) -> Sequence[Any]:
        return ()

    def children(self) -> Sequence[Any]:
        """Child nodes and expressions for ParseTreeVisitor."""
        return self.nodelist

    def render(self, context: RenderContext) -> str:
        return ""

    def render_to_output(self, context: RenderContext, output: list[str]) -> Interrupt | None:
        """Append this tag's output and report a pending loop interrupt.

        Leaf tags never interrupt. Block tags override this to pass on the
        interrupt of their body.
        """
        output.append(self.render(context))
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.raw.strip()!r} line={self.lineno}>"


def markup_context(markup: str) -> str:
    return f'in "{markup.strip()}"'


def parse_with_selected_parser(
    markup: str,
    parse_context: ParseContext,
    *,
    strict: Callable[[str], T],
    lax: Callable[[str], T],
) -> T:
    """Parse markup with the grammar selected by the parse context's error mode.

    Strict failures are annotated with the current line and the offending
    markup. In warn mode they are recorded on the parse context, logged and
    the lax grammar is used instead.
    """
    mode = parse_context.error_mode
    if mode is ErrorMode.LAX:
        return lax(markup)

    try:
        return strict(markup)
    except TemplateSyntaxError as e:
        if e.lineno is None:
            e.lineno = parse_context.line_number
        e.markup_context = markup_context(markup)
        if mode is ErrorMode.STRICT:
            raise
        parse_context.warnings.append(e)
        logger.warning("Falling back to lax parsing: %s", e)
    return lax(markup)
