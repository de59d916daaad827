"""Ladle Environment: parse configuration plus tag and filter registries.

The Environment is the entry point for parsing templates. It owns the tag
and filter registries and the default parse and render options; every
``from_string`` call builds a fresh ParseContext from them.

Thread-Safety:
Registries are copy-on-write: registering a tag or filter replaces the
underlying dict, so parses and renders already in flight keep using the
mapping they started with. Parsing shares no mutable state between calls.

Example:
    >>> from ladle import Environment
    >>> env = Environment(error_mode="strict")
    >>> env.register_filter("shout", lambda value: f"{value}!")
    >>> env.from_string("{{ greeting | shout }}").render(greeting="hi")
    'hi!'

"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from ladle.environment.exceptions import TemplateError
from ladle.environment.filters import DEFAULT_FILTERS
from ladle.environment.registry import FilterRegistry, TagRegistry, default_tags
from ladle.lexer import Tokenizer
from ladle.nodes.block import Document
from ladle.parser.context import DEFAULT_MAX_DEPTH, ErrorMode, ParseContext

if TYPE_CHECKING:
    from ladle.nodes.base import Tag
    from ladle.template.core import Template

logger = logging.getLogger(__name__)


class Environment:
    """Central configuration for parsing and rendering templates.

    Args:
        error_mode: ``"lax"``, ``"warn"`` or ``"strict"`` markup parsing.
        line_numbers: Track line numbers for error messages.
        max_depth: Maximum block nesting depth accepted by the parser.
        strict_variables: Undefined variables raise UndefinedError.
        strict_filters: Unknown filters raise UndefinedFilterError.
        resource_limits: Ceilings keyed ``render_length_limit``,
            ``render_score_limit`` and ``assign_score_limit``; None or a
            missing key means unlimited.
        exception_renderer: Converts an error caught during rendering to the
            text rendered in its place. Defaults to ``str``.
        tags: Tag name to Tag subclass mapping replacing the built-ins.
        filters: Filter name to callable mapping replacing the built-ins.
    """

    def __init__(
        self,
        *,
        error_mode: ErrorMode | str = ErrorMode.LAX,
        line_numbers: bool = True,
        max_depth: int = DEFAULT_MAX_DEPTH,
        strict_variables: bool = False,
        strict_filters: bool = False,
        resource_limits: Mapping[str, int | None] | None = None,
        exception_renderer: Callable[[TemplateError], Any] | None = None,
        tags: Mapping[str, type[Tag]] | None = None,
        filters: Mapping[str, Callable[..., Any]] | None = None,
    ) -> None:
        self.error_mode = ErrorMode(error_mode)
        self.line_numbers = line_numbers
        self.max_depth = max_depth
        self.strict_variables = strict_variables
        self.strict_filters = strict_filters
        self.resource_limits: dict[str, int | None] = dict(resource_limits or {})
        self.exception_renderer = exception_renderer
        self._tags: dict[str, type[Tag]] = default_tags() if tags is None else dict(tags)
        self._filters: dict[str, Callable[..., Any]] = (
            dict(DEFAULT_FILTERS) if filters is None else dict(filters)
        )

    @property
    def tags(self) -> TagRegistry:
        """Tags available to templates parsed from now on."""
        return TagRegistry(self, "_tags")

    @property
    def filters(self) -> FilterRegistry:
        """Filters available to every render."""
        return FilterRegistry(self, "_filters")

    def register_tag(self, name: str, tag_class: type[Tag]) -> None:
        """Make ``{% name %}`` parse as ``tag_class``."""
        self.tags[name] = tag_class

    def register_filter(self, name: str, func: Callable[..., Any]) -> None:
        """Make ``{{ value | name }}`` call ``func(value, *args, **kwargs)``."""
        self.filters[name] = func

    def from_string(
        self,
        source: str,
        name: str | None = None,
        *,
        error_mode: ErrorMode | str | None = None,
        line_numbers: bool | None = None,
        max_depth: int | None = None,
    ) -> Template:
        """Parse template source into a Template.

        Keyword arguments override the environment's parse options for this
        call only.

        Raises:
            TemplateSyntaxError: Invalid template syntax (carries the source
                for ``format_compact`` snippets).
            StackLevelError: Blocks nested deeper than ``max_depth``.
        """
        from ladle.template.core import Template

        parse_context = ParseContext(
            tags=self._tags,
            error_mode=self.error_mode if error_mode is None else error_mode,
            line_numbers=self.line_numbers if line_numbers is None else line_numbers,
            max_depth=self.max_depth if max_depth is None else max_depth,
            template_name=name,
        )
        tokenizer = Tokenizer(source, line_numbers=parse_context.line_numbers)
        try:
            root = Document.from_tokens(tokenizer, parse_context)
        except TemplateError as e:
            if e.source is None:
                e.source = source
            raise

        if parse_context.warnings:
            logger.debug(
                "Parsed %s with %d warning(s)", name or "<template>", len(parse_context.warnings)
            )
        return Template(self, root, name=name, source=source, warnings=parse_context.warnings)

    parse = from_string

    def __repr__(self) -> str:
        return (
            f"<Environment error_mode={self.error_mode.value} "
            f"tags={len(self._tags)} filters={len(self._filters)}>"
        )
