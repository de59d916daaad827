"""Output nodes: ``{{ expression | filter: arg, key: value }}``."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ladle._types import LexTokenType
from ladle.nodes.base import parse_with_selected_parser
from ladle.nodes.expressions import parse_expression
from ladle.parser.markup import MarkupParser
from ladle.template.helpers import to_output_string
from ladle.utils.constants import QUOTED_FRAGMENT, TAG_ATTRIBUTES

if TYPE_CHECKING:
    from ladle.parser.context import ParseContext
    from ladle.render_context import Interrupt, RenderContext

_MARKUP_WITH_QUOTED_FRAGMENT = re.compile(rf"({QUOTED_FRAGMENT})(.*)", re.DOTALL)
_FILTER_MARKUP = re.compile(r"\|\s*(.*)", re.DOTALL)
_FILTER_PARSER = re.compile(rf"(?:\s+|{QUOTED_FRAGMENT}|,)+")
_FILTER_ARGS = re.compile(rf"(?::|,)\s*((?:\w+\s*:\s*)?{QUOTED_FRAGMENT})")
_FILTER_NAME = re.compile(r"\w+")


@dataclass(frozen=True, slots=True)
class FilterCall:
    """One ``| name: args`` step of an output's filter pipeline."""

    name: str
    args: tuple[Any, ...] = ()
    kwargs: tuple[tuple[str, Any], ...] = ()

    @classmethod
    def parse(cls, name: str, unparsed_args: list[str]) -> FilterCall:
        args: list[Any] = []
        kwargs: list[tuple[str, Any]] = []
        for argument in unparsed_args:
            match = TAG_ATTRIBUTES.fullmatch(argument.strip())
            if match:
                kwargs.append((match.group(1), parse_expression(match.group(2))))
            else:
                args.append(parse_expression(argument))
        return cls(name, tuple(args), tuple(kwargs))

    def apply(self, context: RenderContext, value: Any) -> Any:
        args = [context.evaluate(arg) for arg in self.args]
        kwargs = {key: context.evaluate(arg) for key, arg in self.kwargs}
        return context.invoke(self.name, value, *args, **kwargs)

    def children(self) -> tuple[Any, ...]:
        return self.args + tuple(arg for _, arg in self.kwargs)


def _lax_parse(markup: str) -> tuple[Any, tuple[FilterCall, ...]]:
    match = _MARKUP_WITH_QUOTED_FRAGMENT.search(markup)
    if match is None:
        return None, ()

    expression = parse_expression(match.group(1))
    filters: list[FilterCall] = []
    filter_markup = _FILTER_MARKUP.search(match.group(2))
    if filter_markup:
        for chunk in _FILTER_PARSER.findall(filter_markup.group(1)):
            name = _FILTER_NAME.search(chunk)
            if name is None:
                continue
            filters.append(FilterCall.parse(name.group(), _FILTER_ARGS.findall(chunk)))
    return expression, tuple(filters)


def _strict_parse(markup: str) -> tuple[Any, tuple[FilterCall, ...]]:
    parser = MarkupParser(markup)
    if parser.look(LexTokenType.END_OF_STRING):
        return None, ()

    expression = parse_expression(parser.expression())
    filters: list[FilterCall] = []
    while parser.consume_optional(LexTokenType.PIPE) is not None:
        name = parser.consume(LexTokenType.ID)
        args: list[str] = []
        if parser.consume_optional(LexTokenType.COLON) is not None:
            args.append(parser.argument())
            while parser.consume_optional(LexTokenType.COMMA) is not None:
                args.append(parser.argument())
        filters.append(FilterCall.parse(name, args))
    parser.consume(LexTokenType.END_OF_STRING)
    return expression, tuple(filters)


def parse_filtered_expression(
    markup: str, parse_context: ParseContext
) -> tuple[Any, tuple[FilterCall, ...]]:
    """Parse ``expression | filter...`` markup in the context's error mode."""
    return parse_with_selected_parser(
        markup, parse_context, strict=_strict_parse, lax=_lax_parse
    )


@dataclass(frozen=True, slots=True)
class Output:
    """Output expression: ``{{ expr | filters }}``.

    Attributes:
        expression: Parsed expression or literal.
        filters: Filter pipeline applied left to right.
        markup: Original inner markup, for error messages and tooling.
        lineno: Line of the ``{{``.
    """

    expression: Any
    filters: tuple[FilterCall, ...] = ()
    markup: str = ""
    lineno: int | None = field(default=None, compare=False)

    @classmethod
    def parse(cls, markup: str, parse_context: ParseContext) -> Output:
        expression, filters = parse_filtered_expression(markup, parse_context)
        return cls(expression, filters, markup, parse_context.line_number)

    @property
    def blank(self) -> bool:
        return False

    def evaluate(self, context: RenderContext) -> Any:
        """Evaluate the expression and run it through the filter pipeline."""
        value = context.evaluate(self.expression)
        for filter_call in self.filters:
            value = filter_call.apply(context, value)
        return value

    def render(self, context: RenderContext) -> Any:
        """Evaluated value, before the global filter."""
        return self.evaluate(context)

    def render_to_output(self, context: RenderContext, output: list[str]) -> Interrupt | None:
        value = self.evaluate(context)
        if context.global_filter is not None:
            value = context.global_filter(value)
        output.append(to_output_string(value))
        return None

    def children(self) -> tuple[Any, ...]:
        return (self.expression, *self.filters)
