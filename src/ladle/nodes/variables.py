"""Variable tags: assign, capture and cycle."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from ladle.environment.exceptions import TemplateSyntaxError
from ladle.nodes.base import Tag
from ladle.nodes.block import Block
from ladle.nodes.expressions import parse_expression
from ladle.nodes.output import Output
from ladle.template.helpers import to_i, to_output_string
from ladle.utils.constants import QUOTED_FRAGMENT, VARIABLE_SIGNATURE

if TYPE_CHECKING:
    from ladle.parser.context import ParseContext
    from ladle.render_context import Interrupt, RenderContext

_ASSIGN_SYNTAX = re.compile(rf"({VARIABLE_SIGNATURE}+)\s*=\s*(.*)\s*", re.DOTALL)
_CAPTURE_SYNTAX = re.compile(rf"({VARIABLE_SIGNATURE}+)")
_SIMPLE_CYCLE_SYNTAX = re.compile(rf"\A(?:{QUOTED_FRAGMENT})+")
_NAMED_CYCLE_SYNTAX = re.compile(rf"\A({QUOTED_FRAGMENT})\s*:\s*(.*)", re.DOTALL)
_CYCLE_VALUE = re.compile(rf"\s*({QUOTED_FRAGMENT})\s*")


def assign_score_of(value: Any) -> int:
    """Size of an assigned value for the assign score limit.

    Strings count their length, collections one plus their members, and
    anything else one.
    """
    if isinstance(value, str):
        return len(value)
    if isinstance(value, Mapping):
        return 1 + sum(1 + assign_score_of(k) + assign_score_of(v) for k, v in value.items())
    if isinstance(value, (list, tuple)):
        return 1 + sum(assign_score_of(item) for item in value)
    return 1


class Assign(Tag):
    """Template-wide variable: ``{% assign name = expression | filters %}``"""

    __slots__ = ("to", "source")

    def __init__(self, tag_name: str, markup: str, parse_context: ParseContext) -> None:
        super().__init__(tag_name, markup, parse_context)
        match = _ASSIGN_SYNTAX.search(markup)
        if match is None:
            raise TemplateSyntaxError(
                "Syntax Error in 'assign' - Valid syntax: assign [var] = [source]"
            )
        self.to = match.group(1)
        self.source = Output.parse(match.group(2), parse_context)

    @property
    def blank(self) -> bool:
        return True

    def children(self) -> tuple[Any, ...]:
        return (self.source,)

    def render(self, context: RenderContext) -> str:
        value = self.source.render(context)
        context.assign(self.to, value)
        context.resource_limits.assign_score += assign_score_of(value)
        return ""


class Capture(Block):
    """Assign rendered output: ``{% capture name %}...{% endcapture %}``"""

    __slots__ = ("to",)

    def __init__(self, tag_name: str, markup: str, parse_context: ParseContext) -> None:
        super().__init__(tag_name, markup, parse_context)
        match = _CAPTURE_SYNTAX.search(markup)
        if match is None:
            raise TemplateSyntaxError(
                "Syntax Error in 'capture' - Valid syntax: capture [var]"
            )
        self.to = match.group(1)

    @property
    def blank(self) -> bool:
        return True

    def render_to_output(self, context: RenderContext, output: list[str]) -> Interrupt | None:
        buffer: list[str] = []
        interrupt = self.body.render_to_output(context, buffer)
        text = "".join(buffer)
        context.assign(self.to, text)
        context.resource_limits.assign_score += len(text)
        return interrupt


class Cycle(Tag):
    """Rotate through values on each render: ``{% cycle 'odd', 'even' %}``

    Cycles sharing the same values share a position; ``{% cycle 'group':
    'a', 'b' %}`` names the group explicitly. Positions live in the
    ``cycle`` register.
    """

    __slots__ = ("name", "variables")

    def __init__(self, tag_name: str, markup: str, parse_context: ParseContext) -> None:
        super().__init__(tag_name, markup, parse_context)
        named = _NAMED_CYCLE_SYNTAX.match(markup)
        if named:
            self.variables = self._variables_from_string(named.group(2))
            self.name: Any = parse_expression(named.group(1))
        elif _SIMPLE_CYCLE_SYNTAX.match(markup):
            self.variables = self._variables_from_string(markup)
            self.name = ", ".join(repr(variable) for variable in self.variables)
        else:
            raise TemplateSyntaxError(
                "Syntax Error in 'cycle' - Valid syntax: cycle [name :] var [, var2, var3 ...]"
            )

    @staticmethod
    def _variables_from_string(markup: str) -> tuple[Any, ...]:
        variables = []
        for part in markup.split(","):
            match = _CYCLE_VALUE.search(part)
            if match:
                variables.append(parse_expression(match.group(1)))
        return tuple(variables)

    def children(self) -> tuple[Any, ...]:
        return self.variables

    def render(self, context: RenderContext) -> str:
        if not self.variables:
            return ""
        cycles = context.registers.setdefault("cycle", {})
        key = context.evaluate(self.name)
        iteration = to_i(cycles.get(key, 0)) % len(self.variables)
        result = context.evaluate(self.variables[iteration])
        cycles[key] = (iteration + 1) % len(self.variables)
        return to_output_string(result)
