"""Control flow tags: if, unless, case, for, break, continue, tablerow, ifchanged."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from ladle._types import LexTokenType
from ladle.environment.exceptions import TemplateSyntaxError
from ladle.nodes.base import Tag, parse_with_selected_parser
from ladle.nodes.block import Block, BlockBody
from ladle.nodes.condition import Condition, ElseCondition
from ladle.nodes.expressions import parse_expression
from ladle.parser.markup import MarkupParser
from ladle.render_context import Interrupt
from ladle.template.helpers import slice_collection, to_i
from ladle.template.loop_context import ForloopDrop, TablerowloopDrop
from ladle.utils.constants import (
    CONDITION_SYNTAX,
    EXPRESSIONS_AND_OPERATORS,
    QUOTED_FRAGMENT,
    TAG_ATTRIBUTES,
    VARIABLE_SEGMENT,
)

if TYPE_CHECKING:
    from ladle.lexer import Tokenizer
    from ladle.parser.context import ParseContext
    from ladle.render_context import RenderContext

BOOLEAN_OPERATORS = ("and", "or")


def link_conditions(conditions: list[Condition], relations: list[str]) -> Condition:
    """Chain conditions in source order: ``c0 r0 c1 r1 c2 ...``."""
    head = conditions[-1]
    for condition, relation in zip(reversed(conditions[:-1]), reversed(relations)):
        head = Condition(
            condition.left,
            condition.operator,
            condition.right,
            child_relation=relation,
            child_condition=head,
        )
    return head


def _condition_from_fragment(fragment: str, tag_name: str) -> Condition:
    match = CONDITION_SYNTAX.search(fragment)
    if match is None:
        raise TemplateSyntaxError(
            f"Syntax Error in tag '{tag_name}' - Valid syntax: {tag_name} [expression]"
        )
    return Condition(
        parse_expression(match.group(1)),
        match.group(2),
        parse_expression(match.group(3)),
    )


def lax_parse_condition(markup: str, tag_name: str = "if") -> Condition:
    """Parse ``a op b and c or d`` by fragment matching."""
    fragments = EXPRESSIONS_AND_OPERATORS.findall(markup)
    if not fragments:
        raise TemplateSyntaxError(
            f"Syntax Error in tag '{tag_name}' - Valid syntax: {tag_name} [expression]"
        )

    conditions = [_condition_from_fragment(fragments[0], tag_name)]
    relations: list[str] = []
    rest = fragments[1:]
    while rest:
        operator = rest.pop(0).strip()
        if operator not in BOOLEAN_OPERATORS or not rest:
            raise TemplateSyntaxError(
                f"Syntax Error in tag '{tag_name}' - Valid syntax: {tag_name} [expression]"
            )
        relations.append(operator)
        conditions.append(_condition_from_fragment(rest.pop(0), tag_name))
    return link_conditions(conditions, relations)


def strict_parse_condition(markup: str) -> Condition:
    """Parse ``a op b and c or d`` with the markup lexer."""
    parser = MarkupParser(markup)
    conditions = [_parse_comparison(parser)]
    relations: list[str] = []
    while (operator := parser.id("and") or parser.id("or")) is not None:
        relations.append(operator)
        conditions.append(_parse_comparison(parser))
    parser.consume(LexTokenType.END_OF_STRING)
    return link_conditions(conditions, relations)


def _parse_comparison(parser: MarkupParser) -> Condition:
    left = parse_expression(parser.expression())
    operator = parser.consume_optional(LexTokenType.COMPARISON)
    if operator is None:
        return Condition(left)
    return Condition(left, operator, parse_expression(parser.expression()))


class If(Block):
    """Conditional: ``{% if cond %}...{% elsif cond %}...{% else %}...{% endif %}``

    Only the first branch whose condition holds is rendered.
    """

    __slots__ = ("blocks",)

    def __init__(self, tag_name: str, markup: str, parse_context: ParseContext) -> None:
        super().__init__(tag_name, markup, parse_context)
        self.blocks: list[Condition] = []
        self._push_block(tag_name, markup, parse_context)

    def _push_block(self, tag_name: str, markup: str, parse_context: ParseContext) -> None:
        if tag_name == "else":
            condition: Condition = ElseCondition()
        else:
            condition = parse_with_selected_parser(
                markup,
                parse_context,
                strict=strict_parse_condition,
                lax=lambda text: lax_parse_condition(text, self.tag_name),
            )
        self.blocks.append(condition.attach(BlockBody()))

    def parse_nested(self, tokenizer: Tokenizer, parse_context: ParseContext) -> None:
        while self.parse_body(self.blocks[-1].attachment, tokenizer, parse_context):
            pass

    def unknown_tag(
        self, tag_name: str, markup: str, tokenizer: Tokenizer, parse_context: ParseContext
    ) -> None:
        if tag_name in ("elsif", "else"):
            self._push_block(tag_name, markup, parse_context)
        else:
            super().unknown_tag(tag_name, markup, tokenizer, parse_context)

    @property
    def nodelist(self) -> list[Any]:
        return [block.attachment for block in self.blocks]

    def children(self) -> list[Any]:
        return list(self.blocks)

    def render_to_output(self, context: RenderContext, output: list[str]) -> Interrupt | None:
        with context.stack():
            for block in self.blocks:
                if block.evaluate(context):
                    return block.attachment.render_to_output(context, output)
        return None


class Unless(If):
    """Negated conditional: ``{% unless cond %}...{% else %}...{% endunless %}``

    The first condition is negated; any ``elsif`` behaves as in ``if``.
    """

    __slots__ = ()

    def render_to_output(self, context: RenderContext, output: list[str]) -> Interrupt | None:
        with context.stack():
            first, *rest = self.blocks
            if not first.evaluate(context):
                return first.attachment.render_to_output(context, output)
            for block in rest:
                if block.evaluate(context):
                    return block.attachment.render_to_output(context, output)
        return None


_CASE_SYNTAX = re.compile(rf"({QUOTED_FRAGMENT})")
_WHEN_SYNTAX = re.compile(
    rf"({QUOTED_FRAGMENT})(?:(?:\s+or\s+|\s*,\s*)({QUOTED_FRAGMENT}.*))?", re.DOTALL
)
_INVALID_WHEN = (
    "Syntax Error in tag 'case' - Valid when condition: "
    "{% when [condition] [or condition2...] %}"
)


class Case(Block):
    """Multi-way match: ``{% case x %}{% when 1, 2 %}...{% else %}...{% endcase %}``

    Every matching ``when`` renders, in order. ``else`` renders only when no
    ``when`` matched.
    """

    __slots__ = ("left", "blocks")

    def __init__(self, tag_name: str, markup: str, parse_context: ParseContext) -> None:
        super().__init__(tag_name, markup, parse_context)
        self.blocks: list[Condition] = []
        match = _CASE_SYNTAX.search(markup)
        if match is None:
            raise TemplateSyntaxError("Syntax Error in 'case' - Valid syntax: case [condition]")
        self.left = parse_expression(match.group(1))

    def parse_nested(self, tokenizer: Tokenizer, parse_context: ParseContext) -> None:
        # Content before the first ``when`` is parsed but never rendered
        body = BlockBody()
        while self.parse_body(body, tokenizer, parse_context):
            body = self.blocks[-1].attachment

    def unknown_tag(
        self, tag_name: str, markup: str, tokenizer: Tokenizer, parse_context: ParseContext
    ) -> None:
        if tag_name == "when":
            self._record_when_condition(markup)
        elif tag_name == "else":
            self._record_else_condition(markup)
        else:
            super().unknown_tag(tag_name, markup, tokenizer, parse_context)

    def _record_when_condition(self, markup: str | None) -> None:
        if not markup or not markup.strip():
            raise TemplateSyntaxError(_INVALID_WHEN)
        body = BlockBody()
        while markup:
            match = _WHEN_SYNTAX.search(markup)
            if match is None:
                raise TemplateSyntaxError(_INVALID_WHEN)
            markup = match.group(2)
            condition = Condition(self.left, "==", parse_expression(match.group(1)))
            self.blocks.append(condition.attach(body))

    def _record_else_condition(self, markup: str) -> None:
        if markup.strip():
            raise TemplateSyntaxError(
                "Syntax Error in tag 'case' - Valid else condition: {% else %} (no parameters) "
            )
        self.blocks.append(ElseCondition().attach(BlockBody()))

    @property
    def nodelist(self) -> list[Any]:
        return [block.attachment for block in self.blocks]

    def children(self) -> list[Any]:
        return [self.left, *self.blocks]

    def render_to_output(self, context: RenderContext, output: list[str]) -> Interrupt | None:
        with context.stack():
            execute_else_block = True
            for block in self.blocks:
                if block.is_else:
                    if execute_else_block:
                        return block.attachment.render_to_output(context, output)
                elif block.evaluate(context):
                    execute_else_block = False
                    interrupt = block.attachment.render_to_output(context, output)
                    if interrupt is not None:
                        return interrupt
        return None


_FOR_SYNTAX = re.compile(
    rf"\A({VARIABLE_SEGMENT}+)\s+in\s+({QUOTED_FRAGMENT}+)\s*(reversed)?"
)


class For(Block):
    """Loop: ``{% for x in items reversed limit: 2 offset: 1 %}...{% else %}...{% endfor %}``

    ``offset: continue`` resumes where the previous loop with the same
    identity (``"<variable>-<collection markup>"``) stopped, as recorded in
    the ``for`` register.

    Attributes:
        variable_name: Loop variable.
        collection: Collection expression.
        name: Loop identity for offset continuation.
        reversed: Iterate the slice backwards.
        limit: Limit expression, or None.
        offset: Offset expression, or None.
        offset_continue: ``offset: continue`` was given.
    """

    __slots__ = (
        "variable_name",
        "collection",
        "name",
        "reversed",
        "limit",
        "offset",
        "offset_continue",
        "for_block",
        "else_block",
    )

    def __init__(self, tag_name: str, markup: str, parse_context: ParseContext) -> None:
        super().__init__(tag_name, markup, parse_context)
        self.for_block = self.body
        self.else_block: BlockBody | None = None
        parse_with_selected_parser(
            markup, parse_context, strict=self._strict_parse, lax=self._lax_parse
        )

    def _reset_attributes(self, variable_name: str, collection_markup: str, reversed_: bool) -> None:
        self.variable_name = variable_name
        self.name = f"{variable_name}-{collection_markup}"
        self.collection = parse_expression(collection_markup)
        self.reversed = reversed_
        self.limit: Any = None
        self.offset: Any = None
        self.offset_continue = False

    def _lax_parse(self, markup: str) -> None:
        match = _FOR_SYNTAX.match(markup)
        if match is None:
            raise TemplateSyntaxError(
                "Syntax Error in 'for loop' - Valid syntax: for [item] in [collection]"
            )
        self._reset_attributes(match.group(1), match.group(2), match.group(3) is not None)
        for attribute in TAG_ATTRIBUTES.finditer(markup):
            self._set_attribute(attribute.group(1), attribute.group(2))

    def _strict_parse(self, markup: str) -> None:
        parser = MarkupParser(markup)
        variable_name = parser.consume(LexTokenType.ID)
        if parser.id("in") is None:
            raise TemplateSyntaxError("For loops require an 'in' clause")
        collection_markup = parser.expression()
        self._reset_attributes(
            variable_name, collection_markup, parser.id("reversed") is not None
        )

        while parser.look(LexTokenType.ID) and parser.look(LexTokenType.COLON, 1):
            attribute = parser.id("limit") or parser.id("offset")
            if attribute is None:
                raise TemplateSyntaxError(
                    "Invalid attribute in for loop. Valid attributes are limit and offset"
                )
            parser.consume()
            self._set_attribute(attribute, parser.expression())
        parser.consume(LexTokenType.END_OF_STRING)

    def _set_attribute(self, key: str, markup: str) -> None:
        if key == "offset":
            if markup == "continue":
                self.offset_continue = True
                self.offset = None
            else:
                self.offset_continue = False
                self.offset = parse_expression(markup)
        elif key == "limit":
            self.limit = parse_expression(markup)

    def parse_nested(self, tokenizer: Tokenizer, parse_context: ParseContext) -> None:
        # parse_body only continues after unknown_tag opened the else body
        more = self.parse_body(self.for_block, tokenizer, parse_context)
        if more and self.else_block is not None:
            self.parse_body(self.else_block, tokenizer, parse_context)

    def unknown_tag(
        self, tag_name: str, markup: str, tokenizer: Tokenizer, parse_context: ParseContext
    ) -> None:
        if tag_name != "else" or self.else_block is not None:
            super().unknown_tag(tag_name, markup, tokenizer, parse_context)
            return
        self.else_block = BlockBody()

    @property
    def nodelist(self) -> list[Any]:
        if self.else_block is not None:
            return [self.for_block, self.else_block]
        return [self.for_block]

    def children(self) -> list[Any]:
        nodes = [*self.nodelist, self.limit, self.offset, self.collection]
        return [node for node in nodes if node is not None]

    def render_to_output(self, context: RenderContext, output: list[str]) -> Interrupt | None:
        offsets = context.registers.setdefault("for", {})
        collection = context.evaluate(self.collection)

        if self.offset_continue:
            start = to_i(offsets.get(self.name, 0))
        elif self.offset is None:
            start = 0
        else:
            start = to_i(context.evaluate(self.offset))
        stop = start + to_i(context.evaluate(self.limit)) if self.limit is not None else None

        segment = slice_collection(collection, start, stop)
        if self.reversed:
            segment.reverse()
        offsets[self.name] = start + len(segment)

        if not segment:
            if self.else_block is not None:
                with context.stack():
                    return self.else_block.render_to_output(context, output)
            return None
        self._render_segment(context, segment, output)
        return None

    def _render_segment(self, context: RenderContext, segment: list[Any], output: list[str]) -> None:
        for_stack: list[ForloopDrop] = context.registers.setdefault("for_stack", [])
        loop_vars = ForloopDrop(self.name, len(segment), for_stack[-1] if for_stack else None)
        for_stack.append(loop_vars)
        try:
            for item in segment:
                with context.stack({"forloop": loop_vars, self.variable_name: item}):
                    interrupt = self.for_block.render_to_output(context, output)
                loop_vars._increment()
                if interrupt is Interrupt.BREAK:
                    break
        finally:
            for_stack.pop()


class Break(Tag):
    """Leave the nearest enclosing loop: ``{% break %}``"""

    __slots__ = ()

    def render_to_output(self, context: RenderContext, output: list[str]) -> Interrupt | None:
        return Interrupt.BREAK


class Continue(Tag):
    """Skip to the next iteration of the nearest enclosing loop: ``{% continue %}``"""

    __slots__ = ()

    def render_to_output(self, context: RenderContext, output: list[str]) -> Interrupt | None:
        return Interrupt.CONTINUE


_TABLEROW_SYNTAX = re.compile(rf"(\w+)\s+in\s+({QUOTED_FRAGMENT}+)")


class TableRow(Block):
    """HTML table rows: ``{% tablerow item in items cols: 3 limit: 9 offset: 0 %}``

    Emits ``<tr class="rowN">`` rows of ``<td class="colN">`` cells and
    exposes ``tablerowloop``. ``break`` and ``continue`` act as in ``for``.
    """

    __slots__ = ("variable_name", "collection", "attributes")

    def __init__(self, tag_name: str, markup: str, parse_context: ParseContext) -> None:
        super().__init__(tag_name, markup, parse_context)
        match = _TABLEROW_SYNTAX.search(markup)
        if match is None:
            raise TemplateSyntaxError(
                "Syntax Error in 'table_row loop' - Valid syntax: "
                "table_row [item] in [collection] cols=3"
            )
        self.variable_name = match.group(1)
        self.collection = parse_expression(match.group(2))
        self.attributes: dict[str, Any] = {
            attribute.group(1): parse_expression(attribute.group(2))
            for attribute in TAG_ATTRIBUTES.finditer(markup)
        }

    def children(self) -> list[Any]:
        return [*self.nodelist, *self.attributes.values(), self.collection]

    def render_to_output(self, context: RenderContext, output: list[str]) -> Interrupt | None:
        collection = context.evaluate(self.collection)
        if collection is None or collection is False:
            return None

        attributes = self.attributes
        start = to_i(context.evaluate(attributes["offset"])) if "offset" in attributes else 0
        stop = start + to_i(context.evaluate(attributes["limit"])) if "limit" in attributes else None
        segment = slice_collection(collection, start, stop)
        cols = to_i(context.evaluate(attributes.get("cols")))

        output.append('<tr class="row1">\n')
        loop_vars = TablerowloopDrop(len(segment), cols)
        with context.stack({"tablerowloop": loop_vars}):
            for item in segment:
                context[self.variable_name] = item
                output.append(f'<td class="col{loop_vars.col}">')
                interrupt = self.body.render_to_output(context, output)
                output.append("</td>")
                if loop_vars.col_last and not loop_vars.last:
                    output.append(f'</tr>\n<tr class="row{loop_vars.row + 1}">')
                loop_vars._increment()
                if interrupt is Interrupt.BREAK:
                    break
        output.append("</tr>\n")
        return None


class Ifchanged(Block):
    """Render the body only if its output differs from the previous render:
    ``{% ifchanged %}{{ item.category }}{% endifchanged %}``
    """

    __slots__ = ()

    def render_to_output(self, context: RenderContext, output: list[str]) -> Interrupt | None:
        buffer: list[str] = []
        with context.stack():
            interrupt = self.body.render_to_output(context, buffer)
        text = "".join(buffer)
        if text != context.registers.get("ifchanged"):
            context.registers["ifchanged"] = text
            output.append(text)
        return interrupt
