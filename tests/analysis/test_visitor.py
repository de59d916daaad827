"""Tests for parse tree traversal."""

from __future__ import annotations

from ladle import Environment
from ladle.analysis import ParseTreeVisitor, child_nodes, referenced_variables, walk
from ladle.nodes.block import Block, BlockBody
from ladle.nodes.control_flow import For, If
from ladle.nodes.expressions import VariableLookup
from ladle.nodes.output import Output


def parse(source: str):
    return Environment().from_string(source).root


def flatten(results) -> list:
    items = []
    for item, nested in results:
        if item is not None:
            items.append(item)
        items.extend(flatten(nested))
    return items


class TestChildNodes:
    """Children exposed by each node kind."""

    def test_document_children_are_its_nodes(self) -> None:
        root = parse("a{{ x }}{% if y %}{% endif %}")
        children = child_nodes(root)
        assert children[0] == "a"
        assert isinstance(children[1], Output)
        assert isinstance(children[2], If)

    def test_leaves_have_no_children(self) -> None:
        assert child_nodes("text") == []
        assert child_nodes(42) == []

    def test_empty_slots_are_skipped(self) -> None:
        (for_tag,) = child_nodes(parse("{% for i in items %}{% endfor %}"))
        children = child_nodes(for_tag)
        assert None not in children
        assert isinstance(children[0], BlockBody)
        assert isinstance(children[-1], VariableLookup)


class TestWalk:
    """Depth-first traversal."""

    def test_source_order(self) -> None:
        root = parse("{% if user %}{{ user.name }}{% endif %}")
        assert [type(node).__name__ for node in walk(root)] == [
            "Document",
            "If",
            "Condition",
            "VariableLookup",
            "BlockBody",
            "Output",
            "VariableLookup",
            "str",
        ]

    def test_includes_root(self) -> None:
        root = parse("")
        assert list(walk(root)) == [root]

    def test_filter_arguments_are_walked(self) -> None:
        root = parse("{{ a | append: b }}")
        names = [node.name for node in walk(root) if isinstance(node, VariableLookup)]
        assert names == ["a", "b"]


class TestParseTreeVisitor:
    """Callbacks and context propagation."""

    def test_collects_callback_items(self) -> None:
        root = parse("{% if user %}{{ user.name }}{% endif %}")
        visitor = ParseTreeVisitor(root).add_callback_for(
            VariableLookup, callback=lambda node, context: (node.name, None)
        )
        assert flatten(visitor.visit()) == ["user", "user"]

    def test_results_nest_like_the_tree(self) -> None:
        root = parse("{{ x }}")
        visitor = ParseTreeVisitor(root).add_callback_for(
            Output, callback=lambda node, context: ("output", None)
        )
        assert visitor.visit() == [("output", [(None, [])])]

    def test_callbacks_match_base_classes(self) -> None:
        root = parse("{% if a %}{% for i in b %}{% endfor %}{% endif %}")
        visitor = ParseTreeVisitor(root).add_callback_for(
            Block, callback=lambda node, context: (node.tag_name, None)
        )
        assert flatten(visitor.visit()) == ["if", "for"]

    def test_context_is_passed_to_descendants(self) -> None:
        root = parse("{% for p in products %}{{ p.title }}{% endfor %}{{ p }}")
        visitor = ParseTreeVisitor(root)
        visitor.add_callback_for(
            For, callback=lambda node, scope: (None, scope + (node.variable_name,))
        )
        visitor.add_callback_for(
            VariableLookup, callback=lambda node, scope: ((node.name, scope), None)
        )
        assert sorted(flatten(visitor.visit(()))) == [
            ("p", ()),
            ("p", ("p",)),
            ("products", ("p",)),
        ]

    def test_callback_returning_none(self) -> None:
        root = parse("{{ x }}")
        visitor = ParseTreeVisitor(root).add_callback_for(
            Output, callback=lambda node, context: None
        )
        assert flatten(visitor.visit()) == []


class TestReferencedVariables:
    """Root names of variable lookups."""

    def test_condition_and_output(self) -> None:
        root = parse("{% if user %}{{ user.name }}{% endif %}")
        assert referenced_variables(root) == {"user"}

    def test_collects_across_tags(self) -> None:
        source = (
            "{% assign total = price | times: qty %}"
            "{% for item in cart.items limit: max %}{{ item }}{% endfor %}"
            "{% case kind %}{% when other %}{% endcase %}"
        )
        assert referenced_variables(parse(source)) == {
            "price",
            "qty",
            "cart",
            "max",
            "item",
            "kind",
            "other",
        }

    def test_bracket_lookups(self) -> None:
        assert referenced_variables(parse("{{ a[b] }}")) == {"a", "b"}

    def test_literals_are_not_variables(self) -> None:
        assert referenced_variables(parse("{{ 'x' }}{{ 1 }}{% if true %}{% endif %}")) == set()
