"""Tests for control flow tags: if, unless, case, for, break/continue, tablerow, ifchanged."""

from __future__ import annotations

import pytest

from ladle import Environment
from ladle.environment.exceptions import TemplateSyntaxError
from ladle.nodes.base import Tag

from .conftest import assert_template_result, render


class ScopeDepth(Tag):
    """Renders how many scopes are active."""

    __slots__ = ()

    def render(self, context):
        return str(len(context.scopes))


class TestIf:
    """if / elsif / else."""

    def test_first_true_branch_only(self) -> None:
        source = "{% if a %}A{% elsif b %}B{% elsif c %}C{% else %}E{% endif %}"
        assert_template_result("A", source, {"a": True, "b": True, "c": True})
        assert_template_result("B", source, {"b": True, "c": True})
        assert_template_result("C", source, {"c": True})
        assert_template_result("E", source)

    def test_no_branch(self) -> None:
        assert_template_result("", "{% if false %}x{% elsif false %}y{% endif %}")

    def test_nested(self) -> None:
        assert_template_result(
            "ab", "{% if true %}a{% if 1 > 0 %}b{% endif %}{% endif %}"
        )

    def test_missing_condition_is_a_syntax_error(self, env) -> None:
        with pytest.raises(TemplateSyntaxError, match="Valid syntax: if \\[expression\\]"):
            env.from_string("{% if %}x{% endif %}")

    def test_dangling_operator_is_a_syntax_error(self, env) -> None:
        with pytest.raises(TemplateSyntaxError):
            env.from_string("{% if a and %}x{% endif %}")

    def test_assign_inside_branch_is_template_wide(self) -> None:
        assert_template_result("1", "{% if true %}{% assign x = 1 %}{% endif %}{{ x }}")


class TestUnless:
    """unless negates its first condition."""

    def test_unless(self) -> None:
        assert_template_result("x", "{% unless false %}x{% endunless %}")
        assert_template_result("", "{% unless true %}x{% endunless %}")

    def test_else(self) -> None:
        assert_template_result("no", "{% unless a %}yes{% else %}no{% endunless %}", {"a": 1})

    def test_elsif_is_not_negated(self) -> None:
        source = "{% unless a %}A{% elsif b %}B{% else %}E{% endunless %}"
        assert_template_result("B", source, {"a": True, "b": True})
        assert_template_result("E", source, {"a": True})

    def test_compound_condition_negated_as_a_whole(self) -> None:
        assert_template_result(
            "", "{% unless a == 1 and b == 2 %}x{% endunless %}", {"a": 1, "b": 2}
        )


class TestCase:
    """case / when / else."""

    SOURCE = "{% case x %}{% when 1 %}one{% when 2, 3 %}few{% when 'a' or 'b' %}ab{% else %}many{% endcase %}"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(1, "one"), (2, "few"), (3, "few"), ("a", "ab"), ("b", "ab"), (9, "many"), (None, "many")],
    )
    def test_match(self, value: object, expected: str) -> None:
        assert_template_result(expected, self.SOURCE, {"x": value})

    def test_every_matching_when_renders(self) -> None:
        source = "{% case x %}{% when 1 %}a{% when 1 %}b{% else %}c{% endcase %}"
        assert_template_result("ab", source, {"x": 1})

    def test_value_repeated_in_one_when_renders_once_per_value(self) -> None:
        assert_template_result("aa", "{% case 1 %}{% when 1, 1 %}a{% endcase %}")

    def test_content_before_first_when_is_dropped(self) -> None:
        assert_template_result("one", "{% case 1 %}junk{% when 1 %}one{% endcase %}")

    def test_no_match_without_else(self) -> None:
        assert_template_result("", "{% case 5 %}{% when 1 %}one{% endcase %}")

    def test_bool_does_not_match_integer(self) -> None:
        assert_template_result("", "{% case x %}{% when 1 %}one{% endcase %}", {"x": True})

    def test_empty_literal(self) -> None:
        assert_template_result(
            "empty", "{% case x %}{% when empty %}empty{% endcase %}", {"x": []}
        )

    def test_variable_when(self) -> None:
        assert_template_result(
            "hit", "{% case x %}{% when y %}hit{% endcase %}", {"x": "k", "y": "k"}
        )

    def test_else_with_markup_is_an_error(self, env) -> None:
        with pytest.raises(TemplateSyntaxError, match="Valid else condition"):
            env.from_string("{% case x %}{% when 1 %}{% else 2 %}{% endcase %}")

    def test_case_without_subject_is_an_error(self, env) -> None:
        with pytest.raises(TemplateSyntaxError, match="Valid syntax: case"):
            env.from_string("{% case %}{% endcase %}")

    @pytest.mark.parametrize("mode", ["lax", "strict"])
    @pytest.mark.parametrize(
        "source",
        [
            "{% case x %}{% when %}A{% endcase %}",
            "{% case 1 %}{% when 1 %}A{% when %}B{% endcase %}",
            "{% case 1 %}{% when 1 %}A{% when   %}B{% endcase %}",
        ],
    )
    def test_when_without_condition_is_an_error(self, source: str, mode: str) -> None:
        with pytest.raises(TemplateSyntaxError, match="Valid when condition"):
            Environment(error_mode=mode).from_string(source)


class TestFor:
    """for loops: slicing, reversal, else and forloop metadata."""

    def test_basic(self) -> None:
        assert_template_result("123", "{% for i in items %}{{ i }}{% endfor %}", {"items": [1, 2, 3]})

    def test_range(self) -> None:
        assert_template_result("1234", "{% for i in (1..4) %}{{ i }}{% endfor %}")

    def test_range_with_variable_end(self) -> None:
        assert_template_result("123", "{% for i in (1..n) %}{{ i }}{% endfor %}", {"n": 3})

    def test_limit_and_offset(self) -> None:
        data = {"items": [1, 2, 3, 4, 5, 6]}
        assert_template_result("34", "{% for i in items limit: 2 offset: 2 %}{{ i }}{% endfor %}", data)
        assert_template_result("56", "{% for i in items offset: 4 %}{{ i }}{% endfor %}", data)
        assert_template_result("12", "{% for i in items limit: n %}{{ i }}{% endfor %}", {**data, "n": 2})

    def test_reversed_applies_after_slicing(self) -> None:
        assert_template_result(
            "43",
            "{% for i in items reversed limit: 2 offset: 2 %}{{ i }}{% endfor %}",
            {"items": [1, 2, 3, 4, 5]},
        )

    def test_else_on_empty(self) -> None:
        source = "{% for i in items %}{{ i }}{% else %}none{% endfor %}"
        assert_template_result("none", source, {"items": []})
        assert_template_result("none", source)
        assert_template_result("1", source, {"items": [1]})

    def test_else_renders_in_its_own_scope(self) -> None:
        env = Environment()
        env.register_tag("depth", ScopeDepth)
        source = "{% depth %}-{% for i in items %}{% else %}{% depth %}{% endfor %}"
        assert env.from_string(source).render(items=[]) == "1-2"

    def test_else_when_offset_skips_everything(self) -> None:
        assert_template_result(
            "none",
            "{% for i in items offset: 5 %}{{ i }}{% else %}none{% endfor %}",
            {"items": [1, 2]},
        )

    def test_string_is_a_single_item(self) -> None:
        assert_template_result("[abc]", "{% for c in s %}[{{ c }}]{% endfor %}", {"s": "abc"})

    def test_mapping_iterates_pairs(self) -> None:
        assert_template_result(
            "a=1;b=2;",
            "{% for pair in h %}{{ pair[0] }}={{ pair[1] }};{% endfor %}",
            {"h": {"a": 1, "b": 2}},
        )

    def test_forloop_metadata(self) -> None:
        source = (
            "{% for i in items %}"
            "{{ forloop.index }}{{ forloop.index0 }}{{ forloop.rindex }}{{ forloop.rindex0 }}"
            "{% if forloop.first %}F{% endif %}{% if forloop.last %}L{% endif %}"
            "/{{ forloop.length }} "
            "{% endfor %}"
        )
        assert_template_result(
            "1021F/2 2110L/2 ", source, {"items": ["a", "b"]}
        )

    def test_forloop_name(self) -> None:
        assert_template_result(
            "i-items", "{% for i in items %}{{ forloop.name }}{% endfor %}", {"items": [1]}
        )

    def test_parentloop(self) -> None:
        source = (
            "{% for a in (1..2) %}{% for b in (1..2) %}"
            "{{ forloop.parentloop.index }}{{ forloop.index }} "
            "{% endfor %}{% endfor %}"
        )
        assert_template_result("11 12 21 22 ", source)

    def test_parentloop_is_nil_at_top_level(self) -> None:
        assert_template_result(
            "nil", "{% for a in (1..1) %}{% if forloop.parentloop == nil %}nil{% endif %}{% endfor %}"
        )

    def test_loop_variable_does_not_leak(self) -> None:
        assert_template_result("3|", "{% for i in (1..3) %}{% endfor %}{{ forloop.index }}{% for i in (1..3) %}{% if forloop.last %}{{ i }}{% endif %}{% endfor %}|{{ i }}")

    def test_loop_variable_shadows_outer(self) -> None:
        assert_template_result("12x", "{% for x in (1..2) %}{{ x }}{% endfor %}{{ x }}", {"x": "x"})

    def test_offset_continue(self) -> None:
        source = (
            "{% for i in items limit: 2 %}{{ i }}{% endfor %}|"
            "{% for i in items limit: 2 offset: continue %}{{ i }}{% endfor %}|"
            "{% for i in items offset: continue %}{{ i }}{% endfor %}"
        )
        assert_template_result("12|34|56", source, {"items": [1, 2, 3, 4, 5, 6]})

    def test_offset_continue_is_per_loop_identity(self) -> None:
        source = (
            "{% for i in a limit: 1 %}{{ i }}{% endfor %}"
            "{% for i in b offset: continue %}{{ i }}{% endfor %}"
        )
        assert_template_result("1xy", source, {"a": [1, 2], "b": ["x", "y"]})

    def test_invalid_syntax(self, env) -> None:
        with pytest.raises(TemplateSyntaxError, match="Valid syntax: for \\[item\\] in \\[collection\\]"):
            env.from_string("{% for i %}{% endfor %}")

    def test_strict_requires_in(self, env_strict) -> None:
        with pytest.raises(TemplateSyntaxError, match="For loops require an 'in' clause"):
            env_strict.from_string("{% for i of items %}{% endfor %}")

    def test_strict_rejects_unknown_attribute(self, env_strict) -> None:
        with pytest.raises(TemplateSyntaxError, match="Valid attributes are limit and offset"):
            env_strict.from_string("{% for i in items cols: 2 %}{% endfor %}")

    def test_lax_ignores_unknown_attribute(self) -> None:
        assert render("{% for i in items cols: 2 %}{{ i }}{% endfor %}", {"items": [1, 2]}) == "12"


class TestBreakContinue:
    """break and continue affect the nearest enclosing loop."""

    def test_break(self) -> None:
        assert_template_result(
            "12", "{% for i in (1..5) %}{% if i == 3 %}{% break %}{% endif %}{{ i }}{% endfor %}"
        )

    def test_continue(self) -> None:
        assert_template_result(
            "1245",
            "{% for i in (1..5) %}{% if i == 3 %}{% continue %}{% endif %}{{ i }}{% endfor %}",
        )

    def test_output_before_break_is_kept(self) -> None:
        assert_template_result("a1", "{% for i in (1..3) %}a{{ i }}{% break %}b{% endfor %}")

    def test_break_only_leaves_inner_loop(self) -> None:
        source = (
            "{% for a in (1..2) %}{% for b in (1..3) %}"
            "{% if b == 2 %}{% break %}{% endif %}{{ a }}{{ b }} "
            "{% endfor %}{% endfor %}"
        )
        assert_template_result("11 21 ", source)

    def test_break_inside_case(self) -> None:
        source = (
            "{% for i in (1..4) %}{% case i %}{% when 3 %}{% break %}{% endcase %}"
            "{{ i }}{% endfor %}"
        )
        assert_template_result("12", source)

    def test_continue_inside_capture(self) -> None:
        source = (
            "{% for i in (1..3) %}{% capture c %}{{ i }}{% continue %}x{% endcapture %}"
            "{{ c }}{% endfor %}{{ c }}"
        )
        assert_template_result("3", source)

    def test_parentloop_index_after_break(self) -> None:
        source = (
            "{% for a in (1..2) %}{% for b in (1..2) %}{% break %}{% endfor %}"
            "{{ forloop.index }}{% endfor %}"
        )
        assert_template_result("12", source)


class TestTableRow:
    """tablerow renders HTML rows."""

    def test_cols(self) -> None:
        source = "{% tablerow i in items cols: 2 %}{{ i }}{% endtablerow %}"
        expected = (
            '<tr class="row1">\n'
            '<td class="col1">1</td><td class="col2">2</td></tr>\n'
            '<tr class="row2"><td class="col1">3</td>'
            "</tr>\n"
        )
        assert_template_result(expected, source, {"items": [1, 2, 3]})

    def test_without_cols_is_one_row(self) -> None:
        assert_template_result(
            '<tr class="row1">\n<td class="col1">a</td><td class="col2">b</td></tr>\n',
            "{% tablerow i in items %}{{ i }}{% endtablerow %}",
            {"items": ["a", "b"]},
        )

    def test_limit_and_offset(self) -> None:
        assert_template_result(
            '<tr class="row1">\n<td class="col1">2</td></tr>\n',
            "{% tablerow i in items limit: 1 offset: 1 %}{{ i }}{% endtablerow %}",
            {"items": [1, 2, 3]},
        )

    def test_empty_collection(self) -> None:
        assert_template_result(
            '<tr class="row1">\n</tr>\n', "{% tablerow i in items %}{{ i }}{% endtablerow %}", {"items": []}
        )

    def test_nil_collection_renders_nothing(self) -> None:
        assert_template_result("", "{% tablerow i in items %}{{ i }}{% endtablerow %}")

    def test_tablerowloop(self) -> None:
        source = (
            "{% tablerow i in items cols: 2 %}"
            "{{ tablerowloop.row }}{{ tablerowloop.col }}{{ tablerowloop.index }}"
            "{% if tablerowloop.col_first %}f{% endif %}{% if tablerowloop.col_last %}l{% endif %}"
            "{% endtablerow %}"
        )
        expected = (
            '<tr class="row1">\n'
            '<td class="col1">111f</td><td class="col2">122l</td></tr>\n'
            '<tr class="row2"><td class="col1">213f</td>'
            "</tr>\n"
        )
        assert_template_result(expected, source, {"items": [1, 2, 3]})

    def test_break(self) -> None:
        assert_template_result(
            '<tr class="row1">\n<td class="col1">1</td></tr>\n',
            "{% tablerow i in (1..3) %}{{ i }}{% break %}{% endtablerow %}",
        )

    def test_invalid_syntax(self, env) -> None:
        with pytest.raises(TemplateSyntaxError, match="Valid syntax: table_row"):
            env.from_string("{% tablerow %}{% endtablerow %}")


class TestIfchanged:
    """ifchanged suppresses repeated output."""

    def test_repeats_suppressed(self) -> None:
        assert_template_result(
            "1231",
            "{% for i in items %}{% ifchanged %}{{ i }}{% endifchanged %}{% endfor %}",
            {"items": [1, 1, 2, 3, 3, 1]},
        )

    def test_state_is_per_render(self, env) -> None:
        """Registers live on the template unless a render passes its own."""
        template = env.from_string("{% ifchanged %}x{% endifchanged %}")
        assert template.render_with({}, registers={}) == "x"
        assert template.render_with({}, registers={}) == "x"
