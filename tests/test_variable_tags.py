"""Tests for assign, capture and cycle."""

from __future__ import annotations

import pytest

from ladle.environment.exceptions import TemplateSyntaxError
from ladle.nodes.variables import assign_score_of

from .conftest import assert_template_result


class TestAssign:
    """assign binds template-wide variables."""

    def test_literal(self) -> None:
        assert_template_result("hi", "{% assign x = 'hi' %}{{ x }}")

    def test_with_filters(self) -> None:
        assert_template_result("HI", "{% assign x = 'hi' | upcase %}{{ x }}")

    def test_filter_arguments(self) -> None:
        assert_template_result(
            "x-y", "{% assign a = 'x,y' | split: ',' %}{{ a | join: '-' }}"
        )

    def test_range(self) -> None:
        assert_template_result("1..3", "{% assign r = (1..3) %}{{ r }}")

    def test_shadows_render_data(self) -> None:
        assert_template_result("2", "{% assign x = 2 %}{{ x }}", {"x": 1})

    def test_visible_after_loop(self) -> None:
        assert_template_result(
            "3", "{% for i in (1..3) %}{% assign last = i %}{% endfor %}{{ last }}"
        )

    def test_renders_nothing(self) -> None:
        assert_template_result("ab", "a{% assign x = 1 %}b")

    def test_dotted_name(self) -> None:
        assert_template_result("1", "{% assign page.x = 1 %}{{ ['page.x'] }}")

    def test_invalid_syntax(self, env) -> None:
        with pytest.raises(TemplateSyntaxError, match="Valid syntax: assign \\[var\\] = \\[source\\]"):
            env.from_string("{% assign = 1 %}")

    def test_strict_source(self, env_strict) -> None:
        with pytest.raises(TemplateSyntaxError, match="Expected end_of_string"):
            env_strict.from_string("{% assign x = 'a' 'b' %}")


class TestCapture:
    """capture assigns rendered output."""

    def test_capture(self) -> None:
        assert_template_result("[a1b]", "{% capture x %}a{{ 1 }}b{% endcapture %}[{{ x }}]")

    def test_renders_nothing(self) -> None:
        assert_template_result("", "{% capture x %}hidden{% endcapture %}")

    def test_visible_outside_blocks(self) -> None:
        assert_template_result(
            "in", "{% if true %}{% capture x %}in{% endcapture %}{% endif %}{{ x }}"
        )

    def test_overwrites_assign(self) -> None:
        assert_template_result(
            "b", "{% assign x = 'a' %}{% capture x %}b{% endcapture %}{{ x }}"
        )

    def test_invalid_syntax(self, env) -> None:
        with pytest.raises(TemplateSyntaxError, match="Valid syntax: capture \\[var\\]"):
            env.from_string("{% capture %}{% endcapture %}")


class TestCycle:
    """cycle rotates through its values."""

    def test_rotation(self) -> None:
        assert_template_result(
            "abca", "{% for i in (1..4) %}{% cycle 'a', 'b', 'c' %}{% endfor %}"
        )

    def test_same_values_share_position(self) -> None:
        assert_template_result("ab", "{% cycle 'a', 'b' %}{% cycle 'a', 'b' %}")

    def test_different_values_are_independent(self) -> None:
        assert_template_result(
            "axb", "{% cycle 'a', 'b' %}{% cycle 'x', 'y' %}{% cycle 'a', 'b' %}"
        )

    def test_named_group(self) -> None:
        assert_template_result("ad", "{% cycle 'g': 'a', 'b' %}{% cycle 'g': 'c', 'd' %}")

    def test_variables(self) -> None:
        assert_template_result(
            "121", "{% for i in (1..3) %}{% cycle x, y %}{% endfor %}", {"x": 1, "y": 2}
        )

    def test_variable_group_name(self) -> None:
        assert_template_result(
            "ab", "{% cycle g: 'a', 'b' %}{% cycle g: 'a', 'b' %}", {"g": "grp"}
        )

    def test_invalid_syntax(self, env) -> None:
        with pytest.raises(TemplateSyntaxError, match="Valid syntax: cycle"):
            env.from_string("{% cycle %}")


class TestAssignScore:
    """Sizes charged against the assign score limit."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("abcd", 4),
            ("", 0),
            (42, 1),
            (None, 1),
            ([], 1),
            (["ab", "c"], 4),
            ({"k": "vv"}, 5),
            ([[1]], 3),
        ],
    )
    def test_score(self, value: object, expected: int) -> None:
        assert assign_score_of(value) == expected
