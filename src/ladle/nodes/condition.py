"""Conditions for ``if``, ``unless`` and ``case``.

A Condition is a leaf comparison (``left``, optional ``operator`` and
``right``) followed by an optional chain of ``and``/``or`` children.
``and`` and ``or`` have the same precedence and combine strictly left to
right with short-circuiting::

    a or b and c   ==   (a or b) and c

Each condition of an ``if``/``case`` branch carries its body as
``attachment``.

"""

from __future__ import annotations

from collections.abc import Callable, Container, Mapping, Sequence, Set
from dataclasses import dataclass, replace
from numbers import Real
from typing import TYPE_CHECKING, Any

from ladle.environment.exceptions import TemplateArgumentError
from ladle.nodes.expressions import MethodLiteral
from ladle.template.helpers import is_truthy

if TYPE_CHECKING:
    from ladle.nodes.block import BlockBody
    from ladle.render_context import RenderContext


def _equal(left: Any, right: Any) -> bool:
    if isinstance(left, MethodLiteral):
        return left.test(right)
    if isinstance(right, MethodLiteral):
        return right.test(left)
    # true == 1 is false in templates
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return bool(left == right)


def _ordered(op: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def compare(left: Any, right: Any) -> bool:
        if isinstance(left, bool) or isinstance(right, bool):
            return False
        if isinstance(left, Real) and isinstance(right, Real):
            return op(left, right)
        if isinstance(left, str) and isinstance(right, str):
            return op(left, right)
        if not (_is_orderable(left) and _is_orderable(right)):
            return False
        try:
            return bool(op(left, right))
        except TypeError:
            raise TemplateArgumentError(
                f"comparison of {type(left).__name__} with {type(right).__name__} failed"
            ) from None

    return compare


def _is_orderable(value: Any) -> bool:
    """Numbers, strings and scalar objects defining an ordering."""
    if isinstance(value, (Real, str)):
        return True
    if isinstance(value, (Sequence, Mapping, Set)):
        return False
    return type(value).__lt__ is not object.__lt__


def _contains(left: Any, right: Any) -> bool:
    if left is None or right is None:
        return False
    if isinstance(left, str):
        return str(right) in left
    if isinstance(left, (Container, Mapping)):
        try:
            return right in left
        except TypeError:
            return False
    return False


OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": _equal,
    "!=": lambda left, right: not _equal(left, right),
    "<>": lambda left, right: not _equal(left, right),
    "<": _ordered(lambda a, b: a < b),
    ">": _ordered(lambda a, b: a > b),
    ">=": _ordered(lambda a, b: a >= b),
    "<=": _ordered(lambda a, b: a <= b),
    "contains": _contains,
}


@dataclass(frozen=True, slots=True)
class Condition:
    """One leaf comparison plus its ``and``/``or`` chain.

    Attributes:
        left: Left expression (or the sole expression of a truthiness test).
        operator: Comparison operator, or None for a truthiness test.
        right: Right expression.
        child_relation: ``"and"`` or ``"or"`` joining ``child_condition``.
        child_condition: Next condition in source order.
        attachment: Body rendered when this branch is taken.
    """

    left: Any = None
    operator: str | None = None
    right: Any = None
    child_relation: str | None = None
    child_condition: Condition | None = None
    attachment: BlockBody | None = None

    @property
    def is_else(self) -> bool:
        return False

    def evaluate(self, context: RenderContext) -> bool:
        """Fold the chain left to right, short-circuiting on the accumulator."""
        result = self._interpret(context)
        condition: Condition = self
        while condition.child_condition is not None:
            relation = condition.child_relation
            condition = condition.child_condition
            if relation == "or":
                result = result or condition._interpret(context)
            else:
                result = result and condition._interpret(context)
        return result

    def _interpret(self, context: RenderContext) -> bool:
        left = context.evaluate(self.left)
        if self.operator is None:
            return is_truthy(left)

        right = context.evaluate(self.right)
        operation = OPERATORS.get(self.operator)
        if operation is None:
            raise TemplateArgumentError(f"Unknown operator {self.operator}")
        return operation(left, right)

    def chain(self, relation: str, condition: Condition) -> Condition:
        """Return a copy with ``condition`` appended to the end of the chain."""
        if self.child_condition is None:
            return replace(self, child_relation=relation, child_condition=condition)
        return replace(self, child_condition=self.child_condition.chain(relation, condition))

    def attach(self, body: BlockBody) -> Condition:
        return replace(self, attachment=body)

    def children(self) -> tuple[Any, ...]:
        nodes: tuple[Any, ...] = (self.left, self.right)
        if self.child_condition is not None:
            nodes += (self.child_condition,)
        if self.attachment is not None:
            nodes += (self.attachment,)
        return nodes


@dataclass(frozen=True, slots=True)
class ElseCondition(Condition):
    """The ``else`` branch: always taken when reached."""

    @property
    def is_else(self) -> bool:
        return True

    def evaluate(self, context: RenderContext) -> bool:
        return True
