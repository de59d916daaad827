"""Parse tree traversal for static analysis of parsed templates.

Every node exposes its children through ``children()``: block bodies their
node lists, tags their bodies and expressions, expressions their
sub-expressions. Literal text and literal values are leaves.

Example:
    >>> from ladle import Environment
    >>> t = Environment().from_string("{% if user %}{{ user.name }}{% endif %}")
    >>> sorted(referenced_variables(t.root))
    ['user']

"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

Callback = Callable[[Any, Any], "tuple[Any, Any] | None"]


def child_nodes(node: Any) -> list[Any]:
    """Children of ``node``, skipping empty slots."""
    children = getattr(node, "children", None)
    if not callable(children):
        return []
    return [child for child in children() if child is not None]


class ParseTreeVisitor:
    """Depth-first visitor dispatching callbacks by node type.

    A callback receives ``(node, context)`` and returns ``(item, new_context)``
    or None. ``item`` is collected into the result; ``new_context`` (when not
    None) replaces the context passed to the node's descendants. Nodes
    without a callback contribute None and pass the context through.

    Example:
        >>> visitor = ParseTreeVisitor(template.root)
        >>> visitor.add_callback_for(VariableLookup, callback=lambda n, ctx: (n.name, None))
        >>> visitor.visit()
        [('user', []), (None, [...])]
    """

    __slots__ = ("node", "_callbacks")

    def __init__(self, node: Any, callbacks: dict[type, Callback] | None = None) -> None:
        self.node = node
        self._callbacks: dict[type, Callback] = callbacks if callbacks is not None else {}

    def add_callback_for(self, *types: type, callback: Callback) -> ParseTreeVisitor:
        for node_type in types:
            self._callbacks[node_type] = callback
        return self

    def _callback_for(self, node: Any) -> Callback | None:
        for node_type in type(node).__mro__:
            callback = self._callbacks.get(node_type)
            if callback is not None:
                return callback
        return None

    def visit(self, context: Any = None) -> list[tuple[Any, list[Any]]]:
        """Visit the children of the root node.

        Returns:
            One ``(item, descendant_results)`` pair per child, nested the
            same way as the tree.
        """
        results: list[tuple[Any, list[Any]]] = []
        for child in child_nodes(self.node):
            item, new_context = None, None
            callback = self._callback_for(child)
            if callback is not None:
                outcome = callback(child, context)
                if outcome is not None:
                    item, new_context = outcome
            nested = ParseTreeVisitor(child, self._callbacks)
            results.append((item, nested.visit(context if new_context is None else new_context)))
        return results


def walk(node: Any) -> Iterator[Any]:
    """Yield ``node`` and all its descendants, depth-first in source order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(child_nodes(current)))


def referenced_variables(node: Any) -> set[str]:
    """Root names of every variable lookup under ``node``.

    Includes names the template assigns itself and loop variables.
    """
    from ladle.nodes.expressions import VariableLookup

    return {
        current.name
        for current in walk(node)
        if isinstance(current, VariableLookup) and isinstance(current.name, str)
    }
