"""Ladle RenderContext: per-render runtime state.

Every ``Template.render*`` call builds a fresh RenderContext holding the
variable scopes, registers, collected errors and resource counters for that
render. Parsed node trees never hold render state, so one tree can be
rendered concurrently by several threads, each with its own context.

The active context is also published through a ContextVar so that host
objects (drops, filters) can reach it without it being threaded through
their signatures:

    >>> from ladle.render_context import get_render_context
    >>> def current_template_name(value):
    ...     return get_render_context().template_name

Scope layout:
``scopes`` is ordered outermost first, innermost last. ``assign`` writes to
``scopes[0]``; ``stack()`` pushes a fresh innermost scope. ``environments``
hold the caller's render data and are searched after every scope.

"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ladle.environment.exceptions import (
    InternalError,
    StackLevelError,
    TemplateArgumentError,
    TemplateError,
    TemplateMemoryError,
    UndefinedError,
    UndefinedFilterError,
)
from ladle.template.drop import Drop
from ladle.template.helpers import to_liquid

logger = logging.getLogger(__name__)

# Scope pushes allowed per render before StackLevelError
MAX_SCOPE_DEPTH = 100


class Interrupt(Enum):
    """Loop-control signal returned up the render call chain.

    A body that stops early because of ``{% break %}`` or ``{% continue %}``
    returns the signal from ``render_to_output``; every enclosing body
    passes it on until the nearest ``for`` consumes it.
    """

    BREAK = "break"
    CONTINUE = "continue"


@dataclass
class ResourceLimits:
    """Render-time ceilings and the counters checked against them.

    A limit of None disables that check. Counters are reset at the start of
    every render.

    Attributes:
        render_length_limit: Maximum cumulative output length.
        render_score_limit: Maximum number of nodes visited.
        assign_score_limit: Maximum cumulative size of assigned values.
    """

    render_length_limit: int | None = None
    render_score_limit: int | None = None
    assign_score_limit: int | None = None
    render_length: int = 0
    render_score: int = 0
    assign_score: int = 0

    @classmethod
    def from_mapping(cls, limits: Mapping[str, int | None] | None) -> ResourceLimits:
        return cls(**dict(limits or {}))

    def reached(self) -> bool:
        """True once any counter has exceeded its configured ceiling."""
        return (
            (self.render_length_limit is not None and self.render_length > self.render_length_limit)
            or (self.render_score_limit is not None and self.render_score > self.render_score_limit)
            or (self.assign_score_limit is not None and self.assign_score > self.assign_score_limit)
        )

    def reset(self) -> None:
        self.render_length = 0
        self.render_score = 0
        self.assign_score = 0

    def check(self) -> None:
        """Raise TemplateMemoryError if any ceiling was exceeded."""
        if self.reached():
            raise TemplateMemoryError("Memory limits exceeded")


def _takes_context(func: Callable[..., Any]) -> bool:
    try:
        parameters = inspect.signature(func).parameters
    except (TypeError, ValueError):
        return False
    return len(parameters) > 0


@dataclass
class RenderContext:
    """Per-render state isolated from the parsed template.

    Attributes:
        environments: Caller-supplied variable mappings, searched after scopes.
        scopes: Variable scopes, outermost first.
        registers: Free-form mapping for stateful tags (for offsets, cycle,
            ifchanged). Owned by the template or the caller.
        filters: Filter name to callable mapping.
        resource_limits: Ceilings and counters for this render.
        strict_variables: Undefined lookups raise instead of yielding None.
        strict_filters: Unknown filters raise instead of passing through.
        rethrow_errors: Per-node errors propagate instead of rendering inline.
        exception_renderer: Converts a caught TemplateError to inline text.
        global_filter: Applied to every ``{{ }}`` output value.
        template_name: Template name for error messages.
        errors: Errors caught during this render, in order.
    """

    environments: list[Mapping[str, Any]] = field(default_factory=list)
    scopes: list[dict[str, Any]] = field(default_factory=lambda: [{}])
    registers: dict[str, Any] = field(default_factory=dict)
    filters: Mapping[str, Callable[..., Any]] = field(default_factory=dict)
    resource_limits: ResourceLimits = field(default_factory=ResourceLimits)
    strict_variables: bool = False
    strict_filters: bool = False
    rethrow_errors: bool = False
    exception_renderer: Callable[[TemplateError], Any] | None = None
    global_filter: Callable[[Any], Any] | None = None
    template_name: str | None = None
    errors: list[TemplateError] = field(default_factory=list)

    # -- variables ---------------------------------------------------------

    def __getitem__(self, name: str) -> Any:
        return self.find_variable(name)

    def __setitem__(self, name: str, value: Any) -> None:
        """Bind ``name`` in the innermost scope."""
        self.scopes[-1][name] = value

    def __contains__(self, name: object) -> bool:
        return any(name in scope for scope in self.scopes) or any(
            name in env for env in self.environments
        )

    def assign(self, name: str, value: Any) -> None:
        """Bind ``name`` in the outermost scope, visible for the rest of the render."""
        self.scopes[0][name] = value

    def find_variable(self, name: Any) -> Any:
        """Resolve a root name across scopes (innermost first), then environments.

        Raises:
            UndefinedError: In strict-variables mode when nothing defines ``name``.
        """
        for scope in reversed(self.scopes):
            if name in scope:
                return self.lookup_and_evaluate(scope, name)
        for env in self.environments:
            if name in env:
                return self.lookup_and_evaluate(env, name)

        if self.strict_variables:
            raise UndefinedError(name, available_names=self.available_names())
        return None

    def available_names(self) -> frozenset[str]:
        names: set[str] = set()
        for mapping in (*self.scopes, *self.environments):
            names.update(key for key in mapping if isinstance(key, str))
        return frozenset(names)

    def lookup_and_evaluate(self, obj: Mapping[Any, Any], key: Any) -> Any:
        """Fetch ``obj[key]``, calling lazily computed values.

        Plain functions stored in render data are called on lookup, with the
        context as sole argument when they accept one. The result is bound
        to this context if it is a Drop.
        """
        value = obj[key]
        if callable(value) and not isinstance(value, (type, Drop)):
            value = value(self) if _takes_context(value) else value()
        return self.bind(to_liquid(value))

    def bind(self, value: Any) -> Any:
        if isinstance(value, Drop):
            value.bind(self)
        return value

    def evaluate(self, expression: Any) -> Any:
        """Evaluate a parsed expression; literals evaluate to themselves."""
        evaluate = getattr(expression, "evaluate", None)
        if evaluate is None:
            return expression
        return evaluate(self)

    @contextmanager
    def stack(self, scope: dict[str, Any] | None = None) -> Iterator[dict[str, Any]]:
        """Push a fresh innermost scope for the duration of the block."""
        if len(self.scopes) > MAX_SCOPE_DEPTH:
            raise StackLevelError("Nesting too deep")
        new_scope = scope if scope is not None else {}
        self.scopes.append(new_scope)
        try:
            yield new_scope
        finally:
            self.scopes.pop()

    # -- filters -----------------------------------------------------------

    def invoke(self, filter_name: str, value: Any, *args: Any, **kwargs: Any) -> Any:
        """Apply a registered filter.

        Unknown filters return ``value`` unchanged, or raise
        UndefinedFilterError with strict filters. Argument mismatches are
        reported as TemplateArgumentError.
        """
        func = self.filters.get(filter_name)
        if func is None:
            if self.strict_filters:
                raise UndefinedFilterError(filter_name)
            return value
        try:
            return func(value, *args, **kwargs)
        except (TypeError, ValueError) as e:
            raise TemplateArgumentError(f"{filter_name}: {e}") from e

    # -- errors ------------------------------------------------------------

    def handle_error(self, error: Exception, lineno: int | None = None) -> str:
        """Record a per-node error and return its inline replacement text.

        Non-template exceptions are recorded as InternalError. Location is
        filled in from ``lineno`` and the template name when missing.

        Raises:
            Exception: The original error, when ``rethrow_errors`` is set.
        """
        if isinstance(error, TemplateError):
            template_error = error
        else:
            template_error = InternalError()
            template_error.__cause__ = error

        if template_error.lineno is None:
            template_error.lineno = lineno
        if template_error.template_name is None:
            template_error.template_name = self.template_name
        self.errors.append(template_error)

        if self.rethrow_errors:
            raise error

        logger.debug("Rendering %s inline: %s", type(error).__name__, template_error)
        renderer = self.exception_renderer or str
        return str(renderer(template_error))


# Module-level ContextVar
_render_context: ContextVar[RenderContext | None] = ContextVar(
    "render_context",
    default=None,
)


def get_render_context() -> RenderContext | None:
    """Get current render context (None if not in render)."""
    return _render_context.get()


def get_render_context_required() -> RenderContext:
    """Get current render context, raise if not in render.

    Raises:
        RuntimeError: If not in a render context
    """
    ctx = _render_context.get()
    if ctx is None:
        raise RuntimeError("Not in a render context")
    return ctx


@contextmanager
def render_context(ctx: RenderContext) -> Iterator[RenderContext]:
    """Publish ``ctx`` as the current render context for the with block.

    Restores the previous context on exit, so nested renders (a drop
    rendering another template) see their own context.
    """
    token: Token[RenderContext | None] = _render_context.set(ctx)
    try:
        yield ctx
    finally:
        _render_context.reset(token)
