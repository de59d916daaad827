"""Ladle Template: a parsed node tree ready for rendering.

The Template wraps the Document produced by ``Environment.from_string`` and
provides the ``render()`` API. The tree is never mutated by rendering;
every render builds its own RenderContext.

Architecture:
    ```
    Template
    ├── _env: Environment        # Filters and default render options
    ├── root: Document           # Parsed node tree
    ├── registers: dict          # Tag state kept across renders
    └── name, source, warnings   # For error messages and tooling
    ```

Registers:
``offset: continue``, ``cycle`` and ``ifchanged`` keep state in registers.
By default those live on the Template and persist across its renders.
Callers rendering one Template from several threads pass their own
``registers=`` mapping to ``render_with``.

"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from ladle.environment.exceptions import TemplateMemoryError

if TYPE_CHECKING:
    from ladle.environment import Environment
    from ladle.environment.exceptions import TemplateError, TemplateSyntaxError
    from ladle.nodes.block import Document
    from ladle.render_context import ResourceLimits

logger = logging.getLogger(__name__)


class Template:
    """Parsed template ready for rendering.

    Attributes:
        name: Template identifier (for error messages)
        root: Parsed Document
        source: Original template source
        warnings: Syntax errors recovered from in warn mode
        registers: Register store used when a render passes none
        errors: Errors rendered inline during the last render
        resource_limits: Limits and counters of the last render

    Example:
            >>> from ladle import Environment
            >>> env = Environment()
            >>> t = env.from_string("Hello, {{ name | upcase }}!")
            >>> t.render(name="World")
            'Hello, WORLD!'

            >>> t.render({"name": "World"})  # Dict context also works
            'Hello, WORLD!'

    """

    __slots__ = (
        "_env",
        "name",
        "root",
        "source",
        "warnings",
        "registers",
        "errors",
        "resource_limits",
    )

    def __init__(
        self,
        env: Environment,
        root: Document,
        *,
        name: str | None = None,
        source: str | None = None,
        warnings: list[TemplateSyntaxError] | None = None,
    ) -> None:
        self._env = env
        self.root = root
        self.name = name
        self.source = source
        self.warnings: list[TemplateSyntaxError] = list(warnings or [])
        self.registers: dict[str, Any] = {}
        self.errors: list[TemplateError] = []
        self.resource_limits: ResourceLimits | None = None

    @property
    def env(self) -> Environment:
        return self._env

    def render(self, *args: Any, **kwargs: Any) -> str:
        """Render template with given variables.

        Args:
            *args: Single dict of variables
            **kwargs: Variables as keyword arguments

        Returns:
            Rendered template as string
        """
        return self.render_with(self._build_data(args, kwargs))

    def render_strict(self, *args: Any, **kwargs: Any) -> str:
        """Render like ``render`` but let every error propagate."""
        return self.render_with(self._build_data(args, kwargs), rethrow=True)

    def render_with(
        self,
        data: Mapping[str, Any] | None = None,
        *,
        registers: dict[str, Any] | None = None,
        strict_variables: bool | None = None,
        strict_filters: bool | None = None,
        exception_renderer: Callable[[TemplateError], Any] | None = None,
        global_filter: Callable[[Any], Any] | None = None,
        resource_limits: Mapping[str, int | None] | None = None,
        rethrow: bool = False,
    ) -> str:
        """Render with explicit per-render options.

        Options left as None fall back to the Environment's settings.

        Args:
            data: Render variables, searched after template-assigned ones.
            registers: Register store for this render instead of the
                template's own.
            strict_variables: Undefined variables raise UndefinedError.
            strict_filters: Unknown filters raise UndefinedFilterError.
            exception_renderer: Converts an inline error to output text.
            global_filter: Applied to every ``{{ }}`` value before output.
            resource_limits: Ceilings for this render.
            rethrow: Propagate errors instead of rendering them inline.

        Raises:
            TemplateError: Only with ``rethrow``.
        """
        from ladle.render_context import RenderContext, ResourceLimits, render_context

        env = self._env
        limits = ResourceLimits.from_mapping(
            env.resource_limits if resource_limits is None else resource_limits
        )
        ctx = RenderContext(
            environments=[data] if data is not None else [],
            registers=self.registers if registers is None else registers,
            filters=env._filters,
            resource_limits=limits,
            strict_variables=env.strict_variables if strict_variables is None else strict_variables,
            strict_filters=env.strict_filters if strict_filters is None else strict_filters,
            rethrow_errors=rethrow,
            exception_renderer=exception_renderer or env.exception_renderer,
            global_filter=global_filter,
            template_name=self.name,
        )
        self.errors = ctx.errors
        self.resource_limits = limits

        output: list[str] = []
        with render_context(ctx):
            try:
                interrupt = self.root.render_to_output(ctx, output)
            except TemplateMemoryError as e:
                return ctx.handle_error(e)

        if interrupt is not None:
            logger.warning(
                "Ignoring %s outside of a loop in %s",
                interrupt.value,
                self.name or "<template>",
            )
        return "".join(output)

    @staticmethod
    def _build_data(args: tuple[Any, ...], kwargs: dict[str, Any]) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if args:
            if len(args) == 1 and isinstance(args[0], Mapping):
                data.update(args[0])
            else:
                raise TypeError(
                    f"render() takes at most 1 positional argument (a mapping), got {len(args)}"
                )
        data.update(kwargs)
        return data

    def __repr__(self) -> str:
        return f"<Template {self.name or '(inline)'}>"
