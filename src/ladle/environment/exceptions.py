"""Exceptions for the Ladle template system.

Exception Hierarchy:
TemplateError (base)
├── TemplateSyntaxError       # Malformed tag, expression or structure
├── StackLevelError           # Nesting too deep (parse or render)
├── TemplateMemoryError       # Resource limits exceeded, fatal to the render
├── UndefinedError            # Undefined variable (strict variables)
├── UndefinedDropMethodError  # Unknown drop method (strict variables)
├── UndefinedFilterError      # Unknown filter (strict filters)
├── TemplateArgumentError     # Invalid argument, e.g. malformed integer
├── TemplateRuntimeError      # Generic render-time failure
└── InternalError             # Wraps any unexpected non-template exception

Error Messages:
Every error carries a mutable location (``lineno``, ``template_name``) that
the parser and the render engine fill in as the error propagates, plus an
optional ``markup_context`` naming the offending markup. ``str(error)``
gives the one-line form used for inline error output:

    ```
    Ladle syntax error (page.html line 3): Unknown tag 'endfi'
    Ladle error (line 7): undefined variable titl
    ```

``format_compact()`` gives a multi-line terminal diagnostic with error code,
source snippet and hint.

"""

from __future__ import annotations

from dataclasses import dataclass
from difflib import get_close_matches
from enum import Enum
from typing import Any

from ladle.environment import terminal

# ---------------------------------------------------------------------------
# Error codes
# ---------------------------------------------------------------------------


class ErrorCode(Enum):
    """Searchable error codes for Ladle template errors.

    Format: LD-{CATEGORY}-{NUMBER}
    Categories: LEX (tokenizer/lexer), PAR (parser), RUN (runtime)
    """

    # Lexer errors (LD-LEX-xxx)
    UNEXPECTED_CHARACTER = "LD-LEX-001"
    UNCLOSED_TAG = "LD-LEX-002"
    UNCLOSED_VARIABLE = "LD-LEX-003"

    # Parser errors (LD-PAR-xxx)
    SYNTAX_ERROR = "LD-PAR-001"
    UNCLOSED_BLOCK = "LD-PAR-002"
    UNKNOWN_TAG = "LD-PAR-003"
    UNEXPECTED_TAG = "LD-PAR-004"
    NESTING_TOO_DEEP = "LD-PAR-005"

    # Runtime errors (LD-RUN-xxx)
    UNDEFINED_VARIABLE = "LD-RUN-001"
    UNDEFINED_DROP_METHOD = "LD-RUN-002"
    UNDEFINED_FILTER = "LD-RUN-003"
    ARGUMENT_ERROR = "LD-RUN-004"
    MEMORY_LIMIT = "LD-RUN-005"
    STACK_LEVEL = "LD-RUN-006"
    RUNTIME_ERROR = "LD-RUN-007"
    INTERNAL_ERROR = "LD-RUN-008"

    @property
    def category(self) -> str:
        """Error category (e.g., 'runtime', 'lexer', 'parser')."""
        prefix = self.value.split("-")[1]
        return {
            "LEX": "lexer",
            "PAR": "parser",
            "RUN": "runtime",
        }.get(prefix, "unknown")


# ---------------------------------------------------------------------------
# Source snippets
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SourceSnippet:
    """Template source context around an error line.

    Attributes:
        lines: Tuple of (line_number, line_content) pairs around the error.
        error_line: The 1-based line number where the error occurred.
    """

    lines: tuple[tuple[int, str], ...]
    error_line: int

    def format(self) -> str:
        """Gutter-framed lines with the error line marked by ``>``."""
        parts: list[str] = [terminal.gutter_rule()]
        for lineno, content in self.lines:
            is_error = lineno == self.error_line
            parts.append(terminal.format_source_line(lineno, content, is_error=is_error))
        parts.append(terminal.gutter_rule())
        return "\n".join(parts)


def build_source_snippet(
    source: str,
    error_line: int,
    *,
    context_lines: int = 2,
) -> SourceSnippet:
    """Build a SourceSnippet from template source.

    Args:
        source: Full template source text.
        error_line: 1-based line number of the error.
        context_lines: Number of lines to show before/after the error line.

    Returns:
        SourceSnippet with surrounding context lines.
    """
    all_lines = source.splitlines()
    start = max(0, error_line - 1 - context_lines)
    end = min(len(all_lines), error_line + context_lines)
    lines = tuple((i + 1, all_lines[i]) for i in range(start, end))
    return SourceSnippet(lines=lines, error_line=error_line)


class TemplateError(Exception):
    """Base exception for all Ladle template errors.

    All template-related exceptions inherit from this class, enabling
    broad exception handling:

        >>> try:
        ...     template.render_strict()
        ... except TemplateError as e:
        ...     log.error("Template error: %s", e)

    Attributes:
        message: Bare error message, without location prefix.
        lineno: 1-based line number, filled in by the parser or renderer.
        template_name: Name of the template, when known.
        markup_context: Offending markup, e.g. ``in "{{ x | }}"``.
        source: Template source, attached to parse errors for snippets.
        suggestion: Optional actionable hint.
        code: ErrorCode for searchable error identification.
    """

    code: ErrorCode | None = ErrorCode.RUNTIME_ERROR
    prefix = "Ladle error"

    def __init__(
        self,
        message: str,
        *,
        lineno: int | None = None,
        template_name: str | None = None,
        markup_context: str | None = None,
        suggestion: str | None = None,
        code: ErrorCode | None = None,
    ):
        self.message = message
        self.lineno = lineno
        self.template_name = template_name
        self.markup_context = markup_context
        self.suggestion = suggestion
        self.source: str | None = None
        if code is not None:
            self.code = code
        super().__init__(message)

    def message_prefix(self) -> str:
        """Build ``Ladle error (name line N): `` from the current location."""
        prefix = self.prefix
        if self.lineno is not None:
            location = f"line {self.lineno}"
            if self.template_name:
                location = f"{self.template_name} {location}"
            prefix += f" ({location})"
        return prefix + ": "

    def __str__(self) -> str:
        text = self.message_prefix() + self.message
        if self.markup_context:
            text += f" {self.markup_context}"
        return text

    def format_compact(self) -> str:
        """Format error as a structured, human-readable summary.

        Produces a clean diagnostic string suitable for terminal display,
        without Python traceback noise.

        Format::

            LD-PAR-003: Unknown tag 'endfi'
              --> page.html:3
               |
            >  3 | {% endfi %}
               |
              Hint: ...

        Returns:
            Multi-line string with error code, message and source snippet.
        """
        parts: list[str] = [
            terminal.format_error_header(self.code.value if self.code else None, self.message)
        ]

        location = self.template_name or "<template>"
        if self.lineno is not None:
            location += f":{self.lineno}"
        parts.append(f"  --> {terminal.location(location)}")

        if self.markup_context:
            parts.append(f"  Markup: {self.markup_context}")

        if self.source and self.lineno:
            parts.append(build_source_snippet(self.source, self.lineno).format())

        if self.suggestion:
            parts.append(f"  {terminal.hint('Hint:')} {self.suggestion}")

        return "\n".join(parts)


class TemplateSyntaxError(TemplateError):
    """Parse-time syntax error in template source.

    Raised for malformed tags and expressions, unterminated segments,
    unknown or misplaced tags and blocks that are never closed. A template
    either parses completely or raises; no partial tree is returned.
    """

    code: ErrorCode | None = ErrorCode.SYNTAX_ERROR
    prefix = "Ladle syntax error"


class StackLevelError(TemplateError):
    """Block nesting exceeded the configured maximum depth."""

    code: ErrorCode | None = ErrorCode.NESTING_TOO_DEEP


class TemplateMemoryError(TemplateError):
    """A render exceeded its resource limits.

    Never substituted inline by the per-node error handler: it aborts the
    whole render.
    """

    code: ErrorCode | None = ErrorCode.MEMORY_LIMIT


class UndefinedError(TemplateError):
    """Raised when resolving an undefined variable with strict variables.

    If ``available_names`` is provided, a "Did you mean?" suggestion is
    included when a close match is found (using ``difflib.get_close_matches``).

    Example:
            >>> env.from_string("{{ titl }}").render_strict(
            ...     {"title": "x"}, strict_variables=True)
        UndefinedError: Ladle error (line 1): undefined variable titl. Did you mean 'title'?
    """

    code: ErrorCode | None = ErrorCode.UNDEFINED_VARIABLE

    def __init__(
        self,
        name: Any,
        *,
        available_names: frozenset[str] | None = None,
        **kwargs: Any,
    ):
        self.name = name
        message = f"undefined variable {name}"
        if available_names and isinstance(name, str):
            matches = get_close_matches(name, available_names, n=1, cutoff=0.6)
            if matches:
                message += f". Did you mean '{terminal.suggestion(matches[0])}'?"
        kwargs.setdefault(
            "suggestion", f"Use {{{{ {name} | default: '' }}}} for optional variables"
        )
        super().__init__(message, **kwargs)


class UndefinedDropMethodError(TemplateError):
    """A drop was asked for a method it does not expose (strict variables)."""

    code: ErrorCode | None = ErrorCode.UNDEFINED_DROP_METHOD

    def __init__(self, method: str, **kwargs: Any):
        self.method = method
        super().__init__(f"undefined method {method}", **kwargs)


class UndefinedFilterError(TemplateError):
    """A filter name is not registered (strict filters)."""

    code: ErrorCode | None = ErrorCode.UNDEFINED_FILTER

    def __init__(self, filter_name: str, **kwargs: Any):
        self.filter_name = filter_name
        super().__init__(f"undefined filter {filter_name}", **kwargs)


class TemplateArgumentError(TemplateError):
    """Invalid argument to an operation (bad integer, incomparable values)."""

    code: ErrorCode | None = ErrorCode.ARGUMENT_ERROR


class TemplateRuntimeError(TemplateError):
    """Generic render-time failure raised by tags and filters."""

    code: ErrorCode | None = ErrorCode.RUNTIME_ERROR


class InternalError(TemplateError):
    """Unexpected non-template exception caught while rendering a node.

    The original exception is chained as ``__cause__``.
    """

    code: ErrorCode | None = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str = "internal", **kwargs: Any):
        super().__init__(message, **kwargs)
