"""Per-parse state threaded through the recursive block parser."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ladle.environment.exceptions import TemplateSyntaxError
    from collections.abc import Mapping

    from ladle.nodes.base import Tag

# Deep enough for any hand-written template, shallow enough to stop
# pathological input long before the interpreter's own recursion limit.
DEFAULT_MAX_DEPTH = 100


class ErrorMode(Enum):
    """Grammar acceptance policy for tag and output markup.

    - ``LAX``: fragment-level regex matching, tolerant of junk.
    - ``WARN``: strict parse; on failure record a warning and fall back to lax.
    - ``STRICT``: strict parse; on failure raise.
    """

    LAX = "lax"
    WARN = "warn"
    STRICT = "strict"


@dataclass
class ParseContext:
    """State for a single parse invocation.

    Exclusively owned by one ``Environment.from_string`` call; never shared
    between parses.

    Attributes:
        tags: Registry used to resolve tag names.
        error_mode: Lax, warn or strict markup parsing.
        line_numbers: Whether tokens carry line numbers.
        max_depth: Maximum block nesting depth.
        template_name: Template name for error messages.
        line_number: Line of the token being parsed.
        depth: Current nesting depth.
        trim_whitespace: Pending left-trim for the next text segment.
        warnings: Syntax errors recovered from in warn mode.
    """

    tags: Mapping[str, type[Tag]]
    error_mode: ErrorMode = ErrorMode.LAX
    line_numbers: bool = True
    max_depth: int = DEFAULT_MAX_DEPTH
    template_name: str | None = None
    line_number: int | None = None
    depth: int = 0
    trim_whitespace: bool = False
    warnings: list[TemplateSyntaxError] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.error_mode = ErrorMode(self.error_mode)
