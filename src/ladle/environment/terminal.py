"""ANSI styling for Ladle diagnostics.

``TemplateError.format_compact()`` and the "Did you mean" suggestion of
UndefinedError style their parts by role (error code, location, gutter,
hint, ...). Each role maps to a fixed set of ANSI codes in ``_ROLES``; the
helpers below are thin wrappers so call sites read as what they format.

Colors are decided once at import: ``FORCE_COLOR`` wins, then
``NO_COLOR`` (https://no-color.org/), then whether stdout is a TTY. Tests
flip ``_USE_COLORS`` directly.
"""

from __future__ import annotations

import os
import re
import sys
from typing import Literal

_CODES = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "cyan": "\033[36m",
    "bright_red": "\033[91m",
    "bright_green": "\033[92m",
}

ColorName = Literal[
    "reset", "bold", "dim",
    "red", "green", "yellow", "cyan",
    "bright_red", "bright_green",
]

Role = Literal["code", "location", "gutter", "source", "offending", "hint", "suggestion"]

_ROLES: dict[str, tuple[ColorName, ...]] = {
    "code": ("bright_red", "bold"),
    "location": ("cyan",),
    "gutter": ("yellow",),
    "source": ("dim",),
    "offending": ("bright_red",),
    "hint": ("green",),
    "suggestion": ("bright_green", "bold"),
}

_ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")

# Width of the line number column in source snippets
GUTTER_WIDTH = 3


def _should_use_colors() -> bool:
    if os.environ.get("FORCE_COLOR"):
        return True
    if os.environ.get("NO_COLOR"):
        return False
    return sys.stdout.isatty()


_USE_COLORS = _should_use_colors()


def supports_color() -> bool:
    return _USE_COLORS


def colorize(text: str, *colors: ColorName) -> str:
    """Wrap ``text`` in the given ANSI codes, or return it unchanged.

    Unknown color names are ignored; with colors disabled or no known
    color the text comes back as is.
    """
    if not _USE_COLORS:
        return text
    prefix = "".join(_CODES.get(color, "") for color in colors)
    if not prefix:
        return text
    return f"{prefix}{text}{_CODES['reset']}"


def style(text: str, role: Role) -> str:
    """Colorize ``text`` for a diagnostic role."""
    return colorize(text, *_ROLES[role])


def strip_colors(text: str) -> str:
    """Remove ANSI escape sequences, e.g. before writing to a log file."""
    return _ANSI_ESCAPE.sub("", text)


def error_code(text: str) -> str:
    return style(text, "code")


def location(text: str) -> str:
    return style(text, "location")


def hint(text: str) -> str:
    return style(text, "hint")


def suggestion(text: str) -> str:
    return style(text, "suggestion")


def gutter_rule() -> str:
    """Empty gutter line framing a source snippet: ``   |``."""
    return style(" " * GUTTER_WIDTH + "|", "source")


def format_error_header(code: str | None, message: str) -> str:
    """``LD-PAR-003: Unknown tag 'endfi'``, or just the message without a code."""
    if code:
        return f"{error_code(code)}: {message}"
    return message


def format_source_line(lineno: int, content: str, is_error: bool = False) -> str:
    """One snippet line: ``>  3 | {% endfi %}`` for the offending line.

    Other lines get a blank marker and dimmed content.
    """
    marker = ">" if is_error else " "
    number = style(f"{marker}{lineno:>{GUTTER_WIDTH}}", "gutter")
    text = style(content, "offending") if is_error else style(content, "source")
    return f"{number} | {text}"
