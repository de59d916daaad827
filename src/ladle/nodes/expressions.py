"""Expression nodes: literals, variable lookups and ranges.

``parse_expression`` turns one markup fragment into either a plain Python
literal (None, bool, str, int, float, range) or an expression node with an
``evaluate(context)`` method. ``RenderContext.evaluate`` accepts both.

Literal recognition order (first match wins):

1. empty, ``nil``, ``null`` -> None
2. ``true`` / ``false``
3. ``blank`` / ``empty`` -> MethodLiteral
4. quoted string -> its content, unprocessed
5. integer
6. ``(a..b)`` -> inclusive range
7. float
8. anything else -> VariableLookup

"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence, Sized
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ladle.environment.exceptions import UndefinedError
from ladle.template.drop import Drop
from ladle.template.helpers import to_i, to_integer, to_liquid
from ladle.utils.constants import VARIABLE_PARSER

if TYPE_CHECKING:
    from ladle.render_context import RenderContext

_SINGLE_QUOTED_STRING = re.compile(r"\A'(.*)'\Z", re.DOTALL)
_DOUBLE_QUOTED_STRING = re.compile(r'\A"(.*)"\Z', re.DOTALL)
_INTEGER = re.compile(r"\A-?\d+\Z")
_FLOAT = re.compile(r"\A(-?\d+(?:\.\d+)?)[\d.]*\Z")
_RANGE = re.compile(r"\A\((\S+)\.\.(\S+)\)\Z")

COMMAND_METHODS = frozenset({"size", "first", "last"})


@dataclass(frozen=True, slots=True)
class Expr:
    """Base class for expressions evaluated against a RenderContext."""

    def evaluate(self, context: RenderContext) -> Any:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class MethodLiteral(Expr):
    """The ``blank`` and ``empty`` pseudo-literals.

    Compared with ``==`` they test the other operand instead of comparing
    values: ``x == empty`` is true for empty strings and collections,
    ``x == blank`` additionally for None, False and whitespace-only strings.
    Rendered directly they produce empty output.
    """

    method_name: str

    def evaluate(self, context: RenderContext) -> MethodLiteral:
        return self

    def test(self, value: Any) -> bool:
        if self.method_name == "blank":
            if value is None or value is False:
                return True
            if isinstance(value, str):
                return not value.strip()
        return isinstance(value, Sized) and not isinstance(value, Drop) and len(value) == 0

    def __str__(self) -> str:
        return ""


BLANK = MethodLiteral("blank")
EMPTY = MethodLiteral("empty")

LITERALS: dict[str, Any] = {
    "": None,
    "nil": None,
    "null": None,
    "true": True,
    "false": False,
    "blank": BLANK,
    "empty": EMPTY,
}


def parse_expression(markup: str | None) -> Any:
    """Parse one expression fragment.

    Example:
        >>> parse_expression("'hi'")
        'hi'
        >>> parse_expression("(1..3)")
        range(1, 4)
        >>> parse_expression("user.name")
        VariableLookup(name='user', lookups=('name',), command_flags=0)
    """
    if markup is None:
        return None
    markup = markup.strip()
    if markup in LITERALS:
        return LITERALS[markup]

    match = _SINGLE_QUOTED_STRING.match(markup) or _DOUBLE_QUOTED_STRING.match(markup)
    if match:
        return match.group(1)
    if _INTEGER.match(markup):
        return int(markup)
    match = _RANGE.match(markup)
    if match:
        return RangeLookup.parse(match.group(1), match.group(2))
    match = _FLOAT.match(markup)
    if match:
        return float(match.group(1))
    return VariableLookup.parse(markup)


@dataclass(frozen=True, slots=True)
class RangeLookup(Expr):
    """``(start..end)`` range whose endpoints need render-time evaluation.

    Ranges with two literal endpoints are built at parse time instead.
    """

    start: Any
    end: Any

    @classmethod
    def parse(cls, start_markup: str, end_markup: str) -> RangeLookup | range:
        start = parse_expression(start_markup)
        end = parse_expression(end_markup)
        if hasattr(start, "evaluate") or hasattr(end, "evaluate"):
            return cls(start, end)
        return range(to_i(start), to_i(end) + 1)

    def evaluate(self, context: RenderContext) -> range:
        start = _range_integer(context.evaluate(self.start))
        end = _range_integer(context.evaluate(self.end))
        return range(start, end + 1)

    def children(self) -> tuple[Any, ...]:
        return (self.start, self.end)


def _range_integer(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if value is None or isinstance(value, str):
        return to_i(value)
    return to_integer(value)


@dataclass(frozen=True, slots=True)
class VariableLookup(Expr):
    """A variable path such as ``product.variants[0].title``.

    Attributes:
        name: Root variable name, or an expression for ``[expr]`` roots.
        lookups: Path steps; plain names are str, ``[expr]`` steps are
            parsed expressions.
        command_flags: Bit i set when step i is ``size``, ``first`` or
            ``last`` and may fall back to that command.
    """

    name: Any
    lookups: tuple[Any, ...] = ()
    command_flags: int = 0

    @classmethod
    def parse(cls, markup: str) -> VariableLookup:
        parts = VARIABLE_PARSER.findall(markup)
        name: Any = parts.pop(0) if parts else None
        if isinstance(name, str) and _is_bracketed(name):
            name = parse_expression(name[1:-1])

        lookups: list[Any] = []
        command_flags = 0
        for index, part in enumerate(parts):
            if _is_bracketed(part):
                lookups.append(parse_expression(part[1:-1]))
            else:
                if part in COMMAND_METHODS:
                    command_flags |= 1 << index
                lookups.append(part)
        return cls(name, tuple(lookups), command_flags)

    def evaluate(self, context: RenderContext) -> Any:
        """Resolve the root through the context, then walk each step.

        Raises:
            UndefinedError: A step fails to resolve under strict variables.
        """
        obj = context.find_variable(context.evaluate(self.name))

        for index, lookup in enumerate(self.lookups):
            key = context.evaluate(lookup)
            found, value = _resolve_step(context, obj, key)
            if not found and self.command_flags & (1 << index):
                found, value = _apply_command(obj, key)
            if not found:
                if not context.strict_variables:
                    return None
                raise UndefinedError(key)
            obj = context.bind(to_liquid(value))

        return obj

    def children(self) -> tuple[Any, ...]:
        if isinstance(self.name, str):
            return self.lookups
        return (self.name, *self.lookups)

    def __str__(self) -> str:
        text = str(self.name)
        for lookup in self.lookups:
            text += f".{lookup}" if isinstance(lookup, str) else f"[{lookup}]"
        return text


def _is_bracketed(text: str) -> bool:
    return text.startswith("[") and text.endswith("]")


def _resolve_step(context: RenderContext, obj: Any, key: Any) -> tuple[bool, Any]:
    """Keyed or indexed access; returns ``(found, value)``."""
    if isinstance(obj, Drop):
        if obj.has_key(key):
            return True, obj.resolve(key)
        return False, None
    if isinstance(obj, Mapping):
        try:
            present = key in obj
        except TypeError:
            return False, None
        if present:
            return True, context.lookup_and_evaluate(obj, key)
        return False, None
    if (
        isinstance(obj, Sequence)
        and not isinstance(obj, str)
        and isinstance(key, int)
        and not isinstance(key, bool)
        and key >= 0
    ):
        return True, obj[key] if key < len(obj) else None
    return False, None


def _apply_command(obj: Any, command: Any) -> tuple[bool, Any]:
    """Apply ``size``, ``first`` or ``last`` when ``obj`` supports it."""
    if isinstance(obj, Drop) and obj.supports(command):
        return True, obj.resolve(command)
    if command == "size" and isinstance(obj, Sized):
        return True, len(obj)
    if command in ("first", "last") and isinstance(obj, Sequence) and not isinstance(obj, str):
        if not obj:
            return True, None
        return True, obj[0] if command == "first" else obj[-1]
    return False, None
