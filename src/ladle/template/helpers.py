"""Pure runtime helper functions shared by nodes, filters and the context.

None of them close over Environment or RenderContext state; they use only
their parameters.

Thread-Safety:
All functions are stateless and safe for concurrent use.

"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from ladle.environment.exceptions import TemplateArgumentError


def to_liquid(value: Any) -> Any:
    """Convert a host value to its template representation.

    Objects may define ``to_liquid()`` to control what templates see.
    """
    convert = getattr(value, "to_liquid", None)
    if convert is None or isinstance(value, type):
        return value
    return convert()


def is_truthy(value: Any) -> bool:
    """Template truthiness: everything except None and False is true.

    Unlike Python, ``0``, ``""`` and ``[]`` are truthy.
    """
    return value is not None and value is not False


def to_output_string(value: Any) -> str:
    """Convert a rendered value to output text.

    None renders as empty string, booleans as ``true``/``false``, sequences
    as the concatenation of their items and ranges as ``first..last``.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, range) and value.step == 1:
        return f"{value.start}..{value.stop - 1}"
    if isinstance(value, (list, tuple, range)):
        return "".join(to_output_string(item) for item in value)
    return str(value)


def to_integer(value: Any) -> int:
    """Coerce ``value`` to int, as integer arguments (range ends) require.

    Raises:
        TemplateArgumentError: ``invalid integer`` when not coercible.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise TemplateArgumentError("invalid integer") from None


def to_i(value: Any) -> int:
    """Lenient integer conversion: leading digits of strings, else 0.

    ``"12abc"`` becomes 12, ``None`` and ``"abc"`` become 0, floats truncate.
    """
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    text = str(value).strip()
    end = 0
    if text[:1] in ("-", "+"):
        end = 1
    while end < len(text) and text[end].isdigit():
        end += 1
    digits = text[:end]
    if not digits or digits in ("-", "+"):
        return 0
    return int(digits)


def to_number(value: Any) -> int | float:
    """Coerce value to numeric type for arithmetic filters.

    Args:
        value: Any value, typically a string from template data

    Returns:
        int if value parses as integer, float if decimal, 0 for non-numeric
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value

    s = str(value).strip()
    try:
        return int(s)
    except ValueError:
        try:
            return float(s)
        except ValueError:
            return 0


def slice_collection(collection: Any, start: int, stop: int | None) -> list[Any]:
    """Return ``collection[start:stop]`` as a list.

    Collections exposing ``load_slice(start, stop)`` slice themselves, which
    lets paginated drops avoid loading everything. A non-empty string is a
    single item; mappings iterate as ``[key, value]`` pairs; anything
    not iterable is empty.
    """
    if (start != 0 or stop is not None) and hasattr(collection, "load_slice"):
        return list(collection.load_slice(start, stop))

    if isinstance(collection, str):
        return [collection] if collection else []
    if isinstance(collection, Mapping):
        items: Iterable[Any] = ([key, value] for key, value in collection.items())
    elif isinstance(collection, Iterable):
        items = collection
    else:
        return []

    segment: list[Any] = []
    for index, item in enumerate(items):
        if stop is not None and stop <= index:
            break
        if start <= index:
            segment.append(item)
    return segment
