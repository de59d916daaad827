"""Built-in filters for Ladle templates.

Filters transform the value of an output expression:
``{{ value | filter }}`` or ``{{ value | filter: arg, key: value }}``.
The value is passed as the first positional argument.

Categories:
**String Filters**:
    - `append`, `prepend`, `capitalize`, `downcase`, `upcase`
    - `strip`, `lstrip`, `rstrip`, `replace`, `remove`, `split`
    - `truncate`, `escape`

**Collection Filters**:
    - `first`, `last`, `join`, `reverse`, `size`, `sort`, `map`, `uniq`

**Math Filters**:
    - `plus`, `minus`, `times`, `divided_by`, `modulo`, `abs`, `round`
    - `at_least`, `at_most`

**Misc**:
    - `default`: fallback for nil, false and empty values

Custom Filters:
    >>> env.register_filter('shout', lambda value: f"{value}!")
    >>> # {{ 'hi' | shout }} -> hi!

Filters raising TypeError or ValueError are reported as
TemplateArgumentError by the render context.

"""

from __future__ import annotations

import html
from collections.abc import Callable, Iterable, Mapping, Sized
from typing import Any

from ladle.environment.exceptions import TemplateArgumentError
from ladle.template.drop import Drop
from ladle.template.helpers import to_i, to_number, to_output_string


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (str, Mapping, Drop)):
        return [value]
    if isinstance(value, Iterable):
        return list(value)
    return [value]


def _filter_append(value: Any, suffix: Any) -> str:
    """Append ``suffix`` to the string form of ``value``."""
    return to_output_string(value) + to_output_string(suffix)


def _filter_prepend(value: Any, prefix: Any) -> str:
    """Prepend ``prefix`` to the string form of ``value``."""
    return to_output_string(prefix) + to_output_string(value)


def _filter_capitalize(value: Any) -> str:
    """Uppercase the first character and lowercase the rest."""
    return to_output_string(value).capitalize()


def _filter_downcase(value: Any) -> str:
    return to_output_string(value).lower()


def _filter_upcase(value: Any) -> str:
    return to_output_string(value).upper()


def _filter_strip(value: Any) -> str:
    return to_output_string(value).strip()


def _filter_lstrip(value: Any) -> str:
    return to_output_string(value).lstrip()


def _filter_rstrip(value: Any) -> str:
    return to_output_string(value).rstrip()


def _filter_replace(value: Any, old: Any, new: Any = "") -> str:
    """Replace every occurrence of ``old`` with ``new``."""
    return to_output_string(value).replace(to_output_string(old), to_output_string(new))


def _filter_remove(value: Any, text: Any) -> str:
    """Remove every occurrence of ``text``."""
    return to_output_string(value).replace(to_output_string(text), "")


def _filter_split(value: Any, separator: Any = " ") -> list[str]:
    """Split a string into a list.

    A single space separator splits on runs of whitespace.
    """
    text = to_output_string(value)
    separator = to_output_string(separator)
    if separator == " ":
        return text.split()
    if not separator:
        return list(text)
    return text.split(separator)


def _filter_truncate(value: Any, length: Any = 50, ellipsis: Any = "...") -> str:
    """Shorten to ``length`` characters including the ellipsis.

    Example:
        {{ 'Ground control to Major Tom.' | truncate: 20 }}
        -> Ground control to...
    """
    text = to_output_string(value)
    ellipsis = to_output_string(ellipsis)
    length = to_i(length)
    if len(text) <= length:
        return text
    keep = max(length - len(ellipsis), 0)
    return text[:keep] + ellipsis


def _filter_escape(value: Any) -> str | None:
    """HTML-escape ``&``, ``<``, ``>``, ``"`` and ``'``."""
    if value is None:
        return None
    return html.escape(to_output_string(value), quote=True)


def _filter_first(value: Any) -> Any:
    items = _as_list(value) if not isinstance(value, str) else list(value)
    return items[0] if items else None


def _filter_last(value: Any) -> Any:
    items = _as_list(value) if not isinstance(value, str) else list(value)
    return items[-1] if items else None


def _filter_join(value: Any, glue: Any = " ") -> str:
    """Join items with ``glue``."""
    return to_output_string(glue).join(to_output_string(item) for item in _as_list(value))


def _filter_reverse(value: Any) -> list[Any]:
    return list(reversed(_as_list(value)))


def _filter_size(value: Any) -> int:
    """Length of strings and collections, 0 for anything else."""
    if isinstance(value, Sized) and not isinstance(value, Drop):
        return len(value)
    return 0


def _filter_sort(value: Any, key: Any = None) -> list[Any]:
    """Sort items, optionally by a property of each item.

    Items whose key is nil sort last.
    """
    items = _as_list(value)
    if key is None:
        keyed = [(item, item) for item in items]
    else:
        keyed = [(_property(item, key), item) for item in items]
    present = [pair for pair in keyed if pair[0] is not None]
    missing = [item for sort_key, item in keyed if sort_key is None]
    try:
        present.sort(key=lambda pair: pair[0])
    except TypeError:
        raise TemplateArgumentError("cannot sort values of different types") from None
    return [item for _, item in present] + missing


def _property(item: Any, key: Any) -> Any:
    if isinstance(item, Drop):
        return item.resolve(key)
    if isinstance(item, Mapping):
        return item.get(key)
    return None


def _filter_map(value: Any, key: Any) -> list[Any]:
    """Collect property ``key`` of every item."""
    return [_property(item, key) for item in _as_list(value)]


def _filter_uniq(value: Any) -> list[Any]:
    """Remove duplicates, keeping the first occurrence."""
    seen: list[Any] = []
    for item in _as_list(value):
        if item not in seen:
            seen.append(item)
    return seen


def _filter_plus(value: Any, other: Any) -> int | float:
    return to_number(value) + to_number(other)


def _filter_minus(value: Any, other: Any) -> int | float:
    return to_number(value) - to_number(other)


def _filter_times(value: Any, other: Any) -> int | float:
    return to_number(value) * to_number(other)


def _filter_divided_by(value: Any, other: Any) -> int | float:
    """Divide; integer operands use floor division.

    Raises:
        TemplateArgumentError: Division by zero.
    """
    dividend, divisor = to_number(value), to_number(other)
    if divisor == 0:
        raise TemplateArgumentError("divided by 0")
    if isinstance(dividend, int) and isinstance(divisor, int):
        return dividend // divisor
    return dividend / divisor


def _filter_modulo(value: Any, other: Any) -> int | float:
    dividend, divisor = to_number(value), to_number(other)
    if divisor == 0:
        raise TemplateArgumentError("divided by 0")
    return dividend % divisor


def _filter_abs(value: Any) -> int | float:
    return abs(to_number(value))


def _filter_round(value: Any, digits: Any = 0) -> int | float:
    digits = to_i(digits)
    result = round(to_number(value), digits)
    return int(result) if digits == 0 else result


def _filter_at_least(value: Any, minimum: Any) -> int | float:
    return max(to_number(value), to_number(minimum))


def _filter_at_most(value: Any, maximum: Any) -> int | float:
    return min(to_number(value), to_number(maximum))


def _filter_default(value: Any, fallback: Any = "", allow_false: Any = False) -> Any:
    """Return ``fallback`` for nil, false and empty strings or collections.

    Example:
        {{ product.title | default: 'Untitled' }}
        {{ flag | default: true, allow_false: true }}
    """
    if value is False and allow_false is True:
        return value
    if value is None or value is False:
        return fallback
    if isinstance(value, Sized) and not isinstance(value, Drop) and len(value) == 0:
        return fallback
    return value


DEFAULT_FILTERS: dict[str, Callable[..., Any]] = {
    "abs": _filter_abs,
    "append": _filter_append,
    "at_least": _filter_at_least,
    "at_most": _filter_at_most,
    "capitalize": _filter_capitalize,
    "default": _filter_default,
    "divided_by": _filter_divided_by,
    "downcase": _filter_downcase,
    "escape": _filter_escape,
    "first": _filter_first,
    "join": _filter_join,
    "last": _filter_last,
    "lstrip": _filter_lstrip,
    "map": _filter_map,
    "minus": _filter_minus,
    "modulo": _filter_modulo,
    "plus": _filter_plus,
    "prepend": _filter_prepend,
    "remove": _filter_remove,
    "replace": _filter_replace,
    "reverse": _filter_reverse,
    "round": _filter_round,
    "rstrip": _filter_rstrip,
    "size": _filter_size,
    "sort": _filter_sort,
    "split": _filter_split,
    "strip": _filter_strip,
    "times": _filter_times,
    "truncate": _filter_truncate,
    "uniq": _filter_uniq,
    "upcase": _filter_upcase,
}
