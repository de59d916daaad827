"""Tag and filter registries for the Ladle environment.

Both provide a dict-like interface over a plain dict owned by the
Environment. Mutations replace the dict (copy-on-write), so a parse or
render that already fetched the mapping never sees it change.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ladle.environment.core import Environment
    from ladle.nodes.base import Tag

logger = logging.getLogger(__name__)


class _Registry:
    """Dict-like view of one Environment attribute.

    Supports:
        - env.tags['name'] = cls
        - env.filters.update({'name': func})
        - func = env.filters['name']
        - 'name' in env.filters
        - del env.tags['name']

    All mutations use copy-on-write for thread-safety.
    """

    __slots__ = ("_env", "_attr")

    kind = "entry"

    def __init__(self, env: Environment, attr: str):
        self._env = env
        self._attr = attr

    def _get_dict(self) -> dict[str, Any]:
        return getattr(self._env, self._attr)

    def _set_dict(self, d: dict[str, Any]) -> None:
        setattr(self._env, self._attr, d)

    def __getitem__(self, name: str) -> Any:
        return self._get_dict()[name]

    def __setitem__(self, name: str, value: Any) -> None:
        new = self._get_dict().copy()
        new[name] = value
        self._set_dict(new)
        logger.debug("Registered %s %r", self.kind, name)

    def __delitem__(self, name: str) -> None:
        new = self._get_dict().copy()
        del new[name]
        self._set_dict(new)
        logger.debug("Unregistered %s %r", self.kind, name)

    def __contains__(self, name: object) -> bool:
        return name in self._get_dict()

    def __iter__(self) -> Iterator[str]:
        return iter(self._get_dict())

    def __len__(self) -> int:
        return len(self._get_dict())

    def get(self, name: str, default: Any = None) -> Any:
        return self._get_dict().get(name, default)

    def update(self, mapping: Mapping[str, Any]) -> None:
        """Batch update in a single copy."""
        new = self._get_dict().copy()
        new.update(mapping)
        self._set_dict(new)
        logger.debug("Registered %d %s(s): %s", len(mapping), self.kind, ", ".join(mapping))

    def copy(self) -> dict[str, Any]:
        """Return a copy of the underlying dict."""
        return self._get_dict().copy()

    def keys(self):
        return self._get_dict().keys()

    def values(self):
        return self._get_dict().values()

    def items(self):
        return self._get_dict().items()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {sorted(self._get_dict())}>"


class TagRegistry(_Registry):
    """Tag name to Tag subclass mapping used by the parser."""

    __slots__ = ()

    kind = "tag"

    def __getitem__(self, name: str) -> type[Tag]:
        return self._get_dict()[name]


class FilterRegistry(_Registry):
    """Filter name to callable mapping used by output pipelines."""

    __slots__ = ()

    kind = "filter"

    def __getitem__(self, name: str) -> Callable[..., Any]:
        return self._get_dict()[name]


def default_tags() -> dict[str, type[Tag]]:
    """Fresh mapping of the built-in tags."""
    from ladle.nodes.control_flow import (
        Break,
        Case,
        Continue,
        For,
        If,
        Ifchanged,
        TableRow,
        Unless,
    )
    from ladle.nodes.structure import Comment, Raw
    from ladle.nodes.variables import Assign, Capture, Cycle

    return {
        "assign": Assign,
        "break": Break,
        "capture": Capture,
        "case": Case,
        "comment": Comment,
        "continue": Continue,
        "cycle": Cycle,
        "for": For,
        "if": If,
        "ifchanged": Ifchanged,
        "raw": Raw,
        "tablerow": TableRow,
        "unless": Unless,
    }
