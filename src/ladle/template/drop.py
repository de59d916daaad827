"""Drops: host objects that expose a controlled set of lookups to templates.

Templates can never call arbitrary host methods. A Drop subclass decides
what is reachable: every public method (called without arguments) and
every public property declared on the subclass can be looked up by name.
Everything else, including attributes inherited from Drop itself, goes to
``missing()``.

Example:
    >>> class ProductDrop(Drop):
    ...     def __init__(self, product):
    ...         super().__init__()
    ...         self._product = product
    ...
    ...     def title(self):
    ...         return self._product.title.upper()
    ...
    >>> env.from_string("{{ product.title }}").render(product=ProductDrop(p))
    'WIDGET'

"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from ladle.environment.exceptions import UndefinedDropMethodError

if TYPE_CHECKING:
    from ladle.render_context import RenderContext


class Drop:
    """Base class for template-visible host objects.

    The render engine binds every drop it resolves to the active
    RenderContext before use, so drop methods can read variables and
    registers through ``self.context``.
    """

    __slots__ = ("_context",)

    _invokable_cache: ClassVar[dict[type, frozenset[str]]] = {}

    def __init__(self) -> None:
        self._context: RenderContext | None = None

    @property
    def context(self) -> RenderContext | None:
        """Render context this drop was last bound to."""
        return getattr(self, "_context", None)

    def bind(self, context: RenderContext) -> None:
        self._context = context

    def has_key(self, key: Any) -> bool:
        """Drops accept every key; unknown ones resolve through ``missing``."""
        return True

    def resolve(self, key: Any) -> Any:
        """Look up ``key`` as a public method or property of the subclass."""
        if isinstance(key, str) and key in self.invokable_methods():
            value = getattr(self, key)
            return value() if callable(value) else value
        return self.missing(key)

    def missing(self, key: Any) -> Any:
        """Called for keys the drop does not expose.

        Returns None, or raises UndefinedDropMethodError when the bound
        render uses strict variables.
        """
        context = self.context
        if context is not None and context.strict_variables:
            raise UndefinedDropMethodError(str(key))
        return None

    def supports(self, command: str) -> bool:
        return command in self.invokable_methods()

    def to_liquid(self) -> Drop:
        return self

    @classmethod
    def invokable_methods(cls) -> frozenset[str]:
        """Public names declared by Drop subclasses, cached per class."""
        cached = cls._invokable_cache.get(cls)
        if cached is not None:
            return cached

        names: set[str] = set()
        for klass in cls.__mro__:
            if klass is Drop or klass is object:
                continue
            names.update(name for name in vars(klass) if not name.startswith("_"))
        names.discard("to_liquid")
        result = frozenset(names)
        cls._invokable_cache[cls] = result
        return result

    def __repr__(self) -> str:
        return f"<{type(self).__name__}>"
