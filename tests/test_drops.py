"""Tests for drops: controlled host objects and loop metadata."""

from __future__ import annotations

from ladle import Drop, Environment
from ladle.template.loop_context import ForloopDrop, TablerowloopDrop

from .conftest import assert_template_result, render


class Product:
    def __init__(self, title: str, price: int) -> None:
        self.title = title
        self.price = price

    def delete(self) -> str:
        return "deleted"


class ProductDrop(Drop):
    def __init__(self, product: Product) -> None:
        super().__init__()
        self._product = product

    def title(self) -> str:
        return self._product.title.upper()

    @property
    def price(self) -> int:
        return self._product.price

    def _secret(self) -> str:
        return "hidden"


class CatchAllDrop(Drop):
    def missing(self, key):
        return f"missing:{key}"


class ContextDrop(Drop):
    def greeting(self) -> str:
        return f"hello {self.context['name']}"


class PagedDrop(Drop):
    """Collection drop that slices itself."""

    def __init__(self, items: list) -> None:
        super().__init__()
        self.items = items
        self.slices: list[tuple] = []

    def load_slice(self, start: int, stop: int | None) -> list:
        self.slices.append((start, stop))
        return self.items[start:stop]


class TestDropLookups:
    """Which names a drop exposes."""

    def test_method(self) -> None:
        assert render("{{ p.title }}", {"p": ProductDrop(Product("widget", 5))}) == "WIDGET"

    def test_property(self) -> None:
        assert render("{{ p.price | plus: 1 }}", {"p": ProductDrop(Product("w", 5))}) == "6"

    def test_private_methods_are_hidden(self) -> None:
        assert render("[{{ p._secret }}]", {"p": ProductDrop(Product("w", 5))}) == "[]"

    def test_drop_internals_are_hidden(self) -> None:
        drop = ProductDrop(Product("w", 5))
        assert render("[{{ p.resolve }}][{{ p.bind }}][{{ p.to_liquid }}]", {"p": drop}) == "[][][]"

    def test_plain_objects_are_opaque(self) -> None:
        """Attributes of non-drop objects are never reachable."""
        assert render("[{{ p.title }}][{{ p.delete }}]", {"p": Product("w", 5)}) == "[][]"

    def test_missing_override(self) -> None:
        assert render("{{ d.anything }}", {"d": CatchAllDrop()}) == "missing:anything"

    def test_drop_in_condition(self) -> None:
        assert_template_result(
            "cheap",
            "{% if p.price < 10 %}cheap{% endif %}",
            {"p": ProductDrop(Product("w", 5))},
        )

    def test_invokable_methods(self) -> None:
        assert ProductDrop.invokable_methods() == frozenset({"title", "price"})


class TestDropContext:
    """Drops are bound to the render that resolved them."""

    def test_drop_reads_context(self) -> None:
        assert render("{{ d.greeting }}", {"d": ContextDrop(), "name": "ann"}) == "hello ann"

    def test_unbound_context_is_none(self) -> None:
        assert ContextDrop().context is None

    def test_to_liquid_returns_self(self) -> None:
        drop = ContextDrop()
        assert drop.to_liquid() is drop


class NamesOnlyDrop(Drop):
    """Exposes only ``name`` as a key but still answers ``size``."""

    def has_key(self, key):
        return key == "name"

    def name(self) -> str:
        return "box"

    def size(self) -> int:
        return 7


class TestDropCommands:
    """size, first and last on drops."""

    def test_supported_command_is_applied(self) -> None:
        assert render("{{ d.name }}:{{ d.size }}", {"d": NamesOnlyDrop()}) == "box:7"

    def test_unsupported_command_is_nil(self) -> None:
        assert render("[{{ d.first }}]", {"d": NamesOnlyDrop()}) == "[]"

    def test_supports(self) -> None:
        drop = NamesOnlyDrop()
        assert drop.supports("size")
        assert not drop.supports("last")


class TestCollectionDrops:
    """Drops used as loop collections."""

    def test_load_slice_used_for_limit_and_offset(self) -> None:
        drop = PagedDrop([1, 2, 3, 4])
        assert render("{% for i in d limit: 2 offset: 1 %}{{ i }}{% endfor %}", {"d": drop}) == "23"
        assert drop.slices == [(1, 3)]

    def test_drop_without_slice_arguments_is_iterated(self) -> None:
        class Items(Drop):
            def __iter__(self):
                return iter(["a", "b"])

        assert render("{% for i in d %}{{ i }}{% endfor %}", {"d": Items()}) == "ab"


class TestForloopDrop:
    """forloop metadata."""

    def test_positions(self) -> None:
        loop = ForloopDrop("i-items", 3)
        assert (loop.index, loop.index0, loop.rindex, loop.rindex0) == (1, 0, 3, 2)
        assert loop.first and not loop.last
        loop._increment()
        loop._increment()
        assert (loop.index, loop.rindex0) == (3, 0)
        assert loop.last and not loop.first

    def test_parentloop(self) -> None:
        outer = ForloopDrop("a-x", 2)
        inner = ForloopDrop("b-y", 1, outer)
        assert inner.parentloop is outer
        assert outer.parentloop is None

    def test_repr(self) -> None:
        assert repr(ForloopDrop("i-items", 3)) == "<ForloopDrop i-items 1/3>"


class TestTablerowloopDrop:
    """tablerowloop metadata."""

    def test_column_wrapping(self) -> None:
        loop = TablerowloopDrop(5, 2)
        positions = []
        for _ in range(5):
            positions.append((loop.row, loop.col, loop.col_first, loop.col_last))
            loop._increment()
        assert positions == [
            (1, 1, True, False),
            (1, 2, False, True),
            (2, 1, True, False),
            (2, 2, False, True),
            (3, 1, True, False),
        ]

    def test_col0_and_rindex(self) -> None:
        loop = TablerowloopDrop(2, 3)
        assert (loop.col0, loop.rindex, loop.length) == (0, 2, 2)


def test_drop_lookup_through_environment() -> None:
    env = Environment()
    template = env.from_string("{{ p.title }}-{{ p.price }}")
    assert template.render(p=ProductDrop(Product("a", 1))) == "A-1"
