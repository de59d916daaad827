"""Loop iteration metadata for ``{% for %}`` and ``{% tablerow %}`` blocks."""

from __future__ import annotations

from ladle.template.drop import Drop


class ForloopDrop(Drop):
    """Loop iteration metadata accessible as ``forloop`` inside ``{% for %}``.

    All properties are computed on access from the current index.

    Properties:
        name: Loop identity, ``"<variable>-<collection markup>"``
        length: Number of items in the rendered slice
        index: 1-based iteration count (1, 2, 3, ...)
        index0: 0-based iteration count (0, 1, 2, ...)
        rindex: Reverse 1-based index (counts down to 1)
        rindex0: Reverse 0-based index (counts down to 0)
        first: True on the first iteration
        last: True on the final iteration
        parentloop: ``forloop`` of the enclosing for loop, or None

    Example:
            ```liquid
            {% for item in items %}
              {{ forloop.index }}/{{ forloop.length }}: {{ item }}
              {% if forloop.last %}(last){% endif %}
            {% endfor %}
            ```

    """

    __slots__ = ("_index", "_length", "_name", "_parentloop")

    def __init__(self, name: str, length: int, parentloop: ForloopDrop | None = None) -> None:
        super().__init__()
        self._name = name
        self._length = length
        self._parentloop = parentloop
        self._index = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def length(self) -> int:
        """Total number of items in the slice."""
        return self._length

    @property
    def parentloop(self) -> ForloopDrop | None:
        return self._parentloop

    @property
    def index(self) -> int:
        """1-based iteration count."""
        return self._index + 1

    @property
    def index0(self) -> int:
        """0-based iteration count."""
        return self._index

    @property
    def rindex(self) -> int:
        """Reverse 1-based index (counts down to 1)."""
        return self._length - self._index

    @property
    def rindex0(self) -> int:
        """Reverse 0-based index (counts down to 0)."""
        return self._length - self._index - 1

    @property
    def first(self) -> bool:
        """True if this is the first iteration."""
        return self._index == 0

    @property
    def last(self) -> bool:
        """True if this is the last iteration."""
        return self._index == self._length - 1

    def _increment(self) -> None:
        self._index += 1

    def __repr__(self) -> str:
        return f"<ForloopDrop {self._name} {self.index}/{self._length}>"


class TablerowloopDrop(Drop):
    """Iteration metadata accessible as ``tablerowloop`` inside ``{% tablerow %}``.

    Adds row and column tracking to the ``forloop`` properties. Columns are
    1-based and wrap after ``cols`` cells.
    """

    __slots__ = ("_col", "_cols", "_index", "_length", "_row")

    def __init__(self, length: int, cols: int) -> None:
        super().__init__()
        self._length = length
        self._cols = cols
        self._row = 1
        self._col = 1
        self._index = 0

    @property
    def length(self) -> int:
        return self._length

    @property
    def col(self) -> int:
        return self._col

    @property
    def col0(self) -> int:
        return self._col - 1

    @property
    def row(self) -> int:
        return self._row

    @property
    def index(self) -> int:
        return self._index + 1

    @property
    def index0(self) -> int:
        return self._index

    @property
    def rindex(self) -> int:
        return self._length - self._index

    @property
    def rindex0(self) -> int:
        return self._length - self._index - 1

    @property
    def first(self) -> bool:
        return self._index == 0

    @property
    def last(self) -> bool:
        return self._index == self._length - 1

    @property
    def col_first(self) -> bool:
        return self._col == 1

    @property
    def col_last(self) -> bool:
        return self._col == self._cols

    def _increment(self) -> None:
        self._index += 1
        if self._col == self._cols:
            self._col = 1
            self._row += 1
        else:
            self._col += 1

    def __repr__(self) -> str:
        return f"<TablerowloopDrop row={self._row} col={self._col}>"
