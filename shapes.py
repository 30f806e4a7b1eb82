"""
Sonar Radio – Shape bitmaps.

A bitmap is one Python int per grid row, ``width`` bits wide, with column 0 in
the most significant bit:

    column : 0      1      ...  w-1
    bit    : w-1    w-2    ...  0

Two flavours share the row primitives and are never mixed:

  Occupancy : set bit = a cell visited by a trajectory (or an island).
              May carry the trajectory head, which is always a set cell.
  Exclusion : set bit = a cell proven NOT to be the opponent's current head.

Bitmaps are immutable values; every operation returns a new instance, so
hypotheses derived from one another never share mutable storage.

RelativeTrajectory wraps an Occupancy living in a floating frame: only its
shape is meaningful, and the frame re-centres itself when a step would leave
the window.
"""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

from maps import direction_delta, opposite, sector_cells

Cell = Tuple[int, int]


class ShapeError(ValueError):
    """A bitmap was asked for something its shape cannot represent."""


# ── Bit rows ──────────────────────────────────────────────────────────────────

class BitRows:
    """Row-major bitmask shared by occupancy and exclusion bitmaps."""

    __slots__ = ("width", "height", "rows")

    def __init__(self, width: int, height: int, rows: Optional[Iterable[int]] = None):
        self.width = width
        self.height = height
        full = (1 << width) - 1
        self.rows = tuple(r & full for r in rows) if rows is not None else (0,) * height
        if len(self.rows) != height:
            raise ShapeError(f"Expected {height} rows, got {len(self.rows)}")

    # ── Construction ─────────────────────────────────────────────────────────

    @classmethod
    def from_cartesian(cls, matrix):
        """Build from a ``matrix[y][x]`` of truthy/falsy cells."""
        height = len(matrix)
        width = len(matrix[0]) if height else 0
        rows = []
        for line in matrix:
            row = 0
            for cell in line:
                row = (row << 1) | (1 if cell else 0)
            rows.append(row)
        return cls(width, height, rows)

    @staticmethod
    def _parse(lines):
        """Parse a text fixture: 'x' set, 'X' set + head, '.' empty."""
        width = len(lines[0])
        rows, head = [], None
        for y, line in enumerate(lines):
            if len(line) != width:
                raise ShapeError(f"Fixture row {y} has {len(line)} cells, expected {width}")
            row = 0
            for x, ch in enumerate(line):
                row <<= 1
                if ch in "xX":
                    row |= 1
                if ch == "X":
                    head = (x, y)
            rows.append(row)
        return width, len(lines), rows, head

    # ── Cells ────────────────────────────────────────────────────────────────

    @property
    def full_row(self) -> int:
        return (1 << self.width) - 1

    def _bit(self, x: int) -> int:
        return 1 << (self.width - 1 - x)

    def in_window(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def is_set(self, x: int, y: int) -> bool:
        return bool(self.rows[y] & self._bit(x))

    def cells(self) -> list:
        return [
            (x, y)
            for y, row in enumerate(self.rows)
            for x in range(self.width)
            if row & self._bit(x)
        ]

    def count(self) -> int:
        return sum(bin(row).count("1") for row in self.rows)

    def is_empty(self) -> bool:
        return not any(self.rows)

    def to_cartesian(self) -> list:
        """Return ``matrix[y][x]`` of 0/1."""
        return [
            [1 if row & self._bit(x) else 0 for x in range(self.width)]
            for row in self.rows
        ]

    # ── Combination ──────────────────────────────────────────────────────────

    def _derive(self, rows, offset=None):
        return self.__class__(self.width, self.height, rows)

    def collides_with(self, other: "BitRows") -> bool:
        return any(a & b for a, b in zip(self.rows, other.rows))

    def bitwise_or(self, other: "BitRows"):
        return self._derive([a | b for a, b in zip(self.rows, other.rows)])

    def bitwise_and(self, other: "BitRows"):
        return self._derive([a & b for a, b in zip(self.rows, other.rows)])

    def invert(self):
        full = self.full_row
        return self._derive([~row & full for row in self.rows])

    # ── Shifting ─────────────────────────────────────────────────────────────

    def can_shift(self, direction: str) -> bool:
        """True if no set bit would fall off the edge when shifting."""
        if direction == "E":
            return all(not (row & 1) for row in self.rows)
        if direction == "W":
            edge = self._bit(0)
            return all(not (row & edge) for row in self.rows)
        if direction == "S":
            return self.rows[-1] == 0
        if direction == "N":
            return self.rows[0] == 0
        raise ShapeError(f"Unknown direction: {direction!r}")

    def _shifted_rows(self, direction: str, fill: bool) -> list:
        full = self.full_row
        if direction == "E":
            edge = self._bit(0) if fill else 0
            return [(row >> 1) | edge for row in self.rows]
        if direction == "W":
            edge = 1 if fill else 0
            return [((row << 1) & full) | edge for row in self.rows]
        if direction == "S":
            return [full if fill else 0] + list(self.rows[:-1])
        if direction == "N":
            return list(self.rows[1:]) + [full if fill else 0]
        raise ShapeError(f"Unknown direction: {direction!r}")

    # ── Display ──────────────────────────────────────────────────────────────

    def __str__(self):
        return "\n".join(format(row, f"0{self.width}b") for row in self.rows)

    def __repr__(self):
        return f"{self.__class__.__name__}({self.width}x{self.height}, rows={list(self.rows)})"

    def __eq__(self, other):
        if not isinstance(other, BitRows) or other.__class__ is not self.__class__:
            return NotImplemented
        return (self.width, self.height, self.rows) == (other.width, other.height, other.rows)

    def __hash__(self):
        return hash((self.__class__.__name__, self.width, self.height, self.rows))


# ── Occupancy ─────────────────────────────────────────────────────────────────

class Occupancy(BitRows):
    """Visited cells of a trajectory (or islands), with an optional head."""

    __slots__ = ("head",)

    def __init__(self, width: int, height: int, rows=None, head: Optional[Cell] = None):
        super().__init__(width, height, rows)
        if head is not None:
            head = tuple(head)
            if not self.in_window(*head) or not self.is_set(*head):
                raise ShapeError(f"Head {head} is not a set cell")
        self.head = head

    @classmethod
    def start(cls, width: int, height: int, origin: Cell = (0, 0)):
        """A single-cell trajectory with its head on origin."""
        x, y = origin
        rows = [0] * height
        rows[y] = 1 << (width - 1 - x)
        return cls(width, height, rows, origin)

    @classmethod
    def from_strings(cls, lines):
        width, height, rows, head = cls._parse(lines)
        return cls(width, height, rows, head)

    @classmethod
    def from_grid(cls, grid):
        """Island mask of a grid definition."""
        track = cls(grid["width"], grid["height"])
        rows = [0] * grid["height"]
        for x, y in grid["island_set"]:
            rows[y] |= track._bit(x)
        return cls(grid["width"], grid["height"], rows)

    def _derive(self, rows, offset=None):
        head = None
        if offset is not None and self.head is not None:
            head = (self.head[0] + offset[0], self.head[1] + offset[1])
        return Occupancy(self.width, self.height, rows, head)

    def _require_head(self) -> Cell:
        if self.head is None:
            raise ShapeError("Operation needs a trajectory head")
        return self.head

    def shift(self, direction: str) -> "Occupancy":
        """Move the whole shape one cell. The shift must not lose any bit."""
        if not self.can_shift(direction):
            raise ShapeError(f"Cannot shift {direction}: the {direction} edge is occupied")
        return self._derive(self._shifted_rows(direction, False), direction_delta(direction))

    def anchored(self) -> "Occupancy":
        """The same shape pushed into the north-west corner of the window."""
        if self.is_empty():
            return self
        shape = self
        while shape.can_shift("N"):
            shape = shape.shift("N")
        while shape.can_shift("W"):
            shape = shape.shift("W")
        return shape

    def head_collides_with(self, exclusion: "Exclusion") -> bool:
        """True if the head cell is set in exclusion."""
        if self.head is None:
            return False
        x, y = self.head
        return bool(exclusion.rows[y] & self._bit(x))

    def can_advance(self, direction: str, obstacles: Optional["Occupancy"] = None) -> bool:
        """True if the head can step into a fresh in-window, non-island cell."""
        x, y = self._require_head()
        dx, dy = direction_delta(direction)
        nx, ny = x + dx, y + dy
        if not self.in_window(nx, ny) or self.is_set(nx, ny):
            return False
        return obstacles is None or not obstacles.is_set(nx, ny)

    def advance(self, direction: str) -> "Occupancy":
        """Grow the path one cell in an absolute frame (no re-centring)."""
        x, y = self._require_head()
        dx, dy = direction_delta(direction)
        nx, ny = x + dx, y + dy
        if not self.in_window(nx, ny):
            raise ShapeError(f"Step {direction} from {(x, y)} leaves the window")
        rows = list(self.rows)
        rows[ny] |= self._bit(nx)
        return Occupancy(self.width, self.height, rows, (nx, ny))

    def debug(self) -> str:
        head = f"Head: {self.head}" if self.head is not None else "Head: None"
        return f"{head}, rows={list(self.rows)}"

    def __eq__(self, other):
        result = super().__eq__(other)
        if result is NotImplemented or not result:
            return result
        return self.head == other.head

    def __hash__(self):
        return hash((super().__hash__(), self.head))


# ── Exclusion ─────────────────────────────────────────────────────────────────

class Exclusion(BitRows):
    """Cells proven not to hold the opponent's head."""

    __slots__ = ()

    @classmethod
    def empty(cls, width: int, height: int):
        return cls(width, height)

    @classmethod
    def only(cls, width: int, height: int, cells):
        """Exclude exactly the given cells."""
        mask = cls(width, height)
        rows = [0] * height
        for x, y in cells:
            rows[y] |= mask._bit(x)
        return cls(width, height, rows)

    @classmethod
    def all_except(cls, width: int, height: int, cells):
        """Exclude every cell but the given ones."""
        return cls.only(width, height, cells).invert()

    @classmethod
    def from_strings(cls, lines):
        width, height, rows, _ = cls._parse(lines)
        return cls(width, height, rows)

    @classmethod
    def from_obstacles(cls, obstacles: Occupancy):
        return cls(obstacles.width, obstacles.height, obstacles.rows)

    @classmethod
    def outside_sector(cls, grid, sector: int):
        """Exclude every cell outside a sector."""
        return cls.all_except(grid["width"], grid["height"], sector_cells(grid, sector))

    def shift(self, direction: str, fill: bool = True) -> "Exclusion":
        """Shift one cell; the exposed edge is excluded unless fill is False."""
        return self._derive(self._shifted_rows(direction, fill))

    def excludes(self, x: int, y: int) -> bool:
        return self.is_set(x, y)

    def allowed_cells(self) -> list:
        return self.invert().cells()


# ── Relative trajectory ───────────────────────────────────────────────────────

class RelativeTrajectory:
    """
    The opponent's path since the last reset, in a floating frame.

    Only the shape matters; ``extend`` keeps the shape representable by
    shifting the frame away from the edge the path is growing into.
    """

    __slots__ = ("_track",)

    def __init__(self, width: int, height: int, track: Optional[Occupancy] = None):
        self._track = track if track is not None else Occupancy.start(width, height)

    @property
    def track(self) -> Occupancy:
        return self._track

    @property
    def head(self) -> Optional[Cell]:
        return self._track.head

    def extend(self, direction: str) -> "RelativeTrajectory":
        base = self._track
        x, y = base._require_head()
        dx, dy = direction_delta(direction)
        nx, ny = x + dx, y + dy
        outside = not base.in_window(nx, ny)
        if outside or base.is_set(nx, ny):
            back = opposite(direction)
            if base.can_shift(back):
                base = base.shift(back)
            elif outside:
                raise ShapeError(f"Trajectory is as wide as the window, cannot extend {direction}")
        return RelativeTrajectory(base.width, base.height, base.advance(direction))

    def __str__(self):
        return str(self._track)
