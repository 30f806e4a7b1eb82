# Sonar Radio – Map, sector and range helpers
# Coordinates are 0-indexed (x, y): x grows east, y grows south.

import math

DEFAULT_SETTINGS = {
    "width": 15,
    "height": 15,
    "sector_size": 5,
    "torpedo_range": 4,
    "silence_reach": 4,
}

DIRECTIONS = ["N", "E", "S", "W"]

_DELTAS = {"N": (0, -1), "S": (0, 1), "E": (1, 0), "W": (-1, 0)}
_OPPOSITES = {"N": "S", "S": "N", "E": "W", "W": "E"}


def direction_delta(direction):
    return _DELTAS[direction]


def opposite(direction):
    return _OPPOSITES[direction]


# ── Grid ──────────────────────────────────────────────────────────────────────

def make_grid(width, height, islands=(), sector_size=None):
    """Build a grid definition. Islands are (x, y) cells."""
    island_set = set(tuple(p) for p in islands)
    return {
        "width":       width,
        "height":      height,
        "sector_size": sector_size or DEFAULT_SETTINGS["sector_size"],
        "islands":     sorted(island_set),
        "island_set":  island_set,
    }


def scan_map(lines, sector_size=None):
    """Build a grid from map rows: '.' is water, anything else is an island."""
    rows = [line.strip() for line in lines if line and line.strip()]
    if not rows:
        raise ValueError("Map has no rows")
    width = len(rows[0])
    for y, row in enumerate(rows):
        if len(row) != width:
            raise ValueError(f"Map row {y} has {len(row)} cells, expected {width}")
    islands = [
        (x, y)
        for y, row in enumerate(rows)
        for x, ch in enumerate(row)
        if ch != "."
    ]
    return make_grid(width, len(rows), islands, sector_size)


def in_bounds(grid, x, y):
    return 0 <= x < grid["width"] and 0 <= y < grid["height"]


def is_free(grid, x, y):
    """True for an in-bounds water cell."""
    return in_bounds(grid, x, y) and (x, y) not in grid["island_set"]


def free_cells(grid):
    return [
        (x, y)
        for y in range(grid["height"])
        for x in range(grid["width"])
        if (x, y) not in grid["island_set"]
    ]


# ── Sectors ───────────────────────────────────────────────────────────────────

def get_sector(x, y, sector_size=5, map_width=15):
    """Return 1-indexed sector number for a given (x, y)."""
    sectors_per_row = math.ceil(map_width / sector_size)
    return (y // sector_size) * sectors_per_row + x // sector_size + 1


def sector_cells(grid, sector):
    """All cells of a sector, islands included."""
    size = grid["sector_size"]
    return [
        (x, y)
        for y in range(grid["height"])
        for x in range(grid["width"])
        if get_sector(x, y, size, grid["width"]) == sector
    ]


# ── Ranges ────────────────────────────────────────────────────────────────────

def torpedo_range(origin, grid, reach=None):
    """
    Water cells a torpedo fired from origin can reach: Manhattan distance
    1..reach. Islands on the way are not taken into account, so a cell behind
    an island corner still counts as reachable.
    """
    reach = reach or DEFAULT_SETTINGS["torpedo_range"]
    ox, oy = origin
    cells = []
    for y in range(oy - reach, oy + reach + 1):
        for x in range(ox - reach, ox + reach + 1):
            dist = abs(x - ox) + abs(y - oy)
            if 0 < dist <= reach and is_free(grid, x, y):
                cells.append((x, y))
    return cells


def neighbouring_cells(position, grid):
    """The water cells of the 8-neighbourhood around position."""
    px, py = position
    return [
        (px + dx, py + dy)
        for dy in (-1, 0, 1)
        for dx in (-1, 0, 1)
        if (dx, dy) != (0, 0) and is_free(grid, px + dx, py + dy)
    ]


def blast_area(position, grid):
    """Cells damaged by an explosion at position (the cell and its ring)."""
    cells = neighbouring_cells(position, grid)
    if is_free(grid, *position):
        cells.append(tuple(position))
    return cells


def torpedo_range_not_hitting_myself(origin, grid, reach=None):
    """Torpedo range minus the cells whose blast would also reach origin."""
    ring = set(neighbouring_cells(origin, grid))
    return [cell for cell in torpedo_range(origin, grid, reach) if cell not in ring]
