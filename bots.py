"""
Sonar Radio – Radio operator bot.

The radio operator listens to everything public about the opponent and keeps
the TrajectoryTracker fed:

  - the opponent's order line each turn (moves, silence, surface, torpedo)
  - the opponent's life total, diffed turn over turn
  - our own attacks of the previous turn (torpedo targets, triggered mines),
    which explain a life change

It answers with a position report and, once the position is exact, with a
torpedo target reachable from our own position.
"""

from __future__ import annotations   # enables PEP 604 | syntax on Python 3.8+

import logging
from typing import Optional

from maps import (
    get_sector, neighbouring_cells, torpedo_range_not_hitting_myself, free_cells,
)
from orders import has_surfaced, parse_orders
from tracker import TrajectoryTracker

log = logging.getLogger(__name__)


# ── Radio Operator Bot ────────────────────────────────────────────────────────

class RadioOperatorBot:
    """
    Position-tracking radio operator for one match.

    Our attacks are recorded with ``note_torpedo`` / ``note_trigger`` as they
    are issued. The life change they cause only shows up in the next turn's
    input, before the opponent's own orders, so ``process_turn`` replays the
    life change first and the opponent's orders after it.
    """

    def __init__(self, grid: dict, logger: Optional[logging.Logger] = None):
        self.grid = grid
        self.log = logger or log
        self.tracker = TrajectoryTracker(grid, logger=self.log)

        self.opponent_life: Optional[int] = None
        self.pending_attacks: list = []
        self.turns = 0
        self.total_free = len(free_cells(grid))

    # ── Our attacks ──────────────────────────────────────────────────────────

    def note_torpedo(self, target):
        self.pending_attacks.append({"kind": "torpedo", "target": tuple(target)})

    def note_trigger(self, target):
        self.pending_attacks.append({"kind": "mine", "target": tuple(target)})

    # ── Turn processing ──────────────────────────────────────────────────────

    def process_turn(self, opponent_orders: str, opponent_life: Optional[int] = None) -> dict:
        """Feed one turn of opponent information; return the position report."""
        events = []
        if (opponent_life is not None and self.opponent_life is not None
                and opponent_life != self.opponent_life):
            events.append({
                "type":     "life_changed",
                "previous": self.opponent_life,
                "current":  opponent_life,
                "surfaced": has_surfaced(opponent_orders),
                "attacks":  list(self.pending_attacks),
            })
        events.extend(parse_orders(opponent_orders))

        if opponent_life is not None:
            self.opponent_life = opponent_life
        self.pending_attacks = []
        self.turns += 1

        self.tracker.next(events)
        self.log.debug("Turn %d: %d event(s) from %r", self.turns, len(events), opponent_orders)
        return self.report()

    # ── Report generation ────────────────────────────────────────────────────

    def report(self) -> dict:
        """Compute a structured position report."""
        positions = sorted(self.tracker.possible_positions())
        count = len(positions)

        ratio = count / max(self.total_free, 1)
        if count == 1:
            certainty = "exact"
        elif count <= 5:
            certainty = "high"
        elif ratio <= 0.1:
            certainty = "medium"
        elif ratio <= 0.3:
            certainty = "low"
        else:
            certainty = "none"

        # Best guess: candidate closest to the centroid
        best = None
        if positions:
            avg_x = sum(x for x, y in positions) / count
            avg_y = sum(y for x, y in positions) / count
            best = min(positions, key=lambda p: (p[0] - avg_x) ** 2 + (p[1] - avg_y) ** 2)

        sectors = sorted({
            get_sector(x, y, self.grid["sector_size"], self.grid["width"])
            for x, y in positions
        })
        if count == 1:
            summary = f"Enemy located at {positions[0]} in sector {sectors[0]}"
        elif count <= 30:
            summary = f"~{count} positions, likely sector(s) {','.join(str(s) for s in sectors)}"
        else:
            summary = f"Tracking {count} positions across {len(sectors)} sector(s)"

        return {
            "turn":       self.turns,
            "positions":  positions,
            "count":      count,
            "exact":      self.tracker.is_exact(),
            "certainty":  certainty,
            "best_guess": best,
            "sectors":    sectors,
            "summary":    summary,
        }

    # ── Weapon helpers ───────────────────────────────────────────────────────

    def choose_torpedo_target(self, my_position) -> Optional[tuple]:
        """
        Torpedo target once the enemy position is exact: the enemy cell when
        it is in range, otherwise the closest in-range cell of its ring.
        Never a cell whose blast would reach us.
        """
        if not self.tracker.is_exact():
            return None
        enemy = tuple(self.tracker.possible_positions()[0])
        reachable = set(torpedo_range_not_hitting_myself(tuple(my_position), self.grid))
        if enemy in reachable:
            return enemy

        mx, my = my_position
        ring = [cell for cell in neighbouring_cells(enemy, self.grid) if cell in reachable]
        if not ring:
            self.log.debug("Enemy at %s is out of torpedo range from %s", enemy, my_position)
            return None
        ring.sort(key=lambda c: (abs(c[0] - mx) + abs(c[1] - my), c[1], c[0]))
        return ring[0]
