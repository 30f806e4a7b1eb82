"""
Sonar Radio – Head position exclusion.

Keeps an absolute-frame mask of cells the opponent's head cannot be on,
independently of the full path shape. Evidence handled:

  move         : the mask travels with the opponent; the edge it leaves behind
                 is excluded (nobody comes from outside the map).
  torpedo      : the firer is within torpedo range of its own target.
  silence      : a blind 0..4 cell straight jump; the possible region is
                 dilated, which can only widen the mask.
  surface      : the head is inside the announced sector.
  life_changed : damage from our own last attacks pins the head to the
                 attack's cell or its blast ring.

Islands are always excluded.
"""

from __future__ import annotations

import logging
from typing import Optional

from maps import (
    DEFAULT_SETTINGS, DIRECTIONS, blast_area, neighbouring_cells, opposite,
    torpedo_range,
)
from shapes import Exclusion, Occupancy

log = logging.getLogger(__name__)


class ExclusionAccumulator:
    """Accumulates head exclusions from non-trajectory evidence."""

    def __init__(self, grid: dict, logger: Optional[logging.Logger] = None,
                 initial: Optional[Exclusion] = None):
        self.grid = grid
        self.log = logger or log
        self.width = grid["width"]
        self.height = grid["height"]
        self.silence_reach = DEFAULT_SETTINGS["silence_reach"]
        self.obstacles = Exclusion.from_obstacles(Occupancy.from_grid(grid))
        self.mask = self.obstacles
        if initial is not None:
            self.mask = initial.bitwise_or(self.obstacles)

        self._handlers = {
            "move":         self._on_move,
            "torpedo":      self._on_torpedo,
            "silence":      self._on_silence,
            "surface":      self._on_surface,
            "life_changed": self._on_life_changed,
        }

    def handle(self, event: dict):
        handler = self._handlers.get(event.get("type"))
        if handler is None:
            self.log.debug("No exclusion rule for event %r", event)
            return
        handler(event)

    def reset(self):
        """Forget every exclusion except the islands."""
        self.mask = self.obstacles

    def restore(self, mask: Exclusion):
        """Go back to an earlier mask; islands stay excluded."""
        self.mask = mask.bitwise_or(self.obstacles)

    def excluded_count(self) -> int:
        return self.mask.count()

    # ── Evidence ─────────────────────────────────────────────────────────────

    def _on_move(self, event: dict):
        self.mask = self.mask.shift(event["direction"], fill=True).bitwise_or(self.obstacles)

    def _on_torpedo(self, event: dict):
        target = tuple(event["target"])
        in_range = torpedo_range(target, self.grid)
        self.mask = self.mask.bitwise_or(
            Exclusion.all_except(self.width, self.height, in_range))

    def _on_silence(self, event: dict):
        last = event.get("last_direction")
        banned = opposite(last) if last else None

        # A cell stays excluded only if every cell it could have been reached
        # from (0..reach steps back along a permitted direction) was excluded.
        result = self.mask
        for direction in DIRECTIONS:
            if direction == banned:
                continue
            shifted = self.mask
            for _ in range(self.silence_reach):
                shifted = shifted.shift(direction, fill=True)
                result = result.bitwise_and(shifted)
        self.mask = result.bitwise_or(self.obstacles)

    def _on_surface(self, event: dict):
        self.mask = (self.mask
                     .bitwise_or(Exclusion.outside_sector(self.grid, event["sector"]))
                     .bitwise_or(self.obstacles))

    def _on_life_changed(self, event: dict):
        lost = event["previous"] - event["current"]
        if event.get("surfaced"):
            lost -= 1   # surfacing costs one life on its own
        attacks = event.get("attacks") or []
        if lost <= 0 or not attacks:
            return

        targets = [tuple(attack["target"]) for attack in attacks]
        if len(targets) == 1 and lost > 1:
            # direct hit: the head was on the target cell
            allowed = targets
        else:
            # a direct hit costs 2, so a single point lost came from a ring
            area = neighbouring_cells if lost == 1 else blast_area
            allowed = set()
            for target in targets:
                allowed.update(area(target, self.grid))

        self.log.info("Opponent lost %d life to %d attack(s); head narrowed to %d cell(s)",
                      lost, len(attacks), len(allowed))
        self.mask = (self.mask
                     .bitwise_or(Exclusion.all_except(self.width, self.height, allowed))
                     .bitwise_or(self.obstacles))
