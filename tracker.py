"""
Sonar Radio – Opponent trajectory tracking.

The tracker keeps the shape of the path the opponent has drawn since its last
silence or surface (a RelativeTrajectory, position unknown) and, every turn,
slides that shape over the map to list every placement that:

  - does not touch an island, and
  - ends on a head cell the ExclusionAccumulator has not ruled out.

The heads of those placements are the possible opponent positions. Once a
single placement is left the tracker is "collapsed": it follows that one
absolute path move by move until a silence (or contradictory evidence)
sends it back to tracking.
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional

from exclusion import ExclusionAccumulator
from shapes import Exclusion, Occupancy, RelativeTrajectory, ShapeError

log = logging.getLogger(__name__)

TRACKING = "tracking"
COLLAPSED = "collapsed"

# Evidence that narrows the head without moving it; the first thing dropped
# when a turn leaves no consistent placement.
RESTRICTIVE_EVENTS = ("torpedo", "surface", "life_changed")


def possible_placements(shape: Occupancy, exclusion: Optional[Exclusion],
                        obstacles: Occupancy) -> Iterator[Occupancy]:
    """
    Lazily yield every absolute placement of shape that avoids obstacles and
    whose head is not excluded. Placements come south-major, east-minor.
    """
    row_start = shape.anchored()
    while True:
        candidate = row_start
        while True:
            if (not candidate.collides_with(obstacles)
                    and (exclusion is None or not candidate.head_collides_with(exclusion))):
                yield candidate
            if not candidate.can_shift("E"):
                break
            candidate = candidate.shift("E")
        if not row_start.can_shift("S"):
            break
        row_start = row_start.shift("S")


class TrajectoryTracker:
    """
    Position tracking from the opponent's reported orders.

    Consumes turn events (see orders.parse_orders) through ``next``:
      move          : extend the relative path, advance the exact path
      silence       : restart the path, drop the exact path
      surface       : restart the path, keep only the exact head
      torpedo       : exclusion only
      life_changed  : exclusion only
    Every event is forwarded to the ExclusionAccumulator.
    """

    def __init__(self, grid: dict, logger: Optional[logging.Logger] = None,
                 accumulator: Optional[ExclusionAccumulator] = None):
        self.grid = grid
        self.log = logger or log
        self.width = grid["width"]
        self.height = grid["height"]
        self.obstacles = Occupancy.from_grid(grid)
        self.accumulator = accumulator or ExclusionAccumulator(grid, logger=self.log)

        self.trajectory = RelativeTrajectory(self.width, self.height)
        self.state = TRACKING
        self.turn = 0
        self.last_direction: Optional[str] = None
        self._exact: Optional[Occupancy] = None
        self._candidates: List[Occupancy] = []

        # accumulator state before this turn and the events fed to it since
        self._turn_mask: Exclusion = self.accumulator.mask
        self._forwarded: List[dict] = []

        self._recompute()

    # ── Turn processing ──────────────────────────────────────────────────────

    def next(self, events: list) -> list:
        """Apply one turn of events and return the possible positions."""
        self.turn += 1
        self._turn_mask = self.accumulator.mask
        self._forwarded = []
        for event in events:
            t = event.get("type")
            if t == "move":
                self._on_move(event)
            elif t == "silence":
                self._on_silence(event)
            elif t == "surface":
                self._on_surface(event)
            elif t in ("torpedo", "life_changed"):
                self._forward(event)
            else:
                self.log.debug("Turn %d: ignoring event %r", self.turn, event)
        self._recompute()
        return self.possible_positions()

    def _forward(self, event: dict):
        self._forwarded.append(event)
        self.accumulator.handle(event)

    def _on_move(self, event: dict):
        direction = event["direction"]
        try:
            self.trajectory = self.trajectory.extend(direction)
        except ShapeError:
            self.log.warning("Turn %d: path no longer fits a %dx%d map; restarting it",
                             self.turn, self.width, self.height)
            self.trajectory = RelativeTrajectory(self.width, self.height)

        if self._exact is not None:
            if self._exact.can_advance(direction, self.obstacles):
                self._exact = self._exact.advance(direction)
            else:
                self.log.warning("Turn %d: exact position %s cannot move %s; back to tracking",
                                 self.turn, self._exact.head, direction)
                self._drop_exact()

        self.last_direction = direction
        self._forward(event)

    def _on_silence(self, event: dict):
        self.trajectory = RelativeTrajectory(self.width, self.height)
        if self._exact is not None:
            self.log.info("Turn %d: silence, exact position %s lost", self.turn, self._exact.head)
            self._drop_exact()
        self._forward(dict(event, last_direction=self.last_direction))
        self.last_direction = None

    def _on_surface(self, event: dict):
        self.trajectory = RelativeTrajectory(self.width, self.height)
        if self._exact is not None:
            self._exact = Occupancy.start(self.width, self.height, self._exact.head)
        self.last_direction = None
        self._forward(event)

    def _drop_exact(self):
        self._exact = None
        self.state = TRACKING

    # ── Hypotheses ───────────────────────────────────────────────────────────

    def _enumerate(self) -> List[Occupancy]:
        return list(possible_placements(
            self.trajectory.track, self.accumulator.mask, self.obstacles))

    def _consistent(self) -> List[Occupancy]:
        """The exact path while its head is allowed, else every placement."""
        if self._exact is not None and not self._exact.head_collides_with(self.accumulator.mask):
            return [self._exact]
        return self._enumerate()

    def _replay_without(self, skip: int):
        """Rebuild this turn's exclusions leaving out one forwarded event."""
        self.accumulator.restore(self._turn_mask)
        for i, event in enumerate(self._forwarded):
            if i != skip:
                self.accumulator.handle(event)

    def _recover(self) -> List[Occupancy]:
        """Widen the evidence step by step until some placement fits again."""
        restrictive = [i for i, event in enumerate(self._forwarded)
                       if event.get("type") in RESTRICTIVE_EVENTS]
        for skip in reversed(restrictive):
            self._replay_without(skip)
            candidates = self._consistent()
            if candidates:
                self.log.warning("Turn %d: no path fits the evidence; ignoring %r",
                                 self.turn, self._forwarded[skip])
                return candidates

        self.log.warning("Turn %d: no path fits the evidence; dropping head exclusions",
                         self.turn)
        self.accumulator.reset()
        candidates = self._consistent()
        if not candidates:
            self.log.warning("Turn %d: path shape does not fit the map; restarting it",
                             self.turn)
            self.trajectory = RelativeTrajectory(self.width, self.height)
            candidates = self._enumerate()
        return candidates

    def _recompute(self):
        candidates = self._consistent() or self._recover()

        if self._exact is not None and candidates != [self._exact]:
            self.log.warning("Turn %d: exact position %s was ruled out; back to tracking",
                             self.turn, self._exact.head)
            self._drop_exact()

        self._candidates = candidates
        if len(candidates) == 1:
            if self._exact is None:
                self.log.info("Turn %d: opponent located at %s", self.turn, candidates[0].head)
            self._exact = candidates[0]
            self.state = COLLAPSED
        else:
            self.state = TRACKING

    # ── Queries ──────────────────────────────────────────────────────────────

    def possible_positions(self) -> list:
        return [track.head for track in self._candidates]

    def possible_tracks(self) -> list:
        return list(self._candidates)

    def is_exact(self) -> bool:
        return len(self._candidates) == 1

    def debug_dump(self) -> str:
        lines = [
            f"State: {self.state}, turn {self.turn}, {len(self._candidates)} candidate(s)",
            "Path:",
            str(self.trajectory),
            self.trajectory.track.debug(),
            "Excluded heads:",
            str(self.accumulator.mask),
        ]
        if self._exact is not None:
            lines += ["Exact path:", str(self._exact), self._exact.debug()]
        return "\n".join(lines)
