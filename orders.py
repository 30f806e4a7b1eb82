"""
Sonar Radio – Opponent order and turn-line parsing.

Opponent orders arrive as one pipe-delimited line, e.g.

    MOVE N TORPEDO|TORPEDO 3 5|SURFACE 7|SILENCE|SONAR 4|MINE E|NA

Each order becomes at most one event dict tagged by "type":

    {"type": "move",    "direction": "N"}
    {"type": "silence"}
    {"type": "surface", "sector": 7}
    {"type": "torpedo", "target": (3, 5)}

Orders that carry no position information (MINE, SONAR, TRIGGER, MSG, NA) and
malformed or unknown orders produce nothing; parsing never raises.
"""

from __future__ import annotations

import logging
from typing import Optional

from maps import DIRECTIONS

log = logging.getLogger(__name__)

# Orders we understand but that say nothing about the opponent's position.
SILENT_ORDERS = {"NA", "MINE", "SONAR", "TRIGGER", "MSG"}

TURN_FIELDS = [
    "x", "y", "my_life", "opp_life",
    "torpedo_cooldown", "sonar_cooldown", "silence_cooldown", "mine_cooldown",
]


def _to_int(word) -> Optional[int]:
    try:
        return int(word)
    except (TypeError, ValueError):
        return None


def parse_order(order: str) -> Optional[dict]:
    """Turn a single order into an event, or None."""
    words = order.split()
    if not words:
        return None
    name, args = words[0].upper(), words[1:]

    if name == "MOVE":
        if args and args[0].upper() in DIRECTIONS:
            return {"type": "move", "direction": args[0].upper()}
    elif name == "SILENCE":
        return {"type": "silence"}
    elif name == "SURFACE":
        sector = _to_int(args[0]) if args else None
        if sector is not None:
            return {"type": "surface", "sector": sector}
    elif name == "TORPEDO":
        if len(args) >= 2:
            x, y = _to_int(args[0]), _to_int(args[1])
            if x is not None and y is not None:
                return {"type": "torpedo", "target": (x, y)}
    elif name in SILENT_ORDERS:
        return None

    log.debug("Skipping unrecognised order %r", order)
    return None


def parse_orders(text: str) -> list:
    """Parse a pipe-delimited order line into a list of events."""
    events = []
    for order in (text or "").split("|"):
        event = parse_order(order.strip())
        if event is not None:
            events.append(event)
    return events


def has_surfaced(text: str) -> bool:
    return any(
        order.split() and order.split()[0].upper() == "SURFACE"
        for order in (text or "").split("|")
    )


# ── Turn input ────────────────────────────────────────────────────────────────

def parse_header(line: str) -> dict:
    """First input line: ``width height myId``."""
    values = [int(v) for v in line.split()]
    if len(values) != 3:
        raise ValueError(f"Expected 'width height myId', got {line!r}")
    width, height, my_id = values
    return {"width": width, "height": height, "my_id": my_id}


def parse_turn(line: str) -> dict:
    """Per-turn status line: ``x y myLife oppLife torpedoCd sonarCd silenceCd mineCd``."""
    values = [int(v) for v in line.split()]
    if len(values) != len(TURN_FIELDS):
        raise ValueError(f"Expected {len(TURN_FIELDS)} integers, got {line!r}")
    return dict(zip(TURN_FIELDS, values))
