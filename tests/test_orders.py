"""
Unit tests for opponent order and turn-line parsing.

Run:  python -m pytest tests/test_orders.py -v
"""
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest

from orders import has_surfaced, parse_header, parse_order, parse_orders, parse_turn

# ────────────────────────────────────────────────────────────────────────────
# 1. Single orders
# ────────────────────────────────────────────────────────────────────────────

def test_move_order():
    assert parse_order("MOVE N TORPEDO") == {"type": "move", "direction": "N"}
    assert parse_order("move w") == {"type": "move", "direction": "W"}


def test_silence_surface_torpedo():
    assert parse_order("SILENCE") == {"type": "silence"}
    assert parse_order("SILENCE E 3") == {"type": "silence"}
    assert parse_order("SURFACE 7") == {"type": "surface", "sector": 7}
    assert parse_order("TORPEDO 3 5") == {"type": "torpedo", "target": (3, 5)}


def test_orders_without_position_information():
    for order in ["NA", "MINE E", "SONAR 4", "TRIGGER 1 2", "MSG hello", ""]:
        assert parse_order(order) is None


def test_malformed_orders_are_skipped():
    for order in ["MOVE", "MOVE Q", "SURFACE", "SURFACE x", "TORPEDO 3", "TORPEDO a b", "DANCE"]:
        assert parse_order(order) is None


# ────────────────────────────────────────────────────────────────────────────
# 2. Order lines
# ────────────────────────────────────────────────────────────────────────────

def test_parse_order_line_keeps_order():
    events = parse_orders("MOVE N TORPEDO|TORPEDO 3 5|SURFACE 7|SILENCE|SONAR 4|MINE E|NA")
    assert [e["type"] for e in events] == ["move", "torpedo", "surface", "silence"]


def test_parse_empty_order_line():
    assert parse_orders("") == []
    assert parse_orders(None) == []
    assert parse_orders("NA") == []


def test_has_surfaced():
    assert has_surfaced("MOVE N|SURFACE 3")
    assert not has_surfaced("MOVE N|SONAR 3")
    assert not has_surfaced("")


# ────────────────────────────────────────────────────────────────────────────
# 3. Turn input
# ────────────────────────────────────────────────────────────────────────────

def test_parse_header():
    assert parse_header("15 15 1") == {"width": 15, "height": 15, "my_id": 1}
    with pytest.raises(ValueError):
        parse_header("15 15")


def test_parse_turn():
    turn = parse_turn("3 4 6 5 0 4 6 3")
    assert turn["x"] == 3 and turn["y"] == 4
    assert turn["opp_life"] == 5
    assert turn["mine_cooldown"] == 3
    with pytest.raises(ValueError):
        parse_turn("3 4 6")
    with pytest.raises(ValueError):
        parse_turn("a b c d e f g h")
