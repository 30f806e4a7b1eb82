"""
Unit tests for the radio operator bot.

Run:  python -m pytest tests/test_bots.py -v
"""
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from bots import RadioOperatorBot
from maps import make_grid, scan_map

SMALL_MAP = [
    ".............xx",
    ".............xx",
    "......xx.......",
    "......xx.......",
]


def _locate(bot, target):
    """Pin the opponent on target with a direct torpedo hit."""
    bot.process_turn("NA", 6)
    bot.note_torpedo(target)
    return bot.process_turn("NA", 4)


# ────────────────────────────────────────────────────────────────────────────
# 1. Reports
# ────────────────────────────────────────────────────────────────────────────

def test_initial_report():
    bot = RadioOperatorBot(make_grid(15, 15))
    report = bot.report()
    assert report["turn"] == 0
    assert report["count"] == 225
    assert report["certainty"] == "none"
    assert report["best_guess"] == (7, 7)
    assert report["sectors"] == list(range(1, 10))
    assert report["summary"] == "Tracking 225 positions across 9 sector(s)"


def test_move_turn_report():
    bot = RadioOperatorBot(make_grid(15, 15))
    report = bot.process_turn("MOVE N", 6)
    assert report["turn"] == 1
    assert report["count"] == 210
    assert not report["exact"]
    assert report["positions"] == sorted(report["positions"])


def test_direct_hit_locates_opponent():
    bot = RadioOperatorBot(make_grid(15, 15))
    report = _locate(bot, (7, 7))
    assert report["positions"] == [(7, 7)]
    assert report["exact"]
    assert report["certainty"] == "exact"
    assert report["summary"] == "Enemy located at (7, 7) in sector 5"
    assert bot.pending_attacks == []
    assert bot.opponent_life == 4


def test_surfacing_damage_is_separated_from_ours():
    bot = RadioOperatorBot(make_grid(15, 15))
    bot.process_turn("NA", 6)
    bot.note_torpedo((7, 7))
    report = bot.process_turn("SURFACE 5", 4)
    assert report["count"] == 8
    assert (7, 7) not in report["positions"]
    assert report["certainty"] == "medium"


def test_first_turn_life_is_not_a_change():
    bot = RadioOperatorBot(make_grid(15, 15))
    bot.note_trigger((7, 7))
    report = bot.process_turn("NA", 3)
    assert report["count"] == 225


def test_missed_attacks_are_forgotten():
    bot = RadioOperatorBot(make_grid(15, 15))
    bot.process_turn("NA", 6)
    bot.note_torpedo((7, 7))
    bot.process_turn("NA", 6)
    assert bot.pending_attacks == []
    assert bot.report()["count"] == 225


def test_silence_summary_lists_sectors():
    bot = RadioOperatorBot(make_grid(15, 15))
    _locate(bot, (4, 4))
    report = bot.process_turn("SILENCE", 4)
    assert report["count"] == 17
    assert report["certainty"] == "medium"
    assert report["summary"].startswith("~17 positions")


# ────────────────────────────────────────────────────────────────────────────
# 2. Torpedo targeting
# ────────────────────────────────────────────────────────────────────────────

def test_no_target_until_exact():
    bot = RadioOperatorBot(scan_map(SMALL_MAP))
    assert bot.choose_torpedo_target((0, 0)) is None


def test_target_enemy_cell_in_range():
    bot = RadioOperatorBot(scan_map(SMALL_MAP))
    _locate(bot, (3, 1))
    assert bot.choose_torpedo_target((0, 0)) == (3, 1)


def test_target_ring_when_enemy_out_of_range():
    bot = RadioOperatorBot(scan_map(SMALL_MAP))
    _locate(bot, (5, 0))
    assert bot.choose_torpedo_target((0, 0)) == (4, 0)


def test_never_target_own_blast():
    bot = RadioOperatorBot(scan_map(SMALL_MAP))
    _locate(bot, (1, 1))
    target = bot.choose_torpedo_target((0, 0))
    assert target is not None
    assert max(abs(target[0]), abs(target[1])) > 1


def test_no_target_when_far_away():
    bot = RadioOperatorBot(scan_map(SMALL_MAP))
    _locate(bot, (12, 3))
    assert bot.choose_torpedo_target((0, 0)) is None
