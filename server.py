"""
Sonar Radio – Flask + SocketIO server for a single match.
Run:  python server.py [port]

Environment:
  SONAR_PORT        port when none is given on the command line (5000)
  SONAR_ASYNC_MODE  Flask-SocketIO async mode (threading)
  SONAR_LOG_LEVEL   logging level (INFO)
"""

from __future__ import annotations
import logging
import os
import secrets
import threading
from flask import Flask, request, jsonify
from flask_socketio import SocketIO, emit
from bots import RadioOperatorBot
from maps import DEFAULT_SETTINGS, in_bounds, scan_map

log = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = secrets.token_hex(32)
socketio = SocketIO(app, cors_allowed_origins="*",
                    async_mode=os.environ.get("SONAR_ASYNC_MODE", "threading"))

# ── In-memory storage ─────────────────────────────────────────────────────────
# match = {"bot": RadioOperatorBot, "grid": grid dict}; empty before the first
# start. Starting a new match replaces the current one.
# Requests may run on parallel threads; every read or write of match and of
# its bot holds match_lock.
match: dict = {}
match_lock = threading.Lock()

NO_MATCH = "No match in progress"
ATTACK_KINDS = {"torpedo", "mine"}


# ── Helpers ───────────────────────────────────────────────────────────────────

def _start_match(data):
    """Start a match from a map definition. Returns (ok, error_msg, report)."""
    rows = data.get("map")
    if not isinstance(rows, list) or not all(isinstance(r, str) for r in rows):
        return False, "map must be a list of row strings", None
    sector_size = data.get("sector_size")
    if sector_size is None:
        sector_size = DEFAULT_SETTINGS["sector_size"]
    try:
        sector_size = int(sector_size)
    except (TypeError, ValueError):
        return False, "sector_size must be an integer", None
    if sector_size <= 0:
        return False, "sector_size must be positive", None
    try:
        grid = scan_map(rows, sector_size)
    except ValueError as e:
        return False, str(e), None

    bot = RadioOperatorBot(grid)
    with match_lock:
        match.clear()
        match["grid"] = grid
        match["bot"] = bot
        report = bot.report()
    log.info("Match started on a %dx%d map with %d island cell(s)",
             grid["width"], grid["height"], len(grid["islands"]))
    return True, None, report


def _record_turn(data):
    """Feed one opponent turn. Returns (ok, error_msg, report)."""
    orders = data.get("orders") or "NA"
    if not isinstance(orders, str):
        return False, "orders must be a string", None
    life = data.get("opponent_life")
    if life is not None:
        try:
            life = int(life)
        except (TypeError, ValueError):
            return False, "opponent_life must be an integer", None
    with match_lock:
        bot = match.get("bot")
        if bot is None:
            return False, NO_MATCH, None
        return True, None, bot.process_turn(orders, life)


def _record_attack(data):
    """Record one of our attacks. Returns (ok, error_msg, pending_attacks)."""
    kind = data.get("kind")
    if kind not in ATTACK_KINDS:
        return False, f"Unknown attack kind: {kind}", None
    try:
        x, y = int(data.get("x")), int(data.get("y"))
    except (TypeError, ValueError):
        return False, "x and y must be integers", None

    with match_lock:
        bot = match.get("bot")
        if bot is None:
            return False, NO_MATCH, None
        if not in_bounds(match["grid"], x, y):
            return False, "Attack target outside the map", None
        if kind == "torpedo":
            bot.note_torpedo((x, y))
        else:
            bot.note_trigger((x, y))
        return True, None, list(bot.pending_attacks)


def _current(read):
    """Apply read to the current bot under the lock; None without a match."""
    with match_lock:
        bot = match.get("bot")
        return None if bot is None else read(bot)


def _broadcast_report(report):
    socketio.emit("position_report", report)


# ── HTTP Routes ───────────────────────────────────────────────────────────────

@app.route("/api/match", methods=["POST"])
def start_match():
    ok, msg, report = _start_match(request.get_json(silent=True) or {})
    if not ok:
        return jsonify({"error": msg}), 400
    _broadcast_report(report)
    return jsonify(report)


@app.route("/api/turn", methods=["POST"])
def opponent_turn():
    if "bot" not in match:
        return jsonify({"error": NO_MATCH}), 409
    ok, msg, report = _record_turn(request.get_json(silent=True) or {})
    if not ok:
        return jsonify({"error": msg}), 400
    _broadcast_report(report)
    return jsonify(report)


@app.route("/api/attack", methods=["POST"])
def note_attack():
    if "bot" not in match:
        return jsonify({"error": NO_MATCH}), 409
    ok, msg, pending = _record_attack(request.get_json(silent=True) or {})
    if not ok:
        return jsonify({"error": msg}), 400
    return jsonify({"pending_attacks": pending})


@app.route("/api/positions")
def positions():
    report = _current(lambda bot: bot.report())
    if report is None:
        return jsonify({"error": NO_MATCH}), 409
    return jsonify(report)


@app.route("/api/debug")
def debug_dump():
    dump = _current(lambda bot: bot.tracker.debug_dump())
    if dump is None:
        return jsonify({"error": NO_MATCH}), 409
    return jsonify({"dump": dump})


# ── Socket Events ─────────────────────────────────────────────────────────────

@socketio.on("start_match")
def on_start_match(data):
    ok, msg, report = _start_match(data or {})
    if not ok:
        return emit("error", {"msg": msg})
    _broadcast_report(report)


@socketio.on("opponent_turn")
def on_opponent_turn(data):
    ok, msg, report = _record_turn(data or {})
    if not ok:
        return emit("error", {"msg": msg})
    _broadcast_report(report)


@socketio.on("note_attack")
def on_note_attack(data):
    ok, msg, pending = _record_attack(data or {})
    if not ok:
        return emit("error", {"msg": msg})
    emit("attack_noted", {"pending_attacks": pending})


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import sys
    logging.basicConfig(level=os.environ.get("SONAR_LOG_LEVEL", "INFO"),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    port = int(sys.argv[1]) if len(sys.argv) > 1 else int(os.environ.get("SONAR_PORT", 5000))
    print(f"Starting Sonar Radio server on http://localhost:{port}")
    socketio.run(app, host="0.0.0.0", port=port, allow_unsafe_werkzeug=True)
