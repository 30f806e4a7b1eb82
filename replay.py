"""
Sonar Radio – Replay a match transcript through the radio operator.

Input is the contest's line protocol as seen by one player:

    <width> <height> <myId>
    <height map rows, '.' water, 'x' island>
    then, each turn:
    <x> <y> <myLife> <oppLife> <torpedoCd> <sonarCd> <silenceCd> <mineCd>
    <sonar result>
    <opponent orders>

One line is printed per turn with the opponent's possible positions.
A line containing "exit" stops the replay.

Run:  python replay.py transcript.txt
  or: python replay.py < transcript.txt
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from bots import RadioOperatorBot
from maps import scan_map
from orders import parse_header, parse_turn

log = logging.getLogger(__name__)


def format_report(turn: int, report: dict) -> str:
    cells = " ".join(f"({x},{y})" for x, y in report["positions"])
    exact = " exact" if report["exact"] else ""
    return f"turn {turn}: {report['count']} candidate(s){exact} {cells}".rstrip()


def run(lines, out=None, logger: Optional[logging.Logger] = None) -> RadioOperatorBot:
    """Replay transcript lines, writing one report line per turn to out."""
    out = out or sys.stdout
    it = (line.rstrip("\n") for line in lines)

    header = parse_header(next(it))
    rows = [next(it) for _ in range(header["height"])]
    grid = scan_map(rows)
    if (grid["width"], grid["height"]) != (header["width"], header["height"]):
        raise ValueError(
            f"Header says {header['width']}x{header['height']}, "
            f"map is {grid['width']}x{grid['height']}")
    bot = RadioOperatorBot(grid, logger=logger)

    turn = 0
    for status in it:
        if "exit" in status.split():
            log.info("Exit requested after %d turn(s)", turn)
            break
        if not status.strip():
            continue
        props = parse_turn(status)
        next(it, "")                    # sonar result, not used for tracking
        orders = next(it, "NA").strip()
        turn += 1
        report = bot.process_turn(orders, props["opp_life"])
        out.write(format_report(turn, report) + "\n")
    return bot


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Replay opponent orders and print its possible positions.")
    parser.add_argument("transcript", nargs="?", type=argparse.FileType("r"), default=sys.stdin,
                        help="transcript file (default: stdin)")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="diagnostics written to stderr")
    args = parser.parse_args(argv)

    logging.basicConfig(stream=sys.stderr, level=args.log_level,
                        format="%(levelname)s %(name)s: %(message)s")
    try:
        run(args.transcript)
    except (StopIteration, ValueError) as e:
        log.error("Bad transcript: %s", str(e) or "unexpected end of input")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
