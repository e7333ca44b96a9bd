"""
Cricket score and overs arithmetic.

Supports score strings like:
  "156/7 (19.4)"  → 156 runs, 7 wickets, 19 overs 4 balls
  "156 (20)"      → 156 runs, 0 wickets, 20 overs
  "156/7"         → overs missing, counted as 0

Overs use cricket notation: the digit after the dot is balls (0-5), not a
decimal fraction. All arithmetic goes through integer balls.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Union

BALLS_PER_OVER = 6
ALL_OUT_WICKETS = 10

_SCORE_RE = re.compile(r"^\s*(\d+)(?:\s*/\s*(\d+))?\s*(?:\(\s*([\d.]+)\s*\))?\s*$")


@dataclass(frozen=True)
class ParsedScore:
    runs: int
    wickets: int
    balls: int

    @property
    def overs(self) -> str:
        return balls_to_overs(self.balls)

    @property
    def is_all_out(self) -> bool:
        return self.wickets >= ALL_OUT_WICKETS


def parse_score(raw: Optional[str]) -> Optional[ParsedScore]:
    """Parse a score string into runs/wickets/balls.

    Returns None if the score cannot be parsed.
    """
    if raw is None or not str(raw).strip():
        return None
    match = _SCORE_RE.match(str(raw))
    if not match:
        return None
    runs_str, wickets_str, overs_str = match.groups()
    try:
        balls = overs_to_balls(overs_str) if overs_str else 0
    except ValueError:
        return None
    return ParsedScore(runs=int(runs_str), wickets=int(wickets_str or 0), balls=balls)


def overs_to_balls(overs: Union[str, int, float, None]) -> int:
    """
    Convert cricket overs notation to balls.

    Examples:
        "19.4" -> 118
        "20"   -> 120
        "0.5"  -> 5
    """
    if overs is None:
        return 0
    text = str(overs).strip()
    if not text:
        return 0
    whole, _, part = text.partition(".")
    if not whole.isdigit() and whole != "":
        raise ValueError(f"Invalid overs value: {overs!r}")
    full_overs = int(whole or 0)
    balls = 0
    if part:
        if not part.isdigit() or len(part) != 1:
            raise ValueError(f"Invalid overs value: {overs!r}")
        balls = int(part)
        if balls >= BALLS_PER_OVER:
            raise ValueError(f"Balls part must be 0-5 in overs notation, got {overs!r}")
    return full_overs * BALLS_PER_OVER + balls


def balls_to_overs(balls: int) -> str:
    """118 -> "19.4", 120 -> "20.0"."""
    if balls < 0:
        raise ValueError("balls cannot be negative")
    return f"{balls // BALLS_PER_OVER}.{balls % BALLS_PER_OVER}"


def add_overs(a: Union[str, int, None], b: Union[str, int, None]) -> str:
    """Sum two overs values in notation: "19.4" + "0.2" -> "20.0"."""
    return balls_to_overs(overs_to_balls(a) + overs_to_balls(b))


def decimal_overs(balls: int) -> float:
    """Overs as a true decimal for rate calculations: 112 balls -> 18.666..."""
    return balls / BALLS_PER_OVER
