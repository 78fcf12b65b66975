"""Score-relative-to-par helpers for round badges and scorecard cells."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from models.round import HOLES_PER_ROUND, Round

SCORE_NAMES = {
    -3: "albatross",
    -2: "eagle",
    -1: "birdie",
    0: "par",
    1: "bogey",
    2: "double bogey",
    3: "triple bogey",
    4: "quadruple bogey",
}


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (Python's round() is banker's rounding)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def par_for_holes_played(round_: Round) -> Optional[int]:
    """Par covering only the holes the player actually recorded.

    Falls back from played-hole pars, to a nine-hole half, to the full par.
    Returns None when the round carries neither ``par`` nor ``course_pars``.
    """
    if not round_.par and not round_.course_pars:
        return None
    pars = round_.course_pars
    full_par = round_.par or sum(pars)

    played = round_.played_hole_indices()
    if played:
        if pars:
            return sum(pars[i] for i in played)
        return round_half_up(full_par / HOLES_PER_ROUND * len(played))

    front, back = round_.front9, round_.back9
    if front is not None and back is None:
        return sum(pars[:9]) if pars else round_half_up(full_par / 2)
    if back is not None and front is None:
        return sum(pars[9:18]) if pars else round_half_up(full_par / 2)
    return full_par


def format_vs_par(diff: int) -> str:
    """0 -> 'E', positive -> '+N', negative -> '-N'."""
    if diff == 0:
        return "E"
    if diff > 0:
        return f"+{diff}"
    return str(diff)


def vs_par_diff(round_: Round) -> Optional[int]:
    par = par_for_holes_played(round_)
    if par is None or round_.total_score is None:
        return None
    return round_.total_score - par


def calculate_vs_par(round_: Round) -> Optional[str]:
    """Signed vs-par badge text for a round, or None when there is not enough data."""
    diff = vs_par_diff(round_)
    return None if diff is None else format_vs_par(diff)


def vs_par_tone(vs_par: Optional[str]) -> Optional[str]:
    """Classify a badge as 'under', 'even' or 'over' for colouring."""
    if not vs_par:
        return None
    if vs_par == "E":
        return "even"
    try:
        value = int(vs_par)
    except ValueError:
        return None
    if value < 0:
        return "under"
    return "over" if value > 0 else "even"


def score_type(strokes: Optional[int], par: Optional[int]) -> Optional[str]:
    """Name for a single hole score (eagle, birdie, par, bogey, etc.)."""
    if strokes is None or not par:
        return None
    relative = strokes - par
    if relative <= -3:
        return "albatross"
    if relative >= 5:
        return "quintuple+"
    return SCORE_NAMES[relative]
