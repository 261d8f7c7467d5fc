"""
Game rules for rock-paper-scissors: parsing, drawing and judging hands.
"""

import random
import re
from typing import Callable

from ..core.errors import InputValidationError
from .constants import BEATS, Hand, Result

HandGenerator = Callable[[], Hand]

LEADING_INTEGER_PATTERN = re.compile(r"\s*([+-]?[0-9]+)")


def parse_hand(user_input: str) -> Hand:
    """Parses the leading integer of the input into a Hand.

    Leading whitespace and a sign are allowed and anything after the digits
    is ignored, so '2abc' and '1.5' read as 2 and 1.
    """
    match = LEADING_INTEGER_PATTERN.match(user_input or "")
    if not match:
        raise InputValidationError(f"Not a number: {user_input!r}")
    value = int(match.group(1))
    try:
        return Hand(value)
    except ValueError:
        raise InputValidationError(f"Hand number out of range: {value}") from None


def random_hand() -> Hand:
    """Draws a hand uniformly at random."""
    return random.choice(list(Hand))


def judge_hand(ai_hand: Hand, user_hand: Hand) -> Result:
    """Judges a round from the agent's perspective."""
    if ai_hand == user_hand:
        return Result.DRAW
    if BEATS[ai_hand] == user_hand:
        return Result.WIN
    return Result.LOSE
