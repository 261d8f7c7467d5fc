"""Hands and outcomes for rock-paper-scissors."""

from enum import Enum, IntEnum
from typing import Dict


class Hand(IntEnum):
    """A hand, numbered the way the player types it."""

    ROCK = 1
    PAPER = 2
    SCISSORS = 3

    @property
    def key(self) -> str:
        return self.name.lower()

    @property
    def display_name(self) -> str:
        return HAND_DISPLAY_NAMES[self.key]

    @classmethod
    def from_key(cls, key: str) -> "Hand":
        return cls[key.upper()]


class Result(str, Enum):
    """Outcome of a round, always from the agent's point of view."""

    WIN = "win"
    LOSE = "lose"
    DRAW = "draw"


HAND_KEYS = tuple(hand.key for hand in Hand)

HAND_DISPLAY_NAMES: Dict[str, str] = {
    "rock": "グー",
    "paper": "パー",
    "scissors": "チョキ",
}

# What each hand defeats
BEATS: Dict[Hand, Hand] = {
    Hand.ROCK: Hand.SCISSORS,
    Hand.SCISSORS: Hand.PAPER,
    Hand.PAPER: Hand.ROCK,
}
