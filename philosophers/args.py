"""Command-line argument validation for the dining philosophers simulations."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

MIN_ARGS = 4
MAX_ARGS = 5
MIN_PHILOSOPHERS = 2
MAX_PHILOSOPHERS = 200
UNLIMITED_MEALS = -1

USAGE = "usage: nb_of_philos tt_die tt_eat tt_sleep [nb_of_meals]"

_SPACES = frozenset("\t\n\v\f\r ")
_DIGITS = frozenset("0123456789")


class UsageError(ValueError):
    """Raised when the command-line arguments are not acceptable."""

    def __init__(self, message: str = USAGE) -> None:
        super().__init__(message)


@dataclass(frozen=True)
class Settings:
    """Parameters of one simulation; times are in milliseconds."""

    philosophers: int
    time_to_die: int
    time_to_eat: int
    time_to_sleep: int
    max_meals: int = UNLIMITED_MEALS

    @property
    def has_meal_goal(self) -> bool:
        """True when the simulation stops after every philosopher has eaten enough."""
        return self.max_meals > 0


def parse_int(text: str) -> int:
    """Read a leading decimal integer the lenient way: skip blanks, one sign, digits.

    Anything after the digits is ignored, and text without digits reads as 0.
    """
    rest = text.lstrip("".join(_SPACES))
    sign = 1
    if rest[:1] == "-":
        sign = -1
    if rest[:1] in ("+", "-") and rest:
        rest = rest[1:]
    value = 0
    for char in rest:
        if char not in _DIGITS:
            break
        value = value * 10 + int(char)
    return sign * value


def parse_args(argv: Sequence[str]) -> Settings:
    """Validate the arguments (program name excluded) and build the settings."""
    if not MIN_ARGS <= len(argv) <= MAX_ARGS:
        raise UsageError()
    if any(not set(arg) <= _DIGITS for arg in argv):
        raise UsageError()
    philosophers, die, eat, sleep, *meals = (parse_int(arg) for arg in argv)
    settings = Settings(
        philosophers=philosophers,
        time_to_die=die,
        time_to_eat=eat,
        time_to_sleep=sleep,
        max_meals=meals[0] if meals else UNLIMITED_MEALS,
    )
    if not MIN_PHILOSOPHERS <= settings.philosophers <= MAX_PHILOSOPHERS:
        raise UsageError()
    return settings