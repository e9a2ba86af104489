"""Philosopher states, millisecond clock helpers and the log line format."""

from __future__ import annotations

import time
from enum import Enum


class State(Enum):
    """What a philosopher is doing, in the order used by the log."""

    THINKING = 0
    EATING = 1
    SLEEPING = 2
    TOOK_FORK = 3
    DIED = 4
    NEW_TURN = 5

    def description(self) -> str:
        """The words printed in the log for this state."""
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    State.THINKING: "is thinking",
    State.EATING: "is eating",
    State.SLEEPING: "is sleeping",
    State.TOOK_FORK: "has taken a fork",
    State.DIED: "died",
    State.NEW_TURN: "new turn !",
}


def now_ms() -> int:
    """Wall-clock time in whole milliseconds."""
    return time.time_ns() // 1_000_000


def sleep_ms(ms: int) -> None:
    """Wait at least ``ms`` milliseconds, checking the clock every millisecond."""
    start = now_ms()
    while now_ms() - start < ms:
        time.sleep(0.001)


def format_line(elapsed_ms: int, philo_id: int, state: State) -> str:
    """One log line (without newline): elapsed time right-aligned in 14 columns."""
    return f"{elapsed_ms:14d} {philo_id} {state.description()}"