"""The life cycle shared by every philosopher: forks, meals, sleep and death."""

from __future__ import annotations

import sys
import threading
import time
from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import TextIO

from philosophers.args import Settings
from philosophers.states import State, format_line, now_ms, sleep_ms

ODD_START_DELAY_S = 0.001


@dataclass(frozen=True)
class _Step:
    """One entry of the routine: an optional preparation, the task and an optional follow-up."""

    state: State
    before: Callable[[], None] | None
    task: Callable[[], bool]
    after: Callable[[], None] | None


class Philosopher:
    """A philosopher sharing a pool of forks, a printer lock and a closing flag.

    Rooms share ``forks``, ``printer`` and ``closed`` between their philosophers
    and may override the fork, reporting and ending hooks.
    """

    #: Pause taken after every step of the routine, in seconds.
    pause_s: float = 0.0

    def __init__(
        self,
        philo_id: int,
        settings: Settings,
        *,
        forks: threading.Semaphore | None = None,
        printer: AbstractContextManager | None = None,
        closed: threading.Event | None = None,
        out: TextIO | None = None,
        birth: int | None = None,
    ) -> None:
        self.id = philo_id
        self.settings = settings
        self.forks = forks if forks is not None else threading.Semaphore(settings.philosophers)
        self.printer = printer if printer is not None else threading.Lock()
        self.closed = closed if closed is not None else threading.Event()
        self.out = out if out is not None else sys.stdout
        self.birth = birth if birth is not None else now_ms()
        self.state = State.THINKING
        self.state_time = self.birth
        self.meals = 0
        self.last_meal = self.birth
        self.neighbour: Philosopher | None = None

    # The routine ---------------------------------------------------------

    def _steps(self) -> tuple[_Step, ...]:
        # Thinking takes no time, so those hooks are left empty.
        return (
            _Step(State.TOOK_FORK, None, self.take_left_fork, self._stamp),
            _Step(State.TOOK_FORK, None, self.take_right_fork, self._stamp),
            _Step(State.EATING, self._start_meal, self.eat, None),
            _Step(State.SLEEPING, self._stamp, self.sleep, None),
            _Step(State.THINKING, self._stamp, self._think_task, None),
        )

    def run(self) -> None:
        """Cycle through forks, eating, sleeping and thinking until the end."""
        steps = self._steps()
        if self.id % 2:
            time.sleep(ODD_START_DELAY_S)
        index = 0
        while True:
            step = steps[index]
            self.state = step.state
            if step.before is not None:
                step.before()
            if step.task():
                if step.after is not None:
                    step.after()
                index = (index + 1) % len(steps)
            if self.pause_s > 0:
                time.sleep(self.pause_s)
            if self.is_the_end():
                break

    def _think_task(self) -> bool:
        return True

    def _stamp(self) -> None:
        self.report(self.state, now_ms())

    def _start_meal(self) -> None:
        when = now_ms()
        self.last_meal = when
        self.report(self.state, when)

    # Actions -------------------------------------------------------------

    def take_left_fork(self) -> bool:
        """Take a fork from the shared pool; True once it is held."""
        self.forks.acquire()
        return True

    def take_right_fork(self) -> bool:
        """Take a second fork from the shared pool; True once it is held."""
        self.forks.acquire()
        return True

    def eat(self) -> bool:
        """Eat for the configured time, then put both forks back."""
        sleep_ms(self.settings.time_to_eat)
        self.forks.release()
        self.forks.release()
        return True

    def sleep(self) -> bool:
        """Sleep for the configured time."""
        sleep_ms(self.settings.time_to_sleep)
        return True

    # Reporting and ending ------------------------------------------------

    def report(self, state: State, when: int) -> bool:
        """Record ``state`` at ``when`` (ms) and print its log line.

        Returns whether the line was printed.
        """
        self.state = state
        self.state_time = when
        return self._publish(state, format_line(when - self.birth, self.id, state))

    def _publish(self, state: State, line: str) -> bool:
        with self.printer:
            self._log(state, line)
        return True

    def _log(self, state: State, line: str) -> None:
        """Apply the side effects of a report and write its line; caller holds the printer."""
        if state is State.DIED:
            self._close_room()
        if state is State.EATING:
            self.meals += 1
        self.out.write(line + "\n")
        self.out.flush()

    def _close_room(self) -> None:
        self.closed.set()

    def _room_closed(self) -> bool:
        return self.closed.is_set()

    def is_dead(self, now: int) -> bool:
        """True when ``now`` is too long after the last meal (or birth, before any meal)."""
        reference = self.last_meal if self.meals else self.birth
        return now - reference >= self.settings.time_to_die

    def _die(self) -> None:
        self.report(State.DIED, now_ms())

    def is_the_end(self) -> bool:
        """True when the room is closed or this philosopher has just died."""
        if self._room_closed():
            return True
        if self.is_dead(now_ms()):
            self._die()
            return True
        return False