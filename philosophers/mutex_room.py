"""The threaded room where every fork and the printer sit behind their own mutex."""

from __future__ import annotations

import sys
import threading
import time
from collections.abc import Callable, Sequence
from typing import Any, TextIO

from philosophers.args import Settings, UsageError, parse_args
from philosophers.base import Philosopher
from philosophers.states import now_ms, sleep_ms

OPEN = 0
CLOSED = 1
FREE = 0

_MONITOR_ROUND_PAUSE_S = 0.0005


class Guarded:
    """A small value protected by a mutex, read and changed through ``access``."""

    def __init__(self, data: int = 0) -> None:
        self.data = data
        self._lock = threading.Lock()

    def access(
        self,
        check: Callable[[Guarded], Any] | None,
        apply: Callable[[Guarded], Any],
    ) -> Any:
        """Under the lock, run ``check``; if it gives a false value, run ``apply``.

        A ``check`` of None always lets ``apply`` run. Returns the result of
        ``check`` when it is true, else that of ``apply``.
        """
        with self._lock:
            result = check(self) if check is not None else 0
            if not result:
                result = apply(self)
            return result


def _read(guarded: Guarded) -> int:
    return guarded.data


def _close(guarded: Guarded) -> int:
    guarded.data = CLOSED
    return 0


def _free(guarded: Guarded) -> int:
    guarded.data = FREE
    return 0


class ForkPhilosopher(Philosopher):
    """A philosopher owning one fork and borrowing the next one from a neighbour."""

    pause_s = 0.00005

    def __init__(
        self,
        philo_id: int,
        settings: Settings,
        room: Guarded,
        *,
        out: TextIO | None = None,
        birth: int | None = None,
    ) -> None:
        super().__init__(philo_id, settings, out=out, birth=birth)
        self.room = room
        self.fork = Guarded(FREE)
        self.neighbour: ForkPhilosopher | None = None

    def _take(self, fork: Guarded) -> bool:
        def take(guarded: Guarded) -> int:
            guarded.data = self.id
            return 0

        return not fork.access(_read, take)

    def take_left_fork(self) -> bool:
        """Take this philosopher's own fork if nobody holds it."""
        return self._take(self.fork)

    def take_right_fork(self) -> bool:
        """Take the neighbour's fork if nobody holds it."""
        assert self.neighbour is not None
        return self._take(self.neighbour.fork)

    def eat(self) -> bool:
        """Eat for the configured time, then free both forks."""
        assert self.neighbour is not None
        sleep_ms(self.settings.time_to_eat)
        self.fork.access(None, _free)
        self.neighbour.fork.access(None, _free)
        return True

    def _publish(self, state, line: str) -> bool:
        def log(guarded: Guarded) -> int:
            self._log(state, line)
            return 0

        return not self.room.access(_read, log)

    def _close_room(self) -> None:
        # Called while the room's lock is already held.
        self.room.data = CLOSED

    def _room_closed(self) -> bool:
        return self.room.access(None, _read) == CLOSED


class MutexTable:
    """A circle of threaded philosophers and the monitor that counts their meals."""

    def __init__(self, settings: Settings, out: TextIO | None = None) -> None:
        self.settings = settings
        self.out = out if out is not None else sys.stdout
        self.room = Guarded(OPEN)
        self.birth = now_ms()
        self.philosophers = [
            ForkPhilosopher(i + 1, settings, self.room, out=self.out, birth=self.birth)
            for i in range(settings.philosophers)
        ]
        for philo, neighbour in zip(
            self.philosophers, self.philosophers[1:] + self.philosophers[:1]
        ):
            philo.neighbour = neighbour
        self._threads: list[threading.Thread] = []

    def launch(self) -> None:
        """Stamp the birth time and start one thread per philosopher."""
        self.birth = now_ms()
        for philo in self.philosophers:
            philo.birth = philo.state_time = philo.last_meal = self.birth
        for philo in self.philosophers:
            thread = threading.Thread(target=philo.run, name=f"philosopher-{philo.id}")
            try:
                thread.start()
            except RuntimeError as err:
                self.room.access(None, _close)
                self.gather()
                raise RuntimeError("philo pthread creation error") from err
            self._threads.append(thread)

    def _goal_achieved(self, philo: ForkPhilosopher, goaled: int) -> tuple[bool, int]:
        if self.room.access(_read, _read):
            return True, goaled
        if self.settings.has_meal_goal and philo.meals >= self.settings.max_meals:
            goaled += 1
        if goaled == self.settings.philosophers:
            self.room.access(None, _close)
            return True, goaled
        return False, goaled

    def monitor(self) -> None:
        """Watch the table until the room closes or everyone has eaten enough."""
        while True:
            goaled = 0
            for philo in self.philosophers:
                done, goaled = self._goal_achieved(philo, goaled)
                if done:
                    return
            time.sleep(_MONITOR_ROUND_PAUSE_S)

    def gather(self) -> None:
        """Wait for every started philosopher thread to finish."""
        for thread in self._threads:
            thread.join()


def simulate(settings: Settings, out: TextIO | None = None) -> MutexTable:
    """Run one whole simulation and return the finished table."""
    table = MutexTable(settings, out)
    table.launch()
    table.monitor()
    table.gather()
    return table


def main(argv: Sequence[str] | None = None) -> int:
    """Command entry point; problems are reported on standard output."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        settings = parse_args(args)
    except UsageError as err:
        print(err)
        return 0
    try:
        simulate(settings)
    except RuntimeError as err:
        print(err)
    return 0