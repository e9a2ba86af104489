"""The threaded room where forks are a shared pool guarded by a counting semaphore."""

from __future__ import annotations

import sys
import threading
import time
from collections.abc import Sequence
from typing import TextIO

from philosophers.args import Settings, UsageError, parse_args
from philosophers.base import Philosopher
from philosophers.states import now_ms

_MONITOR_ROUND_PAUSE_S = 0.0005


class SemaphorePhilosopher(Philosopher):
    """A philosopher drawing forks from the table's pool.

    The room status is read under the printer semaphore.
    """

    def __init__(
        self,
        philo_id: int,
        settings: Settings,
        table: SemaphoreTable,
        *,
        out: TextIO | None = None,
        birth: int | None = None,
    ) -> None:
        super().__init__(
            philo_id,
            settings,
            forks=table.forks,
            printer=table.printer,
            closed=table.closed_flag,
            out=out,
            birth=birth,
        )
        self.neighbour: SemaphorePhilosopher | None = None

    def _room_closed(self) -> bool:
        with self.printer:
            return self.closed.is_set()


class SemaphoreTable:
    """A circle of threaded philosophers sharing one fork pool and one printer."""

    def __init__(self, settings: Settings, out: TextIO | None = None) -> None:
        self.settings = settings
        self.out = out if out is not None else sys.stdout
        self.forks = threading.Semaphore(settings.philosophers)
        self.printer = threading.Semaphore(1)
        self.closed_flag = threading.Event()
        self.birth = now_ms()
        self.philosophers = [
            SemaphorePhilosopher(i + 1, settings, self, out=self.out, birth=self.birth)
            for i in range(settings.philosophers)
        ]
        for philo, neighbour in zip(
            self.philosophers, self.philosophers[1:] + self.philosophers[:1]
        ):
            philo.neighbour = neighbour
        self._threads: list[threading.Thread] = []

    def close(self) -> None:
        """Mark the room closed, under the printer semaphore."""
        with self.printer:
            self.closed_flag.set()

    def is_closed(self) -> bool:
        """Whether the room has been closed, read under the printer semaphore."""
        with self.printer:
            return self.closed_flag.is_set()

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
                self.close()
                self.gather()
                raise RuntimeError("philo pthread creation error") from err
            self._threads.append(thread)

    def _goal_achieved(self, philo: SemaphorePhilosopher, goaled: int) -> tuple[bool, int]:
        if self.is_closed():
            return True, goaled
        if self.settings.has_meal_goal and philo.meals >= self.settings.max_meals:
            goaled += 1
        if goaled == self.settings.philosophers:
            self.close()
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
        if self.closed_flag.is_set():
            # Unblock any philosopher still waiting for a fork from the pool.
            for _ in self.philosophers:
                self.forks.release()
        for thread in self._threads:
            thread.join()


def simulate(settings: Settings, out: TextIO | None = None) -> SemaphoreTable:
    """Run one whole simulation and return the finished table."""
    table = SemaphoreTable(settings, out)
    table.launch()
    table.monitor()
    table.gather()
    return table


def main(argv: Sequence[str] | None = None) -> int:
    """Command entry point; returns 1 when the arguments or the threads fail."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        settings = parse_args(args)
    except UsageError as err:
        print(err)
        return 1
    try:
        simulate(settings)
    except RuntimeError as err:
        print(err)
        return 1
    return 0