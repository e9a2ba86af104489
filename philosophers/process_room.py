"""The room where every philosopher is its own process and forks are a shared semaphore."""

from __future__ import annotations

import multiprocessing
import sys
import threading
from collections.abc import Sequence
from multiprocessing.connection import Connection, wait
from multiprocessing.process import BaseProcess
from typing import Any, TextIO

from philosophers.args import Settings, UsageError, parse_args
from philosophers.base import Philosopher
from philosophers.states import now_ms

EXIT_EATGOAL = 1
EXIT_DEAD = 2


class _PipeWriter:
    """A minimal text sink that collects writes and sends them through a pipe on flush."""

    def __init__(self, conn: Connection) -> None:
        self._conn = conn
        self._pending: list[str] = []

    def write(self, text: str) -> int:
        self._pending.append(text)
        return len(text)

    def flush(self) -> None:
        """Send everything written since the last flush as one message."""
        if self._pending:
            text = "".join(self._pending)
            self._pending.clear()
            self._conn.send(text)


class ProcessPhilosopher(Philosopher):
    """A philosopher living in its own process.

    It ends its routine when it dies or when it has eaten enough, and records why
    in ``exit_code``, which becomes the exit status of its process.
    """

    def __init__(
        self,
        philo_id: int,
        settings: Settings,
        *,
        forks: Any = None,
        printer: Any = None,
        out: TextIO | None = None,
        birth: int | None = None,
    ) -> None:
        super().__init__(
            philo_id, settings, forks=forks, printer=printer, out=out, birth=birth
        )
        self.exit_code: int | None = None
        self.neighbour: ProcessPhilosopher | None = None

    def _goal_achieved(self) -> bool:
        return self.settings.has_meal_goal and self.meals >= self.settings.max_meals

    def is_the_end(self) -> bool:
        """True once this philosopher has died or reached its meal goal."""
        if self.is_dead(now_ms()):
            self._die()
            self.exit_code = EXIT_DEAD
            return True
        if self._goal_achieved():
            self.exit_code = EXIT_EATGOAL
            return True
        return False


def _live(
    philo_id: int,
    settings: Settings,
    birth: int,
    forks: Any,
    printer: Any,
    lines: Connection,
) -> None:
    """Body of a philosopher process: run the routine and exit with its outcome."""
    out = _PipeWriter(lines)
    philo = ProcessPhilosopher(
        philo_id,
        settings,
        forks=forks,
        printer=printer,
        out=out,
        birth=birth,
    )
    philo.run()
    out.flush()
    sys.exit(philo.exit_code)


class ProcessTable:
    """A table of philosopher processes sharing a fork pool and a printer lock."""

    def __init__(self, settings: Settings, out: TextIO | None = None) -> None:
        self.settings = settings
        self.out = out if out is not None else sys.stdout
        self._context = multiprocessing.get_context()
        self.forks = self._context.Semaphore(settings.philosophers)
        self.printer = self._context.Lock()
        self.birth = now_ms()
        self.processes: list[BaseProcess] = []
        self.outcome: int | None = None
        self._reader: Connection | None = None
        self._pump: threading.Thread | None = None

    def launch(self) -> None:
        """Stamp the birth time and start one process per philosopher."""
        self.birth = now_ms()
        reader, writer = self._context.Pipe(duplex=False)
        self._reader = reader
        try:
            for philo_id in range(1, self.settings.philosophers + 1):
                proc = self._context.Process(
                    target=_live,
                    args=(philo_id, self.settings, self.birth, self.forks, self.printer, writer),
                    name=f"philosopher-{philo_id}",
                    daemon=True,
                )
                try:
                    proc.start()
                except OSError as err:
                    self.destroy()
                    reader.close()
                    self._reader = None
                    raise RuntimeError("fork problem") from err
                self.processes.append(proc)
        finally:
            writer.close()
        self._pump = threading.Thread(target=self._copy_output, name="printer", daemon=True)
        self._pump.start()

    def _copy_output(self) -> None:
        assert self._reader is not None
        while True:
            try:
                text = self._reader.recv()
            except (EOFError, OSError):
                break
            self.out.write(text)
            self.out.flush()

    def _finish_output(self) -> None:
        if self._pump is not None:
            self._pump.join()
            self._pump = None
        if self._reader is not None:
            self._reader.close()
            self._reader = None

    def destroy(self) -> None:
        """Kill every philosopher process that is still running."""
        for proc in self.processes:
            if proc.is_alive():
                proc.kill()
        for proc in self.processes:
            proc.join()

    def gather(self) -> int | None:
        """Wait for the processes to finish and return why the simulation ended.

        ``EXIT_DEAD`` when a philosopher died (the others are then killed),
        ``EXIT_EATGOAL`` when every philosopher reached its meal goal, or None
        when a process ended some other way.
        """
        pending = list(self.processes)
        outcome: int | None = None
        try:
            while pending:
                ready = wait([proc.sentinel for proc in pending])
                finished = [proc for proc in pending if proc.sentinel in ready]
                for proc in finished:
                    proc.join()
                    pending.remove(proc)
                codes = {proc.exitcode for proc in finished}
                if EXIT_DEAD in codes:
                    self.destroy()
                    outcome = EXIT_DEAD
                    break
                if codes - {EXIT_EATGOAL}:
                    self.destroy()
                    break
                if not pending:
                    outcome = EXIT_EATGOAL
        finally:
            self._finish_output()
        self.outcome = outcome
        return outcome


def simulate(settings: Settings, out: TextIO | None = None) -> ProcessTable:
    """Run one whole simulation and return the finished table."""
    table = ProcessTable(settings, out)
    table.launch()
    table.gather()
    return table


def main(argv: Sequence[str] | None = None) -> int:
    """Command entry point; returns 1 when the arguments or the processes fail."""
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