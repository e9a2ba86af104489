# philosophers

Simulations of the dining philosophers problem. Philosophers sit around a
table. Each one takes two forks, eats, sleeps and thinks, and then starts
over. A philosopher who goes too long without eating dies, and the
simulation ends there.

Three variants are provided:

- `philo-one` (`philosophers.mutex_room`): one thread per philosopher. Each
  philosopher owns one mutex-guarded fork and borrows the next one from their
  neighbour.
- `philo-two` (`philosophers.semaphore_room`): one thread per philosopher.
  Every fork is drawn from a single counting semaphore shared by the table.
- `philo-three` (`philosophers.process_room`): one process per philosopher.
  Forks are drawn from a semaphore shared between the processes. The
  processes send their log lines back to the parent, which prints them.

## Installation

```
pip install .
```

## Usage

```
philo-one nb_of_philos tt_die tt_eat tt_sleep [nb_of_meals]
philo-two nb_of_philos tt_die tt_eat tt_sleep [nb_of_meals]
philo-three nb_of_philos tt_die tt_eat tt_sleep [nb_of_meals]
```

All times are in milliseconds. Every argument must be made of digits only.
The number of philosophers must be from 2 to 200. If `nb_of_meals` is given
and greater than zero, the simulation stops once every philosopher has eaten
at least that many times. Otherwise it runs until a philosopher dies.

If the arguments are invalid, the command prints

```
usage: nb_of_philos tt_die tt_eat tt_sleep [nb_of_meals]
```

`philo-one` then exits with status 0; `philo-two` and `philo-three` exit
with status 1.

Each event prints as one line: the milliseconds since the start, right-aligned
in 14 columns, then the philosopher's number and what they did. The possible
events are `has taken a fork`, `is eating`, `is sleeping`, `is thinking` and
`died`:

```
             0 2 has taken a fork
             0 2 has taken a fork
             0 2 is eating
           200 2 is sleeping
```

Example:

```
philo-one 5 800 200 200 7
```

## Library use

```python
import sys
from philosophers.args import parse_args
from philosophers.mutex_room import simulate

settings = parse_args(["4", "410", "200", "200", "3"])
table = simulate(settings, sys.stdout)
```

- `philosophers.args.parse_args(argv)` takes the arguments without the
  program name and returns a `Settings`; it raises `UsageError` when they are
  rejected. `parse_int(text)` is the lenient integer reader it uses.
- Each of `mutex_room`, `semaphore_room` and `process_room` has
  `simulate(settings, out=None)`, which runs a whole simulation, writes the log
  to `out` (standard output by default) and returns the finished table
  (`MutexTable`, `SemaphoreTable` or `ProcessTable`).
- `ProcessTable.gather()` returns `EXIT_DEAD` when a philosopher died,
  `EXIT_EATGOAL` when every philosopher reached the meal goal, or `None`
  otherwise; the value is also kept in `table.outcome`.
- `philosophers.states` holds the `State` enum, the millisecond clock helpers
  `now_ms()` and `sleep_ms(ms)`, and `format_line(elapsed_ms, philo_id, state)`.