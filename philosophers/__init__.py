"""Dining philosophers simulations with mutex-guarded forks, a shared fork semaphore, or one process per philosopher."""

__version__ = "1.0.0"