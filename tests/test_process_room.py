import io

from philosophers.args import USAGE, Settings
from philosophers.process_room import (
    EXIT_DEAD,
    EXIT_EATGOAL,
    ProcessPhilosopher,
    ProcessTable,
    main,
    simulate,
)
from philosophers.states import now_ms

_DESCRIPTIONS = {"is thinking", "is eating", "is sleeping", "has taken a fork", "died"}


def _check_line(line):
    assert line[:14].strip().isdigit()
    assert line[14] == " "
    philo_id, text = line[15:].split(" ", 1)
    assert philo_id.isdigit()
    assert text in _DESCRIPTIONS
    return int(philo_id), text


def test_starving_philosopher_dies_and_reports():
    out = io.StringIO()
    settings = Settings(2, 100, 10, 10)
    philo = ProcessPhilosopher(2, settings, out=out, birth=now_ms() - 500)
    assert philo.is_the_end() is True
    assert philo.exit_code == EXIT_DEAD == 2
    assert out.getvalue().rstrip("\n").endswith(" 2 died")


def test_philosopher_with_enough_meals_reaches_goal():
    out = io.StringIO()
    settings = Settings(2, 10_000, 10, 10, 3)
    philo = ProcessPhilosopher(1, settings, out=out)
    philo.meals = 3
    philo.last_meal = now_ms()
    assert philo.is_the_end() is True
    assert philo.exit_code == EXIT_EATGOAL == 1
    assert out.getvalue() == ""


def test_fresh_philosopher_goes_on():
    settings = Settings(2, 10_000, 10, 10)
    philo = ProcessPhilosopher(1, settings, out=io.StringIO())
    assert philo.is_the_end() is False
    assert philo.exit_code is None


def test_run_stops_at_meal_goal():
    out = io.StringIO()
    settings = Settings(2, 10_000, 5, 5, 1)
    philo = ProcessPhilosopher(2, settings, out=out)
    philo.run()
    assert philo.exit_code == EXIT_EATGOAL
    assert philo.meals == 1
    texts = [_check_line(line)[1] for line in out.getvalue().splitlines()]
    assert texts.count("has taken a fork") == 2
    assert "is eating" in texts
    assert "died" not in texts


def test_run_stops_on_death():
    out = io.StringIO()
    settings = Settings(2, 0, 5, 5)
    philo = ProcessPhilosopher(2, settings, out=out)
    philo.run()
    assert philo.exit_code == EXIT_DEAD
    lines = out.getvalue().splitlines()
    assert _check_line(lines[-1]) == (2, "died")


def test_simulation_with_quick_death_ends_dead():
    out = io.StringIO()
    table = simulate(Settings(2, 1, 200, 200), out)
    assert table.outcome == EXIT_DEAD
    assert all(not proc.is_alive() for proc in table.processes)
    parsed = [_check_line(line) for line in out.getvalue().splitlines()]
    assert any(text == "died" for _, text in parsed)


def test_simulation_ends_by_goal_or_single_death():
    out = io.StringIO()
    settings = Settings(4, 3000, 20, 20, 2)
    table = simulate(settings, out)
    parsed = [_check_line(line) for line in out.getvalue().splitlines()]
    assert all(1 <= philo_id <= 4 for philo_id, _ in parsed)
    assert len(table.processes) == 4
    if table.outcome == EXIT_EATGOAL:
        for philo_id in range(1, 5):
            eaten = sum(1 for pid, text in parsed if pid == philo_id and text == "is eating")
            assert eaten >= 2
        assert all(text != "died" for _, text in parsed)
    else:
        assert table.outcome == EXIT_DEAD
        assert any(text == "died" for _, text in parsed)


def test_destroy_kills_running_processes():
    out = io.StringIO()
    table = ProcessTable(Settings(2, 60_000, 30_000, 30_000), out)
    table.launch()
    table.destroy()
    assert all(not proc.is_alive() for proc in table.processes)
    assert table.gather() is None
    assert table.outcome is None


def test_main_rejects_too_few_arguments(capsys):
    assert main(["4", "100"]) == 1
    assert capsys.readouterr().out.strip() == USAGE


def test_main_rejects_non_digits(capsys):
    assert main(["4", "x", "100", "100"]) == 1
    assert capsys.readouterr().out.strip() == USAGE


def test_main_rejects_single_philosopher(capsys):
    assert main(["1", "100", "100", "100"]) == 1
    assert capsys.readouterr().out.strip() == USAGE