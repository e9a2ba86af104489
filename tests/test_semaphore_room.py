import io

import pytest

from philosophers.args import USAGE, Settings
from philosophers.semaphore_room import SemaphoreTable, main, simulate
from philosophers.states import State, now_ms

DESCRIPTIONS = {state.description() for state in State}


def _parse(output: str):
    lines = []
    for line in output.splitlines():
        stamp, philo_id, words = line.split(maxsplit=2)
        lines.append((int(stamp), int(philo_id), words))
    return lines


def test_new_table_is_open():
    table = SemaphoreTable(Settings(3, 400, 100, 100), io.StringIO())
    assert table.is_closed() is False


def test_close_marks_room_closed():
    table = SemaphoreTable(Settings(3, 400, 100, 100), io.StringIO())
    table.close()
    assert table.is_closed() is True


def test_neighbours_form_a_circle():
    table = SemaphoreTable(Settings(4, 400, 100, 100), io.StringIO())
    ids = [philo.id for philo in table.philosophers]
    assert ids == [1, 2, 3, 4]
    assert [philo.neighbour.id for philo in table.philosophers] == [2, 3, 4, 1]


def test_philosopher_sees_closed_room():
    table = SemaphoreTable(Settings(2, 400, 100, 100), io.StringIO())
    philo = table.philosophers[0]
    assert philo.is_the_end() is False
    table.close()
    assert philo.is_the_end() is True


def test_starving_philosopher_dies_and_closes_room():
    out = io.StringIO()
    table = SemaphoreTable(Settings(2, 10, 100, 100), out)
    philo = table.philosophers[0]
    philo.birth = now_ms() - 1000
    assert philo.is_the_end() is True
    assert table.is_closed() is True
    assert out.getvalue().endswith(" 1 died\n")


def test_meal_goal_stops_simulation():
    out = io.StringIO()
    settings = Settings(4, 2000, 10, 10, 3)
    table = simulate(settings, out)
    assert table.is_closed() is True
    assert all(philo.meals >= 3 for philo in table.philosophers)
    lines = _parse(out.getvalue())
    assert all(words != "died" for _, _, words in lines)
    assert all(1 <= philo_id <= 4 for _, philo_id, _ in lines)
    assert all(words in DESCRIPTIONS for _, _, words in lines)
    assert all(stamp >= 0 for stamp, _, _ in lines)


def test_eating_lines_match_meal_counts():
    out = io.StringIO()
    table = simulate(Settings(3, 2000, 10, 10, 2), out)
    lines = _parse(out.getvalue())
    for philo in table.philosophers:
        eaten = sum(1 for _, pid, words in lines if pid == philo.id and words == "is eating")
        assert eaten == philo.meals


def test_death_ends_simulation():
    out = io.StringIO()
    table = simulate(Settings(2, 50, 100, 100), out)
    assert table.is_closed() is True
    deaths = [line for line in _parse(out.getvalue()) if line[2] == "died"]
    assert len(deaths) >= 1


def test_main_rejects_bad_arguments(capsys):
    assert main(["2", "x", "100", "100"]) == 1
    assert capsys.readouterr().out == USAGE + "\n"


@pytest.mark.parametrize("argv", [[], ["1", "100", "100", "100"], ["2", "1", "1", "1", "1", "1"]])
def test_main_usage_errors(argv, capsys):
    assert main(argv) == 1
    assert USAGE in capsys.readouterr().out


def test_main_runs_simulation(capsys):
    assert main(["2", "2000", "10", "10", "1"]) == 0
    output = capsys.readouterr().out
    assert "is eating" in output
    assert "died" not in output