"""
Terminal UI grid helpers: row layout, cell text and status messages.
"""

from datetime import datetime

from rich.text import Text

from src.core.schema import DAYS, ScheduleEntry
from src.ui.grid import ScheduleGrid
from tui.main import (
    EMPTY_MESSAGE,
    LOADING_MESSAGE,
    build_grid_rows,
    format_cell,
    grid_status,
    parse_row_key,
    row_key,
)


def make_entry(entry_id, person="Louis", time_slot="AM", day="2", title="Standup", type="Meeting"):
    return ScheduleEntry(
        id=entry_id,
        title=title,
        person=person,
        context="Training",
        day=day,
        type=type,
        time_slot=time_slot,
        created_at=datetime(2024, 1, 1)
    )


def test_row_key_round_trip():
    assert parse_row_key(row_key("Louis", "Reminder")) == ("Louis", "Reminder")


def test_format_cell_lists_entries():
    text = format_cell([make_entry("1"), make_entry("2", title="Retro", type="Task")])

    assert isinstance(text, Text)
    assert text.plain == "[M] Standup\nTraining\n[T] Retro\nTraining"


def test_format_empty_cell():
    assert format_cell([]).plain == ""


def test_build_grid_rows_layout():
    grid = ScheduleGrid([make_entry("1"), make_entry("2", person="Jaden", time_slot="PM", day="TBD")])

    rows = build_grid_rows(grid)

    assert [key for key, _ in rows] == [
        "Jaden|Reminder", "Jaden|AM", "Jaden|PM",
        "Louis|Reminder", "Louis|AM", "Louis|PM",
    ]
    for key, cells in rows:
        assert len(cells) == 2 + len(DAYS)

    first_cells = rows[0][1]
    assert first_cells[0].plain == "Jaden"
    assert rows[1][1][0].plain == ""

    louis_am = dict(rows)["Louis|AM"]
    day_two = louis_am[2 + DAYS.index("2")]
    assert day_two.plain.startswith("[M] Standup")

    jaden_pm = dict(rows)["Jaden|PM"]
    assert jaden_pm[2 + DAYS.index("TBD")].plain.startswith("[M] Standup")


def test_grid_status_messages():
    empty = ScheduleGrid([])
    assert grid_status(empty) == EMPTY_MESSAGE

    empty.loading = True
    assert grid_status(empty) == LOADING_MESSAGE

    assert grid_status(ScheduleGrid([make_entry("1")])) == ""
