"""
Schedule Table Manager terminal UI.
Entry form on top, person x time slot x day grid below. Store calls run in
thread workers; change feed refetches reach the UI thread as messages.
"""

import sys
from pathlib import Path
from typing import List, Optional, Tuple

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from rich.text import Text
from textual import work
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.message import Message
from textual.screen import ModalScreen
from textual.widgets import Header, Footer, Static, Button, Label, Input, Select, DataTable

from util.logging import logger
from src.core import dao
from src.core.change_feed import ChangeFeed
from src.core.config import is_change_feed_enabled, validate_config
from src.core.schema import DAYS, FIELD_CHOICES, FIELD_LABELS, REQUIRED_FIELDS, ScheduleEntry
from src.ui.cell import CONFIRM_DELETE_MESSAGE, TableCell, to_cell_item
from src.ui.grid import ScheduleGrid
from src.ui.page import SchedulePage, TITLE

EMPTY_MESSAGE = "No entries found. Add some using the form above."
LOADING_MESSAGE = "Loading entries..."
SUCCESS_MESSAGE = "✓ Entry added successfully!"
ROW_KEY_SEPARATOR = "|"


def format_cell(entries: List[ScheduleEntry]) -> Text:
    """Render a cell's entries as styled lines: badge, title, context."""
    text = Text()
    for index, entry in enumerate(entries):
        item = to_cell_item(entry)
        if index:
            text.append("\n")
        text.append(f"[{item.badge}] {item.title}", style=item.style)
        text.append(f"\n{item.context}", style="italic")
    return text


def row_key(person: str, time_slot: str) -> str:
    return f"{person}{ROW_KEY_SEPARATOR}{time_slot}"


def parse_row_key(key: str) -> Tuple[str, str]:
    person, time_slot = key.rsplit(ROW_KEY_SEPARATOR, 1)
    return person, time_slot


def build_grid_rows(grid: ScheduleGrid) -> List[Tuple[str, list]]:
    """Table rows as (row key, cells). The person name shows on the first slot row only."""
    rows = []
    for row in grid.rows():
        cells = [
            Text(row.person if row.first_for_person else "", style="bold"),
            row.time_slot,
        ]
        cells.extend(format_cell(row.cells[day]) for day in DAYS)
        rows.append((row_key(row.person, row.time_slot), cells))
    return rows


def grid_status(grid: ScheduleGrid) -> str:
    if grid.persons:
        return ""
    return LOADING_MESSAGE if grid.loading else EMPTY_MESSAGE


class ConfirmScreen(ModalScreen[bool]):
    """Yes/no confirmation dialog."""

    def __init__(self, message: str):
        super().__init__()
        self.message = message

    def compose(self) -> ComposeResult:
        yield Vertical(
            Label(self.message, classes="title"),
            Horizontal(
                Button("Delete", id="confirm-yes", variant="error"),
                Button("Cancel", id="confirm-no", variant="default"),
            ),
            id="confirm-dialog",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "confirm-yes")


class CellScreen(ModalScreen[None]):
    """Entries of one grid cell, each with a delete button."""

    def __init__(self, cell: TableCell, heading: str):
        super().__init__()
        self.cell = cell
        self.heading = heading
        self._button_entries = {}

    def compose(self) -> ComposeResult:
        rows = []
        for index, item in enumerate(self.cell.items()):
            button_id = f"delete-{index}"
            self._button_entries[button_id] = item.entry_id
            body = Static(Text(f"[{item.badge}] {item.title}\n{item.context}", style=item.style), classes="cell-item")
            body.tooltip = item.tooltip
            rows.append(Horizontal(body, Button("×", id=button_id, variant="error"), classes="cell-row"))

        yield Vertical(
            Static(self.heading, classes="title"),
            *rows,
            Button("Close", id="close-cell", variant="primary"),
            id="cell-dialog",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "close-cell":
            self.dismiss(None)
            return

        entry_id = self._button_entries.get(event.button.id)
        if entry_id is None or self.cell.is_disabled(entry_id):
            return
        if not self.cell.begin_delete(entry_id):
            return

        button = event.button

        def resolve(accepted: Optional[bool]) -> None:
            if not accepted:
                self.cell.confirm_delete(entry_id, False)
                return
            button.disabled = True
            button.label = "..."
            self.delete_entry(entry_id, button)

        self.app.push_screen(ConfirmScreen(CONFIRM_DELETE_MESSAGE), callback=resolve)

    @work(thread=True)
    def delete_entry(self, entry_id: str, button: Button) -> None:
        deleted = self.cell.confirm_delete(entry_id, True)
        self.app.call_from_thread(self._after_delete, deleted, button)

    def _after_delete(self, deleted: bool, button: Button) -> None:
        if deleted:
            self.dismiss(None)
        else:
            button.disabled = False
            button.label = "×"


class ScheduleApp(App):
    """Schedule Table Manager TUI Application."""

    CSS = """
    .title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
        color: blue;
    }

    .section-title {
        text-style: bold;
        margin-bottom: 1;
        color: cyan;
    }

    #entry-form, #grid-section {
        width: 100%;
        height: auto;
        margin-bottom: 1;
        padding: 1;
        border: solid white;
    }

    #form-fields Input, #form-fields Select {
        width: 1fr;
    }

    #form-error {
        color: red;
    }

    #form-success {
        color: green;
    }

    #grid-status {
        text-align: center;
        color: gray;
    }

    #cell-dialog, #confirm-dialog {
        width: 60;
        height: auto;
        padding: 1;
        border: solid cyan;
        background: $surface;
    }

    CellScreen, ConfirmScreen {
        align: center middle;
    }

    .cell-row {
        height: auto;
        margin-bottom: 1;
    }

    .cell-item {
        width: 1fr;
        padding: 0 1;
    }
    """

    TITLE = TITLE

    BINDINGS = [
        ("r", "refresh", "Refresh"),
        ("q", "quit", "Quit"),
    ]

    class GridChanged(Message):
        """Entries were refetched; posted from whichever thread refetched."""

    class Alert(Message):
        def __init__(self, text: str):
            super().__init__()
            self.text = text

    def __init__(self, store=dao, feed: Optional[ChangeFeed] = None):
        super().__init__()
        self.page = SchedulePage(store=store, feed=feed, alert=self._alert)
        self._success_timer = None

    def compose(self) -> ComposeResult:
        selects = [
            Select([(value, value) for value in FIELD_CHOICES[name]],
                   prompt=f"Select {FIELD_LABELS[name]}", id=name)
            for name in REQUIRED_FIELDS if FIELD_CHOICES[name] is not None
        ]
        yield Header()
        yield Container(
            Static("", id="form-success"),
            Static("", id="form-error"),
            Horizontal(
                Input(placeholder="Title *", id="title"),
                *selects,
                id="form-fields",
            ),
            Button("Add Entry", id="add-entry", variant="primary"),
            id="entry-form",
        )
        yield Container(
            Horizontal(
                Static("Schedule Table", classes="section-title"),
                Button("Refresh", id="refresh", variant="success"),
            ),
            DataTable(id="schedule-grid", cursor_type="cell"),
            Static("", id="grid-status"),
            id="grid-section",
        )
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#schedule-grid", DataTable)
        table.add_column("Person", key="person")
        table.add_column("Time Slot", key="time_slot")
        for day in DAYS:
            table.add_column(day, key=day)

        self.page.grid.on_change(lambda: self.post_message(self.GridChanged()))
        self.page.open()
        self.render_grid()
        logger.info("Schedule Table Manager started")

    def on_unmount(self) -> None:
        self.page.close()
        logger.info("Schedule Table Manager stopped")

    def _alert(self, text: str) -> None:
        self.post_message(self.Alert(text))

    # Grid

    def render_grid(self) -> None:
        table = self.query_one("#schedule-grid", DataTable)
        table.clear()
        for key, cells in build_grid_rows(self.page.grid):
            table.add_row(*cells, key=key, height=None)

        self.query_one("#grid-status", Static).update(grid_status(self.page.grid))
        self.query_one("#refresh", Button).disabled = self.page.grid.loading

    def on_schedule_app_grid_changed(self, message: GridChanged) -> None:
        self.render_grid()

    def on_schedule_app_alert(self, message: Alert) -> None:
        self.notify(message.text, title="Error", severity="error")

    def action_refresh(self) -> None:
        if self.page.grid.loading:
            return
        self.query_one("#refresh", Button).disabled = True
        self.refetch_entries()

    @work(thread=True, exclusive=True, group="refetch")
    def refetch_entries(self) -> None:
        self.page.grid.refetch()

    def on_data_table_cell_selected(self, event: DataTable.CellSelected) -> None:
        day = event.cell_key.column_key.value
        if day not in DAYS:
            return

        person, time_slot = parse_row_key(event.cell_key.row_key.value)
        cell = self.page.cell(person, time_slot, day)
        if not cell.entries:
            return

        self.push_screen(CellScreen(cell, f"{person} · {time_slot} · Day {day}"))

    # Form

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "title":
            self.page.form.set_field("title", event.value)

    def on_select_changed(self, event: Select.Changed) -> None:
        value = event.value if isinstance(event.value, str) else ""
        self.page.form.set_field(event.select.id, value)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "add-entry":
            event.button.disabled = True
            event.button.label = "Adding..."
            self.query_one("#form-error", Static).update("")
            self.submit_entry()
        elif event.button.id == "refresh":
            self.action_refresh()

    @work(thread=True)
    def submit_entry(self) -> None:
        entry = self.page.form.submit()
        self.call_from_thread(self._after_submit, entry)

    def _after_submit(self, entry: Optional[ScheduleEntry]) -> None:
        button = self.query_one("#add-entry", Button)
        button.disabled = False
        button.label = "Add Entry"

        form = self.page.form
        if entry is None:
            self.query_one("#form-error", Static).update(form.error or "")
            return

        self.query_one("#title", Input).value = ""
        for name in REQUIRED_FIELDS:
            if FIELD_CHOICES[name] is not None:
                self.query_one(f"#{name}", Select).clear()

        self.query_one("#form-success", Static).update(SUCCESS_MESSAGE)
        if self._success_timer is not None:
            self._success_timer.stop()
        self._success_timer = self.set_timer(form.success_duration, self._clear_success)

    def _clear_success(self) -> None:
        self._success_timer = None
        self.query_one("#form-success", Static).update("")


def main():
    """TUI entry point."""
    issues = validate_config()
    if issues:
        for issue in issues:
            print(f"❌ Configuration error: {issue}")
        sys.exit(1)

    feed = ChangeFeed() if is_change_feed_enabled() else None

    try:
        ScheduleApp(feed=feed).run()
    except KeyboardInterrupt:
        print("\nℹ️  Schedule Table Manager interrupted by user")
        logger.info("Schedule Table Manager exited via keyboard interrupt")


if __name__ == "__main__":
    main()
