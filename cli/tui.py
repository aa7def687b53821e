#!/usr/bin/env python3
"""HydroLog TUI: log water intake from the terminal, powered by Textual."""

from __future__ import annotations

import sys
from datetime import datetime
from functools import partial

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.reactive import reactive
from textual.widgets import DataTable, Footer, Header, Input, Label, ProgressBar, Static

from hydrolog import (
    FileStatePersistence,
    HydrationStore,
    OperationResult,
    PersistenceError,
    StateCorruptedError,
    data_root,
    load_config,
    run_hooks,
    setup_logging,
    state_path,
)

CSS = """
Screen {
    layout: vertical;
}

#main-layout {
    height: 1fr;
}

#left-pane {
    width: 2fr;
    min-width: 40;
    border-right: tall $primary-background-darken-2;
    padding: 0 1;
}

#right-pane {
    width: 1fr;
    min-width: 30;
    padding: 0 1;
}

.section-title {
    text-style: bold;
    color: $text;
    margin: 1 0 0 0;
    padding: 0 1;
}

#progress-text {
    height: auto;
    padding: 0 1;
}

#progress-bar {
    padding: 0 1;
}

#quick-hint {
    height: auto;
    padding: 0 1;
    color: $text-muted;
}

#amount-input {
    width: 1fr;
    height: 3;
    margin: 0 1;
}

#log-table {
    height: 1fr;
}

#stats-info {
    height: auto;
    padding: 1 2;
    margin: 0 0 1 0;
    border: tall $primary-background-darken-2;
}

#history-table {
    height: 1fr;
}
"""


def _format_time(timestamp_ms: int, store: HydrationStore) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=store.config.tz).strftime("%H:%M")


# ── Main app ───────────────────────────────────────────────────


class HydroLogApp(App):
    """HydroLog: today's intake, quick adds and stats."""

    TITLE = "HydroLog"
    CSS = CSS
    AUTO_FOCUS = None

    BINDINGS = [
        Binding("1", "quick_add(0)", "Quick 1"),
        Binding("2", "quick_add(1)", "Quick 2"),
        Binding("3", "quick_add(2)", "Quick 3"),
        Binding("a", "focus_amount", "Amount"),
        Binding("x", "remove_entry", "Delete"),
        Binding("s", "toggle_stats", "Stats"),
        Binding("escape", "blur_focus", "Back"),
        Binding("q", "quit", "Quit"),
    ]

    show_stats: reactive[bool] = reactive(True)

    def __init__(self, store: HydrationStore) -> None:
        super().__init__()
        self.store = store

    def compose(self) -> ComposeResult:
        yield Header()
        yield Horizontal(
            Vertical(
                Label("Today", classes="section-title"),
                Static(id="progress-text"),
                ProgressBar(id="progress-bar", show_eta=False),
                Static(id="quick-hint"),
                Input(placeholder="Custom amount (ml), Enter to add", id="amount-input", type="integer"),
                Label("Log", classes="section-title"),
                DataTable(id="log-table", cursor_type="row"),
                id="left-pane",
            ),
            Vertical(
                Label("Stats", classes="section-title"),
                Static(id="stats-info"),
                DataTable(id="history-table"),
                id="right-pane",
            ),
            id="main-layout",
        )
        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#log-table", DataTable).add_columns("Time", "Amount", "Kind")
        self.query_one("#history-table", DataTable).add_columns("Date", "Intake", "Target", "Done")
        self._refresh()
        # Rollover is lazy, so poke the store once a minute to catch midnight
        self.set_interval(60, self._tick)

    def _tick(self) -> None:
        try:
            if self.store.roll_day_over():
                self.notify("New day started", title="Rollover")
                self._refresh()
        except PersistenceError as e:
            self.notify(str(e), title="Save failed", severity="error")

    def _refresh(self) -> None:
        """Re-read the store and repopulate widgets."""
        summary = self.store.summary()
        today = self.store.today

        self.query_one("#progress-text", Static).update(
            f"{summary.intake_ml} / {summary.target_ml} ml  ({summary.completion_percent}%)"
            + ("  ✓ goal reached" if summary.goal_completed else f"  {summary.remaining_ml} ml to go")
        )
        bar = self.query_one("#progress-bar", ProgressBar)
        bar.update(total=summary.target_ml, progress=min(summary.intake_ml, summary.target_ml))

        hints = []
        for i, option in enumerate(self.store.quick_add_options()[:3], start=1):
            mark = " (limit)" if option["disabled"] else ""
            hints.append(f"[{i}] +{option['label']}{mark}")
        self.query_one("#quick-hint", Static).update("   ".join(hints))

        table = self.query_one("#log-table", DataTable)
        table.clear()
        for entry in reversed(today.entries_by_time()):
            table.add_row(
                _format_time(entry.timestamp_ms, self.store),
                f"{entry.amount_ml} ml",
                entry.kind,
                key=entry.id,
            )

        info = [
            f"Streak: {summary.current_streak} days (best {summary.longest_streak})",
            f"This week: avg {summary.weekly.average} ml, "
            f"{summary.weekly.days_completed}/{summary.weekly.days_total} days ({summary.weekly.completion_rate}%)",
            f"This month: avg {summary.monthly.average} ml, "
            f"{summary.monthly.days_completed}/{summary.monthly.days_total} days ({summary.monthly.completion_rate}%)",
        ]
        self.query_one("#stats-info", Static).update("\n".join(info))

        history = self.query_one("#history-table", DataTable)
        history.clear()
        for day in self.store.history[::-1]:
            history.add_row(
                day.date.isoformat(),
                str(day.total_intake_ml),
                str(day.target_ml),
                "✓" if day.completed else "",
            )

        self.sub_title = f"🔥 {summary.current_streak}  {summary.date}"

    def _report(self, result: OperationResult, success: str) -> None:
        if result.ok:
            self.notify(success)
            self._refresh()
        else:
            self.notify(result.message, title=str(result.reason), severity="warning")

    def _run(self, operation, success: str) -> None:
        try:
            result = operation()
        except PersistenceError as e:
            self.notify(str(e), title="Save failed", severity="error")
            self._refresh()
            return
        self._report(result, success)

    # ── Actions ────────────────────────────────────────────────

    def action_quick_add(self, index: int) -> None:
        amounts = self.store.config.quick_amounts
        if index >= len(amounts):
            return
        amount = amounts[index]
        self._run(partial(self.store.add_entry, amount, kind="quick"), f"Added {amount} ml")

    @on(Input.Submitted, "#amount-input")
    def _on_amount_submitted(self, event: Input.Submitted) -> None:
        text = event.value.strip()
        if not text:
            return
        try:
            amount = int(text)
        except ValueError:
            self.notify("Enter a whole number of ml", severity="warning")
            return
        self._run(partial(self.store.add_entry, amount, kind="custom"), f"Added {amount} ml")
        event.input.value = ""

    def action_focus_amount(self) -> None:
        self.query_one("#amount-input", Input).focus()

    def action_remove_entry(self) -> None:
        table = self.query_one("#log-table", DataTable)
        if table.row_count == 0:
            return
        row_key = table.coordinate_to_cell_key(table.cursor_coordinate).row_key
        self._run(partial(self.store.remove_entry, row_key.value), "Entry removed")

    def action_toggle_stats(self) -> None:
        self.show_stats = not self.show_stats

    def watch_show_stats(self, show: bool) -> None:
        try:
            self.query_one("#right-pane").display = show
        except NoMatches:
            pass

    def action_blur_focus(self) -> None:
        self.set_focus(None)


# ── Entry point ────────────────────────────────────────────────


def main() -> None:
    root = data_root()
    root.mkdir(parents=True, exist_ok=True)
    config = load_config(root)
    # Console logging would draw over the TUI
    setup_logging(root, config.log_level, console=False)

    try:
        store = HydrationStore.open(
            FileStatePersistence(state_path(root)),
            config=config,
            hooks=partial(run_hooks, root=root),
        )
    except (StateCorruptedError, PersistenceError) as e:
        print(f"Cannot load {state_path(root)}: {e}")
        print("Fix or remove the file, or set HYDROLOG_ROOT to another directory.")
        sys.exit(1)

    app = HydroLogApp(store)
    app.run()


if __name__ == "__main__":
    main()
