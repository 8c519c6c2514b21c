from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console, JustifyMethod
from rich.table import Table

if TYPE_CHECKING:
    from snarkbuild.pipeline import RunReport


STATE_STYLES = {
    "verifier_emitted": "green",
    "skipped": "yellow",
    "failed": "red",
}


def create_and_print_table(
    title: str, columns: list[tuple[str, JustifyMethod, str]], rows: list[list[str]]
):
    """
    Create and print a table.

    Args:
        title (str): The title of the table.
        columns (list[tuple[str, JustifyMethod, str]]): A list of tuples containing column information.
            Each tuple should contain (column_name, justification, style).
        rows (list[list[str]]): A list of rows, where each row is a list of string values.
    """
    table = Table(title=title)
    for col_name, justify, style in columns:
        table.add_column(col_name, justify=justify, style=style, no_wrap=True)
    for row in rows:
        table.add_row(*row)
    console = Console(color_system="truecolor")
    console.width = 120
    console.print(table)


def report_rows(report: RunReport) -> list[list[str]]:
    """
    One row per circuit: basename, final state, and for failures the last
    state reached, the stage that failed and the error.
    """
    rows = []
    outcomes = sorted(report.outcomes.values(), key=lambda o: o.basename)
    for outcome in outcomes + report.rejected:
        style = STATE_STYLES.get(outcome.state.value, "white")
        row = [outcome.basename, f"[{style}]{outcome.state.value}[/{style}]"]
        if outcome.error is None:
            row += ["", "", ""]
        else:
            row += [
                outcome.last_state.value,
                getattr(outcome.error, "stage", "unexpected"),
                str(outcome.error),
            ]
        rows.append(row)
    return rows


def log_run_report(report: RunReport):
    """
    Print the per-circuit outcome of a pipeline run.
    """
    create_and_print_table(
        "Circuits",
        [
            ("circuit", "left", "cyan"),
            ("state", "left", "white"),
            ("failed after", "left", "magenta"),
            ("failed in", "left", "magenta"),
            ("error", "left", "white"),
        ],
        report_rows(report),
    )
