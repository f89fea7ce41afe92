import json
import logging
from typing import Any, Dict, List, Optional

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from mktocli.domain.interfaces.user_interface import UserInterface
from mktocli.domain.models.steps import StepOutcome, StepRecord, StepResult

logger = logging.getLogger(__name__)

OUTCOME_STYLES = {
    StepOutcome.PASSED: ("green", "Passed"),
    StepOutcome.FAILED: ("yellow", "Failed"),
    StepOutcome.ERROR: ("red", "Error"),
}
# Wide tables are cut to this many columns unless headers are given
MAX_AUTO_COLUMNS = 8


def format_cell(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        self._console = console or Console()

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    def display_step_result(self, result: StepResult, **kwargs: Any) -> None:
        """Displays a step outcome panel followed by its records.

        Args:
            result: The step result to render.
            **kwargs: Additional arguments including:
                - show_records: Set False to print the outcome panel only.
        """
        color, label = OUTCOME_STYLES[result.outcome]
        logger.debug(f"display_step_result called: outcome={result.outcome.value}, records={len(result.records)}")
        panel = Panel(
            Text(result.message, style="white"),
            title=f"[bold {color}]{label}[/bold {color}]",
            title_align="left",
            border_style=color,
            box=ROUNDED if result.passed else HEAVY,
            padding=(0, 1),
        )
        self.console.print(panel)

        if kwargs.get("show_records", True):
            for record in result.records:
                self._display_step_record(record)

    def _display_step_record(self, record: StepRecord) -> None:
        if record.is_table:
            self.display_records(record.data, title=record.name, headers=record.headers)
            return

        table = Table(title=record.name, box=SIMPLE, show_header=False, padding=(0, 1))
        table.add_column("Field", style="bold cyan")
        table.add_column("Value")
        for key, value in record.data.items():
            table.add_row(str(key), format_cell(value))
        self.console.print(table)

    def display_records(self, records: List[Dict[str, Any]], title: Optional[str] = None, **kwargs: Any) -> None:
        """Displays a list of API records as a table.

        Args:
            records: Records to render, one row each.
            title: Optional table title.
            **kwargs: Additional arguments including:
                - headers: Mapping of record key to column label. Defaults to
                  the keys of the first record.
        """
        if not records:
            self.display_info(f"No {title or 'records'} found.")
            return

        headers: Optional[Dict[str, str]] = kwargs.get("headers")
        if not headers:
            keys = list(records[0].keys())[:MAX_AUTO_COLUMNS]
            headers = {key: key for key in keys}

        table = Table(title=title, box=ROUNDED, border_style="cyan", header_style="bold cyan")
        for label in headers.values():
            table.add_column(label)
        for record in records:
            table.add_row(*(format_cell(record.get(key)) for key in headers))
        self.console.print(table)

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style.

        Args:
            error_message: The error message to display.
        """
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message with enhanced styling.

        Args:
            warning_message: The warning message to display.
        """
        logger.warning(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)
