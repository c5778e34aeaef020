"""
Progress output for interactive reindex runs.

Interactive runs print one ``.`` per processed record, a ``[pos/total]``
counter every 50 records, and a summary per index with a link to the
remote index explorer. Programmatic runs use :class:`NullProgress` and
read the returned summaries instead.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

from indexspine.core.models import RunSummary

POSITION_EVERY = 50


class NullProgress:
    """Silent progress sink."""

    def index_started(self, index_name: str) -> None:
        pass

    def type_started(self, index_name: str, record_type: str, count: int, filters: list[str]) -> None:
        pass

    def record_processed(self, position: int, total: int) -> None:
        pass

    def index_finished(self, summary: RunSummary, explorer_url: str | None) -> None:
        pass

    def run_finished(self) -> None:
        pass


class ConsoleProgress(NullProgress):
    """Writes progress markers to a rich console."""

    def __init__(self, console: Console | None = None, every: int = POSITION_EVERY) -> None:
        self.console = console or Console(highlight=False, soft_wrap=True)
        self.every = every

    def index_started(self, index_name: str) -> None:
        self.console.print(f"Updating index {index_name}", markup=False)

    def type_started(self, index_name: str, record_type: str, count: int, filters: list[str]) -> None:
        self.console.print(
            f"| Found {count} {record_type} remaining to index which match filter "
            f"({','.join(filters)})",
            markup=False,
        )

    def record_processed(self, position: int, total: int) -> None:
        self.console.print(".", end="", markup=False)
        if position % self.every == 0:
            self.console.print(f" [{position}/{total}]", markup=False)

    def index_finished(self, summary: RunSummary, explorer_url: str | None) -> None:
        self.console.print()
        self.console.print(summary.render(), markup=False, soft_wrap=True)
        if explorer_url:
            self.console.print(f"| See index at [link={explorer_url}]{explorer_url}[/link]")
        for error in summary.errors:
            self.console.print(f"| [red]error[/red]: {escape(error)}", highlight=False, soft_wrap=True)
        self.console.print("---", markup=False)

    def run_finished(self) -> None:
        self.console.print("Done", markup=False)


__all__ = [
    "POSITION_EVERY",
    "NullProgress",
    "ConsoleProgress",
]
