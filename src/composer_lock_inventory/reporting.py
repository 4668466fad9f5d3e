"""
Reporting and output formatting for inventory results.

Provides console tables using the Rich library and a JSON export.
"""

import json
from typing import Any, Dict, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .analyzer import AnalysisResult
from .dependency import DependencyRecord


def build_json_report(
    records: Sequence[DependencyRecord], skipped: Sequence[AnalysisResult]
) -> Dict[str, Any]:
    """Build the JSON-serializable inventory document."""
    return {
        "total_dependencies": len(records),
        "dependencies": [record.to_dict() for record in records],
        "skipped": [
            {
                "file_path": result.placeholder.actual_file_path,
                "error_type": type(result.error).__name__,
                "error": str(result.error),
            }
            for result in skipped
        ],
    }


def output_json_results(
    records: Sequence[DependencyRecord],
    skipped: Sequence[AnalysisResult],
    output_file: Optional[str] = None,
    console: Optional[Console] = None,
) -> None:
    """Export results as JSON."""
    json_output = json.dumps(
        build_json_report(records, skipped), indent=2, ensure_ascii=False
    )

    if output_file:
        with open(output_file, "w", encoding="utf-8") as f:
            f.write(json_output)
        (console or Console(stderr=True)).print(
            f"✅ Results saved to {output_file}", style="green"
        )
    else:
        print(json_output)


class InventoryReporter:
    """Formats and displays the dependencies found in lock files."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def print_results(
        self,
        records: Sequence[DependencyRecord],
        skipped: Sequence[AnalysisResult],
        verbose: bool = False,
    ) -> None:
        """
        Print the inventory in a user-friendly format.

        Args:
            records: Dependency records produced by the run
            skipped: Analyses that skipped their artifact
            verbose: Also show the identity hash of each record
        """
        self.console.print()

        if records:
            self._print_records(records, verbose)
        else:
            self.console.print("No Composer dependencies found.", style="yellow")

        if skipped:
            self._print_skipped(skipped)

        self._print_footer(records, skipped)

    def _print_records(self, records: Sequence[DependencyRecord], verbose: bool) -> None:
        table = Table(
            title="📦 Composer Dependencies", box=box.ROUNDED, title_style="bold cyan"
        )
        table.add_column("Vendor", style="cyan")
        table.add_column("Package", style="bold")
        table.add_column("Version", style="green")
        table.add_column("Lock File", style="dim")
        if verbose:
            table.add_column("SHA-1", style="dim")

        for record in records:
            row: List[str] = [
                escape(record.vendor),
                escape(record.name),
                escape(record.version),
                escape(record.actual_file_path),
            ]
            if verbose:
                row.append(record.sha1sum)
            table.add_row(*row)

        self.console.print(table)

    def _print_skipped(self, skipped: Sequence[AnalysisResult]) -> None:
        lines = "\n".join(
            f"• {escape(result.placeholder.actual_file_path)}: {escape(str(result.error))}"
            for result in skipped
        )
        self.console.print(
            Panel(lines, title="⚠️  Skipped lock files", border_style="yellow")
        )

    def _print_footer(
        self, records: Sequence[DependencyRecord], skipped: Sequence[AnalysisResult]
    ) -> None:
        lock_files = {record.actual_file_path for record in records}
        self.console.print(
            f"Found {len(records)} dependencies in {len(lock_files)} lock file(s)"
            + (f", skipped {len(skipped)}" if skipped else ""),
            style="bold",
        )
