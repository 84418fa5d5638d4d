"""Rotation reporter with multiple output formats."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import List

from rich.console import Console
from rich.table import Table

from src.models.rotation_result import RotationResult, RotationStatus
from src.models.snapshot_record import SnapshotAction

ACTION_STYLES = {
    SnapshotAction.RETAINED: "green",
    SnapshotAction.DELETED: "red",
    SnapshotAction.WOULD_DELETE: "yellow",
    SnapshotAction.DELETE_FAILED: "bold red",
}

STATUS_STYLES = {
    RotationStatus.PLANNED: "cyan",
    RotationStatus.COMPLETED: "green",
    RotationStatus.PARTIAL: "yellow",
    RotationStatus.FAILED: "bold red",
}


class RotationReporter:
    """Report rotation results in various formats (terminal, JSON, CSV)."""

    def format_terminal(self, results: List[RotationResult]) -> str:
        """Format results for terminal output using Rich.

        Args:
            results: Rotation results, one per resource

        Returns:
            Formatted string for terminal display
        """
        console = Console()
        with console.capture() as capture:
            self.print_results(results, console)

        return capture.get()

    def print_results(self, results: List[RotationResult], console: Console) -> None:
        """Print one table per resource to a console.

        Args:
            results: Rotation results, one per resource
            console: Rich console to print to
        """
        if not results:
            console.print("No resources processed.")
            return

        for result in results:
            console.print(self._build_table(result))

    def _build_table(self, result: RotationResult) -> Table:
        status_style = STATUS_STYLES[result.status]
        title = f"{result.resource_id} [{status_style}]{result.status.value}[/{status_style}]"
        if result.dry_run:
            title += " (dry run)"

        table = Table(title=title)
        table.add_column("Snapshot", style="bold")
        table.add_column("Created")
        table.add_column("Action")
        table.add_column("Bucket")
        table.add_column("Detail")

        if result.error:
            table.add_row("-", "-", "[bold red]aborted[/bold red]", "-", result.error)

        for record in sorted(result.records, key=lambda r: r.created_at, reverse=True):
            style = ACTION_STYLES[record.action]
            table.add_row(
                record.snapshot_id,
                record.created_at.strftime("%Y-%m-%d %H:%M:%S"),
                f"[{style}]{record.action.value}[/{style}]",
                record.bucket or "",
                record.error_message or "",
            )

        return table

    def export_json(self, results: List[RotationResult], filepath: str) -> None:
        """Export results to JSON format.

        Args:
            results: Rotation results
            filepath: Output file path
        """
        output = {
            "results": [result.to_dict() for result in results],
            "summary": self.generate_summary(results),
        }

        output_path = Path(filepath)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w") as f:
            json.dump(output, f, indent=2)

    def export_csv(self, results: List[RotationResult], filepath: str) -> None:
        """Export per-snapshot decisions to CSV format.

        Args:
            results: Rotation results
            filepath: Output file path
        """
        output_path = Path(filepath)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        fieldnames = [
            "resource_id",
            "snapshot_id",
            "created_at",
            "action",
            "bucket",
            "error_message",
            "dry_run",
        ]

        with open(output_path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()

            for result in results:
                for record in result.records:
                    writer.writerow(
                        {
                            "resource_id": result.resource_id,
                            "snapshot_id": record.snapshot_id,
                            "created_at": record.created_at.isoformat(),
                            "action": record.action.value,
                            "bucket": record.bucket or "",
                            "error_message": record.error_message or "",
                            "dry_run": result.dry_run,
                        }
                    )

    def generate_summary(self, results: List[RotationResult]) -> dict:
        """Generate summary statistics for results.

        Args:
            results: Rotation results

        Returns:
            Dictionary with resource and snapshot counts
        """
        return {
            "total_resources": len(results),
            "failed_resources": sum(1 for r in results if r.status == RotationStatus.FAILED),
            "partial_resources": sum(1 for r in results if r.status == RotationStatus.PARTIAL),
            "retained_count": sum(len(r.retained_ids) for r in results),
            "deleted_count": sum(len(r.deleted_ids) for r in results),
            "failed_deletion_count": sum(len(r.failed_ids) for r in results),
        }
