"""Main CLI entry point using Typer."""

import logging
import sys
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from ..aws.credentials import CredentialValidationError, validate_credentials
from ..models.retention_policy import BUCKET_INTERVALS, PolicyError
from ..utils.logging import setup_logging
from .config import Config, ConfigError

logger = logging.getLogger(__name__)

# Create Typer app
app = typer.Typer(
    name="snaprotate",
    help="Snapshot Rotator - create EBS snapshots and prune them by retention policy",
    add_completion=False,
)

# Create Rich console for output
console = Console()

# Global config
config: Optional[Config] = None


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file (default: $SNAPROTATE_CONFIG or ./config.yaml)",
    ),
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="AWS profile name"),
    region: Optional[str] = typer.Option(None, "--region", help="AWS region"),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", "-L", help="Logging level, supported values: error, warning, info, debug"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress output except errors"),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output"),
):
    """Snapshot Rotator - create EBS snapshots and prune them by retention policy."""
    global config

    # Disable colors if requested
    if no_color:
        console.no_color = True

    if ctx.invoked_subcommand == "version":
        return

    # Load configuration
    try:
        config = Config.load(config_path)
    except ConfigError as e:
        console.print(f"✗ Configuration error: {e}", style="bold red")
        raise typer.Exit(code=1)

    # Override with CLI options
    if profile:
        config.aws_profile = profile
    if region:
        config.region = region

    # Setup logging
    if log_level:
        if log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            console.print(f"✗ Invalid log level: {log_level}", style="bold red")
            raise typer.Exit(code=1)
        config.log_level = log_level.upper()

    level = "ERROR" if quiet else ("DEBUG" if verbose else config.log_level)
    setup_logging(level=level, verbose=verbose)


@app.command()
def version():
    """Show version information."""
    import boto3

    from .. import __version__

    console.print(f"snapshot-rotator version {__version__}")
    console.print(f"Python {sys.version.split()[0]}")
    console.print(f"boto3 {boto3.__version__}")


@app.command("check-config")
def check_config():
    """Validate the configuration file and show the configured policies."""
    if not config.resources:
        console.print("✗ No resources configured", style="bold red")
        console.print("  Add a 'resources' list to your configuration file", style="yellow")
        raise typer.Exit(code=1)

    table = Table(title="Retention Policies")
    table.add_column("Resource", style="bold")
    for bucket in BUCKET_INTERVALS:
        table.add_column(bucket.capitalize(), justify="right")
    table.add_column("Max kept", justify="right")

    for resource in config.resources:
        table.add_row(
            resource.id,
            *(str(b.limit) for b in resource.policy.bucket_types()),
            str(resource.policy.total_slots),
        )

    console.print(table)
    source = config.source_path or "defaults"
    console.print(f"✓ Configuration valid ({source}): {len(config.resources)} resource(s)", style="green")


@app.command()
def rotate(
    dry_run: bool = typer.Option(False, "--dry-run", "-d", help="Run in dry-run mode (read-only)"),
    resource: Optional[List[str]] = typer.Option(
        None, "--resource", "-r", help="Only rotate this resource (repeatable)"
    ),
    stop_on_error: bool = typer.Option(
        False, "--stop-on-error", help="Skip remaining resources after a resource fails"
    ),
    export: Optional[str] = typer.Option(None, "--export", help="Export results to file"),
    format: str = typer.Option("json", "--format", "-f", help="Export format: json or csv"),
):
    """Create a snapshot of each resource and delete snapshots the policy does not keep.

    For every configured resource:
    - Create a new snapshot (skipped in dry-run mode)
    - List the resource's snapshots
    - Keep at most one snapshot per hour/day/week/month/year slot
    - Delete everything else (only reported in dry-run mode)

    Examples:
        # Preview what would be deleted
        snaprotate rotate --dry-run

        # Rotate a single volume
        snaprotate rotate --resource vol-0123456789abcdef0

        # Export decisions to CSV
        snaprotate rotate --export rotation.csv --format csv
    """
    from ..providers.ec2 import EC2SnapshotProvider
    from ..rotation.driver import RotationDriver
    from ..rotation.reporter import RotationReporter

    try:
        if format.lower() not in ("json", "csv"):
            console.print(f"✗ Invalid format: {format}. Must be 'json' or 'csv'", style="bold red")
            raise typer.Exit(code=1)

        resources = config.select_resources(resource)
        if not resources:
            console.print("✗ No resources configured", style="bold red")
            console.print("  Add a 'resources' list to your configuration file", style="yellow")
            raise typer.Exit(code=1)

        dry_run = dry_run or config.dry_run

        identity = validate_credentials(config.aws_profile, config.region, config.endpoint_url)
        logger.debug(f"Using account {identity['account_id']}")

        provider = EC2SnapshotProvider(
            region=config.region,
            aws_profile=config.aws_profile,
            endpoint_url=config.endpoint_url,
            default_timeout=config.deletion_timeout,
        )
        driver = RotationDriver(
            provider,
            deletion_timeout=config.deletion_timeout,
            wait_for_snapshot=config.wait_for_snapshot,
        )

        if dry_run:
            console.print("Dry run: no snapshots will be created or deleted", style="yellow")

        results = driver.run(
            [(r.id, r.policy) for r in resources],
            dry_run=dry_run,
            stop_on_error=stop_on_error,
        )

        reporter = RotationReporter()
        reporter.print_results(results, console)

        summary = reporter.generate_summary(results)
        deleted_label = "would delete" if dry_run else "deleted"
        console.print(
            f"\nResources: {summary['total_resources']}  "
            f"Retained: {summary['retained_count']}  "
            f"{deleted_label.capitalize()}: {summary['deleted_count']}  "
            f"Failed deletions: {summary['failed_deletion_count']}"
        )

        if export:
            if format.lower() == "json":
                reporter.export_json(results, export)
                console.print(f"\n✓ Exported results to: [cyan]{export}[/cyan] (JSON)")
            else:
                reporter.export_csv(results, export)
                console.print(f"\n✓ Exported results to: [cyan]{export}[/cyan] (CSV)")

        failed = [r for r in results if not r.succeeded]
        skipped = len(resources) - len(results)
        if failed or skipped:
            console.print(
                f"✗ {len(failed)} resource(s) failed or partially failed"
                + (f", {skipped} skipped" if skipped else ""),
                style="bold red",
            )
            raise typer.Exit(code=3)

        console.print("✓ Rotation complete", style="green")

    except typer.Exit:
        raise
    except (ConfigError, PolicyError) as e:
        console.print(f"✗ Configuration error: {e}", style="bold red")
        raise typer.Exit(code=1)
    except CredentialValidationError as e:
        console.print(f"✗ {e}", style="bold red")
        console.print("  Check your AWS profile or environment credentials", style="yellow")
        raise typer.Exit(code=1)
    except Exception as e:
        console.print(f"✗ Error during rotation: {e}", style="bold red")
        logger.exception("Error in rotate command")
        raise typer.Exit(code=2)


def cli_main():
    """Entry point for console script."""
    app()


if __name__ == "__main__":
    cli_main()
