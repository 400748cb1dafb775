"""Job commands for CronPilot CLI."""

import asyncio

import typer
from rich.table import Table

from cronpilot.cli import app, console
from cronpilot.cli.utils import exit_with_error, parse_params, setup_logging
from cronpilot.engine import ConfigError, HandlerRegistry, JobOutcome
from cronpilot.jobs import load_job_definitions
from cronpilot.scheduler import is_valid_cron


@app.command("jobs")
def list_jobs(
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """List configured jobs.

    Shows the built-in jobs with config file overrides applied, and flags
    jobs the scheduler would reject.
    """
    jobs = load_job_definitions()

    rows = [
        {
            "name": job.name,
            "schedule": job.schedule,
            "handler": job.handler,
            "enabled": job.enabled,
            "description": job.description,
            "valid": is_valid_cron(job.schedule) and HandlerRegistry.has_handler(job.handler),
        }
        for job in jobs
    ]

    if json_output:
        console.print_json(data={"jobs": rows})
        return

    table = Table(title="Jobs")
    table.add_column("Name", style="cyan")
    table.add_column("Schedule")
    table.add_column("Handler")
    table.add_column("Enabled")
    table.add_column("Description")

    for row in rows:
        schedule = row["schedule"] if row["valid"] else f"[red]{row['schedule']} (invalid)[/]"
        enabled = "[green]yes[/]" if row["enabled"] else "[dim]no[/]"
        table.add_row(row["name"], schedule, row["handler"], enabled, row["description"])

    console.print(table)


def _print_outcome(outcome: JobOutcome) -> None:
    if outcome.status == "success":
        console.print(f"[green]✓[/] {outcome.job_name} completed in {outcome.duration_ms}ms")
        if isinstance(outcome.result, dict):
            for key, value in outcome.result.items():
                console.print(f"  [dim]{key}:[/] {value}")
    elif outcome.status == "skipped":
        console.print(f"[yellow]-[/] {outcome.job_name} skipped: {outcome.error}")
    else:
        category = outcome.error_category.value if outcome.error_category else "unknown"
        console.print(f"[red]✗[/] {outcome.job_name} failed ({category}): {outcome.error}")


@app.command("run-job")
def run_job(
    name: str = typer.Argument(..., help="Job name"),
    params: list[str] = typer.Option(
        [],
        "--param",
        "-p",
        help="Handler parameter as key=value (can be used multiple times)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output the outcome as JSON",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug logging",
    ),
) -> None:
    """Run a job once, now.

    The run uses the same guarded runner as the scheduler.

    Examples:
        cronpilot run-job youtube-comments
        cronpilot run-job youtube-comments --param page_size=10
        cronpilot run-job content-drafts --json
    """
    from cronpilot.services import build_scheduler, build_services

    setup_logging(debug)
    extra = parse_params(params)

    try:
        services = build_services()
        scheduler = build_scheduler(services)
    except ConfigError as e:
        exit_with_error(e)

    if name not in scheduler.list():
        console.print(f"[red]Error:[/] Job not found: {name}")
        console.print(f"Available jobs: {', '.join(scheduler.list()) or 'none'}")
        raise typer.Exit(1)

    outcome = asyncio.run(scheduler.run_now(name, params=extra))
    services.db.dispose()
    if outcome is None:
        raise typer.Exit(1)

    if json_output:
        console.print_json(data={**outcome.to_dict(), "result": outcome.result})
    else:
        _print_outcome(outcome)

    if outcome.status == "failed":
        raise typer.Exit(1)
