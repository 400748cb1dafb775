"""CronPilot CLI interface."""

import typer
from rich.console import Console

# CLI App
app = typer.Typer(
    name="cronpilot",
    help="Scheduled jobs with idempotent YouTube comment ingestion.",
    no_args_is_help=True,
)

# Console for rich output
console = Console()

# Import commands to register them
from cronpilot.cli.commands import init, jobs, serve, track  # noqa: E402, F401


@app.command()
def version() -> None:
    """Show CronPilot version."""
    from cronpilot import __version__

    console.print(f"CronPilot v{__version__}")


if __name__ == "__main__":
    app()
