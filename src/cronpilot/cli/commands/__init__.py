"""CLI commands for CronPilot."""

# Import command modules to register them with the app
# These imports have side effects (register commands via @app.command())
from cronpilot.cli.commands import init, jobs, serve, track

__all__ = ["init", "jobs", "serve", "track"]
