"""CronPilot: cron-scheduled automation jobs with idempotent comment ingestion."""

__version__ = "0.1.0"
