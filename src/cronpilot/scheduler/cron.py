"""Cron expression parsing and APScheduler trigger construction."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from apscheduler.triggers.cron import CronTrigger as APCronTrigger

if TYPE_CHECKING:
    from datetime import datetime, tzinfo

# (name, minimum, maximum, maximum covered by "*")
FIELD_SPECS: tuple[tuple[str, int, int, int], ...] = (
    ("minute", 0, 59, 59),
    ("hour", 0, 23, 23),
    ("day", 1, 31, 31),
    ("month", 1, 12, 12),
    ("day_of_week", 0, 7, 6),  # 0 and 7 are both Sunday
)

DAY_NAMES = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")

_STEP_RE = re.compile(r"^\*/(\d+)$")
_LITERAL_RE = re.compile(r"^\d+$")


class InvalidCronExpression(ValueError):
    """Raised when a cron expression cannot be parsed."""


@dataclass(frozen=True)
class CronField:
    """A single parsed cron field."""

    name: str
    raw: str
    values: frozenset[int]

    @property
    def is_wildcard(self) -> bool:
        return self.raw == "*"


def _parse_field(raw: str, name: str, low: int, high: int, star_high: int) -> CronField:
    if raw == "*":
        return CronField(name, raw, frozenset(range(low, star_high + 1)))

    if match := _STEP_RE.match(raw):
        step = int(match.group(1))
        if not 1 <= step <= high:
            msg = f"Step {step} out of range for {name} (1-{high})"
            raise InvalidCronExpression(msg)
        return CronField(name, raw, frozenset(range(low, star_high + 1, step)))

    if _LITERAL_RE.match(raw):
        value = int(raw)
        if not low <= value <= high:
            msg = f"Value {value} out of range for {name} ({low}-{high})"
            raise InvalidCronExpression(msg)
        if name == "day_of_week" and value == 7:
            value = 0
        return CronField(name, raw, frozenset({value}))

    msg = f"Unsupported syntax '{raw}' for {name}. Use '*', a number, or '*/N'"
    raise InvalidCronExpression(msg)


class CronExpression:
    """A validated 5-field cron expression.

    Supports ``*``, integer literals and ``*/N`` steps in each field of
    ``minute hour day-of-month month day-of-week``. A timestamp matches only
    when all five fields match.
    """

    def __init__(self, expression: str, fields: tuple[CronField, ...]) -> None:
        self.expression = expression
        self.minute, self.hour, self.day, self.month, self.day_of_week = fields

    @classmethod
    def parse(cls, expression: str) -> CronExpression:
        """Parse a cron expression.

        Args:
            expression: Cron expression like ``*/5 * * * *``.

        Returns:
            Parsed CronExpression.

        Raises:
            InvalidCronExpression: If the expression is malformed.
        """
        if not isinstance(expression, str):
            raise InvalidCronExpression(f"Cron expression must be a string, got {expression!r}")

        parts = expression.split()
        if len(parts) != 5:
            msg = f"Invalid cron expression: {expression!r}. Expected 5 fields, got {len(parts)}"
            raise InvalidCronExpression(msg)

        fields = tuple(
            _parse_field(raw, name, low, high, star_high)
            for raw, (name, low, high, star_high) in zip(parts, FIELD_SPECS, strict=True)
        )
        return cls(" ".join(parts), fields)

    @property
    def fields(self) -> tuple[CronField, ...]:
        return (self.minute, self.hour, self.day, self.month, self.day_of_week)

    def matches(self, moment: datetime) -> bool:
        """Check whether a timestamp is a tick of this expression.

        Args:
            moment: The timestamp to check (seconds are ignored).

        Returns:
            True if every field matches.
        """
        # datetime.weekday() is Monday=0; cron is Sunday=0
        weekday = (moment.weekday() + 1) % 7
        return (
            moment.minute in self.minute.values
            and moment.hour in self.hour.values
            and moment.day in self.day.values
            and moment.month in self.month.values
            and weekday in self.day_of_week.values
        )

    def to_trigger(self, timezone: tzinfo | str | None = None) -> APCronTrigger:
        """Build the equivalent APScheduler trigger.

        Day-of-week values are passed as names because APScheduler numbers
        weekdays from Monday.

        Args:
            timezone: Timezone for the trigger (None for the scheduler default).

        Returns:
            APScheduler CronTrigger instance.
        """
        if self.day_of_week.is_wildcard:
            day_of_week = "*"
        else:
            day_of_week = ",".join(DAY_NAMES[v] for v in sorted(self.day_of_week.values))

        return APCronTrigger(
            minute=self.minute.raw,
            hour=self.hour.raw,
            day=self.day.raw,
            month=self.month.raw,
            day_of_week=day_of_week,
            timezone=timezone,
        )

    def __str__(self) -> str:
        return self.expression

    def __repr__(self) -> str:
        return f"CronExpression({self.expression!r})"


def is_valid_cron(expression: str) -> bool:
    """Check if a cron expression is valid.

    Args:
        expression: The expression to check.

    Returns:
        True if the expression parses.
    """
    try:
        CronExpression.parse(expression)
    except InvalidCronExpression:
        return False
    return True
