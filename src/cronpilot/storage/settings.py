"""Per-job settings backed by the app_settings table."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from .repositories import SettingRepository

if TYPE_CHECKING:
    from .database import Database

logger = logging.getLogger(__name__)


class SettingsStore:
    """Get and set JSON values scoped by job name.

    Keys are stored as ``{job_name}_{key}``. Values written by other tools
    that are not valid JSON are returned as raw strings.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    @staticmethod
    def _prefix(job_name: str) -> str:
        return f"{job_name}_"

    @staticmethod
    def _decode(raw: str) -> Any:
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            return raw

    def get_job_settings(self, job_name: str) -> dict[str, Any]:
        """Get all settings for a job.

        Args:
            job_name: Name of the job.

        Returns:
            Mapping of setting key (without the job prefix) to value.
        """
        prefix = self._prefix(job_name)
        with self._db.session_scope() as session:
            rows = SettingRepository(session).get_by_prefix(prefix)
            return {row.key[len(prefix) :]: self._decode(row.value) for row in rows}

    def get(self, job_name: str, key: str, default: Any = None) -> Any:
        """Get a single setting for a job.

        Args:
            job_name: Name of the job.
            key: Setting key.
            default: Value returned when the setting is absent.

        Returns:
            The decoded value or the default.
        """
        with self._db.session_scope() as session:
            row = SettingRepository(session).get(f"{self._prefix(job_name)}{key}")
            if row is None:
                return default
            return self._decode(row.value)

    def set_job_settings(self, job_name: str, settings: dict[str, Any]) -> None:
        """Save settings for a job.

        Args:
            job_name: Name of the job.
            settings: Mapping of key to JSON-serializable value.
        """
        prefix = self._prefix(job_name)
        with self._db.session_scope() as session:
            repo = SettingRepository(session)
            for key, value in settings.items():
                repo.upsert(f"{prefix}{key}", json.dumps(value))

        logger.info(f"Saved {len(settings)} setting(s) for job: {job_name}")

    def set(self, job_name: str, key: str, value: Any) -> None:
        """Save a single setting for a job."""
        self.set_job_settings(job_name, {key: value})
