"""
Notification settings repository.
"""

from loguru import logger
from pydantic import ValidationError

from wallet_monitor.config.constants import NOTIFICATION_SETTINGS_KEY
from wallet_monitor.models.notification_settings import NotificationSettings
from wallet_monitor.repositories.base import BaseRepository


class NotificationSettingsRepository(BaseRepository):
    """Persists the single NotificationSettings document."""

    async def get(self) -> NotificationSettings:
        """
        Load settings merged over defaults.

        Corrupt or invalid stored values fall back to defaults.

        Returns:
            NotificationSettings
        """
        try:
            stored = await self.load_json(NOTIFICATION_SETTINGS_KEY)
        except ValueError as e:
            logger.error(f"Corrupt notification settings, using defaults: {e}")
            return NotificationSettings()

        if not stored:
            return NotificationSettings()

        if not isinstance(stored, dict):
            logger.error("Notification settings are not a JSON object, using defaults")
            return NotificationSettings()

        try:
            return NotificationSettings().merged(stored)
        except ValidationError as e:
            logger.error(f"Invalid notification settings, using defaults: {e}")
            return NotificationSettings()

    async def save(self, notification_settings: NotificationSettings) -> None:
        """
        Persist settings.

        Args:
            notification_settings: Settings to store
        """
        await self.store.set(
            NOTIFICATION_SETTINGS_KEY,
            notification_settings.model_dump_json(),
        )
