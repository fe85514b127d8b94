"""
Notification settings model.

Singleton per installation, persisted as JSON and read on every
background tick.
"""

import re
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

from wallet_monitor.config.constants import DEFAULT_MONITOR_FREQUENCY_MS


TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class NotificationType(StrEnum):
    """Which balance changes the user wants to hear about."""

    INCREASE = "increase"
    DECREASE = "decrease"
    ALL = "all"


class QuietHours(BaseModel):
    """
    Quiet hours window in HH:MM.

    Stored and validated but not applied by the background check:
    notifications are delivered around the clock.
    """

    enabled: bool = False
    start: str = "22:00"
    end: str = "08:00"

    @field_validator("start", "end")
    @classmethod
    def validate_time(cls, v: str) -> str:
        """Validate HH:MM format."""
        if not TIME_PATTERN.match(v):
            raise ValueError("Expected time in HH:MM format")
        return v


class NotificationSettings(BaseModel):
    """Balance notification settings."""

    enabled: bool = True
    frequency: int = Field(
        default=DEFAULT_MONITOR_FREQUENCY_MS,
        gt=0,
        description="Background check interval in milliseconds",
    )
    types: set[NotificationType] = Field(
        default_factory=lambda: {NotificationType.ALL}
    )
    quiet_hours: QuietHours = Field(default_factory=QuietHours)

    def accepts_all(self) -> bool:
        """True when every change type should be delivered."""
        return NotificationType.ALL in self.types

    def merged(self, partial: dict) -> "NotificationSettings":
        """
        Return a validated copy with partial values applied.

        Args:
            partial: Subset of fields to override

        Returns:
            New NotificationSettings instance
        """
        data = self.model_dump()
        data.update(partial)
        return NotificationSettings.model_validate(data)
