"""
Telegram notification sink.

Delivers notifications as Telegram messages to one configured chat.
"""

import asyncio
from typing import Any

from aiogram import Bot
from aiogram.exceptions import (
    TelegramAPIError,
    TelegramBadRequest,
    TelegramForbiddenError,
)
from loguru import logger

from wallet_monitor.config.constants import TELEGRAM_TIMEOUT
from wallet_monitor.utils.exceptions import NotificationPermissionError
from wallet_monitor.utils.formatters import escape_md


class TelegramNotificationSink:
    """
    Telegram delivery channel.

    - is_supported: bot token is configured and valid (getMe)
    - request_permission: target chat is reachable (getChat)
    - schedule_local_notification: sends the message right away
    """

    def __init__(self, bot: Bot | None, chat_id: int | None) -> None:
        """
        Initialize sink.

        Args:
            bot: aiogram Bot, None when no token is configured
            chat_id: Target chat id
        """
        self.bot = bot
        self.chat_id = chat_id

    async def is_supported(self) -> bool:
        if self.bot is None or self.chat_id is None:
            return False
        try:
            await asyncio.wait_for(self.bot.get_me(), timeout=TELEGRAM_TIMEOUT)
            return True
        except (TelegramAPIError, TimeoutError) as e:
            logger.warning(f"Telegram bot unavailable: {e}")
            return False

    async def request_permission(self) -> bool:
        if self.bot is None or self.chat_id is None:
            return False
        try:
            await asyncio.wait_for(self.bot.get_chat(self.chat_id), timeout=TELEGRAM_TIMEOUT)
            return True
        except (TelegramForbiddenError, TelegramBadRequest) as e:
            logger.warning(f"Notification chat {self.chat_id} not reachable: {e}")
            return False

    async def schedule_local_notification(
        self, title: str, body: str, data: dict[str, Any]
    ) -> None:
        """
        Send notification message.

        Raises:
            NotificationPermissionError: If the bot was blocked or removed from the chat
        """
        if self.bot is None or self.chat_id is None:
            raise NotificationPermissionError("Telegram notifications are not configured")

        text = f"*{escape_md(title)}*\n{escape_md(body)}"
        try:
            await asyncio.wait_for(
                self.bot.send_message(
                    chat_id=self.chat_id,
                    text=text,
                    parse_mode="Markdown",
                ),
                timeout=TELEGRAM_TIMEOUT,
            )
        except TelegramForbiddenError as e:
            raise NotificationPermissionError(f"Bot blocked in chat {self.chat_id}") from e

        logger.debug(f"Telegram notification delivered ({data.get('type', 'unknown')})")

    async def close(self) -> None:
        """Close bot HTTP session."""
        if self.bot is not None:
            await self.bot.session.close()
