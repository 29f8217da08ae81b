"""Telegram admin log.

Sends operational events (burner created, funded, swept, launch results) to
an admin chat. Uses a singleton bot shared by all notifier instances. Without
a bot token or chat id the events are only logged.
"""

import asyncio
import html
import logging
from typing import Optional

from aiogram import Bot
from aiogram.exceptions import TelegramBadRequest, TelegramForbiddenError

from launchproxy.config import get_settings

logger = logging.getLogger(__name__)

# Singleton bot instance
_bot_instance: Optional[Bot] = None
_bot_lock = asyncio.Lock()


async def get_bot() -> Optional[Bot]:
    """Get or create the bot instance for admin logs."""
    global _bot_instance

    if _bot_instance is not None:
        return _bot_instance

    async with _bot_lock:
        # Double-check after acquiring lock
        if _bot_instance is not None:
            return _bot_instance

        settings = get_settings()
        if not settings.telegram_bot_token:
            return None

        _bot_instance = Bot(token=settings.telegram_bot_token)
        return _bot_instance


async def close_bot() -> None:
    """Close the bot session (call on shutdown)."""
    global _bot_instance
    if _bot_instance is not None:
        await _bot_instance.session.close()
        _bot_instance = None


class AdminNotifier:
    """Best-effort admin log sink."""

    def __init__(self, bot: Optional[Bot] = None, chat_id: Optional[int] = None):
        self._bot = bot
        self.chat_id = chat_id if chat_id is not None else get_settings().admin_chat_id

    async def _get_bot(self) -> Optional[Bot]:
        if self._bot:
            return self._bot
        return await get_bot()

    async def send(self, event: str, details: dict) -> bool:
        """Send one admin log line.

        Returns:
            True if the message reached Telegram
        """
        lines = [f"<b>{html.escape(event)}</b>"]
        lines += [f"{html.escape(str(k))}: <code>{html.escape(str(v))}</code>" for k, v in details.items()]
        text = "\n".join(lines)

        bot = await self._get_bot()
        if not bot or not self.chat_id:
            logger.info(f"[admin] {event}: {details}")
            return False

        try:
            await bot.send_message(chat_id=self.chat_id, text=text, parse_mode="HTML")
            return True
        except TelegramForbiddenError:
            logger.warning(f"Admin chat {self.chat_id} blocked the bot")
            return False
        except TelegramBadRequest as e:
            logger.error(f"Bad request sending admin log: {e}")
            return False
        except Exception as e:
            logger.error(f"Failed to send admin log: {e}")
            return False
