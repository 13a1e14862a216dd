"""Telegram Bot API delivery with a bounded retry policy.

An existing message id is edited in place (`editMessageText`); otherwise a new
message is posted. When an edit is rejected the next attempt posts a fresh
message instead. After `delivery_max_attempts` failures DeliveryError is raised
and the caller decides what to do with the cycle.
"""

import asyncio
import logging

import httpx

from outage_notifier.config import settings
from outage_notifier.errors import DeliveryError

logger = logging.getLogger(__name__)

# Telegram answers 400 with this when the edited text is identical.
_NOT_MODIFIED = "message is not modified"


async def deliver(text: str, message_id: int | None = None) -> int:
    """Send or edit a message and return its id."""
    if not settings.telegram_bot_token:
        raise DeliveryError("Missing telegram bot token")
    if not settings.telegram_chat_id:
        raise DeliveryError("Missing telegram chat id")

    attempts = max(1, settings.delivery_max_attempts)
    last_error = ""
    async with httpx.AsyncClient(timeout=15) as client:
        for attempt in range(1, attempts + 1):
            try:
                return await _post(client, text, message_id)
            except _EditRejected as e:
                logger.warning("Edit of message %s rejected (%s); posting a new one", message_id, e)
                last_error = str(e)
                message_id = None
            except (httpx.HTTPError, _ApiError) as e:
                logger.warning("Telegram delivery attempt %d/%d failed: %s", attempt, attempts, e)
                last_error = str(e)
            if attempt < attempts:
                await asyncio.sleep(settings.delivery_retry_backoff_seconds * attempt)

    raise DeliveryError(f"Notification not sent after {attempts} attempts: {last_error}")


class _ApiError(Exception):
    pass


class _EditRejected(_ApiError):
    pass


async def _post(client: httpx.AsyncClient, text: str, message_id: int | None) -> int:
    method = "editMessageText" if message_id else "sendMessage"
    payload: dict = {"chat_id": settings.telegram_chat_id, "text": text}
    if message_id:
        payload["message_id"] = message_id

    url = f"{settings.telegram_api_url}/bot{settings.telegram_bot_token}/{method}"
    resp = await client.post(url, json=payload)
    try:
        data = resp.json()
    except ValueError:
        resp.raise_for_status()
        raise _ApiError(f"Unexpected Telegram response: {resp.text[:200]}")

    if data.get("ok"):
        result = data.get("result")
        # editMessageText may answer `true` instead of the message object.
        if isinstance(result, dict) and "message_id" in result:
            return int(result["message_id"])
        if message_id:
            return int(message_id)
        raise _ApiError("Telegram response carries no message id")

    description = str(data.get("description", resp.status_code))
    if message_id and _NOT_MODIFIED in description:
        return int(message_id)
    if message_id:
        raise _EditRejected(description)
    raise _ApiError(description)
