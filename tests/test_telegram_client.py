from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from outage_notifier.config import settings
from outage_notifier.errors import DeliveryError
from outage_notifier.services import telegram_client


def _response(payload: dict, status_code: int = 200) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload
    return resp


def _mock_client(mock_client_cls, *responses):
    mock_client = AsyncMock()
    mock_client.post = AsyncMock(side_effect=list(responses))
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    mock_client_cls.return_value = mock_client
    return mock_client


@pytest.fixture(autouse=True)
def telegram_settings():
    with patch.object(settings, "telegram_bot_token", "123:abc"), \
            patch.object(settings, "telegram_chat_id", "-100"), \
            patch.object(settings, "delivery_max_attempts", 3), \
            patch("outage_notifier.services.telegram_client.asyncio.sleep", new=AsyncMock()):
        yield


async def test_send_new_message():
    with patch("outage_notifier.services.telegram_client.httpx.AsyncClient") as mock_client_cls:
        client = _mock_client(mock_client_cls, _response({"ok": True, "result": {"message_id": 55}}))
        assert await telegram_client.deliver("hello") == 55

        url = client.post.call_args.args[0]
        assert url.endswith("/bot123:abc/sendMessage")
        assert client.post.call_args.kwargs["json"] == {"chat_id": "-100", "text": "hello"}


async def test_edit_existing_message():
    with patch("outage_notifier.services.telegram_client.httpx.AsyncClient") as mock_client_cls:
        client = _mock_client(mock_client_cls, _response({"ok": True, "result": {"message_id": 55}}))
        assert await telegram_client.deliver("update", message_id=55) == 55
        assert client.post.call_args.args[0].endswith("/editMessageText")
        assert client.post.call_args.kwargs["json"]["message_id"] == 55


async def test_unchanged_edit_counts_as_delivered():
    with patch("outage_notifier.services.telegram_client.httpx.AsyncClient") as mock_client_cls:
        _mock_client(mock_client_cls, _response(
            {"ok": False, "description": "Bad Request: message is not modified"}, 400,
        ))
        assert await telegram_client.deliver("same", message_id=55) == 55


async def test_rejected_edit_falls_back_to_new_message():
    with patch("outage_notifier.services.telegram_client.httpx.AsyncClient") as mock_client_cls:
        client = _mock_client(
            mock_client_cls,
            _response({"ok": False, "description": "Bad Request: message to edit not found"}, 400),
            _response({"ok": True, "result": {"message_id": 56}}),
        )
        assert await telegram_client.deliver("update", message_id=55) == 56
        assert client.post.call_args.args[0].endswith("/sendMessage")


async def test_retries_are_bounded():
    with patch("outage_notifier.services.telegram_client.httpx.AsyncClient") as mock_client_cls:
        error = httpx.ConnectError("unreachable")
        client = _mock_client(mock_client_cls, error, error, error)
        with pytest.raises(DeliveryError, match="3 attempts"):
            await telegram_client.deliver("hello")
        assert client.post.call_count == 3


async def test_recovers_after_transient_failure():
    with patch("outage_notifier.services.telegram_client.httpx.AsyncClient") as mock_client_cls:
        _mock_client(
            mock_client_cls,
            httpx.ReadTimeout("slow"),
            _response({"ok": True, "result": {"message_id": 9}}),
        )
        assert await telegram_client.deliver("hello") == 9


async def test_missing_credentials():
    with patch.object(settings, "telegram_bot_token", ""):
        with pytest.raises(DeliveryError, match="token"):
            await telegram_client.deliver("hello")
