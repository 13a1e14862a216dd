"""Provider status document source.

Posts the address form to the provider's AJAX endpoint, or reads a captured
JSON file when `settings.source_file` is set. Session bootstrapping (cookies,
CSRF) is outside this module; the endpoint is expected to answer directly.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import httpx

from outage_notifier.config import settings

logger = logging.getLogger(__name__)

HEADERS = {
    "X-Requested-With": "XMLHttpRequest",
    "User-Agent": "(outage-notifier, outage-notifier@example.com)",
}


def build_form(city: str, street: str, now: datetime) -> dict[str, str]:
    return {
        "method": "getHomeNum",
        "data[0][name]": "city",
        "data[0][value]": city,
        "data[1][name]": "street",
        "data[1][value]": street,
        "data[2][name]": "updateFact",
        "data[2][value]": now.strftime("%d.%m.%Y, %H:%M:%S"),
    }


def load_document_file(path: str) -> dict:
    return json.loads(Path(path).read_text(encoding="utf-8"))


async def fetch_document() -> dict:
    """Fetch the raw status document for the configured address."""
    if settings.source_file:
        logger.info("Loading outage document from %s", settings.source_file)
        return load_document_file(settings.source_file)

    now = datetime.now(ZoneInfo(settings.timezone))
    form = build_form(settings.city, settings.street, now)
    try:
        async with httpx.AsyncClient(headers=HEADERS, timeout=settings.source_timeout_seconds) as client:
            resp = await client.post(settings.source_url, data=form)
            resp.raise_for_status()
            data = resp.json()
    except Exception as e:
        logger.warning("Outage document fetch failed: %s", e)
        raise

    logger.info("Fetched outage document (%d addresses)", len(data.get("data") or {}) if isinstance(data, dict) else 0)
    return data
