"""Persistence for the single NotificationState record of a monitored address."""

import logging
from datetime import datetime, timezone
from typing import Protocol

from pydantic import ValidationError
from sqlalchemy.orm import Session, sessionmaker

from outage_notifier.database import SessionLocal
from outage_notifier.models.notification import NotificationStateRecord
from outage_notifier.schemas.notification import NotificationState

logger = logging.getLogger(__name__)


class StateStore(Protocol):
    def load(self) -> NotificationState | None: ...

    def save(self, state: NotificationState) -> None: ...


class InMemoryStateStore:
    def __init__(self, state: NotificationState | None = None):
        self.state = state
        self.saves = 0

    def load(self) -> NotificationState | None:
        return self.state

    def save(self, state: NotificationState) -> None:
        self.state = state
        self.saves += 1


class SqlStateStore:
    """One `notification_state` row per address key, rewritten in one transaction per save."""

    def __init__(self, address_key: str, session_factory: sessionmaker = SessionLocal):
        self.address_key = address_key
        self.session_factory = session_factory

    def load(self) -> NotificationState | None:
        db: Session = self.session_factory()
        try:
            row = db.query(NotificationStateRecord).filter_by(address_key=self.address_key).first()
            if row is None or not row.state_json:
                return None
            try:
                return NotificationState.model_validate_json(row.state_json)
            except ValidationError as e:
                # Corrupt state costs at most one duplicate message.
                logger.warning("Ignoring unreadable notification state for %s: %s",
                               self.address_key, e.errors()[0].get("msg") if e.errors() else e)
                return None
        finally:
            db.close()

    def save(self, state: NotificationState) -> None:
        db: Session = self.session_factory()
        try:
            row = db.query(NotificationStateRecord).filter_by(address_key=self.address_key).first()
            if row is None:
                row = NotificationStateRecord(address_key=self.address_key)
                db.add(row)
            row.fingerprint = state.fingerprint
            row.kind = state.kind.value
            row.sent_at = _naive_utc(state.sent_at)
            row.updated_at = _naive_utc(state.updated_at)
            row.message_id = state.message_id
            row.state_json = state.model_dump_json()
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error("Failed to persist notification state: %s", e)
            raise
        finally:
            db.close()


def _naive_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return value.astimezone(timezone.utc).replace(tzinfo=None)
