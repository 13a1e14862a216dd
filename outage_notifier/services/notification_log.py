"""Append-only delivery history, trimmed to the newest `max_entries` rows per address."""

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from outage_notifier.database import SessionLocal
from outage_notifier.models.notification import NotificationLog
from outage_notifier.schemas.notification import NotificationLogEntry

logger = logging.getLogger(__name__)


class NotificationHistory:
    def __init__(
        self,
        address_key: str,
        session_factory: sessionmaker = SessionLocal,
        max_entries: int = 50,
    ):
        self.address_key = address_key
        self.session_factory = session_factory
        self.max_entries = max_entries

    def record(
        self,
        sent_at: datetime,
        kind: str,
        fingerprint: str = "",
        delivered: bool = False,
        message_id: int | None = None,
        error: str | None = None,
    ) -> None:
        db: Session = self.session_factory()
        try:
            db.add(NotificationLog(
                address_key=self.address_key,
                sent_at=sent_at.astimezone(timezone.utc).replace(tzinfo=None),
                kind=kind,
                fingerprint=fingerprint,
                delivered=delivered,
                message_id=message_id,
                error=error,
            ))
            db.flush()
            self._trim(db)
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error("Failed to record notification history: %s", e)
        finally:
            db.close()

    def _trim(self, db: Session) -> None:
        keep = (
            db.query(NotificationLog.id)
            .filter(NotificationLog.address_key == self.address_key)
            .order_by(NotificationLog.id.desc())
            .limit(self.max_entries)
            .subquery()
        )
        db.query(NotificationLog).filter(
            NotificationLog.address_key == self.address_key,
            NotificationLog.id.not_in(select(keep.c.id)),
        ).delete(synchronize_session=False)

    def recent(self, limit: int = 20) -> list[NotificationLogEntry]:
        db: Session = self.session_factory()
        try:
            rows = (
                db.query(NotificationLog)
                .filter(NotificationLog.address_key == self.address_key)
                .order_by(NotificationLog.id.desc())
                .limit(limit)
                .all()
            )
            return [
                NotificationLogEntry(
                    sent_at=row.sent_at.replace(tzinfo=timezone.utc),
                    kind=row.kind,
                    fingerprint=row.fingerprint or "",
                    delivered=bool(row.delivered),
                    message_id=row.message_id,
                    error=row.error,
                )
                for row in rows
            ]
        finally:
            db.close()
