from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from outage_notifier.database import Base


class NotificationStateRecord(Base):
    """Last decision per monitored address; the full state lives in state_json."""
    __tablename__ = "notification_state"

    id = Column(Integer, primary_key=True, autoincrement=True)
    address_key = Column(String(50), nullable=False, unique=True, index=True)
    fingerprint = Column(String(255), default="")
    kind = Column(String(10), default="none")  # update, ended, none
    sent_at = Column(DateTime)  # UTC
    updated_at = Column(DateTime)  # UTC
    message_id = Column(Integer)
    state_json = Column(Text)
    created_at = Column(DateTime, server_default=func.now())


class NotificationLog(Base):
    """Delivery history: one row per attempted notification, trimmed to the newest entries."""
    __tablename__ = "notification_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    address_key = Column(String(50), nullable=False, index=True)
    sent_at = Column(DateTime, nullable=False)  # UTC
    kind = Column(String(20), nullable=False)  # emergency-update, outage-ended, daily-summary, ...
    fingerprint = Column(String(255), default="")
    delivered = Column(Boolean, default=False)
    message_id = Column(Integer)
    error = Column(Text)
    created_at = Column(DateTime, server_default=func.now())
