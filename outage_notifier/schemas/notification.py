from datetime import datetime
from enum import Enum

from pydantic import BaseModel

from outage_notifier.schemas.outage import EmergencyOutage, OutageResult, OutageWindow


class ActionKind(str, Enum):
    EMERGENCY_UPDATE = "emergency-update"
    SCHEDULED_UPDATE = "scheduled-update"
    COMBINED_UPDATE = "combined-update"
    OUTAGE_ENDED = "outage-ended"
    NONE = "none"


class StateKind(str, Enum):
    UPDATE = "update"
    ENDED = "ended"
    NONE = "none"


class NotificationState(BaseModel):
    fingerprint: str = ""
    sent_at: datetime | None = None
    updated_at: datetime
    kind: StateKind = StateKind.NONE
    last_snapshot: OutageResult | None = None
    # Telegram message edited in place by later updates of the same day.
    message_id: int | None = None


class NotificationAction(BaseModel):
    kind: ActionKind
    fingerprint: str
    result: OutageResult
    reason: str = ""  # why nothing is sent: "duplicate", "no-signal"
    passed_outage: OutageWindow | None = None
    passed_emergency: EmergencyOutage | None = None

    @property
    def should_send(self) -> bool:
        return self.kind is not ActionKind.NONE

    @property
    def queue_group(self) -> str | None:
        window = self.result.scheduled_window
        return window.queue_group if window else None

    @property
    def next_outage(self) -> OutageWindow | None:
        return self.result.next_outage


class Decision(BaseModel):
    """Tracker output: what to send and which state to persist afterwards."""
    action: NotificationAction
    state: NotificationState
    persist: bool = True


class NotificationLogEntry(BaseModel):
    sent_at: datetime
    kind: str
    fingerprint: str = ""
    delivered: bool = False
    message_id: int | None = None
    error: str | None = None
