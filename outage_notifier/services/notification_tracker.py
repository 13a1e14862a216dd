"""Notification state tracker.

Decides, once per polling cycle, whether the latest outage result warrants a
message and which state record to persist. Evaluation order:

1. Outage ended: the previous snapshot had a current scheduled outage (or an
   emergency) that is gone now -> `outage-ended`, state kind `ended`.
2. Active signal: same fingerprint as the stored one and sent less than the
   suppression threshold ago -> duplicate, nothing sent. Otherwise an update
   (emergency / scheduled / combined) is sent.
3. No active signal: nothing sent; the state is persisted only when the
   fingerprint changed.

`decide` is a pure function of (result, previous state, now). The tracker
class wraps it with a StateStore for loading and committing.
"""

import logging
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from outage_notifier.schemas.notification import (
    ActionKind,
    Decision,
    NotificationAction,
    NotificationState,
    StateKind,
)
from outage_notifier.schemas.outage import EmergencyOutage, OutageResult, OutageWindow
from outage_notifier.services.state_store import StateStore

logger = logging.getLogger(__name__)

RESEND_SUPPRESSION = timedelta(minutes=10)


def make_fingerprint(result: OutageResult) -> str:
    """Timing-only summary of a result. Free-text fields are left out on purpose
    so that wording changes on the provider side do not trigger a resend."""
    parts = []
    emergency = result.emergency_outage
    if emergency is not None:
        parts.append(f"E:{emergency.start_timestamp}|{emergency.end_timestamp}")

    window = result.scheduled_window
    if window is not None:
        parts.append(f"Q:{window.queue_group}")
        if window.current_outage:
            parts.append(f"C:{window.current_outage.time_range}")
        if window.next_outage:
            parts.append(f"N:{window.next_outage.time_range}")

    return "|".join(parts)


def is_stale(state: NotificationState, now: datetime, tz: ZoneInfo) -> bool:
    """True when the state was last sent (or written) before today's local date."""
    reference = state.sent_at or state.updated_at
    return reference.astimezone(tz).date() < now.astimezone(tz).date()


def _update_kind(result: OutageResult) -> ActionKind:
    scheduled = result.scheduled_window is not None and result.scheduled_window.is_active
    if result.emergency_outage is not None and scheduled:
        return ActionKind.COMBINED_UPDATE
    if result.emergency_outage is not None:
        return ActionKind.EMERGENCY_UPDATE
    return ActionKind.SCHEDULED_UPDATE


def _ended_transition(
    result: OutageResult, previous: NotificationState | None, fingerprint: str,
) -> tuple[OutageWindow | None, EmergencyOutage | None] | None:
    if previous is None or previous.last_snapshot is None:
        return None
    if previous.kind is StateKind.ENDED and previous.fingerprint == fingerprint:
        return None

    before = previous.last_snapshot
    passed_outage = None
    if before.current_outage is not None and result.current_outage is None:
        group_before = before.scheduled_window.queue_group
        group_now = result.scheduled_window.queue_group if result.scheduled_window else None
        if group_now in (None, group_before):
            passed_outage = before.current_outage

    passed_emergency = None
    if before.emergency_outage is not None and result.emergency_outage is None:
        passed_emergency = before.emergency_outage

    if passed_outage is None and passed_emergency is None:
        return None
    return passed_outage, passed_emergency


def decide(
    result: OutageResult,
    previous: NotificationState | None,
    now: datetime,
    tz: ZoneInfo,
    suppression: timedelta = RESEND_SUPPRESSION,
) -> Decision:
    if previous is not None and is_stale(previous, now, tz):
        logger.info("Discarding notification state from a previous day")
        previous = None

    fingerprint = make_fingerprint(result)
    message_id = previous.message_id if previous else None

    ended = _ended_transition(result, previous, fingerprint)
    if ended is not None:
        passed_outage, passed_emergency = ended
        logger.info("Outage ended: %s", passed_outage.time_range if passed_outage else "emergency")
        return Decision(
            action=NotificationAction(
                kind=ActionKind.OUTAGE_ENDED,
                fingerprint=fingerprint,
                result=result,
                passed_outage=passed_outage,
                passed_emergency=passed_emergency,
            ),
            # Ended messages are posted fresh; later updates edit this one.
            state=NotificationState(
                fingerprint=fingerprint,
                sent_at=now,
                updated_at=now,
                kind=StateKind.ENDED,
                last_snapshot=result,
            ),
        )

    if result.has_active_signal:
        if (
            previous is not None
            and previous.fingerprint == fingerprint
            and previous.sent_at is not None
            and now - previous.sent_at < suppression
        ):
            logger.info("Skipping duplicate notification (sent at %s)", previous.sent_at.isoformat())
            return Decision(
                action=NotificationAction(
                    kind=ActionKind.NONE, fingerprint=fingerprint, result=result, reason="duplicate",
                ),
                state=previous.model_copy(update={"updated_at": now, "last_snapshot": result}),
            )

        return Decision(
            action=NotificationAction(kind=_update_kind(result), fingerprint=fingerprint, result=result),
            state=NotificationState(
                fingerprint=fingerprint,
                sent_at=now,
                updated_at=now,
                kind=StateKind.UPDATE,
                last_snapshot=result,
                message_id=message_id,
            ),
        )

    changed = previous is None or previous.fingerprint != fingerprint
    if changed:
        state = NotificationState(
            fingerprint=fingerprint,
            sent_at=previous.sent_at if previous else None,
            updated_at=now,
            kind=StateKind.NONE,
            last_snapshot=result,
            message_id=message_id,
        )
    else:
        state = previous
    return Decision(
        action=NotificationAction(
            kind=ActionKind.NONE, fingerprint=fingerprint, result=result, reason="no-signal",
        ),
        state=state,
        persist=changed,
    )


class NotificationTracker:
    def __init__(
        self,
        store: StateStore,
        tz: ZoneInfo,
        suppression: timedelta = RESEND_SUPPRESSION,
    ):
        self.store = store
        self.tz = tz
        self.suppression = suppression

    def evaluate(self, result: OutageResult, now: datetime) -> Decision:
        return decide(result, self.store.load(), now, self.tz, self.suppression)

    def commit(self, decision: Decision) -> None:
        if decision.persist:
            self.store.save(decision.state)
