"""Polling cycle: fetch -> check -> decide -> deliver -> persist.

Collaborators are injected so the cycle can run against in-memory fakes.
Cycles are serialized with a non-blocking lock: a trigger that arrives while
another cycle is running is skipped rather than queued, which keeps the
state record to one writer.
"""

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable
from zoneinfo import ZoneInfo

from outage_notifier.config import Settings, settings as default_settings
from outage_notifier.errors import DeliveryError
from outage_notifier.schemas.document import parse_document
from outage_notifier.schemas.notification import ActionKind, Decision
from outage_notifier.schemas.outage import OutageResult, PlannedOutages
from outage_notifier.services import document_source, messages, outage_classifier, telegram_client
from outage_notifier.services.notification_log import NotificationHistory
from outage_notifier.services.notification_tracker import NotificationTracker
from outage_notifier.services.outage_check import check_outage, check_planned_outages
from outage_notifier.services.schedule_decoder import MergePolicy
from outage_notifier.services.state_store import SqlStateStore, StateStore

logger = logging.getLogger(__name__)

FetchFn = Callable[[], Awaitable[dict]]
DeliverFn = Callable[[str, int | None], Awaitable[int]]

DAILY_SUMMARY_KIND = "daily-summary"


class Monitor:
    def __init__(
        self,
        store: StateStore,
        fetch: FetchFn = document_source.fetch_document,
        deliver: DeliverFn = telegram_client.deliver,
        history: NotificationHistory | None = None,
        config: Settings = default_settings,
    ):
        self.store = store
        self.fetch = fetch
        self.deliver = deliver
        self.history = history
        self.config = config
        self.tz = ZoneInfo(config.timezone)
        # Unknown policy names raise here, not on the first poll.
        self.policy = outage_classifier.get_policy(config.emergency_policy)
        self.merge_policy = MergePolicy(config.merge_policy)
        self.tracker = NotificationTracker(
            store, self.tz, timedelta(minutes=config.resend_suppression_minutes),
        )
        self.last_result: OutageResult | None = None
        self.last_decision: Decision | None = None
        # Skip-if-busy marker shared by scheduler threads and the API loop;
        # only ever acquired non-blocking, so nothing waits on it.
        self._lock = threading.Lock()

    async def run_cycle(self, now: datetime | None = None) -> Decision | None:
        """Run one polling cycle. Returns None when another cycle holds the lock.

        MissingDataError propagates before any state is touched.
        """
        if not self._lock.acquire(blocking=False):
            logger.warning("Polling cycle already running, skipping trigger")
            return None
        try:
            return await self._cycle(now or datetime.now(timezone.utc))
        finally:
            self._lock.release()

    async def _cycle(self, now: datetime) -> Decision:
        logger.info("Starting outage check")
        document = parse_document(await self.fetch())
        result = check_outage(
            document, self.config.house, now, self.tz, self.policy, self.merge_policy,
        )
        self.last_result = result

        decision = self.tracker.evaluate(result, now)
        action = decision.action
        if not action.should_send:
            logger.info("No notification (%s)", action.reason)
            self.tracker.commit(decision)
            self.last_decision = decision
            return decision

        text = messages.render_action(action, now, self.tz)
        edit_id = decision.state.message_id if action.kind is not ActionKind.OUTAGE_ENDED else None
        try:
            message_id = await self.deliver(text, edit_id)
        except DeliveryError as e:
            # State stays as it was so the next cycle decides (and sends) again.
            logger.error("Notification not sent: %s", e)
            self._record(now, action.kind.value, action.fingerprint, delivered=False, error=str(e))
            self.last_decision = decision
            return decision

        logger.info("Notification sent: %s (message %s)", action.kind.value, message_id)
        decision.state.message_id = message_id
        self.tracker.commit(decision)
        self._record(now, action.kind.value, action.fingerprint, delivered=True, message_id=message_id)
        self.last_decision = decision
        return decision

    async def send_daily_summary(self, now: datetime | None = None) -> PlannedOutages:
        """Decode the whole day and post a summary; does not touch the tracker state."""
        now = now or datetime.now(timezone.utc)
        document = parse_document(await self.fetch())
        planned = check_planned_outages(
            document, self.config.house, now, self.tz, self.policy, self.merge_policy,
        )
        text = messages.render_daily_summary(planned, now, self.tz)
        try:
            message_id = await self.deliver(text, None)
        except DeliveryError as e:
            logger.error("Daily summary not sent: %s", e)
            self._record(now, DAILY_SUMMARY_KIND, delivered=False, error=str(e))
            raise
        logger.info("Daily summary sent (%s)", planned.schedule_description or "no planned outages")
        self._record(now, DAILY_SUMMARY_KIND, delivered=True, message_id=message_id)
        return planned

    def _record(self, now: datetime, kind: str, fingerprint: str = "", **fields) -> None:
        if self.history is not None:
            self.history.record(now, kind, fingerprint, **fields)


_monitor: Monitor | None = None


def get_monitor() -> Monitor:
    global _monitor
    if _monitor is None:
        _monitor = Monitor(
            store=SqlStateStore(default_settings.house),
            history=NotificationHistory(
                default_settings.house, max_entries=default_settings.history_max_entries,
            ),
        )
    return _monitor
