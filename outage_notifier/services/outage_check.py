"""Outage check: classifier + decoder + selector for one address."""

import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from outage_notifier.schemas.document import OutageDocument
from outage_notifier.schemas.outage import OutageResult, PlannedOutages
from outage_notifier.services import outage_classifier, schedule_decoder, window_selector
from outage_notifier.services.outage_classifier import EmergencyPolicy
from outage_notifier.services.schedule_decoder import MergePolicy

logger = logging.getLogger(__name__)


def check_outage(
    document: OutageDocument,
    house: str,
    now: datetime,
    tz: ZoneInfo,
    policy: EmergencyPolicy = outage_classifier.any_field,
    merge_policy: MergePolicy = MergePolicy.STANDARD,
) -> OutageResult:
    """Evaluate emergency and scheduled signals independently and combine them."""
    status = document.address(house)
    emergency = outage_classifier.classify(status, policy)
    if emergency is not None:
        logger.info("Emergency outage asserted: %s (%s - %s)",
                    emergency.subtype or "-", emergency.start_timestamp or "?",
                    emergency.end_timestamp or "?")

    scheduled = None
    queue_group = status.queue_group
    if queue_group and document.has_schedule_data:
        decoded = schedule_decoder.decode_schedule(document, queue_group, now, tz, merge_policy)
        if decoded is not None:
            _, periods = decoded
            scheduled = window_selector.select_window(queue_group, periods, now.astimezone(tz))
    elif not queue_group:
        logger.debug("Address %s has no queue group; scheduled path disabled", house)

    if scheduled is not None:
        if scheduled.current_outage:
            logger.info("Current outage: %s (%s)", scheduled.current_outage.time_range,
                        scheduled.current_outage.description)
        if scheduled.next_outage:
            logger.info("Next outage: %s (%s)", scheduled.next_outage.time_range,
                        scheduled.next_outage.description)

    return OutageResult(
        emergency_outage=emergency,
        scheduled_window=scheduled,
        update_timestamp=document.update_timestamp,
    )


def check_planned_outages(
    document: OutageDocument,
    house: str,
    now: datetime,
    tz: ZoneInfo,
    policy: EmergencyPolicy = outage_classifier.any_field,
    merge_policy: MergePolicy = MergePolicy.STANDARD,
) -> PlannedOutages:
    """Whole-day view for the morning summary (no current/next selection)."""
    status = document.address(house)
    emergency = outage_classifier.classify(status, policy)

    queue_group = status.queue_group
    slots, periods = [], []
    if queue_group and document.has_schedule_data:
        decoded = schedule_decoder.decode_schedule(document, queue_group, now, tz, merge_policy)
        if decoded is not None:
            slots, periods = decoded

    return PlannedOutages(
        has_outage=emergency is not None or bool(periods),
        emergency_outage=emergency,
        queue_group=queue_group if periods else None,
        slots=slots,
        periods=periods,
        schedule_description=schedule_decoder.describe_periods(periods),
    )
