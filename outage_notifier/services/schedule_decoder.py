"""Schedule decoder: hourly status grid -> outage slots -> merged periods.

The provider publishes one row of 24 status codes per queue group per day.
Hour N covers the legend's clock range for N (normally (N-1):00-N:00).

  yes            power on, ignored
  no / maybe     the whole hour is (possibly) off
  first          off during the first 30 minutes only
  second         off during the second 30 minutes only

Adjacent hours are folded into periods. Half-hour slots are boundaries:
a `first` slot ends its period and a `second` slot starts a new one, so the
sub-hour edge survives into the rendered range.
"""

import logging
from datetime import datetime, time
from enum import Enum
from functools import reduce
from zoneinfo import ZoneInfo

from outage_notifier.schemas.document import LegendEntry, OutageDocument
from outage_notifier.schemas.outage import (
    OUTAGE_STATUSES,
    OutagePeriod,
    OutageSlot,
    parse_clock,
)

logger = logging.getLogger(__name__)

HOURS = range(1, 25)
HALF_HOUR = 30


class MergePolicy(str, Enum):
    STANDARD = "standard"
    # Every half-hour slot stands alone: it neither absorbs nor is absorbed.
    SPLIT_HALF_HOURS = "split_half_hours"


def day_timestamp(now: datetime, tz: ZoneInfo) -> int:
    """Epoch seconds of local midnight for `now`'s date in `tz`."""
    local = now.astimezone(tz)
    midnight = datetime.combine(local.date(), time(0, 0), tzinfo=tz)
    return int(midnight.timestamp())


def resolve_day_schedule(
    document: OutageDocument, queue_group: str, now: datetime, tz: ZoneInfo,
) -> dict[str, str | None] | None:
    """Find today's hour map for a queue group, or None when there is none."""
    schedules = document.queue_schedules
    if not schedules:
        return None

    today = schedules.get(str(day_timestamp(now, tz)), {}).get(queue_group)
    if today is None and document.reference_day_timestamp is not None:
        today = schedules.get(str(document.reference_day_timestamp), {}).get(queue_group)
    if today is None:
        logger.warning("No schedule found for queue %s", queue_group)
    return today


def slot_for_hour(
    hour: int, status: str, legend: dict[int, LegendEntry], descriptions: dict[str, str],
) -> OutageSlot:
    entry = legend.get(hour)
    if entry is not None:
        start, end = parse_clock(entry.clock_start), parse_clock(entry.clock_end)
    else:
        start, end = (hour - 1) * 60, hour * 60

    if status == "first":
        end = start + HALF_HOUR
    elif status == "second":
        start = start + HALF_HOUR

    return OutageSlot(
        hour=hour,
        status=status,
        start_minutes=start,
        end_minutes=end,
        label=descriptions.get(status, status),
    )


def decode_slots(
    hour_map: dict[str, str | None],
    legend: dict[int, LegendEntry],
    descriptions: dict[str, str],
) -> list[OutageSlot]:
    return [
        slot_for_hour(hour, hour_map[str(hour)], legend, descriptions)
        for hour in HOURS
        if hour_map.get(str(hour)) in OUTAGE_STATUSES
    ]


def _can_extend(period: OutagePeriod, slot: OutageSlot, policy: MergePolicy) -> bool:
    if slot.hour != period.end_hour + 1:
        return False
    last = period.slots[-1]
    if last.status == "first" or slot.status == "second":
        return False
    if policy is MergePolicy.SPLIT_HALF_HOURS:
        return last.status != "second" and slot.status != "first"
    return True


def _fold_slot(policy: MergePolicy):
    def step(periods: list[OutagePeriod], slot: OutageSlot) -> list[OutagePeriod]:
        if periods and _can_extend(periods[-1], slot, policy):
            last = periods[-1]
            periods[-1] = OutagePeriod(
                start_hour=last.start_hour, end_hour=slot.hour, slots=[*last.slots, slot],
            )
        else:
            periods.append(OutagePeriod(start_hour=slot.hour, end_hour=slot.hour, slots=[slot]))
        return periods
    return step


def merge_slots(
    slots: list[OutageSlot], policy: MergePolicy = MergePolicy.STANDARD,
) -> list[OutagePeriod]:
    ordered = sorted(slots, key=lambda s: s.hour)
    return reduce(_fold_slot(policy), ordered, [])


def describe_periods(periods: list[OutagePeriod]) -> str:
    return ", ".join(p.time_range for p in periods)


def decode_schedule(
    document: OutageDocument,
    queue_group: str,
    now: datetime,
    tz: ZoneInfo,
    policy: MergePolicy = MergePolicy.STANDARD,
) -> tuple[list[OutageSlot], list[OutagePeriod]] | None:
    """Decode today's row for `queue_group` into (slots, periods).

    Returns None when no row resolves for today; an empty pair means the row
    exists and has no outage hours.
    """
    hour_map = resolve_day_schedule(document, queue_group, now, tz)
    if hour_map is None:
        return None
    slots = decode_slots(hour_map, document.schedule_legend, document.status_descriptions)
    periods = merge_slots(slots, policy)
    logger.debug("Queue %s: %d outage slots in %d periods", queue_group, len(slots), len(periods))
    return slots, periods
