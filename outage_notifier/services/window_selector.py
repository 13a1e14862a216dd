"""Pick the current and the next outage window for a wall-clock time."""

from datetime import datetime

from outage_notifier.schemas.outage import OutagePeriod, OutageWindow, ScheduledWindow


def minutes_since_midnight(local_now: datetime) -> int:
    return local_now.hour * 60 + local_now.minute


def select_window(
    queue_group: str, periods: list[OutagePeriod], local_now: datetime,
) -> ScheduledWindow | None:
    """Current period contains now in [start, end); next is the earliest that starts after now.

    `local_now` must already be in the monitored timezone.
    """
    if not periods:
        return None

    now_minutes = minutes_since_midnight(local_now)
    windows = [OutageWindow.from_period(p) for p in periods]

    current = next(
        (w for w in windows if w.start_minutes <= now_minutes < w.end_minutes), None,
    )
    upcoming = [w for w in windows if w.start_minutes > now_minutes]
    next_outage = min(upcoming, key=lambda w: w.start_minutes) if upcoming else None

    return ScheduledWindow(
        queue_group=queue_group, current_outage=current, next_outage=next_outage,
    )
