"""Plain-text rendering of notification actions and the daily summary."""

from datetime import datetime
from zoneinfo import ZoneInfo

from outage_notifier.schemas.notification import ActionKind, NotificationAction
from outage_notifier.schemas.outage import EmergencyOutage, OutageWindow, PlannedOutages

SEPARATOR = "━━━━━━━━━━━━━━━━━━━━"
SUB_SEPARATOR = "—————————————"

_PROVIDER_TIMESTAMP_FORMATS = ("%H:%M %d.%m.%Y", "%d.%m.%Y %H:%M")


def parse_provider_timestamp(value: str) -> datetime | None:
    """Parse "HH:MM DD.MM.YYYY" (or "DD.MM.YYYY HH:MM") as used by the provider."""
    value = (value or "").strip()
    for fmt in _PROVIDER_TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def format_duration(minutes: int) -> str:
    hours, mins = divmod(max(0, minutes), 60)
    if hours and mins:
        return f"{hours} год {mins} хв"
    if hours:
        return f"{hours} год"
    return f"{mins} хв"


def emergency_duration(emergency: EmergencyOutage) -> int | None:
    start = parse_provider_timestamp(emergency.start_timestamp)
    end = parse_provider_timestamp(emergency.end_timestamp)
    if start is None or end is None or end < start:
        return None
    return int((end - start).total_seconds() // 60)


def _stamp(now: datetime, tz: ZoneInfo) -> str:
    return now.astimezone(tz).strftime("%H:%M %d.%m.%Y")


def _emergency_lines(emergency: EmergencyOutage) -> list[str]:
    return [
        "🚨 УВАГА! Аварійне відключення!",
        "",
        "ℹ️ Причина:",
        (emergency.subtype or "Невідома") + ".",
        "",
        "🔴 Час початку:",
        emergency.start_timestamp or "Невідомий",
        "",
        "🟢 Час відновлення:",
        emergency.end_timestamp or "Невідомий",
    ]


def _window_lines(title: str, window: OutageWindow, with_duration: bool = False) -> list[str]:
    lines = [title, "", "🕐 Час:", window.time_range, "", "ℹ️ Тип:", window.description]
    if with_duration:
        lines += ["", "⏱ Тривалість:", format_duration(window.duration_minutes)]
    return lines


def _footer(update_timestamp: str | None, now: datetime, tz: ZoneInfo) -> list[str]:
    stamp = _stamp(now, tz)
    return [
        "",
        "⏰ Час оновлення інформації:",
        update_timestamp or stamp,
        "⏰ Час оновлення повідомлення:",
        stamp,
    ]


def _update_lines(action: NotificationAction) -> list[str]:
    result = action.result
    lines: list[str] = []
    if result.emergency_outage is not None:
        lines += _emergency_lines(result.emergency_outage)

    window = result.scheduled_window
    if window is not None and window.is_active:
        if lines:
            lines += ["", SEPARATOR, ""]
        lines += ["📊 Черга:", window.queue_group, ""]
        if window.current_outage:
            lines += _window_lines("⚡️ Поточне відключення", window.current_outage)
            if window.next_outage:
                lines += ["", SUB_SEPARATOR, ""]
        if window.next_outage:
            lines += _window_lines("⏰ Наступне відключення", window.next_outage)
    return lines


def _ended_lines(action: NotificationAction) -> list[str]:
    lines: list[str] = []
    if action.passed_emergency is not None:
        passed = action.passed_emergency
        lines += [
            "✅ Екстрене відключення завершено!",
            "",
            "ℹ️ Тип:",
            passed.subtype or "Невідомо",
            "",
            "🔴 Початок:",
            passed.start_timestamp or "Невідомо",
            "",
            "🟢 Завершено:",
            passed.end_timestamp or "Невідомо",
        ]
        duration = emergency_duration(passed)
        if duration is not None:
            lines += ["", "⏱ Тривалість:", format_duration(duration)]

    if action.passed_outage is not None:
        if lines:
            lines += [""]
        lines += [
            "✅ Відключення за графіком завершено!",
            "",
            "🕐 Час:",
            action.passed_outage.time_range,
            "",
            "⏱ Тривалість:",
            format_duration(action.passed_outage.duration_minutes),
        ]

    if action.result.emergency_outage is not None:
        lines += ["", SEPARATOR, ""] + _emergency_lines(action.result.emergency_outage)

    if action.next_outage is not None:
        lines += ["", SEPARATOR, ""]
        lines += _window_lines("⏰ Наступне відключення", action.next_outage, with_duration=True)
    return lines


def render_action(action: NotificationAction, now: datetime, tz: ZoneInfo) -> str:
    if action.kind is ActionKind.NONE:
        raise ValueError("Nothing to render for a suppressed action")
    if action.kind is ActionKind.OUTAGE_ENDED:
        lines = _ended_lines(action)
    else:
        lines = _update_lines(action)
    lines += _footer(action.result.update_timestamp, now, tz)
    return "\n".join(lines)


def render_daily_summary(planned: PlannedOutages, now: datetime, tz: ZoneInfo) -> str:
    lines = ["🌅 Доброго ранку!", ""]
    if not planned.has_outage:
        lines += [
            "✅ Відмінні новини!",
            "",
            "Планових відключень електроенергії на сьогодні не заплановано.",
            "",
            "⚡️ Можете планувати свій день без обмежень!",
        ]
    else:
        lines += ["📋 Інформація про відключення на сьогодні:", ""]
        if planned.emergency_outage is not None:
            lines += _emergency_lines(planned.emergency_outage)
        if planned.periods:
            if planned.emergency_outage is not None:
                lines += ["", SEPARATOR, ""]
            lines += [
                "📊 Черга:",
                planned.queue_group or "",
                "",
                "🕐 Відключення за графіком:",
                planned.schedule_description,
            ]
    lines += ["", "⏰ Час формування повідомлення:", _stamp(now, tz)]
    return "\n".join(lines)
