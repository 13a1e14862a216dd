import pytest

from outage_notifier.schemas.document import parse_document
from outage_notifier.schemas.notification import ActionKind, NotificationAction
from outage_notifier.schemas.outage import EmergencyOutage, PlannedOutages
from outage_notifier.services import messages
from outage_notifier.services.outage_check import check_planned_outages

from factories import KYIV, REAL_WORLD, kyiv, make_raw, make_result, make_window

PASSED = EmergencyOutage(
    subtype="Екстренні відключення (Аварійне без застосування графіку погодинних відключень)",
    start_timestamp="07:55 20.01.2026",
    end_timestamp="12:00 20.01.2026",
    type_code="2",
)


def test_format_duration():
    assert messages.format_duration(245) == "4 год 5 хв"
    assert messages.format_duration(180) == "3 год"
    assert messages.format_duration(30) == "30 хв"
    assert messages.format_duration(0) == "0 хв"


def test_parse_provider_timestamp():
    assert messages.parse_provider_timestamp("07:55 20.01.2026").hour == 7
    assert messages.parse_provider_timestamp("09.11.2025 10:00").day == 9
    assert messages.parse_provider_timestamp("") is None
    assert messages.parse_provider_timestamp("скоро") is None


def test_emergency_duration():
    assert messages.emergency_duration(PASSED) == 245
    assert messages.emergency_duration(PASSED.model_copy(update={"end_timestamp": ""})) is None


def test_render_combined_update():
    result = make_result(current="01:00-04:00", next_="11:00-12:00", emergency=PASSED)
    action = NotificationAction(kind=ActionKind.COMBINED_UPDATE, fingerprint="fp", result=result)
    text = messages.render_action(action, kyiv(2, 30), KYIV)

    assert "Аварійне відключення" in text
    assert "07:55 20.01.2026" in text
    assert messages.SEPARATOR in text
    assert "GPV1.2" in text
    assert "01:00-04:00" in text
    assert "11:00-12:00" in text
    assert "02:30 09.11.2025" in text


def test_render_emergency_outage_ended():
    result = make_result(next_="10:00-13:00")
    action = NotificationAction(
        kind=ActionKind.OUTAGE_ENDED, fingerprint="fp", result=result, passed_emergency=PASSED,
    )
    text = messages.render_action(action, kyiv(12, 5), KYIV)

    assert text.startswith("✅ Екстрене відключення завершено!")
    assert "4 год 5 хв" in text
    assert "10:00-13:00" in text
    assert "3 год" in text


def test_render_scheduled_outage_ended():
    action = NotificationAction(
        kind=ActionKind.OUTAGE_ENDED,
        fingerprint="fp",
        result=make_result(),
        passed_outage=make_window("21:30-24:00"),
    )
    text = messages.render_action(action, kyiv(23, 59), KYIV)
    assert "21:30-24:00" in text
    assert "2 год 30 хв" in text


def test_render_none_is_an_error():
    action = NotificationAction(kind=ActionKind.NONE, fingerprint="", result=make_result())
    with pytest.raises(ValueError):
        messages.render_action(action, kyiv(9), KYIV)


def test_daily_summary_without_outages():
    text = messages.render_daily_summary(PlannedOutages(), kyiv(7), KYIV)
    assert "не заплановано" in text
    assert "07:00 09.11.2025" in text


def test_daily_summary_with_schedule():
    raw = make_raw(REAL_WORLD)
    planned = check_planned_outages(parse_document(raw), "1", kyiv(7), KYIV)
    text = messages.render_daily_summary(planned, kyiv(7), KYIV)

    assert "не заплановано" not in text
    assert "GPV1.2" in text
    assert "00:30-04:00, 11:00-12:00, 17:00-18:00, 21:30-24:00" in text
    assert "Аварійне" not in text
