"""Emergency outage classifier.

The provider signals an unscheduled ("emergency") outage through the free-text
and timestamp fields of the address record rather than through the hourly
grid. Which records count as emergencies is a policy choice:

  any_field              any of subtype / start / end / type is non-empty (default)
  exclude_schedule_text  any_field, unless the subtype only refers to the hourly schedule
  emergency_text         subtype mentions an emergency phrase
  emergency_type         any_field and the type code is "1" or "2"

The text-based policies are heuristics tuned to the provider's Ukrainian
wording. They are opt-in through `settings.emergency_policy`.
"""

from typing import Callable

from outage_notifier.schemas.document import AddressStatus
from outage_notifier.schemas.outage import EmergencyOutage

EmergencyPolicy = Callable[[AddressStatus], bool]

SCHEDULE_PHRASES = ("графіку погодинних", "згідно графіку", "according to")
EMERGENCY_PHRASES = ("екстренн", "аварійн", "без застосування графіку")
EMERGENCY_TYPE_CODES = ("1", "2")


def _has_fields(status: AddressStatus) -> bool:
    return any(
        value != ""
        for value in (status.subtype, status.start_timestamp, status.end_timestamp, status.type_code)
    )


def any_field(status: AddressStatus) -> bool:
    return _has_fields(status)


def exclude_schedule_text(status: AddressStatus) -> bool:
    subtype = status.subtype.lower()
    if any(phrase in subtype for phrase in SCHEDULE_PHRASES):
        return False
    return _has_fields(status)


def emergency_text(status: AddressStatus) -> bool:
    subtype = status.subtype.lower()
    return any(phrase in subtype for phrase in EMERGENCY_PHRASES)


def emergency_type(status: AddressStatus) -> bool:
    return _has_fields(status) and status.type_code.strip() in EMERGENCY_TYPE_CODES


POLICIES: dict[str, EmergencyPolicy] = {
    "any_field": any_field,
    "exclude_schedule_text": exclude_schedule_text,
    "emergency_text": emergency_text,
    "emergency_type": emergency_type,
}


def get_policy(name: str) -> EmergencyPolicy:
    try:
        return POLICIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown emergency policy {name!r}; expected one of {sorted(POLICIES)}"
        ) from None


def classify(status: AddressStatus, policy: EmergencyPolicy = any_field) -> EmergencyOutage | None:
    if not policy(status):
        return None
    return EmergencyOutage(
        subtype=status.subtype,
        start_timestamp=status.start_timestamp,
        end_timestamp=status.end_timestamp,
        type_code=status.type_code,
    )
