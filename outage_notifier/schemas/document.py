"""Provider status document (the `getHomeNum` AJAX response).

Only the keys the engine reads are modelled; everything else is ignored.
Parsing is tolerant: a missing `fact` or `preset` section simply disables the
scheduled-outage path. Only a missing `data` map is fatal.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from outage_notifier.errors import MissingDataError
from outage_notifier.schemas.outage import parse_clock


class AddressStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    subtype: str = Field(default="", alias="sub_type")
    start_timestamp: str = Field(default="", alias="start_date")
    end_timestamp: str = Field(default="", alias="end_date")
    type_code: str = Field(default="", alias="type")
    queue_group_ref: list[str] = Field(default_factory=list, alias="sub_type_reason")

    @field_validator("subtype", "start_timestamp", "end_timestamp", "type_code", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v)

    @field_validator("queue_group_ref", mode="before")
    @classmethod
    def _coerce_groups(cls, v: Any) -> list[str]:
        if not v:
            return []
        if isinstance(v, str):
            return [v]
        return [str(g) for g in v]

    @property
    def queue_group(self) -> str | None:
        return self.queue_group_ref[0] if self.queue_group_ref else None


class LegendEntry(BaseModel):
    label: str = ""
    clock_start: str
    clock_end: str

    @classmethod
    def from_raw(cls, raw: Any) -> "LegendEntry | None":
        # Provider sends ["00-01", "00:00", "01:00"]; objects are accepted too.
        if isinstance(raw, (list, tuple)) and len(raw) >= 3:
            label, start, end = raw[0], raw[1], raw[2]
        elif isinstance(raw, dict):
            label = raw.get("label", "")
            start = raw.get("clockStart", raw.get("clock_start"))
            end = raw.get("clockEnd", raw.get("clock_end"))
        else:
            return None
        # Unreadable clocks drop the entry; the hour then uses its default span.
        try:
            parse_clock(str(start))
            parse_clock(str(end))
        except ValueError:
            return None
        return cls(label=str(label or ""), clock_start=str(start), clock_end=str(end))


class OutageDocument(BaseModel):
    addresses: dict[str, AddressStatus]
    schedule_legend: dict[int, LegendEntry] = {}
    status_descriptions: dict[str, str] = {}
    # day timestamp -> queue group -> hour ("1".."24") -> status code
    queue_schedules: dict[str, dict[str, dict[str, str | None]]] | None = None
    reference_day_timestamp: int | None = None
    update_timestamp: str | None = None

    @property
    def has_schedule_data(self) -> bool:
        return self.queue_schedules is not None

    def address(self, key: str) -> AddressStatus:
        return self.addresses.get(str(key)) or AddressStatus()


def parse_document(raw: dict) -> OutageDocument:
    """Build an OutageDocument from the provider JSON.

    Raises MissingDataError when the address map is absent.
    """
    if not isinstance(raw, dict):
        raise MissingDataError("Outage document is not a JSON object")
    data = raw.get("data")
    if not isinstance(data, dict):
        raise MissingDataError("Outage document has no address data")

    addresses = {
        str(key): AddressStatus.model_validate(value)
        for key, value in data.items()
        if isinstance(value, dict)
    }

    preset = raw.get("preset") if isinstance(raw.get("preset"), dict) else None
    fact = raw.get("fact") if isinstance(raw.get("fact"), dict) else None

    legend: dict[int, LegendEntry] = {}
    descriptions: dict[str, str] = {}
    if preset:
        for hour, entry in (preset.get("time_zone") or {}).items():
            parsed = LegendEntry.from_raw(entry)
            if parsed is not None and str(hour).isdigit():
                legend[int(hour)] = parsed
        descriptions = {str(k): str(v) for k, v in (preset.get("time_type") or {}).items()}

    schedules = None
    reference_day = None
    # Both sections are needed: the grid comes from fact, its legend from preset.
    if preset is not None and fact is not None and isinstance(fact.get("data"), dict):
        schedules = {
            str(day): {
                str(group): {str(h): (None if s is None else str(s)) for h, s in hours.items()}
                for group, hours in groups.items()
                if isinstance(hours, dict)
            }
            for day, groups in fact["data"].items()
            if isinstance(groups, dict)
        }
        today = fact.get("today")
        if today is not None and str(today).lstrip("-").isdigit():
            reference_day = int(today)

    update = raw.get("updateTimestamp")
    return OutageDocument(
        addresses=addresses,
        schedule_legend=legend,
        status_descriptions=descriptions,
        queue_schedules=schedules,
        reference_day_timestamp=reference_day,
        update_timestamp=str(update) if update else None,
    )
