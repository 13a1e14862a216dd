from pydantic import BaseModel, ConfigDict

# Status codes that denote (possible) absence of power during an hour.
OUTAGE_STATUSES = ("no", "first", "second", "maybe")


def format_clock(minutes: int) -> str:
    """Minutes since midnight -> "HH:MM". 1440 renders as "24:00"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_clock(value: str) -> int:
    hours, _, mins = value.strip().partition(":")
    return int(hours) * 60 + int(mins or 0)


class OutageSlot(BaseModel):
    model_config = ConfigDict(frozen=True)

    hour: int  # 1..24
    status: str
    start_minutes: int
    end_minutes: int
    label: str = ""

    @property
    def clock_range(self) -> str:
        return f"{format_clock(self.start_minutes)}-{format_clock(self.end_minutes)}"


class OutagePeriod(BaseModel):
    start_hour: int
    end_hour: int
    slots: list[OutageSlot]

    @property
    def start_minutes(self) -> int:
        return self.slots[0].start_minutes

    @property
    def end_minutes(self) -> int:
        return self.slots[-1].end_minutes

    @property
    def time_range(self) -> str:
        return f"{format_clock(self.start_minutes)}-{format_clock(self.end_minutes)}"


class OutageWindow(BaseModel):
    """A merged period rendered for selection and notification."""
    time_range: str
    description: str
    status: str
    start_minutes: int
    end_minutes: int

    @classmethod
    def from_period(cls, period: OutagePeriod) -> "OutageWindow":
        first = period.slots[0]
        return cls(
            time_range=period.time_range,
            description=first.label or first.status,
            status=first.status,
            start_minutes=period.start_minutes,
            end_minutes=period.end_minutes,
        )

    @property
    def duration_minutes(self) -> int:
        return max(0, self.end_minutes - self.start_minutes)


class ScheduledWindow(BaseModel):
    queue_group: str
    current_outage: OutageWindow | None = None
    next_outage: OutageWindow | None = None

    @property
    def is_active(self) -> bool:
        return self.current_outage is not None or self.next_outage is not None


class EmergencyOutage(BaseModel):
    subtype: str = ""
    start_timestamp: str = ""
    end_timestamp: str = ""
    type_code: str = ""


class OutageResult(BaseModel):
    """Combined classifier + selector output for one polling cycle."""
    emergency_outage: EmergencyOutage | None = None
    scheduled_window: ScheduledWindow | None = None
    update_timestamp: str | None = None

    @property
    def current_outage(self) -> OutageWindow | None:
        return self.scheduled_window.current_outage if self.scheduled_window else None

    @property
    def next_outage(self) -> OutageWindow | None:
        return self.scheduled_window.next_outage if self.scheduled_window else None

    @property
    def has_active_signal(self) -> bool:
        return self.emergency_outage is not None or (
            self.scheduled_window is not None and self.scheduled_window.is_active
        )


class PlannedOutages(BaseModel):
    """Whole-day view used by the morning summary."""
    has_outage: bool = False
    emergency_outage: EmergencyOutage | None = None
    queue_group: str | None = None
    slots: list[OutageSlot] = []
    periods: list[OutagePeriod] = []
    schedule_description: str = ""
