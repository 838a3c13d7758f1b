# app/slots.py
"""
Candidate start times for the public agenda.

Slot granularity depends on the service duration only. With the default
"grid" policy a service of up to 30 minutes is offered on a half-hour grid and
anything longer on the hour; neighbouring bookings are not taken into account,
so two 45 minute services may be offered overlapping starts. The "packed"
policy steps by the exact duration instead and only offers slots that end
inside the business window.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

GRID = "grid"
PACKED = "packed"
POLICIES = (GRID, PACKED)

FINE_STEP = 30
COARSE_STEP = 60


def parse_hhmm(value: str) -> int:
    """'08:30' -> minutes since midnight."""
    try:
        hh, mm = value.split(":")[:2]
        hours, minutes = int(hh), int(mm)
    except (AttributeError, ValueError) as e:
        raise ValueError(f"Invalid time {value!r}, expected HH:MM") from e
    if not (0 <= hours <= 24 and 0 <= minutes < 60) or hours * 60 + minutes > 24 * 60:
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    return hours * 60 + minutes


def format_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True)
class BusinessWindow:
    start: str = "08:00"
    end: str = "18:00"

    def __post_init__(self):
        if parse_hhmm(self.end) <= parse_hhmm(self.start):
            raise ValueError(f"Business window end {self.end} must be after start {self.start}")

    @property
    def start_minutes(self) -> int:
        return parse_hhmm(self.start)

    @property
    def end_minutes(self) -> int:
        return parse_hhmm(self.end)


def slot_step(duration_minutes: int, policy: str = GRID) -> int:
    if duration_minutes <= 0:
        raise ValueError("duration_minutes must be positive")
    if policy == PACKED:
        return duration_minutes
    if policy != GRID:
        raise ValueError(f"Unknown slot policy {policy!r}")
    return FINE_STEP if duration_minutes <= FINE_STEP else COARSE_STEP


@dataclass(frozen=True)
class SlotGrid:
    """Restartable sequence of "HH:MM" start times for one service duration."""

    duration_minutes: int
    window: BusinessWindow = BusinessWindow()
    policy: str = GRID

    def __post_init__(self):
        # validates duration and policy eagerly
        slot_step(self.duration_minutes, self.policy)

    def __iter__(self) -> Iterator[str]:
        step = slot_step(self.duration_minutes, self.policy)
        start, end = self.window.start_minutes, self.window.end_minutes
        t = start
        while t < end:
            if self.policy == PACKED and t + self.duration_minutes > end:
                break
            yield format_hhmm(t)
            t += step

    def __contains__(self, item: object) -> bool:
        return isinstance(item, str) and any(t == item for t in self)

    def __len__(self) -> int:
        return sum(1 for _ in self)


def slot_grid(duration_minutes: int, window: BusinessWindow | None = None, policy: str = GRID) -> SlotGrid:
    return SlotGrid(duration_minutes, window or BusinessWindow(), policy)
