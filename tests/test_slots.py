from __future__ import annotations

import pytest

from app.slots import PACKED, BusinessWindow, SlotGrid, slot_grid, slot_step


@pytest.mark.parametrize("duration", [1, 15, 29, 30])
def test_short_services_get_half_hour_grid(duration: int) -> None:
    grid = list(slot_grid(duration))

    assert len(grid) == 20
    for hour in range(8, 18):
        assert f"{hour:02d}:00" in grid
        assert f"{hour:02d}:30" in grid


@pytest.mark.parametrize("duration", [31, 45, 60, 90, 240])
def test_longer_services_get_hourly_grid(duration: int) -> None:
    grid = list(slot_grid(duration))

    assert grid == [f"{hour:02d}:00" for hour in range(8, 18)]


def test_threshold_is_exactly_thirty_minutes() -> None:
    assert slot_step(30) == 30
    assert slot_step(31) == 60


def test_grid_is_ordered_and_deduplicated() -> None:
    grid = list(slot_grid(30))

    assert grid == sorted(grid)
    assert len(grid) == len(set(grid))


def test_grid_is_restartable_and_deterministic() -> None:
    grid = slot_grid(30, BusinessWindow("08:00", "10:00"))

    assert list(grid) == list(grid) == ["08:00", "08:30", "09:00", "09:30"]
    assert list(slot_grid(30, BusinessWindow("08:00", "10:00"))) == list(grid)
    assert "09:30" in grid
    assert "10:00" not in grid
    assert len(grid) == 4


def test_window_end_is_exclusive() -> None:
    assert list(slot_grid(60, BusinessWindow("08:00", "10:00"))) == ["08:00", "09:00"]


def test_window_is_configurable() -> None:
    grid = list(slot_grid(30, BusinessWindow("13:30", "15:00")))

    assert grid == ["13:30", "14:00", "14:30"]


def test_packed_policy_steps_by_duration_and_fits_window() -> None:
    grid = list(SlotGrid(45, BusinessWindow("08:00", "10:00"), PACKED))

    # 09:30 + 45min would end after 10:00
    assert grid == ["08:00", "08:45"]


@pytest.mark.parametrize("duration", [0, -30])
def test_non_positive_duration_is_rejected(duration: int) -> None:
    with pytest.raises(ValueError):
        slot_grid(duration)


def test_bad_window_and_policy_are_rejected() -> None:
    with pytest.raises(ValueError):
        BusinessWindow("18:00", "08:00")
    with pytest.raises(ValueError):
        BusinessWindow("8h", "18:00")
    with pytest.raises(ValueError):
        SlotGrid(30, BusinessWindow(), "exact")
