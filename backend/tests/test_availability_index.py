"""
Tests for the per-vehicle availability index.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from rental.core.exceptions import ConflictError
from rental.services.availability_index import AvailabilityIndex
from tests.conftest import make_range


def test_unknown_vehicle_is_available(index: AvailabilityIndex):
    assert index.is_available(42, make_range("2025-06-01", "2025-06-05"))


def test_reserve_blocks_overlap(index: AvailabilityIndex):
    index.reserve(1, make_range("2025-06-01", "2025-06-05"))
    assert not index.is_available(1, make_range("2025-06-03", "2025-06-06"))
    assert not index.is_available(1, make_range("2025-05-30", "2025-06-02"))
    assert not index.is_available(1, make_range("2025-05-01", "2025-07-01"))


def test_touching_range_is_available(index: AvailabilityIndex):
    index.reserve(1, make_range("2025-06-01", "2025-06-05"))
    assert index.is_available(1, make_range("2025-06-05", "2025-06-08"))
    assert index.is_available(1, make_range("2025-05-28", "2025-06-01"))


def test_vehicles_are_independent(index: AvailabilityIndex):
    index.reserve(1, make_range("2025-06-01", "2025-06-05"))
    assert index.is_available(2, make_range("2025-06-01", "2025-06-05"))


def test_conflict_error_names_conflicting_ranges(index: AvailabilityIndex):
    first = make_range("2025-06-01", "2025-06-05")
    second = make_range("2025-06-07", "2025-06-10")
    index.reserve(1, first)
    index.reserve(1, second)

    with pytest.raises(ConflictError) as exc_info:
        index.reserve(1, make_range("2025-06-03", "2025-06-08"))

    assert exc_info.value.conflicts == [first, second]
    assert exc_info.value.vehicle_id == 1
    # Failed reserve leaves the held set untouched
    assert index.held_ranges(1) == (first, second)


def test_held_ranges_stay_sorted(index: AvailabilityIndex):
    ranges = [
        make_range("2025-06-20", "2025-06-25"),
        make_range("2025-06-01", "2025-06-05"),
        make_range("2025-06-10", "2025-06-12"),
    ]
    for r in ranges:
        index.reserve(1, r)
    assert index.held_ranges(1) == tuple(sorted(ranges))


def test_gap_between_held_ranges_is_available(index: AvailabilityIndex):
    index.reserve(1, make_range("2025-06-01", "2025-06-05"))
    index.reserve(1, make_range("2025-06-10", "2025-06-15"))
    assert index.is_available(1, make_range("2025-06-05", "2025-06-10"))
    index.reserve(1, make_range("2025-06-05", "2025-06-10"))
    assert len(index) == 3


def test_release_frees_range(index: AvailabilityIndex):
    r = make_range("2025-06-01", "2025-06-05")
    index.reserve(1, r)
    index.release(1, r)
    assert index.is_available(1, make_range("2025-06-03", "2025-06-06"))
    assert index.held_ranges(1) == ()


def test_release_is_idempotent(index: AvailabilityIndex):
    kept = make_range("2025-06-10", "2025-06-12")
    dropped = make_range("2025-06-01", "2025-06-05")
    index.reserve(1, kept)
    index.reserve(1, dropped)

    index.release(1, dropped)
    index.release(1, dropped)

    assert index.held_ranges(1) == (kept,)


def test_release_requires_exact_range(index: AvailabilityIndex):
    r = make_range("2025-06-01", "2025-06-05")
    index.reserve(1, r)
    index.release(1, make_range("2025-06-01", "2025-06-04"))
    assert index.held_ranges(1) == (r,)


def test_load_rejects_overlapping_input(index: AvailabilityIndex):
    with pytest.raises(ConflictError):
        index.load([
            (1, make_range("2025-06-01", "2025-06-05")),
            (1, make_range("2025-06-04", "2025-06-06")),
        ])


def test_concurrent_threads_only_one_wins(index: AvailabilityIndex):
    """Sixteen threads race for overlapping windows on one car."""
    ranges = [make_range("2025-06-01", f"2025-06-{day:02d}") for day in range(2, 18)]

    def attempt(r):
        try:
            index.reserve(7, r)
            return True
        except ConflictError:
            return False

    with ThreadPoolExecutor(max_workers=16) as pool:
        results = list(pool.map(attempt, ranges))

    assert results.count(True) == 1
    assert len(index.held_ranges(7)) == 1
