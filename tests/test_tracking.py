"""Unit tests for tracking ID generation."""

import re
from concurrent.futures import ThreadPoolExecutor

import pytest

from order_tracker.services.tracking import TrackingIdGenerator

pytestmark = pytest.mark.unit


def test_format():
    tracking_id = TrackingIdGenerator()()
    assert re.fullmatch(r"TID\d{13}\d{4}", tracking_id)


def test_thousand_rapid_ids_are_distinct():
    generate = TrackingIdGenerator()
    ids = [generate() for _ in range(1000)]
    assert len(set(ids)) == 1000


def test_frozen_clock_still_unique_and_increasing():
    generate = TrackingIdGenerator(clock=lambda: 1_700_000_000.0)
    stamps = [int(generate()[3:-4]) for _ in range(50)]
    assert stamps == sorted(stamps)
    assert len(set(stamps)) == 50


def test_clock_going_backwards_does_not_repeat():
    times = iter([2_000_000_000.0, 1_000_000_000.0, 1_000_000_000.0])
    generate = TrackingIdGenerator(clock=lambda: next(times))
    first, second, third = (int(generate()[3:-4]) for _ in range(3))
    assert first < second < third


def test_unique_across_threads():
    generate = TrackingIdGenerator()
    with ThreadPoolExecutor(max_workers=8) as pool:
        ids = list(pool.map(lambda _: generate(), range(800)))
    assert len(set(ids)) == 800
