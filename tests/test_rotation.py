from collections import Counter
from datetime import datetime, timedelta, timezone

import pytest

from leaseiq.adapters.scrapers.registry import enabled_sources
from leaseiq.jobs.rotation import DEFAULT_GROUPS, RotatingScheduler
from leaseiq.jobs.scheduler import build_scheduler


def test_groups_partition_enabled_sources():
    flat = [s for g in DEFAULT_GROUPS for s in g]
    assert len(flat) == len(set(flat))
    assert set(flat) == set(enabled_sources())
    assert all(4 <= len(g) <= 5 for g in DEFAULT_GROUPS)


def test_same_hour_same_group():
    r = RotatingScheduler(interval_hours=2)
    t = datetime(2024, 3, 1, 7, 15, tzinfo=timezone.utc)
    assert r.current_sources(t) == r.current_sources(t)
    assert r.current_sources(t) == r.current_sources(t.replace(minute=59, hour=6))
    # (7 // 2) % 3 == 0
    assert r.group_index(t) == 0


def test_each_group_four_times_a_day():
    r = RotatingScheduler(interval_hours=2)
    start = datetime(2024, 3, 1, tzinfo=timezone.utc)
    picks = Counter(r.group_index(start + timedelta(hours=h)) for h in range(0, 24, 2))
    assert picks == {0: 4, 1: 4, 2: 4}
    assert r.runs_per_day() == 4


def test_non_utc_input_is_converted():
    r = RotatingScheduler(interval_hours=2)
    est = timezone(timedelta(hours=-5))
    # 21:00 EST is 02:00 UTC -> group 1
    assert r.group_index(datetime(2024, 3, 1, 21, tzinfo=est)) == 1


def test_bad_interval_rejected():
    with pytest.raises(ValueError):
        RotatingScheduler(interval_hours=5)


def test_all_groups_copy():
    r = RotatingScheduler()
    groups = r.all_groups()
    groups[0].clear()
    assert r.all_groups()[0]


async def test_scheduler_jobs_registered(make_orchestrator):
    from conftest import FakeExtraction

    sched = build_scheduler(make_orchestrator(FakeExtraction({})))
    ids = {j.id for j in sched.get_jobs()}
    assert ids == {"rotating_scrape", "stale_sweep"}
