"""Reviewer roster cache TTL and degradation."""

import pytest

from pems.core.errors import InfrastructureError
from pems.core.models.achievement import ReviewerProfile
from pems.core.review.roster import ReviewerRosterCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class FakeDirectory:
    def __init__(self, reviewers):
        self.reviewers = reviewers
        self.calls = 0
        self.fail = False

    def __call__(self):
        self.calls += 1
        if self.fail:
            raise ConnectionError("identity service down")
        return list(self.reviewers)


def reviewer(idx):
    return ReviewerProfile(id=f"r{idx}", name=f"Reviewer {idx}", external_id=f"T00{idx}")


def test_roster_is_cached_within_ttl():
    clock = FakeClock()
    directory = FakeDirectory([reviewer(1)])
    cache = ReviewerRosterCache(directory, ttl_seconds=300, clock=clock)

    assert [r.id for r in cache.get()] == ["r1"]
    directory.reviewers.append(reviewer(2))
    clock.now += 299
    assert [r.id for r in cache.get()] == ["r1"]
    assert directory.calls == 1

    clock.now += 1
    assert [r.id for r in cache.get()] == ["r1", "r2"]
    assert directory.calls == 2
    assert cache.last_refreshed == clock.now
    assert cache.ttl == 300


def test_force_refresh_ignores_ttl():
    directory = FakeDirectory([reviewer(1)])
    cache = ReviewerRosterCache(directory, clock=FakeClock())
    cache.get()
    directory.reviewers = [reviewer(3)]
    assert [r.id for r in cache.force_refresh()] == ["r3"]


def test_empty_roster_is_refetched():
    directory = FakeDirectory([])
    cache = ReviewerRosterCache(directory, clock=FakeClock())
    assert cache.get() == []
    directory.reviewers = [reviewer(1)]
    assert [r.id for r in cache.get()] == ["r1"]


def test_refresh_failure_serves_last_known_roster():
    clock = FakeClock()
    directory = FakeDirectory([reviewer(1)])
    cache = ReviewerRosterCache(directory, ttl_seconds=60, clock=clock)
    cache.get()
    refreshed_at = cache.last_refreshed

    directory.fail = True
    clock.now += 120
    assert [r.id for r in cache.get()] == ["r1"]
    assert cache.last_refreshed == refreshed_at


def test_refresh_failure_without_cached_value_raises():
    directory = FakeDirectory([])
    directory.fail = True
    cache = ReviewerRosterCache(directory, clock=FakeClock())
    with pytest.raises(InfrastructureError) as excinfo:
        cache.get()
    assert "identity service down" not in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, ConnectionError)


def test_accepts_plain_dicts_from_lookup():
    cache = ReviewerRosterCache(
        lambda: [{"id": "r1", "name": "Alice", "external_id": "T001"}], clock=FakeClock()
    )
    assert cache.get()[0].name == "Alice"
