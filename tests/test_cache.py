import pytest

from fakes import FakeClock
from flood_twin.satellite.cache import ResultCache
from flood_twin.satellite.events import EventHooks, EventName, PipelineEvent


def _cache(clock: FakeClock, max_age: float = 3600.0) -> tuple[ResultCache, list[PipelineEvent]]:
    events = EventHooks()
    seen: list[PipelineEvent] = []
    events.subscribe(seen.append)
    return ResultCache(max_age, clock=clock, events=events), seen


def test_get_returns_live_entry(clock: FakeClock) -> None:
    cache, seen = _cache(clock)
    cache.set("k", {"v": 1})
    clock.advance(3599)

    assert cache.get("k") == {"v": 1}
    assert seen[-1].name == EventName.CACHE_HIT


def test_get_treats_expired_entry_as_absent_without_evicting(clock: FakeClock) -> None:
    cache, seen = _cache(clock)
    cache.set("k", {"v": 1})
    clock.advance(3600)

    assert cache.get("k") is None
    assert "k" in cache
    assert len(cache) == 1
    assert seen[-1].name == EventName.CACHE_MISS
    assert seen[-1].attributes["expired"] is True


def test_get_missing_key(clock: FakeClock) -> None:
    cache, seen = _cache(clock)

    assert cache.get("missing") is None
    assert seen[-1].attributes == {"key": "missing", "expired": False}


def test_peek_does_not_emit_events(clock: FakeClock) -> None:
    cache, seen = _cache(clock)
    cache.set("k", 1)

    assert cache.peek("k") == 1
    assert cache.peek("other") is None
    assert seen == []


def test_set_overwrites_and_refreshes_age(clock: FakeClock) -> None:
    cache, _ = _cache(clock)
    cache.set("k", "old")
    clock.advance(3000)
    cache.set("k", "new")
    clock.advance(3000)

    assert cache.get("k") == "new"


@pytest.mark.parametrize("stale_count", [0, 1, 5])
def test_sweep_removes_exactly_the_stale_entries(clock: FakeClock, stale_count: int) -> None:
    cache, seen = _cache(clock)
    for index in range(stale_count):
        cache.set(f"stale-{index}", index)
    clock.advance(7200)
    cache.set("fresh", "x")

    removed = cache.sweep(3600)

    assert removed == stale_count
    assert len(cache) == 1
    assert "fresh" in cache
    assert seen[-1].name == EventName.SWEEP_COMPLETED
    assert seen[-1].attributes == {"removed": stale_count, "remaining": 1}


def test_sweep_defaults_to_configured_max_age(clock: FakeClock) -> None:
    cache, _ = _cache(clock, max_age=60)
    cache.set("a", 1)
    clock.advance(61)

    assert cache.sweep() == 1


def test_clear_empties_unconditionally(clock: FakeClock) -> None:
    cache, _ = _cache(clock)
    cache.set("a", 1)
    cache.set("b", 2)

    assert cache.clear() == 2
    assert len(cache) == 0
    assert cache.get("a") is None


def test_stats_reports_size_keys_and_oldest_age(clock: FakeClock) -> None:
    cache, _ = _cache(clock)
    assert cache.stats().oldest_entry_age_seconds is None

    cache.set("a", 1)
    clock.advance(100)
    cache.set("b", 2)
    clock.advance(20)

    stats = cache.stats()
    assert stats.size == 2
    assert stats.keys == ["a", "b"]
    assert stats.oldest_entry_age_seconds == 120


def test_failing_subscriber_does_not_break_cache(clock: FakeClock) -> None:
    events = EventHooks()

    def broken(event: PipelineEvent) -> None:
        raise RuntimeError("boom")

    events.subscribe(broken)
    cache = ResultCache(clock=clock, events=events)
    cache.set("a", 1)

    assert cache.get("a") == 1
