import threading

from fakes import FakeClock, SentinelHubStub, make_service
from flood_twin.satellite.scheduler import BackgroundTasks, PeriodicTask


def test_run_once_swallows_action_errors() -> None:
    calls: list[int] = []

    def failing() -> None:
        calls.append(1)
        raise RuntimeError("boom")

    task = PeriodicTask("failing", 60, failing)

    task.run_once()
    task.run_once()

    assert calls == [1, 1]


def test_periodic_task_runs_until_stopped() -> None:
    ticks = threading.Semaphore(0)
    task = PeriodicTask("tick", 0.01, ticks.release)

    task.start()
    assert task.running
    assert ticks.acquire(timeout=5)
    assert ticks.acquire(timeout=5)
    task.stop()

    assert not task.running


def test_start_is_idempotent() -> None:
    task = PeriodicTask("idle", 60, lambda: None)

    task.start()
    first = task._thread
    task.start()

    assert task._thread is first
    task.stop()


def test_renew_token_forces_exchange(stub: SentinelHubStub, clock: FakeClock) -> None:
    service = make_service(stub, clock)
    background = BackgroundTasks(service.token_manager, service.cache, token_renew_seconds=60, cache_sweep_seconds=60)

    service.token_manager.get_token()
    background.token_renewal.run_once()

    assert stub.token_calls == 2
    assert service.token_manager.credential.token == "token-2"


def test_renew_token_skipped_without_credentials(stub: SentinelHubStub, clock: FakeClock) -> None:
    service = make_service(stub, clock, client_id=None, client_secret=None)
    background = BackgroundTasks(service.token_manager, service.cache, token_renew_seconds=60, cache_sweep_seconds=60)

    background.token_renewal.run_once()

    assert stub.requests == []


def test_failed_renewal_keeps_timer_alive(stub: SentinelHubStub, clock: FakeClock) -> None:
    service = make_service(stub, clock)
    background = BackgroundTasks(service.token_manager, service.cache, token_renew_seconds=60, cache_sweep_seconds=60)
    stub.token_status = 500

    background.token_renewal.run_once()

    assert service.token_manager.credential is None
    stub.token_status = 200
    background.token_renewal.run_once()
    assert service.token_manager.credential is not None


def test_sweep_removes_stale_entries(stub: SentinelHubStub, clock: FakeClock) -> None:
    service = make_service(stub, clock, max_age_seconds=60)
    background = BackgroundTasks(service.token_manager, service.cache, token_renew_seconds=60, cache_sweep_seconds=60)
    service.cache.set("old", "x")
    clock.advance(120)
    service.cache.set("new", "y")

    background.cache_sweep.run_once()

    assert "old" not in service.cache
    assert "new" in service.cache


def test_background_tasks_start_and_stop(stub: SentinelHubStub, clock: FakeClock) -> None:
    service = make_service(stub, clock)
    background = BackgroundTasks(service.token_manager, service.cache, token_renew_seconds=60, cache_sweep_seconds=60)

    background.start()
    assert background.token_renewal.running
    assert background.cache_sweep.running

    background.stop()
    assert not background.token_renewal.running
    assert not background.cache_sweep.running
