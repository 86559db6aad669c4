"""Tests for RunRegistry."""

import pytest

from courtbot.domain.runs import RunConflictError, RunRegistry

from tests.fakes import FakeWorkerHandle


@pytest.fixture
def handle():
    return FakeWorkerHandle(hold=True)


def attach(registry, run_id, handle):
    registry.reserve(run_id)
    assert registry.attach(run_id, handle)


class TestRunRegistry:
    def test_attach_and_lookup(self, registry, handle):
        attach(registry, "r1", handle)

        assert registry.lookup("r1") is handle
        assert "r1" in registry
        assert len(registry) == 1
        assert registry.active_runs() == ["r1"]

    def test_register_reserves_and_attaches(self, registry, handle):
        registry.register("r1", handle)

        assert registry.lookup("r1") is handle
        with pytest.raises(RunConflictError):
            registry.register("r1", FakeWorkerHandle())

    def test_duplicate_run_rejected(self, registry, handle):
        attach(registry, "r1", handle)
        with pytest.raises(RunConflictError):
            attach(registry, "r1", FakeWorkerHandle())

    def test_cancel_terminates_and_removes(self, registry, handle):
        attach(registry, "r1", handle)

        assert registry.cancel("r1") is True

        assert handle.cancel_requested
        assert handle.terminate_calls == 1
        assert registry.lookup("r1") is None

    def test_cancel_twice_signals_once(self, registry, handle):
        attach(registry, "r1", handle)

        assert registry.cancel("r1") is True
        assert registry.cancel("r1") is False
        assert handle.terminate_calls == 1

    def test_cancel_unknown_run(self, registry):
        assert registry.cancel("missing") is False

    def test_unregister_ignores_other_handle(self, registry, handle):
        attach(registry, "r1", handle)

        assert registry.unregister("r1", FakeWorkerHandle()) is False
        assert registry.lookup("r1") is handle
        assert registry.unregister("r1", handle) is True
        assert registry.unregister("r1") is False

    def test_cancel_all(self, registry):
        handles = [FakeWorkerHandle(hold=True) for _ in range(3)]
        for index, item in enumerate(handles):
            attach(registry, f"r{index}", item)

        assert registry.cancel_all() == 3

        assert len(registry) == 0
        assert all(item.cancel_requested for item in handles)

    def test_instances_are_independent(self, handle):
        first, second = RunRegistry(), RunRegistry()
        attach(first, "r1", handle)
        assert "r1" not in second


class TestReservation:
    def test_reserved_run_is_active_without_handle(self, registry):
        registry.reserve("r1")

        assert "r1" in registry
        assert registry.lookup("r1") is None
        assert registry.active_runs() == ["r1"]
        assert registry.is_cancelled("r1") is False

    def test_reserve_twice_rejected(self, registry):
        registry.reserve("r1")
        with pytest.raises(RunConflictError):
            registry.reserve("r1")

    def test_attach_binds_handle(self, registry, handle):
        registry.reserve("r1")

        assert registry.attach("r1", handle) is True
        assert registry.lookup("r1") is handle

    def test_cancel_before_attach_is_recorded(self, registry, handle):
        registry.reserve("r1")

        assert registry.cancel("r1") is True

        assert registry.is_cancelled("r1") is True
        assert registry.active_runs() == []
        assert registry.cancel("r1") is False
        assert registry.attach("r1", handle) is False
        assert handle.terminate_calls == 0

    def test_attach_without_reservation_fails(self, registry, handle):
        assert registry.attach("r1", handle) is False
        assert registry.is_cancelled("r1") is True

    def test_unregister_clears_pending_reservation(self, registry):
        registry.reserve("r1")
        registry.cancel("r1")

        assert registry.unregister("r1") is True
        assert len(registry) == 0

    def test_cancel_all_includes_pending(self, registry, handle):
        registry.reserve("r0")
        attach(registry, "r1", handle)

        assert registry.cancel_all() == 2
        assert handle.cancel_requested
        assert len(registry) == 0
