"""Tests for the runtime: clocks, atomic rollback and the event log."""

from datetime import datetime, timedelta, timezone

import pytest

from asset_settlement.runtime import (
    EventLog,
    ManualClock,
    Runtime,
    Stateful,
    SystemClock,
    transactional,
)


class Counter(Stateful):
    """Minimal participant used to observe rollback."""

    _state_fields = ("value", "history")

    def __init__(self, runtime: Runtime) -> None:
        self.runtime = runtime
        self.value = 0
        self.history: list[int] = []

    @transactional
    def bump(self, fail: bool = False) -> int:
        self.value += 1
        self.history.append(self.value)
        self.runtime.emit("counter.bumped", "counter", "c", value=self.value)
        if fail:
            raise RuntimeError("fail after mutation")
        return self.value


class TestClocks:
    """Tests for SystemClock and ManualClock."""

    def test_system_clock_is_utc(self) -> None:
        assert SystemClock().now().tzinfo == timezone.utc

    def test_manual_clock_default_start(self) -> None:
        assert ManualClock().now() == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_manual_clock_advance(self) -> None:
        clock = ManualClock()

        moment = clock.advance(timedelta(hours=2))

        assert moment == datetime(2024, 1, 1, 2, tzinfo=timezone.utc)
        assert clock.now() == moment

    def test_manual_clock_never_moves_backwards(self) -> None:
        clock = ManualClock()

        with pytest.raises(ValueError):
            clock.advance(timedelta(seconds=-1))
        with pytest.raises(ValueError):
            clock.set(datetime(2023, 12, 31, tzinfo=timezone.utc))

    def test_manual_clock_set(self) -> None:
        clock = ManualClock()
        target = datetime(2024, 3, 1, tzinfo=timezone.utc)

        clock.set(target)

        assert clock.now() == target


class TestAtomic:
    """Tests for all-or-nothing operations."""

    def test_successful_operation_commits(self) -> None:
        runtime = Runtime(ManualClock())
        counter = Counter(runtime)
        runtime.register(counter)

        assert counter.bump() == 1
        assert counter.history == [1]
        assert len(runtime.events) == 1

    def test_failed_operation_restores_state_and_events(self) -> None:
        runtime = Runtime(ManualClock())
        counter = Counter(runtime)
        runtime.register(counter)
        counter.bump()

        with pytest.raises(RuntimeError):
            counter.bump(fail=True)

        assert counter.value == 1
        assert counter.history == [1]
        assert len(runtime.events) == 1

    def test_failure_restores_every_participant(self) -> None:
        runtime = Runtime(ManualClock())
        first = Counter(runtime)
        second = Counter(runtime)
        runtime.register(first, second)

        with pytest.raises(RuntimeError):
            with runtime.atomic("combined"):
                first.bump()
                second.bump(fail=True)

        assert first.value == 0
        assert second.value == 0
        assert len(runtime.events) == 0

    def test_inner_failure_caught_keeps_outer_work(self) -> None:
        runtime = Runtime(ManualClock())
        counter = Counter(runtime)
        runtime.register(counter)

        with runtime.atomic("outer"):
            counter.bump()
            with pytest.raises(RuntimeError):
                counter.bump(fail=True)

        assert counter.value == 1
        assert counter.history == [1]

    def test_in_operation_flag(self) -> None:
        runtime = Runtime(ManualClock())

        assert runtime.in_operation is False
        with runtime.atomic("check"):
            assert runtime.in_operation is True
        assert runtime.in_operation is False

    def test_register_is_idempotent(self) -> None:
        runtime = Runtime(ManualClock())
        counter = Counter(runtime)

        runtime.register(counter)
        runtime.register(counter)

        assert runtime._participants.count(counter) == 1

    def test_abort_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        runtime = Runtime(ManualClock())
        counter = Counter(runtime)
        runtime.register(counter)

        with caplog.at_level("WARNING", logger="asset_settlement.runtime"):
            with pytest.raises(RuntimeError):
                counter.bump(fail=True)

        assert "Counter.bump aborted" in caplog.text


class TestCommitThenCall:
    """Tests for the mutate-then-call helper."""

    def test_apply_runs_before_call(self) -> None:
        runtime = Runtime(ManualClock())
        order: list[str] = []

        result = runtime.commit_then_call(
            lambda: order.append("apply"),
            lambda: order.append("call") or "done",
        )

        assert order == ["apply", "call"]
        assert result == "done"

    def test_call_sees_applied_state(self) -> None:
        runtime = Runtime(ManualClock())
        state = {"closed": False}

        observed = runtime.commit_then_call(
            lambda: state.__setitem__("closed", True),
            lambda: state["closed"],
        )

        assert observed is True

    def test_none_apply(self) -> None:
        runtime = Runtime(ManualClock())

        assert runtime.commit_then_call(None, lambda: 7) == 7

    def test_external_depth_resets_on_error(self) -> None:
        runtime = Runtime(ManualClock())

        def explode() -> None:
            raise RuntimeError("collaborator failed")

        with pytest.raises(RuntimeError):
            runtime.commit_then_call(None, explode)

        assert runtime._external_depth == 0


class TestEventLog:
    """Tests for EventLog and Runtime.emit."""

    def test_emit_builds_event(self) -> None:
        clock = ManualClock()
        runtime = Runtime(clock)

        event = runtime.emit("custody.locked", "custodian", "asset-0001", depositor="alice")

        assert event.event_type == "custody.locked"
        assert event.source == "custodian"
        assert event.subject == "asset-0001"
        assert event.event_time == clock.now()
        assert event.data == {"depositor": "alice"}
        assert len(event.event_id) == 32

    def test_queries(self) -> None:
        runtime = Runtime(ManualClock())
        runtime.emit("loan.requested", "lending", "asset-0001")
        runtime.emit("loan.repaid", "lending", "asset-0001")
        runtime.emit("loan.requested", "lending", "asset-0002")

        log = runtime.events
        assert isinstance(log, EventLog)
        assert len(log.of_type("loan.requested")) == 2
        assert [e.event_type for e in log.for_subject("asset-0001")] == ["loan.requested", "loan.repaid"]
        assert len(list(log)) == 3

    def test_snapshot_records_length(self) -> None:
        runtime = Runtime(ManualClock())
        runtime.emit("loan.requested", "lending", "asset-0001")
        runtime.emit("loan.repaid", "lending", "asset-0001")

        assert runtime.events.snapshot() == {"events": 2}

    def test_failed_operation_truncates_log(self) -> None:
        runtime = Runtime(ManualClock())
        counter = Counter(runtime)
        runtime.register(counter)
        for _ in range(3):
            counter.bump()
        committed = list(runtime.events)

        with pytest.raises(RuntimeError):
            counter.bump(fail=True)

        assert len(runtime.events) == 3
        assert all(kept is original for kept, original in zip(runtime.events, committed))
        assert runtime.events.of_type("counter.bumped")[-1].data == {"value": 3}
