"""Host runtime: clock, serialized atomic execution and the event log.

Operations run one at a time. Each public mutating operation executes
inside :meth:`Runtime.atomic`, which snapshots every registered participant
and restores all of them when the operation raises, so a failed operation
leaves every entity exactly as it was. Reentrant operations (an external
collaborator calling back into a component mid-operation) take their own
savepoint.

External effects go through :meth:`Runtime.commit_then_call`: the local
post-state is applied before the collaborator is invoked, so a reentrant
call only ever observes closed state.
"""

from __future__ import annotations

import copy
import functools
import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterator, Protocol, TypeVar

from asset_settlement.models.base import Event

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class ManualClock:
    """Clock that only moves when told to. Used by tests and simulations."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def advance(self, delta: timedelta) -> datetime:
        if delta < timedelta(0):
            raise ValueError("clock cannot move backwards")
        self._now += delta
        return self._now

    def set(self, moment: datetime) -> None:
        if moment < self._now:
            raise ValueError("clock cannot move backwards")
        self._now = moment


class Stateful:
    """Mixin for objects whose state is rolled back on failed operations.

    Subclasses list the attributes that make up their state in
    ``_state_fields``. Lists that are only ever appended to go in
    ``_append_only_fields`` instead: they are saved by length and truncated
    on restore, so a savepoint costs nothing as history grows. References to
    collaborators are never listed.
    """

    _state_fields: tuple[str, ...] = ()
    _append_only_fields: tuple[str, ...] = ()

    def snapshot(self) -> dict[str, Any]:
        state = {name: copy.deepcopy(getattr(self, name)) for name in self._state_fields}
        for name in self._append_only_fields:
            state[name] = len(getattr(self, name))
        return state

    def restore(self, state: dict[str, Any]) -> None:
        for name, value in state.items():
            if name in self._append_only_fields:
                del getattr(self, name)[value:]
            else:
                setattr(self, name, value)


class EventLog(Stateful):
    """Append-only audit trail of committed state transitions."""

    _append_only_fields = ("events",)

    def __init__(self) -> None:
        self.events: list[Event] = []

    def append(self, event: Event) -> None:
        self.events.append(event)

    def of_type(self, event_type: str) -> list[Event]:
        return [e for e in self.events if e.event_type == event_type]

    def for_subject(self, subject: str) -> list[Event]:
        return [e for e in self.events if e.subject == subject]

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self.events)


class Runtime:
    """Serialized execution host shared by all components.

    Parameters
    ----------
    clock : Clock | None
        Time source (default: :class:`SystemClock`).
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self.clock = clock or SystemClock()
        self.events = EventLog()
        self._participants: list[Stateful] = [self.events]
        self._depth = 0
        self._external_depth = 0

    def register(self, *participants: Stateful) -> None:
        """Enroll participants in rollback."""
        for participant in participants:
            if participant not in self._participants:
                self._participants.append(participant)

    def now(self) -> datetime:
        return self.clock.now()

    @property
    def in_operation(self) -> bool:
        return self._depth > 0

    @contextmanager
    def atomic(self, operation: str) -> Iterator[None]:
        """Run a block as one all-or-nothing operation."""
        if self._external_depth:
            logger.debug("Reentrant call into %s during external call", operation)

        saved = [(p, p.snapshot()) for p in self._participants]
        self._depth += 1
        try:
            yield
        except Exception as exc:
            for participant, state in saved:
                participant.restore(state)
            logger.warning(
                "Operation %s aborted: %s: %s",
                operation,
                type(exc).__name__,
                exc,
                extra={"operation": operation},
            )
            raise
        finally:
            self._depth -= 1

    def commit_then_call(self, apply: Callable[[], None] | None, call: Callable[[], T]) -> T:
        """Apply the local post-state, then issue the external call.

        Parameters
        ----------
        apply : Callable[[], None] | None
            Mutation bringing local state to its post-condition. ``None``
            when the post-state was already applied by the caller.
        call : Callable[[], T]
            The external effect (registry, ledger or splitter call).

        Returns
        -------
        T
            Whatever the external call returns.
        """
        if apply is not None:
            apply()
        self._external_depth += 1
        try:
            return call()
        finally:
            self._external_depth -= 1

    def emit(self, event_type: str, source: str, subject: str, **data: Any) -> Event:
        """Record an event for the current operation."""
        event = Event(
            event_id=uuid.uuid4().hex,
            event_type=event_type,
            event_time=self.now(),
            source=source,
            subject=subject,
            data=data,
        )
        self.events.append(event)
        logger.info("%s %s %s", event_type, subject, data)
        return event


def transactional(method: Callable[..., T]) -> Callable[..., T]:
    """Run a component method inside ``self.runtime.atomic()``."""

    @functools.wraps(method)
    def wrapper(self: Any, *args: Any, **kwargs: Any) -> T:
        with self.runtime.atomic(f"{type(self).__name__}.{method.__name__}"):
            return method(self, *args, **kwargs)

    return wrapper
