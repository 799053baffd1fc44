"""Manually driven timer queue for tests."""

from __future__ import annotations

from dataclasses import dataclass, field

from aura.core.timers import TimerCallback, TimerHandle, TimerQueue


@dataclass
class MockTimer(TimerHandle):
    """Record of a scheduled callback."""

    _delay: float
    callback: TimerCallback
    name: str = ""
    _cancelled: bool = False
    fired: bool = field(default=False)

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class MockTimerQueue(TimerQueue):
    """Timer queue that only runs callbacks when told to.

    Example:
        timers = MockTimerQueue()
        client = VoiceSessionClient(config, ..., timers=timers)

        await client.start()          # fails, schedules a reconnect
        assert timers.delays == [2.0]
        await timers.fire_next()      # runs the reconnect now
    """

    def __init__(self) -> None:
        self.scheduled: list[MockTimer] = []

    def call_later(self, delay: float, callback: TimerCallback, *, name: str = "") -> TimerHandle:
        timer = MockTimer(_delay=delay, callback=callback, name=name)
        self.scheduled.append(timer)
        return timer

    @property
    def pending(self) -> list[MockTimer]:
        return [t for t in self.scheduled if not t.cancelled and not t.fired]

    @property
    def delays(self) -> list[float]:
        """Delays of every timer ever scheduled, in order."""
        return [t.delay for t in self.scheduled]

    def pending_named(self, name: str) -> list[MockTimer]:
        return [t for t in self.pending if t.name == name]

    async def fire_next(self) -> MockTimer | None:
        """Run the oldest pending timer. Returns it, or None if idle."""
        pending = self.pending
        if not pending:
            return None
        timer = pending[0]
        timer.fired = True
        await timer.callback()
        return timer

    async def fire_all(self) -> int:
        """Run pending timers until none remain. Returns the count fired."""
        count = 0
        while await self.fire_next() is not None:
            count += 1
        return count

    async def close(self) -> None:
        for timer in self.pending:
            timer.cancel()
