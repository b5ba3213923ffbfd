from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Literal

from LINEDASH.app.client.scheduler import Scheduler, TimerHandle
from LINEDASH.app.constants import MIN_SAVING_VISIBLE, SAVED_VISIBLE, SAVING_DELAY

SaveOutcome = Literal["success", "error"]


###############################################################################
class IndicatorState(str, Enum):
    IDLE = "idle"
    PENDING_SAVING = "pending_saving"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


###############################################################################
@dataclass(frozen=True)
class IndicatorTimings:
    saving_delay: float = SAVING_DELAY
    min_saving_visible: float = MIN_SAVING_VISIBLE
    saved_visible: float = SAVED_VISIBLE


###############################################################################
@dataclass(frozen=True)
class CellIndicator:
    status: Literal["saving", "saved"]
    visible_since: float


###############################################################################
class CellIndicatorMachine:
    """Save feedback for a single cell.

    ``Saving`` only appears when a request outlives the saving delay. Once
    shown it stays on screen for at least the minimum visibility window, and
    ``Saved`` then lingers for its own window before the cell returns to idle.
    Starting a new save cancels every pending timer of the previous one.

    """

    def __init__(self, scheduler: Scheduler, timings: IndicatorTimings) -> None:
        self.scheduler = scheduler
        self.timings = timings
        self.state = IndicatorState.IDLE
        self.visible_since: float | None = None
        self._timers: dict[str, TimerHandle] = {}
        self._generation = 0

    # -------------------------------------------------------------------------
    def _schedule(self, name: str, delay: float, callback: Callable[[], None]) -> None:
        generation = self._generation

        def run() -> None:
            # a superseded save must never touch the current one
            if generation != self._generation:
                return
            self._timers.pop(name, None)
            callback()

        self._timers[name] = self.scheduler.call_later(delay, run)

    # -------------------------------------------------------------------------
    def _cancel_timers(self) -> None:
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()

    # -------------------------------------------------------------------------
    def begin(self) -> None:
        self._generation += 1
        self._cancel_timers()
        self.state = IndicatorState.PENDING_SAVING
        self.visible_since = None
        self._schedule("saving_delay", self.timings.saving_delay, self._show_saving)

    # -------------------------------------------------------------------------
    def finalize(self, outcome: SaveOutcome) -> None:
        if self.state not in (IndicatorState.PENDING_SAVING, IndicatorState.SAVING):
            return
        if "transition" in self._timers:
            return

        if self.state == IndicatorState.PENDING_SAVING:
            # finished before the delay elapsed, Saving is never shown
            self._cancel_timers()

        transition = self._show_saved if outcome == "success" else self._show_error
        remaining = 0.0
        if self.state == IndicatorState.SAVING and self.visible_since is not None:
            elapsed = self.scheduler.now() - self.visible_since
            remaining = max(0.0, self.timings.min_saving_visible - elapsed)

        if remaining > 0:
            self._schedule("transition", remaining, transition)
        else:
            transition()

    # -------------------------------------------------------------------------
    def _show_saving(self) -> None:
        if self.state != IndicatorState.PENDING_SAVING:
            return
        self.state = IndicatorState.SAVING
        self.visible_since = self.scheduler.now()

    # -------------------------------------------------------------------------
    def _show_saved(self) -> None:
        self.state = IndicatorState.SAVED
        self.visible_since = self.scheduler.now()
        self._schedule("saved_cleanup", self.timings.saved_visible, self._clear_saved)

    # -------------------------------------------------------------------------
    def _show_error(self) -> None:
        self.state = IndicatorState.ERROR
        self.visible_since = None

    # -------------------------------------------------------------------------
    def _clear_saved(self) -> None:
        if self.state == IndicatorState.SAVED:
            self.state = IndicatorState.IDLE
            self.visible_since = None

    # -------------------------------------------------------------------------
    def clear_error(self) -> None:
        if self.state == IndicatorState.ERROR:
            self.state = IndicatorState.IDLE

    # -------------------------------------------------------------------------
    @property
    def indicator(self) -> CellIndicator | None:
        if self.visible_since is None:
            return None
        if self.state == IndicatorState.SAVING:
            return CellIndicator(status="saving", visible_since=self.visible_since)
        if self.state == IndicatorState.SAVED:
            return CellIndicator(status="saved", visible_since=self.visible_since)
        return None

    # -------------------------------------------------------------------------
    def dispose(self) -> None:
        self._generation += 1
        self._cancel_timers()
        self.state = IndicatorState.IDLE
        self.visible_since = None


###############################################################################
class SaveIndicatorBoard:
    """Per-cell indicator machines keyed by ``"{rowId}:{field}"``."""

    def __init__(
        self, scheduler: Scheduler, timings: IndicatorTimings | None = None
    ) -> None:
        self.scheduler = scheduler
        self.timings = timings or IndicatorTimings()
        self._machines: dict[str, CellIndicatorMachine] = {}

    # -------------------------------------------------------------------------
    def _machine(self, key: str) -> CellIndicatorMachine:
        machine = self._machines.get(key)
        if machine is None:
            machine = CellIndicatorMachine(self.scheduler, self.timings)
            self._machines[key] = machine
        return machine

    # -------------------------------------------------------------------------
    def begin(self, keys: Iterable[str]) -> None:
        for key in keys:
            self._machine(key).begin()

    # -------------------------------------------------------------------------
    def finalize(self, keys: Iterable[str], outcome: SaveOutcome) -> None:
        for key in keys:
            machine = self._machines.get(key)
            if machine is not None:
                machine.finalize(outcome)

    # -------------------------------------------------------------------------
    def clear_error(self, key: str) -> None:
        machine = self._machines.get(key)
        if machine is not None:
            machine.clear_error()

    # -------------------------------------------------------------------------
    def state(self, key: str) -> IndicatorState:
        machine = self._machines.get(key)
        return machine.state if machine is not None else IndicatorState.IDLE

    # -------------------------------------------------------------------------
    def indicator(self, key: str) -> CellIndicator | None:
        machine = self._machines.get(key)
        return machine.indicator if machine is not None else None

    # -------------------------------------------------------------------------
    @property
    def indicators(self) -> dict[str, CellIndicator]:
        visible = {}
        for key, machine in self._machines.items():
            indicator = machine.indicator
            if indicator is not None:
                visible[key] = indicator
        return visible

    # -------------------------------------------------------------------------
    def dispose(self) -> None:
        for machine in self._machines.values():
            machine.dispose()
        self._machines.clear()
