"""Progress smoothing for sparse backend progress signals.

Providers often report progress only at 0% and 100%. A ``ProgressController``
keeps two numbers apart: ``backend`` (the last value the service reported)
and ``display`` (what observers see). A fixed tick moves ``display`` towards
a cap slightly ahead of ``backend`` so a progress bar keeps moving between
updates without ever claiming completion early.

Ownership is explicit: each in-flight generation holds its own controller
handle. A ``ProgressSlot`` owns "the controller currently driving this UI
slot" and tears down the previous one (by identity) before starting a new
one, so two timers never write to the same observer.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

from genflow.config import get_settings
from genflow.schemas.jobs import NormalizedStatus

logger = logging.getLogger(__name__)

LEAD_ALLOWANCE = 8.0
MAX_CAP_BEFORE_DONE = 99.0
FINISH_STEP = 1.5
CRAWL_STEP = 0.2
CRAWL_BAND = 1.0


@dataclass(frozen=True)
class ProgressUpdate:
    """One published progress value."""

    progress: float
    status: NormalizedStatus
    stage: str | None = None
    job_id: str | None = None


@dataclass
class ProgressState:
    backend: float = 0.0
    display: float = 1.0
    status: NormalizedStatus = NormalizedStatus.QUEUED
    stage: str | None = None
    job_id: str | None = None
    # Dedup: what was last published.
    last_progress: float | None = None
    last_status: NormalizedStatus | None = None
    last_stage: str | None = None
    last_job_id: str | None = None


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def backend_cap(backend: float) -> float:
    """How far display may run ahead of the last known backend value."""
    if backend >= 100:
        return 100.0
    return min(backend + LEAD_ALLOWANCE, MAX_CAP_BEFORE_DONE)


def gap_step(gap: float) -> float:
    if gap > 15:
        return 1.8
    if gap > 8:
        return 1.2
    if gap > 3:
        return 0.8
    if gap > CRAWL_BAND:
        return 0.4
    return CRAWL_STEP


def next_display(backend: float, display: float, crawl_ceiling: float = 96.0) -> float:
    """Display value after one tick.

    Once backend reports 100 the display free-runs to 100. Before that it
    approaches ``backend_cap`` with a gap dependent step, never passing the
    crawl ceiling.
    """
    if backend >= 100:
        return min(100.0, display + FINISH_STEP)

    ceiling = min(backend_cap(backend), crawl_ceiling)
    gap = ceiling - display
    if gap <= 0:
        return display
    return min(ceiling, display + gap_step(gap))


class ProgressController:
    """Timer-driven smoother for one in-flight generation."""

    def __init__(
        self,
        on_emit: Callable[[ProgressUpdate], None],
        *,
        tick_interval: float | None = None,
        crawl_ceiling: float | None = None,
    ) -> None:
        settings = get_settings()
        self.on_emit = on_emit
        self.tick_interval = settings.PROGRESS_TICK_INTERVAL if tick_interval is None else tick_interval
        self.crawl_ceiling = settings.PROGRESS_CRAWL_CEILING if crawl_ceiling is None else crawl_ceiling
        self.state = ProgressState()
        self._timer: asyncio.TimerHandle | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._stopped = False

    @property
    def active(self) -> bool:
        return self._timer is not None

    @property
    def stopped(self) -> bool:
        return self._stopped

    def start(
        self,
        status: NormalizedStatus = NormalizedStatus.QUEUED,
        progress: float = 0.0,
    ) -> "ProgressController":
        """Seed state, publish once, then tick every ``tick_interval``.

        Must be called from inside a running event loop.
        """
        self._loop = asyncio.get_running_loop()
        initial = _clamp(progress)
        self.state.backend = initial
        self.state.display = max(initial, 1.0)
        self.state.status = status
        self._emit()
        self._schedule()
        return self

    def tick(self) -> None:
        """Advance display once. Runs to completion synchronously."""
        if self._stopped:
            return
        state = self.state
        if state.status.is_terminal:
            self._cancel_timer()
            return

        display = next_display(state.backend, state.display, self.crawl_ceiling)
        if display != state.display:
            state.display = display
            self._emit()

    def update_with_backend(
        self,
        *,
        progress: float | None = None,
        status: NormalizedStatus | None = None,
        stage: str | None = None,
        job_id: str | None = None,
    ) -> None:
        """Fold in a backend report. Backend progress never goes down."""
        if self._stopped:
            return
        state = self.state
        if progress is not None:
            value = _clamp(progress)
            if value > state.backend:
                state.backend = value
            if value > state.display:
                state.display = value
        if status is not None:
            state.status = status
        if stage is not None:
            state.stage = stage
        if job_id is not None:
            state.job_id = job_id
        self._emit()

    def stop(
        self,
        *,
        status: NormalizedStatus | None = None,
        progress: float | None = None,
        stage: str | None = None,
    ) -> None:
        """Cancel the timer, publish a final value and discard the controller."""
        if self._stopped:
            return
        self._cancel_timer()
        state = self.state
        if progress is not None:
            floor = _clamp(progress)
            state.backend = max(state.backend, floor)
            state.display = max(state.display, floor)
        if status is not None:
            state.status = status
        if stage is not None:
            state.stage = stage
        self._emit()
        self._stopped = True

    # -- internals ---------------------------------------------------------

    def _schedule(self) -> None:
        if self._stopped or self._loop is None:
            return
        self._timer = self._loop.call_later(self.tick_interval, self._on_timer)

    def _on_timer(self) -> None:
        self._timer = None
        self.tick()
        if not self._stopped and not self.state.status.is_terminal:
            self._schedule()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _emit(self) -> None:
        state = self.state
        value = round(state.display, 1)
        if (
            value == state.last_progress
            and state.status == state.last_status
            and state.stage == state.last_stage
            and state.job_id == state.last_job_id
        ):
            return
        state.last_progress = value
        state.last_status = state.status
        state.last_stage = state.stage
        state.last_job_id = state.job_id
        self.on_emit(
            ProgressUpdate(
                progress=value,
                status=state.status,
                stage=state.stage,
                job_id=state.job_id,
            )
        )


class ProgressSlot:
    """Owner of the controller currently driving one observer."""

    def __init__(self) -> None:
        self.current: ProgressController | None = None

    def start(
        self,
        on_emit: Callable[[ProgressUpdate], None],
        *,
        status: NormalizedStatus = NormalizedStatus.QUEUED,
        progress: float = 0.0,
        tick_interval: float | None = None,
        crawl_ceiling: float | None = None,
    ) -> ProgressController:
        if self.current is not None:
            logger.debug("Tearing down previous progress controller")
            self.current.stop()
            self.current = None
        controller = ProgressController(
            on_emit,
            tick_interval=tick_interval,
            crawl_ceiling=crawl_ceiling,
        )
        self.current = controller
        return controller.start(status, progress)

    def stop(self, controller: ProgressController, **final) -> None:
        """Stop ``controller``; release the slot only if it still owns it."""
        controller.stop(**final)
        if self.current is controller:
            self.current = None
