# purchase_intake/client/state_machine.py
"""
Submission status for the intake form.

    idle -> loading -> success -> idle      (timed reset)
                    -> error   -> idle      (timed reset, "recorded locally" only)
                               -> loading   (user retries)

Timed resets go through schedule_reset(). Each schedule bumps a generation
counter; a timer that fires after a newer submission started sees a stale
generation and does nothing.
"""

import threading
from enum import Enum
from typing import Callable, Dict, FrozenSet, Optional


class SubmissionStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


_ALLOWED: Dict[SubmissionStatus, FrozenSet[SubmissionStatus]] = {
    SubmissionStatus.IDLE: frozenset({SubmissionStatus.LOADING}),
    SubmissionStatus.LOADING: frozenset({SubmissionStatus.SUCCESS, SubmissionStatus.ERROR}),
    SubmissionStatus.SUCCESS: frozenset({SubmissionStatus.IDLE, SubmissionStatus.LOADING}),
    SubmissionStatus.ERROR: frozenset({SubmissionStatus.IDLE, SubmissionStatus.LOADING}),
}


class InvalidTransition(RuntimeError):
    pass


TimerFactory = Callable[[float, Callable[[], None]], "threading.Timer"]


class SubmissionStateMachine:
    def __init__(self, timer_factory: Optional[TimerFactory] = None):
        self._status = SubmissionStatus.IDLE
        self._timer_factory = timer_factory or threading.Timer
        self._timer = None
        self._generation = 0
        self._lock = threading.RLock()

    @property
    def status(self) -> SubmissionStatus:
        return self._status

    @property
    def reset_pending(self) -> bool:
        return self._timer is not None

    def transition(self, target: SubmissionStatus) -> None:
        with self._lock:
            if target not in _ALLOWED[self._status]:
                raise InvalidTransition(f"{self._status.value} -> {target.value}")
            self._status = target

    def begin(self) -> None:
        """Start a submission, discarding any reset still pending from the last one."""
        with self._lock:
            self.cancel_pending_reset()
            self.transition(SubmissionStatus.LOADING)

    def succeed(self) -> None:
        self.transition(SubmissionStatus.SUCCESS)

    def fail(self) -> None:
        self.transition(SubmissionStatus.ERROR)

    def schedule_reset(self, delay: float, on_reset: Optional[Callable[[], None]] = None) -> None:
        """After `delay` seconds run `on_reset` and return to idle."""
        with self._lock:
            self.cancel_pending_reset()
            self._generation += 1
            generation = self._generation

            def _fire():
                with self._lock:
                    if generation != self._generation:
                        return
                    self._timer = None
                    if on_reset is not None:
                        on_reset()
                    self.transition(SubmissionStatus.IDLE)

            timer = self._timer_factory(delay, _fire)
            timer.daemon = True
            self._timer = timer
            timer.start()

    def cancel_pending_reset(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._generation += 1
