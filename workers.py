"""Background workers that drive a chase.

- ``WalkAnimator``: one-shot walk of the pursuer toward the rendezvous point
- ``FollowWorker``: 60 Hz loop keeping the pursuer on a dragged target
- ``TimeoutWorker``: one-shot delayed abort of an uncaptured session
- ``CaptureHandler``: terminal capture logic shared by walk and follow

Workers hold a reference to the owning ``ChaseEngine`` and poll its shared
flags once per iteration. Windowing failures inside a worker end that worker
quietly; a vanished surface is an expected end state.
"""

import time
from enum import Enum
from typing import TYPE_CHECKING, Optional

from .geometry import (
    bob_offset,
    clamp_to_bounds,
    follow_step,
    overlaps,
    rendezvous_point,
    walk_step_delay,
    walk_waypoints,
)
from .retry import RetryPolicy
from .schemas import Bounds, Position
from .windowing import WindowError

if TYPE_CHECKING:
    from .engine import ChaseEngine


class WalkOutcome(str, Enum):
    CAPTURE = "capture"
    ABORTED = "aborted"
    ARRIVED = "arrived"


def _bounds_of(engine: "ChaseEngine", label: str) -> Bounds:
    backend = engine.backend
    return Bounds.of(backend.get_position(label), backend.get_size(label))


def surfaces_overlap(engine: "ChaseEngine", pursuer_label: str) -> bool:
    """Test the live pursuer and target rectangles for overlap."""
    return overlaps(
        _bounds_of(engine, pursuer_label),
        _bounds_of(engine, engine.config.target_label),
    )


class CaptureHandler:
    """Ends a session because the pursuer reached the target."""

    def __init__(self, engine: "ChaseEngine"):
        self.engine = engine
        cfg = engine.config
        self.close_policy = RetryPolicy(
            attempts=cfg.close_retry_attempts,
            interval_s=cfg.close_retry_interval_s,
        )

    def capture(self, session_id: int) -> bool:
        """Capture the target for ``session_id``.

        Only the first caller for a session wins; later or stale callers get
        False and change nothing. Hiding, closing and the flag writes only
        run while the id claimed here is still current, so a session begun
        mid-close keeps its target and flags.
        """
        engine = self.engine
        if not engine.session.invalidate(expected=session_id):
            return False
        claimed_id = session_id + 1

        if engine.session.run_if_current(claimed_id, self._hide) is None:
            engine.log(f"[capture] Session {session_id} superseded before hiding target")
            return True
        closed = self.close_policy.run(lambda: self._close_attempt(claimed_id))
        if not closed:
            engine.log("[capture] Target did not close, leaving it behind")

        if engine.session.run_if_current(claimed_id, self._finish) is None:
            engine.log(f"[capture] Session {session_id} superseded, flags left to the new session")
        else:
            engine.log(f"[capture] Session {session_id} captured")
        return True

    def _hide(self) -> bool:
        try:
            self.engine.backend.hide(self.engine.config.target_label)
        except WindowError:
            pass
        return True

    def _close_attempt(self, claimed_id: int) -> bool:
        # Stale means a newer session owns whatever surface carries the label
        closed = self.engine.session.run_if_current(claimed_id, self._close_target)
        return closed is None or closed

    def _close_target(self) -> bool:
        backend = self.engine.backend
        label = self.engine.config.target_label
        if not backend.exists(label):
            return True
        backend.close(label)
        return not backend.exists(label)

    def _finish(self) -> bool:
        state = self.engine.state
        state.dragging.set(False)
        state.follow_phase.reset()
        state.timed_out.set(False)
        state.timeout_pending.set(False)
        state.eaten_pending.set(True)
        return True


class WalkAnimator:
    """Walks the pursuer along a curved path toward the rendezvous point."""

    def __init__(
        self,
        engine: "ChaseEngine",
        session_id: int,
        pursuer_label: str,
        start: Position,
        destination: Position,
    ):
        self.engine = engine
        self.session_id = session_id
        self.pursuer_label = pursuer_label
        self.start = start
        self.destination = destination
        self.outcome: Optional[WalkOutcome] = None

    def run(self) -> WalkOutcome:
        self.outcome = self._walk()
        self.engine.log(f"[walk] Session {self.session_id} ended: {self.outcome.value}")
        return self.outcome

    def _walk(self) -> WalkOutcome:
        engine = self.engine
        backend = engine.backend
        cfg = engine.config
        try:
            anchor = backend.get_position(cfg.target_label)
            moved = False
            for t, point in walk_waypoints(self.start, self.destination):
                moved = True
                if self._should_abort(anchor):
                    return WalkOutcome.ABORTED
                if backend.dispatch(lambda: self._step_to(point)):
                    return self._capture()
                time.sleep(walk_step_delay(t, cfg.walk_step_base_ms, cfg.walk_step_edge_ms))

            if not moved:
                return WalkOutcome.ARRIVED
            if self._should_abort(anchor):
                return WalkOutcome.ABORTED
            if backend.dispatch(lambda: self._step_to(self.destination)):
                return self._capture()
        except WindowError:
            return WalkOutcome.ABORTED
        return WalkOutcome.ARRIVED

    def _should_abort(self, anchor: Position) -> bool:
        engine = self.engine
        state = engine.state
        if state.timed_out.get() or state.dragging.get():
            return True
        if not engine.session.is_current(self.session_id):
            return True
        current = engine.backend.get_position(engine.config.target_label)
        tolerance = engine.config.drag_tolerance_px
        return abs(current.x - anchor.x) > tolerance or abs(current.y - anchor.y) > tolerance

    def _step_to(self, point: Position) -> bool:
        """Move the pursuer to ``point``. Returns True on collision."""
        self.engine.backend.set_position(self.pursuer_label, point.x, point.y)
        return surfaces_overlap(self.engine, self.pursuer_label)

    def _capture(self) -> WalkOutcome:
        if self.engine.capture_handler.capture(self.session_id):
            return WalkOutcome.CAPTURE
        return WalkOutcome.ABORTED


class FollowWorker:
    """Keeps the pursuer on the target while it is being dragged.

    Started through ``ChaseEngine.begin_follow``, which owns the
    ``follow_worker_running`` gate; this worker clears it on exit.
    """

    def __init__(self, engine: "ChaseEngine", pursuer_label: str):
        self.engine = engine
        self.pursuer_label = pursuer_label
        self.ticks = 0

    def run(self) -> None:
        engine = self.engine
        state = engine.state
        backend = engine.backend
        target_label = engine.config.target_label
        engine.log("[follow] Started")
        try:
            while True:
                if not state.dragging.get():
                    break
                if not backend.exists(self.pursuer_label) or not backend.exists(target_label):
                    break
                session_id = engine.session.current()
                try:
                    collided = backend.dispatch(self._tick)
                except WindowError:
                    break
                self.ticks += 1
                if collided:
                    engine.capture_handler.capture(session_id)
                time.sleep(engine.config.follow_tick_s)
        finally:
            state.follow_worker_running.set(False)
            engine.log(f"[follow] Stopped after {self.ticks} ticks")

    def _tick(self) -> bool:
        """Move one step toward the rendezvous point. Returns True on collision.

        Approaching from the left, the proportional step shrinks to a unit
        step and the pursuer settles within 1px of the left rendezvous point,
        so it can park 1px short of the target without colliding. Capture
        then waits for the target to be dropped onto the pursuer.
        """
        engine = self.engine
        backend = engine.backend
        cfg = engine.config

        monitor = engine.monitor_bounds(self.pursuer_label)
        pursuer_pos = backend.get_position(self.pursuer_label)
        pursuer_size = backend.get_size(self.pursuer_label)
        target = _bounds_of(engine, cfg.target_label)

        goal = rendezvous_point(pursuer_size, target, monitor)
        dx = goal.x - pursuer_pos.x
        dy = goal.y - pursuer_pos.y

        if abs(dx) > 1 or abs(dy) > 1:
            step_x = follow_step(dx, cfg.follow_gain, cfg.follow_max_step)
            step_y = follow_step(dy, cfg.follow_gain, cfg.follow_max_step)
            step_y += bob_offset(engine.state.follow_phase.advance())
            nxt = clamp_to_bounds(
                Position(x=pursuer_pos.x + step_x, y=pursuer_pos.y + step_y),
                pursuer_size,
                monitor,
            )
            backend.set_position(self.pursuer_label, nxt.x, nxt.y)

        return overlaps(Bounds.of(backend.get_position(self.pursuer_label), pursuer_size), target)


class TimeoutWorker:
    """Aborts a session that has not been captured after ``timeout_s``."""

    def __init__(self, engine: "ChaseEngine", session_id: int):
        self.engine = engine
        self.session_id = session_id
        self.fired = False

    def run(self) -> bool:
        engine = self.engine
        time.sleep(engine.config.timeout_s)
        self.fired = bool(engine.session.run_if_current(self.session_id, self._expire))
        if self.fired:
            engine.log(f"[timeout] Session {self.session_id} timed out")
        return self.fired

    def _expire(self) -> bool:
        engine = self.engine
        if not engine.backend.exists(engine.config.target_label):
            return False
        state = engine.state
        state.dragging.set(False)
        state.follow_phase.reset()
        state.timed_out.set(True)
        state.timeout_pending.set(True)
        return True
