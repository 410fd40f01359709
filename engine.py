"""Chase engine: session lifecycle, spawn controller and command operations.

``ChaseEngine`` owns the session counter and the shared flags, and is handed
to every worker it launches. It exposes the operations the command layer
calls:

- ``start_drag`` / ``get_window_geometry`` / ``set_window_position``
- ``spawn_target``
- ``start_pumpkin_drag`` / ``stop_pumpkin_drag``
- ``take_eaten_flag`` / ``take_timeout_flag``
- ``exit_app``

Direct commands propagate ``WindowError``; background workers swallow it.
"""

import threading
import time
from typing import Callable, List, Optional, Tuple

from .geometry import place_target, rendezvous_point, spawn_seeds
from .schemas import Bounds, ChaseConfig, ChaseEvent, WindowGeometry
from .state import ChaseSession, SharedChaseState
from .windowing import WindowBackend, WindowError
from .workers import CaptureHandler, FollowWorker, TimeoutWorker, WalkAnimator


class ChaseEngine:
    """Coordinates one pursuer and at most one target."""

    def __init__(self, backend: WindowBackend, config: Optional[ChaseConfig] = None):
        """Initialize engine.

        Args:
            backend: Windowing collaborator used for every surface operation
            config: Engine configuration (defaults to ``ChaseConfig()``)
        """
        self.backend = backend
        self.config = config if config is not None else ChaseConfig()
        self.session = ChaseSession()
        self.state = SharedChaseState()
        self.capture_handler = CaptureHandler(self)
        self.pursuer_label = self.config.pursuer_label

        self.worker_errors: List[Tuple[str, BaseException]] = []
        self._workers: List[threading.Thread] = []
        self._workers_lock = threading.Lock()

    def log(self, message: str) -> None:
        if self.config.verbose:
            print(message)

    # ---------------------------------------------------------------------
    #                          Worker bookkeeping
    # ---------------------------------------------------------------------
    def launch(self, name: str, work: Callable[[], object]) -> threading.Thread:
        """Run ``work`` on a tracked daemon thread."""
        def run():
            try:
                work()
            except Exception as e:
                with self._workers_lock:
                    self.worker_errors.append((name, e))
                print(f"[engine] Worker {name} failed: {e}")

        thread = threading.Thread(target=run, name=name, daemon=True)
        with self._workers_lock:
            self._workers = [w for w in self._workers if w.is_alive()]
            self._workers.append(thread)
        thread.start()
        return thread

    def active_workers(self) -> List[threading.Thread]:
        with self._workers_lock:
            self._workers = [w for w in self._workers if w.is_alive()]
            return list(self._workers)

    def join_workers(self, timeout: Optional[float] = None) -> bool:
        """Wait for every tracked worker, including ones started meanwhile.

        Returns:
            True if all workers finished before ``timeout``
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            workers = self.active_workers()
            if not workers:
                return True
            for worker in workers:
                remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
                worker.join(remaining)
            if deadline is not None and time.monotonic() >= deadline:
                return not self.active_workers()

    # ---------------------------------------------------------------------
    #                          Session lifecycle
    # ---------------------------------------------------------------------
    def begin_session(self) -> int:
        """Start a new session, clearing one-shot flags and ``timed_out``."""
        session_id = self.session.begin()
        self.state.reset_for_session()
        return session_id

    def capture(self, session_id: Optional[int] = None) -> bool:
        """Capture the target for ``session_id`` (default: the current session)."""
        if session_id is None:
            session_id = self.session.current()
        return self.capture_handler.capture(session_id)

    # ---------------------------------------------------------------------
    #                              Geometry
    # ---------------------------------------------------------------------
    def monitor_bounds(self, label: str) -> Bounds:
        """Usable monitor area for a surface.

        Falls back to the primary monitor, then ``config.default_monitor``.
        """
        monitor = self.backend.current_monitor_bounds(label)
        if monitor is None:
            monitor = self.backend.primary_monitor_bounds()
        if monitor is None:
            monitor = self.config.default_monitor
        return monitor

    def get_window_geometry(self, label: str) -> WindowGeometry:
        position = self.backend.get_position(label)
        size = self.backend.get_size(label)
        monitor = self.monitor_bounds(label)
        return WindowGeometry(
            position=position,
            size=size,
            monitorPosition=monitor.position,
            monitorSize=monitor.size,
        )

    def set_window_position(self, label: str, x: int, y: int) -> None:
        self.backend.set_position(label, x, y)

    # ---------------------------------------------------------------------
    #                           Spawn controller
    # ---------------------------------------------------------------------
    def spawn_target(self, pursuer_label: Optional[str] = None) -> bool:
        """Spawn a target and send the pursuer after it.

        Returns immediately. Capture and timeout are reported through the
        pending flags, so the result is always False.
        """
        if pursuer_label is not None:
            self.pursuer_label = pursuer_label
        pursuer = self.pursuer_label
        cfg = self.config

        monitor = self.monitor_bounds(pursuer)
        pursuer_pos = self.backend.get_position(pursuer)
        pursuer_size = self.backend.get_size(pursuer)

        seeds = spawn_seeds(time.time_ns(), pursuer_pos)
        target_pos = place_target(seeds, cfg.target_size, monitor)
        target = Bounds(x=target_pos.x, y=target_pos.y, width=cfg.target_size, height=cfg.target_size)
        destination = rendezvous_point(pursuer_size, target, monitor)

        session_id = self.begin_session()

        if self.backend.exists(cfg.target_label):
            try:
                self.backend.close(cfg.target_label)
            except WindowError as e:
                self.log(f"[engine] Could not close previous target: {e}")

        self.backend.create(cfg.target_spec(target_pos))
        self.log(
            f"[engine] Session {session_id}: target at ({target_pos.x},{target_pos.y}), "
            f"walking {pursuer} from ({pursuer_pos.x},{pursuer_pos.y}) "
            f"to ({destination.x},{destination.y})"
        )

        timeout = TimeoutWorker(self, session_id)
        self.launch(f"timeout-{session_id}", timeout.run)
        walk = WalkAnimator(self, session_id, pursuer, pursuer_pos, destination)
        self.launch(f"walk-{session_id}", walk.run)
        return False

    # ---------------------------------------------------------------------
    #                                Drag
    # ---------------------------------------------------------------------
    def begin_follow(self, pursuer_label: Optional[str] = None) -> bool:
        """Start the follow worker unless one is already running."""
        if pursuer_label is not None:
            self.pursuer_label = pursuer_label
        if not self.state.follow_worker_running.compare_and_set(False, True):
            return False
        worker = FollowWorker(self, self.pursuer_label)
        try:
            self.launch("follow", worker.run)
        except RuntimeError:
            self.state.follow_worker_running.set(False)
            raise
        return True

    def start_drag(self, label: str) -> None:
        """Begin a native move-drag; dragging the target also starts the follow loop."""
        self.backend.start_dragging(label)
        if label == self.config.target_label:
            self.state.dragging.set(True)
            self.begin_follow()

    def start_pumpkin_drag(self, pursuer_label: Optional[str] = None) -> None:
        self.state.dragging.set(True)
        self.begin_follow(pursuer_label)

    def stop_pumpkin_drag(self) -> None:
        self.state.dragging.set(False)
        self.state.follow_phase.reset()

    # ---------------------------------------------------------------------
    #                           Pending flags
    # ---------------------------------------------------------------------
    def take_eaten_flag(self) -> bool:
        return self.state.eaten_pending.take()

    def take_timeout_flag(self) -> bool:
        return self.state.timeout_pending.take()

    def poll_events(self) -> List[ChaseEvent]:
        """Take both pending flags and return the matching events."""
        events = []
        session = self.session.current()
        ts = int(time.time() * 1000)
        if self.take_eaten_flag():
            events.append(ChaseEvent(ts=ts, event="eaten", session=session))
        if self.take_timeout_flag():
            events.append(ChaseEvent(ts=ts, event="timeout", session=session))
        return events

    # ---------------------------------------------------------------------
    #                              Shutdown
    # ---------------------------------------------------------------------
    def exit_app(self, code: int = 0, grace_s: float = 0.1) -> None:
        """Stop dragging, give workers ``grace_s`` to wind down, then exit."""
        self.stop_pumpkin_drag()
        self.join_workers(grace_s)
        self.log("[engine] Exiting")
        self.backend.exit(code)
