"""Session counter and shared flags for chase workers.

Every field has its own lock. Reading two fields takes two separate
acquisitions, so callers may observe a torn snapshot; each consumer tolerates
being one tick stale. The session counter is the only cross-worker
cancellation primitive.
"""

import threading
from typing import Callable, Optional, TypeVar


T = TypeVar("T")


class GuardedFlag:
    """A boolean behind its own lock."""

    def __init__(self, value: bool = False):
        self._value = value
        self._lock = threading.Lock()

    def get(self) -> bool:
        with self._lock:
            return self._value

    def set(self, value: bool) -> None:
        with self._lock:
            self._value = value

    def take(self) -> bool:
        """Read and clear in one step."""
        with self._lock:
            value = self._value
            self._value = False
            return value

    def compare_and_set(self, expected: bool, value: bool) -> bool:
        """Set to ``value`` only if currently ``expected``. Returns success."""
        with self._lock:
            if self._value != expected:
                return False
            self._value = value
            return True

    def __repr__(self) -> str:
        return f"<GuardedFlag {self.get()}>"


class FollowPhase:
    """Cyclic 0..3 counter driving the follow bob."""

    CYCLE = 4

    def __init__(self):
        self._phase = 0
        self._lock = threading.Lock()

    def get(self) -> int:
        with self._lock:
            return self._phase

    def advance(self) -> int:
        """Step to the next phase and return it."""
        with self._lock:
            self._phase = (self._phase + 1) % self.CYCLE
            return self._phase

    def reset(self) -> None:
        with self._lock:
            self._phase = 0


class SharedChaseState:
    """Flags shared by the spawn controller, workers and pollers.

    Attributes:
        dragging: The user is moving the target (or the pursuer follow was
            started explicitly)
        follow_phase: Bob counter for the follow loop
        follow_worker_running: Single-instance gate for the follow worker
        eaten_pending: One-shot capture notification
        timeout_pending: One-shot timeout notification
        timed_out: Sticky until the next session; stops in-flight walks
    """

    def __init__(self):
        self.dragging = GuardedFlag()
        self.follow_phase = FollowPhase()
        self.follow_worker_running = GuardedFlag()
        self.eaten_pending = GuardedFlag()
        self.timeout_pending = GuardedFlag()
        self.timed_out = GuardedFlag()

    def reset_for_session(self) -> None:
        self.eaten_pending.set(False)
        self.timeout_pending.set(False)
        self.timed_out.set(False)


class ChaseSession:
    """Monotonically increasing generation counter.

    The id starts at 0. ``begin`` and a successful ``invalidate`` both bump it,
    so any worker holding an older id is stale.
    """

    def __init__(self):
        self._id = 0
        self._lock = threading.Lock()

    def current(self) -> int:
        with self._lock:
            return self._id

    def is_current(self, session_id: int) -> bool:
        with self._lock:
            return self._id == session_id

    def begin(self) -> int:
        """Start a new session and return its id."""
        with self._lock:
            self._id += 1
            return self._id

    def invalidate(self, expected: Optional[int] = None) -> bool:
        """Bump the id.

        Args:
            expected: If given, bump only while this id is still current

        Returns:
            True if the id was bumped
        """
        with self._lock:
            if expected is not None and self._id != expected:
                return False
            self._id += 1
            return True

    def run_if_current(self, session_id: int, action: Callable[[], T]) -> Optional[T]:
        """Run ``action`` under the session lock if ``session_id`` is current.

        Nothing can begin or invalidate a session while ``action`` runs.
        Returns the action's result, or None when stale.
        """
        with self._lock:
            if self._id != session_id:
                return None
            return action()
