"""Windowing collaborator interface and a headless in-memory implementation.

The engine never owns visual state. It only asks a ``WindowBackend`` to query
and move labelled surfaces, create and close the target, and report monitor
bounds. ``HeadlessBackend`` keeps surfaces as plain records, which is enough
to run the whole engine (and its tests) without a display.
"""

import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol, TypeVar

from .schemas import Bounds, Position, Size, TargetSpec


T = TypeVar("T")


class WindowError(RuntimeError):
    """Raised when the windowing layer cannot complete a request."""


class WindowBackend(Protocol):
    """Primitives a windowing layer must provide to the chase engine."""

    def get_position(self, label: str) -> Position: ...

    def get_size(self, label: str) -> Size: ...

    def set_position(self, label: str, x: int, y: int) -> None: ...

    def exists(self, label: str) -> bool: ...

    def create(self, spec: TargetSpec) -> None: ...

    def close(self, label: str) -> None: ...

    def hide(self, label: str) -> None: ...

    def current_monitor_bounds(self, label: str) -> Optional[Bounds]: ...

    def primary_monitor_bounds(self) -> Optional[Bounds]: ...

    def start_dragging(self, label: str) -> None: ...

    def dispatch(self, action: Callable[[], T]) -> T:
        """Run ``action`` on the context that owns visual mutation and wait for it."""
        ...

    def exit(self, code: int = 0) -> None: ...


@dataclass
class Surface:
    """A headless surface record."""
    label: str
    position: Position
    size: Size
    visible: bool = True
    spec: Optional[TargetSpec] = None


class HeadlessBackend:
    """In-memory ``WindowBackend``.

    Every surface lives on the single configured monitor. ``dispatch`` runs
    the action inline under the backend lock, standing in for the UI thread.
    """

    def __init__(
        self,
        monitor: Optional[Bounds] = None,
        primary: Optional[Bounds] = None,
        verbose: bool = False,
    ):
        """Initialize backend.

        Args:
            monitor: Bounds reported as the current monitor of every surface,
                or None if it cannot be determined
            primary: Bounds reported as the primary monitor (defaults to ``monitor``)
            verbose: Print a line when surfaces are created or closed
        """
        self.monitor = monitor
        self.primary = primary if primary is not None else monitor
        self.verbose = verbose
        self.surfaces: Dict[str, Surface] = {}
        self.drag_requests: List[str] = []
        self.exit_code: Optional[int] = None
        self.exit_requested = threading.Event()
        self._lock = threading.RLock()

    # ---------------- Surface management ----------------
    def add_surface(self, label: str, position: Position, size: Size) -> Surface:
        with self._lock:
            surface = Surface(label=label, position=position, size=size)
            self.surfaces[label] = surface
            return surface

    def _surface(self, label: str) -> Surface:
        surface = self.surfaces.get(label)
        if surface is None:
            raise WindowError(f"window not found: {label}")
        return surface

    # --------------------- Queries ----------------------
    def get_position(self, label: str) -> Position:
        with self._lock:
            return self._surface(label).position

    def get_size(self, label: str) -> Size:
        with self._lock:
            return self._surface(label).size

    def exists(self, label: str) -> bool:
        with self._lock:
            return label in self.surfaces

    def current_monitor_bounds(self, label: str) -> Optional[Bounds]:
        with self._lock:
            self._surface(label)
            return self.monitor

    def primary_monitor_bounds(self) -> Optional[Bounds]:
        return self.primary

    # --------------------- Mutation ---------------------
    def set_position(self, label: str, x: int, y: int) -> None:
        with self._lock:
            self._surface(label).position = Position(x=x, y=y)

    def create(self, spec: TargetSpec) -> None:
        with self._lock:
            if spec.label in self.surfaces:
                raise WindowError(f"a window with label `{spec.label}` already exists")
            self.surfaces[spec.label] = Surface(
                label=spec.label, position=spec.position, size=spec.size, spec=spec
            )
        if self.verbose:
            print(f"[speaki] loaded url: {spec.url} on {spec.label}")

    def close(self, label: str) -> None:
        with self._lock:
            self._surface(label)
            del self.surfaces[label]
        if self.verbose:
            print(f"[speaki] closed {label}")

    def hide(self, label: str) -> None:
        with self._lock:
            self._surface(label).visible = False

    def start_dragging(self, label: str) -> None:
        with self._lock:
            self._surface(label)
            self.drag_requests.append(label)

    def dispatch(self, action: Callable[[], T]) -> T:
        with self._lock:
            return action()

    def exit(self, code: int = 0) -> None:
        self.exit_code = code
        self.exit_requested.set()
