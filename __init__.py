"""Speaki Chase - pursuer/decoy chase engine for a desktop pet.

This package provides a self-contained engine that:
- Spawns a decoy target next to the pet and walks the pet over to it
- Keeps the pet on the decoy while the user drags it around
- Reports capture or timeout through one-shot flags for a UI to poll
"""

from .engine import ChaseEngine
from .schemas import Bounds, ChaseConfig, ChaseEvent, Position, Size, WindowGeometry
from .windowing import HeadlessBackend, WindowBackend, WindowError
from .runner import run_chase

__version__ = "1.0.0"
__all__ = [
    "ChaseEngine", "ChaseConfig", "ChaseEvent", "Bounds", "Position", "Size",
    "WindowGeometry", "HeadlessBackend", "WindowBackend", "WindowError", "run_chase",
]
