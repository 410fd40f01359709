"""Pydantic models for chase engine geometry, commands and events."""

from typing import Literal
from pydantic import BaseModel, ConfigDict, Field


class Position(BaseModel):
    """Screen position in physical pixels (origin top-left, y grows downward)."""
    model_config = ConfigDict(frozen=True)

    x: int = Field(..., description="X coordinate")
    y: int = Field(..., description="Y coordinate")


class Size(BaseModel):
    """Surface dimensions in physical pixels."""
    model_config = ConfigDict(frozen=True)

    width: int = Field(..., ge=0, description="Width in pixels")
    height: int = Field(..., ge=0, description="Height in pixels")


class Bounds(BaseModel):
    """Axis-aligned rectangle (x, y, width, height)."""
    model_config = ConfigDict(frozen=True)

    x: int = Field(..., description="Left edge")
    y: int = Field(..., description="Top edge")
    width: int = Field(..., ge=0, description="Width in pixels")
    height: int = Field(..., ge=0, description="Height in pixels")

    @classmethod
    def of(cls, position: Position, size: Size) -> "Bounds":
        return cls(x=position.x, y=position.y, width=size.width, height=size.height)

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def position(self) -> Position:
        return Position(x=self.x, y=self.y)

    @property
    def size(self) -> Size:
        return Size(width=self.width, height=self.height)


DEFAULT_MONITOR = Bounds(x=0, y=0, width=1920, height=1080)


class WindowGeometry(BaseModel):
    """Geometry of a surface and the monitor it lives on."""
    position: Position = Field(..., description="Outer position of the surface")
    size: Size = Field(..., description="Outer size of the surface")
    monitorPosition: Position = Field(..., description="Origin of the usable monitor area")
    monitorSize: Size = Field(..., description="Size of the usable monitor area")


class TargetSpec(BaseModel):
    """Creation spec for the target surface.

    The target is an undecorated, transparent, always-on-top square that never
    takes focus or shows up in the taskbar.
    """
    label: str = Field("pumpkin", description="Surface label")
    url: str = Field("pumpkin.html", description="Page loaded into the surface")
    title: str = Field("Pumpkin", description="Window title")
    position: Position = Field(..., description="Initial outer position")
    size: Size = Field(..., description="Inner size")
    resizable: bool = False
    always_on_top: bool = True
    skip_taskbar: bool = True
    decorations: bool = False
    transparent: bool = True
    shadow: bool = False
    focused: bool = False


class ChaseEvent(BaseModel):
    """Terminal outcome of a chase, as observed by a flag poller.

    ``eaten`` means the pursuer captured the target, ``timeout`` means the
    session ran out of time before a capture.
    """
    ts: int = Field(..., description="Timestamp in milliseconds since epoch")
    event: Literal["eaten", "timeout"] = Field(..., description="Outcome kind")
    session: int = Field(..., ge=0, description="Session id current when the flag was taken")


class ChaseConfig(BaseModel):
    """Configuration for the chase engine."""
    target_label: str = Field("pumpkin", description="Label of the target surface")
    pursuer_label: str = Field("main", description="Default label of the pursuer surface")
    target_url: str = Field("pumpkin.html", description="Page loaded into the target surface")
    target_title: str = Field("Pumpkin", description="Target window title")
    target_size: int = Field(220, gt=0, description="Target square side (pixels)")
    default_monitor: Bounds = Field(DEFAULT_MONITOR, description="Fallback monitor bounds")

    timeout_s: float = Field(5.0, ge=0, description="Seconds before an uncaptured chase times out")

    # Walk pacing
    walk_step_base_ms: float = Field(8.0, ge=0, description="Base sleep between walk steps")
    walk_step_edge_ms: float = Field(4.0, ge=0, description="Extra sleep near the ends of the path")
    drag_tolerance_px: int = Field(2, ge=0, description="Target movement treated as a user grab")

    # Follow loop
    follow_tick_s: float = Field(0.016, gt=0, description="Follow loop cadence")
    follow_gain: float = Field(0.18, gt=0, description="Fraction of the remaining distance per tick")
    follow_max_step: int = Field(8, gt=0, description="Per-axis step clamp (pixels)")

    # Teardown
    close_retry_attempts: int = Field(24, ge=1, description="Close attempts for a captured target")
    close_retry_interval_s: float = Field(0.016, ge=0, description="Delay between close attempts")

    verbose: bool = Field(True, description="Print progress lines")

    def target_spec(self, position: Position) -> TargetSpec:
        return TargetSpec(
            label=self.target_label,
            url=self.target_url,
            title=self.target_title,
            position=position,
            size=Size(width=self.target_size, height=self.target_size),
        )
