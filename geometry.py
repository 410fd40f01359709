"""Geometry and motion math for the chase engine.

This module is free of threads and side effects. It provides:
- Rectangle overlap (boundary-inclusive) and clamping
- The seeded range pick used to place a freshly spawned target
- The rendezvous rule for parking the pursuer next to the target
- The curved, eased walk path and its step pacing
- Per-tick step computation for the drag-follow loop
"""

import math
from typing import Iterator, Tuple

import numpy as np

from .schemas import Bounds, Position, Size


GOLDEN_SEED_X = 0x9E3779B97F4A7C15
GOLDEN_SEED_Y = 0xC2B2AE3D27D4EB4F
_U64_MASK = (1 << 64) - 1

MIN_WALK_STEPS = 24
MAX_WALK_STEPS = 320


def clamp(value, min_val, max_val):
    """Clamp value to specified range.

    If the range is inverted (``min_val > max_val``) the result is ``min_val``.
    """
    return max(min_val, min(max_val, value))


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero."""
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))


def overlaps(a: Bounds, b: Bounds) -> bool:
    """Return True if two rectangles overlap. Touching edges count."""
    return not (
        a.right < b.x
        or a.x > b.right
        or a.bottom < b.y
        or a.y > b.bottom
    )


def pick_in_range(seed: int, min_val: int, max_val: int) -> int:
    """Deterministically pick a value in ``[min_val, max_val]`` from ``seed``."""
    if max_val <= min_val:
        return min_val
    span = max_val - min_val + 1
    return min_val + (seed & _U64_MASK) % span


def rotate_left64(value: int, shift: int) -> int:
    value &= _U64_MASK
    shift %= 64
    return ((value << shift) | (value >> (64 - shift))) & _U64_MASK


def spawn_seeds(time_ns: int, position: Position) -> Tuple[int, int]:
    """Derive the (x, y) placement seeds for a new target.

    Args:
        time_ns: Wall-clock nanoseconds
        position: Current pursuer position

    Returns:
        Tuple of (seed_x, seed_y) as unsigned 64-bit integers
    """
    time_seed = time_ns & _U64_MASK
    position_seed = (((position.x & _U64_MASK) << 32) ^ (position.y & _U64_MASK)) & _U64_MASK
    seed_x = time_seed ^ position_seed ^ GOLDEN_SEED_X
    seed_y = rotate_left64(time_seed, 17) ^ position_seed ^ GOLDEN_SEED_Y
    return seed_x, seed_y


def place_target(seeds: Tuple[int, int], target_size: int, monitor: Bounds) -> Position:
    """Pick a target position so a square of ``target_size`` fits on the monitor."""
    seed_x, seed_y = seeds
    max_x = monitor.x + max(0, monitor.width - target_size)
    max_y = monitor.y + max(0, monitor.height - target_size)
    return Position(
        x=pick_in_range(seed_x, monitor.x, max_x),
        y=pick_in_range(seed_y, monitor.y, max_y),
    )


def rendezvous_point(pursuer: Size, target: Bounds, monitor: Bounds) -> Position:
    """Compute where the pursuer should stand to meet the target.

    Horizontally the pursuer goes immediately left of the target when that
    stays on the monitor, otherwise immediately right, otherwise it is
    centered on the target. Vertically it is always centered on the target.
    Both axes are clamped to the monitor.
    """
    left_x = target.x - pursuer.width
    right_x = target.right
    if left_x >= monitor.x:
        x = left_x
    elif right_x + pursuer.width <= monitor.right:
        x = right_x
    else:
        x = clamp(
            target.x + (target.width - pursuer.width) // 2,
            monitor.x,
            monitor.right - pursuer.width,
        )

    y = clamp(
        target.y + (target.height - pursuer.height) // 2,
        monitor.y,
        monitor.bottom - pursuer.height,
    )
    return Position(x=x, y=y)


def clamp_to_bounds(position: Position, size: Size, monitor: Bounds) -> Position:
    """Keep a surface of ``size`` at ``position`` inside ``monitor``."""
    return Position(
        x=clamp(position.x, monitor.x, monitor.right - size.width),
        y=clamp(position.y, monitor.y, monitor.bottom - size.height),
    )


def ease_in_out(t: float) -> float:
    """Cosine ease-in-out on [0, 1]."""
    return 0.5 - 0.5 * math.cos(math.pi * t)


def walk_step_delay(t: float, base_ms: float = 8.0, edge_ms: float = 4.0) -> float:
    """Seconds to sleep after the walk step at progress ``t``.

    Steps near the start and the end of the path are slower than mid-path.
    """
    return (base_ms + edge_ms * max(0.0, 1.0 - math.sin(math.pi * t))) / 1000.0


def walk_waypoints(start: Position, end: Position) -> Iterator[Tuple[float, Position]]:
    """Yield ``(t, point)`` along a wobbling, eased path from start to end.

    The path follows the straight line under cosine easing, swings sideways
    with a sine gait and always sags slightly downward, like an uneven crawl.
    Nothing is yielded if the points are less than one pixel apart. The last
    yielded point is not guaranteed to equal ``end``; callers snap to it.
    """
    origin = np.array([start.x, start.y], dtype=float)
    delta = np.array([end.x, end.y], dtype=float) - origin
    distance = float(np.hypot(delta[0], delta[1]))
    if distance < 1.0:
        return

    steps = int(clamp(math.ceil(distance / 4.0), MIN_WALK_STEPS, MAX_WALK_STEPS))
    direction = delta / distance
    perpendicular = np.array([-direction[1], direction[0]])

    gait_cycles = clamp(round_half_away(distance / 34.0), 5, 20)
    amplitude = 1.3 if distance < 180.0 else 2.0

    for step in range(1, steps + 1):
        t = step / steps
        base = origin + delta * ease_in_out(t)
        wobble = math.sin(2.0 * math.pi * gait_cycles * t)
        point = base + perpendicular * (wobble * amplitude)
        point[1] += abs(wobble) * 0.8
        yield t, Position(x=round_half_away(point[0]), y=round_half_away(point[1]))


def follow_step(delta: int, gain: float = 0.18, max_step: int = 8) -> int:
    """Per-axis step toward a target ``delta`` pixels away.

    A nonzero delta never yields a zero step, so the follower always converges.
    """
    if delta == 0:
        return 0
    step = clamp(round_half_away(delta * gain), -max_step, max_step)
    if step == 0:
        step = 1 if delta > 0 else -1
    return step


def bob_offset(phase: int) -> int:
    """Vertical bob for a follow phase: +1 at phase 1, -1 at phase 3."""
    if phase == 1:
        return 1
    if phase == 3:
        return -1
    return 0
