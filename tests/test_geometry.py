"""Unit tests for geometry and motion math."""

import unittest
from ..geometry import (
    GOLDEN_SEED_X,
    GOLDEN_SEED_Y,
    bob_offset,
    clamp,
    clamp_to_bounds,
    ease_in_out,
    follow_step,
    overlaps,
    pick_in_range,
    place_target,
    rendezvous_point,
    rotate_left64,
    round_half_away,
    spawn_seeds,
    walk_step_delay,
    walk_waypoints,
)
from ..schemas import Bounds, Position, Size


def rect(x, y, w, h):
    return Bounds(x=x, y=y, width=w, height=h)


class TestClampAndRounding(unittest.TestCase):
    """Test cases for clamp and rounding helpers."""

    def test_clamp_inside_and_outside(self):
        self.assertEqual(clamp(5, 0, 10), 5)
        self.assertEqual(clamp(-3, 0, 10), 0)
        self.assertEqual(clamp(42, 0, 10), 10)

    def test_clamp_inverted_range_prefers_lower_bound(self):
        """Test an inverted range returns the lower bound."""
        self.assertEqual(clamp(5, 10, 0), 10)

    def test_round_half_away_from_zero(self):
        self.assertEqual(round_half_away(2.5), 3)
        self.assertEqual(round_half_away(-2.5), -3)
        self.assertEqual(round_half_away(0.4), 0)
        self.assertEqual(round_half_away(-0.6), -1)


class TestOverlaps(unittest.TestCase):
    """Test cases for rectangle overlap."""

    def test_touching_edges_overlap(self):
        """Test two rectangles sharing an edge count as overlapping."""
        a = rect(0, 0, 10, 10)
        b = rect(10, 0, 10, 10)
        self.assertTrue(overlaps(a, b))

    def test_touching_corner_overlap(self):
        self.assertTrue(overlaps(rect(0, 0, 10, 10), rect(10, 10, 5, 5)))

    def test_one_pixel_gap_does_not_overlap(self):
        self.assertFalse(overlaps(rect(0, 0, 10, 10), rect(11, 0, 10, 10)))
        self.assertFalse(overlaps(rect(0, 0, 10, 10), rect(0, 11, 10, 10)))

    def test_containment_overlaps(self):
        self.assertTrue(overlaps(rect(0, 0, 100, 100), rect(40, 40, 5, 5)))

    def test_symmetric(self):
        """Test overlap is symmetric for a spread of rectangle pairs."""
        rects = [
            rect(0, 0, 10, 10),
            rect(10, 0, 10, 10),
            rect(11, 11, 3, 3),
            rect(-20, -20, 15, 15),
            rect(5, -5, 1, 30),
            rect(200, 200, 0, 0),
        ]
        for a in rects:
            for b in rects:
                self.assertEqual(overlaps(a, b), overlaps(b, a), (a, b))


class TestPickInRange(unittest.TestCase):
    """Test cases for the seeded range pick."""

    def test_degenerate_span(self):
        for seed in (0, 1, 12345, GOLDEN_SEED_X, (1 << 64) - 1):
            self.assertEqual(pick_in_range(seed, 5, 5), 5)

    def test_inverted_span_returns_min(self):
        self.assertEqual(pick_in_range(99, 10, 3), 10)

    def test_always_within_range(self):
        seeds = [0, 1, 7, 1000003, GOLDEN_SEED_X, GOLDEN_SEED_Y, (1 << 64) - 1]
        seeds += [s * 2654435761 for s in range(50)]
        for lo, hi in [(0, 1), (-50, 50), (100, 1800), (0, 0), (-7, -3)]:
            for seed in seeds:
                value = pick_in_range(seed, lo, hi)
                self.assertGreaterEqual(value, lo)
                self.assertLessEqual(value, hi)

    def test_deterministic(self):
        self.assertEqual(pick_in_range(123456789, 0, 1000), pick_in_range(123456789, 0, 1000))
        self.assertEqual(pick_in_range(17, 0, 9), 7)


class TestSpawnSeeds(unittest.TestCase):
    """Test cases for seed derivation and target placement."""

    def test_rotate_left64(self):
        self.assertEqual(rotate_left64(1, 17), 1 << 17)
        self.assertEqual(rotate_left64(1 << 63, 1), 1)

    def test_zero_inputs_yield_golden_constants(self):
        seed_x, seed_y = spawn_seeds(0, Position(x=0, y=0))
        self.assertEqual(seed_x, GOLDEN_SEED_X)
        self.assertEqual(seed_y, GOLDEN_SEED_Y)

    def test_position_is_bit_packed(self):
        seed_x, _ = spawn_seeds(0, Position(x=1, y=2))
        self.assertEqual(seed_x, ((1 << 32) ^ 2) ^ GOLDEN_SEED_X)

    def test_negative_position_is_sign_extended(self):
        seed_x, _ = spawn_seeds(0, Position(x=-1, y=0))
        self.assertEqual(seed_x, 0xFFFFFFFF00000000 ^ GOLDEN_SEED_X)

    def test_seeds_are_unsigned_64_bit(self):
        for time_ns in (0, 1, 1_700_000_000_123_456_789, (1 << 70) + 5):
            for seed in spawn_seeds(time_ns, Position(x=-640, y=-480)):
                self.assertGreaterEqual(seed, 0)
                self.assertLess(seed, 1 << 64)

    def test_x_and_y_seeds_differ(self):
        seed_x, seed_y = spawn_seeds(1_700_000_000_123_456_789, Position(x=300, y=200))
        self.assertNotEqual(seed_x, seed_y)

    def test_place_target_fits_monitor(self):
        monitor = rect(100, 50, 400, 300)
        for time_ns in range(0, 10_000_000, 777_777):
            pos = place_target(spawn_seeds(time_ns, Position(x=10, y=20)), 220, monitor)
            self.assertGreaterEqual(pos.x, 100)
            self.assertLessEqual(pos.x + 220, monitor.right)
            self.assertGreaterEqual(pos.y, 50)
            self.assertLessEqual(pos.y + 220, monitor.bottom)

    def test_place_target_on_small_monitor_pins_to_origin(self):
        pos = place_target((12345, 67890), 220, rect(10, 20, 100, 100))
        self.assertEqual(pos, Position(x=10, y=20))


class TestRendezvous(unittest.TestCase):
    """Test cases for the rendezvous point rule."""

    def setUp(self):
        self.monitor = rect(0, 0, 1920, 1080)
        self.pursuer = Size(width=100, height=100)

    def test_prefers_left_of_target(self):
        point = rendezvous_point(self.pursuer, rect(500, 400, 220, 220), self.monitor)
        # Centered vertically: 400 + (220 - 100) // 2
        self.assertEqual(point, Position(x=400, y=460))

    def test_falls_back_to_right_of_target(self):
        point = rendezvous_point(self.pursuer, rect(50, 400, 220, 220), self.monitor)
        self.assertEqual(point, Position(x=270, y=460))

    def test_centers_when_neither_side_fits(self):
        monitor = rect(0, 0, 300, 1080)
        point = rendezvous_point(self.pursuer, rect(50, 0, 220, 220), monitor)
        self.assertEqual(point, Position(x=110, y=60))

    def test_left_position_touches_target(self):
        target = rect(500, 400, 220, 220)
        point = rendezvous_point(self.pursuer, target, self.monitor)
        self.assertTrue(overlaps(Bounds.of(point, self.pursuer), target))

    def test_vertical_clamped_to_monitor(self):
        tall = Size(width=100, height=300)
        point = rendezvous_point(tall, rect(500, 0, 220, 220), self.monitor)
        self.assertEqual(point.y, 0)
        point = rendezvous_point(tall, rect(500, 860, 220, 220), self.monitor)
        self.assertEqual(point.y, 1080 - 300)

    def test_clamp_to_bounds(self):
        size = Size(width=100, height=100)
        self.assertEqual(clamp_to_bounds(Position(x=-5, y=2000), size, self.monitor), Position(x=0, y=980))
        self.assertEqual(clamp_to_bounds(Position(x=30, y=40), size, self.monitor), Position(x=30, y=40))


class TestWalkMath(unittest.TestCase):
    """Test cases for the walk path and pacing."""

    def test_ease_in_out_endpoints(self):
        self.assertAlmostEqual(ease_in_out(0.0), 0.0, places=6)
        self.assertAlmostEqual(ease_in_out(0.5), 0.5, places=6)
        self.assertAlmostEqual(ease_in_out(1.0), 1.0, places=6)

    def test_ease_in_out_monotone(self):
        values = [ease_in_out(i / 100) for i in range(101)]
        self.assertEqual(values, sorted(values))

    def test_step_delay_slower_at_edges(self):
        self.assertAlmostEqual(walk_step_delay(0.0), 0.012, places=6)
        self.assertAlmostEqual(walk_step_delay(0.5), 0.008, places=6)
        self.assertAlmostEqual(walk_step_delay(1.0), 0.012, places=6)
        self.assertGreater(walk_step_delay(0.05), walk_step_delay(0.5))

    def test_no_waypoints_for_coincident_points(self):
        self.assertEqual(list(walk_waypoints(Position(x=7, y=7), Position(x=7, y=7))), [])

    def test_short_walk_uses_minimum_steps(self):
        points = list(walk_waypoints(Position(x=0, y=0), Position(x=100, y=0)))
        # ceil(100 / 4) = 25 steps
        self.assertEqual(len(points), 25)
        self.assertAlmostEqual(points[-1][0], 1.0)

    def test_tiny_walk_clamps_to_minimum(self):
        points = list(walk_waypoints(Position(x=0, y=0), Position(x=10, y=0)))
        self.assertEqual(len(points), 24)

    def test_long_walk_clamps_to_maximum(self):
        points = list(walk_waypoints(Position(x=0, y=0), Position(x=4000, y=0)))
        self.assertEqual(len(points), 320)

    def test_walk_ends_near_target(self):
        points = list(walk_waypoints(Position(x=0, y=0), Position(x=100, y=0)))
        last = points[-1][1]
        self.assertLessEqual(abs(last.x - 100), 1)
        self.assertLessEqual(abs(last.y), 1)

    def test_horizontal_walk_wobble_is_bounded(self):
        """Test lateral wobble plus crawl bias stay within a few pixels of the line."""
        for _, point in walk_waypoints(Position(x=0, y=0), Position(x=100, y=0)):
            # amplitude 1.3 below 180px, plus up to 0.8 downward bias
            self.assertGreaterEqual(point.y, -2)
            self.assertLessEqual(point.y, 3)

    def test_walk_progress_is_monotone_along_axis(self):
        xs = [p.x for _, p in walk_waypoints(Position(x=0, y=0), Position(x=600, y=0))]
        self.assertEqual(xs, sorted(xs))


class TestFollowMath(unittest.TestCase):
    """Test cases for the follow step and bob."""

    def test_small_delta_rounds_up_to_one(self):
        self.assertEqual(follow_step(3), 1)

    def test_zero_delta_no_step(self):
        self.assertEqual(follow_step(0), 0)

    def test_forced_unit_step(self):
        """Test a delta that rounds to zero still moves one pixel."""
        self.assertEqual(follow_step(2), 1)
        self.assertEqual(follow_step(-2), -1)
        self.assertEqual(follow_step(1), 1)

    def test_step_clamped(self):
        self.assertEqual(follow_step(100), 8)
        self.assertEqual(follow_step(-100), -8)

    def test_proportional_range(self):
        self.assertEqual(follow_step(20), 4)
        self.assertEqual(follow_step(-20), -4)

    def test_custom_gain_and_clamp(self):
        self.assertEqual(follow_step(100, gain=0.5, max_step=20), 20)
        self.assertEqual(follow_step(10, gain=0.5, max_step=20), 5)

    def test_bob_pattern(self):
        self.assertEqual([bob_offset(p) for p in range(4)], [0, 1, 0, -1])


if __name__ == "__main__":
    unittest.main()
