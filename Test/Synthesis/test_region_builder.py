import logging
import unittest

from regkit.LTS.transition_system import TransitionSystem
from regkit.Synthesis.region import Region, RegionBuilder
from regkit.Synthesis.utility import RegionUtility
from regkit.exceptions import InvalidArgumentError


def build_triangle() -> TransitionSystem:
    return TransitionSystem.from_arcs(
        [("s0", "a", "s1"), ("s1", "b", "s2"), ("s2", "a", "s0")], "s0"
    )


class TestRegionBuilder(unittest.TestCase):
    def setUp(self) -> None:
        self.utility = RegionUtility(build_triangle())

    def test_defaults_to_zero_weights(self):
        builder = RegionBuilder(self.utility)
        self.assertEqual(builder.backward_weights, (0, 0))
        self.assertEqual(builder.forward_weights, (0, 0))
        region = builder.with_initial_marking(3)
        self.assertEqual(region, Region(self.utility, [0, 0], [0, 0], 3))

    def test_length_mismatch(self):
        with self.assertRaises(InvalidArgumentError):
            RegionBuilder(self.utility, [0], [0, 0])
        with self.assertRaises(InvalidArgumentError):
            RegionBuilder.create_pure(self.utility, [1, 2, 3])

    def test_add_loop_around_keeps_net_weight(self):
        builder = RegionBuilder(self.utility, [0, 1], [2, 0])
        same = builder.add_loop_around("a", 3).add_loop_around(1, 4)
        self.assertIs(same, builder)
        self.assertEqual(builder.backward_weights, (3, 5))
        self.assertEqual(builder.forward_weights, (5, 4))
        region = builder.with_initial_marking(0)
        self.assertEqual(region.weights, (2, -1))
        with self.assertRaises(InvalidArgumentError):
            builder.add_loop_around("zz", 1)

    def test_loops_vanish_on_purification(self):
        builder = RegionBuilder(self.utility).add_loop_around("b", 7).make_pure()
        self.assertEqual(builder.backward_weights, (0, 0))
        self.assertEqual(builder.forward_weights, (0, 0))

    def test_add_region_with_factor_in_place(self):
        other = Region(self.utility, [0, 1], [3, 0])
        builder = RegionBuilder(self.utility, [1, 0], [0, 2])
        builder.add_region_with_factor(other, 2)
        self.assertEqual(builder.backward_weights, (1, 2))
        self.assertEqual(builder.forward_weights, (6, 2))

        builder = RegionBuilder(self.utility, [1, 0], [0, 2])
        builder.add_region_with_factor(other, -1)
        self.assertEqual(builder.backward_weights, (4, 0))
        self.assertEqual(builder.forward_weights, (0, 3))

        builder.add_region_with_factor(other, 0)
        self.assertEqual(builder.backward_weights, (4, 0))

    def test_builder_matches_region_arithmetic(self):
        r1 = Region(self.utility, [1, 0], [0, 2])
        r2 = Region(self.utility, [0, 1], [3, 0])
        for factor in (-3, -1, 1, 5):
            expected = r1.add_region_with_factor(r2, factor)
            built = (
                RegionBuilder.from_region(r1)
                .add_region_with_factor(r2, factor)
                .with_initial_marking(None)
            )
            self.assertEqual(built, expected)

    def test_foreign_region_is_rejected(self):
        foreign = Region(RegionUtility(build_triangle()), [0, 0], [0, 0])
        with self.assertRaises(InvalidArgumentError):
            RegionBuilder(self.utility).add_region_with_factor(foreign, 1)

    def test_make_pure_in_place(self):
        builder = RegionBuilder(self.utility, [1, 3], [2, 1]).make_pure()
        self.assertEqual(builder.forward_weights, (1, 0))
        self.assertEqual(builder.backward_weights, (0, 2))

    def test_create_pure(self):
        builder = RegionBuilder.create_pure(self.utility, [2, -3])
        self.assertEqual(builder.forward_weights, (2, 0))
        self.assertEqual(builder.backward_weights, (0, 3))

    def test_normal_marking_for_consistent_weights(self):
        region = RegionBuilder.create_pure(self.utility, [1, -2]).with_normal_region_initial_marking()
        self.assertEqual(region.initial_marking, 1)
        for state in self.utility.reachable_states:
            self.assertGreaterEqual(region.marking_for_state(state), 0)

    def test_inconsistent_weights_are_logged(self):
        builder = RegionBuilder.create_pure(self.utility, [1, 0])
        with self.assertLogs("regkit.Synthesis.region", level=logging.DEBUG) as logs:
            region = builder.with_normal_region_initial_marking()
        self.assertEqual(region.initial_marking, 0)
        self.assertTrue(any("not cycle-consistent" in line for line in logs.output))

    def test_finalized_region_is_detached(self):
        builder = RegionBuilder(self.utility, [0, 0], [1, 0])
        region = builder.with_initial_marking(0)
        builder.add_loop_around("a", 5)
        self.assertEqual(region.forward_weights, (1, 0))
        self.assertEqual(region.backward_weights, (0, 0))

    def test_negative_result_is_rejected_on_finalize(self):
        builder = RegionBuilder(self.utility).add_loop_around("a", -1)
        with self.assertRaises(InvalidArgumentError):
            builder.with_initial_marking(0)


if __name__ == "__main__":
    unittest.main()
