import unittest
from collections import Counter
from typing import FrozenSet

import networkx as nx

from regkit.LTS.spanning_tree import SpanningTree, cycle_basis, spanning_tree
from regkit.LTS.transition_system import Arc, TransitionSystem
from regkit.exceptions import UnreachableError


# ---------------------------------------------------------------------------
# Helpers to build small test systems
# ---------------------------------------------------------------------------


def build_triangle() -> TransitionSystem:
    """s0 -a-> s1 -b-> s2 -a-> s0"""
    return TransitionSystem.from_arcs(
        [("s0", "a", "s1"), ("s1", "b", "s2"), ("s2", "a", "s0")], "s0"
    )


def build_diamond() -> TransitionSystem:
    """
    Diamond with a back arc, a self-loop and an unreachable state::

        s0 -a-> s1 -b-> s3
        s0 -b-> s2 -a-> s3
        s3 -c-> s0,  s1 -c-> s1,  u -a-> s0
    """
    return TransitionSystem.from_arcs(
        [
            ("s0", "a", "s1"),
            ("s0", "b", "s2"),
            ("s1", "b", "s3"),
            ("s2", "a", "s3"),
            ("s3", "c", "s0"),
            ("s1", "c", "s1"),
            ("u", "a", "s0"),
        ],
        "s0",
    )


def build_chain(n: int) -> TransitionSystem:
    """s0 -> s1 -> ... -> s{n-1} -> s0, alternating labels."""
    arcs = [(f"s{i}", "ab"[i % 2], f"s{i + 1}") for i in range(n - 1)]
    arcs.append((f"s{n - 1}", "x", "s0"))
    return TransitionSystem.from_arcs(arcs, "s0")


def is_closed_walk(cycle: FrozenSet[Arc]) -> bool:
    """Every vertex touched by a simple cycle has (undirected) degree two."""
    degree: Counter = Counter()
    for arc in cycle:
        degree[arc.source] += 1
        degree[arc.target] += 1
    return all(d == 2 for d in degree.values())


class TestSpanningTree(unittest.TestCase):
    def test_triangle_tree_and_paths(self):
        lts = build_triangle()
        tree = spanning_tree(lts)
        self.assertIsInstance(tree, SpanningTree)
        self.assertEqual(tree.states, ["s0", "s1", "s2"])
        self.assertEqual(tree.arcs, {Arc("s0", "s1", "a"), Arc("s1", "s2", "b")})
        self.assertIsNone(tree.parent_arc("s0"))
        self.assertEqual(tree.parent_arc("s2"), Arc("s1", "s2", "b"))
        self.assertEqual(
            tree.path_to("s2"), [Arc("s0", "s1", "a"), Arc("s1", "s2", "b")]
        )
        self.assertEqual(tree.path_to("s0"), [])
        self.assertEqual(tree.depth("s2"), 2)

    def test_coverage_matches_reachability(self):
        lts = build_diamond()
        tree = spanning_tree(lts)
        self.assertEqual(set(tree.states), lts.reachable_states())
        self.assertNotIn("u", tree)
        self.assertTrue(tree.arcs <= set(lts.arcs))

        G = tree.as_graph()
        self.assertTrue(nx.is_arborescence(G))
        for state in tree.states:
            expected = 0 if state == tree.initial_state else 1
            self.assertEqual(G.in_degree(state), expected)

    def test_discovery_order_puts_parents_first(self):
        tree = spanning_tree(build_diamond())
        position = {s: i for i, s in enumerate(tree.states)}
        for arc in tree.arcs:
            self.assertLess(position[arc.source], position[arc.target])

    def test_unreachable_queries_raise(self):
        tree = spanning_tree(build_diamond())
        with self.assertRaises(UnreachableError):
            tree.path_to("u")
        with self.assertRaises(UnreachableError):
            tree.tree_path("s0", "u")

    def test_tree_path_is_symmetric_and_empty_on_same_state(self):
        lts = build_diamond()
        tree = spanning_tree(lts)
        self.assertEqual(tree.tree_path("s1", "s1"), frozenset())
        for u in tree.states:
            for v in tree.states:
                self.assertEqual(tree.tree_path(u, v), tree.tree_path(v, u))
                self.assertTrue(tree.tree_path(u, v) <= tree.arcs)

    def test_long_chain_does_not_recurse(self):
        n = 5000
        lts = build_chain(n)
        tree = spanning_tree(lts)
        self.assertEqual(len(tree), n)
        self.assertEqual(len(tree.path_to(f"s{n - 1}")), n - 1)
        cycles = cycle_basis(lts, tree)
        self.assertEqual(len(cycles), 1)
        (cycle,) = cycles
        self.assertEqual(len(cycle), n)


class TestCycleBasis(unittest.TestCase):
    def test_triangle_single_cycle(self):
        lts = build_triangle()
        tree = spanning_tree(lts)
        self.assertEqual(tree.extra_arcs(lts), [Arc("s2", "s0", "a")])
        self.assertEqual(
            cycle_basis(lts, tree),
            {
                frozenset(
                    {Arc("s0", "s1", "a"), Arc("s1", "s2", "b"), Arc("s2", "s0", "a")}
                )
            },
        )

    def test_cycle_count_is_edges_minus_vertices_plus_one(self):
        lts = build_diamond()
        tree = spanning_tree(lts)
        reachable = lts.reachable_states()
        reachable_arcs = [a for a in lts.arcs if a.source in reachable]
        cycles = cycle_basis(lts, tree)
        self.assertEqual(len(cycles), len(reachable_arcs) - len(reachable) + 1)
        self.assertEqual(len(cycles), 3)

    def test_cycles_use_only_connecting_tree_path(self):
        lts = build_diamond()
        tree = spanning_tree(lts)
        cycles = tree.fundamental_cycles(lts)
        for extra, cycle in cycles.items():
            self.assertNotIn(extra, tree.arcs)
            self.assertIn(extra, cycle)
            self.assertEqual(cycle - {extra}, tree.tree_path(extra.source, extra.target))
            self.assertTrue(is_closed_walk(cycle))
        # the self-loop closes on its own, without any tree arc
        self.assertEqual(cycles[Arc("s1", "s1", "c")], frozenset({Arc("s1", "s1", "c")}))

    def test_tree_only_system_has_no_cycles(self):
        lts = TransitionSystem.from_arcs(
            [("s0", "a", "s1"), ("s0", "b", "s2")], "s0"
        )
        self.assertEqual(cycle_basis(lts), set())

    def test_default_tree_is_computed(self):
        lts = build_triangle()
        self.assertEqual(cycle_basis(lts), cycle_basis(lts, spanning_tree(lts)))


if __name__ == "__main__":
    unittest.main()
