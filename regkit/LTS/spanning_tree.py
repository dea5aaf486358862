"""
Spanning trees and fundamental cycles of labeled transition systems.

A spanning tree fixes one canonical path from the initial state to every
reachable state; Parikh vectors of states are read off these paths. Every
arc that is not in the tree closes exactly one *fundamental cycle*: the arc
itself plus the tree path joining its endpoints. The cycles form a basis of
the LTS's cycle space, so a region that evaluates to zero on all of them is
consistent on every closed walk.

Both the tree construction and the path extraction are iterative, so large
state spaces do not hit the interpreter's recursion limit.
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Hashable, List, Optional, Set

import networkx as nx

from ..exceptions import UnreachableError
from .transition_system import Arc, TransitionSystem

LOGGER = logging.getLogger(__name__)

__all__ = ["SpanningTree", "spanning_tree", "cycle_basis"]


class SpanningTree:
    """
    Tree of the states reachable from an initial state.

    Each non-initial state stores the single tree arc entering it (its parent
    pointer). States are kept in discovery order, so a state always comes
    after its parent.

    :param initial_state: Root of the tree.
    :type initial_state: Hashable
    """

    def __init__(self, initial_state: Hashable) -> None:
        self._initial = initial_state
        self._parent: Dict[Hashable, Optional[Arc]] = {initial_state: None}
        self._depth: Dict[Hashable, int] = {initial_state: 0}

    def _attach(self, arc: Arc) -> None:
        self._parent[arc.target] = arc
        self._depth[arc.target] = self._depth[arc.source] + 1

    # -------------------------
    # Structure
    # -------------------------
    @property
    def initial_state(self) -> Hashable:
        return self._initial

    @property
    def states(self) -> List[Hashable]:
        """Tree states in discovery order."""
        return list(self._parent)

    @property
    def arcs(self) -> FrozenSet[Arc]:
        return frozenset(a for a in self._parent.values() if a is not None)

    def parent_arc(self, state: Hashable) -> Optional[Arc]:
        """
        Tree arc entering ``state`` (``None`` for the initial state).

        :raises UnreachableError: If ``state`` is not in the tree.
        """
        self._require(state)
        return self._parent[state]

    def depth(self, state: Hashable) -> int:
        self._require(state)
        return self._depth[state]

    def path_to(self, state: Hashable) -> List[Arc]:
        """
        Tree arcs leading from the initial state to ``state``, in firing order.

        :raises UnreachableError: If ``state`` is not in the tree.
        """
        self._require(state)
        path: List[Arc] = []
        arc = self._parent[state]
        while arc is not None:
            path.append(arc)
            arc = self._parent[arc.source]
        path.reverse()
        return path

    def tree_path(self, u: Hashable, v: Hashable) -> FrozenSet[Arc]:
        """
        Tree arcs on the unique (undirected) tree path between ``u`` and ``v``.

        Both states climb towards their lowest common ancestor; the arcs
        passed on the way are collected.

        :param u: First endpoint.
        :param v: Second endpoint.
        :returns: The arcs of the path; empty if ``u == v``.
        :raises UnreachableError: If either state is not in the tree.
        """
        self._require(u)
        self._require(v)
        path: Set[Arc] = set()
        while self._depth[u] > self._depth[v]:
            arc = self._parent[u]
            path.add(arc)
            u = arc.source
        while self._depth[v] > self._depth[u]:
            arc = self._parent[v]
            path.add(arc)
            v = arc.source
        while u != v:
            arc_u, arc_v = self._parent[u], self._parent[v]
            path.add(arc_u)
            path.add(arc_v)
            u, v = arc_u.source, arc_v.source
        return frozenset(path)

    def as_graph(self) -> nx.DiGraph:
        """Return the tree as a :class:`networkx.DiGraph` (edge attribute ``label``)."""
        G = nx.DiGraph()
        G.add_nodes_from(self._parent)
        for arc in self._parent.values():
            if arc is not None:
                G.add_edge(arc.source, arc.target, label=arc.label)
        return G

    # -------------------------
    # Non-tree arcs and cycles
    # -------------------------
    def extra_arcs(self, lts: TransitionSystem) -> List[Arc]:
        """
        Arcs of ``lts`` leaving tree states that are not tree arcs.

        Arcs are matched by ``(source, target, label)``.
        """
        tree_arcs = self.arcs
        return [
            arc
            for state in self._parent
            for arc in lts.postset_edges(state)
            if arc not in tree_arcs
        ]

    def fundamental_cycles(self, lts: TransitionSystem) -> Dict[Arc, FrozenSet[Arc]]:
        """
        Map every non-tree arc to its fundamental cycle.

        :param lts: The transition system this tree was built from.
        :returns: ``{extra_arc: {extra_arc} | tree_path(source, target)}``.
        """
        return {
            arc: frozenset((arc,)) | self.tree_path(arc.source, arc.target)
            for arc in self.extra_arcs(lts)
        }

    def _require(self, state: Hashable) -> None:
        if state not in self._parent:
            raise UnreachableError(state)

    def __contains__(self, state: object) -> bool:
        return state in self._parent

    def __len__(self) -> int:
        return len(self._parent)

    def __repr__(self) -> str:
        return f"SpanningTree(root={self._initial!r}, states={len(self._parent)})"


def spanning_tree(lts: TransitionSystem) -> SpanningTree:
    """
    Compute a (not necessarily minimal) spanning tree of ``lts``.

    Arcs are explored from an explicit LIFO work stack seeded with the
    initial state's outgoing arcs. An arc whose target is already in the tree
    is discarded; otherwise the target joins the tree through that arc and
    its own outgoing arcs are pushed. Unreachable states do not appear in the
    result.

    :param lts: Transition system with an initial state.
    :type lts: TransitionSystem
    :returns: The spanning tree.
    :rtype: SpanningTree
    :raises StructureError: If ``lts`` has no initial state.

    .. code-block:: python

        tree = spanning_tree(lts)
        tree.path_to("s2")  # [s0--a->s1, s1--b->s2]
    """
    initial = lts.initial_state
    tree = SpanningTree(initial)
    work: List[Arc] = list(lts.postset_edges(initial))
    while work:
        arc = work.pop()
        if arc.target in tree:
            continue
        tree._attach(arc)
        work.extend(lts.postset_edges(arc.target))

    LOGGER.debug("Spanning tree covers %d of %d states", len(tree), len(lts))
    return tree


def cycle_basis(
    lts: TransitionSystem, tree: Optional[SpanningTree] = None
) -> Set[FrozenSet[Arc]]:
    """
    Compute the fundamental cycle basis of ``lts`` with respect to ``tree``.

    Each cycle consists of one non-tree arc together with the tree arcs on
    the path joining its endpoints. Parallel arcs with identical labels are a
    single arc and therefore contribute a single cycle.

    :param lts: Transition system.
    :param tree: Spanning tree of ``lts``; computed when omitted.
    :returns: Set of cycles, each a frozenset of arcs.
    """
    if tree is None:
        tree = spanning_tree(lts)
    cycles = set(tree.fundamental_cycles(lts).values())
    LOGGER.debug("Cycle basis has %d cycles", len(cycles))
    return cycles
