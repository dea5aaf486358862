from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Hashable, Iterable, Iterator, List, Optional, Set, Tuple

import networkx as nx

from ..exceptions import InvalidArgumentError, NoSuchNodeError, StructureError


@dataclass(frozen=True)
class Arc:
    """
    A labeled arc ``source --label--> target`` of a transition system.

    Arcs compare by their ``(source, target, label)`` triple, so two parallel
    arcs carrying the same label are the same arc.

    :param source: Id of the source state.
    :type source: Hashable
    :param target: Id of the target state.
    :type target: Hashable
    :param label: Event label.
    :type label: str
    """

    source: Hashable
    target: Hashable
    label: str

    def __repr__(self) -> str:
        return f"{self.source}--{self.label}->{self.target}"


class TransitionSystem:
    """
    Labeled transition system backed by a :class:`networkx.MultiDiGraph`.

    States are opaque hashable ids (graph nodes); every arc is a graph edge
    whose key is its event label. One state may be designated as initial.

    :param name: Optional human-readable name, stored as the graph name.
    :type name: str

    .. code-block:: python

        lts = TransitionSystem.from_arcs(
            [("s0", "a", "s1"), ("s1", "b", "s2"), ("s2", "a", "s0")],
            initial_state="s0",
        )
        lts.postset_edges("s0")  # [s0--a->s1]
    """

    def __init__(self, name: str = "") -> None:
        self._graph = nx.MultiDiGraph(name=name)
        self._initial: Optional[Hashable] = None
        # labels in first-appearance order
        self._alphabet: Dict[str, None] = {}
        self._next_id = 0

    # -------------------------
    # Construction
    # -------------------------
    @classmethod
    def from_arcs(
        cls,
        arcs: Iterable[Tuple[Hashable, str, Hashable]],
        initial_state: Hashable,
        *,
        name: str = "",
    ) -> "TransitionSystem":
        """
        Build a transition system from ``(source, label, target)`` triples.

        States are created on first mention; ``initial_state`` is created
        even if it has no arcs.

        :param arcs: Iterable of ``(source, label, target)`` triples.
        :param initial_state: Id of the initial state.
        :param name: Optional name.
        :returns: New transition system.
        """
        lts = cls(name=name)
        lts.create_state(initial_state)
        for source, label, target in arcs:
            for state in (source, target):
                if not lts.has_state(state):
                    lts.create_state(state)
            lts.create_arc(source, target, label)
        lts.initial_state = initial_state
        return lts

    def create_state(self, state_id: Optional[Hashable] = None) -> Hashable:
        """
        Add a state.

        :param state_id: Id of the new state; ``s0``, ``s1``, ... are
            generated when omitted.
        :returns: The id of the created state.
        :raises InvalidArgumentError: If the id is already in use.
        """
        if state_id is None:
            while f"s{self._next_id}" in self._graph:
                self._next_id += 1
            state_id = f"s{self._next_id}"
        elif state_id in self._graph:
            raise InvalidArgumentError(f"State {state_id!r} already exists")
        self._graph.add_node(state_id)
        return state_id

    def create_states(self, *state_ids: Hashable) -> List[Hashable]:
        """Add several states at once and return their ids."""
        return [self.create_state(s) for s in state_ids]

    def create_arc(self, source: Hashable, target: Hashable, label: str) -> Arc:
        """
        Add the arc ``source --label--> target``.

        Adding an arc that already exists is a no-op.

        :raises NoSuchNodeError: If either endpoint is unknown.
        :raises InvalidArgumentError: If ``label`` is not a non-empty string.
        """
        self._require(source)
        self._require(target)
        if not isinstance(label, str) or not label:
            raise InvalidArgumentError(f"Event label must be a non-empty string, got {label!r}")
        if not self._graph.has_edge(source, target, key=label):
            self._graph.add_edge(source, target, key=label, label=label)
            self._alphabet.setdefault(label, None)
        return Arc(source, target, label)

    # -------------------------
    # Initial state
    # -------------------------
    @property
    def initial_state(self) -> Hashable:
        if self._initial is None:
            raise StructureError("Transition system has no initial state")
        return self._initial

    @initial_state.setter
    def initial_state(self, state: Hashable) -> None:
        self._require(state)
        self._initial = state

    # -------------------------
    # Queries
    # -------------------------
    @property
    def graph(self) -> nx.MultiDiGraph:
        """Underlying graph; treat as read-only."""
        return self._graph

    @property
    def name(self) -> str:
        return self._graph.graph.get("name", "")

    @property
    def states(self) -> List[Hashable]:
        return list(self._graph.nodes)

    nodes = states

    @property
    def arcs(self) -> List[Arc]:
        return [Arc(u, v, k) for u, v, k in self._graph.edges(keys=True)]

    edges = arcs

    @property
    def alphabet(self) -> Tuple[str, ...]:
        return tuple(self._alphabet)

    def has_state(self, state: Hashable) -> bool:
        return state in self._graph

    def postset_edges(self, state: Hashable) -> List[Arc]:
        """Outgoing arcs of ``state``."""
        self._require(state)
        return [Arc(u, v, k) for u, v, k in self._graph.out_edges(state, keys=True)]

    def preset_edges(self, state: Hashable) -> List[Arc]:
        """Incoming arcs of ``state``."""
        self._require(state)
        return [Arc(u, v, k) for u, v, k in self._graph.in_edges(state, keys=True)]

    def reachable_states(self) -> Set[Hashable]:
        """
        States with a directed path from the initial state (initial included).

        :raises StructureError: If no initial state is set.
        """
        init = self.initial_state
        reached = nx.descendants(self._graph, init)
        reached.add(init)
        return reached

    def _require(self, state: Any) -> None:
        if state not in self._graph:
            raise NoSuchNodeError(state)

    def __contains__(self, state: Any) -> bool:
        return state in self._graph

    def __len__(self) -> int:
        return self._graph.number_of_nodes()

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._graph.nodes)

    def __repr__(self) -> str:
        return (
            f"TransitionSystem(name={self.name!r}, states={len(self)}, "
            f"arcs={self._graph.number_of_edges()}, events={len(self._alphabet)})"
        )
