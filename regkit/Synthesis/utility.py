from __future__ import annotations

import logging
from typing import Dict, Hashable, Iterable, List, Optional, Tuple

import numpy as np

from ..exceptions import InvalidArgumentError, NoSuchNodeError, UnreachableError
from ..LTS.spanning_tree import SpanningTree, spanning_tree
from ..LTS.transition_system import Arc, TransitionSystem

LOGGER = logging.getLogger(__name__)

ParikhVector = Tuple[int, ...]


class RegionUtility:
    """
    Event index and reachability information shared by all regions of an LTS.

    Every event label gets a stable index in ``[0, number_of_events)``. The
    Parikh vector of a reachable state counts the events along its
    spanning-tree path; the whole table is built once, on first use, and
    reused afterwards.

    :param lts: The transition system regions are defined on.
    :type lts: TransitionSystem
    :param events: Optional explicit event order. Must contain every label of
        ``lts`` exactly once; extra (unused) labels are allowed.
    :type events: Optional[Iterable[str]]
    :raises InvalidArgumentError: If ``events`` has duplicates or misses a label.
    """

    def __init__(
        self, lts: TransitionSystem, *, events: Optional[Iterable[str]] = None
    ) -> None:
        alphabet = lts.alphabet
        event_list = alphabet if events is None else tuple(events)
        index: Dict[str, int] = {}
        for i, event in enumerate(event_list):
            if event in index:
                raise InvalidArgumentError(f"Duplicate event {event!r} in event list")
            index[event] = i
        missing = [e for e in alphabet if e not in index]
        if missing:
            raise InvalidArgumentError(f"Event list lacks labels {missing!r}")

        self._lts = lts
        self._events: Tuple[str, ...] = tuple(event_list)
        self._index = index
        self._tree: Optional[SpanningTree] = None
        self._parikh: Optional[Dict[Hashable, ParikhVector]] = None
        self._cycles: Optional[Dict[Arc, ParikhVector]] = None

    # -------------------------
    # Events
    # -------------------------
    @property
    def transition_system(self) -> TransitionSystem:
        return self._lts

    @property
    def number_of_events(self) -> int:
        return len(self._events)

    @property
    def event_list(self) -> Tuple[str, ...]:
        return self._events

    def event_index(self, event: str) -> int:
        """
        Index of ``event``.

        :raises InvalidArgumentError: If ``event`` is unknown.
        """
        try:
            return self._index[event]
        except KeyError:
            raise InvalidArgumentError(f"Unknown event {event!r}") from None

    # -------------------------
    # Reachability
    # -------------------------
    @property
    def spanning_tree(self) -> SpanningTree:
        if self._tree is None:
            self._tree = spanning_tree(self._lts)
        return self._tree

    @property
    def reachable_states(self) -> List[Hashable]:
        return self.spanning_tree.states

    @property
    def unreachable_states(self) -> List[Hashable]:
        tree = self.spanning_tree
        return [s for s in self._lts.states if s not in tree]

    def _parikh_table(self) -> Dict[Hashable, ParikhVector]:
        if self._parikh is None:
            tree = self.spanning_tree
            zero = (0,) * self.number_of_events
            table: Dict[Hashable, ParikhVector] = {}
            # discovery order puts every parent before its children
            for state in tree.states:
                arc = tree.parent_arc(state)
                if arc is None:
                    table[state] = zero
                    continue
                vector = list(table[arc.source])
                vector[self._index[arc.label]] += 1
                table[state] = tuple(vector)
            self._parikh = table
            LOGGER.debug("Computed Parikh vectors for %d states", len(table))
        return self._parikh

    def lookup_parikh_vector(self, state: Hashable) -> Optional[ParikhVector]:
        """
        Parikh vector of ``state``, or ``None`` if it is unreachable.

        :raises NoSuchNodeError: If ``state`` is not part of the LTS.
        """
        if state not in self._lts:
            raise NoSuchNodeError(state)
        return self._parikh_table().get(state)

    def reaching_parikh_vector(self, state: Hashable) -> ParikhVector:
        """
        Parikh vector of the spanning-tree path from the initial state to ``state``.

        :raises UnreachableError: If ``state`` is unreachable.
        :raises NoSuchNodeError: If ``state`` is not part of the LTS.
        """
        vector = self.lookup_parikh_vector(state)
        if vector is None:
            raise UnreachableError(state)
        return vector

    def parikh_matrix(self) -> np.ndarray:
        """
        Parikh vectors of all reachable states as an object-dtype matrix.

        Rows follow :attr:`reachable_states`, columns follow :attr:`event_list`.
        """
        table = self._parikh_table()
        states = self.reachable_states
        return self._as_matrix(table[s] for s in states)

    # -------------------------
    # Cycles
    # -------------------------
    def cycle_parikh_vectors(self) -> Dict[Arc, ParikhVector]:
        """
        Signed event effect of every fundamental cycle, keyed by its non-tree arc.

        For a non-tree arc ``u --e--> v`` the entry is
        ``pv(u) + unit(e) - pv(v)``; a region is cycle-consistent iff it
        evaluates every entry to zero.
        """
        if self._cycles is None:
            table = self._parikh_table()
            cycles: Dict[Arc, ParikhVector] = {}
            for arc in self.spanning_tree.extra_arcs(self._lts):
                vector = [a - b for a, b in zip(table[arc.source], table[arc.target])]
                vector[self._index[arc.label]] += 1
                cycles[arc] = tuple(vector)
            self._cycles = cycles
            LOGGER.debug("Computed %d fundamental cycle vectors", len(cycles))
        return self._cycles

    def cycle_matrix(self) -> np.ndarray:
        """Rows of :meth:`cycle_parikh_vectors` stacked into an object-dtype matrix."""
        return self._as_matrix(self.cycle_parikh_vectors().values())

    def _as_matrix(self, rows: Iterable[ParikhVector]) -> np.ndarray:
        rows = list(rows)
        M = np.zeros((len(rows), self.number_of_events), dtype=object)
        for r, row in enumerate(rows):
            for c, value in enumerate(row):
                M[r, c] = value
        return M

    def __repr__(self) -> str:
        return f"RegionUtility(events={list(self._events)!r}, lts={self._lts!r})"
