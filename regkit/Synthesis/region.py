"""
Regions of labeled transition systems.

A region assigns every event a *backward* weight (tokens consumed) and a
*forward* weight (tokens produced). Its net effect along the spanning-tree
path of a state, offset by an initial marking, is the number of tokens the
corresponding Petri net place holds in that state.

Conventions
-----------
- All weights and markings are Python ``int`` (unbounded precision).
- Events may be addressed by label (``str``) or by index (``int``) as
  assigned by the :class:`~regkit.Synthesis.utility.RegionUtility`.
- :class:`Region` is immutable; :class:`RegionBuilder` (also reachable as
  ``Region.Builder``) is its mutable counterpart.

The lazily derived initial marking and the per-state marking cache are
compute-once caches for single-threaded use. Resolve
:attr:`Region.initial_marking` before sharing a region between threads.
"""

from __future__ import annotations

import logging
import numbers
from typing import Dict, Hashable, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..exceptions import InvalidArgumentError
from ..LTS.transition_system import TransitionSystem
from .utility import RegionUtility

LOGGER = logging.getLogger(__name__)

EventKey = Union[int, str]

__all__ = ["Region", "RegionBuilder"]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _as_int(value: object, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidArgumentError(f"{what} must be an integer, got {value!r}")
    return int(value)


def _resolve_index(utility: RegionUtility, key: EventKey) -> int:
    if isinstance(key, str):
        return utility.event_index(key)
    index = _as_int(key, "Event index")
    if not 0 <= index < utility.number_of_events:
        raise InvalidArgumentError(
            f"Event index {index} out of range [0, {utility.number_of_events})"
        )
    return index


def _weight_list(utility: RegionUtility, weights: Sequence[object], what: str) -> List[int]:
    values = [_as_int(w, f"{what} weight") for w in weights]
    if len(values) != utility.number_of_events:
        raise InvalidArgumentError(
            f"There must be as many {what.lower()} weights as events "
            f"({len(values)} != {utility.number_of_events})"
        )
    return values


def _normal_marking(utility: RegionUtility, net_weights: Sequence[int]) -> int:
    """Smallest non-negative marking keeping every reachable state non-negative."""
    marking = 0
    for state in utility.transition_system.states:
        vector = utility.lookup_parikh_vector(state)
        if vector is None:
            continue
        value = sum(p * w for p, w in zip(vector, net_weights))
        marking = max(marking, -value)
    return marking


def _cycle_consistent(utility: RegionUtility, net_weights: Sequence[int]) -> bool:
    M = utility.cycle_matrix()
    if M.shape[0] == 0 or M.shape[1] == 0:
        return True
    effects = M.dot(np.array(net_weights, dtype=object))
    return all(int(x) == 0 for x in effects)


# ---------------------------------------------------------------------------
# Region
# ---------------------------------------------------------------------------


class Region:
    """
    Immutable region of a labeled transition system.

    :param utility: Event index / reachability utility of the LTS.
    :type utility: RegionUtility
    :param backward: Backward weight per event index.
    :type backward: Sequence[int]
    :param forward: Forward weight per event index.
    :type forward: Sequence[int]
    :param initial_marking: Explicit initial marking, or ``None`` to derive
        the normal region marking on first access.
    :type initial_marking: Optional[int]
    :raises InvalidArgumentError: On length mismatches, negative or
        non-integral weights, or a negative initial marking.

    .. code-block:: python

        lts = TransitionSystem.from_arcs(
            [("s0", "a", "s1"), ("s1", "b", "s2"), ("s2", "a", "s0")], "s0"
        )
        utility = RegionUtility(lts)
        r = Region(utility, [0, 0], [1, 0])
        r.initial_marking            # 0
        r.marking_for_state("s2")    # 1
    """

    Builder: type

    def __init__(
        self,
        utility: RegionUtility,
        backward: Sequence[int],
        forward: Sequence[int],
        initial_marking: Optional[int] = None,
    ) -> None:
        b = _weight_list(utility, backward, "Backward")
        f = _weight_list(utility, forward, "Forward")
        for i, w in enumerate(b):
            if w < 0:
                raise InvalidArgumentError(f"Backward weight {w} of event {i} must not be negative")
        for i, w in enumerate(f):
            if w < 0:
                raise InvalidArgumentError(f"Forward weight {w} of event {i} must not be negative")
        if initial_marking is not None:
            initial_marking = _as_int(initial_marking, "Initial marking")
            if initial_marking < 0:
                raise InvalidArgumentError(f"Initial marking {initial_marking} must not be negative")

        self._utility = utility
        self._backward: Tuple[int, ...] = tuple(b)
        self._forward: Tuple[int, ...] = tuple(f)
        self._initial_marking = initial_marking
        self._state_markings: Dict[Hashable, int] = {}

    # -------------------------
    # Accessors
    # -------------------------
    @property
    def utility(self) -> RegionUtility:
        return self._utility

    @property
    def transition_system(self) -> TransitionSystem:
        return self._utility.transition_system

    @property
    def backward_weights(self) -> Tuple[int, ...]:
        return self._backward

    @property
    def forward_weights(self) -> Tuple[int, ...]:
        return self._forward

    @property
    def weights(self) -> Tuple[int, ...]:
        """Net weight (forward minus backward) per event index."""
        return tuple(f - b for b, f in zip(self._backward, self._forward))

    def backward_weight(self, event: EventKey) -> int:
        return self._backward[_resolve_index(self._utility, event)]

    def forward_weight(self, event: EventKey) -> int:
        return self._forward[_resolve_index(self._utility, event)]

    def weight(self, event: EventKey) -> int:
        """Net token effect of firing ``event`` once; may be negative."""
        i = _resolve_index(self._utility, event)
        return self._forward[i] - self._backward[i]

    def is_pure(self) -> bool:
        """True if no event both consumes and produces tokens."""
        return all(min(b, f) == 0 for b, f in zip(self._backward, self._forward))

    def is_cycle_consistent(self) -> bool:
        """True if every fundamental cycle of the LTS has zero net effect."""
        return _cycle_consistent(self._utility, self.weights)

    # -------------------------
    # Markings
    # -------------------------
    def evaluate_parikh_vector(self, vector: Sequence[int]) -> int:
        """
        Dot product of ``vector`` with the net weights.

        :raises InvalidArgumentError: If ``vector`` does not have one entry per event.
        """
        if len(vector) != self._utility.number_of_events:
            raise InvalidArgumentError(
                f"Parikh vector has {len(vector)} entries, expected "
                f"{self._utility.number_of_events}"
            )
        return sum(v * (f - b) for v, b, f in zip(vector, self._backward, self._forward))

    @property
    def initial_marking(self) -> int:
        """Explicit initial marking, or the normal region marking computed once."""
        if self._initial_marking is None:
            self._initial_marking = self.normal_region_marking()
            LOGGER.debug("Derived normal initial marking %d", self._initial_marking)
        return self._initial_marking

    def normal_region_marking(self) -> int:
        """
        Marking that a normal region with these weights assigns to the initial state.

        This is the maximum of ``-evaluate_parikh_vector(pv(s))`` over all
        reachable states ``s`` (and zero); unreachable states are skipped.
        """
        return _normal_marking(self._utility, self.weights)

    def marking_for_state(self, state: Hashable) -> int:
        """
        Marking this region assigns to ``state``.

        :raises UnreachableError: If ``state`` is unreachable from the initial state.
        :raises NoSuchNodeError: If ``state`` is not part of the LTS.
        """
        marking = self._state_markings.get(state)
        if marking is None:
            vector = self._utility.reaching_parikh_vector(state)
            marking = self.initial_marking + self.evaluate_parikh_vector(vector)
            self._state_markings[state] = marking
        return marking

    # -------------------------
    # Arithmetic
    # -------------------------
    def add_region_with_factor(self, other: "Region", factor: int) -> "Region":
        """
        Return ``self + factor * other``.

        A positive factor scales and adds ``other``'s backward and forward
        weights to ours. A negative factor adds the *reverse* of ``other``:
        its backward weights go to our forward weights and vice versa. The
        result has no explicit initial marking.

        :raises InvalidArgumentError: If ``other`` belongs to a different utility.
        """
        self._check_compatible(other)
        factor = _as_int(factor, "Factor")
        if factor == 0:
            return self

        if factor > 0:
            theirs_b, theirs_f = other._backward, other._forward
        else:
            factor = -factor
            theirs_b, theirs_f = other._forward, other._backward
        backward = [b + factor * ob for b, ob in zip(self._backward, theirs_b)]
        forward = [f + factor * of for f, of in zip(self._forward, theirs_f)]
        return Region(self._utility, backward, forward)

    def add_region(self, other: "Region") -> "Region":
        return self.add_region_with_factor(other, 1)

    def make_pure(self) -> "Region":
        """Equivalent pure region with its normal initial marking."""
        return RegionBuilder.create_pure(
            self._utility, self.weights
        ).with_normal_region_initial_marking()

    def with_initial_marking(self, initial: int) -> "Region":
        return Region(self._utility, self._backward, self._forward, initial)

    def _check_compatible(self, other: object) -> None:
        if not isinstance(other, Region):
            raise InvalidArgumentError(f"Expected a Region, got {type(other).__name__}")
        if other._utility is not self._utility:
            raise InvalidArgumentError("Regions belong to different region utilities")

    # -------------------------
    # Dunder
    # -------------------------
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Region):
            return NotImplemented
        if other is self:
            return True
        return (
            other._utility is self._utility
            and other._forward == self._forward
            and other._backward == self._backward
            and other.initial_marking == self.initial_marking
        )

    def __hash__(self) -> int:
        return hash((id(self._utility), self._forward, self._backward, self.initial_marking))

    def __str__(self) -> str:
        parts = [f"init={self.initial_marking}"]
        for event in self._utility.event_list:
            parts.append(
                f"{self.backward_weight(event)}:{event}:{self.forward_weight(event)}"
            )
        return "{ " + ", ".join(parts) + " }"

    def __repr__(self) -> str:
        marking = "lazy" if self._initial_marking is None else self._initial_marking
        return (
            f"Region(backward={list(self._backward)}, forward={list(self._forward)}, "
            f"initial_marking={marking})"
        )


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class RegionBuilder:
    """
    Mutable staging area for assembling a :class:`Region`.

    All arithmetic methods modify the builder in place and return it for
    chaining; :meth:`with_initial_marking` and
    :meth:`with_normal_region_initial_marking` copy the current weights into
    a new immutable region.

    :param utility: Event index / reachability utility.
    :param backward: Initial backward weights; all zero when omitted.
    :param forward: Initial forward weights; all zero when omitted.
    :raises InvalidArgumentError: If a list does not have one entry per event.

    .. code-block:: python

        region = (
            RegionBuilder(utility)
            .add_region_with_factor(r1, 2)
            .add_region_with_factor(r2, -1)
            .make_pure()
            .with_normal_region_initial_marking()
        )
    """

    def __init__(
        self,
        utility: RegionUtility,
        backward: Optional[Sequence[int]] = None,
        forward: Optional[Sequence[int]] = None,
    ) -> None:
        n = utility.number_of_events
        self._utility = utility
        self._backward = _weight_list(utility, [0] * n if backward is None else backward, "Backward")
        self._forward = _weight_list(utility, [0] * n if forward is None else forward, "Forward")

    @classmethod
    def from_region(cls, region: Region) -> "RegionBuilder":
        """Builder initialised with the weights of ``region``."""
        return cls(region.utility, region.backward_weights, region.forward_weights)

    @classmethod
    def create_pure(cls, utility: RegionUtility, vector: Sequence[int]) -> "RegionBuilder":
        """
        Builder for a pure region with the given net weights.

        Positive entries become forward weights, negative entries become
        (negated) backward weights.

        :param utility: Event index / reachability utility.
        :param vector: Net weight per event index.
        :raises InvalidArgumentError: If ``vector`` does not have one entry per event.
        """
        weights = _weight_list(utility, vector, "Net")
        result = cls(utility)
        for i, value in enumerate(weights):
            if value > 0:
                result._forward[i] = value
            else:
                result._backward[i] = -value
        return result

    @property
    def backward_weights(self) -> Tuple[int, ...]:
        return tuple(self._backward)

    @property
    def forward_weights(self) -> Tuple[int, ...]:
        return tuple(self._forward)

    def _net_weights(self) -> List[int]:
        return [f - b for b, f in zip(self._backward, self._forward)]

    def add_loop_around(self, event: EventKey, weight: int) -> "RegionBuilder":
        """Increase both the backward and the forward weight of ``event`` by ``weight``."""
        i = _resolve_index(self._utility, event)
        weight = _as_int(weight, "Loop weight")
        self._backward[i] += weight
        self._forward[i] += weight
        return self

    def add_region_with_factor(self, region: Region, factor: int) -> "RegionBuilder":
        """
        Add ``factor`` times ``region`` to the current weights.

        For a negative factor the region's backward weights are added to our
        forward weights and vice versa, scaled by ``-factor``.

        :raises InvalidArgumentError: If ``region`` belongs to a different utility.
        """
        if not isinstance(region, Region) or region.utility is not self._utility:
            raise InvalidArgumentError("Region belongs to a different region utility")
        factor = _as_int(factor, "Factor")
        if factor == 0:
            return self

        theirs_b, theirs_f = region.backward_weights, region.forward_weights
        if factor < 0:
            factor = -factor
            theirs_b, theirs_f = theirs_f, theirs_b

        for i in range(self._utility.number_of_events):
            self._backward[i] += factor * theirs_b[i]
            self._forward[i] += factor * theirs_f[i]
        return self

    def make_pure(self) -> "RegionBuilder":
        """Keep every event's net effect but zero one of its two weights."""
        for i, weight in enumerate(self._net_weights()):
            if weight >= 0:
                self._forward[i] = weight
                self._backward[i] = 0
            else:
                self._forward[i] = 0
                self._backward[i] = -weight
        return self

    def with_initial_marking(self, initial: Optional[int]) -> Region:
        return Region(self._utility, self._backward, self._forward, initial)

    def with_normal_region_initial_marking(self) -> Region:
        """
        Finalise with the marking a normal region would assign to the initial state.

        The result only keeps all reachable markings non-negative when the
        current weights are cycle-consistent.
        """
        net = self._net_weights()
        if LOGGER.isEnabledFor(logging.DEBUG) and not _cycle_consistent(self._utility, net):
            LOGGER.debug("Normal marking requested for weights that are not cycle-consistent")
        return self.with_initial_marking(_normal_marking(self._utility, net))

    def __repr__(self) -> str:
        return f"RegionBuilder(backward={self._backward}, forward={self._forward})"


Region.Builder = RegionBuilder
