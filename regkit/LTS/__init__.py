"""
Labeled transition systems and their spanning-tree abstractions.

Re-exported classes
-------------------
- :class:`~regkit.LTS.transition_system.Arc`
- :class:`~regkit.LTS.transition_system.TransitionSystem`
- :class:`~regkit.LTS.spanning_tree.SpanningTree`
"""

from __future__ import annotations
from typing import List

from .transition_system import Arc, TransitionSystem
from .spanning_tree import SpanningTree, spanning_tree, cycle_basis

__all__: List[str] = [
    "Arc",
    "TransitionSystem",
    "SpanningTree",
    "spanning_tree",
    "cycle_basis",
]
