from __future__ import annotations
from typing import List

from .version import __version__
from .exceptions import (
    RegionKitError,
    InvalidArgumentError,
    StructureError,
    UnreachableError,
    NoSuchNodeError,
)
from .LTS import Arc, TransitionSystem, SpanningTree, spanning_tree, cycle_basis
from .Synthesis import RegionUtility, Region, RegionBuilder

__all__: List[str] = [
    "__version__",
    "RegionKitError",
    "InvalidArgumentError",
    "StructureError",
    "UnreachableError",
    "NoSuchNodeError",
    "Arc",
    "TransitionSystem",
    "SpanningTree",
    "spanning_tree",
    "cycle_basis",
    "RegionUtility",
    "Region",
    "RegionBuilder",
]
