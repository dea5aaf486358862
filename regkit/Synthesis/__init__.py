"""
Region algebra over labeled transition systems.

Re-exported classes
-------------------
- :class:`~regkit.Synthesis.utility.RegionUtility`
- :class:`~regkit.Synthesis.region.Region`
- :class:`~regkit.Synthesis.region.RegionBuilder`
"""

from __future__ import annotations
from typing import List

from .utility import RegionUtility
from .region import Region, RegionBuilder

__all__: List[str] = [
    "RegionUtility",
    "Region",
    "RegionBuilder",
]
