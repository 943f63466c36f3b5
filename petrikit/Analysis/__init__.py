"""
Public API for :mod:`petrikit.Analysis`.

Re-exported classes
-------------------
- :class:`~petrikit.Net.petrinet.PetriNet`
- :class:`~petrikit.Analysis.boundedness.BoundednessAnalyzer`
- :class:`~petrikit.Analysis.witness.WitnessPathFinder`
- :class:`~petrikit.Analysis.batch.BatchAnalyzer`
"""

from __future__ import annotations

from typing import List

from ..Net.petrinet import PetriNet
from .batch import BatchAnalyzer, PathCollector, format_report
from .boundedness import (
    BoundednessAnalyzer,
    BoundednessResult,
    Verdict,
    Witness,
    analyze,
    analyze_boundedness,
)
from .witness import WitnessPathFinder

__all__: List[str] = [
    "PetriNet",
    "BoundednessAnalyzer",
    "BoundednessResult",
    "Verdict",
    "Witness",
    "analyze",
    "analyze_boundedness",
    "WitnessPathFinder",
    "BatchAnalyzer",
    "PathCollector",
    "format_report",
]
