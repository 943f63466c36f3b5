"""
Net model building blocks for :mod:`petrikit`.

Re-exported here are the leaf modules only (places, transitions, events and
errors). :class:`~petrikit.Net.petrinet.PetriNet` lives in
:mod:`petrikit.Net.petrinet` and is re-exported from :mod:`petrikit.Analysis`
together with the analyzers.
"""

from __future__ import annotations

from typing import List

from .core import Arc, Place, Transition
from .events import EventSource, ModelAction, ModelEvent, ModelListener
from .exceptions import (
    ExplorationLimitError,
    InvalidMarkingIdError,
    MalformedMarkingIdError,
    PetriNetError,
    PNMLParseError,
    StructureError,
)

__all__: List[str] = [
    "Arc",
    "Place",
    "Transition",
    "EventSource",
    "ModelAction",
    "ModelEvent",
    "ModelListener",
    "PetriNetError",
    "StructureError",
    "InvalidMarkingIdError",
    "MalformedMarkingIdError",
    "PNMLParseError",
    "ExplorationLimitError",
]
