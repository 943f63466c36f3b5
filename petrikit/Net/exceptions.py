from __future__ import annotations


class PetriNetError(RuntimeError):
    """Base class for all petrikit-specific errors."""


class StructureError(PetriNetError, ValueError):
    """Raised when a net description references unknown or ill-typed nodes."""


class InvalidMarkingIdError(PetriNetError, IndexError):
    """Raised when a marking id lies outside ``[0, len(graph))``."""


class MalformedMarkingIdError(PetriNetError, ValueError):
    """Raised when a marking id cannot be read as an integer index."""


class PNMLParseError(PetriNetError):
    """Raised when a PNML document is malformed or cannot be read."""


class ExplorationLimitError(PetriNetError):
    """Raised when an exploration grows beyond its configured marking budget."""
