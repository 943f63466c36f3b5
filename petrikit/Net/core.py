from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Tuple


@dataclass(eq=False)
class Place:
    """
    A place of a Petri net carrying the *live* token count.

    Places are compared by identity: two places with equal token counts are
    still different places. Value comparison happens on
    :class:`~petrikit.Graph.marking.Marking` snapshots instead.

    :param id: Stable identifier, also the ordering key of marking vectors.
    :type id: str
    :param name: Human-readable label (defaults to ``id``).
    :type name: str
    :param tokens: Current, non-negative token count.
    :type tokens: int
    :param position: Optional layout coordinates taken from the net file.
    :type position: Optional[Tuple[int, int]]
    :param metadata: Arbitrary extra attributes kept from the loader.
    :type metadata: Dict[str, Any]
    """

    id: str
    name: str = ""
    tokens: int = 0
    position: Optional[Tuple[int, int]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name:
            self.name = self.id
        if self.tokens < 0:
            raise ValueError(
                f"Place {self.id!r} cannot hold a negative token count ({self.tokens})."
            )

    @property
    def label(self) -> str:
        return self.id if self.name == self.id else f"{self.id} ({self.name})"

    def __repr__(self) -> str:
        return f"Place({self.id!r}, tokens={self.tokens})"


@dataclass(eq=False)
class Transition:
    """
    A transition with unit-weight arcs.

    ``preset`` and ``postset`` hold the live :class:`Place` objects consumed
    from and produced into. Duplicates are removed and both are kept in place
    id order so firing touches places deterministically.

    :param id: Stable identifier.
    :type id: str
    :param name: Human-readable label (defaults to ``id``).
    :type name: str
    :param preset: Places consumed by one firing.
    :type preset: Tuple[Place, ...]
    :param postset: Places produced into by one firing.
    :type postset: Tuple[Place, ...]
    """

    id: str
    name: str = ""
    preset: Tuple[Place, ...] = ()
    postset: Tuple[Place, ...] = ()
    position: Optional[Tuple[int, int]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    enabled: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        if not self.name:
            self.name = self.id
        self.preset = _unique_places(self.preset)
        self.postset = _unique_places(self.postset)
        self.refresh_enabled()

    def add_input(self, place: Place) -> None:
        self.preset = _unique_places(self.preset + (place,))
        self.refresh_enabled()

    def add_output(self, place: Place) -> None:
        self.postset = _unique_places(self.postset + (place,))

    def refresh_enabled(self) -> bool:
        """
        Recompute :attr:`enabled` from the current preset token counts.

        :returns: The new enabling status.
        :rtype: bool
        """
        self.enabled = all(p.tokens >= 1 for p in self.preset)
        return self.enabled

    @property
    def label(self) -> str:
        return self.id if self.name == self.id else f"{self.id} ({self.name})"

    def __repr__(self) -> str:
        pre = ", ".join(p.id for p in self.preset) or "-"
        post = ", ".join(p.id for p in self.postset) or "-"
        return f"Transition({self.id!r}: {pre} -> {post})"


@dataclass(frozen=True)
class Arc:
    """
    Unresolved connection between a place and a transition, as read from a
    net description.

    :param source: Id of the source node.
    :type source: str
    :param target: Id of the target node.
    :type target: str
    :param id: Optional arc id from the net file.
    :type id: Optional[str]
    """

    source: str
    target: str
    id: Optional[str] = None


def _unique_places(places: Iterable[Place]) -> Tuple[Place, ...]:
    seen: Dict[int, Place] = {}
    for p in places:
        seen.setdefault(id(p), p)
    return tuple(sorted(seen.values(), key=lambda p: p.id))
