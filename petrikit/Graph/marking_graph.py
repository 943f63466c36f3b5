"""
Deduplicated reachability graph over :class:`Marking` snapshots.

The graph is an append-only sequence: the position of a marking is its id,
index 0 always holds the initial marking, and no two positions hold markings
with equal token vectors. A ``current`` pointer mirrors the marking the live
net model represents.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional, Tuple, Union

from ..Net.events import EventSource, ModelAction
from ..Net.exceptions import InvalidMarkingIdError, MalformedMarkingIdError
from .marking import Marking, MarkingGraphEdge

if TYPE_CHECKING:  # pragma: no cover
    from ..Net.core import Transition

logger = logging.getLogger(__name__)

MarkingId = Union[int, str]


class MarkingGraph(EventSource):
    """
    Growing marking graph with value-keyed deduplication.

    :param initial: Optional initial marking; when given the graph is
        initialized with it right away.
    :type initial: Optional[Marking]
    """

    def __init__(self, initial: Optional[Marking] = None) -> None:
        super().__init__()
        self._markings: List[Marking] = []
        self._index: Dict[Tuple[int, ...], int] = {}
        self._current: Optional[Marking] = None
        if initial is not None:
            self.initialize(initial)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def initialize(self, initial: Marking) -> None:
        """
        Drop all markings and edges and start over from ``initial`` (id 0).

        :param initial: Snapshot that becomes marking 0 and the current marking.
        :type initial: Marking
        """
        self._markings.clear()
        self._index.clear()
        initial.clear_edges()
        self._insert(initial)
        self._current = initial
        self.notify(ModelAction.MARKING_ADDED, initial)

    def reset(self) -> bool:
        """
        Shrink the graph back to its initial marking.

        Nothing happens while the initial marking has no outgoing edges,
        since the graph is then already bare.

        :returns: ``True`` if the graph was reset.
        :rtype: bool
        """
        initial = self.initial
        if initial.out_degree == 0:
            return False
        self.notify(ModelAction.PRINT_LINE, "marking graph reset")
        self.initialize(initial)
        return True

    # ------------------------------------------------------------------
    # Growth
    # ------------------------------------------------------------------
    def record_transition(self, transition: "Transition", snapshot: Marking) -> bool:
        """
        Record that firing ``transition`` from the current marking produced
        ``snapshot``.

        A new token vector is appended under the next id. A known vector is
        replaced by the stored marking, so edges always connect stored
        markings. In both cases the edge ``current -> stored`` is added if the
        current marking has no edge for ``transition`` yet, and the stored
        marking becomes current.

        :param transition: Transition that was fired.
        :type transition: Transition
        :param snapshot: Fresh snapshot of the net after firing.
        :type snapshot: Marking
        :returns: ``True`` if ``snapshot`` was a novel marking.
        :rtype: bool
        """
        source = self.current
        stored_id = self._index.get(snapshot.tokens)
        novel = stored_id is None

        if novel:
            self._insert(snapshot)
            target = snapshot
            logger.debug("New marking %d %s via %s", target.marking_id, target, transition.id)
            self.notify(ModelAction.MARKING_ADDED, target)
        else:
            target = self._markings[stored_id]
            self.notify(ModelAction.MARKING_HIGHLIGHTED, target)

        edge = MarkingGraphEdge(transition, source, target)
        if source.add_edge(edge):
            self.notify(ModelAction.EDGE_ADDED, edge)
        else:
            self.notify(ModelAction.EDGE_HIGHLIGHTED, edge)

        self._current = target
        return novel

    def _insert(self, marking: Marking) -> None:
        marking.marking_id = len(self._markings)
        self._markings.append(marking)
        self._index[marking.tokens] = marking.marking_id

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def resolve_id(self, marking_id: MarkingId) -> int:
        """
        Validate ``marking_id`` and return it as an index.

        :raises MalformedMarkingIdError: If the id is not an integer.
        :raises InvalidMarkingIdError: If the id is outside ``[0, len(self))``.
        """
        if isinstance(marking_id, bool) or not isinstance(marking_id, (int, str)):
            raise MalformedMarkingIdError(f"Not a marking id: {marking_id!r}")
        if isinstance(marking_id, str):
            try:
                idx = int(marking_id.strip())
            except ValueError as exc:
                raise MalformedMarkingIdError(
                    f"Not a marking id: {marking_id!r}"
                ) from exc
        else:
            idx = marking_id
        if not 0 <= idx < len(self._markings):
            raise InvalidMarkingIdError(
                f"Marking id {idx} out of range [0, {len(self._markings)})."
            )
        return idx

    def get(self, marking_id: MarkingId) -> Marking:
        return self._markings[self.resolve_id(marking_id)]

    def jump_to(self, marking_id: MarkingId) -> Marking:
        """
        Make the marking with ``marking_id`` current.

        Emits a highlight for the marking and clears the edge highlight when
        the current marking changes. Invalid ids are rejected before any
        state is touched.

        :returns: The now current marking.
        :rtype: Marking
        """
        target = self.get(marking_id)
        if target is not self._current:
            self.notify(ModelAction.MARKING_HIGHLIGHTED, target)
            self.notify(ModelAction.EDGE_HIGHLIGHTED, MarkingGraphEdge.empty())
            self._current = target
        return target

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def initial(self) -> Marking:
        if not self._markings:
            raise InvalidMarkingIdError("Marking graph has not been initialized.")
        return self._markings[0]

    @property
    def current(self) -> Marking:
        if self._current is None:
            raise InvalidMarkingIdError("Marking graph has not been initialized.")
        return self._current

    def index_of(self, marking: Marking) -> Optional[int]:
        """Id of the stored marking value-equal to ``marking``, or ``None``."""
        return self._index.get(marking.tokens)

    def edge_count(self) -> int:
        return sum(m.out_degree for m in self._markings)

    def edges(self) -> Iterator[MarkingGraphEdge]:
        for m in self._markings:
            yield from m.edges

    def successors(self, marking: Marking) -> List[Marking]:
        return [e.target for e in marking.edges]

    def __len__(self) -> int:
        return len(self._markings)

    def __iter__(self) -> Iterator[Marking]:
        return iter(list(self._markings))

    def __getitem__(self, marking_id: MarkingId) -> Marking:
        return self.get(marking_id)

    def __contains__(self, marking: object) -> bool:
        return isinstance(marking, Marking) and marking.tokens in self._index

    def __repr__(self) -> str:
        return f"MarkingGraph(markings={len(self)}, edges={self.edge_count()})"
