from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterable, Iterator, List, Optional, Tuple

import numpy as np

if TYPE_CHECKING:  # pragma: no cover
    from ..Net.core import Transition


class Marking:
    """
    Immutable snapshot of the token counts of all places.

    Equality and hashing only look at the token vector, so two snapshots of
    the same distribution are interchangeable as graph keys. Once a marking is
    stored in a :class:`~petrikit.Graph.marking_graph.MarkingGraph` it also
    carries its sequential id and the outgoing edges discovered so far; both
    are bookkeeping and take no part in comparisons.

    :param tokens: Token counts in the fixed place order.
    :type tokens: Iterable[int]
    :raises ValueError: If any entry is negative.
    """

    __slots__ = ("_tokens", "marking_id", "_edges")

    def __init__(self, tokens: Iterable[int]) -> None:
        vec = tuple(int(t) for t in tokens)
        if any(t < 0 for t in vec):
            raise ValueError(f"Marking entries must be non-negative, got {vec}.")
        self._tokens: Tuple[int, ...] = vec
        self.marking_id: Optional[int] = None
        self._edges: Dict[str, MarkingGraphEdge] = {}

    # ------------------------------------------------------------------
    # Value semantics
    # ------------------------------------------------------------------
    @property
    def tokens(self) -> Tuple[int, ...]:
        return self._tokens

    def as_array(self) -> np.ndarray:
        """Return the token vector as an integer numpy array."""
        return np.asarray(self._tokens, dtype=np.int64)

    def __eq__(self, other: object) -> bool:
        if other is self:
            return True
        if not isinstance(other, Marking):
            return NotImplemented
        return self._tokens == other._tokens

    def __hash__(self) -> int:
        return hash(self._tokens)

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self) -> Iterator[int]:
        return iter(self._tokens)

    def __getitem__(self, index: int) -> int:
        return self._tokens[index]

    def is_dominated_by(self, other: Marking) -> bool:
        """
        Test whether ``other`` strictly covers this marking.

        ``other`` must hold at least as many tokens as ``self`` in every place
        and strictly more in at least one. A single place where ``other`` has
        fewer tokens makes the answer ``False`` regardless of the rest.

        :param other: Candidate covering marking (same length).
        :type other: Marking
        :returns: ``True`` if ``self <= other`` componentwise and ``self != other``.
        :rtype: bool
        """
        grown = False
        for mine, theirs in zip(self._tokens, other._tokens):
            if theirs < mine:
                return False
            if theirs > mine:
                grown = True
        return grown

    def covers(self, other: Marking) -> bool:
        """Converse of :meth:`is_dominated_by`."""
        return other.is_dominated_by(self)

    # ------------------------------------------------------------------
    # Graph bookkeeping
    # ------------------------------------------------------------------
    @property
    def edges(self) -> List[MarkingGraphEdge]:
        """Outgoing edges in discovery order."""
        return list(self._edges.values())

    def has_edge(self, edge: MarkingGraphEdge) -> bool:
        return edge.transition is not None and edge.transition.id in self._edges

    def add_edge(self, edge: MarkingGraphEdge) -> bool:
        """
        Add an outgoing edge unless one with the same transition exists.

        :returns: ``True`` if the adjacency changed.
        :rtype: bool
        """
        if edge.source is not self:
            raise ValueError("Edge source must be the marking it is added to.")
        if self.has_edge(edge):
            return False
        self._edges[edge.transition.id] = edge
        return True

    def clear_edges(self) -> None:
        self._edges.clear()

    @property
    def out_degree(self) -> int:
        return len(self._edges)

    def __str__(self) -> str:
        return "(" + "|".join(str(t) for t in self._tokens) + ")"

    def __repr__(self) -> str:
        mid = "?" if self.marking_id is None else self.marking_id
        return f"Marking[{mid}]{self}"


class MarkingGraphEdge:
    """
    Directed edge ``source --transition--> target`` of the marking graph.

    Two edges are equal iff they leave the same marking through the same
    transition; the target follows from the firing rule and is not compared.
    An edge with all fields ``None`` is the *empty edge*, used as the
    payload for "clear the current edge highlight".

    :param transition: Fired transition.
    :type transition: Optional[Transition]
    :param source: Marking before firing.
    :type source: Optional[Marking]
    :param target: Marking after firing.
    :type target: Optional[Marking]
    """

    __slots__ = ("transition", "source", "target")

    def __init__(
        self,
        transition: Optional["Transition"],
        source: Optional[Marking],
        target: Optional[Marking],
    ) -> None:
        self.transition = transition
        self.source = source
        self.target = target

    @classmethod
    def empty(cls) -> "MarkingGraphEdge":
        return cls(None, None, None)

    @property
    def is_empty(self) -> bool:
        return self.transition is None and self.source is None and self.target is None

    @property
    def edge_id(self) -> Optional[str]:
        """``"<source id>:<transition id>:<target id>"`` or ``None`` for an empty edge."""
        if self.transition is None or self.source is None or self.target is None:
            return None
        return f"{self.source.marking_id}:{self.transition.id}:{self.target.marking_id}"

    def _key(self) -> Tuple[Optional[Marking], Optional[str]]:
        tid = None if self.transition is None else self.transition.id
        return (self.source, tid)

    def __eq__(self, other: object) -> bool:
        if other is self:
            return True
        if not isinstance(other, MarkingGraphEdge):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        if self.is_empty:
            return "MarkingGraphEdge(<empty>)"
        return f"MarkingGraphEdge({self.source!r} --{self.transition.id}--> {self.target!r})"
