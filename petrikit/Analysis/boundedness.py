"""
Boundedness analysis by breadth-first construction of the marking graph.

The analyzer fires every transition from every reachable marking, in BFS
order, and after each newly discovered marking ``m'`` looks for a stored
marking ``m`` that ``m'`` strictly covers and from which ``m'`` is reachable
over recorded edges. Such a pair proves the net unbounded: repeating the
``m -> m'`` firing sequence adds at least one token each time. If the
worklist runs dry first, the marking graph is finite and the net bounded.

This is a sufficient witness search, not a Karp-Miller coverability tree:
no omega markings are built.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, List, Optional

from ..Graph.marking import Marking, MarkingGraphEdge
from ..Net.events import ModelAction, ModelEvent, ModelListener, notify_all
from ..Net.exceptions import ExplorationLimitError
from ..Net.petrinet import PetriNet
from .witness import WitnessPathFinder, transition_ids


class Verdict(str, Enum):
    BOUNDED = "bounded"
    UNBOUNDED = "unbounded"


@dataclass
class Witness:
    """
    Unboundedness witness ``(first, second)`` with ``second`` covering
    ``first``.

    :param first: The covered (earlier) marking.
    :type first: Marking
    :param second: The covering marking reached from ``first``.
    :type second: Marking
    :param path: Firing sequence from the initial marking through ``first``
        to ``second``.
    :type path: List[MarkingGraphEdge]
    :param cycle_start: Index in ``path`` where the ``first -> second`` leg
        begins.
    :type cycle_start: int
    """

    first: Marking
    second: Marking
    path: List[MarkingGraphEdge] = field(default_factory=list)
    cycle_start: int = 0

    @property
    def transitions(self) -> List[str]:
        return transition_ids(self.path)

    @property
    def cycle(self) -> List[MarkingGraphEdge]:
        """The repeatable ``first -> second`` part of :attr:`path`."""
        return self.path[self.cycle_start :]

    def __str__(self) -> str:
        seq = ",".join(self.transitions)
        return f"{len(self.path)}:({seq}); {self.first}, {self.second}"


@dataclass
class BoundednessResult:
    """
    Outcome of :meth:`BoundednessAnalyzer.analyze`.

    :param verdict: Bounded or unbounded.
    :param n_markings: Size of the marking graph at termination.
    :param n_edges: Number of edges of the marking graph at termination.
    :param witness: Explanation of an unbounded verdict, ``None`` otherwise.
    """

    verdict: Verdict
    n_markings: int
    n_edges: int
    witness: Optional[Witness] = None

    @property
    def is_bounded(self) -> bool:
        return self.verdict is Verdict.BOUNDED

    @property
    def summary(self) -> str:
        line = f"net is {self.verdict.value}. markings: {self.n_markings} edges: {self.n_edges}"
        if self.witness is not None:
            line += f"\n  witness: {self.witness}"
        return line


class BoundednessAnalyzer:
    """
    Drives the BFS exploration of one :class:`PetriNet`.

    The net's live state and its marking graph are overwritten during the
    run; afterwards the live state shows the last marking of interest (the
    covering marking for an unbounded net). One analyzer must not run
    concurrently with other operations on the same net.

    :param net: Net to analyze.
    :type net: PetriNet
    :param max_markings: Optional cap on the number of stored markings;
        exceeding it raises :class:`ExplorationLimitError`. ``None`` explores
        without limit.
    :type max_markings: Optional[int]
    :param logger: Logger for progress messages; module logger by default.
    :type logger: Optional[logging.Logger]
    """

    def __init__(
        self,
        net: PetriNet,
        *,
        max_markings: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if max_markings is not None and max_markings < 1:
            raise ValueError("max_markings must be positive or None.")
        self.net = net
        self.graph = net.marking_graph
        self.max_markings = max_markings
        self.logger = logger or logging.getLogger(__name__)
        self._listeners: List[ModelListener] = []
        self.finder = WitnessPathFinder(self.graph, notify=self._notify)

    def _collect_listeners(self) -> None:
        self._listeners = []
        for listener in self.net.listeners + self.graph.listeners:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def _notify(self, action: ModelAction, payload: Any = None) -> None:
        notify_all(self._listeners, ModelEvent(action, payload))

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------
    def analyze(self) -> BoundednessResult:
        """
        Explore until a witness is found or no new marking appears.

        :returns: Verdict, final graph size and (if unbounded) the witness.
        :rtype: BoundednessResult
        :raises ExplorationLimitError: If ``max_markings`` is exceeded.
        """
        self._collect_listeners()
        self._notify(ModelAction.PRINT_LINE, "boundedness analysis started")
        self._notify(ModelAction.PRINT_LINE, "-" * 40)

        net, graph = self.net, self.graph
        graph.reset()
        net.jump_to(0)

        queue: Deque[Marking] = deque([graph.initial])
        while queue:
            head = queue[0]
            net.jump_to(head.marking_id)
            for transition in net.transitions:
                net.jump_to(head.marking_id)
                if not net.step(transition.id):
                    continue
                discovered = graph.current
                queue.append(discovered)
                self.logger.debug(
                    "Discovered marking %d %s", discovered.marking_id, discovered
                )
                self._check_budget()

                witness = self.find_witness(discovered)
                if witness is not None:
                    net.jump_to(discovered.marking_id)
                    return self._finish(Verdict.UNBOUNDED, witness)
            queue.popleft()

        return self._finish(Verdict.BOUNDED, None)

    def _check_budget(self) -> None:
        if self.max_markings is not None and len(self.graph) > self.max_markings:
            raise ExplorationLimitError(
                f"Marking graph exceeded {self.max_markings} markings "
                f"({self.graph.edge_count()} edges) without a verdict."
            )

    def _finish(self, verdict: Verdict, witness: Optional[Witness]) -> BoundednessResult:
        result = BoundednessResult(
            verdict=verdict,
            n_markings=len(self.graph),
            n_edges=self.graph.edge_count(),
            witness=witness,
        )
        self._notify(
            ModelAction.PRINT_LINE,
            f"net is {verdict.value}. markings: {result.n_markings} edges: {result.n_edges}",
        )
        self.logger.info(
            "Net %s is %s (%d markings, %d edges)",
            self.net.name or "<unnamed>",
            verdict.value,
            result.n_markings,
            result.n_edges,
        )
        return result

    # ------------------------------------------------------------------
    # Domination criterion
    # ------------------------------------------------------------------
    def find_witness(self, discovered: Marking) -> Optional[Witness]:
        """
        Look for a stored marking that ``discovered`` strictly covers and
        reaches ``discovered`` over recorded edges.

        Candidates are tried in insertion order and the first hit wins, so
        the witness is valid but not unique. On success the replay path is
        emitted as ``PATH_EDGE`` notifications, followed by the two witness
        markings and an edge-highlight reset.

        :param discovered: Newly inserted marking.
        :type discovered: Marking
        :returns: The witness, or ``None``.
        :rtype: Optional[Witness]
        """
        for candidate in self.graph:
            if not candidate.is_dominated_by(discovered):
                continue
            cycle = self.finder.find_path(candidate, discovered)
            if cycle is None:
                continue

            lead_in = self.finder.stitch(
                self.finder.segments_for(candidate, discovered)[:-1]
            )
            path = (lead_in or []) + cycle
            witness = Witness(
                first=candidate,
                second=discovered,
                path=path,
                cycle_start=len(path) - len(cycle),
            )
            self.finder.emit_path(path)
            self._notify(ModelAction.WITNESS_SECOND, discovered)
            self._notify(ModelAction.WITNESS_FIRST, candidate)
            self._notify(ModelAction.EDGE_HIGHLIGHTED, MarkingGraphEdge.empty())
            self.logger.debug("Witness found: %s", witness)
            return witness
        return None


def analyze_boundedness(net: PetriNet, **kwargs: Any) -> BoundednessResult:
    """
    Run :class:`BoundednessAnalyzer` on ``net``.

    :param net: Net to analyze.
    :param kwargs: Forwarded to :class:`BoundednessAnalyzer`.
    :returns: Full analysis result.
    :rtype: BoundednessResult
    """
    return BoundednessAnalyzer(net, **kwargs).analyze()


def analyze(net: PetriNet) -> Verdict:
    """Return whether ``net`` is bounded or unbounded."""
    return analyze_boundedness(net).verdict
