from __future__ import annotations

from collections import deque
from typing import Callable, Deque, Dict, Iterable, List, Optional, Sequence, Tuple

from ..Graph.marking import Marking, MarkingGraphEdge
from ..Graph.marking_graph import MarkingGraph
from ..Net.events import ModelAction

Notifier = Callable[[ModelAction, object], None]


class WitnessPathFinder:
    """
    Breadth-first path search over an already built marking graph.

    Only recorded edges are followed; the net model is never fired. The path
    returned between two markings is the first one found layer by layer, with
    ties broken by the order in which each marking's outgoing edges were
    discovered.

    :param graph: Marking graph to search.
    :type graph: MarkingGraph
    :param notify: Optional callback ``notify(action, payload)`` used by
        :meth:`emit_path`; defaults to the graph's own listeners.
    :type notify: Optional[Callable[[ModelAction, object], None]]
    """

    def __init__(self, graph: MarkingGraph, notify: Optional[Notifier] = None) -> None:
        self.graph = graph
        self._notify = notify or graph.notify

    def find_path(
        self, start: Marking, target: Marking
    ) -> Optional[List[MarkingGraphEdge]]:
        """
        Shortest edge sequence from ``start`` to ``target``.

        The search stops as soon as ``target`` shows up as the successor of a
        frontier marking; the path is then rebuilt from the parent links.

        :param start: Marking the path leaves from.
        :type start: Marking
        :param target: Marking the path must reach.
        :type target: Marking
        :returns: Edges in start -> target order, or ``None`` if ``target``
            is unreachable (or equal to ``start``).
        :rtype: Optional[List[MarkingGraphEdge]]
        """
        if start == target:
            return None

        parent: Dict[Marking, MarkingGraphEdge] = {}
        visited = {start}
        queue: Deque[Marking] = deque([start])

        while queue:
            node = queue.popleft()
            for edge in node.edges:
                succ = edge.target
                if succ == target:
                    parent[succ] = edge
                    return self._unwind(parent, start, target)
                if succ not in visited:
                    visited.add(succ)
                    parent[succ] = edge
                    queue.append(succ)
        return None

    @staticmethod
    def _unwind(
        parent: Dict[Marking, MarkingGraphEdge], start: Marking, target: Marking
    ) -> List[MarkingGraphEdge]:
        path: List[MarkingGraphEdge] = []
        node = target
        while node != start:
            edge = parent[node]
            path.append(edge)
            node = edge.source
        path.reverse()
        return path

    def segments_for(
        self, first: Marking, second: Marking
    ) -> List[Tuple[Marking, Marking]]:
        """
        Legs needed to replay a witness from the initial marking.

        :returns: ``[(initial, first), (first, second)]``, without the first
            leg when ``first`` already is the initial marking.
        """
        initial = self.graph.initial
        legs: List[Tuple[Marking, Marking]] = []
        if first != initial:
            legs.append((initial, first))
        legs.append((first, second))
        return legs

    def stitch(
        self, segments: Iterable[Tuple[Marking, Marking]]
    ) -> Optional[List[MarkingGraphEdge]]:
        """
        Concatenate the BFS paths of consecutive segments.

        Overlapping legs are not merged, so an edge may appear twice.

        :returns: Combined path, or ``None`` if any segment is unreachable.
        """
        full: List[MarkingGraphEdge] = []
        for start, target in segments:
            leg = self.find_path(start, target)
            if leg is None:
                return None
            full.extend(leg)
        return full

    def witness_path(
        self, first: Marking, second: Marking
    ) -> Optional[List[MarkingGraphEdge]]:
        """Firing sequence initial -> ``first`` -> ``second``."""
        return self.stitch(self.segments_for(first, second))

    def emit_path(self, path: Sequence[MarkingGraphEdge]) -> None:
        """Send one ``PATH_EDGE`` notification per edge, in order."""
        for edge in path:
            self._notify(ModelAction.PATH_EDGE, edge)


def transition_ids(path: Sequence[MarkingGraphEdge]) -> List[str]:
    """Transition ids along ``path``."""
    return [e.transition.id for e in path]
