# Graph/conversion.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import networkx as nx

from .marking import MarkingGraphEdge
from .marking_graph import MarkingGraph


def marking_graph_to_networkx(
    graph: MarkingGraph,
    *,
    place_ids: Optional[Sequence[str]] = None,
    include_tokens: bool = True,
    highlight: Optional[Sequence[MarkingGraphEdge]] = None,
) -> nx.MultiDiGraph:
    """
    Export a marking graph to a NetworkX ``MultiDiGraph``.

    Nodes are marking ids with attributes ``label`` (the ``"(1|0|2)"``
    form), ``initial`` and ``current``. Each recorded edge becomes one arc
    keyed by its transition id with attributes ``transition`` and
    ``on_path``. Parallel arcs between two markings (different transitions)
    are kept.

    :param graph: Marking graph to export.
    :param place_ids: Optional place ids; when given each node also gets a
        ``marking`` dict place id -> tokens.
    :param include_tokens: If ``True``, add the raw token tuple as ``tokens``.
    :param highlight: Edges to flag with ``on_path=True`` (e.g. a witness path).
    :returns: Directed multigraph mirroring ``graph``.

    **Examples**
    ----------
    >>> G = marking_graph_to_networkx(net.marking_graph, place_ids=net.place_ids)
    >>> G.nodes[0]["initial"]
    True
    """
    G = nx.MultiDiGraph()
    marked = {(e.source.marking_id, e.transition.id) for e in (highlight or [])}
    current = graph.current

    for m in graph:
        attrs: Dict[str, Any] = {
            "label": str(m),
            "initial": m.marking_id == 0,
            "current": m is current,
        }
        if include_tokens:
            attrs["tokens"] = m.tokens
        if place_ids is not None:
            attrs["marking"] = dict(zip(place_ids, m.tokens))
        G.add_node(m.marking_id, **attrs)

    for e in graph.edges():
        G.add_edge(
            e.source.marking_id,
            e.target.marking_id,
            key=e.transition.id,
            transition=e.transition.id,
            on_path=(e.source.marking_id, e.transition.id) in marked,
        )
    return G


def path_to_node_sequence(path: Sequence[MarkingGraphEdge]) -> List[int]:
    """
    Marking ids visited along ``path``, starting with the first source.

    :param path: Connected edge sequence.
    :returns: ``[src_0, dst_0, dst_1, ...]``; empty for an empty path.
    """
    if not path:
        return []
    return [path[0].source.marking_id] + [e.target.marking_id for e in path]
