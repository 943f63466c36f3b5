"""
Live Petri net model: places with mutable token counts, transitions with the
unit-weight firing rule, and the marking graph recorded while simulating.

The model keeps two layers apart. :class:`~petrikit.Net.core.Place` objects
hold the *live* state and are overwritten by every firing or jump.
:class:`~petrikit.Graph.marking.Marking` snapshots are immutable token
vectors read from the live places in a fixed order (place id) and are the
only thing stored in the marking graph.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from ..Graph.marking import Marking
from ..Graph.marking_graph import MarkingGraph, MarkingId
from .core import Arc, Place, Transition
from .events import EventSource, ModelAction
from .exceptions import StructureError

logger = logging.getLogger(__name__)

PlaceSpec = Union[int, Tuple[str, int]]


class PetriNet(EventSource):
    """
    Place/transition net with unit arc weights and its marking graph.

    :param places: Places of the net; their id order defines the marking
        vector layout.
    :type places: Iterable[Place]
    :param transitions: Transitions with resolved presets/postsets referring
        to the same ``Place`` objects.
    :type transitions: Iterable[Transition]
    :param name: Optional net name (e.g. the file it was loaded from).
    :type name: Optional[str]
    :raises StructureError: On duplicate ids or arcs to foreign places.

    Typical usage::

        net = PetriNet.from_arcs(
            {"p1": 1, "p2": 0},
            ["t1", "t2"],
            [("p1", "t1"), ("t1", "p2"), ("p2", "t2"), ("t2", "p1")],
        )
        net.step("t1")
        net.tokens  # (0, 1)
    """

    def __init__(
        self,
        places: Iterable[Place],
        transitions: Iterable[Transition],
        *,
        name: Optional[str] = None,
    ) -> None:
        super().__init__()
        self.name = name
        self._places: Dict[str, Place] = {}
        for p in sorted(places, key=lambda p: p.id):
            if p.id in self._places:
                raise StructureError(f"Duplicate place id {p.id!r}.")
            self._places[p.id] = p

        self._transitions: Dict[str, Transition] = {}
        for t in sorted(transitions, key=lambda t: t.id):
            if t.id in self._transitions or t.id in self._places:
                raise StructureError(f"Duplicate node id {t.id!r}.")
            for p in t.preset + t.postset:
                if self._places.get(p.id) is not p:
                    raise StructureError(
                        f"Transition {t.id!r} refers to place {p.id!r} outside this net."
                    )
            self._transitions[t.id] = t

        self._refresh_transitions(silent=True)
        self._marking_graph = MarkingGraph(self.snapshot())

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------
    @classmethod
    def from_arcs(
        cls,
        places: Mapping[str, PlaceSpec],
        transitions: Union[Iterable[str], Mapping[str, str]],
        arcs: Iterable[Union[Arc, Tuple[str, str]]],
        *,
        name: Optional[str] = None,
    ) -> "PetriNet":
        """
        Build a net from plain ids and ``(source, target)`` arcs.

        :param places: Mapping place id -> initial tokens, or
            place id -> ``(name, tokens)``.
        :type places: Mapping[str, Union[int, Tuple[str, int]]]
        :param transitions: Transition ids, or a mapping id -> name.
        :type transitions: Union[Iterable[str], Mapping[str, str]]
        :param arcs: Place->transition or transition->place connections.
        :type arcs: Iterable[Union[Arc, Tuple[str, str]]]
        :returns: Resolved net.
        :rtype: PetriNet
        :raises StructureError: If an arc joins two nodes of the same kind or
            an unknown id.
        """
        place_objs: Dict[str, Place] = {}
        for pid, spec in places.items():
            if isinstance(spec, tuple):
                pname, tokens = spec
            else:
                pname, tokens = pid, spec
            place_objs[pid] = Place(id=pid, name=pname, tokens=int(tokens))

        if isinstance(transitions, Mapping):
            named = dict(transitions)
        else:
            named = {tid: tid for tid in transitions}
        trans_objs: Dict[str, Transition] = {
            tid: Transition(id=tid, name=tname) for tid, tname in named.items()
        }
        _resolve_arcs(place_objs, trans_objs, arcs)
        return cls(place_objs.values(), trans_objs.values(), name=name)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PetriNet":
        """
        Build a net from a JSON-like mapping.

        Expected shape::

            {
                "name": "optional",
                "places": [{"id": "p1", "name": "P1", "tokens": 1}, ...],
                "transitions": [{"id": "t1", "name": "T1"}, ...],
                "arcs": [{"source": "p1", "target": "t1"}, ...],
            }

        :raises StructureError: On missing ids or inconsistent arcs.
        """
        try:
            place_objs = {
                str(p["id"]): Place(
                    id=str(p["id"]),
                    name=str(p.get("name") or p["id"]),
                    tokens=int(p.get("tokens", 0)),
                )
                for p in data.get("places", [])
            }
            trans_objs = {
                str(t["id"]): Transition(id=str(t["id"]), name=str(t.get("name") or t["id"]))
                for t in data.get("transitions", [])
            }
            arcs = [
                Arc(source=str(a["source"]), target=str(a["target"]), id=a.get("id"))
                for a in data.get("arcs", [])
            ]
        except KeyError as exc:
            raise StructureError(f"Missing field {exc} in net description.") from exc
        _resolve_arcs(place_objs, trans_objs, arcs)
        return cls(place_objs.values(), trans_objs.values(), name=data.get("name"))

    # ------------------------------------------------------------------
    # Firing rule
    # ------------------------------------------------------------------
    def fire(self, transition_id: str) -> bool:
        """
        Fire ``transition_id`` on the live state.

        A disabled transition is a no-op. Otherwise every preset place loses
        one token, every postset place gains one, and the enabling status of
        *all* transitions is recomputed. The caller snapshots the result.

        :param transition_id: Id of the transition to fire.
        :type transition_id: str
        :returns: ``True`` if the transition fired.
        :rtype: bool
        :raises KeyError: If the id is not a transition of this net.
        """
        transition = self._transitions[transition_id]
        if not transition.enabled:
            return False

        self.notify(ModelAction.PRINT_LINE, f"{transition.label} fired")
        for place in transition.preset:
            place.tokens -= 1
            self.notify(ModelAction.PLACE_UPDATED, place)
        for place in transition.postset:
            place.tokens += 1
            self.notify(ModelAction.PLACE_UPDATED, place)
        self._refresh_transitions()
        return True

    def step(self, transition_id: str) -> bool:
        """
        Fire ``transition_id`` and record the result in the marking graph.

        :returns: ``True`` if firing produced a marking not seen before;
            ``False`` if it was known or the transition is disabled.
        :rtype: bool
        """
        if not self.fire(transition_id):
            return False
        return self._marking_graph.record_transition(
            self._transitions[transition_id], self.snapshot()
        )

    def _refresh_transitions(self, silent: bool = False) -> None:
        for transition in self._transitions.values():
            transition.refresh_enabled()
            if not silent:
                self.notify(ModelAction.TRANSITION_UPDATED, transition)

    # ------------------------------------------------------------------
    # Live state <-> snapshots
    # ------------------------------------------------------------------
    def snapshot(self) -> Marking:
        """Return a fresh :class:`Marking` of the live token counts."""
        return Marking(p.tokens for p in self._places.values())

    def set_live_state(self, tokens: Union[Marking, Sequence[int]]) -> None:
        """
        Overwrite every place from ``tokens`` (fixed place order) and
        recompute enabling.

        :raises ValueError: If the length differs from the place count or an
            entry is negative; nothing is changed in that case.
        """
        vec = tuple(int(t) for t in tokens)
        if len(vec) != len(self._places):
            raise ValueError(
                f"Expected {len(self._places)} token counts, got {len(vec)}."
            )
        if any(t < 0 for t in vec):
            raise ValueError(f"Token counts must be non-negative, got {vec}.")
        for place, count in zip(self._places.values(), vec):
            place.tokens = count
            self.notify(ModelAction.PLACE_UPDATED, place)
        self._refresh_transitions()

    def jump_to(self, marking_id: MarkingId) -> Marking:
        """
        Restore the live state of a stored marking and make it current.

        :param marking_id: Id (int or numeric string) of a stored marking.
        :returns: The stored marking.
        :rtype: Marking
        :raises MalformedMarkingIdError: If the id is not an integer.
        :raises InvalidMarkingIdError: If no marking has this id.
        """
        target = self._marking_graph.get(marking_id)
        self.set_live_state(target.tokens)
        return self._marking_graph.jump_to(target.marking_id)

    # ------------------------------------------------------------------
    # Manual edits
    # ------------------------------------------------------------------
    def add_token(self, place_id: str) -> None:
        """Put one more token on ``place_id`` and restart the marking graph there."""
        self._places[place_id].tokens += 1
        self._restart_graph()

    def remove_token(self, place_id: str) -> bool:
        """
        Take one token from ``place_id`` and restart the marking graph.

        :returns: ``False`` (and no change) if the place is empty.
        :rtype: bool
        """
        place = self._places[place_id]
        if place.tokens < 1:
            return False
        place.tokens -= 1
        self._restart_graph()
        return True

    def _restart_graph(self) -> None:
        self._marking_graph.initialize(self.snapshot())
        self.jump_to(0)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def marking_graph(self) -> MarkingGraph:
        return self._marking_graph

    @property
    def places(self) -> List[Place]:
        return list(self._places.values())

    @property
    def transitions(self) -> List[Transition]:
        return list(self._transitions.values())

    @property
    def place_ids(self) -> List[str]:
        return list(self._places)

    @property
    def transition_ids(self) -> List[str]:
        return list(self._transitions)

    def place(self, place_id: str) -> Place:
        return self._places[place_id]

    def transition(self, transition_id: str) -> Transition:
        return self._transitions[transition_id]

    @property
    def tokens(self) -> Tuple[int, ...]:
        """Live token vector in place order."""
        return tuple(p.tokens for p in self._places.values())

    def enabled_transitions(self) -> List[Transition]:
        return [t for t in self._transitions.values() if t.enabled]

    def incidence_matrix(self) -> np.ndarray:
        """
        Build the place x transition incidence matrix ``C = post - pre``.

        Firing transition ``j`` from marking ``m`` yields ``m + C[:, j]``.

        :returns: Integer matrix with shape (n_places, n_transitions).
        :rtype: numpy.ndarray
        """
        p_index = {pid: i for i, pid in enumerate(self._places)}
        C = np.zeros((len(self._places), len(self._transitions)), dtype=np.int64)
        for j, t in enumerate(self._transitions.values()):
            for p in t.postset:
                C[p_index[p.id], j] += 1
            for p in t.preset:
                C[p_index[p.id], j] -= 1
        return C

    def __len__(self) -> int:
        return len(self._places)

    def __repr__(self) -> str:
        label = f"{self.name!r}, " if self.name else ""
        return (
            f"PetriNet({label}places={len(self._places)}, "
            f"transitions={len(self._transitions)})"
        )


def _resolve_arcs(
    places: Dict[str, Place],
    transitions: Dict[str, Transition],
    arcs: Iterable[Union[Arc, Tuple[str, str]]],
) -> None:
    for arc in arcs:
        if isinstance(arc, Arc):
            source, target = arc.source, arc.target
        else:
            source, target = arc
        if source in places and target in transitions:
            transitions[target].add_input(places[source])
        elif source in transitions and target in places:
            transitions[source].add_output(places[target])
        elif source in places and target in places:
            raise StructureError(f"Invalid arc place->place: {source}->{target}")
        elif source in transitions and target in transitions:
            raise StructureError(
                f"Invalid arc transition->transition: {source}->{target}"
            )
        else:
            raise StructureError(f"Arc {source}->{target} references an unknown node.")
    logger.debug("Resolved arcs for %d transitions", len(transitions))
