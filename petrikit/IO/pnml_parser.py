"""
Loader for PNML (Petri Net Markup Language) files.

Only the subset needed for place/transition nets with unit arcs is read:
places (id, name, initial marking, position), transitions (id, name,
position) and arcs (id, source, target). Arc inscriptions are ignored.
Namespaces are stripped so both plain and ``xmlns``-qualified documents
parse the same way.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..Net.core import Arc, Place, Transition
from ..Net.exceptions import PNMLParseError, StructureError
from ..Net.petrinet import PetriNet, _resolve_arcs

logger = logging.getLogger(__name__)


@dataclass
class PNMLDocument:
    """
    Raw content of a PNML ``<net>`` before arc resolution.

    :param places: Places with their initial token counts.
    :param transitions: Transitions without presets/postsets.
    :param arcs: Unresolved arcs.
    :param name: Net id (or file stem when the net carries none).
    """

    places: List[Place] = field(default_factory=list)
    transitions: List[Transition] = field(default_factory=list)
    arcs: List[Arc] = field(default_factory=list)
    name: Optional[str] = None

    def to_net(self) -> PetriNet:
        """
        Resolve arcs and build a :class:`PetriNet`.

        :raises PNMLParseError: If the arcs are inconsistent with the nodes.
        """
        places = {p.id: p for p in self.places}
        transitions = {t.id: t for t in self.transitions}
        try:
            _resolve_arcs(places, transitions, self.arcs)
            return PetriNet(places.values(), transitions.values(), name=self.name)
        except StructureError as exc:
            raise PNMLParseError(str(exc)) from exc


def _strip_namespaces(root: ET.Element) -> None:
    for elem in root.iter():
        if isinstance(elem.tag, str) and "}" in elem.tag:
            elem.tag = elem.tag.split("}", 1)[1]


def _text(elem: ET.Element, path: str) -> Optional[str]:
    node = elem.find(path)
    if node is None or node.text is None:
        return None
    value = node.text.strip()
    return value or None


def _position(elem: ET.Element) -> Optional[Tuple[int, int]]:
    pos = elem.find("graphics/position")
    if pos is None:
        return None
    try:
        return int(float(pos.get("x", "0"))), int(float(pos.get("y", "0")))
    except ValueError:
        return None


_MARKING_PATHS = (
    "initialMarking/text",
    "initialMarking/value",
    "initialMarking/token/value",
    "inscription/text",
)


def _tokens(place: ET.Element, pid: str) -> int:
    raw = next(
        (v for v in (_text(place, p) for p in _MARKING_PATHS) if v is not None), None
    )
    if raw is None:
        return 0
    try:
        tokens = int(raw)
    except ValueError as exc:
        raise PNMLParseError(f"Invalid initial marking for place {pid!r}: {raw!r}") from exc
    if tokens < 0:
        raise PNMLParseError(f"Negative initial marking for place {pid!r}: {tokens}")
    return tokens


def _parse_root(root: ET.Element, default_name: Optional[str]) -> PNMLDocument:
    _strip_namespaces(root)
    net = root if root.tag == "net" else root.find(".//net")
    if net is None:
        raise PNMLParseError("No <net> element found in PNML document.")

    doc = PNMLDocument(name=net.get("id") or default_name)
    seen: set = set()

    for elem in net.iter("place"):
        pid = elem.get("id")
        if not pid:
            raise PNMLParseError("Found <place> without id.")
        if pid in seen:
            raise PNMLParseError(f"Duplicate node id: {pid!r}")
        seen.add(pid)
        doc.places.append(
            Place(
                id=pid,
                name=_text(elem, "name/text") or pid,
                tokens=_tokens(elem, pid),
                position=_position(elem),
            )
        )

    for elem in net.iter("transition"):
        tid = elem.get("id")
        if not tid:
            raise PNMLParseError("Found <transition> without id.")
        if tid in seen:
            raise PNMLParseError(f"Duplicate node id: {tid!r}")
        seen.add(tid)
        doc.transitions.append(
            Transition(
                id=tid,
                name=_text(elem, "name/text") or tid,
                position=_position(elem),
            )
        )

    for elem in net.iter("arc"):
        source, target = elem.get("source"), elem.get("target")
        if not source or not target:
            raise PNMLParseError(f"Arc {elem.get('id')!r} lacks source or target.")
        doc.arcs.append(Arc(source=source, target=target, id=elem.get("id")))

    logger.debug(
        "Parsed PNML net %s: %d places, %d transitions, %d arcs",
        doc.name,
        len(doc.places),
        len(doc.transitions),
        len(doc.arcs),
    )
    return doc


def read_pnml(path: Union[str, Path]) -> PNMLDocument:
    """
    Read the raw net content of a PNML file.

    :param path: File to read.
    :returns: Unresolved document.
    :raises PNMLParseError: If the file cannot be read (missing, a directory,
        no permission) or is not well-formed PNML.
    """
    path = Path(path)
    try:
        tree = ET.parse(path)
    except OSError as exc:
        raise PNMLParseError(f"Cannot read {path}: {exc}") from exc
    except ET.ParseError as exc:
        raise PNMLParseError(f"Malformed XML in {path}: {exc}") from exc
    return _parse_root(tree.getroot(), default_name=path.stem)


def load_pnml(path: Union[str, Path]) -> PetriNet:
    """Load a PNML file into a ready-to-simulate :class:`PetriNet`."""
    net = read_pnml(path).to_net()
    # the file name identifies the net in reports
    net.name = Path(path).name
    return net


def parse_pnml_string(text: str, *, name: Optional[str] = None) -> PetriNet:
    """
    Build a :class:`PetriNet` from PNML text.

    :param text: PNML document.
    :param name: Net name to use instead of the ``<net id>``.
    :raises PNMLParseError: If the text is not well-formed PNML.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise PNMLParseError(f"Malformed XML: {exc}") from exc
    doc = _parse_root(root, default_name=name)
    if name is not None:
        doc.name = name
    return doc.to_net()
