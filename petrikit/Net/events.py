"""
Notification primitives shared by the net model, the marking graph and the
analyzers.

Every model object that changes observable state derives from
:class:`EventSource` and reports each change as a :class:`ModelEvent`.
Listeners are plain callables taking the event; they are invoked
synchronously, in registration order.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, List

__all__ = [
    "ModelAction",
    "ModelEvent",
    "ModelListener",
    "EventSource",
    "notify_all",
]


class ModelAction(str, Enum):
    """Closed set of notification tags."""

    MARKING_ADDED = "marking-added"
    MARKING_HIGHLIGHTED = "marking-highlighted"
    EDGE_ADDED = "edge-added"
    EDGE_HIGHLIGHTED = "edge-highlighted"
    PATH_EDGE = "path-edge"
    WITNESS_FIRST = "domination-witness-first"
    WITNESS_SECOND = "domination-witness-second"
    PLACE_UPDATED = "net-place-updated"
    TRANSITION_UPDATED = "net-transition-updated"
    PRINT_LINE = "line-of-text"


@dataclass(frozen=True)
class ModelEvent:
    """
    A single state-change notification.

    :param action: Tag describing what happened.
    :type action: ModelAction
    :param payload: The object the event is about (a marking, an edge, a
        place, a transition or a line of text).
    :type payload: Any
    """

    action: ModelAction
    payload: Any = None

    def __repr__(self) -> str:
        return f"ModelEvent({self.action.value}, {self.payload!r})"


ModelListener = Callable[[ModelEvent], None]


class EventSource:
    """
    Mixin holding an ordered list of listeners.

    A listener registered twice is only called once.
    """

    def __init__(self) -> None:
        self._listeners: List[ModelListener] = []

    def add_listener(self, listener: ModelListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: ModelListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listeners(self) -> List[ModelListener]:
        """Registered listeners in registration order (copy)."""
        return list(self._listeners)

    def notify(self, action: ModelAction, payload: Any = None) -> None:
        notify_all(self._listeners, ModelEvent(action, payload))


def notify_all(listeners: Iterable[ModelListener], event: ModelEvent) -> None:
    """Deliver ``event`` to each listener in order."""
    for listener in listeners:
        listener(event)
