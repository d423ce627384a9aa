from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, DefaultDict, TypeAlias

import structlog

from sortlab.core.events.base import Event

log = structlog.get_logger()

EventHandler: TypeAlias = Callable[[Event], None]


@dataclass(frozen=True)
class Subscription:
    """
    Represents a subscription of a handler to a specific event_type.
    """

    event_type: str
    handler: EventHandler


class EventBus:
    """
    Synchronous event bus.

    - publish(event) dispatches to handlers subscribed to event.event_type
    - dispatch order is subscription order
    - a handler returns before the next one is called
    - failures are fail-fast (raises)
    """

    def __init__(self) -> None:
        self._handlers: DefaultDict[str, list[EventHandler]] = defaultdict(list)

    def subscribe(self, *, event_type: str, handler: EventHandler) -> Subscription:
        if not event_type:
            raise ValueError("event_type must be non-empty")
        self._handlers[event_type].append(handler)
        log.debug("bus.subscribed", event_type=event_type, handler=getattr(handler, "__name__", "handler"))
        return Subscription(event_type=event_type, handler=handler)

    def unsubscribe(self, subscription: Subscription) -> None:
        handlers = self._handlers.get(subscription.event_type, [])
        if subscription.handler in handlers:
            handlers.remove(subscription.handler)

    def publish(self, event: Event) -> None:
        handlers = self._handlers.get(event.event_type, [])
        for handler in tuple(handlers):
            handler(event)
