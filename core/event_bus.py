"""
Event bus for reservation and ledger events.

Synchronous in-process pub/sub. Handlers execute immediately in the same
thread as the publisher, after the ledger transaction has committed. Handler
errors are logged but never propagate; a failed notification must not undo
a recorded payment.
"""

import logging
from typing import Callable, Dict, List, Type

from core.events import RentalEvent

logger = logging.getLogger(__name__)


class EventBus:
    """
    In-process event bus.

    Subscribe by event class or class name. A subscription to a base class
    (e.g. LedgerEntryEvent) receives every subclass event too. Handlers are
    called in subscription order, most specific class first.
    """

    def __init__(self):
        self._subscribers: Dict[str, List[Callable]] = {}

    def subscribe(self, event_type: str | Type[RentalEvent], callback: Callable):
        """
        Subscribe to events of a specific type.

        Args:
            event_type: Event class or its name (e.g. 'PaymentRecorded')
            callback: Function to call when event is published
        """
        name = event_type if isinstance(event_type, str) else event_type.__name__
        self._subscribers.setdefault(name, []).append(callback)

    def publish(self, event: RentalEvent):
        """
        Publish an event to subscribers of its class and its base classes.

        Args:
            event: RentalEvent instance to publish
        """
        for cls in type(event).__mro__:
            for callback in self._subscribers.get(cls.__name__, ()):
                try:
                    callback(event)
                except Exception:
                    logger.exception(
                        "Handler %s failed for %s (event_id=%s)",
                        getattr(callback, "__name__", repr(callback)),
                        type(event).__name__,
                        event.event_id,
                    )
