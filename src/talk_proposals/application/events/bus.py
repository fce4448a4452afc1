"""
Domain Event Bus

Explicit in-process publish/subscribe registry mapping each event type
to an ordered list of handlers. Built once at startup (see
application.events.listeners.register_listeners).

Responsibility:
    - Route a published event to its handlers in registration order
    - Isolate handlers: one failing handler never stops the others
    - Never fail the publisher (events are published after commit)

Architecture Notes:
    - Dispatch by exact event class, no reflection-based discovery
    - Handlers only enqueue background jobs, so publishing is fast
"""

import logging
from collections import defaultdict
from collections.abc import Callable

from talk_proposals.domain.proposals.events import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


class EventBus:
    """
    Ordered event registry.

    Examples:
        >>> bus = EventBus()
        >>> bus.subscribe(ProposalSubmitted, notify_admins)
        >>> bus.publish(ProposalSubmitted(proposal=proposal, owner_id=1))
    """

    def __init__(self) -> None:
        self._handlers: dict[type[DomainEvent], list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: type[DomainEvent], handler: EventHandler) -> None:
        self._handlers[event_type].append(handler)

    def handlers_for(self, event_type: type[DomainEvent]) -> list[EventHandler]:
        return list(self._handlers.get(event_type, []))

    def publish(self, event: DomainEvent) -> None:
        """
        Deliver event to every registered handler, in order.

        A handler that raises (e.g. broker unavailable) is logged and
        the remaining handlers still run.
        """
        handlers = self.handlers_for(type(event))
        if not handlers:
            logger.debug(f"No handlers registered for {type(event).__name__}")
            return

        for handler in handlers:
            handler_name = self._get_handler_name(handler)
            logger.debug(
                f"Handling {type(event).__name__} for proposal {event.proposal_id} "
                f"with {handler_name}"
            )
            try:
                handler(event)
            except Exception:
                logger.exception(
                    f"Handler {handler_name} failed for {type(event).__name__} "
                    f"(proposal {event.proposal_id})"
                )

    @staticmethod
    def _get_handler_name(handler: EventHandler) -> str:
        if hasattr(handler, "__name__"):
            return handler.__name__
        return type(handler).__name__
