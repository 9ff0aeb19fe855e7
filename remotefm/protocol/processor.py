"""
Message Processing

The link to the remote peer is a single ordered channel. Inbound messages
are handed to a MessageRouter, which forwards each one to every registered
MessageProcessor that accepts both the message and its sender.
"""

import abc
import logging
from typing import Any, Callable, List, Optional

from ..events import EventNotifier, ExecutionContext, REPORT

logger = logging.getLogger(__name__)


class MessageChannel(abc.ABC):
    """
    Outbound side of the link to one remote peer.

    send() returns once the message is handed to the transport; messages
    leave in the order send() was awaited. Implementations raise OSError
    (ConnectionError) when the link is down.
    """

    @abc.abstractmethod
    async def send(self, message: Any):
        """Send a message to the peer."""


class MessageProcessor(abc.ABC):
    """
    Base class for handlers of inbound messages.

    Owns the event notifier used to publish results and the generic
    'report' event for status text.
    """

    def __init__(self, context: Optional[ExecutionContext] = None,
                 notifier: Optional[EventNotifier] = None):
        self.events = notifier or EventNotifier(context)

    def on_report(self, callback: Callable[[str], None]):
        """Register a callback for status reports."""
        self.events.subscribe(REPORT, callback)

    def _report(self, text: str):
        self.events.emit(REPORT, text)

    @abc.abstractmethod
    def can_execute(self, message: Any) -> bool:
        """Whether this processor handles the message type."""

    @abc.abstractmethod
    def can_execute_from(self, sender: Any) -> bool:
        """Whether this processor accepts messages from the sender."""

    @abc.abstractmethod
    async def execute(self, sender: Any, message: Any):
        """Process a message."""


class MessageRouter:
    """Routes inbound messages to registered processors."""

    def __init__(self):
        self._processors: List[MessageProcessor] = []

    def register(self, processor: MessageProcessor):
        """Register a processor (once)."""
        if processor not in self._processors:
            self._processors.append(processor)

    def unregister(self, processor: MessageProcessor):
        """Unregister a processor; unknown processors are ignored."""
        if processor in self._processors:
            self._processors.remove(processor)

    def is_registered(self, processor: MessageProcessor) -> bool:
        return processor in self._processors

    async def dispatch(self, sender: Any, message: Any) -> int:
        """
        Hand a message to every processor that accepts it.

        Returns:
            Number of processors that executed the message
        """
        handled = 0
        for processor in list(self._processors):
            if processor.can_execute(message) and processor.can_execute_from(sender):
                await processor.execute(sender, message)
                handled += 1

        if handled == 0:
            logger.warning(f"No handler for {type(message).__name__}")

        return handled
