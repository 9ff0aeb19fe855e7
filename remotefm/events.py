"""
Event Notifier

Delivers file manager events to handlers registered by the host.

Every event is posted to a single execution context chosen when the
notifier is created. By default that is the event loop running at
construction time, so handlers run one after another on the loop thread,
never on whatever task or thread raised the event.
"""

import asyncio
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

# Posts fn(*args) to run later on the host's context
ExecutionContext = Callable[..., Any]

# Event names
DRIVES_CHANGED = 'drives_changed'
DIRECTORY_CHANGED = 'directory_changed'
TRANSFER_UPDATED = 'transfer_updated'
REPORT = 'report'
PROCESS_ACTION = 'process_action'


class EventNotifier:
    """
    Registers event handlers and posts events to them.

    Args:
        context: Callable used to schedule handler invocation, for example
            loop.call_soon_threadsafe. Defaults to the running loop's, in
            which case the notifier must be created inside that loop.
    """

    def __init__(self, context: Optional[ExecutionContext] = None):
        if context is None:
            try:
                context = asyncio.get_running_loop().call_soon_threadsafe
            except RuntimeError as e:
                raise RuntimeError(
                    "EventNotifier needs a running event loop or an explicit context"
                ) from e
        self._post = context
        self._handlers: Dict[str, List[Callable]] = defaultdict(list)

    def subscribe(self, event: str, handler: Callable):
        """Register a handler for an event."""
        self._handlers[event].append(handler)

    def unsubscribe(self, event: str, handler: Callable):
        """Remove a handler; unknown handlers are ignored."""
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def handler_count(self, event: str) -> int:
        return len(self._handlers.get(event, []))

    def emit(self, event: str, *args):
        """
        Post an event to the execution context.

        Arguments must already be snapshots: they are delivered later,
        after the emitter may have changed the originals.
        """
        self._post(self._deliver, event, args)

    def _deliver(self, event: str, args: tuple):
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(*args)
            except Exception:
                logger.exception(f"Error in {event} handler {handler!r}")
