"""
Process Manager Handler

Starts processes on the remote peer and reports the outcome. The file
manager delegates "run this remote file" to it.
"""

import logging
from typing import Any, Callable, Optional

from .events import EventNotifier, ExecutionContext, PROCESS_ACTION
from .protocol.messages import ProcessActionResponse, ProcessStart, ProcessAction
from .protocol.processor import MessageChannel, MessageProcessor

logger = logging.getLogger(__name__)

# Callback type: (action, succeeded)
ProcessActionCallback = Callable[[ProcessAction, bool], None]


class ProcessManagerHandler(MessageProcessor):
    """Handles process-related messages of one client."""

    def __init__(self, client: MessageChannel,
                 context: Optional[ExecutionContext] = None,
                 notifier: Optional[EventNotifier] = None):
        super().__init__(context, notifier)
        self.client = client

    def on_process_action(self, callback: ProcessActionCallback):
        """Register a callback for finished process actions."""
        self.events.subscribe(PROCESS_ACTION, callback)

    def remove_process_action(self, callback: ProcessActionCallback):
        self.events.unsubscribe(PROCESS_ACTION, callback)

    def can_execute(self, message: Any) -> bool:
        return isinstance(message, ProcessActionResponse)

    def can_execute_from(self, sender: Any) -> bool:
        return sender is self.client

    async def execute(self, sender: Any, message: Any):
        if isinstance(message, ProcessActionResponse):
            logger.debug(f"Process action {message.action.value}: "
                         f"{'ok' if message.result else 'failed'}")
            self.events.emit(PROCESS_ACTION, message.action, message.result)

    async def start_process(self, remote_path: str) -> bool:
        """
        Ask the peer to start a process from a remote file.

        Returns:
            False if the request could not be sent
        """
        try:
            await self.client.send(ProcessStart(file_path=remote_path))
            return True
        except OSError as e:
            logger.warning(f"Could not request process start for {remote_path}: {e}")
            return False
