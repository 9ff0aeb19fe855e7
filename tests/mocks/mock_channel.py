import asyncio
from typing import Any, List, Optional

from remotefm.protocol import MessageChannel, TransferChunk


class MockChannel(MessageChannel):
    """
    Records outbound messages.

    fail_on: message classes whose send raises ConnectionError
    gate: when set, chunk sends wait for the event before completing
    """

    def __init__(self, fail_on=(), gate: Optional[asyncio.Event] = None):
        self.sent: List[Any] = []
        self.fail_on = tuple(fail_on)
        self.gate = gate
        self.in_flight = 0
        self.max_in_flight = 0

    async def send(self, message: Any):
        if self.fail_on and isinstance(message, self.fail_on):
            raise ConnectionError("link down")

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.gate is not None and isinstance(message, TransferChunk):
                await self.gate.wait()
            else:
                await asyncio.sleep(0)
            self.sent.append(message)
        finally:
            self.in_flight -= 1

    def of_type(self, cls) -> List[Any]:
        return [m for m in self.sent if isinstance(m, cls)]


class TransferEvents:
    """Collects transfer snapshots delivered to a handler's subscribers."""

    def __init__(self, handler):
        self.updates = []
        handler.on_transfer_updated(self.updates.append)

    def for_id(self, transfer_id: int):
        return [t for t in self.updates if t.id == transfer_id]

    def statuses(self, transfer_id: Optional[int] = None) -> List[str]:
        updates = self.updates if transfer_id is None else self.for_id(transfer_id)
        return [t.status for t in updates]


async def drain(rounds: int = 5):
    """Let callbacks posted to the loop run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


async def wait_until(condition, timeout: float = 2.0):
    """Poll until condition() is true (file reads run in worker threads)."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not condition():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)
    await drain()
