"""
Transport between ledger instances.

The real transport (ordered, origin-authenticated delivery, retries) is
an external collaborator. Only its narrow interface lives here, plus an
in-memory double used by tests, demos and single-process simulations.
"""

import json
import logging
import threading
from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Protocol

from yieldledger.core.models import OutboundMessage

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Accepts a signed message for delivery. Must not block on the receiver."""

    def send(self, message: OutboundMessage) -> None:
        ...


class InMemoryTransport:
    """
    Per-destination FIFO queues.

    Messages are serialized to JSON on send and parsed back on delivery,
    so anything that survives here survives a real wire. duplicate_next()
    makes the next send enqueue the message twice, to exercise replay
    protection on the receiving side.
    """

    def __init__(self) -> None:
        self._lock:   threading.Lock         = threading.Lock()
        self._queues: Dict[str, Deque[str]]  = {}
        self._dup:    int                    = 0
        self.sent:    List[str]              = []

    def send(self, message: OutboundMessage) -> None:
        wire = json.dumps(message.to_dict(), sort_keys=True)
        with self._lock:
            queue = self._queues.setdefault(message.destination_instance, deque())
            copies = 2 if self._dup else 1
            if self._dup:
                self._dup -= 1
            for _ in range(copies):
                queue.append(wire)
            self.sent.append(message.message_id)
        logger.debug(
            "queued %s for %s (%d copies)",
            message.message_id, message.destination_instance, copies,
        )

    def duplicate_next(self, count: int = 1) -> None:
        with self._lock:
            self._dup += count

    def pending(self, destination_instance: str) -> int:
        with self._lock:
            return len(self._queues.get(destination_instance, ()))

    def drop(self, destination_instance: str) -> Optional[OutboundMessage]:
        """Discard the oldest pending message, as a permanently lost delivery."""
        with self._lock:
            queue = self._queues.get(destination_instance)
            if not queue:
                return None
            return OutboundMessage.from_dict(json.loads(queue.popleft()))

    def deliver(
        self,
        destination_instance: str,
        handler: Callable[[OutboundMessage], object],
        limit: Optional[int] = None,
    ) -> int:
        """
        Pop messages for destination_instance in FIFO order and pass each to
        handler. Returns the number handed over. A handler exception
        propagates after its message has been removed from the queue.
        """
        delivered = 0
        while limit is None or delivered < limit:
            with self._lock:
                queue = self._queues.get(destination_instance)
                if not queue:
                    break
                wire = queue.popleft()
            handler(OutboundMessage.from_dict(json.loads(wire)))
            delivered += 1
        return delivered
