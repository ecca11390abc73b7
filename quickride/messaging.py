# quickride/messaging.py
"""
Messaging Subsystem: per-ride chat with one automated driver reply.

``send`` appends the requester's message right away and queues exactly one
canned driver reply REPLY_DELAY_SECONDS later. The reply looks the ride up
again by id when it fires, because by then the ride may have moved to the
archive or been cancelled. A cancelled ride gets no reply.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from . import config, utils
from .clock import TaskScheduler
from .models import ChatMessage, EventKind, Sender
from .registry import RideRegistry

logger = logging.getLogger(__name__)


class MessagingService:

    def __init__(self, registry: RideRegistry, scheduler: TaskScheduler,
                 notify: Optional[Callable[..., None]] = None) -> None:
        self.registry = registry
        self.scheduler = scheduler
        self._notify = notify or (lambda *args, **kwargs: None)

    def send(self, ride_id: str, text: str, sender: Sender = Sender.REQUESTER) -> Optional[ChatMessage]:
        """
        Append a message to a ride's chat.

        Messages from the requester also queue the automated driver reply.

        Args:
            ride_id: Target ride, in either collection
            text: Message body. Blank messages are ignored.
            sender: Who is talking

        Returns:
            The appended message, or None if the ride is gone or the text is blank
        """
        if not text or not text.strip():
            logger.debug(f"Ignoring blank message for ride {ride_id}")
            return None

        message = self._append(ride_id, sender, text)
        if message is None:
            return None

        if sender == Sender.REQUESTER:
            self.scheduler.call_later(
                config.REPLY_DELAY_SECONDS,
                lambda: self._deliver_reply(ride_id),
                name=f"auto-reply:{ride_id}",
            )
        return message

    def _deliver_reply(self, ride_id: str) -> None:
        if self._append(ride_id, Sender.DRIVER, config.AUTO_REPLY_TEXT) is None:
            logger.debug(f"Auto-reply dropped, ride {ride_id} no longer exists")

    def _append(self, ride_id: str, sender: Sender, text: str) -> Optional[ChatMessage]:
        collection = self.registry.locate(ride_id)
        if collection is None:
            logger.debug(f"Message for unknown ride {ride_id} dropped")
            return None

        message = ChatMessage(id=utils.new_id(), sender=sender, text=text,
                              timestamp=self.scheduler.now)
        self.registry.update_by_id(collection, ride_id, lambda ride: ride.with_message(message))
        self._notify(EventKind.MESSAGE_ADDED, ride_id, message=message)
        return message
