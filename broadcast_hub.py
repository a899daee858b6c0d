"""In-process fan-out of product events to connected dashboards."""

import asyncio
from typing import Any, List, Set

from loguru import logger
from pydantic import BaseModel

from models.events import encode_event


class BroadcastHub:
    """
    Registry of connected real-time channels.

    A channel is anything exposing ``async send_json(data)``; in the server
    that is a Starlette ``WebSocket``. There is no acknowledgement and no
    replay: a channel only sees events published while it is registered.
    """

    def __init__(self):
        self._channels: Set[Any] = set()
        self._lock = asyncio.Lock()

    @property
    def client_count(self) -> int:
        return len(self._channels)

    async def connect(self, channel: Any) -> None:
        async with self._lock:
            self._channels.add(channel)
        logger.debug("Client registered ({} total)", self.client_count)

    async def disconnect(self, channel: Any) -> None:
        async with self._lock:
            self._channels.discard(channel)
        logger.debug("Client unregistered ({} total)", self.client_count)

    async def publish(self, event: BaseModel) -> int:
        """
        Send an event to every registered channel, the originator included.

        Iterates a snapshot of the membership taken under the lock, so
        channels joining or leaving mid-publish do not disturb the loop.
        A channel whose send fails is dropped.

        Returns:
            Number of channels the event was delivered to.
        """
        async with self._lock:
            snapshot: List[Any] = list(self._channels)

        message = encode_event(event)
        delivered = 0
        failed = []
        for channel in snapshot:
            try:
                await channel.send_json(message)
                delivered += 1
            except Exception as e:
                logger.warning("Dropping client after failed send of {}: {}", message["event"], e)
                failed.append(channel)

        if failed:
            async with self._lock:
                self._channels.difference_update(failed)

        logger.debug("Published {} to {}/{} clients", message["event"], delivered, len(snapshot))
        return delivered
