"""Lazily refreshed cache of the rooms the bot participates in."""

import asyncio
import logging

from rocket_relay.models import Room
from rocket_relay.platforms.base import Transport

logger = logging.getLogger(__name__)


class RoomCache:
    """Room metadata keyed by room ID.

    Lookups are plain dict reads on the event loop and never wait on a
    refresh that is in flight. Refreshes are serialised by a lock and merge
    their result without yielding, so a reader sees either the old or the
    new entry for a room, never a partial update. Entries are never evicted.
    """

    def __init__(self, transport: Transport, log: logging.Logger | None = None) -> None:
        self._transport = transport
        self._log = log or logger
        self._rooms: dict[str, Room] = {}
        self._write_lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._rooms)

    def get(self, room_id: str) -> Room | None:
        """Cached room, without triggering a refresh."""
        return self._rooms.get(room_id)

    async def refresh(self) -> None:
        """Fetch the room list and merge it into the cache.

        Rooms missing from the reply are kept. On failure the cache is left
        as it was and the transport error is re-raised.
        """
        async with self._write_lock:
            try:
                rooms = await self._transport.list_rooms()
            except Exception as e:
                self._log.error("Failed to get list of participating channels: %s", e)
                raise
            self._rooms.update({room.id: room for room in rooms})
        self._log.debug("Room cache refreshed (%d rooms)", len(self._rooms))

    async def resolve(self, room_id: str) -> Room:
        """Return the room for ``room_id``, refreshing once on a miss.

        Never raises: a room that cannot be found resolves to a placeholder
        carrying only its ID.
        """
        room = self._rooms.get(room_id)
        if room is not None:
            return room

        try:
            await self.refresh()
        except Exception:
            return Room.placeholder(room_id)

        return self._rooms.get(room_id) or Room.placeholder(room_id)
