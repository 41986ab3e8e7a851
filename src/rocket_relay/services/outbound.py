"""Outbound messages from the bot to Rocket.Chat."""

import logging

from rocket_relay.models import Message, Room, User
from rocket_relay.platforms.base import Transport
from rocket_relay.services.id_generator import IDGenerator
from rocket_relay.services.room_cache import RoomCache

logger = logging.getLogger(__name__)


class OutboundSender:
    def __init__(
        self,
        transport: Transport,
        rooms: RoomCache,
        bot: User,
        idgen: IDGenerator,
        log: logging.Logger | None = None,
    ) -> None:
        self._transport = transport
        self._rooms = rooms
        self._bot = bot
        self._idgen = idgen
        self._log = log or logger

    def new_message(self, room: Room, text: str) -> Message:
        return Message(id=self._idgen.id(), room_id=room.id, text=text, user=self._bot)

    async def send(self, text: str, room_id: str) -> Message:
        """Send ``text`` to ``room_id`` once. Transport errors propagate as-is."""
        # message content may be sensitive, only the room is logged
        self._log.info("Sending message to channel %s", room_id)

        room = await self._rooms.resolve(room_id)
        return await self._transport.send_message(self.new_message(room, text))
