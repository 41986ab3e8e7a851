"""Decides which inbound messages are meant for the bot."""

from rocket_relay.models import Message, ReceiveMessageEvent, User
from rocket_relay.platforms.base import EventSink
from rocket_relay.services.room_cache import RoomCache


def user_link(username: str) -> str:
    """Mention markup for a username."""
    return f"@{username}"


class MessageRouter:
    def __init__(self, rooms: RoomCache, bot: User) -> None:
        self._rooms = rooms
        self._bot = bot

    async def route(self, message: Message) -> ReceiveMessageEvent | None:
        """Translate a message into an event, or None if it is not for us.

        Direct messages always pass. Channel messages pass only when they
        mention the bot. A leading mention is stripped; one in the middle of
        the text is left alone.
        """
        room = await self._rooms.resolve(message.room_id)
        self_link = user_link(self._bot.username)
        text = message.text or ""

        if not room.is_direct and self_link not in text:
            return None

        return ReceiveMessageEvent(
            text=text.removeprefix(self_link).strip(),
            channel=room.id,
            author_id=message.user.id if message.user else "",
            data=message,
        )

    async def handle(self, message: Message, sink: EventSink) -> None:
        event = await self.route(message)
        if event is not None:
            sink.emit(event)
