from rocket_relay.models.event import ReceiveMessageEvent
from rocket_relay.models.message import Credentials, Message, User
from rocket_relay.models.room import Room, RoomKind

__all__ = [
    "ReceiveMessageEvent",
    "Credentials",
    "Message",
    "User",
    "Room",
    "RoomKind",
]
