"""Rocket.Chat adapter for chat-bot frameworks."""

from rocket_relay.errors import ConfigError, LoginError, RelayError, SubscribeError, TransportError
from rocket_relay.models import Message, ReceiveMessageEvent, Room, RoomKind, User
from rocket_relay.platforms.base import EventSink, PlatformAdapter, Transport
from rocket_relay.platforms.rocket_bot import (
    AdapterConfig,
    AdapterState,
    BotAdapter,
    create_adapter,
    new_config,
)
from rocket_relay.services.id_generator import IDGenerator, RandomIDGenerator

__version__ = "0.1.0"

__all__ = [
    "AdapterConfig",
    "AdapterState",
    "BotAdapter",
    "ConfigError",
    "EventSink",
    "IDGenerator",
    "LoginError",
    "Message",
    "PlatformAdapter",
    "RandomIDGenerator",
    "ReceiveMessageEvent",
    "RelayError",
    "Room",
    "RoomKind",
    "SubscribeError",
    "Transport",
    "TransportError",
    "User",
    "create_adapter",
    "new_config",
]
