"""Base platform adapter interface and the collaborators it talks to."""

import asyncio
from abc import ABC, abstractmethod
from typing import Protocol

from rocket_relay.models import Credentials, Message, ReceiveMessageEvent, Room, User

# Queue item signalling that the transport will deliver no more messages.
END_OF_STREAM = None

MessageQueue = asyncio.Queue  # of Message | None


class Transport(Protocol):
    """Realtime client the adapter drives."""

    async def login(self, credentials: Credentials) -> User: ...

    async def list_rooms(self) -> list[Room]: ...

    async def subscribe(self, room: Room, queue: MessageQueue) -> None: ...

    async def send_message(self, message: Message) -> Message: ...

    async def close(self) -> None: ...


class EventSink(Protocol):
    """Framework ingestion point. Fire-and-forget."""

    def emit(self, event: ReceiveMessageEvent) -> None: ...


class PlatformAdapter(ABC):
    """Interface that all platform adapters must implement."""

    @abstractmethod
    def register_at(self, sink: EventSink) -> None:
        """Start delivering inbound events to the given sink."""

    @abstractmethod
    async def send_message(self, room_id: str, text: str) -> None:
        """Send a text message to a room on this platform."""

    @abstractmethod
    async def close(self) -> None:
        """Disconnect from the platform."""
