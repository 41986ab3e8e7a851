"""Shared fixtures: a scripted transport double and an adapter wired to it."""

import logging

import pytest
import pytest_asyncio

from rocket_relay.models import Message, ReceiveMessageEvent, Room, RoomKind, User
from rocket_relay.platforms.base import END_OF_STREAM
from rocket_relay.platforms.rocket_bot import create_adapter, new_config

BOT_USER = User(id="testID", name="Test Name", username="testname", token="123abc")
DUMMY_USER = User(id="123", username="dummy_user")
DUMMY_ROOM = Room(id="room0", name="Room 0", kind=RoomKind.PRIVATE_GROUP)
DUMMY_DM = Room(id="dm0", name="DM", kind=RoomKind.DIRECT)


class FixedIDGenerator:
    """Always returns the same ID."""

    def __init__(self, value: str = "1") -> None:
        self.value = value
        self.seeds: list[int] = []

    def seed(self, value: int) -> None:
        self.seeds.append(value)

    def id(self) -> str:
        return self.value


class FakeTransport:
    """Transport double with scripted replies and a record of every call."""

    def __init__(
        self,
        *,
        user: User = BOT_USER,
        rooms: list[Room] | None = None,
        login_error: Exception | None = None,
        rooms_error: Exception | None = None,
        subscribe_error: Exception | None = None,
        send_error: Exception | None = None,
    ) -> None:
        self.user = user
        self.rooms = [DUMMY_ROOM, DUMMY_DM] if rooms is None else rooms
        self.login_error = login_error
        self.rooms_error = rooms_error
        self.subscribe_error = subscribe_error
        self.send_error = send_error

        self.calls: list[str] = []
        self.credentials = None
        self.subscribed_room: Room | None = None
        self.queue = None
        self.sent: list[Message] = []
        self.closed = False

    async def login(self, credentials):
        self.calls.append("login")
        self.credentials = credentials
        if self.login_error:
            raise self.login_error
        return self.user

    async def list_rooms(self):
        self.calls.append("list_rooms")
        if self.rooms_error:
            raise self.rooms_error
        return list(self.rooms)

    async def subscribe(self, room, queue):
        self.calls.append("subscribe")
        if self.subscribe_error:
            raise self.subscribe_error
        self.subscribed_room = room
        self.queue = queue

    async def send_message(self, message):
        self.calls.append("send_message")
        if self.send_error:
            raise self.send_error
        self.sent.append(message)
        return message

    async def close(self):
        self.calls.append("close")
        self.closed = True

    async def deliver(self, *messages: Message) -> None:
        for msg in messages:
            await self.queue.put(msg)

    async def end_stream(self) -> None:
        await self.queue.put(END_OF_STREAM)


class RecordingSink:
    def __init__(self) -> None:
        self.events: list[ReceiveMessageEvent] = []

    def emit(self, event: ReceiveMessageEvent) -> None:
        self.events.append(event)


@pytest.fixture
def config():
    return new_config(
        "test@email.com",
        "123",
        "https://nowhere",
        "testname",
        name="Test Name",
        logger=logging.getLogger("rocket_relay.test"),
    )


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest_asyncio.fixture
async def adapter(config, transport):
    """Adapter that has logged in and subscribed through the fake transport."""
    return await create_adapter(config, transport=transport, idgen=FixedIDGenerator())
