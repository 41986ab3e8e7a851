"""Rocket.Chat bot adapter.

Logs in, warms the room cache, subscribes to the bot's message stream and
relays addressed messages to the framework. Replies go out through
``send_message``.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum

import httpx

from rocket_relay.errors import ConfigError, LoginError, RelayError, SubscribeError
from rocket_relay.models import Credentials, Message, Room, User
from rocket_relay.platforms.base import END_OF_STREAM, EventSink, MessageQueue, PlatformAdapter, Transport
from rocket_relay.platforms.realtime_client import RealtimeClient
from rocket_relay.services.id_generator import IDGenerator, RandomIDGenerator
from rocket_relay.services.message_router import MessageRouter
from rocket_relay.services.outbound import OutboundSender
from rocket_relay.services.room_cache import RoomCache

# Inbound message buffer size
BUFFER_SIZE = 10

# Pseudo room ID streaming every message visible to the logged-in user
MY_MESSAGES = "__my_messages__"

DEFAULT_LOGGER_NAME = "rocket_relay.rocket"

_URL_SCHEMES = ("http", "https", "ws", "wss")


@dataclass
class AdapterConfig:
    email: str
    password: str = field(repr=False)
    server_url: httpx.URL
    bot_username: str = ""
    name: str = ""
    debug: bool = False
    logger: logging.Logger | None = None

    @classmethod
    def from_settings(cls, settings=None) -> "AdapterConfig":
        """Build a config from the pydantic settings (``.env`` / environment)."""
        if settings is None:
            from config.settings import settings
        return new_config(
            settings.rocket_email,
            settings.rocket_password,
            settings.rocket_server_url,
            settings.rocket_bot_username,
            name=settings.bot_name,
            debug=settings.rocket_debug,
        )


def parse_server_url(server_url: str) -> httpx.URL:
    try:
        url = httpx.URL(server_url)
    except (httpx.InvalidURL, TypeError) as e:
        raise ConfigError(f"Invalid server URL {server_url!r}: {e}") from e
    if url.scheme not in _URL_SCHEMES or not url.host:
        raise ConfigError(f"Invalid server URL {server_url!r}: expected http(s):// or ws(s):// with a host")
    return url


def new_config(
    email: str,
    password: str,
    server_url: str,
    bot_username: str,
    *,
    name: str = "",
    debug: bool = False,
    logger: logging.Logger | None = None,
) -> AdapterConfig:
    """Validate settings and build an AdapterConfig. Raises ConfigError."""
    return AdapterConfig(
        email=email,
        password=password,
        server_url=parse_server_url(server_url),
        bot_username=bot_username,
        name=name,
        debug=debug,
        logger=logger or logging.getLogger(DEFAULT_LOGGER_NAME),
    )


class AdapterState(str, Enum):
    UNSTARTED = "unstarted"
    LOGGING_IN = "logging_in"
    CACHE_WARMING = "cache_warming"
    SUBSCRIBED = "subscribed"
    RUNNING = "running"
    CLOSED = "closed"
    FAILED = "failed"


class BotAdapter(PlatformAdapter):
    """Reads and writes messages to and from Rocket.Chat."""

    def __init__(
        self,
        transport: Transport,
        config: AdapterConfig,
        idgen: IDGenerator | None = None,
    ) -> None:
        self._transport = transport
        self._config = config
        self._idgen = idgen or RandomIDGenerator()
        self.logger = config.logger or logging.getLogger(DEFAULT_LOGGER_NAME)

        self.state = AdapterState.UNSTARTED
        self.user: User | None = None
        self.rooms = RoomCache(transport, self.logger)
        self.messages: MessageQueue = asyncio.Queue(maxsize=BUFFER_SIZE)
        self.consumer: asyncio.Task | None = None

        self._router: MessageRouter | None = None
        self._sender: OutboundSender | None = None

    async def open(self) -> None:
        """Log in, warm the room cache and subscribe to the message stream.

        Login and subscribe failures are fatal: the adapter moves to FAILED
        and the error is raised. A failed cache warm-up is only logged.
        """
        if self.state is not AdapterState.UNSTARTED:
            raise RelayError(f"Adapter cannot be opened from state {self.state.value}")

        self.state = AdapterState.LOGGING_IN
        credentials = Credentials(email=self._config.email, password=self._config.password)
        try:
            user = await self._transport.login(credentials)
        except Exception as e:
            self.state = AdapterState.FAILED
            raise LoginError("error logging in") from e

        if not user.username:
            user = user.model_copy(update={"username": self._config.bot_username})
        self.user = user
        self._router = MessageRouter(self.rooms, user)
        self._sender = OutboundSender(self._transport, self.rooms, user, self._idgen, self.logger)

        self.logger.info(
            "Connected to rocket.chat realtime API (url=%s, username=%s, id=%s)",
            self._config.server_url,
            user.username,
            user.id,
        )

        self.state = AdapterState.CACHE_WARMING
        try:
            await self.rooms.refresh()
        except Exception:
            self.logger.warning("Room cache warm-up failed, rooms will be resolved on demand")

        try:
            await self._transport.subscribe(Room(id=MY_MESSAGES), self.messages)
        except Exception as e:
            self.state = AdapterState.FAILED
            raise SubscribeError("error subscribing to message stream") from e
        self.state = AdapterState.SUBSCRIBED

    def register_at(self, sink: EventSink) -> None:
        """Start relaying inbound messages to ``sink`` in the background."""
        if self.state is not AdapterState.SUBSCRIBED:
            raise RelayError(f"Adapter cannot start from state {self.state.value}")
        self.consumer = asyncio.create_task(self._handle_rocket_messages(sink))
        self.state = AdapterState.RUNNING

    async def _handle_rocket_messages(self, sink: EventSink) -> None:
        while True:
            msg = await self.messages.get()
            if msg is END_OF_STREAM:
                break
            try:
                await self._router.handle(msg, sink)
            except Exception:
                self.logger.exception("Failed to deliver message %s", msg.id)
        self.logger.info("Inbound message stream ended")

    async def send(self, text: str, room_id: str) -> Message:
        if self._sender is None:
            raise RelayError("Adapter is not logged in")
        return await self._sender.send(text, room_id)

    async def send_message(self, room_id: str, text: str) -> None:
        await self.send(text, room_id)

    async def close(self) -> None:
        """Disconnect from the realtime API.

        The consumer is left to finish on its own once the transport stops
        delivering.
        """
        await self._transport.close()
        self.state = AdapterState.CLOSED


async def create_adapter(
    config: AdapterConfig,
    transport: Transport | None = None,
    idgen: IDGenerator | None = None,
) -> BotAdapter:
    """Connect a new adapter. No adapter is returned if login or subscribe fails."""
    if transport is None:
        transport = RealtimeClient(config.server_url, debug=config.debug)

    adapter = BotAdapter(transport, config, idgen)
    try:
        await adapter.open()
    except RelayError:
        await transport.close()
        raise
    return adapter
