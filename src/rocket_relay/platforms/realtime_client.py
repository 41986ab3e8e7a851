"""Rocket.Chat realtime API client.

Speaks DDP (Meteor's JSON protocol) over a websocket: method calls for
login, room listing and sending, and a ``stream-room-messages``
subscription for inbound messages.
"""

import asyncio
import hashlib
import itertools
import json
import logging
from typing import Any

import httpx
import websockets
from pydantic import ValidationError
from websockets.exceptions import ConnectionClosed

from rocket_relay.errors import TransportError
from rocket_relay.models import Credentials, Message, Room, User
from rocket_relay.platforms.base import END_OF_STREAM, MessageQueue

logger = logging.getLogger(__name__)

DDP_VERSION = "1"
STREAM_ROOM_MESSAGES = "stream-room-messages"

# Seconds close() waits for forwarders to hand over what is left
CLOSE_DRAIN_SECONDS = 5.0


def realtime_url(server_url: httpx.URL) -> str:
    """Websocket endpoint for a Rocket.Chat server URL."""
    scheme = "wss" if server_url.scheme in ("https", "wss") else "ws"
    return str(server_url.copy_with(scheme=scheme, path="/websocket"))


def _error_text(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or error.get("reason") or error.get("error") or error)
    return str(error)


class RealtimeClient:
    """Transport backed by a single DDP websocket connection."""

    def __init__(self, server_url: httpx.URL, debug: bool = False, connect=websockets.connect) -> None:
        self.url = realtime_url(server_url)
        self._debug = debug
        self._connect = connect
        self._ws = None
        self._reader: asyncio.Task | None = None
        self._ids = itertools.count(1)
        self._pending: dict[str, asyncio.Future] = {}
        self._pending_subs: dict[str, asyncio.Future] = {}
        # room id -> unbounded inbox fed by the reader
        self._streams: dict[str, asyncio.Queue] = {}
        self._forwarders: dict[str, asyncio.Task] = {}
        self._closed = False

    # ── Connection ─────────────────────────────────────────

    async def connect(self) -> None:
        if self._ws is not None:
            return
        if self._closed:
            raise TransportError("client is closed")

        try:
            self._ws = await self._connect(self.url)
        except OSError as e:
            raise TransportError(f"cannot connect to {self.url}: {e}") from e

        await self._send({"msg": "connect", "version": DDP_VERSION, "support": [DDP_VERSION]})
        while True:
            frame = await self._recv()
            kind = frame.get("msg")
            if kind == "connected":
                break
            if kind == "failed":
                raise TransportError(f"DDP version rejected by server (wants {frame.get('version')})")

        logger.info("Realtime connection established: %s", self.url)
        self._reader = asyncio.create_task(self._read_loop())

    async def close(self) -> None:
        """Close the websocket and stop the reader and forwarding tasks.

        Forwarders get a bounded grace period to hand buffered messages and
        the end-of-stream marker to their queues; any still blocked on a
        full queue after that are cancelled.
        """
        self._closed = True
        if self._ws is None:
            return
        await self._ws.close()
        if self._reader is not None:
            await self._reader

        forwarders = [t for t in self._forwarders.values() if not t.done()]
        if forwarders:
            _, stuck = await asyncio.wait(forwarders, timeout=CLOSE_DRAIN_SECONDS)
            for task in stuck:
                task.cancel()
            await asyncio.gather(*stuck, return_exceptions=True)
            if stuck:
                logger.warning("Dropped undelivered messages for %d stream(s) on close", len(stuck))

    async def _send(self, frame: dict) -> None:
        if self._debug:
            logger.debug("ddp >> %s %s", frame.get("msg"), frame.get("method") or frame.get("name") or "")
        try:
            await self._ws.send(json.dumps(frame))
        except ConnectionClosed as e:
            raise TransportError("realtime connection closed") from e

    async def _recv(self) -> dict:
        try:
            raw = await self._ws.recv()
        except ConnectionClosed as e:
            raise TransportError("realtime connection closed") from e
        return self._decode(raw)

    def _decode(self, raw: str | bytes) -> dict:
        try:
            frame = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Skipping undecodable realtime frame (%d bytes)", len(raw))
            return {}
        if not isinstance(frame, dict):
            return {}
        if self._debug:
            # frames carry message text, log only their shape
            logger.debug("ddp << %s %s", frame.get("msg"), frame.get("collection") or frame.get("id") or "")
        return frame

    async def _read_loop(self) -> None:
        try:
            async for raw in self._ws:
                await self._dispatch(self._decode(raw))
        except (ConnectionClosed, TransportError) as e:
            logger.warning("Realtime connection lost: %s", e)
        finally:
            self._closed = True
            self._fail_pending(TransportError("realtime connection closed"))
            for inbox in self._streams.values():
                inbox.put_nowait(END_OF_STREAM)
            logger.info("Realtime connection closed")

    def _fail_pending(self, error: Exception) -> None:
        for fut in [*self._pending.values(), *self._pending_subs.values()]:
            if not fut.done():
                fut.set_exception(error)
        self._pending.clear()
        self._pending_subs.clear()

    async def _dispatch(self, frame: dict) -> None:
        kind = frame.get("msg")

        if kind == "ping":
            pong = {"msg": "pong"}
            if "id" in frame:
                pong["id"] = frame["id"]
            await self._send(pong)

        elif kind == "result":
            fut = self._pending.pop(str(frame.get("id")), None)
            if fut is None or fut.done():
                return
            if frame.get("error"):
                fut.set_exception(TransportError(_error_text(frame["error"])))
            else:
                fut.set_result(frame.get("result"))

        elif kind == "ready":
            for sub_id in frame.get("subs", []):
                fut = self._pending_subs.pop(str(sub_id), None)
                if fut is not None and not fut.done():
                    fut.set_result(None)

        elif kind == "nosub":
            fut = self._pending_subs.pop(str(frame.get("id")), None)
            if fut is not None and not fut.done():
                fut.set_exception(TransportError(_error_text(frame.get("error", "subscription refused"))))

        elif kind == "changed" and frame.get("collection") == STREAM_ROOM_MESSAGES:
            fields = frame.get("fields") or {}
            inbox = self._streams.get(fields.get("eventName"))
            if inbox is None:
                return
            for arg in fields.get("args") or []:
                if not isinstance(arg, dict):
                    continue
                try:
                    message = Message.model_validate(arg)
                except ValidationError:
                    logger.warning("Skipping malformed stream message %s", arg.get("_id"))
                    continue
                # never block the reader: the forwarder waits for queue space
                inbox.put_nowait(message)

    async def _call(self, method: str, *params: Any) -> Any:
        if self._ws is None or self._closed:
            raise TransportError("realtime client is not connected")

        call_id = str(next(self._ids))
        fut = asyncio.get_running_loop().create_future()
        self._pending[call_id] = fut
        try:
            await self._send({"msg": "method", "method": method, "id": call_id, "params": list(params)})
        except TransportError:
            self._pending.pop(call_id, None)
            raise
        return await fut

    # ── Transport ──────────────────────────────────────────

    async def login(self, credentials: Credentials) -> User:
        await self.connect()
        digest = hashlib.sha256(credentials.password.encode("utf-8")).hexdigest()
        result = await self._call(
            "login",
            {
                "user": {"email": credentials.email},
                "password": {"digest": digest, "algorithm": "sha-256"},
            },
        )
        if not isinstance(result, dict):
            raise TransportError("unexpected login reply")
        # the login reply carries no username
        return User(id=result.get("id", ""), token=result.get("token", ""))

    async def list_rooms(self) -> list[Room]:
        result = await self._call("rooms/get", {"$date": 0})
        if isinstance(result, dict):
            result = result.get("update") or []
        return [Room.model_validate(r) for r in result or [] if isinstance(r, dict)]

    async def subscribe(self, room: Room, queue: MessageQueue) -> None:
        if self._ws is None or self._closed:
            raise TransportError("realtime client is not connected")

        sub_id = str(next(self._ids))
        fut = asyncio.get_running_loop().create_future()
        self._pending_subs[sub_id] = fut
        inbox: asyncio.Queue = asyncio.Queue()
        self._streams[room.id] = inbox
        try:
            await self._send({"msg": "sub", "id": sub_id, "name": STREAM_ROOM_MESSAGES, "params": [room.id, False]})
            await fut
        except TransportError:
            self._pending_subs.pop(sub_id, None)
            self._streams.pop(room.id, None)
            raise
        self._forwarders[room.id] = asyncio.create_task(self._forward(inbox, queue))

    @staticmethod
    async def _forward(inbox: asyncio.Queue, queue: MessageQueue) -> None:
        """Move stream messages into the caller's bounded queue, in order."""
        while True:
            item = await inbox.get()
            await queue.put(item)
            if item is END_OF_STREAM:
                return

    async def send_message(self, message: Message) -> Message:
        result = await self._call(
            "sendMessage",
            {"_id": message.id, "rid": message.room_id, "msg": message.text},
        )
        if isinstance(result, dict):
            return Message.model_validate(result)
        return message
