"""Tests for RoomCache: lazy refresh, placeholders, additive merges."""

import asyncio

import pytest

from conftest import DUMMY_DM, DUMMY_ROOM, FakeTransport
from rocket_relay.models import Room, RoomKind
from rocket_relay.services.room_cache import RoomCache


@pytest.mark.asyncio
async def test_resolve_cached_room_does_not_refresh():
    transport = FakeTransport()
    cache = RoomCache(transport)
    await cache.refresh()

    room = await cache.resolve("room0")

    assert room == DUMMY_ROOM
    assert transport.calls.count("list_rooms") == 1


@pytest.mark.asyncio
async def test_resolve_miss_refreshes_and_finds_room():
    transport = FakeTransport()
    cache = RoomCache(transport)

    room = await cache.resolve("dm0")

    assert room == DUMMY_DM
    assert transport.calls == ["list_rooms"]


@pytest.mark.asyncio
async def test_resolve_unknown_room_returns_placeholder():
    transport = FakeTransport()
    cache = RoomCache(transport)

    room = await cache.resolve("nowhere")

    assert room.id == "nowhere"
    assert room.kind is RoomKind.UNKNOWN
    assert transport.calls == ["list_rooms"]


@pytest.mark.asyncio
async def test_resolve_after_failed_refresh_returns_placeholder():
    transport = FakeTransport(rooms_error=RuntimeError("boom"))
    cache = RoomCache(transport)

    room = await cache.resolve("room0")

    assert room == Room.placeholder("room0")
    assert room.kind is RoomKind.UNKNOWN
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_refresh_failure_raises_and_keeps_cache():
    transport = FakeTransport()
    cache = RoomCache(transport)
    await cache.refresh()

    transport.rooms_error = RuntimeError("boom")
    with pytest.raises(RuntimeError, match="boom"):
        await cache.refresh()

    assert cache.get("room0") == DUMMY_ROOM
    assert cache.get("dm0") == DUMMY_DM


@pytest.mark.asyncio
async def test_refresh_is_additive():
    """Rooms missing from a later reply stay cached; returned ones are overwritten."""
    transport = FakeTransport()
    cache = RoomCache(transport)
    await cache.refresh()

    renamed = Room(id="room0", name="Renamed", kind=RoomKind.CHANNEL)
    transport.rooms = [renamed]
    await cache.refresh()

    assert cache.get("room0") == renamed
    assert cache.get("dm0") == DUMMY_DM
    assert len(cache) == 2


@pytest.mark.asyncio
async def test_reads_proceed_while_refresh_in_flight():
    release = asyncio.Event()
    started = asyncio.Event()

    class SlowTransport(FakeTransport):
        async def list_rooms(self):
            if self.calls:  # first refresh answers normally
                started.set()
                await release.wait()
                return [Room(id="late", kind=RoomKind.CHANNEL)]
            return await super().list_rooms()

    transport = SlowTransport()
    cache = RoomCache(transport)
    await cache.refresh()

    task = asyncio.create_task(cache.refresh())
    await started.wait()

    assert await cache.resolve("room0") == DUMMY_ROOM
    assert cache.get("late") is None

    release.set()
    await task
    assert cache.get("late") is not None
