"""Connection registry tests — membership, snapshots, concurrent churn."""

import asyncio

import pytest

from intraportal.realtime.registry import Connection


@pytest.mark.asyncio
async def test_add_and_remove(registry, fake_transport):
    conn = Connection(user_id="u1", transport=fake_transport())
    assert await registry.add(conn)
    assert conn in registry
    assert len(registry) == 1

    assert await registry.remove(conn)
    assert conn not in registry
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_same_transport_registered_once(registry, fake_transport):
    transport = fake_transport()
    assert await registry.add(Connection(user_id="u1", transport=transport))
    assert not await registry.add(Connection(user_id="u1", transport=transport))
    assert len(registry) == 1


@pytest.mark.asyncio
async def test_same_user_many_connections(registry, fake_transport):
    """One user with two tabs open is two connections."""
    await registry.add(Connection(user_id="u1", transport=fake_transport()))
    await registry.add(Connection(user_id="u1", transport=fake_transport()))
    assert len(registry) == 2


@pytest.mark.asyncio
async def test_remove_is_idempotent(registry, connect):
    conn = await connect()
    assert await registry.remove(conn)
    assert not await registry.remove(conn)


@pytest.mark.asyncio
async def test_new_connection_starts_alive(connect):
    conn = await connect()
    assert conn.is_alive is True
    assert conn.channels == set()


@pytest.mark.asyncio
async def test_snapshot_is_detached(registry, connect):
    """Mutating the registry doesn't affect a snapshot already taken."""
    a = await connect("a")
    snap = await registry.snapshot()
    b = await connect("b")
    await registry.remove(a)

    assert snap == [a]
    assert await registry.snapshot() == [b]


@pytest.mark.asyncio
async def test_clear_returns_everything(registry, connect):
    a = await connect("a")
    b = await connect("b")
    drained = await registry.clear()
    assert set(drained) == {a, b}
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_concurrent_add_remove(registry, fake_transport):
    conns = [Connection(user_id=f"u{i}", transport=fake_transport()) for i in range(50)]

    await asyncio.gather(*(registry.add(c) for c in conns))
    assert len(registry) == 50

    await asyncio.gather(
        *(registry.remove(c) for c in conns[:25]),
        *(registry.snapshot() for _ in range(10)),
    )
    assert len(registry) == 25
    assert set(await registry.snapshot()) == set(conns[25:])
