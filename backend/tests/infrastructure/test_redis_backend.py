"""RedisBackend: command translation over a mocked redis.asyncio client.

Invariants:
    - JSONPath "$" responses are unwrapped to dict | None
    - Sorted-set and scan calls map onto the redis-py signatures
    - RedisError propagates, except from ping() which reports False
    - from_settings() refuses to build without a URL
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from recordstore.config import Settings
from recordstore.core.errors import ConfigError
from recordstore.infrastructure.redis_backend import RedisBackend


@pytest.fixture
def json_cmds():
    return MagicMock(
        get=AsyncMock(), set=AsyncMock(), delete=AsyncMock(), mget=AsyncMock(),
    )


@pytest.fixture
def client(json_cmds):
    client = MagicMock()
    client.json.return_value = json_cmds
    for name in ("exists", "expire", "scan", "zadd", "zrem", "zrange", "ping", "aclose"):
        setattr(client, name, AsyncMock())
    return client


@pytest.fixture
def redis_backend(client):
    return RedisBackend(client)


# -- Documents -----------------------------------------------------------------

@pytest.mark.asyncio
async def test_document_get_unwraps_jsonpath_list(redis_backend, json_cmds):
    json_cmds.get.return_value = [{"id": "x"}]
    assert await redis_backend.document_get("thing:x") == {"id": "x"}
    json_cmds.get.assert_awaited_once_with("thing:x", "$")


@pytest.mark.asyncio
async def test_document_get_missing_is_none(redis_backend, json_cmds):
    json_cmds.get.return_value = None
    assert await redis_backend.document_get("thing:x") is None


@pytest.mark.asyncio
async def test_document_set_writes_root(redis_backend, json_cmds):
    await redis_backend.document_set("thing:x", {"id": "x"})
    json_cmds.set.assert_awaited_once_with("thing:x", "$", {"id": "x"})


@pytest.mark.asyncio
async def test_document_patch_writes_field_path(redis_backend, json_cmds):
    await redis_backend.document_patch("thing:x", "deletedAt", 123)
    json_cmds.set.assert_awaited_once_with("thing:x", "$.deletedAt", 123)


@pytest.mark.asyncio
async def test_document_delete(redis_backend, json_cmds):
    await redis_backend.document_delete("thing:x")
    json_cmds.delete.assert_awaited_once_with("thing:x", "$")


@pytest.mark.asyncio
async def test_multi_document_get_unwraps_each(redis_backend, json_cmds):
    json_cmds.mget.return_value = [[{"id": "a"}], None, []]
    docs = await redis_backend.multi_document_get(["thing:a", "thing:b", "thing:c"])
    assert docs == [{"id": "a"}, None, None]
    json_cmds.mget.assert_awaited_once_with(["thing:a", "thing:b", "thing:c"], "$")


@pytest.mark.asyncio
async def test_multi_document_get_empty_skips_io(redis_backend, json_cmds):
    assert await redis_backend.multi_document_get([]) == []
    json_cmds.mget.assert_not_awaited()


# -- Keys ----------------------------------------------------------------------

@pytest.mark.asyncio
async def test_key_exists(redis_backend, client):
    client.exists.return_value = 1
    assert await redis_backend.key_exists("thing:x") is True
    client.exists.return_value = 0
    assert await redis_backend.key_exists("thing:x") is False


@pytest.mark.asyncio
async def test_set_expiry(redis_backend, client):
    await redis_backend.set_expiry("thing:x", 60)
    client.expire.assert_awaited_once_with("thing:x", 60)


@pytest.mark.asyncio
async def test_scan_keys_passes_type_filter(redis_backend, client):
    client.scan.return_value = (17, ["thing:a"])
    result = await redis_backend.scan_keys(0, "thing:*", "ReJSON-RL", 10)
    assert result == (17, ["thing:a"])
    client.scan.assert_awaited_once_with(
        cursor=0, match="thing:*", count=10, _type="ReJSON-RL",
    )


@pytest.mark.asyncio
async def test_scan_keys_normalizes_string_cursor(redis_backend, client):
    client.scan.return_value = ("0", [])
    assert await redis_backend.scan_keys(5, "thing:*", None, 10) == (0, [])


# -- Sorted sets ---------------------------------------------------------------

@pytest.mark.asyncio
async def test_ordered_set_add_maps_member_to_score(redis_backend, client):
    await redis_backend.ordered_set_add("things", 42, "x")
    client.zadd.assert_awaited_once_with("things", {"x": 42})


@pytest.mark.asyncio
async def test_ordered_set_remove(redis_backend, client):
    await redis_backend.ordered_set_remove("things", "x")
    client.zrem.assert_awaited_once_with("things", "x")


@pytest.mark.asyncio
async def test_ordered_set_range_reverse(redis_backend, client):
    client.zrange.return_value = ["b", "a"]
    assert await redis_backend.ordered_set_range("things", 0, -1, reverse=True) == ["b", "a"]
    client.zrange.assert_awaited_once_with("things", 0, -1, desc=True)


@pytest.mark.asyncio
async def test_transport_errors_pass_through(redis_backend, client):
    client.zadd.side_effect = RedisConnectionError("down")
    with pytest.raises(RedisConnectionError):
        await redis_backend.ordered_set_add("things", 1, "x")


# -- Health & setup ------------------------------------------------------------

@pytest.mark.asyncio
async def test_ping_reports_connectivity(redis_backend, client):
    client.ping.return_value = True
    assert await redis_backend.ping() is True
    client.ping.side_effect = RedisConnectionError("down")
    assert await redis_backend.ping() is False


@pytest.mark.asyncio
async def test_close_closes_client(redis_backend, client):
    await redis_backend.close()
    client.aclose.assert_awaited_once()


def test_from_settings_requires_url(monkeypatch):
    for var in ("KV_URL", "KV_REST_API_URL", "REDIS_URL"):
        monkeypatch.delenv(var, raising=False)
    with pytest.raises(ConfigError) as exc:
        RedisBackend.from_settings(Settings(_env_file=None))
    assert exc.value.setting == "kv_url"


def test_from_settings_treats_blank_url_as_missing():
    with pytest.raises(ConfigError):
        RedisBackend.from_settings(Settings(kv_url="  "))


def test_from_settings_builds_client_without_connecting():
    backend = RedisBackend.from_settings(
        Settings(kv_url="redis://localhost:6379/0", kv_token="secret"),
    )
    assert backend.client.connection_pool.connection_kwargs["password"] == "secret"
