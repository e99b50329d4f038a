import fnmatch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.core.cache import CacheManager, cache


class FakeRedis:
    def __init__(self):
        self.store = {}
        self.expiry = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value):
        self.store[key] = value
        return True

    async def setex(self, key, seconds, value):
        self.store[key] = value
        self.expiry[key] = seconds
        return True

    async def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0

    async def scan_iter(self, match=None):
        for key in list(self.store):
            if match is None or fnmatch.fnmatch(key, match):
                yield key

    async def ping(self):
        return True


class BrokenRedis(FakeRedis):
    async def get(self, key):
        raise RedisConnectionError("down")


def fake_cache(redis_client=None):
    manager = CacheManager(url="", prefix="test")
    manager.redis = redis_client or FakeRedis()
    return manager


async def test_disabled_cache_is_a_no_op():
    manager = CacheManager(url="")
    assert not manager.enabled
    assert await manager.get("anything") is None
    assert await manager.set("anything", 1) is False
    assert await manager.delete_prefix("x") == 0
    assert await manager.ping() is False


async def test_set_and_get_json_values():
    manager = fake_cache()
    key = manager.make_key("recipients", "org", "user")
    assert key == "test:recipients:org:user"

    await manager.set(key, {"recipients": [1, 2]}, expire=30)

    assert await manager.get(key) == {"recipients": [1, 2]}
    assert manager.redis.expiry[key] == 30


async def test_delete_prefix_only_removes_matching_keys():
    manager = fake_cache()
    await manager.set(manager.make_key("recipients", "org1", "a"), 1)
    await manager.set(manager.make_key("recipients", "org1", "b"), 2)
    await manager.set(manager.make_key("recipients", "org2", "a"), 3)

    removed = await manager.delete_prefix("recipients", "org1")

    assert removed == 2
    assert await manager.get(manager.make_key("recipients", "org2", "a")) == 3


async def test_redis_errors_read_as_misses():
    manager = fake_cache(BrokenRedis())
    assert await manager.get("k") is None


@pytest.fixture
def app_cache(monkeypatch):
    """Backs the application-wide cache with an in-memory Redis."""
    redis_client = FakeRedis()
    monkeypatch.setattr(cache, "redis", redis_client)
    return redis_client


def recipient_ids(response):
    return {r["id"] for r in response.json()["recipients"]}


async def test_teacher_assignment_refreshes_guardian_directory(client, factory, org, principal, teacher,
                                                               guardian, headers, app_cache):
    class_obj = await factory.school_class(org, "Blue", teacher=teacher)
    await factory.student(org, class_obj, guardian=guardian)
    olga = await factory.user("teacher", org, first_name="Olga")

    before = await client.get("/api/messages/recipients", headers=headers(guardian))
    assert recipient_ids(before) == {str(principal.id), str(teacher.id)}
    assert any(key.startswith(f"schoolhub:recipients:{org.id}") for key in app_cache.store)

    assigned = await client.post(
        "/api/assign-teacher-class",
        json={"userId": str(olga.id), "classId": str(class_obj.id)},
        headers=headers(principal)
    )
    assert assigned.status_code == 200

    after = await client.get("/api/messages/recipients", headers=headers(guardian))
    assert str(olga.id) in recipient_ids(after)


async def test_class_writes_refresh_dashboard_counts(client, principal, headers, app_cache):
    empty = await client.get("/api/principal-dashboard-metrics", headers=headers(principal))
    assert empty.json()["classes"] == 0

    created = await client.post("/api/classes", json={"name": "Green"}, headers=headers(principal))
    assert created.status_code == 201
    refreshed = await client.get("/api/principal-dashboard-metrics", headers=headers(principal))
    assert refreshed.json()["classes"] == 1

    class_id = created.json()["class"]["id"]
    await client.delete(f"/api/classes?id={class_id}", headers=headers(principal))
    after_delete = await client.get("/api/principal-dashboard-metrics", headers=headers(principal))
    assert after_delete.json()["classes"] == 0
