"""Unit tests for EntityCache."""

import asyncio

import pytest

from vlogsphere.mutations.cache import EntityCache


class TestEntityCache:
    def test_get_returns_copy(self):
        cache = EntityCache()
        cache.put("user", "u1", {"id": "u1", "following": ["u2"]})

        record = cache.get("user", "u1")
        record["following"].append("u3")

        assert cache.get("user", "u1")["following"] == ["u2"]

    def test_put_copies_input(self):
        cache = EntityCache()
        data = {"id": "v1", "likeCount": 1}
        cache.put("vlog", "v1", data)
        data["likeCount"] = 99

        assert cache.get("vlog", "v1")["likeCount"] == 1

    def test_namespaces_are_separate(self):
        cache = EntityCache()
        cache.put("user", "x", {"kind": "user"})
        cache.put("vlog", "x", {"kind": "vlog"})

        assert cache.get("user", "x")["kind"] == "user"
        assert cache.get("vlog", "x")["kind"] == "vlog"
        assert len(cache) == 2
        assert ("vlog", "x") in cache

    def test_merge_ignores_uncached(self):
        cache = EntityCache()
        cache.merge("user", "u1", {"bio": "hi"})

        assert cache.get("user", "u1") is None

    def test_merge_patches_fields(self):
        cache = EntityCache()
        cache.put("user", "u1", {"id": "u1", "bio": "old", "age": 3})
        cache.merge("user", "u1", {"bio": "new"})

        assert cache.get("user", "u1") == {"id": "u1", "bio": "new", "age": 3}

    def test_evict(self):
        cache = EntityCache()
        cache.put("user", "u1", {})

        assert cache.evict("user", "u1") is True
        assert cache.evict("user", "u1") is False

    def test_clear_bumps_generation(self):
        cache = EntityCache()
        cache.put("user", "u1", {})

        cache.clear()

        assert len(cache) == 0
        assert cache.generation == 1


class TestLoading:
    @pytest.mark.asyncio
    async def test_get_or_load_fetches_once(self):
        cache = EntityCache()
        calls = []

        async def loader(entity_id):
            calls.append(entity_id)
            return {"id": entity_id}

        await cache.get_or_load("user", "u1", loader)
        await cache.get_or_load("user", "u1", loader)

        assert calls == ["u1"]

    @pytest.mark.asyncio
    async def test_fetch_landing_after_clear_is_dropped(self):
        cache = EntityCache()
        gate = asyncio.Event()

        async def loader(entity_id):
            await gate.wait()
            return {"id": entity_id, "secret": "previous user"}

        task = asyncio.create_task(cache.refresh("user", "u1", loader))
        await asyncio.sleep(0)
        cache.clear()
        gate.set()
        data = await task

        assert data["id"] == "u1"
        assert ("user", "u1") not in cache

    @pytest.mark.asyncio
    async def test_loader_errors_propagate(self):
        cache = EntityCache()

        async def loader(entity_id):
            raise RuntimeError("offline")

        with pytest.raises(RuntimeError, match="offline"):
            await cache.get_or_load("vlog", "v1", loader)

        assert len(cache) == 0
