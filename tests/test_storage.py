"""Tests for the credential storage tiers."""

from vlogsphere.storage import (
    ACCESS_KEY,
    REDIRECT_KEY,
    RENEWAL_KEY,
    CredentialStorage,
    FileStore,
    MemoryStore,
    StorageDurability,
)


class TestFileStore:
    def test_values_survive_new_instance(self, tmp_path):
        path = tmp_path / "nested" / "credentials.json"
        FileStore(path).set(ACCESS_KEY, "abc")

        assert FileStore(path).get(ACCESS_KEY) == "abc"

    def test_missing_file_reads_empty(self, tmp_path):
        store = FileStore(tmp_path / "absent.json")

        assert store.get(ACCESS_KEY) is None
        assert store.is_empty()

    def test_corrupt_file_reads_empty(self, tmp_path):
        path = tmp_path / "credentials.json"
        path.write_text("{not json", encoding="utf-8")

        assert FileStore(path).get(ACCESS_KEY) is None

    def test_remove(self, tmp_path):
        store = FileStore(tmp_path / "credentials.json")
        store.set(ACCESS_KEY, "abc")
        store.remove(ACCESS_KEY)
        store.remove("never-set")

        assert store.get(ACCESS_KEY) is None


class TestCredentialStorage:
    def _storage(self, tmp_path):
        return CredentialStorage(
            durable=FileStore(tmp_path / "credentials.json"),
            ephemeral=MemoryStore(),
        )

    def test_nothing_stored(self, tmp_path):
        assert self._storage(tmp_path).find_credentials() == (None, None, None)

    def test_durable_found_first(self, tmp_path):
        storage = self._storage(tmp_path)
        storage.write_credentials(StorageDurability.EPHEMERAL, "e-a", "e-r")
        storage.write_credentials(StorageDurability.PERSISTENT, "d-a", "d-r")

        assert storage.find_credentials() == (StorageDurability.PERSISTENT, "d-a", "d-r")

    def test_ephemeral_found(self, tmp_path):
        storage = self._storage(tmp_path)
        storage.write_credentials(StorageDurability.EPHEMERAL, "e-a", "e-r")

        assert storage.find_credentials() == (StorageDurability.EPHEMERAL, "e-a", "e-r")

    def test_clear_keeps_other_keys(self, tmp_path):
        storage = self._storage(tmp_path)
        storage.write_credentials(StorageDurability.PERSISTENT, "a", "r")
        storage.write_credentials(StorageDurability.EPHEMERAL, "a", "r")
        storage.durable.set(REDIRECT_KEY, "/vlog/1")

        storage.clear_credentials()

        assert storage.durable.is_empty()
        assert storage.ephemeral.is_empty()
        assert storage.durable.get(REDIRECT_KEY) == "/vlog/1"

    def test_tier_lookup(self, tmp_path):
        storage = self._storage(tmp_path)

        assert storage.tier(StorageDurability.PERSISTENT) is storage.durable
        assert storage.tier(StorageDurability.EPHEMERAL) is storage.ephemeral

    def test_write_sets_both_keys(self):
        storage = CredentialStorage(durable=MemoryStore(), ephemeral=MemoryStore())
        storage.write_credentials(StorageDurability.EPHEMERAL, "a", "r")

        assert storage.ephemeral.get(ACCESS_KEY) == "a"
        assert storage.ephemeral.get(RENEWAL_KEY) == "r"
        assert storage.durable.is_empty()
