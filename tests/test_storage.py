"""
Unit tests for the storage module.

Tests the AvatarCacheStore class for cached Gravatar lookups.
"""

from gcontact_gravatar.storage.cache import AvatarCacheStore
from gcontact_gravatar.sync.avatar import AvatarResult


class TestAvatarCacheStoreInitialization:
    """Tests for cache initialization."""

    def test_initialize_creates_table(self):
        """Test that initialize creates the avatar_cache table."""
        cache = AvatarCacheStore(":memory:")
        cache.initialize()

        with cache.connection() as conn:
            cursor = conn.execute(
                "SELECT name FROM sqlite_master "
                "WHERE type='table' AND name='avatar_cache'"
            )
            assert cursor.fetchone() is not None

    def test_initialize_is_idempotent(self):
        """Test that initialize can be called repeatedly."""
        cache = AvatarCacheStore(":memory:")
        cache.initialize()
        cache.set("a@x.com", AvatarResult.absent())
        cache.initialize()

        assert cache.get("a@x.com") == AvatarResult.absent()

    def test_initialize_creates_parent_directory(self, tmp_path):
        """Test that a missing parent directory is created."""
        db_path = tmp_path / "nested" / "dir" / "cache.db"
        cache = AvatarCacheStore(str(db_path))
        cache.initialize()

        assert db_path.exists()


class TestAvatarCacheStoreEntries:
    """Tests for reading and writing entries."""

    def test_missing_entry_is_none(self):
        """Test that an unknown email has no entry."""
        cache = AvatarCacheStore(":memory:")
        cache.initialize()

        assert cache.get("unknown@example.com") is None

    def test_absent_distinct_from_missing(self):
        """Test that a cached absence is not the same as no entry."""
        cache = AvatarCacheStore(":memory:")
        cache.initialize()
        cache.set("x@example.com", AvatarResult.absent())

        result = cache.get("x@example.com")
        assert result is not None
        assert result.found is False

    def test_present_entry_keeps_bytes(self):
        """Test that image bytes survive storage unchanged."""
        cache = AvatarCacheStore(":memory:")
        cache.initialize()
        image = bytes(range(256))
        cache.set("a@x.com", AvatarResult.present(image))

        assert cache.get("a@x.com") == AvatarResult.present(image)

    def test_set_overwrites(self):
        """Test that writing again replaces the earlier result."""
        cache = AvatarCacheStore(":memory:")
        cache.initialize()
        cache.set("a@x.com", AvatarResult.absent())
        cache.set("a@x.com", AvatarResult.present(b"img"))

        assert cache.get("a@x.com") == AvatarResult.present(b"img")

    def test_keys_are_case_sensitive(self):
        """Test that keys are stored exactly as given."""
        cache = AvatarCacheStore(":memory:")
        cache.initialize()
        cache.set("A@x.com", AvatarResult.absent())

        assert cache.get("a@x.com") is None

    def test_file_cache_persists_across_instances(self, tmp_path):
        """Test that a file-backed cache is reused by later runs."""
        db_path = str(tmp_path / "cache.db")
        first = AvatarCacheStore(db_path)
        first.initialize()
        first.set("a@x.com", AvatarResult.present(b"img"))

        second = AvatarCacheStore(db_path)
        second.initialize()

        assert second.get("a@x.com") == AvatarResult.present(b"img")


class TestAvatarCacheStoreMaintenance:
    """Tests for stats and clearing."""

    def test_stats_counts(self):
        """Test present and absent counts."""
        cache = AvatarCacheStore(":memory:")
        cache.initialize()
        cache.set("a@x.com", AvatarResult.present(b"img"))
        cache.set("b@x.com", AvatarResult.absent())
        cache.set("c@x.com", AvatarResult.absent())

        assert cache.get_stats() == {"total": 3, "present": 1, "absent": 2}

    def test_stats_empty(self):
        """Test stats of an empty cache."""
        cache = AvatarCacheStore(":memory:")
        cache.initialize()

        assert cache.get_stats() == {"total": 0, "present": 0, "absent": 0}

    def test_clear_removes_everything(self):
        """Test that clear empties the cache and reports the count."""
        cache = AvatarCacheStore(":memory:")
        cache.initialize()
        cache.set("a@x.com", AvatarResult.present(b"img"))
        cache.set("b@x.com", AvatarResult.absent())

        assert cache.clear() == 2
        assert cache.get("a@x.com") is None
