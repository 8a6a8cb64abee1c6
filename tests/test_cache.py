import json
from datetime import date

from car_sitemap_sync.cache import CacheEntry, CacheErrorKind, CacheStore
from car_sitemap_sync.changes import ChangeTracker, fingerprint, resolve_last_modified
from car_sitemap_sync.delisting import cleanup_delisted

SITE = "https://www.diksxcars.co.ke"
OLD = date(2025, 1, 1)
TODAY = date(2025, 3, 1)


class TestCacheStore:
    def test_missing_file_is_empty_without_error(self, tmp_path):
        result = CacheStore(tmp_path / "cache.json").load()
        assert result.ok
        assert result.value == {}

    def test_corrupt_file_is_empty_with_error(self, tmp_path):
        path = tmp_path / "cache.json"
        path.write_text("{not json", encoding="utf-8")
        result = CacheStore(path).load()
        assert not result.ok
        assert result.error.kind is CacheErrorKind.DECODE
        assert result.value == {}

    def test_non_object_is_decode_error(self, tmp_path):
        path = tmp_path / "cache.json"
        path.write_text("[]", encoding="utf-8")
        assert CacheStore(path).load().error.kind is CacheErrorKind.DECODE

    def test_save_then_load(self, tmp_path):
        store = CacheStore(tmp_path / "nested" / "cache.json")
        entries = {f"{SITE}/vehicle/1": CacheEntry("abc", OLD)}
        assert store.save(entries).ok

        raw = json.loads(store.path.read_text(encoding="utf-8"))
        assert raw == {f"{SITE}/vehicle/1": {"fingerprint": "abc", "lastModified": "2025-01-01"}}
        assert store.load().value == entries

    def test_legacy_keys_and_bad_entries(self, tmp_path):
        path = tmp_path / "cache.json"
        path.write_text(json.dumps({
            f"{SITE}/vehicle/1": {"hash": "h1", "lastmod": "2024-12-31"},
            f"{SITE}/vehicle/2": {"hash": "h2"},
            f"{SITE}/vehicle/3": "garbage",
        }), encoding="utf-8")
        result = CacheStore(path).load()
        assert result.ok
        assert result.value == {f"{SITE}/vehicle/1": CacheEntry("h1", date(2024, 12, 31))}

    def test_save_failure_is_returned_not_raised(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        result = CacheStore(blocker / "cache.json").save({})
        assert not result.ok
        assert result.error.kind is CacheErrorKind.WRITE


class TestChangeDetection:
    def test_fingerprint_is_deterministic(self):
        payload = {"id": 1, "features": ["A", "B"]}
        assert fingerprint(payload) == fingerprint(dict(payload))
        assert fingerprint(payload) != fingerprint({"id": 1, "features": ["B", "A"]})

    def test_unchanged_keeps_cached_date(self):
        url = f"{SITE}/vehicle/1"
        cache = {url: CacheEntry("fp", OLD)}
        assert resolve_last_modified(url, "fp", cache, TODAY) == OLD

    def test_changed_or_new_gets_run_date(self):
        url = f"{SITE}/vehicle/1"
        cache = {url: CacheEntry("fp", OLD)}
        assert resolve_last_modified(url, "other", cache, TODAY) == TODAY
        assert resolve_last_modified(f"{SITE}/vehicle/2", "fp", cache, TODAY) == TODAY

    def test_tracker_stages_every_url(self):
        kept, changed, new = (f"{SITE}/vehicle/{i}" for i in (1, 2, 3))
        untouched = f"{SITE}/blogs/x"
        cache = {
            kept: CacheEntry("same", OLD),
            changed: CacheEntry("before", OLD),
            untouched: CacheEntry("b", OLD),
        }
        tracker = ChangeTracker(cache, TODAY)
        tracker.resolve(kept, "same")
        tracker.resolve(changed, "after")
        tracker.resolve(new, "fresh")

        assert tracker.staged == {
            kept: CacheEntry("same", OLD),
            changed: CacheEntry("after", TODAY),
            new: CacheEntry("fresh", TODAY),
        }
        assert (tracker.changed, tracker.unchanged) == (2, 1)
        assert tracker.merged()[untouched] == CacheEntry("b", OLD)
        assert tracker.merged()[changed] == CacheEntry("after", TODAY)


class TestDelisting:
    def test_removes_only_missing_urls_under_prefix(self):
        v1, v2, a5 = f"{SITE}/vehicle/1", f"{SITE}/vehicle/2", f"{SITE}/blogs/5"
        cache = {v1: CacheEntry("a", OLD), v2: CacheEntry("b", OLD), a5: CacheEntry("c", OLD)}

        result = cleanup_delisted(cache, [v1], "/vehicle/", "vehicles")

        assert set(result.cache) == {v1, a5}
        assert result.removed == [v2]
        assert result.total == 2
        assert set(cache) == {v1, v2, a5}  # input untouched

    def test_empty_active_set_clears_only_its_category(self):
        v1, acc = f"{SITE}/vehicle/1", f"{SITE}/accessory/rack"
        cache = {v1: CacheEntry("a", OLD), acc: CacheEntry("b", OLD)}
        result = cleanup_delisted(cache, [], "/accessory/", "accessories")
        assert set(result.cache) == {v1}
        assert result.removed_count == 1

    def test_nothing_to_remove(self):
        v1 = f"{SITE}/vehicle/1"
        result = cleanup_delisted({v1: CacheEntry("a", OLD)}, [v1], "/vehicle/", "vehicles")
        assert result.removed == []
        assert result.total == 1
