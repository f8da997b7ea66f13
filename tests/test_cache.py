from types import SimpleNamespace

from qos_report.core.cache import ReferenceDataCache


class FakeStat:
    """In-memory stand-in for os.stat keyed by path string."""

    def __init__(self):
        self.files = {}

    def __call__(self, path):
        if path not in self.files:
            raise FileNotFoundError(path)
        size, mtime = self.files[path]
        return SimpleNamespace(st_size=size, st_mtime=mtime)


class CountingLoader:
    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return [f"load-{self.calls}"]


def test_signature_is_sorted_and_marks_missing_files():
    stat = FakeStat()
    stat.files["/data/b.xlsx"] = (20, 2.5)
    stat.files["/data/a.xlsx"] = (10, 1.0)
    cache = ReferenceDataCache(stat=stat)

    signature = cache.signature(["/data/b.xlsx", "/data/a.xlsx", "/data/c.xlsx"])

    assert signature == "a.xlsx:10:1000|b.xlsx:20:2500|c.xlsx:missing"
    assert signature == cache.signature(["/data/c.xlsx", "/data/a.xlsx", "/data/b.xlsx"])


def test_unchanged_files_hit_the_cache():
    stat = FakeStat()
    stat.files["/data/plants.xlsx"] = (10, 1.0)
    cache = ReferenceDataCache(stat=stat)
    loader = CountingLoader()

    first = cache.get_or_load("plants", ["/data/plants.xlsx"], loader)
    second = cache.get_or_load("plants", ["/data/plants.xlsx"], loader)

    assert first is second
    assert loader.calls == 1
    assert "plants" in cache


def test_changed_file_triggers_reload():
    stat = FakeStat()
    stat.files["/data/plants.xlsx"] = (10, 1.0)
    cache = ReferenceDataCache(stat=stat)
    loader = CountingLoader()

    cache.get_or_load("plants", ["/data/plants.xlsx"], loader)
    stat.files["/data/plants.xlsx"] = (10, 2.0)
    value = cache.get_or_load("plants", ["/data/plants.xlsx"], loader)

    assert value == ["load-2"]
    assert loader.calls == 2


def test_invalidate_one_key_or_all():
    stat = FakeStat()
    cache = ReferenceDataCache(stat=stat)
    loader = CountingLoader()

    cache.get_or_load("plants", [], loader)
    cache.get_or_load("ppap", [], loader)
    cache.invalidate("plants")
    assert "plants" not in cache
    assert "ppap" in cache

    cache.get_or_load("plants", [], loader)
    assert loader.calls == 3

    cache.invalidate()
    assert "ppap" not in cache
