from __future__ import annotations

from finproj.utils.cache import TTLCache, input_key


def test_input_key_ignores_dict_order():
    assert input_key("debts", {"a": 1, "b": [1, 2]}) == input_key("debts", {"b": [1, 2], "a": 1})
    assert input_key("debts", {"a": 1}) != input_key("savings", {"a": 1})


def test_entries_expire(monkeypatch):
    cache = TTLCache(default_ttl_seconds=10)
    now = {"t": 1000.0}
    monkeypatch.setattr(cache, "_now", lambda: now["t"])

    cache.set("k", {"v": 1})
    assert cache.get("k") == {"v": 1}

    now["t"] += 11
    assert cache.get("k") is None
    assert len(cache) == 0


def test_counts_hits_and_misses():
    cache = TTLCache(default_ttl_seconds=60)
    assert cache.get("k") is None
    cache.set("k", 42)
    assert cache.get("k") == 42
    assert (cache.hits, cache.misses) == (1, 1)


def test_evicts_when_full():
    cache = TTLCache(default_ttl_seconds=60, max_items=10)
    for i in range(25):
        cache.set(f"k{i}", i)
    assert len(cache) <= 10
    assert cache.get("k24") == 24
