from __future__ import annotations

import threading

import pytest

from hashring.cache import LRUCache


def test_evicts_least_recently_used() -> None:
    c = LRUCache(2)
    c.set("a", 1)
    c.set("b", 2)
    assert c.get("a") == 1  # a is now most recent
    c.set("c", 3)
    assert "b" not in c
    assert c.get("a") == 1
    assert c.get("c") == 3
    assert len(c) == 2


def test_get_default_and_reset() -> None:
    c = LRUCache(3)
    sentinel = object()
    assert c.get("missing") is None
    assert c.get("missing", sentinel) is sentinel
    c.set("k", "v")
    assert c.items() == [("k", "v")]
    assert list(c) == ["k"]
    c.reset()
    assert len(c) == 0


def test_rejects_zero_size() -> None:
    with pytest.raises(ValueError):
        LRUCache(0)


def test_membership_under_concurrent_writes() -> None:
    c = LRUCache(64)
    errors: list[BaseException] = []

    def writer(base: int) -> None:
        try:
            for i in range(2000):
                c.set((base, i), i)
                assert len(c) <= 64
                assert isinstance((base, i) in c, bool)
        except BaseException as e:
            errors.append(e)

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert errors == []
    assert len(c) == 64
