import threading

import pytest

from polyarch.sessions import InMemorySessionStore, Turn


def test_unknown_session_is_empty():
    assert InMemorySessionStore().get("nobody") == []


def test_append_creates_session_in_order():
    store = InMemorySessionStore()
    store.append("s1", Turn("user", "hi"))
    store.append("s1", Turn("assistant", "hello"))
    assert store.get("s1") == [Turn("user", "hi"), Turn("assistant", "hello")]
    assert store.get("s2") == []


def test_window_keeps_most_recent_turns():
    store = InMemorySessionStore()
    for i in range(25):
        store.append("s", Turn("user" if i % 2 == 0 else "assistant", f"m{i}"))
    turns = store.get("s")
    assert len(turns) == 20
    assert [t.content for t in turns] == [f"m{i}" for i in range(5, 25)]


def test_get_returns_a_copy():
    store = InMemorySessionStore()
    store.append("s", Turn("user", "hi"))
    store.get("s").append(Turn("user", "injected"))
    assert len(store.get("s")) == 1


def test_clear():
    store = InMemorySessionStore()
    store.append("s", Turn("user", "hi"))
    store.clear("s")
    store.clear("never-existed")
    assert store.get("s") == []
    assert len(store) == 0


def test_rejects_non_positive_window():
    with pytest.raises(ValueError):
        InMemorySessionStore(max_turns=0)


def test_concurrent_appends_do_not_lose_turns():
    store = InMemorySessionStore(max_turns=1000)

    def worker(n):
        for i in range(100):
            store.append("shared", Turn("user", f"{n}-{i}"))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(store.get("shared")) == 800
