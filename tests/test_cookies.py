"""Tests for the lock-guarded cookie session."""

import threading

import httpx

from fluenthttp.cookies import CookieSession


def _jar(**values):
    cookies = httpx.Cookies()
    for name, value in values.items():
        cookies.set(name, value, domain="example.org")
    return cookies


def test_snapshot_is_a_copy():
    session = CookieSession(_jar(a="1"))
    snapshot = session.snapshot()
    snapshot.set("b", "2", domain="example.org")
    assert list(session) == ["a"]


def test_absorb_merges_and_overwrites():
    session = CookieSession(_jar(a="1"))
    session.absorb(_jar(a="2", b="3"))
    assert sorted(session) == ["a", "b"]
    assert session.cookies.get("a") == "2"


def test_describe_and_clear():
    session = CookieSession(_jar(sid="xyz"))
    assert session.describe() == ["sid = xyz / example.org/"]
    session.clear()
    assert len(session) == 0
    assert repr(session) == "CookieSession(0 cookies)"


def test_concurrent_absorb():
    session = CookieSession()

    def worker(index):
        for step in range(50):
            session.absorb(_jar(**{f"c{index}_{step}": "v"}))

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(session) == 200
