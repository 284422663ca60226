"""
LuxRent Core Concurrency — Keyed Lock Registry Tests
======================================================
"""

from __future__ import annotations

import threading

import pytest

from core.concurrency import KeyedLockRegistry, LockTimeoutError


class TestKeyedLockRegistry:
    def test_same_key_same_lock(self):
        locks = KeyedLockRegistry()
        assert locks.lock_for("car-1") is locks.lock_for("car-1")
        assert locks.key_count == 1

    def test_different_keys_different_locks(self):
        locks = KeyedLockRegistry()
        assert locks.lock_for("car-1") is not locks.lock_for("car-2")

    def test_hold_releases_on_success(self):
        locks = KeyedLockRegistry()
        with locks.hold("car-1"):
            assert locks.is_locked("car-1")
        assert not locks.is_locked("car-1")

    def test_hold_releases_on_exception(self):
        locks = KeyedLockRegistry()
        with pytest.raises(RuntimeError):
            with locks.hold("car-1"):
                raise RuntimeError("boom")
        assert not locks.is_locked("car-1")

    def test_unknown_key_is_not_locked(self):
        assert not KeyedLockRegistry().is_locked("never-seen")

    def test_other_keys_proceed_while_one_is_held(self):
        locks = KeyedLockRegistry()
        acquired = threading.Event()

        def worker():
            with locks.hold("jet-2"):
                acquired.set()

        with locks.hold("jet-1"):
            t = threading.Thread(target=worker)
            t.start()
            assert acquired.wait(timeout=2)
            t.join(timeout=2)

    def test_timeout_when_key_is_held(self):
        locks = KeyedLockRegistry()
        errors = []

        def worker():
            try:
                with locks.hold("jet-1", timeout=0.05):
                    pass
            except LockTimeoutError as exc:
                errors.append(exc)

        with locks.hold("jet-1"):
            t = threading.Thread(target=worker)
            t.start()
            t.join(timeout=2)

        assert len(errors) == 1
        assert errors[0].key == "jet-1"

    def test_same_key_serializes_critical_sections(self):
        locks = KeyedLockRegistry()
        counter = {"value": 0}

        def bump():
            for _ in range(200):
                with locks.hold("villa-1"):
                    current = counter["value"]
                    counter["value"] = current + 1

        threads = [threading.Thread(target=bump) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert counter["value"] == 1600
