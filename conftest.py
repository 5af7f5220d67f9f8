"""Shared fixtures for the WordMatch test suite."""
from collections import OrderedDict, defaultdict

import pytest

import history
import ratelimit
import game_routes


class ManualHandle:
    def __init__(self, when, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Timer scheduler driven by advance() instead of wall-clock time."""

    def __init__(self):
        self.now = 0.0
        self._timers = []

    def call_later(self, delay, callback):
        handle = ManualHandle(round(self.now + delay, 6), callback)
        self._timers.append(handle)
        return handle

    @property
    def pending(self):
        return [h for h in self._timers if not h.cancelled]

    def advance(self, seconds):
        target = round(self.now + seconds, 6)
        while True:
            due = [h for h in self._timers if not h.cancelled and h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self._timers.remove(handle)
            self.now = handle.when
            handle.callback()
        self.now = target
        self._timers = [h for h in self._timers if not h.cancelled]


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def store(tmp_path, monkeypatch):
    """Point the history store at a fresh SQLite file."""
    monkeypatch.setattr(history, "DB_PATH", tmp_path / "wordmatch-test.db")
    history.init_history_db()
    return history


@pytest.fixture()
def seed_history(store):
    def _seed(pairs, lang_in="en", lang_out="fr"):
        for text, translated in pairs:
            store.save_translation(text, translated, lang_in, lang_out)
    return _seed


@pytest.fixture(autouse=True)
def fresh_state(monkeypatch):
    """Rate-limit buckets and game sessions never leak between tests."""
    monkeypatch.setattr(ratelimit, "_rate_buckets", defaultdict(list))
    monkeypatch.setattr(game_routes, "_games", OrderedDict())
