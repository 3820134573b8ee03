import threading
import time

import pytest


class FakeRedis:
    """In-process stand-in for the handful of Redis calls the locks make."""

    def __init__(self):
        self._data = {}
        self._expires = {}
        self._mutex = threading.Lock()

    def _purge(self, key):
        expires = self._expires.get(key)
        if expires is not None and expires <= time.monotonic():
            self._data.pop(key, None)
            self._expires.pop(key, None)

    def set(self, key, value, nx=False, xx=False, px=None):
        with self._mutex:
            self._purge(key)
            exists = key in self._data
            if (nx and exists) or (xx and not exists):
                return None
            self._data[key] = value
            if px:
                self._expires[key] = time.monotonic() + px / 1000
            else:
                self._expires.pop(key, None)
            return True

    def get(self, key):
        with self._mutex:
            self._purge(key)
            return self._data.get(key)

    def delete(self, *keys):
        with self._mutex:
            removed = 0
            for key in keys:
                self._expires.pop(key, None)
                if self._data.pop(key, None) is not None:
                    removed += 1
            return removed

    def pipeline(self):
        return FakePipeline(self)


class FakePipeline:
    def __init__(self, redis):
        self.redis = redis
        self._queued = []

    def watch(self, *keys):
        pass

    def unwatch(self):
        pass

    def get(self, key):
        return self.redis.get(key)

    def multi(self):
        self._queued = []

    def delete(self, *keys):
        self._queued.append(keys)

    def execute(self):
        results = [self.redis.delete(*keys) for keys in self._queued]
        self._queued = []
        return results

    def reset(self):
        self._queued = []


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    redis = FakeRedis()
    monkeypatch.setattr("roll.redis_lock.get_redis", lambda: redis)
    return redis


@pytest.fixture
def make_user(db, django_user_model):
    from wallets.models import Wallet

    def _make_user(username="player", balance=0, **extra):
        user = django_user_model.objects.create_user(
            username=username,
            email=f"{username}@example.com",
            password="not-a-real-password",
            **extra,
        )
        Wallet.objects.create(user=user, balance=balance)
        return user

    return _make_user


@pytest.fixture
def roll_settings(db):
    from roll.models import RollSettings

    obj, _ = RollSettings.objects.update_or_create(
        pk=1,
        defaults={
            "min_amount": 100,
            "max_amount_per_round": 1_000_000,
            "max_profit_per_round": 10_000_000,
            "house_edge": "0.05",
        },
    )
    return obj
