import time
import uuid
import redis
from django.conf import settings

def get_redis():
    return redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)


class LockNotAcquired(Exception):
    pass


class RedisLock:
    """
    Redis mutex shared by every worker process:
    - acquire: SET NX PX (optionally polling until ``timeout``)
    - renew:   SET XX PX
    - release: compare-and-delete (safe)

    Usable as a context manager, which blocks up to ``timeout`` seconds and
    raises LockNotAcquired if the lock is still held elsewhere.
    """

    POLL_INTERVAL = 0.05

    def __init__(self, key: str, ttl_seconds: float, timeout: float = 0):
        self.key = key
        self.ttl_ms = int(ttl_seconds * 1000)
        self.timeout = timeout
        self.token = uuid.uuid4().hex
        self.r = get_redis()

    def acquire(self, blocking: bool = False) -> bool:
        deadline = time.monotonic() + self.timeout
        while True:
            # SET key token NX PX ttl
            if self.r.set(self.key, self.token, nx=True, px=self.ttl_ms):
                return True
            if not blocking or time.monotonic() >= deadline:
                return False
            time.sleep(self.POLL_INTERVAL)

    def renew(self) -> bool:
        # Only renew if WE still own the lock
        current = self.r.get(self.key)
        if current != self.token:
            return False

        # SET key token XX PX ttl  (atomic renew)
        return bool(
            self.r.set(
                self.key,
                self.token,
                xx=True,
                px=self.ttl_ms,
            )
        )

    def release(self) -> bool:
        # Safe release: delete only if token matches
        pipe = self.r.pipeline()
        try:
            pipe.watch(self.key)
            if pipe.get(self.key) == self.token:
                pipe.multi()
                pipe.delete(self.key)
                pipe.execute()
                return True
            pipe.unwatch()
        except redis.WatchError:
            pass
        finally:
            pipe.reset()
        return False

    def __enter__(self):
        if not self.acquire(blocking=True):
            raise LockNotAcquired(self.key)
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False


def round_creation_lock() -> RedisLock:
    return RedisLock("roll:round:create", settings.ROLL_LOCK_TTL, timeout=settings.ROLL_LOCK_TIMEOUT)


def round_bets_lock(round_id) -> RedisLock:
    return RedisLock(f"roll:round:{round_id}:bets", settings.ROLL_LOCK_TTL, timeout=settings.ROLL_LOCK_TIMEOUT)


class LockHeartbeat:
    def __init__(self, lock: RedisLock, every_seconds: float = 5.0):
        self.lock = lock
        self.every = every_seconds
        self._next = time.monotonic() + self.every

    def tick(self):
        now = time.monotonic()
        if now >= self._next:
            if not self.lock.renew():
                raise RuntimeError("Lost engine lock")
            self._next = now + self.every
