"""Redis-based timer set for resuming runs suspended at Wait nodes."""

from datetime import datetime, timezone

from redis import Redis


class RedisWaitScheduler:
    """Sorted set of instance ids scored by the time they may resume."""

    def __init__(self, redis_client: Redis, key: str = "waits:due"):
        if redis_client is None:
            raise ValueError("redis_client is required")
        if not key:
            raise ValueError("key is required")
        self._redis = redis_client
        self._key = key

    def schedule(self, instance_id: str, resume_at: datetime) -> None:
        """Register an instance to resume at ``resume_at``."""
        if not instance_id:
            raise ValueError("instance_id is required")
        if resume_at is None:
            raise ValueError("resume_at is required")

        self._redis.zadd(self._key, {instance_id: resume_at.timestamp()})

    def claim_due(self, now: datetime | None = None, count: int = 10) -> list[str]:
        """Remove and return instances whose resume time has passed.

        An id is returned only to the caller whose ZREM removed it, so
        concurrent workers never claim the same instance twice.
        """
        if count <= 0:
            raise ValueError("count must be positive")

        now = now or datetime.now(timezone.utc)
        candidates = self._redis.zrangebyscore(
            self._key, "-inf", now.timestamp(), start=0, num=count
        )

        claimed = []
        for instance_id in candidates:
            if isinstance(instance_id, bytes):
                instance_id = instance_id.decode("utf-8")
            if self._redis.zrem(self._key, instance_id):
                claimed.append(instance_id)
        return claimed

    def cancel(self, instance_id: str) -> bool:
        """Drop a pending resume. Returns True if one was scheduled."""
        if not instance_id:
            raise ValueError("instance_id is required")
        return bool(self._redis.zrem(self._key, instance_id))

    def pending_count(self) -> int:
        return self._redis.zcard(self._key)

    def next_resume_at(self) -> datetime | None:
        """Earliest scheduled resume time, if any."""
        items = self._redis.zrange(self._key, 0, 0, withscores=True)
        if not items:
            return None
        _, score = items[0]
        return datetime.fromtimestamp(score, tz=timezone.utc)
