from redis.asyncio import Redis

from download_shields.core.config import configs


redis: Redis | None = None


def connect_redis() -> Redis:
    global redis
    redis = Redis(host=configs.redis_host, port=configs.redis_port)
    return redis


async def close_redis() -> None:
    global redis
    if redis is not None:
        await redis.aclose()
        redis = None


def get_redis() -> Redis:
    assert redis is not None
    return redis
