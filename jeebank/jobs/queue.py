from typing import Dict

from redis import Redis
from rq import Queue

from jeebank.core.config import Settings


def build_redis(settings: Settings) -> Redis:
    return Redis.from_url(settings.REDIS_URL)


def build_queues(settings: Settings, redis: Redis) -> Dict[str, Queue]:
    """Write queues keyed by the resource collection they feed."""
    return {
        "questions": Queue(settings.QUESTION_WRITES_QUEUE, connection=redis),
        "answers": Queue(settings.ANSWER_WRITES_QUEUE, connection=redis),
    }
