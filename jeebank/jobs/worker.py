import logging

from rq import Worker

from jeebank.core.config import get_settings
from jeebank.jobs.queue import build_queues, build_redis

if __name__ == "__main__":
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    redis = build_redis(settings)
    w = Worker(list(build_queues(settings, redis).values()), connection=redis)
    w.work(with_scheduler=True)
