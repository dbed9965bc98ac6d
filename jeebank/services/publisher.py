"""
Publisher port for the asynchronous write path, and its RQ implementation.
"""
import logging
import uuid
from typing import Any, Dict, Optional, Protocol

from redis import Redis
from redis.exceptions import RedisError
from rq import Queue, Retry
from rq.job import Dependency, Job

from jeebank.core.errors import InfrastructureError
from jeebank.jobs.push import deliver_push
from jeebank.services.events import build_push_envelope

logger = logging.getLogger(__name__)

RETRY_INTERVALS = [1, 5, 15, 60, 300]


class EventPublisher(Protocol):
    def publish_event(self, event_type: str, payload: Dict[str, Any], ordering_key: str = "") -> str:
        """Durably enqueue a write event and return its message id."""
        ...


class RQEventPublisher:
    """
    Enqueues one ``deliver_push`` job per event.

    Jobs sharing an ordering key are chained with ``depends_on`` so that a
    worker never applies a later write for a record before an earlier one.
    No ordering is kept across keys.
    """

    def __init__(
        self,
        redis: Redis,
        queue: Queue,
        endpoint: str,
        subscription: Optional[str] = None,
        timeout: float = 10.0,
        max_retries: int = 5,
        ordering_ttl: int = 86400,
    ):
        self.redis = redis
        self.queue = queue
        self.endpoint = endpoint
        self.subscription = subscription
        self.timeout = timeout
        self.max_retries = max_retries
        self.ordering_ttl = ordering_ttl

    def _ordering_slot(self, ordering_key: str) -> str:
        return f"ordering:{self.queue.name}:{ordering_key}"

    def _claim_order(self, ordering_key: str, message_id: str) -> Optional[Dependency]:
        """Record ``message_id`` as the newest job for the key; return a dependency on the previous one."""
        if not ordering_key:
            return None
        previous = self.redis.set(self._ordering_slot(ordering_key), message_id, ex=self.ordering_ttl, get=True)
        if previous is None:
            return None
        previous = previous.decode() if isinstance(previous, bytes) else previous
        if not Job.exists(previous, connection=self.redis):
            return None
        return Dependency(jobs=[previous], allow_failure=True)

    def _retry(self) -> Optional[Retry]:
        if self.max_retries < 1:
            return None
        return Retry(max=self.max_retries, interval=RETRY_INTERVALS[: self.max_retries])

    def publish_event(self, event_type: str, payload: Dict[str, Any], ordering_key: str = "") -> str:
        message_id = uuid.uuid4().hex
        envelope = build_push_envelope(event_type, payload, message_id, ordering_key, self.subscription)
        try:
            depends_on = self._claim_order(ordering_key, message_id)
            job = self.queue.enqueue(
                deliver_push,
                self.endpoint,
                envelope,
                self.timeout,
                job_id=message_id,
                depends_on=depends_on,
                retry=self._retry(),
                description=f"{event_type} {ordering_key}".strip(),
            )
        except RedisError as e:
            logger.error(f"Failed to publish {event_type}: {e}")
            raise InfrastructureError(f"Failed to publish {event_type} event", str(e)) from e
        logger.info(f"Published {event_type} as message {job.id} (ordering key: {ordering_key or '-'})")
        return job.id
