import logging
from typing import Any, Dict

import httpx

logger = logging.getLogger(__name__)


def deliver_push(endpoint: str, envelope: Dict[str, Any], timeout: float = 10.0) -> int:
    """
    POST a push envelope to a subscriber endpoint.

    Transport errors and 5xx responses raise so that RQ retries the job.
    A 4xx means the subscriber rejected the message; retrying would not help,
    so it is logged and the job completes.
    """
    message_id = envelope.get("message", {}).get("messageId")
    response = httpx.post(endpoint, json=envelope, timeout=timeout)
    if response.status_code >= 500:
        logger.error(f"Push {message_id} to {endpoint} failed: {response.status_code} {response.text}")
        response.raise_for_status()
    if response.status_code >= 400:
        logger.warning(f"Push {message_id} rejected by {endpoint}: {response.status_code} {response.text}")
    else:
        logger.info(f"Push {message_id} delivered to {endpoint}")
    return response.status_code
