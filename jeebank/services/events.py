"""
Write events and the push-delivery envelope that carries them.

A message is ``{"eventType", "payload", "timestamp"}`` serialised as JSON and
base64 encoded into ``message.data`` of the envelope POSTed to a subscriber.
"""
import base64
import binascii
import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from jeebank.core.errors import InfrastructureError

QUESTION_CREATE = "question_create"
QUESTION_UPDATE = "question_update"
ANSWER_CREATE = "answer_create"
ANSWER_UPDATE = "answer_update"


class PushMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    data: str
    message_id: Optional[str] = Field(default=None, alias="messageId")
    ordering_key: Optional[str] = Field(default=None, alias="orderingKey")
    publish_time: Optional[str] = Field(default=None, alias="publishTime")
    attributes: Dict[str, str] = Field(default_factory=dict)


class PushEnvelope(BaseModel):
    message: PushMessage
    subscription: Optional[str] = None


@dataclass(frozen=True)
class WriteEvent:
    event_type: Optional[str]
    payload: Dict[str, Any]
    message_id: Optional[str] = None
    timestamp: Optional[int] = None


def encode_message(event_type: str, payload: Dict[str, Any]) -> str:
    message = {"eventType": event_type, "payload": payload, "timestamp": int(time.time() * 1000)}
    return base64.b64encode(json.dumps(message).encode("utf-8")).decode("ascii")


def build_push_envelope(
    event_type: str,
    payload: Dict[str, Any],
    message_id: str,
    ordering_key: str = "",
    subscription: Optional[str] = None,
) -> Dict[str, Any]:
    message = {
        "data": encode_message(event_type, payload),
        "messageId": message_id,
        "publishTime": datetime.now(timezone.utc).isoformat(),
        "attributes": {"eventType": event_type},
    }
    if ordering_key:
        message["orderingKey"] = ordering_key
    return {"message": message, "subscription": subscription}


def decode_push_envelope(body: Any) -> WriteEvent:
    """Parse a push envelope; any structural or decoding fault is an InfrastructureError."""
    try:
        envelope = PushEnvelope.model_validate(body)
        decoded = json.loads(base64.b64decode(envelope.message.data, validate=True).decode("utf-8"))
    except (ValidationError, binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise InfrastructureError("Malformed push envelope", str(e)) from e
    if not isinstance(decoded, dict):
        raise InfrastructureError("Malformed push envelope", "message data is not a JSON object")
    payload = decoded.get("payload")
    if not isinstance(payload, dict):
        raise InfrastructureError("Malformed push envelope", "message payload is not a JSON object")
    return WriteEvent(
        event_type=decoded.get("eventType"),
        payload=payload,
        message_id=envelope.message.message_id,
        timestamp=decoded.get("timestamp"),
    )
