"""
Validated create/update flows shared by the synchronous routes and the push
subscriber, plus the publish step of the asynchronous routes.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from jeebank.core.errors import RecordValidationError, UnknownEventError
from jeebank.services.events import WriteEvent
from jeebank.services.publisher import EventPublisher
from jeebank.services.store import QuestionBankStore, new_record_id
from jeebank.validators import ValidationResult, validate_answer, validate_question

logger = logging.getLogger(__name__)

# Fields owned by the store; never taken from a client patch.
SERVER_FIELDS = frozenset({"_id", "questionNumber", "createdAt", "updatedAt"})


def merge_patch(current: Dict[str, Any], patch: Any) -> Any:
    """Top-level merge of ``patch`` onto a stored record, minus store-owned fields."""
    if not isinstance(patch, dict):
        return patch
    merged = {key: value for key, value in current.items() if key not in SERVER_FIELDS}
    merged.update(patch)
    return merged


@dataclass
class RecordWrites:
    kind: str
    validate: Callable[[Any], ValidationResult]
    create: Callable[..., Dict[str, Any]]
    get: Callable[[str], Dict[str, Any]]
    update: Callable[[str, Dict[str, Any]], Dict[str, Any]]

    @property
    def create_event(self) -> str:
        return f"{self.kind}_create"

    @property
    def update_event(self) -> str:
        return f"{self.kind}_update"

    def validated(self, record: Any) -> Dict[str, Any]:
        result = self.validate(record)
        if not result.is_valid:
            raise RecordValidationError(result.errors)
        return result.value.to_record()

    def create_record(self, record: Any, record_id: Optional[str] = None) -> Dict[str, Any]:
        return self.create(self.validated(record), record_id)

    def merged_update(self, record_id: str, patch: Any) -> Dict[str, Any]:
        """Validate the stored record with ``patch`` applied; raises NotFoundError for unknown ids."""
        return self.validated(merge_patch(self.get(record_id), patch))

    def update_record(self, record_id: str, patch: Any) -> Dict[str, Any]:
        return self.update(record_id, self.merged_update(record_id, patch))

    def enqueue_create(self, publisher: EventPublisher, record: Any) -> Dict[str, str]:
        body = self.validated(record)
        record_id = new_record_id()
        message_id = publisher.publish_event(self.create_event, {"id": record_id, "data": body}, record_id)
        return {"id": record_id, "messageId": message_id}

    def enqueue_update(self, publisher: EventPublisher, record_id: str, patch: Any) -> Dict[str, str]:
        self.merged_update(record_id, patch)
        message_id = publisher.publish_event(self.update_event, {"id": record_id, "data": patch}, record_id)
        return {"id": record_id, "messageId": message_id}

    def apply_event(self, event: WriteEvent) -> Dict[str, Any]:
        """Apply a delivered write. Redelivery of the same message is harmless."""
        record_id = event.payload.get("id")
        data = event.payload.get("data")
        if event.event_type == self.create_event:
            logger.info(f"Applying {event.event_type} {record_id} (message {event.message_id})")
            return self.create_record(data, record_id)
        if event.event_type == self.update_event:
            if not record_id:
                raise RecordValidationError([f"id: {self.kind.capitalize()} ID is required"])
            logger.info(f"Applying {event.event_type} {record_id} (message {event.message_id})")
            return self.update_record(record_id, data)
        raise UnknownEventError(event.event_type)


def question_writes(store: QuestionBankStore) -> RecordWrites:
    return RecordWrites(
        kind="question",
        validate=validate_question,
        create=store.create_question,
        get=store.get_question,
        update=store.update_question,
    )


def answer_writes(store: QuestionBankStore) -> RecordWrites:
    return RecordWrites(
        kind="answer",
        validate=validate_answer,
        create=store.create_answer,
        get=store.get_answer,
        update=store.update_answer,
    )
