from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Response, status

from jeebank.api.deps import get_question_publisher, get_question_writes, get_settings, get_store
from jeebank.core.config import Settings
from jeebank.services.events import decode_push_envelope
from jeebank.services.publisher import EventPublisher
from jeebank.services.store import QuestionBankStore
from jeebank.services.writes import RecordWrites

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
def create_question(
    response: Response,
    payload: Any = Body(...),
    settings: Settings = Depends(get_settings),
    writes: RecordWrites = Depends(get_question_writes),
    publisher: EventPublisher = Depends(get_question_publisher),
):
    if settings.ASYNC_WRITES:
        queued = writes.enqueue_create(publisher, payload)
        response.status_code = status.HTTP_202_ACCEPTED
        return {"success": True, **queued}
    question = writes.create_record(payload)
    return {"success": True, "message": "Question created successfully", "data": question}


@router.post("/subscriber")
def process_question_write(envelope: Any = Body(...), writes: RecordWrites = Depends(get_question_writes)):
    """Push endpoint draining the question write queue."""
    event = decode_push_envelope(envelope)
    question = writes.apply_event(event)
    return {"success": True, "message": f"Processed {event.event_type}", "data": question}


@router.get("/{question_id}")
def get_question(question_id: str, store: QuestionBankStore = Depends(get_store)):
    return {"success": True, "data": store.get_question(question_id)}


@router.get("")
def list_questions(
    subject: Optional[str] = None,
    for_class: Optional[str] = None,
    topic: Optional[str] = None,
    difficulty: Optional[str] = None,
    origin: Optional[str] = None,
    store: QuestionBankStore = Depends(get_store),
):
    filters = {"subject": subject, "for_class": for_class, "topic": topic, "difficulty": difficulty, "origin": origin}
    documents = store.list_questions({k: v for k, v in filters.items() if v})
    return {"success": True, "data": {"documents": documents}}


@router.put("/{question_id}")
def update_question(
    question_id: str,
    response: Response,
    payload: Any = Body(...),
    settings: Settings = Depends(get_settings),
    writes: RecordWrites = Depends(get_question_writes),
    publisher: EventPublisher = Depends(get_question_publisher),
):
    if settings.ASYNC_WRITES:
        queued = writes.enqueue_update(publisher, question_id, payload)
        response.status_code = status.HTTP_202_ACCEPTED
        return {"success": True, **queued}
    question = writes.update_record(question_id, payload)
    return {"success": True, "message": "Question updated successfully", "data": question}


@router.delete("/{question_id}")
def delete_question(question_id: str, store: QuestionBankStore = Depends(get_store)):
    store.delete_question(question_id)
    return {"success": True, "message": "Question deleted successfully"}
