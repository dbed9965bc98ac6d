from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Response, status

from jeebank.api.deps import get_answer_publisher, get_answer_writes, get_settings, get_store
from jeebank.core.config import Settings
from jeebank.services.events import decode_push_envelope
from jeebank.services.publisher import EventPublisher
from jeebank.services.store import QuestionBankStore
from jeebank.services.writes import RecordWrites

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
def create_answer(
    response: Response,
    payload: Any = Body(...),
    settings: Settings = Depends(get_settings),
    writes: RecordWrites = Depends(get_answer_writes),
    publisher: EventPublisher = Depends(get_answer_publisher),
):
    if settings.ASYNC_WRITES:
        queued = writes.enqueue_create(publisher, payload)
        response.status_code = status.HTTP_202_ACCEPTED
        return {"success": True, **queued}
    answer = writes.create_record(payload)
    return {"success": True, "message": "Answer created successfully", "data": answer}


@router.post("/subscriber")
def process_answer_write(envelope: Any = Body(...), writes: RecordWrites = Depends(get_answer_writes)):
    event = decode_push_envelope(envelope)
    answer = writes.apply_event(event)
    return {"success": True, "message": f"Processed {event.event_type}", "data": answer}


@router.get("/{answer_id}")
def get_answer(answer_id: str, store: QuestionBankStore = Depends(get_store)):
    return {"success": True, "data": store.get_answer(answer_id)}


@router.get("")
def list_answers(
    question_id: Optional[str] = None,
    user_id: Optional[str] = None,
    verdict: Optional[str] = None,
    store: QuestionBankStore = Depends(get_store),
):
    filters = {"question_id": question_id, "user_id": user_id, "verdict": verdict}
    answers = store.list_answers({k: v for k, v in filters.items() if v})
    return {"success": True, "data": {"documents": answers}}


@router.put("/{answer_id}")
def update_answer(
    answer_id: str,
    response: Response,
    payload: Any = Body(...),
    settings: Settings = Depends(get_settings),
    writes: RecordWrites = Depends(get_answer_writes),
    publisher: EventPublisher = Depends(get_answer_publisher),
):
    if settings.ASYNC_WRITES:
        queued = writes.enqueue_update(publisher, answer_id, payload)
        response.status_code = status.HTTP_202_ACCEPTED
        return {"success": True, **queued}
    answer = writes.update_record(answer_id, payload)
    return {"success": True, "message": "Answer updated successfully", "data": answer}


@router.delete("/{answer_id}")
def delete_answer(answer_id: str, store: QuestionBankStore = Depends(get_store)):
    store.delete_answer(answer_id)
    return {"success": True, "message": "Answer deleted successfully"}
