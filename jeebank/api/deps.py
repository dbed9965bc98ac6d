from fastapi import Request

from jeebank.core.config import Settings
from jeebank.services.publisher import EventPublisher
from jeebank.services.store import QuestionBankStore
from jeebank.services.writes import RecordWrites, answer_writes, question_writes


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> QuestionBankStore:
    return request.app.state.store


def get_question_writes(request: Request) -> RecordWrites:
    return question_writes(get_store(request))


def get_answer_writes(request: Request) -> RecordWrites:
    return answer_writes(get_store(request))


def get_question_publisher(request: Request) -> EventPublisher:
    return request.app.state.publishers["questions"]


def get_answer_publisher(request: Request) -> EventPublisher:
    return request.app.state.publishers["answers"]
