import copy

import pytest
from fastapi.testclient import TestClient

from jeebank.core.config import Settings
from jeebank.main import build_store, create_app

QUESTION = {
    "subject": "Physics",
    "for_class": "11",
    "topic": "Mechanics",
    "difficulty": "Medium",
    "origin": "platform",
    "test_info": None,
    "question_text": "A block of mass 2kg slides down a frictionless incline of angle 30 degrees. Find its acceleration.",
    "question_attachments": ["https://example.com/incline_diagram.png"],
    "answer_metadata": {"answer_type": "input", "correct_answer": "4.9 m/s^2"},
    "tags": ["Mechanics", "Inclined Plane"],
    "created_by": "author@example.com",
}

ANSWER = {
    "question_id": "question_001",
    "user_id": "user_123",
    "question_type": "single-select",
    "solved_during_test": {
        "test_type": "mock",
        "test_id": "mock_test_2025_03",
        "duration_passed_when_solved": 1800,
        "marked_as": "accepted",
    },
    "time_taken": 45,
    "answer": {"selected_option": 0},
    "verdict": "correct",
    "submittedAt": "2025-03-01T10:15:00.000Z",
}


class RecordingPublisher:
    def __init__(self):
        self.events = []

    def publish_event(self, event_type, payload, ordering_key=""):
        self.events.append((event_type, payload, ordering_key))
        return f"msg-{len(self.events)}"


@pytest.fixture
def make_question():
    def factory(**overrides):
        record = copy.deepcopy(QUESTION)
        record.update(overrides)
        return record
    return factory


@pytest.fixture
def make_answer():
    def factory(**overrides):
        record = copy.deepcopy(ANSWER)
        record.update(overrides)
        return record
    return factory


def make_settings(**overrides):
    return Settings(DATABASE_URL="sqlite://", REDIS_URL="redis://localhost:6379/15", **overrides)


@pytest.fixture
def store():
    s = build_store(make_settings())
    s.create_schema()
    yield s
    s.dispose()


@pytest.fixture
def publishers():
    return {"questions": RecordingPublisher(), "answers": RecordingPublisher()}


@pytest.fixture
def client(store, publishers):
    app = create_app(make_settings(ASYNC_WRITES=False), store=store, publishers=publishers)
    return TestClient(app)


@pytest.fixture
def async_client(store, publishers):
    app = create_app(make_settings(ASYNC_WRITES=True), store=store, publishers=publishers)
    return TestClient(app)
