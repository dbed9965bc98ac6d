import httpx
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from rq.job import Job

from jeebank.core.errors import InfrastructureError
from jeebank.jobs.push import deliver_push
from jeebank.services.events import QUESTION_CREATE, QUESTION_UPDATE, decode_push_envelope
from jeebank.services.publisher import RQEventPublisher

ENDPOINT = "http://localhost:8080/api/questions/subscriber"


class StubRedis:
    def __init__(self):
        self.values = {}

    def set(self, key, value, ex=None, get=False):
        previous = self.values.get(key)
        self.values[key] = value
        return previous


class StubJob:
    def __init__(self, job_id):
        self.id = job_id


class StubQueue:
    name = "question-writes"

    def __init__(self, fail=False):
        self.calls = []
        self.fail = fail

    def enqueue(self, func, *args, **kwargs):
        if self.fail:
            raise RedisConnectionError("connection refused")
        self.calls.append((func, args, kwargs))
        return StubJob(kwargs["job_id"])


@pytest.fixture
def queue():
    return StubQueue()


@pytest.fixture
def publisher(queue, monkeypatch):
    monkeypatch.setattr(Job, "exists", classmethod(lambda cls, job_id, connection=None: True))
    return RQEventPublisher(StubRedis(), queue, ENDPOINT, subscription="question-writes-push", max_retries=3)


def test_publish_enqueues_push_delivery(publisher, queue):
    message_id = publisher.publish_event(QUESTION_CREATE, {"id": "q1", "data": {"topic": "Optics"}}, "q1")

    [(func, args, kwargs)] = queue.calls
    assert func is deliver_push
    endpoint, envelope, timeout = args
    assert endpoint == ENDPOINT
    assert timeout == 10.0
    assert kwargs["job_id"] == message_id
    assert kwargs["depends_on"] is None
    assert kwargs["retry"].max == 3

    assert envelope["subscription"] == "question-writes-push"
    assert envelope["message"]["orderingKey"] == "q1"
    event = decode_push_envelope(envelope)
    assert event.event_type == QUESTION_CREATE
    assert event.payload == {"id": "q1", "data": {"topic": "Optics"}}
    assert event.message_id == message_id
    assert isinstance(event.timestamp, int)


def test_events_with_the_same_key_are_chained(publisher, queue):
    first = publisher.publish_event(QUESTION_CREATE, {"id": "q1"}, "q1")
    publisher.publish_event(QUESTION_UPDATE, {"id": "q1"}, "q1")
    publisher.publish_event(QUESTION_CREATE, {"id": "q2"}, "q2")

    chained = queue.calls[1][2]["depends_on"]
    assert chained.dependencies == [first]
    assert chained.allow_failure is True
    assert queue.calls[2][2]["depends_on"] is None


def test_finished_predecessor_is_not_waited_on(publisher, queue, monkeypatch):
    publisher.publish_event(QUESTION_CREATE, {"id": "q1"}, "q1")
    monkeypatch.setattr(Job, "exists", classmethod(lambda cls, job_id, connection=None: False))
    publisher.publish_event(QUESTION_UPDATE, {"id": "q1"}, "q1")
    assert queue.calls[1][2]["depends_on"] is None


def test_events_without_key_are_not_ordered(publisher, queue):
    publisher.publish_event(QUESTION_CREATE, {"id": "q1"})
    publisher.publish_event(QUESTION_CREATE, {"id": "q1"})
    assert [call[2]["depends_on"] for call in queue.calls] == [None, None]
    assert "orderingKey" not in queue.calls[0][1][1]["message"]


def test_retries_can_be_disabled(queue):
    publisher = RQEventPublisher(StubRedis(), queue, ENDPOINT, max_retries=0)
    publisher.publish_event(QUESTION_CREATE, {"id": "q1"})
    assert queue.calls[0][2]["retry"] is None


def test_queue_failure_is_infrastructure_error():
    publisher = RQEventPublisher(StubRedis(), StubQueue(fail=True), ENDPOINT)
    with pytest.raises(InfrastructureError) as exc_info:
        publisher.publish_event(QUESTION_CREATE, {"id": "q1"}, "q1")
    assert exc_info.value.status_code == 500


def respond_with(monkeypatch, status_code, sent):
    def fake_post(url, json=None, timeout=None):
        sent.append((url, json, timeout))
        return httpx.Response(status_code, text="body", request=httpx.Request("POST", url))

    monkeypatch.setattr(httpx, "post", fake_post)


def test_deliver_push_success(monkeypatch):
    sent = []
    respond_with(monkeypatch, 200, sent)
    envelope = {"message": {"data": "e30=", "messageId": "m1"}}
    assert deliver_push(ENDPOINT, envelope, 5.0) == 200
    assert sent == [(ENDPOINT, envelope, 5.0)]


def test_deliver_push_rejection_is_not_retried(monkeypatch):
    respond_with(monkeypatch, 400, [])
    assert deliver_push(ENDPOINT, {"message": {"data": "e30="}}) == 400


def test_deliver_push_server_error_raises(monkeypatch):
    respond_with(monkeypatch, 503, [])
    with pytest.raises(httpx.HTTPStatusError):
        deliver_push(ENDPOINT, {"message": {"data": "e30="}})


def test_deliver_push_transport_error_raises(monkeypatch):
    def refuse(url, json=None, timeout=None):
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(httpx, "post", refuse)
    with pytest.raises(httpx.ConnectError):
        deliver_push(ENDPOINT, {"message": {"data": "e30="}})
