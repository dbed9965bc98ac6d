from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import JSON, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from jeebank.core.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class Counter(Base):
    """Named monotonic counters, one row per key."""

    __tablename__ = "counters"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class QuestionRecord(Base):
    __tablename__ = "questions"
    __table_args__ = (
        Index("idx_questions_subject", "subject"),
        Index("idx_questions_for_class", "for_class"),
        Index("idx_questions_topic", "topic"),
        Index("idx_questions_difficulty", "difficulty"),
        Index("idx_questions_origin", "origin"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    question_number: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)
    # Filter columns, copied from body on every write.
    subject: Mapped[str] = mapped_column(String(32), nullable=False)
    for_class: Mapped[str] = mapped_column(String(16), nullable=False)
    topic: Mapped[str] = mapped_column(String(255), nullable=False)
    difficulty: Mapped[str] = mapped_column(String(16), nullable=False)
    origin: Mapped[str] = mapped_column(String(16), nullable=False)
    body: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    FILTERS = ("subject", "for_class", "topic", "difficulty", "origin")

    def apply_body(self, body: Dict[str, Any]) -> None:
        self.body = dict(body)
        for name in self.FILTERS:
            setattr(self, name, body[name])

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.body,
            "_id": self.id,
            "questionNumber": self.question_number,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class AnswerRecord(Base):
    __tablename__ = "answers"
    __table_args__ = (
        Index("idx_answers_question", "question_id"),
        Index("idx_answers_user", "user_id"),
        Index("idx_answers_verdict", "verdict"),
        Index("idx_answers_created", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    question_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    verdict: Mapped[str] = mapped_column(String(16), nullable=False)
    body: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    FILTERS = ("question_id", "user_id", "verdict")

    def apply_body(self, body: Dict[str, Any]) -> None:
        self.body = dict(body)
        for name in self.FILTERS:
            setattr(self, name, body[name])

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.body,
            "_id": self.id,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
