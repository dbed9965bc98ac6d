"""
Persistence port for questions and answers, and its SQLAlchemy implementation.
"""
import logging
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from jeebank.core.database import Base
from jeebank.core.errors import InfrastructureError, NotFoundError
from jeebank.models.orm import AnswerRecord, Counter, QuestionRecord, utcnow

logger = logging.getLogger(__name__)

QUESTION_COUNTER = "questions"


class QuestionBankStore(Protocol):
    def create_question(self, data: Dict[str, Any], question_id: Optional[str] = None) -> Dict[str, Any]: ...
    def get_question(self, question_id: str) -> Dict[str, Any]: ...
    def list_questions(self, filters: Dict[str, str]) -> List[Dict[str, Any]]: ...
    def update_question(self, question_id: str, data: Dict[str, Any]) -> Dict[str, Any]: ...
    def delete_question(self, question_id: str) -> None: ...

    def create_answer(self, data: Dict[str, Any], answer_id: Optional[str] = None) -> Dict[str, Any]: ...
    def get_answer(self, answer_id: str) -> Dict[str, Any]: ...
    def list_answers(self, filters: Dict[str, str]) -> List[Dict[str, Any]]: ...
    def update_answer(self, answer_id: str, data: Dict[str, Any]) -> Dict[str, Any]: ...
    def delete_answer(self, answer_id: str) -> None: ...

    def next_sequence_number(self, counter_key: str) -> int: ...


def new_record_id() -> str:
    return uuid.uuid4().hex


class SqlQuestionBankStore:
    """QuestionBankStore backed by a relational database through SQLAlchemy."""

    def __init__(self, engine: Engine, session_factory: sessionmaker):
        self.engine = engine
        self._session_factory = session_factory

    def create_schema(self) -> None:
        Base.metadata.create_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def _transaction(self, failure: str) -> Iterator[Session]:
        """Session scoped to one transaction; database errors become InfrastructureError."""
        db = self._session_factory()
        try:
            with db.begin():
                yield db
        except SQLAlchemyError as e:
            logger.error(f"{failure}: {e}")
            raise InfrastructureError(failure, str(e)) from e
        finally:
            db.close()

    # ============= Counters =============

    def _increment(self, db: Session, counter_key: str) -> int:
        # Row lock serialises concurrent creations on the same counter.
        counter = db.get(Counter, counter_key, with_for_update=True)
        if counter is None:
            counter = Counter(key=counter_key, value=0)
            db.add(counter)
        counter.value += 1
        db.flush()
        return counter.value

    def next_sequence_number(self, counter_key: str) -> int:
        with self._transaction("Failed to get next sequence number") as db:
            return self._increment(db, counter_key)

    # ============= Questions =============

    def _question(self, db: Session, question_id: str) -> QuestionRecord:
        row = db.get(QuestionRecord, question_id)
        if row is None:
            raise NotFoundError("question", question_id)
        return row

    def create_question(self, data: Dict[str, Any], question_id: Optional[str] = None) -> Dict[str, Any]:
        with self._transaction("Failed to create question") as db:
            if question_id is not None:
                existing = db.get(QuestionRecord, question_id)
                if existing is not None:
                    logger.info(f"Question {question_id} already exists, skipping duplicate create")
                    return existing.to_dict()
            row = QuestionRecord(id=question_id or new_record_id())
            row.question_number = self._increment(db, QUESTION_COUNTER)
            row.apply_body(data)
            db.add(row)
            db.flush()
            logger.info(f"Created question {row.id} (#{row.question_number})")
            return row.to_dict()

    def get_question(self, question_id: str) -> Dict[str, Any]:
        with self._transaction("Failed to get question") as db:
            return self._question(db, question_id).to_dict()

    def list_questions(self, filters: Dict[str, str]) -> List[Dict[str, Any]]:
        stmt = select(QuestionRecord).order_by(QuestionRecord.question_number)
        for name in QuestionRecord.FILTERS:
            if filters.get(name):
                stmt = stmt.where(getattr(QuestionRecord, name) == filters[name])
        with self._transaction("Failed to list questions") as db:
            return [row.to_dict() for row in db.scalars(stmt)]

    def update_question(self, question_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        with self._transaction("Failed to update question") as db:
            row = self._question(db, question_id)
            row.apply_body(data)
            row.updated_at = utcnow()
            db.flush()
            return row.to_dict()

    def delete_question(self, question_id: str) -> None:
        with self._transaction("Failed to delete question") as db:
            db.delete(self._question(db, question_id))

    # ============= Answers =============

    def _answer(self, db: Session, answer_id: str) -> AnswerRecord:
        row = db.get(AnswerRecord, answer_id)
        if row is None:
            raise NotFoundError("answer", answer_id)
        return row

    def create_answer(self, data: Dict[str, Any], answer_id: Optional[str] = None) -> Dict[str, Any]:
        with self._transaction("Failed to create answer") as db:
            if answer_id is not None:
                existing = db.get(AnswerRecord, answer_id)
                if existing is not None:
                    logger.info(f"Answer {answer_id} already exists, skipping duplicate create")
                    return existing.to_dict()
            row = AnswerRecord(id=answer_id or new_record_id())
            row.apply_body(data)
            db.add(row)
            db.flush()
            return row.to_dict()

    def get_answer(self, answer_id: str) -> Dict[str, Any]:
        with self._transaction("Failed to get answer") as db:
            return self._answer(db, answer_id).to_dict()

    def list_answers(self, filters: Dict[str, str]) -> List[Dict[str, Any]]:
        stmt = select(AnswerRecord).order_by(AnswerRecord.created_at, AnswerRecord.id)
        for name in AnswerRecord.FILTERS:
            if filters.get(name):
                stmt = stmt.where(getattr(AnswerRecord, name) == filters[name])
        with self._transaction("Failed to list answers") as db:
            return [row.to_dict() for row in db.scalars(stmt)]

    def update_answer(self, answer_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        with self._transaction("Failed to update answer") as db:
            row = self._answer(db, answer_id)
            row.apply_body(data)
            row.updated_at = utcnow()
            db.flush()
            return row.to_dict()

    def delete_answer(self, answer_id: str) -> None:
        with self._transaction("Failed to delete answer") as db:
            db.delete(self._answer(db, answer_id))
