"""
Answer submission schema and validation.

The ``answer`` payload is a sum type chosen by the sibling ``question_type``
field rather than by a tag inside the payload, so the dispatch happens in a
field validator instead of a pydantic discriminator. Each variant forbids the
keys of the others.
"""
from typing import Annotated, Any, Dict, List, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from jeebank.models.enums import AnswerStatus, AnswerType, TestType, Verdict
from jeebank.validators.fields import iso_timestamp, min_items, non_negative_int, one_of, required_text
from jeebank.validators.result import ValidationResult, run_schema

SelectedIndex = non_negative_int()


class SolvedDuringTest(BaseModel):
    test_type: one_of(TestType, "Test type")
    test_id: required_text("Test ID is required")
    duration_passed_when_solved: non_negative_int("Duration passed when solved must be a positive number")
    marked_as: one_of(AnswerStatus, "Marked as")


class InputAnswer(BaseModel):
    model_config = ConfigDict(extra="forbid")

    input: required_text("Input answer must not be empty")


class SingleSelectAnswer(BaseModel):
    model_config = ConfigDict(extra="forbid")

    selected_option: SelectedIndex


class MultiSelectAnswer(BaseModel):
    model_config = ConfigDict(extra="forbid")

    selected_options: Annotated[List[SelectedIndex], min_items(1, "Select at least one option")]


ANSWER_SHAPES: Dict[AnswerType, Type[BaseModel]] = {
    AnswerType.INPUT: InputAnswer,
    AnswerType.SINGLE_SELECT: SingleSelectAnswer,
    AnswerType.MULTI_SELECT: MultiSelectAnswer,
}

AnswerPayload = Union[InputAnswer, SingleSelectAnswer, MultiSelectAnswer]


class Answer(BaseModel):
    """An inbound answer submission."""

    model_config = ConfigDict(extra="ignore")

    question_id: required_text("Question ID is required")
    user_id: required_text("User ID is required")
    solved_during_test: Optional[SolvedDuringTest] = None
    time_taken: non_negative_int("Time taken must be a positive number")
    # must precede ``answer``: the answer validator reads it from info.data
    question_type: one_of(AnswerType, "Question type")
    answer: AnswerPayload
    verdict: one_of(Verdict, "Verdict")
    analysis_sheet_id: Optional[str] = None
    submittedAt: iso_timestamp("Submitted at")

    @field_validator("answer", mode="plain")
    @classmethod
    def answer_matches_question_type(cls, v: Any, info: ValidationInfo):
        question_type = info.data.get("question_type")
        shape = ANSWER_SHAPES.get(question_type)
        if shape is None:
            # question_type already failed; there is nothing to match against
            return v
        if isinstance(v, dict):
            v = {key: value for key, value in v.items() if value is not None}
        try:
            return shape.model_validate(v)
        except ValidationError:
            raise PydanticCustomError(
                "answer_type_mismatch",
                "Answer format does not match question type: {question_type}",
                {"question_type": question_type.value},
            )

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


def validate_answer(record: Any) -> ValidationResult[Answer]:
    """Validate an inbound answer submission, collecting every violation."""
    return run_schema(Answer, record, "answer")
