"""
Question schema and validation.

``answer_metadata`` is a discriminated union on ``answer_type``; the other
structural checks are field annotations, and the origin/test_info rule runs as
a field validator on ``test_info`` once ``origin`` has validated.
"""
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from jeebank.models.enums import TEST_ORIGINS, ClassLevel, Difficulty, Origin, Subject, TestType
from jeebank.validators.fields import email_string, min_items, non_negative_int, one_of, required_text, url_string
from jeebank.validators.result import ValidationResult, run_schema

QuestionAttachmentUrl = url_string("Question attachment")
AnswerAttachmentUrl = url_string("Answer attachment")
OptionIndex = non_negative_int("Correct option index must be a non-negative integer")
SubjectField = one_of(Subject, "Subject")
ClassLevelField = one_of(ClassLevel, "Class level")
DifficultyField = one_of(Difficulty, "Difficulty")
OriginField = one_of(Origin, "Origin")
TestTypeField = one_of(TestType, "Test type")
TestId = required_text("Test ID is required")
Topic = required_text("Topic is required")
QuestionText = required_text("Question text is required")
CreatedBy = email_string("Created by")


class TestInfo(BaseModel):
    test_type: TestTypeField
    test_id: TestId


class InputMetadata(BaseModel):
    answer_type: Literal["input"]
    correct_answer: Optional[str] = None
    options: List[str] = Field(default_factory=list)


class SingleSelectMetadata(BaseModel):
    answer_type: Literal["single-select"]
    options: Annotated[List[str], min_items(2, "Single-select questions must have at least 2 options")]
    correct_option: OptionIndex


class MultiSelectMetadata(BaseModel):
    answer_type: Literal["multi-select"]
    options: Annotated[List[str], min_items(2, "Multi-select questions must have at least 2 options")]
    correct_options: Annotated[
        List[OptionIndex], min_items(1, "Multi-select questions must mark at least 1 correct option")
    ]


AnswerMetadata = Annotated[
    Union[InputMetadata, SingleSelectMetadata, MultiSelectMetadata],
    Field(discriminator="answer_type"),
]


class Question(BaseModel):
    """An inbound question record, minus the store-assigned fields."""

    model_config = ConfigDict(extra="ignore")

    subject: SubjectField
    for_class: ClassLevelField
    topic: Topic
    difficulty: DifficultyField
    origin: OriginField
    test_info: Optional[List[TestInfo]] = Field(default=None, validate_default=True)
    question_text: QuestionText
    question_attachments: List[QuestionAttachmentUrl] = Field(default_factory=list)
    answer_metadata: AnswerMetadata
    tags: List[str] = Field(default_factory=list)
    created_by: CreatedBy
    answer_attachments: Dict[str, AnswerAttachmentUrl] = Field(default_factory=dict)

    @field_validator("test_info")
    @classmethod
    def test_origin_needs_test_info(cls, v: Optional[List[TestInfo]], info: ValidationInfo):
        # origin is absent from info.data when it failed its own check
        if info.data.get("origin") in TEST_ORIGINS and not v:
            raise PydanticCustomError(
                "missing_test_info", "Test info is required for mock_test or prev_year questions"
            )
        return v

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


def validate_question(record: Any) -> ValidationResult[Question]:
    """Validate an inbound question record, collecting every violation."""
    return run_schema(Question, record, "question")
