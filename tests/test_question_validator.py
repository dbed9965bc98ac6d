from jeebank.validators import validate_question
from jeebank.validators.result import run_schema

TEST_INFO_REQUIRED = "test_info: Test info is required for mock_test or prev_year questions"


def test_valid_platform_input_question(make_question):
    result = validate_question(make_question())
    assert result.is_valid
    assert result.errors == []


def test_minimal_record_from_docs():
    record = {
        "subject": "Physics", "for_class": "11", "topic": "Mechanics", "difficulty": "Medium",
        "origin": "platform", "test_info": None, "question_text": "...",
        "answer_metadata": {"answer_type": "input"}, "created_by": "a@b.com",
    }
    assert validate_question(record).is_valid

    record["created_by"] = "not-an-email"
    result = validate_question(record)
    assert not result.is_valid
    assert result.errors == ["created_by: Created by must be a valid email"]


def test_defaults_are_filled_in(make_question):
    record = make_question()
    for key in ("question_attachments", "tags", "answer_attachments"):
        record.pop(key, None)
    body = validate_question(record).value.to_record()
    assert body["question_attachments"] == []
    assert body["tags"] == []
    assert body["answer_attachments"] == {}
    assert body["answer_metadata"] == {"answer_type": "input", "correct_answer": "4.9 m/s^2", "options": []}


def test_unknown_fields_are_dropped(make_question):
    body = validate_question(make_question(_id="question_001", createdAt="2025-01-01")).value.to_record()
    assert "_id" not in body
    assert "createdAt" not in body


def test_missing_subject_is_reported_on_subject(make_question):
    record = make_question()
    del record["subject"]
    result = validate_question(record)
    assert not result.is_valid
    assert any(e.startswith("subject: ") for e in result.errors)


def test_enum_errors_list_allowed_values(make_question):
    result = validate_question(make_question(subject="Biology", for_class="10", difficulty="Insane"))
    assert result.errors == [
        "subject: Subject must be one of: Physics, Chemistry, Mathematics",
        "for_class: Class level must be one of: 11, 12, dropper",
        "difficulty: Difficulty must be one of: Easy, Medium, Hard",
    ]


def test_all_structural_errors_are_collected(make_question):
    result = validate_question(make_question(topic="", question_text="", origin="textbook"))
    assert "topic: Topic is required" in result.errors
    assert "question_text: Question text is required" in result.errors
    assert "origin: Origin must be one of: platform, mock_test, prev_year" in result.errors
    assert len(result.errors) == 3


def test_mock_test_without_test_info(make_question):
    result = validate_question(make_question(origin="mock_test", test_info=None))
    assert not result.is_valid
    assert result.errors == [TEST_INFO_REQUIRED]


def test_prev_year_with_empty_test_info(make_question):
    result = validate_question(make_question(origin="prev_year", test_info=[]))
    assert result.errors == [TEST_INFO_REQUIRED]


def test_prev_year_without_test_info_key(make_question):
    record = make_question(origin="prev_year")
    del record["test_info"]
    assert validate_question(record).errors == [TEST_INFO_REQUIRED]


def test_mock_test_with_test_info(make_question):
    result = validate_question(
        make_question(origin="mock_test", test_info=[{"test_type": "mock", "test_id": "mock_test_2025_03"}])
    )
    assert result.is_valid


def test_platform_question_may_carry_test_info(make_question):
    result = validate_question(make_question(test_info=[{"test_type": "prev_year", "test_id": "jee_adv_2024"}]))
    assert result.is_valid


def test_test_info_entries_are_checked(make_question):
    result = validate_question(
        make_question(origin="mock_test", test_info=[{"test_type": "quiz", "test_id": ""}])
    )
    assert result.errors == [
        "test_info.0.test_type: Test type must be one of: mock, prev_year",
        "test_info.0.test_id: Test ID is required",
    ]


def test_single_select_needs_two_options(make_question):
    metadata = {"answer_type": "single-select", "options": ["NaCl"], "correct_option": 0}
    result = validate_question(make_question(answer_metadata=metadata))
    assert not result.is_valid
    assert result.errors == ["answer_metadata.options: Single-select questions must have at least 2 options"]
    assert "at least 2 options" in result.errors[0]


def test_multi_select_needs_two_options(make_question):
    metadata = {"answer_type": "multi-select", "options": ["x^2"], "correct_options": [0]}
    result = validate_question(make_question(answer_metadata=metadata))
    assert result.errors == ["answer_metadata.options: Multi-select questions must have at least 2 options"]


def test_valid_select_metadata(make_question):
    single = {"answer_type": "single-select", "options": ["2-butanol", "Benzene"], "correct_option": 0}
    multi = {"answer_type": "multi-select", "options": ["|x|", "x^2", "sin x"], "correct_options": [1, 2]}
    assert validate_question(make_question(answer_metadata=single)).is_valid
    assert validate_question(make_question(answer_metadata=multi)).is_valid


def test_negative_correct_option(make_question):
    metadata = {"answer_type": "single-select", "options": ["a", "b"], "correct_option": -1}
    result = validate_question(make_question(answer_metadata=metadata))
    assert result.errors == ["answer_metadata.correct_option: Correct option index must be a non-negative integer"]


def test_unknown_answer_type(make_question):
    result = validate_question(make_question(answer_metadata={"answer_type": "essay"}))
    assert not result.is_valid
    assert len(result.errors) == 1
    assert result.errors[0].startswith("answer_metadata: ")


def test_invalid_attachment_urls(make_question):
    result = validate_question(
        make_question(
            question_attachments=["https://example.com/ok.png", "invalid-url"],
            answer_attachments={"option1_attachment": "not a url"},
        )
    )
    assert result.errors == [
        "question_attachments.1: Question attachment must be a valid URL",
        "answer_attachments.option1_attachment: Answer attachment must be a valid URL",
    ]


def test_attachments_are_kept_verbatim(make_question):
    body = validate_question(make_question(question_attachments=["https://example.com"])).value.to_record()
    assert body["question_attachments"] == ["https://example.com"]


def test_record_level_error_has_no_path():
    result = validate_question(None)
    assert not result.is_valid
    assert len(result.errors) == 1
    assert not result.errors[0].startswith(":")
    assert "dictionary" in result.errors[0]


def test_validation_is_repeatable(make_question):
    record = make_question(subject="Biology", origin="mock_test")
    assert validate_question(record).to_dict() == validate_question(record).to_dict()
    assert validate_question(make_question()).to_dict() == {"isValid": True, "errors": []}


def test_unexpected_fault_becomes_single_error():
    class Exploding:
        @classmethod
        def model_validate(cls, record):
            raise RuntimeError("boom")

    result = run_schema(Exploding, {}, "question")
    assert not result.is_valid
    assert result.errors == ["An unexpected error occurred during validation: boom"]


def test_created_by_must_be_a_bare_address(make_question):
    for value in ("Jane Doe <jane@example.com>", "<jane@example.com>", "jane@", "jane example.com"):
        result = validate_question(make_question(created_by=value))
        assert result.errors == ["created_by: Created by must be a valid email"], value


def test_test_info_entries_need_a_test_type(make_question):
    result = validate_question(make_question(origin="mock_test", test_info=[{"test_id": "mock_test_2025_03"}]))
    assert not result.is_valid
    assert result.errors[0].startswith("test_info.0.test_type: ")


def test_integral_float_option_index(make_question):
    metadata = {"answer_type": "single-select", "options": ["a", "b"], "correct_option": 1.0}
    result = validate_question(make_question(answer_metadata=metadata))
    assert result.is_valid
    assert result.value.to_record()["answer_metadata"]["correct_option"] == 1
