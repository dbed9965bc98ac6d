import enum


class Subject(str, enum.Enum):
    PHYSICS = "Physics"
    CHEMISTRY = "Chemistry"
    MATHEMATICS = "Mathematics"


class ClassLevel(str, enum.Enum):
    ELEVENTH = "11"
    TWELFTH = "12"
    DROPPER = "dropper"


class Difficulty(str, enum.Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class Origin(str, enum.Enum):
    PLATFORM = "platform"
    MOCK_TEST = "mock_test"
    PREV_YEAR = "prev_year"


class AnswerType(str, enum.Enum):
    INPUT = "input"
    SINGLE_SELECT = "single-select"
    MULTI_SELECT = "multi-select"


class TestType(str, enum.Enum):
    MOCK = "mock"
    PREV_YEAR = "prev_year"


class AnswerStatus(str, enum.Enum):
    SKIP = "skip"
    REVIEW = "review"
    MARKED_FOR_REVIEW = "marked for review"
    ACCEPTED = "accepted"


class Verdict(str, enum.Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"


# Origins whose questions were lifted from a test and must say which one.
TEST_ORIGINS = frozenset({Origin.MOCK_TEST, Origin.PREV_YEAR})


def allowed_values(enum_cls) -> str:
    return ", ".join(member.value for member in enum_cls)
