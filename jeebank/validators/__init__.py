from jeebank.validators.answer import Answer, validate_answer
from jeebank.validators.question import Question, validate_question
from jeebank.validators.result import ValidationResult

__all__ = ["Answer", "Question", "ValidationResult", "validate_answer", "validate_question"]
