import logging
from dataclasses import dataclass, field
from typing import Any, Generic, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

# Fields holding discriminated unions; pydantic puts the tag after them in the error loc.
TAGGED_FIELDS = frozenset({"answer_metadata"})


@dataclass(frozen=True)
class ValidationResult(Generic[M]):
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    value: Optional[M] = None

    def to_dict(self) -> dict:
        return {"isValid": self.is_valid, "errors": list(self.errors)}


def error_path(loc: Tuple[Any, ...]) -> str:
    parts = []
    skip_next = False
    for item in loc:
        if skip_next:
            skip_next = False
            continue
        parts.append(str(item))
        if item in TAGGED_FIELDS:
            skip_next = True
    return ".".join(parts)


def format_errors(exc: ValidationError) -> List[str]:
    errors = []
    for err in exc.errors(include_url=False):
        path = error_path(err["loc"])
        errors.append(f"{path}: {err['msg']}" if path else err["msg"])
    return errors


def run_schema(model: Type[M], record: Any, kind: str) -> ValidationResult[M]:
    try:
        value = model.model_validate(record)
    except ValidationError as exc:
        return ValidationResult(False, format_errors(exc))
    except Exception as exc:
        logger.exception(f"{kind.capitalize()} validation error")
        return ValidationResult(False, [f"An unexpected error occurred during validation: {exc}"])
    return ValidationResult(True, [], value)
