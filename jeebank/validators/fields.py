"""
Reusable annotated field types for the record schemas.

Each helper attaches a fixed, human readable message to a pydantic type so
that the error list returned to clients reads the same whatever pydantic's
own wording is.
"""
from datetime import datetime
from typing import Annotated, Any, List

from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, AnyUrl, BeforeValidator, TypeAdapter, ValidationError, WrapValidator, conint, constr
from pydantic_core import PydanticCustomError

from jeebank.models.enums import allowed_values

_url_adapter = TypeAdapter(AnyUrl)


def reworded(tp: Any, message: str, error_type: str = "value_error") -> Any:
    """Validate as ``tp`` but report any failure with ``message``."""

    def _wrap(value, handler):
        try:
            return handler(value)
        except ValidationError:
            raise PydanticCustomError(error_type, message)

    return Annotated[tp, WrapValidator(_wrap)]


def one_of(enum_cls, label: str) -> Any:
    return reworded(enum_cls, f"{label} must be one of: {allowed_values(enum_cls)}", "enum")


def required_text(message: str) -> Any:
    return reworded(constr(min_length=1), message, "string_too_short")


def _json_number(value: Any) -> Any:
    # lax int parsing would take True and "30"; JSON numbers like 45.0 stay allowed
    if isinstance(value, (bool, str)):
        raise ValueError("expected a number")
    return value


def non_negative_int(message: str = "Number must be greater than or equal to 0") -> Any:
    return reworded(Annotated[conint(ge=0), BeforeValidator(_json_number)], message, "greater_than_equal")


def url_string(label: str) -> Any:
    """A URL kept verbatim as the caller sent it."""

    def _check(value: str) -> str:
        try:
            _url_adapter.validate_python(value)
        except ValidationError:
            raise PydanticCustomError("url_parsing", f"{label} must be a valid URL")
        return value

    return Annotated[str, AfterValidator(_check)]


def email_string(label: str) -> Any:
    """A bare address; the ``Name <addr>`` form is rejected."""

    def _check(value: str) -> str:
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError:
            raise PydanticCustomError("value_error", f"{label} must be a valid email")
        return value

    return Annotated[str, AfterValidator(_check)]


def iso_timestamp(label: str) -> Any:
    """An ISO-8601 date-time string, kept verbatim."""

    def _check(value: str) -> str:
        text = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
        try:
            if "T" not in text.upper():
                raise ValueError(value)
            datetime.fromisoformat(text)
        except ValueError:
            raise PydanticCustomError("datetime_parsing", f"{label} must be a valid ISO datetime")
        return value

    return Annotated[str, AfterValidator(_check)]


def min_items(count: int, message: str) -> Any:
    def _check(value: List[Any]) -> List[Any]:
        if len(value) < count:
            raise PydanticCustomError("too_short", message)
        return value

    return AfterValidator(_check)
