"""
Error types shared by the store, the publisher and the HTTP layer.
"""
from typing import List, Optional


class QuestionBankError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = 500

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail if detail is not None else message

    def to_body(self) -> dict:
        return {"success": False, "message": self.message, "error": self.detail}


class RecordValidationError(QuestionBankError):
    """A record failed schema or business-rule validation."""

    status_code = 400

    def __init__(self, errors: List[str]):
        super().__init__("Validation failed", "; ".join(errors))
        self.errors = list(errors)

    def to_body(self) -> dict:
        return {"success": False, "errors": self.errors}


class NotFoundError(QuestionBankError):
    status_code = 404

    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind.capitalize()} not found", f"{kind} '{record_id}' does not exist")
        self.kind = kind
        self.record_id = record_id


class UnknownEventError(QuestionBankError):
    status_code = 400

    def __init__(self, event_type: Optional[str]):
        super().__init__("Unknown event type", f"Unrecognized eventType: {event_type}")
        self.event_type = event_type


class InfrastructureError(QuestionBankError):
    """Store, queue or transport failure. Never retried by this layer."""

    status_code = 500
