from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    SCHEDULING_CONFLICT = "scheduling_conflict"
    NOT_FOUND = "not_found"
    UPSTREAM_FAILURE = "upstream_failure"
    PARTIAL_FAILURE = "partial_failure"


class SchedulingError(Exception):
    """Base for every failure the engine reports to the calling layer."""

    kind: ErrorKind = ErrorKind.INVALID_INPUT

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "error": self.message}


class InvalidInput(SchedulingError):
    kind = ErrorKind.INVALID_INPUT

    def __init__(self, message: str, available_types: list[str] | None = None) -> None:
        super().__init__(message)
        self.available_types = available_types or []

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        if self.available_types:
            body["available_types"] = self.available_types
        return body


class BookingRejected(SchedulingError):
    """Validation failed; carries every accumulated issue."""

    def __init__(self, issues: list[Any], alternatives: list[Any] | None = None) -> None:
        super().__init__("; ".join(issue.message for issue in issues))
        self.issues = issues
        self.alternatives = alternatives or []
        if any(issue.kind == ErrorKind.SCHEDULING_CONFLICT for issue in issues):
            self.kind = ErrorKind.SCHEDULING_CONFLICT
        else:
            self.kind = ErrorKind.INVALID_INPUT

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "errors": [issue.message for issue in self.issues],
            "alternatives": [_dump(a) for a in self.alternatives],
        }


class NotFound(SchedulingError):
    """No record matched, or more than one did; callers cannot tell which."""

    kind = ErrorKind.NOT_FOUND


class UpstreamFailure(SchedulingError):
    kind = ErrorKind.UPSTREAM_FAILURE


class PartialFailure(SchedulingError):
    """Old appointment was deleted but the new one could not be created."""

    kind = ErrorKind.PARTIAL_FAILURE

    def __init__(self, message: str, deleted_event_id: str) -> None:
        super().__init__(message)
        self.deleted_event_id = deleted_event_id

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["deleted_event_id"] = self.deleted_event_id
        return body


def _dump(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    return value
