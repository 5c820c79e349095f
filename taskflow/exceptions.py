"""
Typed outcomes raised by the service layer.

Everything here is an expected result of a business rule, not a crash.
The HTTP layer maps each kind to a status code in ``taskflow.main``;
library callers catch ``TaskFlowError`` or the specific kind.
"""


class TaskFlowError(Exception):
    """Base class for every expected service-layer failure."""

    error = "Bad Request"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(TaskFlowError):
    error = "Resource Not Found"

    def __init__(self, kind: str, key, key_name: str = "ID"):
        super().__init__(f"{kind} not found with {key_name}: {key}")
        self.kind = kind
        self.key = key


class Unauthorized(TaskFlowError):
    error = "Unauthorized"

    def __init__(self, message: str = "You don't have access to this resource"):
        super().__init__(message)


class Conflict(TaskFlowError):
    error = "Conflict"


class InvalidState(TaskFlowError):
    error = "Invalid State"


class InvalidTransition(TaskFlowError):
    error = "Invalid Transition"

    def __init__(self, current, requested):
        super().__init__(f"Invalid status transition: {current.name} -> {requested.name}")
        self.current = current
        self.requested = requested


class ValidationFailed(TaskFlowError):
    error = "Validation Failed"

    def __init__(self, field_errors: dict[str, str], message: str = "Invalid input data"):
        super().__init__(message)
        self.field_errors = dict(field_errors)

    @classmethod
    def from_pydantic(cls, errors) -> "ValidationFailed":
        """Build from ``ValidationError.errors()`` / ``RequestValidationError.errors()``."""
        field_errors = {}
        for err in errors:
            loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
            field = ".".join(loc) or "__root__"
            field_errors.setdefault(field, err.get("msg", "Invalid value"))
        return cls(field_errors)
