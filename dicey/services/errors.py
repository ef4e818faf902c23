class DecisionError(Exception):
    """Base class for failures raised by the room decision services.

    ``kind`` is the stable name the web layer maps to a status code.
    """

    kind = "decision_error"

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class NotFound(DecisionError):
    kind = "not_found"


class PermissionDenied(DecisionError):
    kind = "permission_denied"


class InvalidState(DecisionError):
    kind = "invalid_state"


class ValidationError(DecisionError):
    kind = "validation_error"


class CapacityExceeded(DecisionError):
    kind = "capacity_exceeded"
