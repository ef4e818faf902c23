from flask import current_app, jsonify

from dicey.services.errors import (
    CapacityExceeded,
    DecisionError,
    InvalidState,
    NotFound,
    PermissionDenied,
    ValidationError,
)

STATUS_CODES = {
    NotFound: 404,
    PermissionDenied: 403,
    InvalidState: 409,
    ValidationError: 400,
    CapacityExceeded: 409,
}


def status_code_for(error):
    for error_class, status_code in STATUS_CODES.items():
        if isinstance(error, error_class):
            return status_code
    return 400


def register_error_handlers(app):
    @app.errorhandler(DecisionError)
    def handle_decision_error(error):
        status_code = status_code_for(error)
        current_app.logger.info(
            "Rejected request (%s, %s): %s", error.kind, status_code, error.message
        )
        return (
            jsonify({"ok": False, "error": error.message, "kind": error.kind}),
            status_code,
        )
