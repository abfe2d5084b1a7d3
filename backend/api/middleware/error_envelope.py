"""
Error envelope middleware - Standardize all error responses.

Provides consistent error response format:
{
    "error": {
        "code": "CONTRACT_VIOLATION",
        "message": "2 validation error(s): ...",
        "requestId": "uuid",
        "details": {"errors": [{"path": ["age"], "field": "age", ...}]}
    }
}

Views that call cast() / registry.get() directly (instead of going through
@api_contract) can let ValidationFailed and ContractNotFoundError propagate;
they are mapped to 400 and 404 here.
"""

import logging
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from api.contracts.registry import ContractNotFoundError
from api.contracts.validate import ValidationFailed

from .request_id import get_request_id


logger = logging.getLogger('api.middleware.error')


# Error codes reference
ERROR_CODES = {
    # Client errors (4xx)
    "BAD_REQUEST": 400,
    "NOT_FOUND": 404,
    "METHOD_NOT_ALLOWED": 405,
    "UNSUPPORTED_MEDIA_TYPE": 415,

    # Contract errors
    "INVALID_JSON": 400,
    "INVALID_CONTRACT_VERSION": 400,
    "CONTRACT_VIOLATION": 400,
    "CONTRACT_NOT_FOUND": 404,
    "RESPONSE_SCHEMA_MISMATCH": 500,

    # Server errors (5xx)
    "INTERNAL_ERROR": 500,
}


def setup_error_handlers(app: Flask) -> None:
    """
    Set up standardized error handlers on Flask app.

    Handles:
    - HTTP exceptions (400, 404, 500, etc.)
    - ValidationFailed (400) and ContractNotFoundError (404)
    - Unhandled Python exceptions
    """

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        # "Not Found" -> "NOT_FOUND"
        code = error.name.upper().replace(' ', '_')
        return make_error_response(code, error.description, status_code=error.code)

    @app.errorhandler(ValidationFailed)
    def handle_validation_failed(error):
        logger.warning(
            f"Contract violation: contract={error.contract} errors={len(error.errors)}",
            extra={
                "event": "contract_violation",
                "contract": error.contract,
                "request_id": get_request_id(),
            }
        )
        return make_error_response(
            "CONTRACT_VIOLATION",
            str(error),
            details={"errors": [e.to_dict() for e in error.errors]},
        )

    @app.errorhandler(ContractNotFoundError)
    def handle_contract_not_found(error):
        return make_error_response("CONTRACT_NOT_FOUND", str(error))

    @app.errorhandler(Exception)
    def handle_generic_error(error):
        """Handle unhandled Python exceptions."""
        request_id = get_request_id()

        logger.exception(
            f"Unhandled error: {error}",
            extra={
                "event": "unhandled_error",
                "request_id": request_id,
                "error_type": type(error).__name__,
            }
        )
        return make_error_response("INTERNAL_ERROR", "An unexpected error occurred")


def make_error_response(
    code: str,
    message: str,
    status_code: int = None,
    details: dict = None,
):
    """
    Create a standardized error response.

    Args:
        code: Error code (e.g., "CONTRACT_VIOLATION")
        message: Human-readable error message
        status_code: HTTP status code (defaults based on error code)
        details: Optional additional details dict

    Returns:
        Tuple of (response, status_code)
    """
    request_id = get_request_id()

    if status_code is None:
        status_code = ERROR_CODES.get(code, 500)

    error = {
        "error": {
            "code": code,
            "message": message,
            "requestId": request_id,
        }
    }
    if details:
        error["error"]["details"] = details

    response = jsonify(error)
    if request_id:
        response.headers['X-Request-ID'] = request_id

    return response, status_code
