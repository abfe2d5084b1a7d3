"""
Request ID middleware - Inject X-Request-ID for request correlation.

The same id is used by @api_contract error envelopes and contract
violation log records, so a client-reported id can be traced to the log line.
"""

import uuid
from flask import Flask, request, g


REQUEST_ID_HEADER = 'X-Request-ID'


def setup_request_id_middleware(app: Flask) -> None:
    """
    Set up request ID middleware on Flask app.

    Injects X-Request-ID into:
    - Flask's g object (g.request_id)
    - Response headers (X-Request-ID)
    """

    @app.before_request
    def inject_request_id():
        # Use existing header if provided, otherwise generate new
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())

    @app.after_request
    def add_request_id_header(response):
        if hasattr(g, 'request_id'):
            response.headers.setdefault(REQUEST_ID_HEADER, g.request_id)
        return response


def get_request_id() -> str:
    """Current request ID, or a fresh UUID if none was assigned."""
    if hasattr(g, 'request_id'):
        return g.request_id
    return str(uuid.uuid4())
