"""
@api_contract decorator - applies contract enforcement to route handlers.

Usage:
    @users_bp.route("/users", methods=["POST"])
    @api_contract("users", request_contract="CreateUserRequest",
                  response_contract="UserResponse")
    def create_user():
        body = g.contract_body  # typed, validated request body
        ...

The decorator:
1. Negotiates the contract version (X-API-Contract-Version header, then
   ?version=, otherwise latest)
2. Casts the JSON body against the request contract (400 on failure)
3. Calls the handler
4. Validates the handler's output against the response contract
   (500 on failure, the payload is never sent)
5. Adds X-Request-ID and X-API-Contract-Version headers

The registry comes from the app: app.extensions["contract_registry"].
"""

import functools
import logging
import time
import uuid
from typing import Any, Callable, Dict, Optional, Tuple, Union

from flask import Flask, Response, current_app, g, jsonify, request
from werkzeug.exceptions import HTTPException

from .registry import ContractNotFoundError, ContractRegistry
from .validate import ValidationFailed


logger = logging.getLogger('api.contracts')

REGISTRY_EXTENSION = "contract_registry"
DEFAULT_VERSION_HEADER = "X-API-Contract-Version"
DEFAULT_VERSION_PARAM = "version"


def init_contracts(app: Flask, registry: ContractRegistry) -> ContractRegistry:
    """Attach a registry to an app so @api_contract views can find it."""
    app.extensions[REGISTRY_EXTENSION] = registry
    return registry


def get_registry() -> ContractRegistry:
    """
    Get the registry of the current app.

    Raises:
        RuntimeError: If init_contracts() was never called for this app
    """
    registry = current_app.extensions.get(REGISTRY_EXTENSION)
    if registry is None:
        raise RuntimeError(
            "No contract registry on this app; call init_contracts(app, registry)"
        )
    return registry


def api_contract(
    group: str,
    request_contract: Optional[str] = None,
    response_contract: Optional[str] = None,
):
    """
    Decorator that enforces API contracts on route handlers.

    Args:
        group: Export group holding the contracts (e.g., "users")
        request_contract: Contract the JSON body must satisfy, if any
        response_contract: Contract the handler's output must satisfy, if any

    Returns:
        Decorated function with contract enforcement
    """
    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args, **kwargs) -> Union[Response, Tuple[Response, int]]:
            start_time = time.perf_counter()

            request_id = getattr(g, 'request_id', None) or request.headers.get('X-Request-ID')
            if not request_id:
                request_id = str(uuid.uuid4())
            g.request_id = request_id

            registry = get_registry()

            # 1. Negotiate version
            try:
                requested_version = _negotiate_version()
            except ValueError as e:
                return _make_error_response(
                    code="INVALID_CONTRACT_VERSION",
                    message=str(e),
                    request_id=request_id,
                    status_code=400,
                )

            try:
                req_contract = (
                    registry.get(group, request_contract, requested_version)
                    if request_contract else None
                )
                resp_contract = (
                    registry.get(group, response_contract, requested_version)
                    if response_contract else None
                )
            except ContractNotFoundError as e:
                return _make_error_response(
                    code="CONTRACT_NOT_FOUND",
                    message=str(e),
                    request_id=request_id,
                    status_code=404,
                )

            bound = resp_contract or req_contract
            version = bound.version if bound else requested_version
            g.contract_version = version

            # 2. Cast request body
            if req_contract is not None:
                body = request.get_json(silent=True)
                if body is None:
                    return _make_error_response(
                        code="INVALID_JSON",
                        message="Request body must be a JSON document",
                        request_id=request_id,
                        status_code=400,
                        version=version,
                    )
                try:
                    g.contract_body = req_contract.cast(body)
                except ValidationFailed as e:
                    _log_violation(group, req_contract.name, e, request_id, stage="request")
                    return _make_error_response(
                        code="CONTRACT_VIOLATION",
                        message=str(e),
                        details={"errors": [err.to_dict() for err in e.errors]},
                        request_id=request_id,
                        status_code=400,
                        version=version,
                    )

            # 3. Call the handler
            try:
                result = fn(*args, **kwargs)
            except (HTTPException, ValidationFailed, ContractNotFoundError):
                # Mapped to 4xx by the error envelope handlers
                raise
            except Exception:
                logger.exception(f"Handler error for {group}/{fn.__name__}")
                return _make_error_response(
                    code="INTERNAL_ERROR",
                    message="An unexpected error occurred",
                    request_id=request_id,
                    status_code=500,
                    version=version,
                )

            # 4. Unpack (data, status) / Response
            explicit_status = None
            if isinstance(result, tuple):
                response_data = result[0]
                if len(result) >= 2:
                    explicit_status = result[1]
            else:
                response_data = result

            prebuilt = response_data if isinstance(response_data, Response) else None
            if prebuilt is not None:
                status_code = explicit_status or prebuilt.status_code
                if not prebuilt.is_json:
                    # Not a JSON payload, so not contract-bound
                    _add_headers(prebuilt, request_id, version, start_time)
                    return prebuilt, status_code
                response_data = prebuilt.get_json()
            else:
                status_code = explicit_status or 200

            # 5. Validate response (only for successful responses)
            if resp_contract is not None and 200 <= status_code < 300:
                # Already serialized: dates came back as ISO-8601 strings
                outcome = resp_contract.validate(response_data, json_decoded=prebuilt is not None)
                if not outcome.ok:
                    logger.error(
                        f"Response schema mismatch: contract={group}/{resp_contract.name} "
                        f"v{resp_contract.version} request_id={request_id} "
                        f"errors={len(outcome.errors)}",
                        extra={
                            "event": "response_schema_mismatch",
                            "group": group,
                            "contract": resp_contract.name,
                            "request_id": request_id,
                            "details": [err.to_dict() for err in outcome.errors],
                        }
                    )
                    return _make_error_response(
                        code="RESPONSE_SCHEMA_MISMATCH",
                        message="Response does not match contract",
                        details={"errors": [err.to_dict() for err in outcome.errors]},
                        request_id=request_id,
                        status_code=500,
                        version=version,
                    )
                response_data = outcome.value

            # 6. Build response; a prebuilt Response is sent as the handler made it
            response = prebuilt if prebuilt is not None else jsonify(response_data)
            _add_headers(response, request_id, version, start_time)
            return response, status_code

        return wrapper
    return decorator


def _negotiate_version() -> Optional[int]:
    """
    Read the requested contract version: header first, then query param.

    Returns:
        The requested version, or None for latest

    Raises:
        ValueError: If the requested version is not a positive integer
    """
    header = current_app.config.get('CONTRACT_VERSION_HEADER', DEFAULT_VERSION_HEADER)
    param = current_app.config.get('CONTRACT_VERSION_PARAM', DEFAULT_VERSION_PARAM)

    raw = request.headers.get(header)
    if raw is None:
        raw = request.args.get(param)
    return parse_contract_version(raw)


def parse_contract_version(raw: Optional[str]) -> Optional[int]:
    """
    Parse a requested contract version. Accepts "2" and "v2".

    Returns:
        The version, or None (latest) when raw is None or blank

    Raises:
        ValueError: If raw is not a positive integer
    """
    if raw is None or raw.strip() == "":
        return None

    text = raw.strip()
    if text[:1] in ("v", "V"):
        text = text[1:]
    if not text.isdecimal() or int(text) < 1:
        raise ValueError(f"Invalid contract version: {raw!r} (expected a positive integer)")
    return int(text)


def _add_headers(response: Response, request_id: str, version: Optional[int], start_time: float) -> None:
    elapsed_ms = (time.perf_counter() - start_time) * 1000
    response.headers['X-Request-ID'] = request_id
    response.headers['X-Elapsed-Ms'] = f"{elapsed_ms:.2f}"
    if version is not None:
        response.headers['X-API-Contract-Version'] = str(version)


def _make_error_response(
    code: str,
    message: str,
    details: Optional[Dict] = None,
    request_id: Optional[str] = None,
    status_code: int = 400,
    version: Optional[int] = None,
) -> Tuple[Response, int]:
    """Build standardized error response."""
    error: Dict[str, Any] = {
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
    if version is not None:
        response.headers['X-API-Contract-Version'] = str(version)
    return response, status_code


def _log_violation(
    group: str,
    contract: str,
    violation: ValidationFailed,
    request_id: str,
    stage: str = "request"
) -> None:
    """Log contract violation for observability."""
    logger.warning(
        f"Contract violation: contract={group}/{contract} stage={stage} "
        f"request_id={request_id} errors={len(violation.errors)}",
        extra={
            "event": "contract_violation",
            "group": group,
            "contract": contract,
            "stage": stage,
            "request_id": request_id,
            "details": [err.to_dict() for err in violation.errors],
        }
    )
