"""
Schema validation for request and response payloads.

Two entry points over the same checks:
- validate(): never raises for bad data, returns Valid(value) or Invalid(errors)
- cast(): returns the typed value or raises ValidationFailed

Checks:
- Required fields
- Type correctness (strict by default: "29" is not a number)
- Allowed values
- Nullability constraints
- Undeclared fields (rejected unless the object schema is open)

Every violation is collected, each with a root-relative path, so a client
can render all problems at once.

Coercion mode is a property of the Contract (coerce=True), never a caller
argument. A bare Schema is always validated strictly.
"""

import copy
import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from utils.normalize import CoercionError, to_date, to_datetime, to_integer, to_number

from .fields import Schema, SchemaKind

PathSegment = Union[str, int]

# Error codes carried on FieldError.code
REQUIRED_FIELD_MISSING = "required_field_missing"
TYPE_MISMATCH = "type_mismatch"
UNDECLARED_FIELD = "undeclared_field"
INVALID_VALUE = "invalid_value"
UNEXPECTED_NULL = "unexpected_null"


def format_path(path: Sequence[PathSegment]) -> str:
    """Render a path tuple as 'items[0].name'; the root renders as '(root)'."""
    if not path:
        return "(root)"
    parts = []
    for segment in path:
        if isinstance(segment, int):
            parts.append(f"[{segment}]")
        elif parts:
            parts.append(f".{segment}")
        else:
            parts.append(str(segment))
    return "".join(parts)


@dataclass(frozen=True)
class FieldError:
    """A single violated field."""
    path: Tuple[PathSegment, ...]
    message: str
    code: str = TYPE_MISMATCH

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "path": list(self.path),
            "field": format_path(self.path),
            "message": self.message,
            "code": self.code,
        }


@dataclass(frozen=True)
class Valid:
    """Validation passed; value is the typed (possibly coerced) copy."""
    value: Any

    ok = True
    errors: Tuple[FieldError, ...] = ()


@dataclass(frozen=True)
class Invalid:
    """Validation failed; errors lists every violated field in order."""
    errors: Tuple[FieldError, ...]

    ok = False


ValidationResult = Union[Valid, Invalid]


class ValidationFailed(Exception):
    """Raised by cast() when a value does not satisfy its schema."""

    def __init__(self, errors: Sequence[FieldError], contract: Optional[str] = None):
        self.errors = tuple(errors)
        self.contract = contract

        summary = "; ".join(f"{format_path(e.path)}: {e.message}" for e in self.errors[:3])
        if len(self.errors) > 3:
            summary += f" ... and {len(self.errors) - 3} more"
        prefix = f"[{contract}] " if contract else ""
        super().__init__(f"{prefix}{len(self.errors)} validation error(s): {summary}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "message": str(self),
            "details": {"errors": [e.to_dict() for e in self.errors]},
        }


def validate(target, value: Any, *, json_decoded: bool = False) -> ValidationResult:
    """
    Validate a value against a Schema or Contract.

    Args:
        target: Schema (strict) or Contract (uses the contract's coerce flag)
        value: JSON-like value to check
        json_decoded: value was read back from serialized JSON, so date and
            datetime fields arrive as ISO-8601 strings and are parsed as such.
            Other kinds stay strict.

    Returns:
        Valid(typed_value) or Invalid(errors)

    Raises:
        TypeError: If target is None or not a Schema/Contract (programming error)
    """
    schema, coerce, _ = _resolve(target)
    errors: List[FieldError] = []
    typed = _check(schema, value, (), coerce, json_decoded, errors)
    if errors:
        return Invalid(tuple(errors))
    return Valid(typed)


def cast(target, value: Any) -> Any:
    """
    Validate and return the typed value, failing fast.

    Raises:
        ValidationFailed: If the value does not match, carrying every FieldError
    """
    result = validate(target, value)
    if not result.ok:
        _, _, name = _resolve(target)
        raise ValidationFailed(result.errors, contract=name)
    return result.value


def _resolve(target) -> Tuple[Schema, bool, Optional[str]]:
    """Return (schema, coerce, contract_name) for a Schema or Contract."""
    if target is None:
        raise TypeError("validate() requires a Schema or Contract, got None")
    if isinstance(target, Schema):
        return target, False, None

    from .registry import Contract

    if isinstance(target, Contract):
        return target.schema, target.coerce, target.name
    raise TypeError(
        f"validate() requires a Schema or Contract, got {type(target).__name__}"
    )


def _check(
    schema: Schema,
    value: Any,
    path: Tuple[PathSegment, ...],
    coerce: bool,
    json_decoded: bool,
    errors: List[FieldError],
) -> Any:
    """Check one value, appending violations to errors. Returns the typed value."""
    if value is None:
        if not schema.nullable:
            errors.append(FieldError(path, "Value cannot be null", UNEXPECTED_NULL))
        return None

    if schema.kind is SchemaKind.OBJECT:
        return _check_object(schema, value, path, coerce, json_decoded, errors)
    if schema.kind is SchemaKind.ARRAY:
        return _check_array(schema, value, path, coerce, json_decoded, errors)

    try:
        result = _check_primitive(schema.kind, value, coerce, json_decoded)
    except CoercionError as e:
        errors.append(FieldError(path, str(e), TYPE_MISMATCH))
        return None

    if schema.allowed_values is not None and result not in schema.allowed_values:
        errors.append(FieldError(
            path,
            f"{result!r} not in allowed values: {list(schema.allowed_values)}",
            INVALID_VALUE,
        ))
    return result


def _check_object(schema, value, path, coerce, json_decoded, errors) -> Optional[Dict[str, Any]]:
    if not isinstance(value, Mapping):
        errors.append(FieldError(
            path, f"Expected object, got {type(value).__name__}", TYPE_MISMATCH
        ))
        return None

    result = {}
    declared = set()
    for name, field_schema in schema.field_items:
        declared.add(name)
        if name in value:
            result[name] = _check(field_schema, value[name], path + (name,), coerce, json_decoded, errors)
        elif name in schema.required:
            errors.append(FieldError(
                path + (name,), f"Field '{name}' is required", REQUIRED_FIELD_MISSING
            ))

    for key, item in value.items():
        if key in declared:
            continue
        if schema.open:
            result[key] = copy.deepcopy(item)
        else:
            errors.append(FieldError(
                path + (key,), f"Field '{key}' is not declared in schema", UNDECLARED_FIELD
            ))
    return result


def _check_array(schema, value, path, coerce, json_decoded, errors) -> Optional[List[Any]]:
    if not isinstance(value, (list, tuple)):
        errors.append(FieldError(
            path, f"Expected array, got {type(value).__name__}", TYPE_MISMATCH
        ))
        return None
    return [
        _check(schema.items, item, path + (index,), coerce, json_decoded, errors)
        for index, item in enumerate(value)
    ]


def _check_primitive(kind: SchemaKind, value: Any, coerce: bool, json_decoded: bool = False) -> Any:
    """
    Return value as the primitive kind, or raise CoercionError.

    Strict mode only accepts the exact Python type. bool is never a number,
    even though it subclasses int.
    """
    if kind is SchemaKind.STRING:
        if isinstance(value, str):
            return value
    elif kind is SchemaKind.BOOLEAN:
        if isinstance(value, bool):
            return value
    elif kind is SchemaKind.NUMBER:
        if coerce:
            return to_number(value)
        if _is_number(value):
            return value
    elif kind is SchemaKind.INTEGER:
        if coerce:
            return to_integer(value)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    elif kind is SchemaKind.DATE:
        if coerce or (json_decoded and isinstance(value, str)):
            return to_date(value)
        if isinstance(value, date) and not isinstance(value, datetime):
            return value
    elif kind is SchemaKind.DATETIME:
        if coerce or (json_decoded and isinstance(value, str)):
            return to_datetime(value)
        if isinstance(value, datetime):
            return value

    raise CoercionError(
        f"Expected {kind.value}, got {type(value).__name__}: {value!r}",
        received_value=value,
    )


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)
