"""
Schema builder - composable, immutable value-shape definitions.

Each Schema describes one expected value:
- Primitive kinds: string, number, integer, boolean, date, datetime
- Objects: ordered named fields + required set + open/closed flag
- Arrays: a single item schema

Modifiers (optional, nullable, one_of, describe) return new Schema values;
nothing is mutated after construction. Malformed composition raises
SchemaDefinitionError immediately, never at validation time.

Usage:
    USER = object_schema({
        "name": string(),
        "age": number(),
        "nickname": optional(string()),
    })
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union


class SchemaDefinitionError(ValueError):
    """Raised when a schema is composed incorrectly."""


class SchemaKind(Enum):
    """Value kinds a Schema can describe."""
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    OBJECT = "object"
    ARRAY = "array"


PRIMITIVE_KINDS = frozenset({
    SchemaKind.STRING,
    SchemaKind.NUMBER,
    SchemaKind.INTEGER,
    SchemaKind.BOOLEAN,
    SchemaKind.DATE,
    SchemaKind.DATETIME,
})

# Python types accepted as allowed_values for each primitive kind
_LITERAL_TYPES = {
    SchemaKind.STRING: (str,),
    SchemaKind.NUMBER: (int, float),
    SchemaKind.INTEGER: (int,),
    SchemaKind.BOOLEAN: (bool,),
}


@dataclass(frozen=True)
class Schema:
    """
    Immutable description of an expected value shape.

    Schemas compare by structure, so two independently built but identical
    schemas are equal (and hash equal). Object fields are kept as an ordered
    tuple of (name, Schema) pairs to stay hashable; use `fields` for a dict view.
    """
    kind: SchemaKind
    field_items: Tuple[Tuple[str, "Schema"], ...] = ()
    required: frozenset = frozenset()
    items: Optional["Schema"] = None
    open: bool = False
    is_optional: bool = False
    nullable: bool = False
    allowed_values: Optional[Tuple[Any, ...]] = None
    description: str = ""

    @property
    def fields(self) -> Dict[str, "Schema"]:
        """Object fields as a fresh name -> Schema dict."""
        return dict(self.field_items)

    @property
    def is_object(self) -> bool:
        return self.kind is SchemaKind.OBJECT

    @property
    def is_array(self) -> bool:
        return self.kind is SchemaKind.ARRAY

    def __repr__(self) -> str:
        if self.is_object:
            inner = ", ".join(name for name, _ in self.field_items)
            return f"Schema(object{{{inner}}}{', open' if self.open else ''})"
        if self.is_array:
            return f"Schema(array[{self.items!r}])"
        flags = [f for f, on in (("optional", self.is_optional), ("nullable", self.nullable)) if on]
        suffix = f", {', '.join(flags)}" if flags else ""
        return f"Schema({self.kind.value}{suffix})"


def _require_schema(value: Any, where: str) -> "Schema":
    if not isinstance(value, Schema):
        raise SchemaDefinitionError(
            f"{where} must be a Schema, got {type(value).__name__}"
        )
    return value


def primitive(kind: Union[SchemaKind, str]) -> Schema:
    """
    Build a primitive schema.

    Args:
        kind: SchemaKind member or its string value ("string", "number", ...)

    Raises:
        SchemaDefinitionError: If kind is not a primitive kind
    """
    if isinstance(kind, str):
        try:
            kind = SchemaKind(kind.lower())
        except ValueError:
            raise SchemaDefinitionError(f"Unknown schema kind: {kind!r}")
    if kind not in PRIMITIVE_KINDS:
        raise SchemaDefinitionError(
            f"{getattr(kind, 'value', kind)!r} is not a primitive kind; "
            f"use object_schema() or array()"
        )
    return Schema(kind=kind)


def string() -> Schema:
    return primitive(SchemaKind.STRING)


def number() -> Schema:
    return primitive(SchemaKind.NUMBER)


def integer() -> Schema:
    return primitive(SchemaKind.INTEGER)


def boolean() -> Schema:
    return primitive(SchemaKind.BOOLEAN)


def date() -> Schema:
    return primitive(SchemaKind.DATE)


def datetime_() -> Schema:
    return primitive(SchemaKind.DATETIME)


def object_schema(
    fields: Union[Mapping[str, Schema], Iterable[Tuple[str, Schema]]],
    required: Optional[Iterable[str]] = None,
    open: bool = False,
) -> Schema:
    """
    Build an object schema.

    Args:
        fields: Mapping or iterable of (name, Schema) pairs. Order is kept.
        required: Names that must be present. None means every field not
            wrapped in optional() is required.
        open: Accept (and pass through) fields not declared here.

    Raises:
        SchemaDefinitionError: Duplicate or invalid field names, non-Schema
            members, unknown required names, or optional fields marked required.
    """
    pairs = fields.items() if isinstance(fields, Mapping) else fields

    field_items = []
    seen = set()
    for pair in pairs:
        try:
            name, member = pair
        except (TypeError, ValueError):
            raise SchemaDefinitionError(
                f"Object fields must be (name, Schema) pairs, got {pair!r}"
            )
        if not isinstance(name, str) or not name:
            raise SchemaDefinitionError(f"Field name must be a non-empty string, got {name!r}")
        if name in seen:
            raise SchemaDefinitionError(f"Duplicate field name: {name!r}")
        seen.add(name)
        field_items.append((name, _require_schema(member, f"Field {name!r}")))

    if required is None:
        required_set = frozenset(name for name, member in field_items if not member.is_optional)
    else:
        if isinstance(required, str):
            raise SchemaDefinitionError("required must be a collection of field names, not a string")
        required_set = frozenset(required)
        unknown = sorted(required_set - seen)
        if unknown:
            raise SchemaDefinitionError(f"Required fields not declared: {unknown}")
        conflicting = sorted(
            name for name, member in field_items
            if name in required_set and member.is_optional
        )
        if conflicting:
            raise SchemaDefinitionError(
                f"Fields cannot be both optional and required: {conflicting}"
            )

    return Schema(
        kind=SchemaKind.OBJECT,
        field_items=tuple(field_items),
        required=required_set,
        open=bool(open),
    )


def array(item_schema: Schema) -> Schema:
    """Build an array schema whose every item matches item_schema."""
    return Schema(kind=SchemaKind.ARRAY, items=_require_schema(item_schema, "Array item"))


def optional(schema: Schema) -> Schema:
    """Mark a schema as allowed to be absent from its parent object."""
    return replace(_require_schema(schema, "optional()"), is_optional=True)


def nullable(schema: Schema) -> Schema:
    """Allow None as a value."""
    return replace(_require_schema(schema, "nullable()"), nullable=True)


def one_of(schema: Schema, values: Iterable[Any]) -> Schema:
    """
    Restrict a primitive schema to an enumerated set of literal values.

    Raises:
        SchemaDefinitionError: For non-primitive schemas, an empty value set,
            or literals that do not match the schema's kind
    """
    schema = _require_schema(schema, "one_of()")
    if schema.kind not in _LITERAL_TYPES:
        raise SchemaDefinitionError(
            f"allowed values are not supported for {schema.kind.value} schemas"
        )
    if isinstance(values, (str, bytes)):
        raise SchemaDefinitionError("allowed values must be a collection, not a string")
    values = list(values)
    if not values:
        raise SchemaDefinitionError("allowed values cannot be empty")

    expected = _LITERAL_TYPES[schema.kind]
    for literal in values:
        # bool is an int subclass; only BOOLEAN schemas take booleans
        bad_bool = isinstance(literal, bool) and schema.kind is not SchemaKind.BOOLEAN
        if bad_bool or not isinstance(literal, expected):
            raise SchemaDefinitionError(
                f"allowed value {literal!r} does not match {schema.kind.value} schema"
            )
    return replace(schema, allowed_values=tuple(dict.fromkeys(values)))


def describe(schema: Schema, text: str) -> Schema:
    """Attach a human-readable description (exported with JSON Schema)."""
    return replace(_require_schema(schema, "describe()"), description=str(text))
