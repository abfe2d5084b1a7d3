"""
Contract export - JSON Schema documents for client generation.

Each export group renders as:
{
    "exportName": "users",
    "contracts": {
        "CreateUserRequest": {
            "version": 1,
            "coerce": false,
            "contractHash": "CreateUserRequest:v1:3f2a9c0d1b7e",
            "schema": {... JSON Schema draft 2020-12 ...}
        }
    }
}

contractHash is stable: same schema + version + coerce flag gives the same
hash across runs, so clients can use it for cache invalidation.
"""

import hashlib
import json
from typing import Any, Dict

from .fields import Schema, SchemaKind
from .registry import Contract, ContractGroup

JSON_SCHEMA_DIALECT = "https://json-schema.org/draft/2020-12/schema"

_PRIMITIVE_TYPES = {
    SchemaKind.STRING: {"type": "string"},
    SchemaKind.NUMBER: {"type": "number"},
    SchemaKind.INTEGER: {"type": "integer"},
    SchemaKind.BOOLEAN: {"type": "boolean"},
    SchemaKind.DATE: {"type": "string", "format": "date"},
    SchemaKind.DATETIME: {"type": "string", "format": "date-time"},
}


def to_json_schema(schema: Schema) -> Dict[str, Any]:
    """Render a Schema as a JSON Schema fragment."""
    if schema.kind is SchemaKind.OBJECT:
        document = {
            "type": "object",
            "properties": {
                name: to_json_schema(member) for name, member in schema.field_items
            },
            "required": [name for name, _ in schema.field_items if name in schema.required],
            "additionalProperties": schema.open,
        }
    elif schema.kind is SchemaKind.ARRAY:
        document = {"type": "array", "items": to_json_schema(schema.items)}
    else:
        document = dict(_PRIMITIVE_TYPES[schema.kind])

    if schema.allowed_values is not None:
        document["enum"] = list(schema.allowed_values)

    if schema.nullable:
        document["type"] = [document["type"], "null"]
        if "enum" in document:
            document["enum"].append(None)

    if schema.description:
        document["description"] = schema.description
    return document


def contract_document(contract: Contract) -> Dict[str, Any]:
    """Top-level JSON Schema document for one contract."""
    document = {
        "$schema": JSON_SCHEMA_DIALECT,
        "title": contract.name,
    }
    if contract.description:
        document["description"] = contract.description
    document.update(to_json_schema(contract.schema))
    return document


def contract_hash(contract: Contract) -> str:
    """
    Stable, human-readable contract signature: '<name>:v<version>:<digest>'.
    """
    canonical = json.dumps(
        {
            "schema": to_json_schema(contract.schema),
            "version": contract.version,
            "coerce": contract.coerce,
        },
        sort_keys=True,
        separators=(",", ":"),
    )
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:12]
    return f"{contract.name}:v{contract.version}:{digest}"


def export_group(group: ContractGroup) -> Dict[str, Any]:
    """Render a ContractGroup for downstream client/code generation."""
    return {
        "exportName": group.export_name,
        "contracts": {
            name: {
                "version": contract.version,
                "coerce": contract.coerce,
                "contractHash": contract_hash(contract),
                "schema": contract_document(contract),
            }
            for name, contract in group.items()
        },
    }
