"""
Contract enforcement package.

Provides the schema builder, validation, the versioned contract registry,
JSON Schema export, and the @api_contract decorator.
"""

from .fields import (
    Schema,
    SchemaDefinitionError,
    SchemaKind,
    array,
    boolean,
    date,
    datetime_,
    describe,
    integer,
    nullable,
    number,
    object_schema,
    one_of,
    optional,
    primitive,
    string,
)
from .validate import (
    FieldError,
    Invalid,
    Valid,
    ValidationFailed,
    ValidationResult,
    cast,
    validate,
)
from .registry import (
    Contract,
    ContractError,
    ContractGroup,
    ContractNotFoundError,
    ContractRegistry,
    DuplicateContractError,
    RegistrySealedError,
    merge_groups,
)
from .export import contract_document, contract_hash, export_group, to_json_schema
from .wrapper import api_contract, get_registry, init_contracts, parse_contract_version

__all__ = [
    'Schema',
    'SchemaDefinitionError',
    'SchemaKind',
    'array',
    'boolean',
    'date',
    'datetime_',
    'describe',
    'integer',
    'nullable',
    'number',
    'object_schema',
    'one_of',
    'optional',
    'primitive',
    'string',
    'FieldError',
    'Invalid',
    'Valid',
    'ValidationFailed',
    'ValidationResult',
    'cast',
    'validate',
    'Contract',
    'ContractError',
    'ContractGroup',
    'ContractNotFoundError',
    'ContractRegistry',
    'DuplicateContractError',
    'RegistrySealedError',
    'merge_groups',
    'contract_document',
    'contract_hash',
    'export_group',
    'to_json_schema',
    'api_contract',
    'get_registry',
    'init_contracts',
    'parse_contract_version',
]
