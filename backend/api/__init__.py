"""
API package - contract enforcement layer.

This package provides:
- Contract registry for API schema definitions
- Schema validation logic
- @api_contract decorator for route enforcement
- Global middleware (request_id, error_envelope)
"""

from .contracts import api_contract, ContractRegistry, init_contracts

__all__ = ['api_contract', 'ContractRegistry', 'init_contracts']
