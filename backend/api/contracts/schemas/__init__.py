"""
Contract schemas for API endpoints.

Each schema module exposes a register_*_contracts(registry) function;
register_all() runs them against one registry instance at startup.
"""

from ..registry import ContractRegistry
from .users import register_user_contracts


def register_all(registry: ContractRegistry) -> ContractRegistry:
    """Register every endpoint contract into registry."""
    register_user_contracts(registry)
    return registry


__all__ = ['register_all', 'register_user_contracts']
