"""
Response serializers.
"""

from .json_provider import ContractJSONProvider

__all__ = ['ContractJSONProvider']
