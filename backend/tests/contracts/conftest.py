"""
Pytest fixtures for contract tests.
"""

import pytest

from api.contracts import number, object_schema, string


@pytest.fixture
def person_schema():
    """object({name: string, age: number}), both required."""
    return object_schema({"name": string(), "age": number()}, required={"name", "age"})


@pytest.fixture
def open_person_schema():
    """Same fields as person_schema, but undeclared fields pass through."""
    return object_schema({"name": string(), "age": number()}, open=True)
