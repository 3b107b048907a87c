"""Pytest configuration for dataknobs_schema tests."""

import sys
from pathlib import Path

import pytest

# Add the package source to path for testing
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from dataknobs_schema import ObjectSchema, StringSchema  # noqa: E402


@pytest.fixture
def login_schema():
    """Username/password schema with custom messages."""
    return ObjectSchema({
        "username": StringSchema().email("username harus email"),
        "password": StringSchema()
        .min(6, "password min harus 6 karakter")
        .max(20, "password max harus 20 karakter"),
    })


@pytest.fixture
def address_schema():
    """Nested address object."""
    return ObjectSchema({
        "street": StringSchema().max(100),
        "city": StringSchema().max(100),
        "zip": StringSchema().max(10),
        "country": StringSchema().max(100),
    })
