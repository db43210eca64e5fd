"""Shared fixtures."""

import pytest

from contacts2sheet.merge import new_record


@pytest.fixture
def card_result():
    return {
        "firstName": "Jane",
        "lastName": "Smith",
        "company": "Acme Corp",
        "title": "VP Engineering",
        "email": "jane@acme.com",
    }


@pytest.fixture
def fresh_record():
    return new_record("2024-06-15")
