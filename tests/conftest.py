"""
Shared pytest fixtures for the placement pipeline tests.

Builders and the FakeInference stand-in live in tests/helpers.py.
"""

from __future__ import annotations

import pytest

from app.services.credential_store import CredentialStore
from tests.helpers import FakeInference


@pytest.fixture
def fake_inference():
    return FakeInference()


@pytest.fixture
def credential_store(tmp_path):
    return CredentialStore(path=str(tmp_path / "credentials.json"), key="gemini-api-keys")
