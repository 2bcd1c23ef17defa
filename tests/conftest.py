from typing import Optional

import pytest
from fastapi.testclient import TestClient

from spendwise.api import create_app
from spendwise.config import AppSettings
from spendwise.services.auth import TokenVerifier

from tests.fakes import FakeGeminiModel, FakeTokenVerifier, build_components


@pytest.fixture
def fake_model():
    return FakeGeminiModel()


@pytest.fixture
def verifier():
    return FakeTokenVerifier()


@pytest.fixture
def make_client():
    """Factory for a TestClient around an app with injected components."""

    def _make(
        model: Optional[FakeGeminiModel] = None,
        verifier: Optional[TokenVerifier] = None,
        environment: str = "development",
        raise_server_exceptions: bool = True,
        **component_overrides,
    ) -> TestClient:
        components = build_components(
            model,
            verifier or FakeTokenVerifier(),
            **component_overrides,
        )
        app = create_app(
            components=components,
            app_settings=AppSettings(app_environment=environment),
        )
        return TestClient(app, raise_server_exceptions=raise_server_exceptions)

    return _make


@pytest.fixture
def sample_transactions():
    return [
        {"amount": 12.50, "category": "Food", "date": "2025-03-02", "description": "Lunch"},
        {"amount": 40, "category": "Rent", "date": "2025-03-05"},
    ]
