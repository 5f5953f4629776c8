"""
Фикстуры для тестов backend
"""

from typing import Dict

import pytest
from fastapi.testclient import TestClient

from cloudguard_api.config import Settings
from cloudguard_api.core import UserRepository
from cloudguard_api.main import create_app

PASSWORD = "secret123"


@pytest.fixture
def settings() -> Settings:
    return Settings(auth_secret_key="backend-test-secret-key-0123456789abcdef", bcrypt_rounds=4)


@pytest.fixture
def repository() -> UserRepository:
    return UserRepository()


@pytest.fixture
def client(settings, repository):
    with TestClient(create_app(settings, repository)) as test_client:
        yield test_client


@pytest.fixture
def registered(client) -> Dict:
    """Зарегистрированный пользователь: тело ответа /register"""
    response = client.post(
        "/api/register",
        json={
            "name": "Jane Doe",
            "email": "A@B.com",
            "password": PASSWORD,
            "password_confirmation": PASSWORD,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def auth_headers(registered) -> Dict[str, str]:
    return {"Authorization": f"Bearer {registered['access_token']}"}
