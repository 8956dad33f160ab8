import pytest
from rest_framework.test import APIClient

from chatterbox.users.models import User
from tests.factories import create_user


@pytest.fixture
def user(db) -> User:
    return create_user("testuser", first_name="Test", last_name="User")


@pytest.fixture
def other_user(db) -> User:
    return create_user("otheruser", first_name="Other", last_name="User")


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def auth_client(user) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=user)
    return client
