import pytest

from chatterbox.users.models import User

pytestmark = pytest.mark.django_db


def test_name_is_built_from_first_and_last_name(user: User):
    assert user.name == "Test User"
    assert user.display_name == "Test User"


def test_display_name_falls_back_to_username():
    user = User.objects.create_user(username="nameless", email="nameless@example.com")
    assert user.name == ""
    assert user.display_name == "nameless"


def test_name_follows_updates(user: User):
    user.last_name = "Person"
    user.save()
    user.refresh_from_db()
    assert user.name == "Test Person"
