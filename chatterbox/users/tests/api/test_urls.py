from django.urls import resolve
from django.urls import reverse

from chatterbox.users.models import User


def test_user_detail(user: User):
    assert (
        reverse("api_v1:user-detail", kwargs={"pk": user.pk})
        == f"/api/v1/users/{user.pk}/"
    )
    assert resolve(f"/api/v1/users/{user.pk}/").view_name == "api_v1:user-detail"


def test_user_list():
    assert reverse("api_v1:user-list") == "/api/v1/users/"
    assert resolve("/api/v1/users/").view_name == "api_v1:user-list"


def test_user_me():
    assert reverse("api_v1:user-me") == "/api/v1/users/me/"
    assert resolve("/api/v1/users/me/").view_name == "api_v1:user-me"


def test_user_change_password():
    assert reverse("api_v1:user-change-password") == "/api/v1/users/me/password/"
    assert (
        resolve("/api/v1/users/me/password/").view_name
        == "api_v1:user-change-password"
    )


def test_register():
    assert reverse("api_v1:register") == "/api/v1/auth/register/"
    assert reverse("api:register") == "/api/auth/register/"
