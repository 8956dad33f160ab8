from django.conf import settings
from django.urls import path
from rest_framework.routers import DefaultRouter
from rest_framework.routers import SimpleRouter

from chatterbox.chats.api.views import ChatViewSet
from chatterbox.users.api.auth_views import RegisterView
from chatterbox.users.api.views import UserViewSet

router = DefaultRouter() if settings.DEBUG else SimpleRouter()

router.register("users", UserViewSet)
router.register("chats", ChatViewSet, basename="chats")


app_name = "api"
urlpatterns = [
    path("auth/register/", RegisterView.as_view(), name="register"),
    *router.urls,
]
