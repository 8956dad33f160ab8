from django.db.models import Q
from drf_spectacular.utils import OpenApiParameter
from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.mixins import ListModelMixin
from rest_framework.mixins import RetrieveModelMixin
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from chatterbox.users.models import User

from .serializers import PasswordChangeSerializer
from .serializers import UserSerializer

SEARCH_LIMIT = 20
BROWSE_LIMIT = 50


@extend_schema_view(
    list=extend_schema(
        tags=["Users"],
        parameters=[OpenApiParameter("q", str, description="Name or email search")],
    ),
    retrieve=extend_schema(tags=["Users"]),
    me=extend_schema(tags=["Users"], request=UserSerializer),
    change_password=extend_schema(tags=["Users"], request=PasswordChangeSerializer),
)
class UserViewSet(RetrieveModelMixin, ListModelMixin, GenericViewSet):
    serializer_class = UserSerializer
    queryset = User.objects.all()
    # Keep the plain list contract (no pagination) for /api/v1/users/
    pagination_class = None
    lookup_value_regex = r"\d+"

    def get_queryset(self, *args, **kwargs):  # type: ignore[override]
        if self.action != "list":
            return User.objects.filter(is_active=True)

        qs = User.objects.filter(is_active=True).exclude(pk=self.request.user.pk)
        query = (self.request.query_params.get("q") or "").strip()
        if not query:
            return qs.order_by("name", "id")[:BROWSE_LIMIT]
        matches = Q(name__icontains=query) | Q(email__icontains=query)
        return qs.filter(matches).order_by("name", "id")[:SEARCH_LIMIT]

    @action(detail=False, methods=["get", "patch"])
    def me(self, request):
        if request.method == "GET":
            serializer = UserSerializer(request.user, context={"request": request})
            return Response(status=status.HTTP_200_OK, data=serializer.data)

        serializer = UserSerializer(
            request.user,
            data=request.data,
            partial=True,
            context={"request": request},
        )
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(status=status.HTTP_200_OK, data=serializer.data)

    @action(detail=False, methods=["post"], url_path="me/password")
    def change_password(self, request):
        serializer = PasswordChangeSerializer(
            data=request.data,
            context={"request": request},
        )
        serializer.is_valid(raise_exception=True)
        request.user.set_password(serializer.validated_data["new_password"])
        request.user.save(update_fields=["password"])
        return Response({"detail": "Password changed successfully"})
