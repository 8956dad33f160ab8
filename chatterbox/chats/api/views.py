from __future__ import annotations

from typing import TYPE_CHECKING

from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.exceptions import PermissionDenied
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from chatterbox.chats import services
from chatterbox.chats.models import Chat

from .serializers import ChatSerializer
from .serializers import DirectChatCreateSerializer
from .serializers import GroupChatCreateSerializer
from .serializers import GroupParticipantsSerializer
from .serializers import GroupRenameSerializer
from .serializers import MessageSerializer

if TYPE_CHECKING:  # import for type checking only
    from rest_framework.request import Request

NOT_A_GROUP = "This is not a group chat"


def _bad_request(message: str) -> ValidationError:
    return ValidationError({"detail": message})


@extend_schema_view(
    list=extend_schema(tags=["Chats"]),
    create=extend_schema(tags=["Chats"], request=DirectChatCreateSerializer),
    messages=extend_schema(tags=["Chats"], responses=MessageSerializer(many=True)),
    group=extend_schema(tags=["Groups"], request=GroupChatCreateSerializer),
    admin_groups=extend_schema(tags=["Groups"]),
    rename=extend_schema(tags=["Groups"], request=GroupRenameSerializer),
    add_participants=extend_schema(tags=["Groups"], request=GroupParticipantsSerializer),
    remove_participant=extend_schema(tags=["Groups"], request=None),
)
class ChatViewSet(GenericViewSet):
    """Chats of the authenticated user.

    - list: the caller's chats, most recently active first
    - create: get or create the one-to-one chat with ``participant_id``
    - messages: history of a chat the caller participates in
    - group / admin-groups / name / participants: group management
    """

    permission_classes = [IsAuthenticated]
    serializer_class = ChatSerializer
    queryset = Chat.objects.all()
    pagination_class = None
    lookup_value_regex = r"\d+"

    def get_chat(self) -> Chat:
        chat = services.get_chat(self.kwargs["pk"])
        if chat is None:
            msg = "Chat not found"
            raise NotFound(msg)
        return chat

    def get_participating_chat(self, detail: str) -> Chat:
        chat = self.get_chat()
        if not services.is_participant(chat, self.request.user.pk):
            raise PermissionDenied(detail)
        return chat

    def _respond(self, chat: Chat, status_code: int = status.HTTP_200_OK) -> Response:
        serializer = ChatSerializer(chat, context={"request": self.request})
        return Response(serializer.data, status=status_code)

    def list(self, request: Request):
        chats = services.chats_for_user(request.user)
        serializer = ChatSerializer(chats, many=True, context={"request": request})
        return Response(serializer.data)

    def create(self, request: Request):
        serializer = DirectChatCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        participant_id = serializer.validated_data["participant_id"]
        try:
            chat, created = services.get_or_create_direct_chat(
                request.user,
                participant_id,
            )
        except services.ParticipantNotFound as exc:
            raise NotFound(str(exc)) from exc
        except services.ChatServiceError as exc:
            raise _bad_request(str(exc)) from exc
        return self._respond(
            chat,
            status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    @action(detail=True, methods=["get"])
    def messages(self, request: Request, pk=None):
        chat = self.get_participating_chat("Not authorized to access this chat")
        history = services.recent_messages(chat)
        return Response(MessageSerializer(history, many=True).data)

    @action(detail=False, methods=["post"])
    def group(self, request: Request):
        serializer = GroupChatCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            chat = services.create_group_chat(
                request.user,
                data["group_name"],
                data["participant_ids"],
                group_picture=data.get("group_picture", ""),
            )
        except services.ChatServiceError as exc:
            raise _bad_request(str(exc)) from exc
        return self._respond(chat, status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"], url_path="admin-groups")
    def admin_groups(self, request: Request):
        groups = services.admin_groups(request.user)
        return Response(
            ChatSerializer(groups, many=True, context={"request": request}).data,
        )

    @action(detail=True, methods=["patch"], url_path="name")
    def rename(self, request: Request, pk=None):
        serializer = GroupRenameSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        chat = self.get_chat()
        if not chat.is_group:
            raise _bad_request(NOT_A_GROUP)
        if chat.admin_id != request.user.pk:
            msg = "Only group admin can update group name"
            raise PermissionDenied(msg)
        try:
            services.rename_group(chat, serializer.validated_data["group_name"])
        except services.ChatServiceError as exc:
            raise _bad_request(str(exc)) from exc
        return self._respond(chat)

    @action(detail=True, methods=["post"], url_path="participants")
    def add_participants(self, request: Request, pk=None):
        serializer = GroupParticipantsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        chat = self.get_chat()
        if not chat.is_group:
            raise _bad_request(NOT_A_GROUP)
        if not services.is_participant(chat, request.user.pk):
            msg = "Not authorized to add participants"
            raise PermissionDenied(msg)
        try:
            services.add_participants(chat, serializer.validated_data["participant_ids"])
        except services.ChatServiceError as exc:
            raise _bad_request(str(exc)) from exc
        return self._respond(chat)

    @action(
        detail=True,
        methods=["delete"],
        url_path=r"participants/(?P<user_id>\d+)",
    )
    def remove_participant(self, request: Request, pk=None, user_id=None):
        chat = self.get_chat()
        if not chat.is_group:
            raise _bad_request(NOT_A_GROUP)
        if not services.is_participant(chat, request.user.pk):
            msg = "Not authorized"
            raise PermissionDenied(msg)
        try:
            services.remove_participant(chat, int(user_id))
        except services.ChatServiceError as exc:
            raise _bad_request(str(exc)) from exc
        return self._respond(chat)
