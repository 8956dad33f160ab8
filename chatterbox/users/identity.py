"""Bearer credential verification shared by the REST API and Socket.IO.

Both entry points resolve an access token to a user through
:class:`IdentityVerifier`, so expiry handling and "user not found" semantics
cannot drift apart between the two transports.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import AccessToken

if TYPE_CHECKING:  # import for type checking only
    from chatterbox.users.models import User


class IdentityError(Exception):
    """Base class for credential verification failures."""

    code = "unauthorized"
    message = "Invalid credentials"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class CredentialMissing(IdentityError):
    message = "No token provided"


class CredentialInvalid(IdentityError):
    message = "Invalid token"


class CredentialExpired(IdentityError):
    code = "jwt_expired"
    message = "Token is expired"


class UnknownSubject(IdentityError):
    message = "User not found"


@dataclass(frozen=True)
class Identity:
    user_id: int
    first_name: str
    last_name: str
    email: str

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.email

    @classmethod
    def from_user(cls, user: User) -> Identity:
        return cls(
            user_id=int(user.pk),
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
        )


class IdentityVerifier:
    """Resolve a SimpleJWT access token to an active user.

    Runs synchronous ORM queries; async callers wrap :meth:`verify` with
    ``database_sync_to_async``.
    """

    def __init__(self, authentication: JWTAuthentication | None = None):
        self._jwt = authentication or JWTAuthentication()

    def verify(self, credential: str | bytes | None) -> User:
        if not credential:
            raise CredentialMissing

        try:
            token = AccessToken(credential)
        except TokenError as exc:
            if "expired" in str(exc).lower():
                raise CredentialExpired from exc
            raise CredentialInvalid from exc

        try:
            return self._jwt.get_user(token)
        except AuthenticationFailed as exc:  # user not found / inactive, etc.
            raise UnknownSubject from exc

    def identify(self, credential: str | bytes | None) -> Identity:
        return Identity.from_user(self.verify(credential))
