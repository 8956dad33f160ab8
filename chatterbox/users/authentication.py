from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication

from chatterbox.users.identity import IdentityError
from chatterbox.users.identity import IdentityVerifier


class VerifiedIdentityAuthentication(JWTAuthentication):
    """``Authorization: Bearer <access>`` backed by :class:`IdentityVerifier`.

    Header parsing is inherited from SimpleJWT; token validation and user
    lookup are delegated so the Socket.IO gatekeeper applies the same rules.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.verifier = IdentityVerifier(authentication=self)

    def authenticate(self, request):
        header = self.get_header(request)
        if header is None:
            return None

        raw_token = self.get_raw_token(header)
        if raw_token is None:
            return None

        try:
            user = self.verifier.verify(raw_token)
        except IdentityError as exc:
            raise AuthenticationFailed(exc.message, code=exc.code) from exc
        return user, raw_token
