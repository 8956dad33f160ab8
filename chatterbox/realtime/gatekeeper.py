"""Socket.IO handshake authentication.

Clients send their access token either as ``auth: {token}`` or as the
``token`` query parameter of the Socket.IO URL. The handshake is refused with
one of three reasons:

- ``unauthorized``: no token, malformed token or unknown user
- ``jwt_expired``: the token signature is fine but it has expired
- ``server_error``: anything unexpected while verifying
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from socketio.exceptions import ConnectionRefusedError  # noqa: A004

from chatterbox.users.identity import CredentialExpired
from chatterbox.users.identity import Identity
from chatterbox.users.identity import IdentityError
from chatterbox.users.identity import IdentityVerifier

logger = logging.getLogger(__name__)

UNAUTHORIZED = "unauthorized"
JWT_EXPIRED = "jwt_expired"
SERVER_ERROR = "server_error"


def extract_token(environ: dict[str, Any], auth: Any | None) -> str | None:
    """Extract the access token from Socket.IO auth data or environ.

    ``auth["token"]`` wins over the query string. Handles python-socketio
    environ shapes across ASGI/WSGI servers.
    """

    if isinstance(auth, dict):
        auth_token = auth.get("token")
        if isinstance(auth_token, str) and auth_token:
            return auth_token

    scope: Any = environ
    if isinstance(environ, dict) and "asgi.scope" in environ:
        inner = environ.get("asgi.scope")
        if isinstance(inner, dict):
            scope = inner

    query_string: str | bytes = ""
    if isinstance(scope, dict) and "query_string" in scope:
        query_string = scope.get("query_string", b"")
    elif isinstance(scope, dict) and "QUERY_STRING" in scope:
        query_string = scope.get("QUERY_STRING", "")

    if isinstance(query_string, (bytes, bytearray)):
        query_string = query_string.decode(errors="ignore")

    token = parse_qs(str(query_string)).get("token", [None])[0]
    if isinstance(token, str) and token:
        return token

    return None


class Gatekeeper:
    def __init__(self, verifier: IdentityVerifier | None = None):
        self.verifier = verifier or IdentityVerifier()

    async def admit(self, environ: dict[str, Any], auth: Any | None = None) -> Identity:
        token = extract_token(environ, auth)
        if not token:
            raise ConnectionRefusedError(UNAUTHORIZED)

        try:
            return await database_sync_to_async(self.verifier.identify)(token)
        except CredentialExpired as exc:
            raise ConnectionRefusedError(JWT_EXPIRED) from exc
        except IdentityError as exc:
            logger.info("Socket.IO handshake rejected: %s", exc.message)
            raise ConnectionRefusedError(UNAUTHORIZED) from exc
        except Exception as exc:
            logger.exception("Socket.IO connect error")
            raise ConnectionRefusedError(SERVER_ERROR) from exc
