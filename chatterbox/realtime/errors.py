"""Non-fatal rejections surfaced to a single connection as an ``error`` event."""


class RealtimeError(Exception):
    message = "Request rejected"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


class InvalidPayload(RealtimeError):
    message = "Invalid message payload"


class AuthorizationDenied(RealtimeError):
    message = "Unauthorized"


class ChatNotFound(RealtimeError):
    message = "Chat not found"


class PersistenceFailure(RealtimeError):
    message = "Failed to send message"
