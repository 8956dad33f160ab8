"""Realtime chat delivery over Socket.IO.

The pieces are wired together by :class:`chatterbox.realtime.server.ChatRealtimeService`,
which ``config.asgi`` constructs once and mounts next to the Django application.
Nothing in this package holds a module-level server instance.
"""
