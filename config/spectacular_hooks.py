TAGS_BY_PREFIX = (
    ("/api/v1/auth/jwt/", "JWT Authentication"),
    ("/api/v1/auth/", "Authentication"),
    ("/api/v1/users/", "Users"),
    ("/api/v1/chats/group/", "Groups"),
    ("/api/v1/chats/admin-groups/", "Groups"),
    ("/api/v1/chats/", "Chats"),
)


def tag_by_path(result, generator, request, public):
    """Give every operation a single tag derived from its path.

    Group management actions live under ``/chats/{id}/`` as well, so they keep
    the tag set on the view.
    """
    for path, operations in result.get("paths", {}).items():
        if path.endswith(("/name/", "/participants/", "/participants/{user_id}/")):
            continue
        tag = None
        for prefix, name in TAGS_BY_PREFIX:
            if path.startswith(prefix):
                tag = name
                break
        if tag is None:
            continue
        for op in operations.values():
            op["tags"] = [tag]
    return result
