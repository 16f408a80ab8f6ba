import logging

from clipboard.services.document_store import MAX_BATCH_SIZE, server_timestamp

logger = logging.getLogger(__name__)

VISIBILITY_DOC = "clipboard-visibility"


def visibility_path(user_id):
    return f"users/{user_id}/settings/{VISIBILITY_DOC}"


def get_visible_users(store, user_id):
    data = store.get(visibility_path(user_id)) or {}
    return data.get("visibleUsers", [])


def add_new_user_to_all(store, new_user_id):
    """Make a newly joined user visible on every other player's clipboard.

    Players without visibility settings get them created with new users
    shown by default. Returns the number of settings documents written.
    """
    batch = store.batch()
    written = 0

    for user_id, _ in store.list_documents("users"):
        if user_id == new_user_id:
            continue

        path = visibility_path(user_id)
        settings = store.get(path)
        if settings is not None:
            visible = list(settings.get("visibleUsers") or [])
            if new_user_id not in visible:
                visible.append(new_user_id)
            batch.update(path, {"visibleUsers": visible, "lastUpdated": server_timestamp()})
        else:
            batch.set(
                path,
                {
                    "visibleUsers": [new_user_id],
                    "lastUpdated": server_timestamp(),
                    "showNewUsersByDefault": True,
                },
            )

        if len(batch) >= MAX_BATCH_SIZE:
            written += batch.commit()
            batch = store.batch()

    written += batch.commit()
    logger.info(f"Added {new_user_id} to {written} clipboard visibility settings")
    return written
