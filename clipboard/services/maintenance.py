"""
Season maintenance operations

Bulk cleanups run between seasons from ``manage.py maintenance``. Each
collection is cleared in its own write batches; a failure part way through
leaves earlier collections cleared.
"""

import logging

from clipboard.models.user import PRESERVED_PROFILE_FIELDS, SUPER_BOWL_PICK_FIELDS
from clipboard.services.document_store import MAX_BATCH_SIZE
from clipboard.services.team_colors import DEFAULT_MAPPINGS

logger = logging.getLogger(__name__)

SPORTS_COLLECTIONS = ("picks", "games", "weekRecaps", "liveGames")


def _user_ids(store):
    return [user_id for user_id, _ in store.list_documents("users")]


def _commit_in_batches(store, operations):
    """Apply ``(method, path, data)`` operations, MAX_BATCH_SIZE per batch"""
    written = 0
    for start in range(0, len(operations), MAX_BATCH_SIZE):
        batch = store.batch()
        for method, path, data in operations[start : start + MAX_BATCH_SIZE]:
            if method == "delete":
                batch.delete(path)
            else:
                getattr(batch, method)(path, data)
        written += batch.commit()
    return written


def clear_pick_data(store):
    """Delete every week recap and every user's picks; profiles are untouched"""
    recaps_deleted = store.delete_collection("weekRecaps")
    logger.info(f"Deleted {recaps_deleted} week recaps")

    picks_deleted = 0
    for user_id in _user_ids(store):
        deleted = store.delete_collection(f"users/{user_id}/picks")
        if deleted:
            logger.debug(f"Deleted {deleted} pick documents for {user_id}")
        picks_deleted += deleted

    logger.info(f"Deleted {picks_deleted} pick documents")
    return {"weekRecapsDeleted": recaps_deleted, "picksDeleted": picks_deleted}


def clear_sports_data(store):
    """Drop the sports collections and strip user profiles down to their kept fields"""
    cleared = {}
    for collection in SPORTS_COLLECTIONS:
        cleared[collection] = store.delete_collection(collection)
        logger.info(f"Cleared {cleared[collection]} documents from {collection}")

    operations = []
    for user_id, data in store.list_documents("users"):
        kept = {field: data[field] for field in PRESERVED_PROFILE_FIELDS if field in data}
        operations.append(("set", f"users/{user_id}", kept))

    users_cleaned = _commit_in_batches(store, operations)
    logger.info(f"Cleaned {users_cleaned} user profiles")
    return {"collectionsCleared": cleared, "usersCleaned": users_cleaned}


def clear_superbowl_picks(store):
    """Null out every spelling of the Super Bowl pick on user profiles"""
    operations = []
    for user_id, data in store.list_documents("users"):
        fields = {field: None for field in SUPER_BOWL_PICK_FIELDS if field in data}
        if fields:
            operations.append(("update", f"users/{user_id}", fields))

    updated = _commit_in_batches(store, operations)
    logger.info(f"Cleared Super Bowl picks from {updated} users")
    return {"usersUpdated": updated}


def init_team_colors(team_colors):
    """Seed the team colour mappings with the default for every team"""
    mappings = team_colors.set_mappings(DEFAULT_MAPPINGS)
    logger.info(f"Initialized {len(mappings)} team colour mappings")
    return {"mappings": len(mappings)}
