"""
Document store for Jim's Clipboard

A small document-database API (collections of JSON documents, sub-collections
addressed by slash separated paths, atomic write batches) on top of a single
SQLAlchemy table. Every service reads and writes user data through here.

Writes are last-write-wins: ``set`` replaces the whole document and
``update`` replaces the named top-level fields.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError, OperationalError

from clipboard.errors import DocumentNotFound, DocumentStoreUnavailable
from clipboard.models.document import Document

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 500


def server_timestamp():
    """Timestamp stored in documents (ISO-8601, UTC)"""
    return datetime.now(timezone.utc).isoformat()


def split_path(path):
    """Split ``users/abc/picks/2025_week-1`` into (``users/abc/picks``, ``2025_week-1``)"""
    segments = [s for s in path.strip("/").split("/") if s]
    if len(segments) < 2 or len(segments) % 2:
        raise ValueError(f"Not a document path: {path!r}")
    return "/".join(segments[:-1]), segments[-1]


class WriteBatch:
    """Up to MAX_BATCH_SIZE mutations committed in a single transaction"""

    def __init__(self, store):
        self._store = store
        self._operations = []

    def __len__(self):
        return len(self._operations)

    def set(self, path, data, merge=False):
        self._operations.append(("set", path, dict(data), merge))
        return self

    def update(self, path, fields):
        self._operations.append(("update", path, dict(fields), False))
        return self

    def delete(self, path):
        self._operations.append(("delete", path, None, False))
        return self

    def commit(self):
        """Apply every queued mutation atomically; nothing is applied on failure"""
        if len(self._operations) > MAX_BATCH_SIZE:
            raise ValueError(
                f"Write batch has {len(self._operations)} operations (max {MAX_BATCH_SIZE})"
            )
        if not self._operations:
            return 0

        with self._store._transaction():
            for op, path, data, merge in self._operations:
                if op == "set":
                    self._store._apply_set(path, data, merge)
                elif op == "update":
                    self._store._apply_update(path, data)
                else:
                    self._store._apply_delete(path)

        committed = len(self._operations)
        self._operations = []
        logger.debug(f"Committed write batch of {committed} operations")
        return committed


class DocumentStore:
    def __init__(self, db):
        self.db = db

    @contextmanager
    def _transaction(self):
        """Commit on success, roll back and translate connectivity failures otherwise"""
        try:
            yield
            self.db.session.commit()
        except OperationalError as e:
            self.db.session.rollback()
            logger.warning(f"Document store unavailable: {e}")
            raise DocumentStoreUnavailable(str(e)) from e
        except Exception:
            self.db.session.rollback()
            raise

    @contextmanager
    def _reading(self):
        try:
            yield
        except OperationalError as e:
            self.db.session.rollback()
            logger.warning(f"Document store unavailable: {e}")
            raise DocumentStoreUnavailable(str(e)) from e

    def _find(self, collection, doc_id):
        return Document.query.filter_by(collection=collection, doc_id=doc_id).first()

    def _apply_set(self, path, data, merge=False):
        collection, doc_id = split_path(path)
        document = self._find(collection, doc_id)
        if document is None:
            document = Document(collection=collection, doc_id=doc_id, data=dict(data))
            self.db.session.add(document)
            # Surface unique-path conflicts inside the transaction
            self.db.session.flush()
        elif merge:
            document.data = {**(document.data or {}), **data}
        else:
            document.data = dict(data)
        return document

    def _apply_update(self, path, fields):
        collection, doc_id = split_path(path)
        document = self._find(collection, doc_id)
        if document is None:
            raise DocumentNotFound(f"No document at {path}")
        document.data = {**(document.data or {}), **fields}
        return document

    def _apply_delete(self, path):
        collection, doc_id = split_path(path)
        document = self._find(collection, doc_id)
        if document is None:
            return False
        self.db.session.delete(document)
        return True

    # Reads

    def get(self, path):
        """Return a copy of the document's data, or None"""
        collection, doc_id = split_path(path)
        with self._reading():
            document = self._find(collection, doc_id)
        return dict(document.data or {}) if document else None

    def exists(self, path):
        return self.get(path) is not None

    def list_documents(self, collection):
        """All ``(doc_id, data)`` pairs in a collection, ordered by id"""
        collection = collection.strip("/")
        with self._reading():
            documents = (
                Document.query.filter_by(collection=collection)
                .order_by(Document.doc_id)
                .all()
            )
        return [(d.doc_id, dict(d.data or {})) for d in documents]

    def where(self, collection, field, value):
        """Documents whose top-level ``field`` equals ``value``"""
        return [
            (doc_id, data)
            for doc_id, data in self.list_documents(collection)
            if data.get(field) == value
        ]

    def count(self, collection):
        with self._reading():
            return Document.query.filter_by(collection=collection.strip("/")).count()

    # Writes

    def set(self, path, data, merge=False):
        with self._transaction():
            self._apply_set(path, data, merge)

    def update(self, path, fields):
        with self._transaction():
            self._apply_update(path, fields)

    def delete(self, path):
        with self._transaction():
            return self._apply_delete(path)

    def upsert(self, path, defaults, updates=None):
        """Create the document from ``defaults`` if missing, then merge ``updates``.

        Returns ``(data, created)``. A concurrent creator losing the race on
        the unique path constraint falls back to the existing document with
        ``created`` False.
        """
        collection, doc_id = split_path(path)
        created = False
        try:
            with self._transaction():
                document = self._find(collection, doc_id)
                if document is None:
                    document = self._apply_set(path, {**defaults, **(updates or {})})
                    created = True
                elif updates:
                    document.data = {**(document.data or {}), **updates}
                data = dict(document.data or {})
        except IntegrityError:
            logger.info(f"Concurrent create of {path}; merging into existing document")
            with self._transaction():
                document = self._find(collection, doc_id)
                if updates:
                    document.data = {**(document.data or {}), **updates}
                data = dict(document.data or {})
        return data, created

    def batch(self):
        return WriteBatch(self)

    def delete_collection(self, collection):
        """Delete every document in a collection, one batch per MAX_BATCH_SIZE documents"""
        doc_ids = [doc_id for doc_id, _ in self.list_documents(collection)]
        deleted = 0
        for start in range(0, len(doc_ids), MAX_BATCH_SIZE):
            batch = self.batch()
            for doc_id in doc_ids[start : start + MAX_BATCH_SIZE]:
                batch.delete(f"{collection}/{doc_id}")
            deleted += batch.commit()
        return deleted
