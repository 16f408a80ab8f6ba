from datetime import datetime, timezone

from clipboard import db


class Document(db.Model):
    """A schemaless JSON document addressed by collection path and id.

    Sub-collections use slash separated paths, e.g. the week picks of a
    user live in collection ``users/<uid>/picks``.
    """

    __tablename__ = "documents"

    id = db.Column(db.Integer, primary_key=True)
    collection = db.Column(db.String(255), nullable=False, index=True)
    doc_id = db.Column(db.String(255), nullable=False)
    data = db.Column(db.JSON, nullable=False, default=dict)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.UniqueConstraint("collection", "doc_id", name="unique_document_path"),
        db.Index("idx_document_collection_doc", "collection", "doc_id"),
    )

    def __repr__(self):
        return f"<Document {self.path}>"

    @property
    def path(self):
        return f"{self.collection}/{self.doc_id}"

    def to_dict(self):
        return {"id": self.doc_id, **(self.data or {})}
