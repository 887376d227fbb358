from __future__ import annotations

from ..extensions import db
from mizan.time_utils import to_utc_z


class DocumentCounter(db.Model):
    """
    Per-prefix document sequence.

    One row per prefix. current_code is the last sequence number issued
    for that prefix (0 = nothing issued yet). Rows are only ever advanced
    with an atomic UPDATE current_code = current_code + 1.
    """
    __tablename__ = "document_counters"
    __table_args__ = (
        db.UniqueConstraint("prefix", name="uq_document_counters_prefix"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    prefix = db.Column(db.String(16), nullable=False)
    document_type = db.Column(db.String(32), nullable=False, index=True)
    current_code = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<DocumentCounter prefix={self.prefix!r} current_code={self.current_code}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "prefix": self.prefix,
            "document_type": self.document_type,
            "current_code": self.current_code,
            "updated_at": to_utc_z(self.updated_at),
        }
