from __future__ import annotations

from ..extensions import db
from pos.time_utils import to_utc_z


class StoreEntry(db.Model):
    """
    One key of the shared key-value medium.

    The whole collection lives in `value` as a JSON document; writers replace
    it wholesale, so the last write wins.
    """
    __tablename__ = "pos_entries"

    key = db.Column(db.String(64), primary_key=True)
    value = db.Column(db.Text, nullable=False)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<StoreEntry key={self.key!r} bytes={len(self.value or '')}>"

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "bytes": len(self.value or ""),
            "updated_at": to_utc_z(self.updated_at),
        }
