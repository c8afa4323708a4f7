"""
Key-value model - the durable storage table.

Each row holds one named key and its serialized value. The student
collection occupies a single row whose value is the JSON array of all
records.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Text, DateTime, String
from app.database import Base


class KeyValueEntry(Base):
    """SQLAlchemy model for the kv_entries table."""
    __tablename__ = "kv_entries"

    key = Column(String(255), primary_key=True,
                 doc="Storage key, e.g. eduregister_students")
    value = Column(Text, nullable=False,
                   doc="Serialized value (JSON text)")
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc),
                        doc="When the value was last written")

    def __repr__(self):
        return f"<KeyValueEntry(key='{self.key}', size={len(self.value or '')})>"
