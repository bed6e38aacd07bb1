"""
KeyValueEntry model - one row per persistence slot key.

The whole student collection lives in a single row (key "studentRecords"),
its value being the JSON-encoded array of records. Each save rewrites the
value wholesale.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Text, DateTime, String
from app.database import Base


class KeyValueEntry(Base):
    """SQLAlchemy model for the kv_store table."""
    __tablename__ = "kv_store"

    key = Column(String(255), primary_key=True,
                 doc="Slot key, e.g. studentRecords")
    value = Column(Text, nullable=False,
                   doc="Serialized payload stored under the key")
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc),
                        doc="When the value was last written")

    def __repr__(self):
        return f"<KeyValueEntry(key='{self.key}', size={len(self.value or '')})>"
