"""
SQLAlchemy-backed persistence slot.

Values live in the kv_store table (see app.models.kv_entry). Every set()
runs in its own session and commits, so the stored array is replaced in a
single transaction.
"""

import time
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.database import SessionLocal
from app.exceptions import StorageError
from app.logging_config import get_logger, log_with_context
from app.models.kv_entry import KeyValueEntry
from app.storage.base import PersistenceSlot

logger = get_logger("db")


class DatabaseSlot(PersistenceSlot):

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.session_factory = session_factory or SessionLocal

    def get(self, key: str) -> Optional[str]:
        db = self.session_factory()
        try:
            entry = db.get(KeyValueEntry, key)
            return entry.value if entry else None
        except SQLAlchemyError as e:
            log_with_context(logger, "ERROR", "Failed to read slot: {}".format(str(e)),
                             context={"storage_key": key})
            raise StorageError("Could not read stored data.") from e
        finally:
            db.close()

    def set(self, key: str, value: str) -> None:
        start_time = time.time()
        db = self.session_factory()
        try:
            entry = db.get(KeyValueEntry, key)
            if entry is None:
                db.add(KeyValueEntry(key=key, value=value))
            else:
                entry.value = value
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            log_with_context(logger, "ERROR", "Failed to write slot: {}".format(str(e)),
                             context={"storage_key": key})
            raise StorageError() from e
        finally:
            db.close()

        duration_ms = (time.time() - start_time) * 1000
        log_with_context(logger, "DEBUG", "Wrote slot {}".format(key),
                         context={"storage_key": key},
                         extra_data={"bytes": len(value), "duration_ms": round(duration_ms, 2)})
