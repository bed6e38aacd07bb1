"""
File-backed persistence slot.

Each key maps to `<data_dir>/<key>.json`. Writes go to a temporary file in
the same directory which is then renamed over the target, so a crash mid-write
leaves the previous value intact.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional

from app.exceptions import StorageError
from app.logging_config import get_logger, log_with_context
from app.storage.base import PersistenceSlot

DATA_DIR = Path(os.getenv("STUDENT_DATA_DIR", "data"))

logger = get_logger("db")


class FileSlot(PersistenceSlot):

    def __init__(self, data_dir: Optional[Path] = None):
        self.data_dir = Path(data_dir) if data_dir is not None else DATA_DIR

    def path_for(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            log_with_context(logger, "ERROR", "Failed to read slot file: {}".format(e),
                             context={"storage_key": key, "path": str(path)})
            raise StorageError("Could not read stored data.") from e

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                os.replace(tmp_path, path)
            except OSError:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            log_with_context(logger, "ERROR", "Failed to write slot file: {}".format(e),
                             context={"storage_key": key, "path": str(path)})
            raise StorageError() from e
