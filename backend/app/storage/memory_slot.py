from typing import Dict, Optional

from app.storage.base import PersistenceSlot


class MemorySlot(PersistenceSlot):
    """Dict-backed slot. Nothing survives the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value
