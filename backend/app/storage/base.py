"""
Persistence slot interface.

A slot is a string-to-string key/value store. The record store reads one
key at startup and rewrites it wholesale on every mutation, so the interface
is just get and set.
"""

from abc import ABC, abstractmethod
from typing import Optional


class PersistenceSlot(ABC):
    """Key/value durability boundary used by RecordStore."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Return the value stored under key, or None when absent.

        Raises:
            StorageError: the backend could not be read
        """

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Replace the value stored under key.

        Raises:
            StorageError: the backend could not be written
        """
