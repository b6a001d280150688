"""Backend interface for entity storage."""

from abc import ABC, abstractmethod
from typing import Any

import structlog


class Backend(ABC):
    """Abstract key-value storage handle for a single entity class.

    A handle is opened once per entity class and shared by every operation on
    that class. Records are plain mappings from field name to value.
    """

    def __init__(self, name: str, logger: Any = None) -> None:
        self.name = name
        self.logger = logger if logger is not None else structlog.get_logger().bind(entity_class=name)

    @abstractmethod
    def read(self, key: str) -> dict[str, Any] | None:
        """Return a copy of the record stored at key, or None."""
        pass

    @abstractmethod
    def write(self, key: str, record: dict[str, Any]) -> None:
        """Store a record at key, replacing any previous record."""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove the record at key. Returns True if it existed."""
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """Return all keys in insertion order."""
        pass

    @abstractmethod
    def allocate(self) -> int:
        """Advance the identifier sequence and return the new value.

        The sequence is persisted with the records and never goes backwards.
        """
        pass

    @abstractmethod
    def destroy(self) -> None:
        """Remove every record and reset the identifier sequence."""
        pass

    def __contains__(self, key: str) -> bool:
        return key in self.keys()
