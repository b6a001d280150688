"""In-memory backend implementation."""

import copy
from typing import Any

from entity_store.backend import Backend


class MemoryBackend(Backend):
    """Backend keeping records in a dict, lost when the process exits."""

    def __init__(self, name: str, logger: Any = None) -> None:
        super().__init__(name, logger)
        self._records: dict[str, dict[str, Any]] = {}
        self._sequence = 0
        self.logger.debug("Memory backend opened")

    def read(self, key: str) -> dict[str, Any] | None:
        record = self._records.get(key)
        return copy.deepcopy(record) if record is not None else None

    def write(self, key: str, record: dict[str, Any]) -> None:
        self._records[key] = copy.deepcopy(record)

    def delete(self, key: str) -> bool:
        return self._records.pop(key, None) is not None

    def keys(self) -> list[str]:
        return list(self._records)

    def allocate(self) -> int:
        self._sequence += 1
        return self._sequence

    def destroy(self) -> None:
        self.logger.debug("Destroying memory backend", count=len(self._records))
        self._records.clear()
        self._sequence = 0

    def __contains__(self, key: str) -> bool:
        return key in self._records
