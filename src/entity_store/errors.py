"""Exceptions raised by the entity store."""


class StoreError(Exception):
    """Base class for all entity store errors."""


class StorageError(StoreError):
    """A backend failed to read or write a record."""


class StorageUnavailable(StorageError):
    """A backend could not be opened or initialized."""


class DuplicateIdentifier(StoreError):
    """A newly allocated identifier is already taken in its class."""

    def __init__(self, class_name: str, eid: str) -> None:
        super().__init__(f"Identifier {eid!r} already exists in {class_name!r}")
        self.class_name = class_name
        self.eid = eid


class RelationError(StoreError):
    """An entity was assigned to a field that cannot hold it."""


class ConfigError(StoreError, ValueError):
    """Configuration could not be loaded, saved or interpreted."""
