"""Entity store: typed entities with generated identifiers, YAML persistence and relations."""

from entity_store.backend import Backend
from entity_store.backends import MemoryBackend, YAMLBackend
from entity_store.entity import Entity
from entity_store.errors import (
    ConfigError,
    DuplicateIdentifier,
    RelationError,
    StorageError,
    StorageUnavailable,
    StoreError,
)
from entity_store.mailer import EmailOptions, Mailer
from entity_store.models import Reference, Relation
from entity_store.modes import RunMode, make_logger
from entity_store.store import EntityClass, Store

__all__ = [
    "Backend",
    "ConfigError",
    "DuplicateIdentifier",
    "EmailOptions",
    "Entity",
    "EntityClass",
    "Mailer",
    "MemoryBackend",
    "Reference",
    "Relation",
    "RelationError",
    "RunMode",
    "StorageError",
    "StorageUnavailable",
    "Store",
    "StoreError",
    "YAMLBackend",
    "make_logger",
]
