"""Entity store: entity classes over per-class storage backends."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator, Mapping
from pathlib import Path
from typing import Any

from entity_store import identifiers
from entity_store.backend import Backend
from entity_store.backends import MemoryBackend, YAMLBackend
from entity_store.entity import Entity, check_value
from entity_store.errors import DuplicateIdentifier, RelationError, StorageError, StoreError
from entity_store.models import Reference, Relation
from entity_store.modes import RunMode, make_logger

DEFAULT_ROOT = Path(".entity-store") / "data"

BackendFactory = Callable[[str], Backend]


class EntityClass:
    """A named collection of entities sharing one storage backend.

    Obtain instances through :meth:`Store.create_class`.
    """

    def __init__(self, store: Store, name: str, backend: Backend, logger: Any) -> None:
        self.store = store
        self.name = name
        self.backend = backend
        self.logger = logger
        self.relations: dict[str, Relation] = {}

    # Relations

    def relates(self, field: str, target: str | EntityClass) -> Relation:
        """Declare that a field holds entities of another class.

        The target class then exposes a back-reference field named after the
        singular form of this class's name.

        Args:
            field: Field name on this class
            target: Target class or its name

        Returns:
            The declared relation
        """
        target_name = target.name if isinstance(target, EntityClass) else target
        if target_name == self.name:
            raise RelationError(f"{self.name!r} cannot relate to itself through {field!r}")

        relation = Relation(source=self.name, field=field, target=target_name)
        self.relations[field] = relation
        self.logger.debug("Relation declared", field=field, target=target_name)
        return relation

    def has_back_reference(self, name: str) -> bool:
        return any(relation.back_reference == name for relation in self.store.relations_to(self.name))

    def find_referrer(self, entity: Entity, name: str) -> Entity | None:
        """Find the first entity whose relation field points at entity.

        Args:
            entity: Entity of this class
            name: Back-reference field name

        Returns:
            Referring entity, or None when nothing (still) points at entity
        """
        if entity.eid is None:
            return None

        wanted = Reference(self.name, entity.eid)
        for relation in self.store.relations_to(self.name):
            if relation.back_reference != name:
                continue
            source = self.store.get_class(relation.source)
            for key in source.keys():
                record = source.backend.read(key)
                if record is not None and record.get(relation.field) == wanted:
                    return Entity(source, key, record)
        return None

    def resolve(self, value: Any) -> Any:
        """Turn a stored field value into what callers see."""
        if isinstance(value, Reference):
            return self.store.get_class(value.class_name).get(value.eid)
        return value

    def coerce(self, field: str, value: Any) -> Any:
        """Validate a value for a field of this class.

        Raises:
            RelationError: If an entity is assigned to a field that is not a
                declared relation, or to one declared for another class
            TypeError: If a scalar field is given an unstorable value
        """
        relation = self.relations.get(field)

        if isinstance(value, (Entity, Reference)):
            class_name = value.entity_class.name if isinstance(value, Entity) else value.class_name
            if relation is None:
                raise RelationError(f"{field!r} is not a declared relation of {self.name!r}")
            if class_name != relation.target:
                raise RelationError(f"{self.name}.{field} holds {relation.target!r} entities, not {class_name!r}")
            return value

        if relation is not None:
            if value is None:
                return None
            raise RelationError(f"{self.name}.{field} holds {relation.target!r} entities, got {type(value).__name__}")

        return check_value(field, value)

    def _encode(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        """Build the stored snapshot, saving related entities that have no identifier yet."""
        record = {}
        for name, value in fields.items():
            if isinstance(value, Entity):
                if value.eid is None:
                    value.save()
                value = Reference(value.entity_class.name, value.eid)
            record[name] = value
        return record

    def _context(self, started: float, **context: Any) -> dict[str, Any]:
        if self.store.mode.timed:
            context["elapsed"] = round(time.perf_counter() - started, 6)
        return context

    # Entities

    def new(self, **fields: Any) -> Entity:
        """Return an unsaved entity. Nothing is written until save()."""
        entity = Entity(self)
        for name, value in fields.items():
            entity[name] = value
        return entity

    def save(self, entity: Entity) -> Entity:
        """Write an entity's full field snapshot, allocating its identifier if needed.

        Raises:
            DuplicateIdentifier: If the allocated identifier (or one allocated
                for a related entity saved along with it) is already stored
            StorageError: If the backend fails

        A new entity is left unsaved whenever the save fails.
        """
        started = time.perf_counter()
        new = entity.eid is None

        if new:
            eid = identifiers.encode(self.backend.allocate())
            if eid in self.backend:
                self.logger.error("Allocated identifier already exists", eid=eid)
                raise DuplicateIdentifier(self.name, eid)
            entity._assign(eid)

        # A failing cascade must not leave the new entity holding an unwritten eid
        try:
            self.backend.write(entity.eid, self._encode(entity.fields))
        except StoreError:
            self.logger.error("Failed to save entity", eid=entity.eid, exc_info=True)
            if new:
                entity._assign(None)
            raise

        self.logger.info("Entity saved", **self._context(started, eid=entity.eid, created=new))
        return entity

    def get(self, eid: str) -> Entity | None:
        """Return the entity stored at eid, or None."""
        started = time.perf_counter()
        record = self.backend.read(eid)
        if record is None:
            self.logger.debug("Entity not found", eid=eid)
            return None

        self.logger.debug("Entity loaded", **self._context(started, eid=eid))
        return Entity(self, eid, record)

    def put(self, eid: str, fields: Mapping[str, Any]) -> Entity:
        """Store a field mapping directly at eid, bypassing new() and save()."""
        started = time.perf_counter()
        checked = {name: self.coerce(name, value) for name, value in fields.items()}
        try:
            self.backend.write(eid, self._encode(checked))
        except StorageError:
            self.logger.error("Failed to write record", eid=eid, exc_info=True)
            raise

        self.logger.info("Record written", **self._context(started, eid=eid))
        return Entity(self, eid, checked)

    def delete(self, eid: str) -> bool:
        """Remove the record at eid. Deleting a missing record is a no-op.

        Returns:
            True if a record was removed
        """
        started = time.perf_counter()
        try:
            existed = self.backend.delete(eid)
        except StorageError:
            self.logger.error("Failed to delete entity", eid=eid, exc_info=True)
            raise

        if existed:
            self.logger.info("Entity deleted", **self._context(started, eid=eid))
        else:
            self.logger.debug("Nothing to delete", eid=eid)
        return existed

    def keys(self) -> list[str]:
        """Identifiers of all stored records, in insertion order."""
        return self.backend.keys()

    def all(self) -> list[Entity]:
        """All stored entities, in insertion order."""
        entities = []
        for key in self.backend.keys():
            record = self.backend.read(key)
            if record is not None:
                entities.append(Entity(self, key, record))
        return entities

    def destroy(self) -> None:
        """Remove every record and reset the identifier sequence."""
        self.backend.destroy()
        self.logger.info("Entity class destroyed")

    def __getitem__(self, eid: str) -> Entity | None:
        return self.get(eid)

    def __setitem__(self, eid: str, fields: Mapping[str, Any]) -> None:
        self.put(eid, fields)

    def __delitem__(self, eid: str) -> None:
        self.delete(eid)

    def __contains__(self, eid: object) -> bool:
        return isinstance(eid, str) and eid in self.backend

    def __len__(self) -> int:
        return len(self.backend.keys())

    def __iter__(self) -> Iterator[Entity]:
        return iter(self.all())

    def __repr__(self) -> str:
        return f"<EntityClass {self.name} ({len(self)} entities)>"


class Store:
    """Registry of entity classes and the backends that hold them.

    Args:
        backend: ``"yaml"``, ``"memory"``, or a callable returning a backend
            for a class name
        root: Directory for the YAML backend
        mode: Run mode controlling what gets logged
        logger: Logger to use instead of one built for the mode
    """

    def __init__(
        self,
        backend: str | BackendFactory = "yaml",
        root: Path | str | None = None,
        mode: RunMode = RunMode.LIVE,
        logger: Any = None,
    ) -> None:
        self.mode = mode
        self.root = Path(root) if root is not None else DEFAULT_ROOT
        self.logger = logger if logger is not None else make_logger(mode)
        self._factory = self._backend_factory(backend)
        self._backends: dict[str, Backend] = {}
        self._classes: dict[str, EntityClass] = {}

    def _backend_factory(self, backend: str | BackendFactory) -> BackendFactory:
        if callable(backend):
            return backend
        if backend == "yaml":
            return lambda name: YAMLBackend(name, self.root, logger=self.logger.bind(entity_class=name))
        if backend == "memory":
            return lambda name: MemoryBackend(name, logger=self.logger.bind(entity_class=name))
        raise ValueError(f"Unknown backend: {backend}")

    def _open(self, name: str) -> Backend:
        """Return the backend handle for a class, opening it on first use."""
        if name not in self._backends:
            self._backends[name] = self._factory(name)
            self.logger.debug("Backend opened", entity_class=name, backend=type(self._backends[name]).__name__)
        return self._backends[name]

    def create_class(
        self,
        name: str,
        destroy: bool = False,
        relations: Mapping[str, str | EntityClass] | None = None,
    ) -> EntityClass:
        """Open an entity class and register it with the store.

        Opening a registered class again returns the same instance, keeping
        its declared relations; new relations are added to them.

        Args:
            name: Class name, e.g. ``"article"``
            destroy: Clear any previously persisted records and sequence
            relations: Field name to target class for declared relations

        Returns:
            The entity class

        Raises:
            StorageUnavailable: If the backend cannot be opened
        """
        entity_class = self._classes.get(name)
        if entity_class is None:
            entity_class = EntityClass(self, name, self._open(name), self.logger.bind(entity_class=name))
        if destroy:
            entity_class.destroy()
        for field, target in (relations or {}).items():
            entity_class.relates(field, target)

        self._classes[name] = entity_class
        return entity_class

    def get_class(self, name: str) -> EntityClass:
        """Return a registered class, opening it without destroying when new."""
        if name not in self._classes:
            return self.create_class(name)
        return self._classes[name]

    def relations_to(self, target: str) -> list[Relation]:
        """All declared relations pointing at a class."""
        return [
            relation
            for entity_class in self._classes.values()
            for relation in entity_class.relations.values()
            if relation.target == target
        ]

    @property
    def classes(self) -> list[str]:
        return list(self._classes)

    def __getitem__(self, name: str) -> EntityClass:
        return self.get_class(name)
