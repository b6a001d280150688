"""YAML file backend implementation.

Each entity class lives in its own document, ``<root>/<name>.yaml``::

    sequence: 2
    records:
      a:
        name: the article
        author: !ref {class: author, eid: a}
      b:
        name: another article

The document is loaded once when the backend is opened and rewritten after
every mutation.
"""

import copy
from pathlib import Path
from typing import Any

import yaml

from entity_store.backend import Backend
from entity_store.errors import StorageError, StorageUnavailable
from entity_store.models import Reference

REFERENCE_TAG = "!ref"


class StoreLoader(yaml.SafeLoader):
    """Safe loader that also understands entity references."""


class StoreDumper(yaml.SafeDumper):
    """Safe dumper that also writes entity references."""


def _represent_reference(dumper: yaml.SafeDumper, reference: Reference) -> yaml.Node:
    return dumper.represent_mapping(REFERENCE_TAG, {"class": reference.class_name, "eid": reference.eid})


def _construct_reference(loader: yaml.SafeLoader, node: yaml.Node) -> Reference:
    value = loader.construct_mapping(node, deep=True)
    return Reference(class_name=str(value["class"]), eid=str(value["eid"]))


StoreDumper.add_representer(Reference, _represent_reference)
StoreLoader.add_constructor(REFERENCE_TAG, _construct_reference)


class YAMLBackend(Backend):
    """Backend storing one entity class in a YAML document."""

    def __init__(self, name: str, root: Path | str, logger: Any = None) -> None:
        """Open (and create if needed) the document for an entity class.

        Args:
            name: Entity class name, used as the file name
            root: Directory holding the documents
            logger: Logger for backend events

        Raises:
            StorageUnavailable: If the directory cannot be created or the
                existing document cannot be parsed
        """
        super().__init__(name, logger)
        self.root = Path(root)
        self.path = self.root / f"{name}.yaml"

        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.logger.error("Failed to create store directory", root=str(self.root), error=str(e))
            raise StorageUnavailable(f"Cannot create store directory {self.root}: {e}") from e

        self._sequence, self._records = self._load()
        self.logger.debug("YAML backend opened", path=str(self.path), count=len(self._records))

    def _load(self) -> tuple[int, dict[str, dict[str, Any]]]:
        """Load sequence and records from the document.

        Returns:
            Tuple of (sequence, records); empty when the file does not exist
        """
        if not self.path.exists():
            return 0, {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                document = yaml.load(f, Loader=StoreLoader) or {}
        except (OSError, yaml.YAMLError) as e:
            self.logger.error("Failed to load store document", path=str(self.path), error=str(e))
            raise StorageUnavailable(f"Cannot load {self.path}: {e}") from e

        records = (document.get("records") or {}) if isinstance(document, dict) else None
        if not isinstance(records, dict):
            raise StorageUnavailable(f"Malformed store document {self.path}")

        try:
            sequence = int(document.get("sequence") or 0)
        except (TypeError, ValueError) as e:
            raise StorageUnavailable(f"Malformed sequence in {self.path}") from e

        return sequence, {str(key): value or {} for key, value in records.items()}

    def _flush(self) -> None:
        """Write the whole document, replacing the previous file."""
        document = {"sequence": self._sequence, "records": self._records}
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                yaml.dump(
                    document,
                    f,
                    Dumper=StoreDumper,
                    default_flow_style=False,
                    sort_keys=False,
                    allow_unicode=True,
                )
            tmp_path.replace(self.path)
        except (OSError, yaml.YAMLError) as e:
            self.logger.error("Failed to write store document", path=str(self.path), error=str(e))
            raise StorageError(f"Cannot write {self.path}: {e}") from e

    def read(self, key: str) -> dict[str, Any] | None:
        record = self._records.get(key)
        return copy.deepcopy(record) if record is not None else None

    def write(self, key: str, record: dict[str, Any]) -> None:
        previous = self._records.get(key)
        self._records[key] = copy.deepcopy(record)
        try:
            self._flush()
        except StorageError:
            if previous is None:
                del self._records[key]
            else:
                self._records[key] = previous
            raise

    def delete(self, key: str) -> bool:
        if key not in self._records:
            return False

        # Keep the position so a failed flush restores insertion order
        snapshot = dict(self._records)
        del self._records[key]
        try:
            self._flush()
        except StorageError:
            self._records = snapshot
            raise
        return True

    def keys(self) -> list[str]:
        return list(self._records)

    def allocate(self) -> int:
        self._sequence += 1
        try:
            self._flush()
        except StorageError:
            self._sequence -= 1
            raise
        return self._sequence

    def destroy(self) -> None:
        self.logger.debug("Destroying YAML backend", path=str(self.path))
        self._records = {}
        self._sequence = 0
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            self.logger.error("Failed to remove store document", path=str(self.path), error=str(e))
            raise StorageError(f"Cannot remove {self.path}: {e}") from e

    def __contains__(self, key: str) -> bool:
        return key in self._records
