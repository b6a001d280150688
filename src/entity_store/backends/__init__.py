"""Backend implementations."""

from entity_store.backends.memory import MemoryBackend
from entity_store.backends.yaml_file import YAMLBackend

__all__ = ["MemoryBackend", "YAMLBackend"]
