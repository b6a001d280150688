"""Tests for backend interface."""

from typing import Any

from entity_store.backend import Backend
from entity_store.modes import RunMode
from entity_store.store import Store


class ListBackend(Backend):
    """Backend keeping (key, record) pairs in a list, for testing."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.pairs: list[tuple[str, dict[str, Any]]] = []
        self.sequence = 0

    def read(self, key: str) -> dict[str, Any] | None:
        for stored_key, record in self.pairs:
            if stored_key == key:
                return dict(record)
        return None

    def write(self, key: str, record: dict[str, Any]) -> None:
        for index, (stored_key, _) in enumerate(self.pairs):
            if stored_key == key:
                self.pairs[index] = (key, dict(record))
                return
        self.pairs.append((key, dict(record)))

    def delete(self, key: str) -> bool:
        before = len(self.pairs)
        self.pairs = [(stored_key, record) for stored_key, record in self.pairs if stored_key != key]
        return len(self.pairs) != before

    def keys(self) -> list[str]:
        return [key for key, _ in self.pairs]

    def allocate(self) -> int:
        self.sequence += 1
        return self.sequence

    def destroy(self) -> None:
        self.pairs = []
        self.sequence = 0


def test_default_contains() -> None:
    """Test the membership check every backend inherits."""
    backend = ListBackend("article")
    backend.write("a", {})
    assert "a" in backend
    assert "b" not in backend


def test_store_with_custom_backend() -> None:
    """Test plugging a backend factory into the store."""
    opened: list[ListBackend] = []

    def factory(name: str) -> ListBackend:
        backend = ListBackend(name)
        opened.append(backend)
        return backend

    store = Store(backend=factory, mode=RunMode.SILENT)
    articles = store.create_class("article", destroy=True)
    article = articles.new(title="t").save()
    articles["foo"] = {"bar": "one"}

    assert [backend.name for backend in opened] == ["article"]
    assert opened[0].keys() == ["a", "foo"]
    assert articles[article.eid].title == "t"

    store.create_class("article")
    assert len(opened) == 1
