"""Tests for data models."""

from entity_store.models import Reference, Relation, singular


def test_reference_creation() -> None:
    """Test reference equality and display."""
    reference = Reference(class_name="author", eid="a")
    assert reference == Reference("author", "a")
    assert reference != Reference("article", "a")
    assert str(reference) == "author:a"


def test_relation_back_reference() -> None:
    """Test the back-reference name of a relation."""
    relation = Relation(source="article", field="author", target="author")
    assert relation.back_reference == "article"
    assert Relation(source="articles", field="author", target="author").back_reference == "article"


def test_singular() -> None:
    """Test singular forms of class names."""
    assert singular("article") == "article"
    assert singular("articles") == "article"
    assert singular("categories") == "category"
    assert singular("people") == "person"
    assert singular("address") == "address"
