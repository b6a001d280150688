"""Data models for entity store."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Reference:
    """Stored form of an entity-valued field."""

    class_name: str
    eid: str

    def __str__(self) -> str:
        return f"{self.class_name}:{self.eid}"


@dataclass(frozen=True)
class Relation:
    """A declared link from a field of one entity class to another class."""

    source: str
    field: str
    target: str

    @property
    def back_reference(self) -> str:
        """Name of the field the target class exposes for this relation."""
        return singular(self.source)


IRREGULAR_SINGULARS = {"people": "person", "children": "child"}


def singular(name: str) -> str:
    """Minimal singular form of an entity class name."""
    lowered = name.lower()
    if lowered in IRREGULAR_SINGULARS:
        return IRREGULAR_SINGULARS[lowered]
    if lowered.endswith("ies") and len(lowered) > 3:
        return name[:-3] + "y"
    if lowered.endswith("s") and not lowered.endswith("ss"):
        return name[:-1]
    return name
