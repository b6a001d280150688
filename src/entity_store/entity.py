"""Entities: identified records with an open set of fields."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any

from entity_store.models import Reference

if TYPE_CHECKING:
    from entity_store.store import EntityClass

SCALAR_TYPES = (str, int, float, bool, date, type(None))

_MISSING = object()


def check_value(field: str, value: Any) -> Any:
    """Validate a scalar field value, returning it in storable form.

    Scalars are strings, numbers, booleans, dates, None, and lists or
    string-keyed dicts of those. Tuples are stored as lists.

    Raises:
        TypeError: If the value (or anything nested in it) is not a scalar
    """
    if isinstance(value, SCALAR_TYPES):
        return value
    if isinstance(value, (list, tuple)):
        return [check_value(field, item) for item in value]
    if isinstance(value, dict):
        checked = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"Field {field!r} has a non-string key {key!r}")
            checked[key] = check_value(field, item)
        return checked
    raise TypeError(f"Field {field!r} cannot store {type(value).__name__} values")


class Entity:
    """An instance of an entity class.

    Fields are read and written as attributes or items::

        article = articles.new()
        article.title = "the article"
        article["text"] = "the articles text"
        article.save()

    The identifier (``eid``) is None until the first save and never changes
    afterwards. Relation fields hold other entities; reading one that was
    loaded from storage looks the related entity up again, so it reflects
    the related entity's current state (or None once it has been deleted).
    """

    def __init__(self, entity_class: EntityClass, eid: str | None = None, fields: dict[str, Any] | None = None) -> None:
        object.__setattr__(self, "_entity_class", entity_class)
        object.__setattr__(self, "_eid", eid)
        object.__setattr__(self, "_fields", dict(fields or {}))

    @property
    def eid(self) -> str | None:
        return self._eid

    @property
    def entity_class(self) -> EntityClass:
        return self._entity_class

    @property
    def fields(self) -> dict[str, Any]:
        """Copy of the raw field mapping, relations unresolved."""
        return dict(self._fields)

    def _assign(self, eid: str | None) -> None:
        object.__setattr__(self, "_eid", eid)

    def to_dict(self) -> dict[str, Any]:
        """Field mapping with saved related entities rendered as references."""
        return {
            name: Reference(value.entity_class.name, value.eid)
            if isinstance(value, Entity) and value.eid is not None
            else value
            for name, value in self._fields.items()
        }

    def get(self, name: str, default: Any = None) -> Any:
        value = self._lookup(name)
        return default if value is _MISSING else value

    def save(self) -> Entity:
        """Persist the entity, allocating its identifier on first save."""
        return self._entity_class.save(self)

    def delete(self) -> bool:
        """Remove the entity from its class. Returns True if it was stored."""
        if self._eid is None:
            return False
        return self._entity_class.delete(self._eid)

    def _lookup(self, name: str) -> Any:
        if name in self._fields:
            return self._entity_class.resolve(self._fields[name])
        if name in self._entity_class.relations:
            return None
        if self._entity_class.has_back_reference(name):
            return self._entity_class.find_referrer(self, name)
        return _MISSING

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        value = self._lookup(name)
        if value is _MISSING:
            raise AttributeError(f"{self._entity_class.name!r} entity has no field {name!r}")
        return value

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_"):
            object.__setattr__(self, name, value)
        elif name == "eid":
            raise AttributeError("eid is assigned by save()")
        elif hasattr(type(self), name):
            raise AttributeError(f"{name!r} is reserved, use item assignment for this field")
        else:
            self[name] = value

    def __delattr__(self, name: str) -> None:
        try:
            del self[name]
        except KeyError:
            raise AttributeError(name) from None

    def __getitem__(self, name: str) -> Any:
        value = self._lookup(name)
        if value is _MISSING:
            raise KeyError(name)
        return value

    def __setitem__(self, name: str, value: Any) -> None:
        self._fields[name] = self._entity_class.coerce(name, value)

    def __delitem__(self, name: str) -> None:
        del self._fields[name]

    def __contains__(self, name: str) -> bool:
        return name in self._fields

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity):
            return NotImplemented
        if self._eid is None or other._eid is None:
            return self is other
        return self._entity_class.name == other._entity_class.name and self._eid == other._eid

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"<Entity {self._entity_class.name}:{self._eid} {self.to_dict()!r}>"
