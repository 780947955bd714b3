from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class AddedItem:
    id: str
    text: Any = None
    url: Any = None
    cost: Any = 0
    planning_days: Any = 0
    photo: Any = None
    parent: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "_id": self.id,
            "text": self.text,
            "url": self.url,
            "cost": self.cost,
            "planning_days": self.planning_days,
            "photo": self.photo,
            "parent": self.parent,
        }


@dataclass(frozen=True)
class RemovedItem:
    id: Optional[str]
    text: Any = None
    url: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"_id": self.id, "text": self.text, "url": self.url}


@dataclass(frozen=True)
class FieldModification:
    field: str
    old: Any
    new: Any

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "old": self.old, "new": self.new}


@dataclass(frozen=True)
class ModifiedItem:
    id: str
    text: Any
    modifications: list[FieldModification]

    def fields(self) -> list[str]:
        return [m.field for m in self.modifications]

    def modification(self, name: str) -> Optional[FieldModification]:
        for m in self.modifications:
            if m.field == name:
                return m
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "_id": self.id,
            "text": self.text,
            "modifications": [m.to_dict() for m in self.modifications],
        }


@dataclass(frozen=True)
class Changeset:
    added: list[AddedItem] = field(default_factory=list)
    removed: list[RemovedItem] = field(default_factory=list)
    modified: list[ModifiedItem] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.modified)

    def counts(self) -> dict[str, int]:
        return {
            "added": len(self.added),
            "removed": len(self.removed),
            "modified": len(self.modified),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "added": [a.to_dict() for a in self.added],
            "removed": [r.to_dict() for r in self.removed],
            "modified": [m.to_dict() for m in self.modified],
        }


@dataclass(frozen=True)
class SyncSelection:
    """Indexes into the changeset arrays the user kept checked."""

    added: frozenset[int] = frozenset()
    removed: frozenset[int] = frozenset()
    modified: frozenset[int] = frozenset()

    @classmethod
    def all_of(cls, changeset: Changeset) -> "SyncSelection":
        return cls(
            added=frozenset(range(len(changeset.added))),
            removed=frozenset(range(len(changeset.removed))),
            modified=frozenset(range(len(changeset.modified))),
        )

    @classmethod
    def none(cls) -> "SyncSelection":
        return cls()

    def counts(self) -> dict[str, int]:
        return {
            "added": len(self.added),
            "removed": len(self.removed),
            "modified": len(self.modified),
        }
