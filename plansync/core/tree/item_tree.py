from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator

from plansync.core.ids import instance_ref, item_key, normalize_id, template_id


@dataclass
class ItemTree:
    """Plan items grouped under their parents.

    Items are stored flat with a ``parent`` back-reference; the adjacency map is
    built once so rendering never rescans the list per node.
    """

    roots: list[dict[str, Any]] = field(default_factory=list)
    children_by_parent: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    orphans: list[dict[str, Any]] = field(default_factory=list)

    def children_of(self, item: dict[str, Any]) -> list[dict[str, Any]]:
        out: list[dict[str, Any]] = []
        seen: set[int] = set()
        # A child may point at either id a plan item carries.
        for key in (template_id(item), instance_ref(item)):
            if key is None:
                continue
            for child in self.children_by_parent.get(key, []):
                if id(child) not in seen:
                    seen.add(id(child))
                    out.append(child)
        return out

    def ordered(self) -> Iterator[tuple[dict[str, Any], int]]:
        """Yield (item, depth): each root followed by its descendants, then orphans."""
        visited: set[int] = set()

        def walk(item: dict[str, Any], depth: int) -> Iterator[tuple[dict[str, Any], int]]:
            if id(item) in visited:
                return
            visited.add(id(item))
            yield item, depth
            for child in self.children_of(item):
                yield from walk(child, depth + 1)

        for root in self.roots:
            yield from walk(root, 0)
        for orphan in self.orphans:
            yield from walk(orphan, 0)
        # Parent cycles leave items unreachable from any root.
        for children in self.children_by_parent.values():
            for child in children:
                yield from walk(child, 0)


def build_item_tree(items: list[Any]) -> ItemTree:
    tree = ItemTree()

    known: set[str] = set()
    for raw in items:
        if not isinstance(raw, dict):
            continue
        for key in (template_id(raw), instance_ref(raw)):
            if key is not None:
                known.add(key)

    for raw in items:
        if not isinstance(raw, dict) or item_key(raw) is None:
            continue
        parent = normalize_id(raw.get("parent"))
        if parent is None:
            tree.roots.append(raw)
        elif parent in known:
            tree.children_by_parent.setdefault(parent, []).append(raw)
        else:
            tree.orphans.append(raw)

    return tree
