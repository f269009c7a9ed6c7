"""reqcraft collections - a tree of folders holding saved request templates."""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from typing import Any

from reqcraft.models import Request


@dataclass
class CollectionFolder:
    name: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    parent_id: str | None = None
    children: list[CollectionItem] = field(default_factory=list)


@dataclass
class CollectionRequestItem:
    name: str
    request: Request
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    parent_id: str | None = None


CollectionItem = CollectionFolder | CollectionRequestItem


def item_to_dict(item: CollectionItem) -> dict[str, Any]:
    match item:
        case CollectionFolder():
            return {
                "type": "folder",
                "id": item.id,
                "name": item.name,
                "parent_id": item.parent_id,
                "children": [item_to_dict(child) for child in item.children],
            }
        case CollectionRequestItem():
            return {
                "type": "request",
                "id": item.id,
                "name": item.name,
                "parent_id": item.parent_id,
                "request": item.request.to_dict(),
            }
    raise TypeError(f"Unknown collection item: {item!r}")


def item_from_dict(data: dict[str, Any], parent_id: str | None = None) -> CollectionItem:
    """Build a collection item. Items without a type are folders if they have children."""
    item_type = data.get("type") or ("folder" if "children" in data else "request")
    item_id = str(data.get("id") or uuid.uuid4())
    name = str(data.get("name") or "")
    if item_type == "folder":
        return CollectionFolder(
            name=name,
            id=item_id,
            parent_id=parent_id,
            children=[
                item_from_dict(child, item_id)
                for child in data.get("children") or []
                if isinstance(child, dict)
            ],
        )
    request = Request.from_dict(data.get("request") or {})
    if request.name is None:
        request.name = name
    return CollectionRequestItem(name=name, request=request, id=item_id, parent_id=parent_id)


def items_from_data(data: list[dict]) -> list[CollectionItem]:
    return [item_from_dict(d) for d in data if isinstance(d, dict)]


def find_item_and_parent(
    items: list[CollectionItem],
    item_id: str,
    parent: CollectionFolder | None = None,
) -> tuple[CollectionItem | None, CollectionFolder | None]:
    """Depth-first search for an item by id. Returns (item, parent folder)."""
    for item in items:
        if item.id == item_id:
            return item, parent
        if isinstance(item, CollectionFolder) and item.children:
            found, found_parent = find_item_and_parent(item.children, item_id, item)
            if found is not None:
                return found, found_parent
    return None, None


def remove_item(items: list[CollectionItem], item_id: str) -> list[CollectionItem]:
    """Return a new tree without the item (and its subtree)."""
    result: list[CollectionItem] = []
    for item in items:
        if item.id == item_id:
            continue
        if isinstance(item, CollectionFolder):
            item = replace(item, children=remove_item(item.children, item_id))
        result.append(item)
    return result


def find_item_path(
    items: list[CollectionItem],
    item_id: str,
    path: list[str] | None = None,
) -> list[str] | None:
    """Return the list of names leading to the item, or None."""
    path = path or []
    for item in items:
        if item.id == item_id:
            return [*path, item.name]
        if isinstance(item, CollectionFolder):
            found = find_item_path(item.children, item_id, [*path, item.name])
            if found:
                return found
    return None


def update_item(
    items: list[CollectionItem],
    item_id: str,
    request: Request,
) -> list[CollectionItem]:
    """Return a new tree with the saved request replaced.

    The item is renamed when the request carries a name.
    """
    result: list[CollectionItem] = []
    for item in items:
        if isinstance(item, CollectionRequestItem) and item.id == item_id:
            item = replace(item, name=request.name or item.name, request=request)
        elif isinstance(item, CollectionFolder):
            item = replace(item, children=update_item(item.children, item_id, request))
        result.append(item)
    return result


def walk(
    items: list[CollectionItem],
    depth: int = 0,
) -> Iterator[tuple[int, CollectionItem]]:
    """Yield (depth, item) pairs in display order."""
    for item in items:
        yield depth, item
        if isinstance(item, CollectionFolder):
            yield from walk(item.children, depth + 1)


def split_path(path: str) -> list[str]:
    return [part for part in path.split("/") if part]


def find_item_by_path(items: list[CollectionItem], path: str) -> CollectionItem | None:
    """Look up a folder or saved request by a slash-separated name path."""
    names = split_path(path)
    if not names:
        return None
    level = items
    found: CollectionItem | None = None
    for index, name in enumerate(names):
        found = next((item for item in level if item.name == name), None)
        if found is None:
            return None
        if index < len(names) - 1:
            if not isinstance(found, CollectionFolder):
                return None
            level = found.children
    return found


def find_request_by_path(items: list[CollectionItem], path: str) -> CollectionRequestItem | None:
    """Look up a saved request by a slash-separated name path, e.g. "Users/Create"."""
    found = find_item_by_path(items, path)
    return found if isinstance(found, CollectionRequestItem) else None


def insert_item(
    items: list[CollectionItem],
    parent_id: str | None,
    item: CollectionItem,
) -> list[CollectionItem]:
    """Return a new tree with item appended to folder parent_id (top level when None)."""
    if parent_id is None:
        return [*items, replace(item, parent_id=None)]
    result: list[CollectionItem] = []
    for existing in items:
        if isinstance(existing, CollectionFolder):
            if existing.id == parent_id:
                child = replace(item, parent_id=parent_id)
                existing = replace(existing, children=[*existing.children, child])
            else:
                children = insert_item(existing.children, parent_id, item)
                existing = replace(existing, children=children)
        result.append(existing)
    return result


def save_request_at_path(
    items: list[CollectionItem],
    path: str,
    request: Request,
) -> tuple[list[CollectionItem], str]:
    """Store request under a slash-separated path, creating missing folders.

    A request already saved at the path is replaced in place. Returns the
    new tree and the id of the saved item. Raises ValueError when the path
    is empty, names a folder, or runs through a saved request.
    """
    names = split_path(path)
    if not names:
        raise ValueError("Collection path is empty.")
    request = replace(request, name=names[-1])

    existing = find_item_by_path(items, path)
    if isinstance(existing, CollectionRequestItem):
        return update_item(items, existing.id, request), existing.id
    if existing is not None:
        raise ValueError(f"'{path}' is a folder.")

    parent_id: str | None = None
    level = items
    for name in names[:-1]:
        folder = next((item for item in level if item.name == name), None)
        if folder is None:
            folder = CollectionFolder(name=name)
            items = insert_item(items, parent_id, folder)
        elif not isinstance(folder, CollectionFolder):
            raise ValueError(f"'{name}' in '{path}' is a saved request, not a folder.")
        parent_id = folder.id
        level = folder.children

    item = CollectionRequestItem(name=names[-1], request=request)
    return insert_item(items, parent_id, item), item.id
