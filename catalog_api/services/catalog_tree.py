"""Assemble product type rows into a forest.

The builder is tolerant: a node whose parent is missing from the input is
returned as a root rather than dropped. It does not sort and does not detect
cycles; callers pass nodes ordered by id and keep the parent graph acyclic.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

NODE_FIELDS = ("id", "label", "parent_id", "has_details")


def _read(node: Any, field: str) -> Any:
    if isinstance(node, Mapping):
        return node.get(field)
    return getattr(node, field, None)


def to_node(node: Any) -> dict[str, Any]:
    return {field: _read(node, field) for field in NODE_FIELDS}


def build_tree(nodes: Iterable[Any]) -> list[dict[str, Any]]:
    entries = []
    by_id: dict[Any, dict[str, Any]] = {}
    for node in nodes:
        entry = to_node(node)
        entry["children"] = []
        entries.append(entry)
        by_id[entry["id"]] = entry

    roots = []
    for entry in entries:
        parent_id = entry["parent_id"]
        parent = by_id.get(parent_id) if parent_id is not None else None
        if parent is None:
            roots.append(entry)
        else:
            parent["children"].append(entry)
    return roots


def flatten_tree(forest: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Pre-order list of the forest's nodes without their ``children``."""
    flat = []
    stack = list(reversed(list(forest)))
    while stack:
        entry = stack.pop()
        flat.append({field: entry.get(field) for field in NODE_FIELDS})
        stack.extend(reversed(entry.get("children") or []))
    return flat
