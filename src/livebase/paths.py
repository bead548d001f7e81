"""
Path helpers for the base data tree.

A path is an ordered tuple of keys (str or int) locating a node in the
nested, id-keyed base data. Paths are compared component-wise:

    ('tablesById', 'tbl1')                 is a prefix of
    ('tablesById', 'tbl1', 'fieldsById')   and both are prefix-compatible.

Writes are copy-on-write: every mapping along the written path is replaced
by a fresh copy, so references taken before a write keep their old content.
"""

from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple, Union

PathKey = Union[str, int]
Path = Tuple[PathKey, ...]


def normalize_path(path: Union[Sequence[PathKey], PathKey]) -> Path:
    """Normalize a list/tuple (or a bare key) into a path tuple."""
    if isinstance(path, (str, int)):
        return (path,)
    return tuple(path)


def is_prefix(prefix: Path, path: Path) -> bool:
    """True if ``prefix`` equals ``path`` or is a leading part of it."""
    if len(prefix) > len(path):
        return False
    return path[:len(prefix)] == prefix


def are_prefix_compatible(a: Path, b: Path) -> bool:
    """True if either path is a prefix of (or equal to) the other."""
    shorter = min(len(a), len(b))
    return a[:shorter] == b[:shorter]


def affects_any(changed_path: Path, interest_paths: Iterable[Path]) -> bool:
    """Check if a changed path touches any path in an interest set."""
    return any(are_prefix_compatible(changed_path, p) for p in interest_paths)


def get_in(tree: Optional[Mapping], path: Sequence[PathKey], default: Any = None) -> Any:
    """Read the node at ``path``, or ``default`` if any step is missing."""
    node: Any = tree
    for key in path:
        if not isinstance(node, Mapping) or key not in node:
            return default
        node = node[key]
    return node


def is_entity_collection_key(key: PathKey) -> bool:
    """True for id-keyed collections such as ``tablesById`` or ``fieldsById``."""
    return isinstance(key, str) and key.endswith('ById')


def _creates_missing_entity(tree: Optional[Mapping], path: Path) -> bool:
    """True if writing at ``path`` would create an absent entity as an intermediate node."""
    node: Any = tree
    for depth, key in enumerate(path[:-1]):
        if isinstance(node, Mapping) and isinstance(node.get(key), Mapping):
            node = node[key]
            continue
        node = None
        if depth > 0 and is_entity_collection_key(path[depth - 1]):
            return True
    return False


def set_in(tree: Optional[Mapping], path: Path, value: Any) -> dict:
    """Return a new tree with ``value`` written at ``path``.

    ``value=None`` removes the entry; removing under a missing node leaves
    the tree as it was. A write beneath an entity that is absent from its
    ``*ById`` collection is dropped, so late patches never recreate a deleted
    entity; only a write of the whole entry adds it back. Other missing
    intermediate nodes are created as empty dicts and non-mapping
    intermediates are replaced. The input tree is never mutated.
    """
    if not path:
        return dict(value) if isinstance(value, Mapping) else {}
    if value is None and not isinstance(get_in(tree, path[:-1]), Mapping):
        return dict(tree) if isinstance(tree, Mapping) else {}
    if value is not None and _creates_missing_entity(tree, path):
        return dict(tree) if isinstance(tree, Mapping) else {}

    root = dict(tree) if isinstance(tree, Mapping) else {}
    node = root
    for key in path[:-1]:
        child = node.get(key)
        child = dict(child) if isinstance(child, Mapping) else {}
        node[key] = child
        node = child

    leaf = path[-1]
    if value is None:
        node.pop(leaf, None)
    else:
        node[leaf] = value
    return root
