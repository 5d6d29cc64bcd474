"""Field-level helpers shared by the local backends (in-memory and MySQL).

These reproduce the write semantics of a document database: merge writes,
dotted-path updates and field transforms, plus predicate matching and
ordering for queries.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .base import DELETE_FIELD, ArrayRemove, ArrayUnion, Document, Increment, OrderBy, Where

_MISSING = object()


def _resolve(current: Any, value: Any) -> Any:
    if isinstance(value, ArrayUnion):
        items = list(current) if isinstance(current, list) else []
        for v in value.values:
            if v not in items:
                items.append(copy.deepcopy(v))
        return items
    if isinstance(value, ArrayRemove):
        items = list(current) if isinstance(current, list) else []
        return [i for i in items if i not in value.values]
    if isinstance(value, Increment):
        base = current if isinstance(current, (int, float)) and not isinstance(current, bool) else 0
        return base + value.amount
    if isinstance(value, dict):
        return {k: _resolve(_MISSING, v) for k, v in value.items() if v is not DELETE_FIELD}
    return copy.deepcopy(value)


def _set_path(target: Dict[str, Any], path: List[str], value: Any) -> None:
    node = target
    for part in path[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child

    leaf = path[-1]
    if value is DELETE_FIELD:
        node.pop(leaf, None)
        return
    node[leaf] = _resolve(node.get(leaf, _MISSING), value)


def _merge(target: Dict[str, Any], fields: Dict[str, Any]) -> None:
    for name, value in fields.items():
        if isinstance(value, dict) and isinstance(target.get(name), dict):
            _merge(target[name], value)
        else:
            _set_path(target, [name], value)


def apply_set(existing: Optional[Dict[str, Any]], data: Dict[str, Any], *, merge: bool) -> Dict[str, Any]:
    """New contents of a document after ``set`` (deep-merging maps when ``merge``)."""

    result: Dict[str, Any] = copy.deepcopy(existing) if (merge and existing) else {}
    if merge:
        _merge(result, data)
    else:
        for name, value in data.items():
            _set_path(result, [name], value)
    return result


def apply_update(existing: Dict[str, Any], fields: Dict[str, Any]) -> Dict[str, Any]:
    """New contents of a document after ``update``; keys may be dotted paths."""

    result = copy.deepcopy(existing)
    for name, value in fields.items():
        _set_path(result, name.split("."), value)
    return result


def read_path(data: Dict[str, Any], path: str) -> Any:
    node: Any = data
    for part in path.split("."):
        if not isinstance(node, dict) or part not in node:
            return _MISSING
        node = node[part]
    return node


def _compare(left: Any, op: str, right: Any) -> bool:
    if op == "==":
        return left == right
    if op == "!=":
        return left is not _MISSING and left != right
    if op == "in":
        return left in right
    if op == "array-contains":
        return isinstance(left, list) and right in left
    if left is _MISSING or left is None or right is None:
        return False
    try:
        if op == "<":
            return left < right
        if op == "<=":
            return left <= right
        if op == ">":
            return left > right
        if op == ">=":
            return left >= right
    except TypeError:
        return False
    raise ValueError(f"Unsupported query operator: {op!r}")


def matches(data: Dict[str, Any], predicates: Iterable[Where]) -> bool:
    for p in predicates:
        value = read_path(data, p.field)
        if p.op == "==" and p.value is None:
            if value is not None:
                return False
            continue
        if not _compare(value, p.op, p.value):
            return False
    return True


def sort_documents(docs: List[Document], order_by: Sequence[OrderBy]) -> List[Document]:
    # Stable sorts applied from the last key to the first.
    result = list(docs)
    for order in reversed(list(order_by)):
        present = [d for d in result if read_path(d.data, order.field) not in (_MISSING, None)]
        absent = [d for d in result if read_path(d.data, order.field) in (_MISSING, None)]
        present.sort(key=lambda d: read_path(d.data, order.field), reverse=order.descending)
        result = present + absent
    return result


def select(
    docs: Iterable[Document],
    *,
    key: Optional[str] = None,
    predicates: Sequence[Where] = (),
    order_by: Sequence[OrderBy] = (),
    limit: Optional[int] = None,
) -> List[Document]:
    chosen = [d for d in docs if (key is None or d.key == key) and matches(d.data, predicates)]
    chosen = sort_documents(chosen, order_by)
    if limit is not None:
        chosen = chosen[: int(limit)]
    return chosen
