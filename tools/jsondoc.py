"""tools/jsondoc.py

Small helpers over native JSON documents (dict / list / scalars).

Raw scanner output is kept as whatever ``json.loads`` returned. Adapters only
need three things from it: path lookup, array iteration and element removal
by predicate.
"""

from __future__ import annotations

from typing import Any, Callable, List, Union

Key = Union[str, int]


def path(node: Any, *keys: Key) -> Any:
    """Follow ``keys`` through nested dicts/lists; None when any step is missing."""
    cur = node
    for k in keys:
        if isinstance(cur, dict):
            cur = cur.get(k)
        elif isinstance(cur, list) and isinstance(k, int) and -len(cur) <= k < len(cur):
            cur = cur[k]
        else:
            return None
    return cur


def elements(node: Any) -> List[Any]:
    """Array elements of ``node`` ([] if it is not an array)."""
    return list(node) if isinstance(node, list) else []


def as_text(node: Any) -> str:
    if node is None:
        return ""
    if isinstance(node, bool):
        return "true" if node else "false"
    return str(node)


def as_int(node: Any) -> int:
    if isinstance(node, bool) or node is None:
        return 0
    try:
        return int(node)
    except (TypeError, ValueError):
        return 0


def remove_elements_if(node: Any, pred: Callable[[Any], bool]) -> List[Any]:
    """Return a new array holding the elements of ``node`` that fail ``pred``."""
    return [e for e in elements(node) if not pred(e)]
