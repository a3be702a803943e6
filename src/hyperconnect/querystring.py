"""Query string parsing with bracket-nested keys.

Follows the conventions of the ``qs`` family of parsers:

    q=Ninkasi                 -> {"q": "Ninkasi"}
    shoe[color]=blue          -> {"shoe": {"color": "blue"}}
    a[]=x&a[]=y               -> {"a": ["x", "y"]}
    a[1]=y&a[0]=x             -> {"a": ["x", "y"]}
    a=1&a=2                   -> {"a": ["1", "2"]}
"""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import parse_qsl

# Maximum nesting depth; anything deeper is kept as one literal segment
MAX_DEPTH = 5

# Numeric indices above this build string keys instead of lists
ARRAY_LIMIT = 20

# Pairs past this count are ignored
PARAMETER_LIMIT = 1000

_SEGMENT = re.compile(r"\[([^\[\]]*)\]")

QueryValue = str | list[Any] | dict[str, Any]


class _Node(dict):
    """Mapping under construction that knows its next append index."""

    __slots__ = ("next_index",)

    def __init__(self, *args: Any) -> None:
        super().__init__(*args)
        self.next_index = 0

    def put(self, key: Any, value: Any) -> None:
        if key is None:
            key = self.next_index
        if isinstance(key, int) and key >= self.next_index:
            self.next_index = key + 1
        self[key] = value


def parse_query(query: str | None) -> dict[str, QueryValue]:
    """Parse a raw query string (without the leading ``?``)."""
    if not query:
        return {}

    pairs = "&".join(query.split("&", PARAMETER_LIMIT)[:PARAMETER_LIMIT])
    root = _Node()
    for key, value in parse_qsl(pairs, keep_blank_values=True):
        if not key:
            continue
        _assign(root, _split_key(key), value)

    return {str(k): _compact(v) for k, v in root.items()}


def query_from_url(url: str) -> dict[str, QueryValue]:
    """Parse the part of ``url`` after its first ``?``."""
    _, sep, query = url.partition("?")
    if not sep:
        return {}
    return parse_query(query)


def _split_key(key: str) -> list[str | int | None]:
    """Split ``a[b][]`` into ``["a", "b", None]``.

    ``None`` stands for an empty bracket (append). Text before the first
    bracket is the parent; text after the last matched bracket is dropped.
    """
    first = _SEGMENT.search(key)
    if first is None:
        return [key]

    segments: list[str | int | None] = []
    if first.start() > 0:
        segments.append(key[: first.start()])

    for depth, match in enumerate(_SEGMENT.finditer(key, first.start())):
        if depth == MAX_DEPTH:
            segments.append(key[match.start() :])
            break
        segments.append(_convert_segment(match.group(1)))
    return segments


def _convert_segment(segment: str) -> str | int | None:
    if segment == "":
        return None
    if segment.isdigit() and int(segment) <= ARRAY_LIMIT and str(int(segment)) == segment:
        return int(segment)
    return segment


def _assign(node: _Node, path: list[str | int | None], value: str) -> None:
    *parents, last = path

    for segment in parents:
        key = node.next_index if segment is None else segment
        child = node.get(key)
        if not isinstance(child, _Node):
            child = _Node()
            if key in node:
                child.put(0, node[key])
            node.put(key, child)
        node = child

    key = node.next_index if last is None else last
    if key not in node:
        node.put(key, value)
        return

    existing = node[key]
    if isinstance(existing, _Node):
        existing.put(None, value)
    else:
        pair = _Node()
        pair.put(0, existing)
        pair.put(1, value)
        node[key] = pair


def _compact(node: Any) -> Any:
    """Turn index-only mappings into lists and stringify remaining keys."""
    if not isinstance(node, dict):
        return node
    if node and all(isinstance(k, int) for k in node):
        return [_compact(node[k]) for k in sorted(node)]
    return {str(k): _compact(v) for k, v in node.items()}
