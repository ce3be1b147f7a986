"""
Query string parsing with bracket nesting.

    ?a=1&a=2            → {"a": ["1", "2"]}
    ?price[gte]=5       → {"price": {"gte": "5"}}
    ?tags[]=x&tags[]=y  → {"tags": ["x", "y"]}

Nesting matters for sanitization: ?password[$ne]=x is how an operator gets
smuggled into a lookup through the URL, so it must surface as a mapping key
the operator strip can see.
"""

import re
from typing import Any, Dict, List, Tuple
from urllib.parse import parse_qsl, urlencode

_SEGMENT = re.compile(r"\[([^\[\]]*)\]")

# Deeper nesting is kept as a literal key, like most query parsers do
MAX_DEPTH = 5


def _split_key(key: str) -> List[str]:
    head, bracket, _ = key.partition("[")
    if not bracket or not head:
        return [key]
    rest = key[len(head):]
    segments = _SEGMENT.findall(rest)
    if "".join(f"[{s}]" for s in segments) != rest or len(segments) > MAX_DEPTH:
        return [key]
    return [head, *segments]


def _assign(target: Dict[str, Any], path: List[str], value: str) -> None:
    """
    Merge one parsed pair into `target`.

    A plain value and a nested mapping under the same key are both kept:
    the plain value moves to the mapping's "" key (?a[b]=1&a=2 → {"a":
    {"b": "1", "": "2"}}), which encode_query writes back as a[]=2.
    """
    key = path[0]
    existing = target.get(key)

    if len(path) == 1:
        if existing is None:
            target[key] = value
        elif isinstance(existing, list):
            existing.append(value)
        elif isinstance(existing, dict):
            _assign(existing, [""], value)
        else:
            target[key] = [existing, value]
        return

    if path[1] == "":
        if existing is None:
            target[key] = [value]
        elif isinstance(existing, list):
            existing.append(value)
        elif isinstance(existing, dict):
            _assign(existing, [""], value)
        else:
            target[key] = [existing, value]
        return

    if existing is None:
        existing = target[key] = {}
    elif not isinstance(existing, dict):
        existing = target[key] = {"": existing}
    _assign(existing, path[1:], value)


def parse_query(query_string: str) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for key, value in parse_qsl(query_string, keep_blank_values=True):
        _assign(result, _split_key(key), value)
    return result


def _flatten(prefix: str, value: Any) -> List[Tuple[str, str]]:
    if isinstance(value, dict):
        pairs = []
        for k, v in value.items():
            pairs.extend(_flatten(f"{prefix}[{k}]", v))
        return pairs
    if isinstance(value, list):
        pairs = []
        for item in value:
            if isinstance(item, (dict, list)):
                pairs.extend(_flatten(f"{prefix}[]", item))
            else:
                pairs.append((prefix, str(item)))
        return pairs
    return [(prefix, "" if value is None else str(value))]


def encode_query(query: Dict[str, Any]) -> str:
    """Inverse of parse_query for the shapes it produces."""
    pairs: List[Tuple[str, str]] = []
    for key, value in query.items():
        pairs.extend(_flatten(key, value))
    return urlencode(pairs)
