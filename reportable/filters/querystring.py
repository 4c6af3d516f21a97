# reportable/filters/querystring.py
"""Nested array encoding for URL query strings.

``{"filters": [{"column": "age", "value": [1, 2]}]}`` encodes to
``filters[0][column]=age&filters[0][value][0]=1&filters[0][value][1]=2``
(brackets percent-encoded). Decoding reverses it; every scalar comes back as a
string and ``None`` values are not encoded at all.
"""

import re
from typing import Any, Dict, Iterator, List, Mapping, Tuple
from urllib.parse import parse_qsl, urlencode

_KEY_PATTERN = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])*)$")
_SEGMENT_PATTERN = re.compile(r"\[([^\[\]]*)\]")


def _flatten(prefix: str, value: Any) -> Iterator[Tuple[str, str]]:
    if value is None:
        return
    if isinstance(value, Mapping):
        for key, item in value.items():
            yield from _flatten(f"{prefix}[{key}]", item)
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            yield from _flatten(f"{prefix}[{index}]", item)
    elif isinstance(value, bool):
        yield prefix, "1" if value else "0"
    else:
        yield prefix, str(value)


def build_query(data: Mapping[str, Any]) -> str:
    """Encode a mapping of nested dicts/lists into a query string."""
    pairs: List[Tuple[str, str]] = []
    for key, value in data.items():
        pairs.extend(_flatten(str(key), value))
    return urlencode(pairs)


def _insert(container: Dict[str, Any], segments: List[str], value: str) -> None:
    node = container
    for position, segment in enumerate(segments):
        last = position == len(segments) - 1
        if segment == "":
            # "key[]" appends with the next free numeric index
            numeric = [int(k) for k in node if k.isdigit()]
            segment = str(max(numeric) + 1 if numeric else 0)
        if last:
            node[segment] = value
            return
        child = node.get(segment)
        if not isinstance(child, dict):
            child = {}
            node[segment] = child
        node = child


def _listify(node: Any) -> Any:
    if not isinstance(node, dict):
        return node
    converted = {key: _listify(item) for key, item in node.items()}
    if converted and all(key.isdigit() for key in converted):
        return [converted[key] for key in sorted(converted, key=int)]
    return converted


def parse_query(query_string: str) -> Dict[str, Any]:
    """Decode a query string into nested dicts/lists of strings."""
    query_string = query_string.lstrip("?")
    root: Dict[str, Any] = {}
    for raw_key, value in parse_qsl(query_string, keep_blank_values=True):
        match = _KEY_PATTERN.match(raw_key)
        if not match:
            root[raw_key] = value
            continue
        base, rest = match.groups()
        _insert(root, [base] + _SEGMENT_PATTERN.findall(rest), value)
    return {key: _listify(item) for key, item in root.items()}
