"""
agtype decoding.

AGE returns every cypher() column as ``agtype``, which psycopg hands back as
text. The format is JSON with type annotations appended to some values:

    {"id": 844424930131969, "label": "Person", "properties": {...}}::vertex
    {"id": ..., "label": "KNOWS", "end_id": ..., "start_id": ..., "properties": {...}}::edge
    [{...}::vertex, {...}::edge, {...}::vertex]::path
    3.14::numeric

Annotations inside string literals are left alone.
"""

import json
import re
import secrets
from dataclasses import dataclass, field
from decimal import Decimal
from functools import partial
from typing import Any

from kg_age.errors import AgtypeDecodeError

_ANNOTATION = re.compile(r"::([a-z_]+)")
_TAG_KEY_PREFIX = "__agtype_"
_SCALAR_BOUNDARY = {",", ":", "[", "{", " ", "\t", "\n", "\r"}
_KNOWN_TAGS = {"vertex", "edge", "path", "numeric"}


@dataclass(frozen=True)
class Vertex:
    """Graph vertex (node)."""

    id: int
    label: str
    properties: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Edge:
    """Directed graph edge (relationship)."""

    id: int
    label: str
    start_id: int
    end_id: int
    properties: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Path:
    """Alternating sequence of vertices and edges."""

    elements: tuple[Vertex | Edge, ...]

    @property
    def vertices(self) -> list[Vertex]:
        return [e for e in self.elements if isinstance(e, Vertex)]

    @property
    def edges(self) -> list[Edge]:
        return [e for e in self.elements if isinstance(e, Edge)]

    def __len__(self) -> int:
        """Number of edges (hops) in the path."""
        return len(self.edges)


def _scan_string(text: str, start: int) -> int:
    """Return the index just past the string literal opening at ``start``."""
    i = start + 1
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
        elif ch == '"':
            return i + 1
        else:
            i += 1
    raise AgtypeDecodeError(f"Unterminated string in agtype value at offset {start}")


def _wrap(key: str, tag: str, body: str) -> str:
    return f'{{"{key}": "{tag}", "value": {body}}}'


def _annotate(text: str, key: str) -> str:
    """
    Rewrite ``value::tag`` annotations into JSON wrapper objects.

    ``{...}::vertex`` becomes ``{"<key>": "vertex", "value": {...}}`` so the
    annotations survive ``json.loads`` and can be applied by the object hook.
    ``key`` is random per call, so no map in the data can pass for a wrapper.
    """
    out: list[str] = []
    stack: list[int] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == '"':
            end = _scan_string(text, i)
            out.append(text[i:end])
            i = end
            continue
        if ch in "{[":
            stack.append(len(out))
            out.append(ch)
            i += 1
            continue
        if ch in "}]":
            if not stack:
                raise AgtypeDecodeError(f"Unbalanced {ch!r} in agtype value at offset {i}")
            out.append(ch)
            start = stack.pop()
            i += 1
            m = _ANNOTATION.match(text, i)
            if m:
                tag = _check_tag(m.group(1))
                body = "".join(out[start:])
                del out[start:]
                out.append(_wrap(key, tag, json.dumps(body) if tag == "numeric" else body))
                i = m.end()
            continue
        if ch == ":" and text.startswith("::", i):
            # Scalar annotation (only numeric in practice)
            m = _ANNOTATION.match(text, i)
            if m is None:
                raise AgtypeDecodeError(f"Malformed annotation in agtype value at offset {i}")
            tag = _check_tag(m.group(1))
            floor = stack[-1] + 1 if stack else 0
            token: list[str] = []
            while len(out) > floor and out[-1] not in _SCALAR_BOUNDARY:
                token.insert(0, out.pop())
            if not token:
                raise AgtypeDecodeError(f"Annotation without a value at offset {i}")
            out.append(_wrap(key, tag, json.dumps("".join(token))))
            i = m.end()
            continue
        out.append(ch)
        i += 1

    if stack:
        raise AgtypeDecodeError("Unbalanced brackets in agtype value")
    return "".join(out)


def _check_tag(tag: str) -> str:
    if tag not in _KNOWN_TAGS:
        raise AgtypeDecodeError(f"Unknown agtype annotation '::{tag}'")
    return tag


def _object_hook(key: str, obj: dict[str, Any]) -> Any:
    tag = obj.get(key)
    if tag is None or len(obj) != 2:
        return obj
    value = obj["value"]
    try:
        if tag == "vertex":
            return Vertex(
                id=value["id"],
                label=value["label"],
                properties=value.get("properties") or {},
            )
        if tag == "edge":
            return Edge(
                id=value["id"],
                label=value["label"],
                start_id=value["start_id"],
                end_id=value["end_id"],
                properties=value.get("properties") or {},
            )
        if tag == "path":
            return Path(elements=tuple(value))
        if tag == "numeric":
            return Decimal(value)
    except (KeyError, TypeError, ArithmeticError) as e:
        raise AgtypeDecodeError(f"Malformed {tag} in agtype value: {e}") from e
    return obj


def loads(value: Any) -> Any:
    """
    Decode one agtype value into Python.

    Args:
        value: Text as returned by psycopg (non-string values pass through)

    Returns:
        str, int, float, bool, None, Decimal, list, dict, Vertex, Edge or Path

    Raises:
        AgtypeDecodeError: If the text is not valid agtype
    """
    if value is None or not isinstance(value, (str, bytes)):
        return value
    if isinstance(value, bytes):
        value = value.decode("utf-8")
    try:
        key = f"{_TAG_KEY_PREFIX}{secrets.token_hex(8)}__"
        return json.loads(_annotate(value, key), object_hook=partial(_object_hook, key))
    except json.JSONDecodeError as e:
        raise AgtypeDecodeError(f"Invalid agtype value: {e.msg} at offset {e.pos}") from e
