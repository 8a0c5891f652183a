"""amqpmsg Data — a typed atom tree with a read/write cursor.

This is the collaborator every codec works against.  A Data holds a forest
of nodes; each node is one atom (null, bool, the integer widths, float,
double, timestamp, uuid, binary, string, symbol) or a container (list,
map, described).  A map's children alternate key, value, key, value.

The cursor is a (parent, index) pair.  index == -1 means "before the first
child": the state after rewind() or enter().  Navigation never raises:
next(), prev(), enter() and exit() return False when they cannot move.

Writes follow the same cursor.  put_*() writes the node immediately after
the current one and moves onto it; if a node already sits in that slot it
is replaced outright, children and all.  So rewind() followed by a put
overwrites the first top-level atom rather than appending a second one.
"""

from __future__ import annotations

import struct
import uuid as _uuid
from typing import Any, List, Optional, Tuple

from ._constants import (
    BINARY,
    BOOL,
    BYTE,
    CONTAINER_TYPES,
    DESCRIBED,
    DOUBLE,
    FLOAT,
    INT,
    LIST,
    LONG,
    MAP,
    NULL,
    RANGES,
    SHORT,
    STRING,
    SYMBOL,
    TIMESTAMP,
    UBYTE,
    UINT,
    ULONG,
    USHORT,
    UUID,
)
from ._errors import ERR_RANGE, AmqpMsgError


class _Node:
    __slots__ = ("type", "value", "children")

    def __init__(self, type_: Optional[str], value: Any = None) -> None:
        self.type = type_
        self.value = value
        self.children: Optional[List["_Node"]] = [] if (
            type_ is None or type_ in CONTAINER_TYPES) else None

    def clone(self) -> "_Node":
        node = _Node(self.type, self.value)
        if self.children is not None:
            node.children = [c.clone() for c in self.children]
        return node

    def count(self) -> int:
        if not self.children:
            return 1
        return 1 + sum(c.count() for c in self.children)


def _check_range(type_: str, value: int) -> int:
    # bool is an int subclass; True would silently become 1 here.
    if isinstance(value, bool) or not isinstance(value, int):
        raise AmqpMsgError(ERR_RANGE, "{} requires an int, got {}".format(
            type_, type(value).__name__))
    lo, hi = RANGES[type_]
    if value < lo or value > hi:
        raise AmqpMsgError(ERR_RANGE, "{} out of range: {}".format(type_, value))
    return value


def _as_float32(value: float) -> float:
    """Round a Python float to the nearest IEEE-754 single."""
    try:
        return struct.unpack(">f", struct.pack(">f", value))[0]
    except OverflowError:
        raise AmqpMsgError(ERR_RANGE, "float out of range: {}".format(value))


class Data:
    """Typed atom stream with a mutable cursor."""

    def __init__(self) -> None:
        self._root = _Node(None)
        self._parent = self._root
        self._index = -1
        self._stack: List[Tuple[_Node, int]] = []

    # ── Housekeeping ──────────────────────────────────────────

    def clear(self) -> None:
        """Drop every node and rewind."""
        self._root = _Node(None)
        self.rewind()

    def copy(self) -> "Data":
        """Deep copy.  The copy starts rewound regardless of our cursor."""
        other = Data()
        other._root = self._root.clone()
        other.rewind()
        return other

    def size(self) -> int:
        """Total number of nodes, containers included."""
        return sum(c.count() for c in self._root.children)

    def __len__(self) -> int:
        return self.size()

    def dump(self) -> List[Any]:
        """Plain nested (type, value) structure, for diagnostics and tests."""
        return [_dump_node(c) for c in self._root.children]

    # ── Navigation ────────────────────────────────────────────

    def rewind(self) -> None:
        self._parent = self._root
        self._index = -1
        self._stack = []

    def next(self) -> bool:
        if self._index + 1 < len(self._parent.children):
            self._index += 1
            return True
        return False

    def prev(self) -> bool:
        if self._index > 0:
            self._index -= 1
            return True
        return False

    def enter(self) -> bool:
        node = self._current()
        if node is None or node.children is None:
            return False
        self._stack.append((self._parent, self._index))
        self._parent = node
        self._index = -1
        return True

    def exit(self) -> bool:
        if not self._stack:
            return False
        self._parent, self._index = self._stack.pop()
        return True

    def type(self) -> Optional[str]:
        node = self._current()
        return node.type if node is not None else None

    def _current(self) -> Optional[_Node]:
        if self._index < 0:
            return None
        return self._parent.children[self._index]

    # ── Writes ────────────────────────────────────────────────

    def _put(self, node: _Node) -> None:
        children = self._parent.children
        slot = self._index + 1
        if slot < len(children):
            children[slot] = node
        else:
            children.append(node)
        self._index = slot

    def put_null(self) -> None:
        self._put(_Node(NULL))

    def put_bool(self, value: bool) -> None:
        self._put(_Node(BOOL, bool(value)))

    def put_ubyte(self, value: int) -> None:
        self._put(_Node(UBYTE, _check_range(UBYTE, value)))

    def put_byte(self, value: int) -> None:
        self._put(_Node(BYTE, _check_range(BYTE, value)))

    def put_ushort(self, value: int) -> None:
        self._put(_Node(USHORT, _check_range(USHORT, value)))

    def put_short(self, value: int) -> None:
        self._put(_Node(SHORT, _check_range(SHORT, value)))

    def put_uint(self, value: int) -> None:
        self._put(_Node(UINT, _check_range(UINT, value)))

    def put_int(self, value: int) -> None:
        self._put(_Node(INT, _check_range(INT, value)))

    def put_ulong(self, value: int) -> None:
        self._put(_Node(ULONG, _check_range(ULONG, value)))

    def put_long(self, value: int) -> None:
        self._put(_Node(LONG, _check_range(LONG, value)))

    def put_timestamp(self, value: int) -> None:
        """Milliseconds since the Unix epoch."""
        self._put(_Node(TIMESTAMP, _check_range(TIMESTAMP, value)))

    def put_float(self, value: float) -> None:
        self._put(_Node(FLOAT, _as_float32(float(value))))

    def put_double(self, value: float) -> None:
        self._put(_Node(DOUBLE, float(value)))

    def put_uuid(self, value: _uuid.UUID) -> None:
        self._put(_Node(UUID, value))

    def put_binary(self, value: bytes) -> None:
        self._put(_Node(BINARY, bytes(value)))

    def put_string(self, value: str) -> None:
        self._put(_Node(STRING, str(value)))

    def put_symbol(self, value: str) -> None:
        self._put(_Node(SYMBOL, str(value)))

    def put_list(self) -> None:
        self._put(_Node(LIST))

    def put_map(self) -> None:
        self._put(_Node(MAP))

    def put_described(self) -> None:
        """Put a described node; enter it and put descriptor then value."""
        self._put(_Node(DESCRIBED))

    # ── Reads ─────────────────────────────────────────────────
    # A get on the wrong type returns the type's zero value rather than
    # raising; callers check type() first when the difference matters.

    def _get(self, type_: str, default: Any) -> Any:
        node = self._current()
        if node is None or node.type != type_:
            return default
        return node.value

    def get_bool(self) -> bool:
        return self._get(BOOL, False)

    def get_ubyte(self) -> int:
        return self._get(UBYTE, 0)

    def get_byte(self) -> int:
        return self._get(BYTE, 0)

    def get_ushort(self) -> int:
        return self._get(USHORT, 0)

    def get_short(self) -> int:
        return self._get(SHORT, 0)

    def get_uint(self) -> int:
        return self._get(UINT, 0)

    def get_int(self) -> int:
        return self._get(INT, 0)

    def get_ulong(self) -> int:
        return self._get(ULONG, 0)

    def get_long(self) -> int:
        return self._get(LONG, 0)

    def get_timestamp(self) -> int:
        return self._get(TIMESTAMP, 0)

    def get_float(self) -> float:
        return self._get(FLOAT, 0.0)

    def get_double(self) -> float:
        return self._get(DOUBLE, 0.0)

    def get_uuid(self) -> Optional[_uuid.UUID]:
        return self._get(UUID, None)

    def get_binary(self) -> bytes:
        return self._get(BINARY, b"")

    def get_string(self) -> str:
        return self._get(STRING, "")

    def get_symbol(self) -> str:
        return self._get(SYMBOL, "")

    def get_map(self) -> int:
        """Child count of the current map (keys plus values), else 0."""
        node = self._current()
        if node is None or node.type != MAP:
            return 0
        return len(node.children)

    def get_list(self) -> int:
        node = self._current()
        if node is None or node.type != LIST:
            return 0
        return len(node.children)

    # ── Wire form ─────────────────────────────────────────────

    def encode(self) -> bytes:
        """AMQP 1.0 encoding of every top-level node, back to back."""
        from ._wire import encode_nodes
        return encode_nodes(self._root.children)

    @classmethod
    def decode(cls, raw: bytes) -> "Data":
        """Inverse of encode().  Raises AmqpMsgError on malformed input."""
        from ._wire import decode_nodes
        return cls._from_nodes(decode_nodes(raw))

    @classmethod
    def _from_nodes(cls, nodes: List[_Node]) -> "Data":
        data = cls()
        data._root.children = list(nodes)
        return data

    def _top(self) -> List[_Node]:
        return self._root.children


def _dump_node(node: _Node) -> Any:
    if node.children is not None:
        return (node.type, [_dump_node(c) for c in node.children])
    return (node.type, node.value)
