"""amqpmsg wire codec — AMQP 1.0 encoding of Data trees and whole messages.

Every value is self-describing via a one-byte constructor code.  Variable
width types (binary, string, symbol) carry a 1-byte length when the
payload fits in 255 bytes and a 4-byte length otherwise.  Compound types
(list, map) carry a size and a count of the same width.  All multi-byte
fields are big-endian.

A message is a sequence of described sections.  Only the sections this
package models are produced: header (ttl), delivery-annotations,
properties (to, content-type), application-properties and amqp-value.
On decode, a data section becomes a binary body and anything else is
skipped.
"""

from __future__ import annotations

import struct
import uuid as _uuid
from typing import Any, List, Optional, Tuple

from ._constants import (
    BINARY,
    BOOL,
    BYTE,
    DESCRIBED,
    DOUBLE,
    FC_BOOLEAN,
    FC_BYTE,
    FC_DESCRIBED,
    FC_DOUBLE,
    FC_FALSE,
    FC_FLOAT,
    FC_INT,
    FC_LIST0,
    FC_LIST8,
    FC_LIST32,
    FC_LONG,
    FC_MAP8,
    FC_MAP32,
    FC_NULL,
    FC_SHORT,
    FC_SMALLINT,
    FC_SMALLLONG,
    FC_SMALLUINT,
    FC_SMALLULONG,
    FC_STR8,
    FC_STR32,
    FC_SYM8,
    FC_SYM32,
    FC_TIMESTAMP,
    FC_TRUE,
    FC_UBYTE,
    FC_UINT,
    FC_UINT0,
    FC_ULONG,
    FC_ULONG0,
    FC_USHORT,
    FC_UUID,
    FC_VBIN8,
    FC_VBIN32,
    FLOAT,
    HEADER_TTL_FIELD,
    INT,
    LIST,
    LONG,
    MAP,
    MAX_DEPTH,
    MAX_MESSAGE_BYTES,
    NULL,
    PROPERTIES_CONTENT_TYPE_FIELD,
    PROPERTIES_TO_FIELD,
    SECTION_AMQP_VALUE,
    SECTION_APPLICATION_PROPERTIES,
    SECTION_DATA,
    SECTION_DELIVERY_ANNOTATIONS,
    SECTION_HEADER,
    SECTION_PROPERTIES,
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
from ._data import Data, _Node
from ._errors import (
    ERR_DECODE,
    ERR_LIMIT_DEPTH,
    ERR_LIMIT_SIZE,
    ERR_RANGE,
    ERR_UTF8,
    AmqpMsgError,
)

# Fixed-width atoms: type -> (constructor, struct format).
_FIXED = {
    UBYTE: (FC_UBYTE, ">B"),
    BYTE: (FC_BYTE, ">b"),
    USHORT: (FC_USHORT, ">H"),
    SHORT: (FC_SHORT, ">h"),
    FLOAT: (FC_FLOAT, ">f"),
    DOUBLE: (FC_DOUBLE, ">d"),
    TIMESTAMP: (FC_TIMESTAMP, ">q"),
}

# Reverse lookup for the decoder: constructor -> (type, struct format).
_FIXED_DECODE = {
    FC_UBYTE: (UBYTE, ">B"),
    FC_BYTE: (BYTE, ">b"),
    FC_USHORT: (USHORT, ">H"),
    FC_SHORT: (SHORT, ">h"),
    FC_UINT: (UINT, ">I"),
    FC_SMALLUINT: (UINT, ">B"),
    FC_INT: (INT, ">i"),
    FC_SMALLINT: (INT, ">b"),
    FC_ULONG: (ULONG, ">Q"),
    FC_SMALLULONG: (ULONG, ">B"),
    FC_LONG: (LONG, ">q"),
    FC_SMALLLONG: (LONG, ">b"),
    FC_FLOAT: (FLOAT, ">f"),
    FC_DOUBLE: (DOUBLE, ">d"),
    FC_TIMESTAMP: (TIMESTAMP, ">q"),
}

_VARIABLE = {
    BINARY: (FC_VBIN8, FC_VBIN32),
    STRING: (FC_STR8, FC_STR32),
    SYMBOL: (FC_SYM8, FC_SYM32),
}

_VARIABLE_DECODE = {
    FC_VBIN8: (BINARY, ">B"),
    FC_VBIN32: (BINARY, ">I"),
    FC_STR8: (STRING, ">B"),
    FC_STR32: (STRING, ">I"),
    FC_SYM8: (SYMBOL, ">B"),
    FC_SYM32: (SYMBOL, ">I"),
}


# ── Encode ───────────────────────────────────────────────────

def _encode_compound(small: int, large: int, children: List[_Node],
                     depth: int) -> bytes:
    """Encode a list or map body with the narrowest size/count width."""
    if depth + 1 > MAX_DEPTH:
        raise AmqpMsgError(ERR_LIMIT_DEPTH, "depth exceeds MAX_DEPTH")
    body = b"".join(_encode_node(c, depth + 1) for c in children)
    count = len(children)
    # size counts the count field plus the element bytes.
    if len(body) + 1 <= 0xFF and count <= 0xFF:
        return bytes([small, len(body) + 1, count]) + body
    return bytes([large]) + struct.pack(">II", len(body) + 4, count) + body


def _encode_node(node: _Node, depth: int = 0) -> bytes:
    t = node.type
    v = node.value

    if t == NULL:
        return bytes([FC_NULL])

    if t == BOOL:
        return bytes([FC_TRUE if v else FC_FALSE])

    if t in _FIXED:
        code, fmt = _FIXED[t]
        return bytes([code]) + struct.pack(fmt, v)

    # uint/ulong have zero-width and one-byte forms; int/long have one-byte forms.
    if t == UINT:
        if v == 0:
            return bytes([FC_UINT0])
        if v <= 0xFF:
            return bytes([FC_SMALLUINT, v])
        return bytes([FC_UINT]) + struct.pack(">I", v)

    if t == ULONG:
        if v == 0:
            return bytes([FC_ULONG0])
        if v <= 0xFF:
            return bytes([FC_SMALLULONG, v])
        return bytes([FC_ULONG]) + struct.pack(">Q", v)

    if t == INT:
        if -128 <= v <= 127:
            return bytes([FC_SMALLINT]) + struct.pack(">b", v)
        return bytes([FC_INT]) + struct.pack(">i", v)

    if t == LONG:
        if -128 <= v <= 127:
            return bytes([FC_SMALLLONG]) + struct.pack(">b", v)
        return bytes([FC_LONG]) + struct.pack(">q", v)

    if t == UUID:
        return bytes([FC_UUID]) + v.bytes

    if t in _VARIABLE:
        small, large = _VARIABLE[t]
        raw = v if t == BINARY else v.encode("utf-8")
        if len(raw) <= 0xFF:
            return bytes([small, len(raw)]) + raw
        return bytes([large]) + struct.pack(">I", len(raw)) + raw

    if t == LIST:
        if not node.children:
            return bytes([FC_LIST0])
        return _encode_compound(FC_LIST8, FC_LIST32, node.children, depth)

    if t == MAP:
        if len(node.children) % 2:
            raise AmqpMsgError(ERR_RANGE, "map has a key with no value")
        return _encode_compound(FC_MAP8, FC_MAP32, node.children, depth)

    if t == DESCRIBED:
        if depth + 1 > MAX_DEPTH:
            raise AmqpMsgError(ERR_LIMIT_DEPTH, "depth exceeds MAX_DEPTH")
        if len(node.children) != 2:
            raise AmqpMsgError(ERR_RANGE, "described value needs descriptor and value")
        return (bytes([FC_DESCRIBED])
                + _encode_node(node.children[0], depth + 1)
                + _encode_node(node.children[1], depth + 1))

    raise AmqpMsgError(ERR_RANGE, "cannot encode node of type {}".format(t))


def encode_nodes(nodes: List[_Node]) -> bytes:
    return b"".join(_encode_node(n) for n in nodes)


# ── Decode ───────────────────────────────────────────────────

def _unpack(fmt: str, buf: bytes, off: int) -> Tuple[Any, int]:
    n = struct.calcsize(fmt)
    if off + n > len(buf):
        raise AmqpMsgError(ERR_DECODE, "truncated value at offset {}".format(off))
    return struct.unpack(fmt, buf[off:off + n])[0], off + n


def _decode_one(buf: bytes, off: int, depth: int) -> Tuple[_Node, int]:
    """Decode one value from buf at offset."""
    if off >= len(buf):
        raise AmqpMsgError(ERR_DECODE, "truncated constructor")
    code = buf[off]
    off += 1

    if code == FC_NULL:
        return _Node(NULL), off
    if code == FC_TRUE:
        return _Node(BOOL, True), off
    if code == FC_FALSE:
        return _Node(BOOL, False), off
    if code == FC_BOOLEAN:
        payload, off = _unpack(">B", buf, off)
        if payload not in (0x00, 0x01):
            raise AmqpMsgError(ERR_DECODE,
                               "invalid boolean payload 0x{:02x}".format(payload))
        return _Node(BOOL, payload == 0x01), off
    if code == FC_UINT0:
        return _Node(UINT, 0), off
    if code == FC_ULONG0:
        return _Node(ULONG, 0), off

    if code in _FIXED_DECODE:
        t, fmt = _FIXED_DECODE[code]
        v, off = _unpack(fmt, buf, off)
        return _Node(t, v), off

    if code == FC_UUID:
        if off + 16 > len(buf):
            raise AmqpMsgError(ERR_DECODE, "truncated uuid")
        return _Node(UUID, _uuid.UUID(bytes=bytes(buf[off:off + 16]))), off + 16

    if code in _VARIABLE_DECODE:
        t, fmt = _VARIABLE_DECODE[code]
        n, off = _unpack(fmt, buf, off)
        if off + n > len(buf):
            raise AmqpMsgError(ERR_DECODE, "truncated {} payload".format(t))
        raw = bytes(buf[off:off + n])
        off += n
        if t == BINARY:
            return _Node(t, raw), off
        try:
            return _Node(t, raw.decode("utf-8")), off
        except UnicodeDecodeError:
            raise AmqpMsgError(ERR_UTF8, "invalid utf-8 in {}".format(t))

    if code == FC_LIST0:
        return _Node(LIST), off

    if code in (FC_LIST8, FC_LIST32, FC_MAP8, FC_MAP32):
        if depth + 1 > MAX_DEPTH:
            raise AmqpMsgError(ERR_LIMIT_DEPTH, "depth exceeds MAX_DEPTH")
        fmt = ">B" if code in (FC_LIST8, FC_MAP8) else ">I"
        size, off = _unpack(fmt, buf, off)
        end = off + size
        if end > len(buf):
            raise AmqpMsgError(ERR_DECODE, "truncated compound payload")
        count, off = _unpack(fmt, buf, off)
        node = _Node(MAP if code in (FC_MAP8, FC_MAP32) else LIST)
        if node.type == MAP and count % 2:
            raise AmqpMsgError(ERR_DECODE, "map with odd element count")
        for _ in range(count):
            child, off = _decode_one(buf, off, depth + 1)
            node.children.append(child)
        if off != end:
            raise AmqpMsgError(ERR_DECODE, "compound size does not match contents")
        return node, off

    if code == FC_DESCRIBED:
        if depth + 1 > MAX_DEPTH:
            raise AmqpMsgError(ERR_LIMIT_DEPTH, "depth exceeds MAX_DEPTH")
        node = _Node(DESCRIBED)
        descriptor, off = _decode_one(buf, off, depth + 1)
        value, off = _decode_one(buf, off, depth + 1)
        node.children.extend([descriptor, value])
        return node, off

    raise AmqpMsgError(ERR_DECODE, "unknown constructor 0x{:02x}".format(code))


def decode_nodes(raw: bytes) -> List[_Node]:
    """Decode back-to-back values until the buffer is exhausted."""
    if len(raw) > MAX_MESSAGE_BYTES:
        raise AmqpMsgError(ERR_LIMIT_SIZE, "input exceeds MAX_MESSAGE_BYTES")
    nodes: List[_Node] = []
    off = 0
    while off < len(raw):
        node, off = _decode_one(raw, off, 0)
        nodes.append(node)
    return nodes


# ── Message sections ─────────────────────────────────────────

def _section(code: int, value: _Node) -> _Node:
    node = _Node(DESCRIBED)
    node.children.extend([_Node(ULONG, code), value])
    return node


def _fields_list(fields: List[Optional[_Node]]) -> _Node:
    """A composite's field list with trailing nulls trimmed."""
    while fields and fields[-1] is None:
        fields.pop()
    node = _Node(LIST)
    node.children.extend(f if f is not None else _Node(NULL) for f in fields)
    return node


def encode_message(container: Any) -> bytes:
    """Encode a message container (see _message._Container) to wire bytes."""
    sections: List[_Node] = []

    if container.ttl:
        fields: List[Optional[_Node]] = [None] * (HEADER_TTL_FIELD + 1)
        fields[HEADER_TTL_FIELD] = _Node(UINT, container.ttl)
        sections.append(_section(SECTION_HEADER, _fields_list(fields)))

    top = container.instructions._top()
    if top:
        sections.append(_section(SECTION_DELIVERY_ANNOTATIONS, top[0].clone()))

    if container.address is not None or container.content_type is not None:
        fields = [None] * (PROPERTIES_CONTENT_TYPE_FIELD + 1)
        if container.address is not None:
            fields[PROPERTIES_TO_FIELD] = _Node(STRING, container.address)
        if container.content_type is not None:
            fields[PROPERTIES_CONTENT_TYPE_FIELD] = _Node(SYMBOL, container.content_type)
        sections.append(_section(SECTION_PROPERTIES, _fields_list(fields)))

    top = container.properties._top()
    if top:
        sections.append(_section(SECTION_APPLICATION_PROPERTIES, top[0].clone()))

    top = container.body._top()
    if top:
        sections.append(_section(SECTION_AMQP_VALUE, top[0].clone()))

    raw = encode_nodes(sections)
    if len(raw) > MAX_MESSAGE_BYTES:
        raise AmqpMsgError(ERR_LIMIT_SIZE, "message exceeds MAX_MESSAGE_BYTES")
    return raw


def _field(node: _Node, index: int, type_: str) -> Optional[_Node]:
    if node.type != LIST or index >= len(node.children):
        return None
    field = node.children[index]
    return field if field.type == type_ else None


def decode_message(raw: bytes, container: Any) -> None:
    """Populate a message container from wire bytes.

    Fields the sections do not carry are left as they are, so callers pass
    a freshly created container.
    """
    data_body: List[bytes] = []
    for section in decode_nodes(raw):
        if section.type != DESCRIBED:
            raise AmqpMsgError(ERR_DECODE, "message section is not a described type")
        descriptor, value = section.children
        if descriptor.type != ULONG:
            continue  # symbolic descriptors are not modelled
        code = descriptor.value

        if code == SECTION_HEADER:
            ttl = _field(value, HEADER_TTL_FIELD, UINT)
            if ttl is not None:
                container.ttl = ttl.value
        elif code == SECTION_DELIVERY_ANNOTATIONS:
            container.instructions = Data._from_nodes([value])
        elif code == SECTION_PROPERTIES:
            to = _field(value, PROPERTIES_TO_FIELD, STRING)
            if to is not None:
                container.address = to.value
            ctype = _field(value, PROPERTIES_CONTENT_TYPE_FIELD, SYMBOL)
            if ctype is not None:
                container.content_type = ctype.value
        elif code == SECTION_APPLICATION_PROPERTIES:
            container.properties = Data._from_nodes([value])
        elif code == SECTION_DATA:
            if value.type == BINARY:
                data_body.append(value.value)
        elif code == SECTION_AMQP_VALUE:
            container.body = Data._from_nodes([value])

    # One or more data sections form a single binary body.
    if data_body:
        container.body = Data._from_nodes([_Node(BINARY, b"".join(data_body))])
