"""amqpmsg application properties — ordered map codec.

Decode walks the map in stream order and yields a dict whose key order is
the stream order.  Encode walks the caller's mapping in its own iteration
order, so a dict round-trips with its keys in insertion order.

Value typing is asymmetric, as with scalars: short/int/long/float/double
atoms all read back as Python numbers, but every Python number is written
as a double.  {"a": 1} therefore reads back as {"a": 1.0}.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from ._constants import BINARY, BOOL, BYTE, DOUBLE, FLOAT, INT, LONG, NULL, SHORT, STRING
from ._data import Data
from ._scalar import BufferFactory, encode_scalar, read_scalar, to_host

logger = logging.getLogger(__name__)

# Value atom types that become property values.  Symbols, unsigned
# integers and compound values are dropped together with their key.
_VALUE_TYPES = frozenset({NULL, BOOL, SHORT, INT, LONG, FLOAT, DOUBLE, BYTE, BINARY, STRING})


def decode_properties(data: Data,
                      buffer_factory: BufferFactory = bytes) -> Optional[Dict[str, Any]]:
    """Return the properties map, or None when the region is absent or empty."""
    data.rewind()
    try:
        data.next()
        size = data.get_map()
        if size == 0:
            return None

        data.enter()
        data.next()
        result: Dict[str, Any] = {}
        for _ in range(0, size, 2):
            # TODO: confirm with the protocol owners whether a non-string key
            # should be skipped.  Today the cursor stays on it, so every
            # remaining slot sees the same atom and makes no progress.
            if data.type() != STRING:
                logger.debug("property key of type %s, not advancing", data.type())
                continue

            key = data.get_string()
            if not data.next():
                break
            scalar = read_scalar(data)
            if scalar is not None and scalar.kind in _VALUE_TYPES:
                result[key] = to_host(scalar, buffer_factory)
            else:
                logger.debug("dropping property %r of type %s", key, data.type())
            if not data.next():
                break
        data.exit()
        return result
    finally:
        data.rewind()


def _encodable(value: Any) -> bool:
    # Probe with a scratch stream so an unsupported value never leaves its
    # key behind in the real one.
    return encode_scalar(Data(), value)


def encode_properties(data: Data, properties: Mapping[Any, Any]) -> int:
    """Write `properties` as the message's application-properties map.

    Returns the number of entries written.  An empty mapping leaves the
    stream untouched.
    """
    if not properties:
        return 0

    written = 0
    seen = set()
    data.rewind()
    data.put_map()
    data.enter()
    try:
        for key, value in properties.items():
            if not _encodable(value):
                logger.debug("skipping property %r: unsupported type %s",
                             key, type(value).__name__)
                continue
            # Keys are written as strings, so 1 and "1" share a wire key.  Both
            # entries are kept; decode then holds the first position and the
            # last value.
            name = str(key)
            if name in seen:
                logger.debug("property key %r repeats after str()", name)
            seen.add(name)
            data.put_string(name)
            encode_scalar(data, value)
            written += 1
    finally:
        data.exit()
        data.rewind()
    return written
