"""amqpmsg scalars — the tagged-union value model and its single-atom codec.

A Scalar is one typed atom lifted off the stream:

    null     None
    bool     True / False
    short    int, 16-bit signed
    int      int, 32-bit signed
    long     int, 64-bit signed
    float    float, single precision on the wire
    double   float
    byte     int, 8-bit signed
    binary   bytes (an owned copy)
    string   str
    symbol   str (same value space as string; only the tag differs)

The write direction is narrower than the read direction: Python numbers
always go out as double atoms, with no attempt to pick an integer width.
"""

from __future__ import annotations

import logging
import math
import struct
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ._constants import (
    BINARY,
    BOOL,
    BYTE,
    DOUBLE,
    FLOAT,
    INT,
    LONG,
    NULL,
    SCALAR_TYPES,
    SHORT,
    STRING,
    SYMBOL,
)
from ._data import Data

logger = logging.getLogger(__name__)

BufferFactory = Callable[[bytes], Any]

# Byte sequences accepted on the write side.
BYTES_TYPES = (bytes, bytearray, memoryview)


@dataclass(frozen=True)
class Scalar:
    """One typed value.  `kind` is one of SCALAR_TYPES."""

    kind: str
    value: Any = None

    def __post_init__(self) -> None:
        if self.kind not in SCALAR_TYPES:
            raise ValueError("not a scalar kind: {!r}".format(self.kind))

    @property
    def is_text(self) -> bool:
        return self.kind in (STRING, SYMBOL)


# Reader per supported tag.  Anything not listed is "absent".
_READERS = {
    NULL: lambda d: None,
    BOOL: Data.get_bool,
    SHORT: Data.get_short,
    INT: Data.get_int,
    LONG: Data.get_long,
    FLOAT: Data.get_float,
    DOUBLE: Data.get_double,
    BYTE: Data.get_byte,
    BINARY: Data.get_binary,
    STRING: Data.get_string,
    SYMBOL: Data.get_symbol,
}


def read_scalar(data: Data) -> Optional[Scalar]:
    """Read the atom under the cursor without moving it."""
    kind = data.type()
    reader = _READERS.get(kind)
    if reader is None:
        return None
    return Scalar(kind, reader(data))


def decode_scalar(data: Data) -> Optional[Scalar]:
    """Advance one atom and return it as a Scalar.

    Returns None when there is no next atom or its tag is not a scalar
    variant (uint, ulong, list, map, described ...).  Callers treat that
    as "entry absent", not as an error.
    """
    if not data.next():
        return None
    scalar = read_scalar(data)
    if scalar is None:
        logger.debug("skipping unsupported atom type %s", data.type())
    return scalar


def _to_double(value: Any) -> float:
    try:
        return float(value)
    except OverflowError:
        # ints beyond double range: lossy by contract
        return math.inf if value > 0 else -math.inf


def encode_scalar(data: Data, value: Any) -> bool:
    """Write one atom for a Python value.  Returns False if nothing was written.

    None -> null, bool -> bool, int/float -> double, str -> string,
    bytes-like -> binary.  Any other type is skipped without error.
    """
    # bool before int: isinstance(True, int) is True.
    if value is None:
        data.put_null()
    elif isinstance(value, bool):
        data.put_bool(value)
    elif isinstance(value, (int, float)):
        data.put_double(_to_double(value))
    elif isinstance(value, str):
        data.put_string(value)
    elif isinstance(value, BYTES_TYPES):
        data.put_binary(bytes(value))
    else:
        logger.debug("skipping unsupported value type %s", type(value).__name__)
        return False
    return True


def to_host(scalar: Scalar, buffer_factory: BufferFactory = bytes) -> Any:
    """Convert a Scalar into the plain Python value handed to callers.

    Byte and binary atoms both become buffers built by `buffer_factory`;
    a byte atom turns into a one-byte buffer holding its signed value.
    """
    if scalar.kind == BINARY:
        return buffer_factory(scalar.value)
    if scalar.kind == BYTE:
        return buffer_factory(struct.pack(">b", scalar.value))
    return scalar.value
