"""amqpmsg body codec — the message body slot.

Text bodies round-trip as string atoms.  Everything else reads back as
binary: a body holding some other atom type, or no atom at all, decodes to
the binary content of that atom, which is empty.  An empty body is
therefore b"", never None.
"""

from __future__ import annotations

import logging
from typing import Any

from ._constants import BINARY, STRING
from ._data import Data
from ._scalar import BYTES_TYPES, Scalar

logger = logging.getLogger(__name__)


def decode_body(body: Data) -> Scalar:
    body.rewind()
    try:
        body.next()
        if body.type() == STRING:
            return Scalar(STRING, body.get_string())
        return Scalar(BINARY, body.get_binary())
    finally:
        body.rewind()


def encode_body(body: Data, value: Any) -> bool:
    """Replace the body with `value`.  Returns False (body untouched) for
    anything that is neither text nor a byte sequence."""
    if isinstance(value, str):
        body.clear()
        body.put_string(value)
        logger.debug("body format: string, %d chars", len(value))
    elif isinstance(value, BYTES_TYPES):
        raw = bytes(value)
        body.clear()
        body.put_binary(raw)
        logger.debug("body format: binary, %d bytes", len(raw))
    else:
        logger.debug("ignoring body of type %s", type(value).__name__)
        return False
    body.rewind()
    return True
