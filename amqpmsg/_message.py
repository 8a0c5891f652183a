"""amqpmsg Message — owns one message container and exposes it as attributes.

Messages are made by a MessageFactory, never by calling Message() directly.
Each Message owns exactly one _Container; copy() and assign() deep-copy it,
so two Messages never share a cursor.

Every accessor tolerates a destroyed Message: reads return None (ttl
returns 0) and writes do nothing.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Mapping, Optional, Tuple

from ._annotations import AnnotationEntry, decode_annotations
from ._body import decode_body, encode_body
from ._constants import UINT32_MAX
from ._data import Data
from ._errors import ERR_USAGE, AmqpMsgError
from ._properties import decode_properties, encode_properties
from ._scalar import BufferFactory, to_host
from ._wire import decode_message, encode_message

logger = logging.getLogger(__name__)

# Handed to Message() by the factory; anything else is a usage error.
_FACTORY_TOKEN = object()


class _Container:
    """The message regions this package reads and writes."""

    __slots__ = ("address", "content_type", "ttl", "body", "instructions", "properties")

    def __init__(self) -> None:
        self.address: Optional[str] = None
        self.content_type: Optional[str] = None
        self.ttl: int = 0
        self.body = Data()
        self.instructions = Data()
        self.properties = Data()

    def copy(self) -> "_Container":
        other = _Container()
        other.address = self.address
        other.content_type = self.content_type
        other.ttl = self.ttl
        other.body = self.body.copy()
        other.instructions = self.instructions.copy()
        other.properties = self.properties.copy()
        return other

    def clear(self) -> None:
        self.address = None
        self.content_type = None
        self.ttl = 0
        self.body.clear()
        self.instructions.clear()
        self.properties.clear()


def clamp_ttl(value: Any) -> int:
    """Coerce `value` into the unsigned 32-bit TTL range.

    NaN, infinities, non-numbers, ints beyond double range (either sign)
    and anything >= UINT32_MAX become UINT32_MAX.  Otherwise the value is
    truncated toward zero and wrapped into 32 bits, so -1 becomes
    UINT32_MAX.
    """
    try:
        number = float(value)
    except OverflowError:
        number = math.inf
    except (TypeError, ValueError):
        number = math.nan
    if not math.isfinite(number) or number >= UINT32_MAX:
        return UINT32_MAX
    return int(number) & UINT32_MAX


class Message:
    """An AMQP message: body, address, content type, ttl, properties and
    (read-only) delivery annotations and link address."""

    def __init__(self, _token: Any = None,
                 buffer_factory: BufferFactory = bytes) -> None:
        if _token is not _FACTORY_TOKEN:
            raise AmqpMsgError(ERR_USAGE,
                               "use MessageFactory.create() to create messages")
        self._container: Optional[_Container] = _Container()
        self._link_address: Optional[str] = None
        self._buffer_factory = buffer_factory
        self._name = "{:x}".format(id(self))
        logger.debug("message %s created", self._name)

    def __repr__(self) -> str:
        if self._container is None:
            return "<Message {} destroyed>".format(self._name)
        return "<Message {} address={!r} content_type={!r}>".format(
            self._name, self._container.address, self._container.content_type)

    # ── Lifecycle ────────────────────────────────────────────

    def destroy(self) -> None:
        """Release the container and link address.  Safe to call repeatedly."""
        if self._container is not None:
            self._container.clear()
            self._container = None
            logger.debug("message %s destroyed", self._name)
        self._link_address = None

    @property
    def destroyed(self) -> bool:
        return self._container is None

    def __enter__(self) -> "Message":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.destroy()

    def copy(self) -> "Message":
        """Deep copy with its own container and link address."""
        other = Message(_FACTORY_TOKEN, self._buffer_factory)
        other._adopt(self)
        logger.debug("message %s copied to %s", self._name, other._name)
        return other

    __copy__ = copy

    def __deepcopy__(self, memo: Any) -> "Message":
        return self.copy()

    def assign(self, other: "Message") -> "Message":
        """Replace this message's state with a deep copy of `other`'s."""
        if other is self:
            return self
        self.destroy()
        self._adopt(other)
        logger.debug("message %s assigned from %s", self._name, other._name)
        return self

    def _adopt(self, other: "Message") -> None:
        src = other._container
        self._container = src.copy() if src is not None else None
        self._link_address = other._link_address
        self._buffer_factory = other._buffer_factory

    # ── Scalar fields ────────────────────────────────────────

    @property
    def address(self) -> Optional[str]:
        c = self._container
        return c.address if c is not None else None

    @address.setter
    def address(self, value: Optional[str]) -> None:
        c = self._container
        if c is None:
            return
        c.address = None if value is None else str(value)
        logger.debug("message %s address: %s", self._name, c.address)

    @property
    def content_type(self) -> Optional[str]:
        c = self._container
        return c.content_type if c is not None else None

    @content_type.setter
    def content_type(self, value: Optional[str]) -> None:
        c = self._container
        if c is None:
            return
        c.content_type = None if value is None else str(value)
        logger.debug("message %s content type: %s", self._name, c.content_type)

    @property
    def link_address(self) -> Optional[str]:
        return self._link_address

    @property
    def ttl(self) -> int:
        c = self._container
        return c.ttl if c is not None else 0

    @ttl.setter
    def ttl(self, value: Any) -> None:
        c = self._container
        if c is None:
            return
        c.ttl = clamp_ttl(value)
        logger.debug("message %s ttl: %d", self._name, c.ttl)

    # ── Stream-backed fields ─────────────────────────────────

    @property
    def body(self) -> Any:
        """str for a text body, otherwise a byte buffer (b"" when empty)."""
        c = self._container
        if c is None:
            return None
        return to_host(decode_body(c.body), self._buffer_factory)

    @body.setter
    def body(self, value: Any) -> None:
        c = self._container
        if c is not None:
            encode_body(c.body, value)

    @property
    def delivery_annotations(self) -> Optional[Tuple[AnnotationEntry, ...]]:
        c = self._container
        if c is None:
            return None
        return decode_annotations(c.instructions)

    @property
    def properties(self) -> Optional[dict]:
        c = self._container
        if c is None:
            return None
        return decode_properties(c.properties, self._buffer_factory)

    @properties.setter
    def properties(self, value: Mapping[Any, Any]) -> None:
        c = self._container
        if c is None:
            return
        if not isinstance(value, Mapping):
            logger.debug("ignoring properties of type %s", type(value).__name__)
            return
        encode_properties(c.properties, value)

    def set_payload(self, data: Any) -> None:
        """Set body and content type together; see prepare_payload()."""
        from ._payload import prepare_payload
        body, content_type = prepare_payload(data)
        self.body = body
        self.content_type = content_type

    # ── Raw access ───────────────────────────────────────────

    @property
    def instructions(self) -> Optional[Data]:
        """The delivery-annotations stream, for senders that populate it."""
        c = self._container
        return c.instructions if c is not None else None

    def encode(self) -> Optional[bytes]:
        """AMQP 1.0 wire encoding of this message, or None once destroyed."""
        c = self._container
        if c is None:
            return None
        return encode_message(c)


class MessageFactory:
    """Creates Messages for the lifetime between construction and close().

    `buffer_factory` builds the byte buffers handed out for binary bodies
    and binary or byte property values; it receives a bytes object.
    """

    def __init__(self, buffer_factory: BufferFactory = bytes) -> None:
        self._buffer_factory = buffer_factory
        self._closed = False

    def _check_open(self) -> None:
        if self._closed:
            raise AmqpMsgError(ERR_USAGE, "message factory is closed")

    def create(self) -> Message:
        """A new empty Message."""
        self._check_open()
        return Message(_FACTORY_TOKEN, self._buffer_factory)

    def decode(self, raw: bytes, link_address: Optional[str] = None) -> Message:
        """A Message decoded from AMQP wire bytes.

        `link_address` is the address of the link the message arrived on;
        it is exposed read-only as Message.link_address.
        """
        self._check_open()
        msg = Message(_FACTORY_TOKEN, self._buffer_factory)
        try:
            decode_message(raw, msg._container)
        except Exception:
            msg.destroy()
            raise
        msg._link_address = link_address
        return msg

    def close(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "MessageFactory":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
