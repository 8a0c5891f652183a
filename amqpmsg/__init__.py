"""amqpmsg — AMQP message content marshalling.

Converts a message's body, application properties, delivery annotations
and time-to-live between a typed AMQP data stream and plain Python values.

Quick start:
    >>> from amqpmsg import MessageFactory
    >>> factory = MessageFactory()
    >>> msg = factory.create()
    >>> msg.body = "hello"
    >>> msg.properties = {"retries": 3, "tag": "x"}
    >>> msg.properties
    {'retries': 3.0, 'tag': 'x'}
    >>> msg.ttl = -1
    >>> msg.ttl
    4294967295

Numbers are always written as doubles, which is why 3 reads back as 3.0.
"""

from __future__ import annotations

import logging

from ._annotations import AnnotationEntry, decode_annotations
from ._body import decode_body, encode_body
from ._constants import (
    CONTENT_TYPE_BINARY,
    CONTENT_TYPE_JSON,
    CONTENT_TYPE_TEXT,
    MAX_MESSAGE_BYTES,
    UINT32_MAX,
)
from ._data import Data
from ._errors import (
    ERR_DECODE,
    ERR_LIMIT_DEPTH,
    ERR_LIMIT_SIZE,
    ERR_RANGE,
    ERR_USAGE,
    ERR_UTF8,
    AmqpMsgError,
)
from ._message import Message, MessageFactory, clamp_ttl
from ._payload import prepare_payload, received_view
from ._properties import decode_properties, encode_properties
from ._scalar import Scalar, decode_scalar, encode_scalar, read_scalar, to_host

__version__ = "0.9.0"

__all__ = [
    # Messages
    "Message",
    "MessageFactory",
    "AnnotationEntry",
    "clamp_ttl",
    "prepare_payload",
    "received_view",
    # Stream and codecs
    "Data",
    "Scalar",
    "decode_scalar",
    "encode_scalar",
    "read_scalar",
    "to_host",
    "decode_body",
    "encode_body",
    "decode_properties",
    "encode_properties",
    "decode_annotations",
    # Exception
    "AmqpMsgError",
    # Error codes
    "ERR_USAGE",
    "ERR_DECODE",
    "ERR_UTF8",
    "ERR_RANGE",
    "ERR_LIMIT_SIZE",
    "ERR_LIMIT_DEPTH",
    # Constants
    "UINT32_MAX",
    "MAX_MESSAGE_BYTES",
    "CONTENT_TYPE_TEXT",
    "CONTENT_TYPE_BINARY",
    "CONTENT_TYPE_JSON",
]

logging.getLogger(__name__).addHandler(logging.NullHandler())
