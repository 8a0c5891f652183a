"""amqpmsg payload helpers — content-type selection on send, a plain view on receive.

prepare_payload() mirrors what a sending client does before it hands a
body to a Message:

    str          -> body as-is,        "text/plain"
    bytes-like   -> body as bytes,     "application/octet-stream"
    anything else-> json.dumps(body),  "application/json"

received_view() is the inverse: a dict of address, content type and body
where a JSON body is parsed back into Python objects.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Tuple

from ._constants import CONTENT_TYPE_BINARY, CONTENT_TYPE_JSON, CONTENT_TYPE_TEXT
from ._scalar import BYTES_TYPES

logger = logging.getLogger(__name__)


def prepare_payload(data: Any) -> Tuple[Any, str]:
    """Return (body, content_type) for an arbitrary Python payload.

    Raises TypeError if a non-text, non-binary payload is not JSON
    serializable.
    """
    if isinstance(data, str):
        return data, CONTENT_TYPE_TEXT
    if isinstance(data, BYTES_TYPES):
        return bytes(data), CONTENT_TYPE_BINARY
    return json.dumps(data), CONTENT_TYPE_JSON


def received_view(message: Any) -> Dict[str, Any]:
    """Plain dict for a received message: address, content_type and body."""
    view = {
        "address": message.address,
        "content_type": message.content_type,
        "body": message.body,
    }
    if view["content_type"] == CONTENT_TYPE_JSON and isinstance(view["body"], str):
        try:
            view["body"] = json.loads(view["body"])
        except ValueError as e:
            # Keep the raw text; the sender labelled it JSON but it isn't.
            logger.warning("body labelled %s does not parse: %s", CONTENT_TYPE_JSON, e)
    return view
