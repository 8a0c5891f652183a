"""amqpmsg error codes and exception class.

Only a few conditions are raised.  Everything this layer treats as schema
drift (unknown atom tags, non-symbol annotation keys, unsupported host
values, accessors on a destroyed message) is recovered silently by the
codecs and never reaches this module.
"""

from __future__ import annotations

# ── Error codes ──────────────────────────────────────────────
# Grep-friendly; tests compare against .code, never the message text.

ERR_USAGE: str = "ERR_USAGE"            # Message built outside a factory, closed factory
ERR_DECODE: str = "ERR_DECODE"          # malformed AMQP wire bytes
ERR_UTF8: str = "ERR_UTF8"              # invalid UTF-8 in a string or symbol
ERR_RANGE: str = "ERR_RANGE"            # value does not fit the atom's width
ERR_LIMIT_SIZE: str = "ERR_LIMIT_SIZE"  # exceeds MAX_MESSAGE_BYTES
ERR_LIMIT_DEPTH: str = "ERR_LIMIT_DEPTH"  # nesting exceeds MAX_DEPTH


class AmqpMsgError(Exception):
    """Exception for amqpmsg processing errors.

    The `.code` attribute is one of the ERR_* strings above.
    """

    def __init__(self, code: str, msg: str = "") -> None:
        super().__init__(msg or code)
        self.code = code
