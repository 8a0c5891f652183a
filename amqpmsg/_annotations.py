"""amqpmsg delivery annotations — read-only filtered projection.

Delivery annotations live in the message's "instructions" region as a map.
Only a narrow slice of it is surfaced: entries keyed by a symbol whose
value is a symbol, a string or a 32-bit int.  Anything else is skipped
whole, never half-reported.

The scan is two passes over the same cursor: count, then build.  An empty
count short-circuits to None so callers can tell "no annotations" from an
empty result.  Both passes leave the cursor rewound, which makes the
projection safe to call any number of times.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

from ._constants import INT, MAP, STRING, SYMBOL
from ._data import Data

logger = logging.getLogger(__name__)

# Value atom type -> value_type label in the result.
_VALUE_LABELS = {
    SYMBOL: "symbol",
    STRING: "string",
    INT: "int32",
}


@dataclass(frozen=True)
class AnnotationEntry:
    """One surfaced delivery annotation.  `key_type` is always "symbol"."""

    key: str
    value: str
    value_type: str
    key_type: str = "symbol"

    def as_dict(self) -> Dict[str, str]:
        return {
            "key": self.key,
            "key_type": self.key_type,
            "value": self.value,
            "value_type": self.value_type,
        }


def _walk(data: Data) -> Iterator[Tuple[str, str]]:
    """Yield (key_type, value_type) for each pair, leaving the cursor on the
    value.  Stops early if a key has no value after it."""
    if not data.next() or data.type() != MAP:
        return
    data.enter()
    if not data.next():
        return
    while True:
        key_type = data.type()
        if not data.next():
            logger.debug("annotation key with no value, stopping scan")
            return
        yield key_type, data.type()
        if not data.next():
            return


def _wanted(key_type: Optional[str], value_type: Optional[str]) -> bool:
    return key_type == SYMBOL and value_type in _VALUE_LABELS


def decode_annotations(data: Data) -> Optional[Tuple[AnnotationEntry, ...]]:
    """Snapshot the filtered annotations, or None if there are none."""
    data.rewind()
    try:
        elements = sum(1 for kt, vt in _walk(data) if _wanted(kt, vt))
    finally:
        data.rewind()
    if elements == 0:
        return None

    entries = []
    try:
        for key_type, value_type in _walk(data):
            if not _wanted(key_type, value_type):
                continue
            # The cursor is on the value; the key is one step back.
            data.prev()
            key = data.get_symbol()
            data.next()
            if value_type == INT:
                value = str(data.get_int())
            elif value_type == SYMBOL:
                value = data.get_symbol()
            else:
                value = data.get_string()
            entries.append(AnnotationEntry(key, value, _VALUE_LABELS[value_type]))
    finally:
        data.rewind()
    return tuple(entries)
