"""amqpmsg constants — atom type names, AMQP 1.0 constructor codes, limits.

Constructor codes are the single-byte format codes of the AMQP 1.0 type
system (OASIS AMQP 1.0, part 1 "Types").  Section descriptors are the
small-ulong codes from part 3 "Messaging".
"""

from __future__ import annotations

from typing import FrozenSet

# ── Atom type names ──────────────────────────────────────────
# These are what Data.type() returns.  Scalar kinds reuse the same names
# so a Scalar's kind always matches the tag of the atom it came from.

NULL: str = "null"
BOOL: str = "bool"
UBYTE: str = "ubyte"
BYTE: str = "byte"
USHORT: str = "ushort"
SHORT: str = "short"
UINT: str = "uint"
INT: str = "int"
ULONG: str = "ulong"
LONG: str = "long"
FLOAT: str = "float"
DOUBLE: str = "double"
TIMESTAMP: str = "timestamp"
UUID: str = "uuid"
BINARY: str = "binary"
STRING: str = "string"
SYMBOL: str = "symbol"
LIST: str = "list"
MAP: str = "map"
DESCRIBED: str = "described"

CONTAINER_TYPES: FrozenSet[str] = frozenset({LIST, MAP, DESCRIBED})

# The closed set of variants a Scalar can hold.
SCALAR_TYPES: FrozenSet[str] = frozenset({
    NULL, BOOL, SHORT, INT, LONG, FLOAT, DOUBLE, BYTE, BINARY, STRING, SYMBOL,
})

# ── AMQP 1.0 constructor codes ───────────────────────────────

FC_DESCRIBED: int = 0x00
FC_NULL: int = 0x40
FC_TRUE: int = 0x41
FC_FALSE: int = 0x42
FC_UINT0: int = 0x43
FC_ULONG0: int = 0x44
FC_LIST0: int = 0x45
FC_UBYTE: int = 0x50
FC_BYTE: int = 0x51
FC_SMALLUINT: int = 0x52
FC_SMALLULONG: int = 0x53
FC_SMALLINT: int = 0x54
FC_SMALLLONG: int = 0x55
FC_BOOLEAN: int = 0x56
FC_USHORT: int = 0x60
FC_SHORT: int = 0x61
FC_UINT: int = 0x70
FC_INT: int = 0x71
FC_FLOAT: int = 0x72
FC_ULONG: int = 0x80
FC_LONG: int = 0x81
FC_DOUBLE: int = 0x82
FC_TIMESTAMP: int = 0x83
FC_UUID: int = 0x98
FC_VBIN8: int = 0xA0
FC_STR8: int = 0xA1
FC_SYM8: int = 0xA3
FC_VBIN32: int = 0xB0
FC_STR32: int = 0xB1
FC_SYM32: int = 0xB3
FC_LIST8: int = 0xC0
FC_MAP8: int = 0xC1
FC_LIST32: int = 0xD0
FC_MAP32: int = 0xD1

# ── Message section descriptors ──────────────────────────────

SECTION_HEADER: int = 0x70
SECTION_DELIVERY_ANNOTATIONS: int = 0x71
SECTION_MESSAGE_ANNOTATIONS: int = 0x72
SECTION_PROPERTIES: int = 0x73
SECTION_APPLICATION_PROPERTIES: int = 0x74
SECTION_DATA: int = 0x75
SECTION_AMQP_SEQUENCE: int = 0x76
SECTION_AMQP_VALUE: int = 0x77
SECTION_FOOTER: int = 0x78

# Field positions inside the header and properties lists.
HEADER_TTL_FIELD: int = 2
PROPERTIES_TO_FIELD: int = 2
PROPERTIES_CONTENT_TYPE_FIELD: int = 6

# ── Integer ranges ───────────────────────────────────────────
# Python ints are unbounded, so every fixed-width put is range-checked.

UINT32_MAX: int = 2**32 - 1
INT8_MIN: int = -(2**7)
INT8_MAX: int = 2**7 - 1
INT16_MIN: int = -(2**15)
INT16_MAX: int = 2**15 - 1
INT32_MIN: int = -(2**31)
INT32_MAX: int = 2**31 - 1
INT64_MIN: int = -(2**63)
INT64_MAX: int = 2**63 - 1

RANGES = {
    UBYTE: (0, 2**8 - 1),
    BYTE: (INT8_MIN, INT8_MAX),
    USHORT: (0, 2**16 - 1),
    SHORT: (INT16_MIN, INT16_MAX),
    UINT: (0, UINT32_MAX),
    INT: (INT32_MIN, INT32_MAX),
    ULONG: (0, 2**64 - 1),
    LONG: (INT64_MIN, INT64_MAX),
    TIMESTAMP: (INT64_MIN, INT64_MAX),
}

# ── Limits ───────────────────────────────────────────────────
# Guards the wire decoder against hostile length prefixes.

MAX_MESSAGE_BYTES: int = 16 * 1_048_576   # 16 MiB
MAX_DEPTH: int = 32

# ── Content types chosen by prepare_payload() ────────────────

CONTENT_TYPE_TEXT: str = "text/plain"
CONTENT_TYPE_BINARY: str = "application/octet-stream"
CONTENT_TYPE_JSON: str = "application/json"

# Environment variable read by the CLI to pick a log level.
ENV_LOG_LEVEL: str = "AMQPMSG_LOG"
