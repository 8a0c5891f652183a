"""Unit tests for the Data cursor and the AMQP 1.0 wire codec.

Byte layouts below are the AMQP 1.0 encodings written out by hand, so a
change in constructor selection shows up as a test failure.
"""

from __future__ import annotations

import os
import struct
import sys
import unittest
import uuid

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from amqpmsg import (
    AmqpMsgError,
    Data,
    ERR_DECODE,
    ERR_LIMIT_DEPTH,
    ERR_LIMIT_SIZE,
    ERR_RANGE,
    ERR_UTF8,
    MAX_MESSAGE_BYTES,
)


# ── Cursor navigation ─────────────────────────────────────────

class TestCursor(unittest.TestCase):
    def test_empty_stream(self):
        d = Data()
        self.assertFalse(d.next())
        self.assertIsNone(d.type())
        self.assertEqual(d.size(), 0)
        self.assertEqual(len(d), 0)

    def test_put_rewind_read(self):
        d = Data()
        d.put_string("a")
        d.put_int(7)
        d.rewind()
        self.assertTrue(d.next())
        self.assertEqual(d.type(), "string")
        self.assertEqual(d.get_string(), "a")
        self.assertTrue(d.next())
        self.assertEqual(d.get_int(), 7)
        self.assertFalse(d.next())
        # a failed next() does not move the cursor
        self.assertEqual(d.get_int(), 7)

    def test_prev(self):
        d = Data()
        d.put_string("a")
        d.put_string("b")
        self.assertTrue(d.prev())
        self.assertEqual(d.get_string(), "a")
        self.assertFalse(d.prev())

    def test_put_after_rewind_overwrites_first_node(self):
        d = Data()
        d.put_string("old")
        d.put_string("second")
        d.rewind()
        d.put_binary(b"x")
        self.assertEqual(d.dump(), [("binary", b"x"), ("string", "second")])

    def test_overwrite_drops_children(self):
        d = Data()
        d.put_map()
        d.enter()
        d.put_string("k")
        d.put_null()
        d.exit()
        d.rewind()
        d.put_map()
        self.assertEqual(d.dump(), [("map", [])])

    def test_enter_exit_map(self):
        d = Data()
        d.put_map()
        d.enter()
        d.put_symbol("k")
        d.put_int(1)
        d.exit()
        self.assertEqual(d.type(), "map")

        d.rewind()
        d.next()
        self.assertEqual(d.get_map(), 2)
        self.assertTrue(d.enter())
        self.assertIsNone(d.type())
        d.next()
        self.assertEqual(d.get_symbol(), "k")
        self.assertTrue(d.exit())
        self.assertEqual(d.type(), "map")
        self.assertFalse(d.exit())

    def test_enter_scalar_fails(self):
        d = Data()
        d.put_int(1)
        self.assertFalse(d.enter())
        d.rewind()
        self.assertFalse(d.enter())

    def test_wrong_type_get_returns_zero_value(self):
        d = Data()
        d.put_string("x")
        self.assertEqual(d.get_binary(), b"")
        self.assertEqual(d.get_int(), 0)
        self.assertEqual(d.get_double(), 0.0)
        self.assertIs(d.get_bool(), False)
        self.assertEqual(d.get_symbol(), "")
        self.assertEqual(d.get_map(), 0)
        self.assertIsNone(d.get_uuid())

    def test_size_counts_containers(self):
        d = Data()
        d.put_map()
        d.enter()
        d.put_string("k")
        d.put_int(1)
        d.exit()
        d.put_null()
        self.assertEqual(d.size(), 4)

    def test_clear(self):
        d = Data()
        d.put_string("x")
        d.clear()
        self.assertEqual(d.size(), 0)
        self.assertIsNone(d.type())

    def test_copy_is_independent(self):
        d = Data()
        d.put_string("a")
        c = d.copy()
        self.assertIsNone(c.type())  # copies start rewound
        c.put_string("b")
        d.rewind()
        d.next()
        self.assertEqual(d.get_string(), "a")


# ── Range checks ──────────────────────────────────────────────

class TestPutRanges(unittest.TestCase):
    def test_int_overflow(self):
        with self.assertRaises(AmqpMsgError) as ctx:
            Data().put_int(2**31)
        self.assertEqual(ctx.exception.code, ERR_RANGE)

    def test_unsigned_negative(self):
        for put in ("put_ubyte", "put_ushort", "put_uint", "put_ulong"):
            with self.subTest(put=put):
                with self.assertRaises(AmqpMsgError) as ctx:
                    getattr(Data(), put)(-1)
                self.assertEqual(ctx.exception.code, ERR_RANGE)

    def test_bool_is_not_an_int(self):
        with self.assertRaises(AmqpMsgError):
            Data().put_short(True)

    def test_float_rounds_to_single(self):
        d = Data()
        d.put_float(0.1)
        expected = struct.unpack(">f", struct.pack(">f", 0.1))[0]
        self.assertEqual(d.get_float(), expected)
        self.assertNotEqual(d.get_float(), 0.1)

    def test_float_overflow(self):
        with self.assertRaises(AmqpMsgError) as ctx:
            Data().put_float(1e300)
        self.assertEqual(ctx.exception.code, ERR_RANGE)


# ── Wire encoding ─────────────────────────────────────────────

def _encode(*puts) -> bytes:
    d = Data()
    for name, *args in puts:
        getattr(d, name)(*args)
    return d.encode()


class TestWireEncoding(unittest.TestCase):
    def test_null_and_booleans(self):
        self.assertEqual(_encode(("put_null",)), b"\x40")
        self.assertEqual(_encode(("put_bool", True)), b"\x41")
        self.assertEqual(_encode(("put_bool", False)), b"\x42")

    def test_int_widths(self):
        self.assertEqual(_encode(("put_int", 5)), b"\x54\x05")
        self.assertEqual(_encode(("put_int", -1)), b"\x54\xff")
        self.assertEqual(_encode(("put_int", 1000)), b"\x71" + struct.pack(">i", 1000))

    def test_uint_widths(self):
        self.assertEqual(_encode(("put_uint", 0)), b"\x43")
        self.assertEqual(_encode(("put_uint", 200)), b"\x52\xc8")
        self.assertEqual(_encode(("put_uint", 70000)), b"\x70" + struct.pack(">I", 70000))

    def test_ulong_and_long(self):
        self.assertEqual(_encode(("put_ulong", 0)), b"\x44")
        self.assertEqual(_encode(("put_ulong", 0x77)), b"\x53\x77")
        self.assertEqual(_encode(("put_long", 300)), b"\x81" + struct.pack(">q", 300))
        self.assertEqual(_encode(("put_long", -2)), b"\x55\xfe")

    def test_fixed_width(self):
        self.assertEqual(_encode(("put_short", -2)), b"\x61\xff\xfe")
        self.assertEqual(_encode(("put_byte", -2)), b"\x51\xfe")
        self.assertEqual(_encode(("put_double", 1.5)), b"\x82" + struct.pack(">d", 1.5))

    def test_variable_width(self):
        self.assertEqual(_encode(("put_string", "hi")), b"\xa1\x02hi")
        self.assertEqual(_encode(("put_symbol", "hi")), b"\xa3\x02hi")
        self.assertEqual(_encode(("put_binary", b"\x00")), b"\xa0\x01\x00")

    def test_long_string_uses_str32(self):
        s = "x" * 300
        self.assertEqual(_encode(("put_string", s)),
                         b"\xb1" + struct.pack(">I", 300) + s.encode("ascii"))

    def test_utf8_length_is_bytes_not_chars(self):
        self.assertEqual(_encode(("put_string", "é")), b"\xa1\x02\xc3\xa9")

    def test_empty_list(self):
        self.assertEqual(_encode(("put_list",)), b"\x45")

    def test_map8(self):
        d = Data()
        d.put_map()
        d.enter()
        d.put_symbol("k")
        d.put_int(1)
        d.exit()
        body = b"\xa3\x01k" + b"\x54\x01"
        self.assertEqual(d.encode(), b"\xc1\x06\x02" + body)

    def test_described(self):
        d = Data()
        d.put_described()
        d.enter()
        d.put_ulong(0x77)
        d.put_string("x")
        d.exit()
        self.assertEqual(d.encode(), b"\x00\x53\x77\xa1\x01x")

    def test_map_with_dangling_key(self):
        d = Data()
        d.put_map()
        d.enter()
        d.put_symbol("k")
        d.exit()
        with self.assertRaises(AmqpMsgError) as ctx:
            d.encode()
        self.assertEqual(ctx.exception.code, ERR_RANGE)

    def test_described_chain_depth_limit(self):
        d = Data()
        for _ in range(40):
            d.put_described()
            d.enter()
            d.put_ulong(0)
        d.put_null()
        with self.assertRaises(AmqpMsgError) as ctx:
            d.encode()
        self.assertEqual(ctx.exception.code, ERR_LIMIT_DEPTH)


# ── Wire decoding ─────────────────────────────────────────────

class TestWireDecoding(unittest.TestCase):
    def test_nested_round_trip(self):
        d = Data()
        d.put_list()
        d.enter()
        d.put_null()
        d.put_bool(True)
        d.put_ubyte(255)
        d.put_byte(-128)
        d.put_ushort(65535)
        d.put_short(-32768)
        d.put_uint(2**32 - 1)
        d.put_int(-(2**31))
        d.put_ulong(2**64 - 1)
        d.put_long(-(2**63))
        d.put_float(1.5)
        d.put_double(-0.25)
        d.put_timestamp(1_700_000_000_000)
        d.put_uuid(uuid.UUID(int=1))
        d.put_binary(b"\x00\xff")
        d.put_string("héllo")
        d.put_symbol("sym")
        d.put_map()
        d.enter()
        d.put_string("k")
        d.put_null()
        d.exit()
        d.exit()
        self.assertEqual(Data.decode(d.encode()).dump(), d.dump())

    def test_compact_forms(self):
        self.assertEqual(Data.decode(b"\x43").dump(), [("uint", 0)])
        self.assertEqual(Data.decode(b"\x44").dump(), [("ulong", 0)])
        self.assertEqual(Data.decode(b"\x56\x01").dump(), [("bool", True)])
        self.assertEqual(Data.decode(b"\x56\x00").dump(), [("bool", False)])

    def test_map32(self):
        raw = b"\xd1" + struct.pack(">II", 4 + 2, 2) + b"\x40\x40"
        self.assertEqual(Data.decode(raw).dump(), [("map", [("null", None), ("null", None)])])

    def test_truncated(self):
        for raw in [b"\x71\x00", b"\xa1\x05ab", b"\x82", b"\xc0\x05\x01\x40"]:
            with self.subTest(raw=raw):
                with self.assertRaises(AmqpMsgError) as ctx:
                    Data.decode(raw)
                self.assertEqual(ctx.exception.code, ERR_DECODE)

    def test_unknown_constructor(self):
        with self.assertRaises(AmqpMsgError) as ctx:
            Data.decode(b"\xe0\x00")
        self.assertEqual(ctx.exception.code, ERR_DECODE)

    def test_bad_boolean_payload(self):
        with self.assertRaises(AmqpMsgError) as ctx:
            Data.decode(b"\x56\x02")
        self.assertEqual(ctx.exception.code, ERR_DECODE)

    def test_invalid_utf8(self):
        with self.assertRaises(AmqpMsgError) as ctx:
            Data.decode(b"\xa1\x01\xff")
        self.assertEqual(ctx.exception.code, ERR_UTF8)

    def test_compound_size_mismatch(self):
        with self.assertRaises(AmqpMsgError) as ctx:
            Data.decode(b"\xc0\x03\x01\x40\x40")
        self.assertEqual(ctx.exception.code, ERR_DECODE)

    def test_odd_map_count(self):
        with self.assertRaises(AmqpMsgError) as ctx:
            Data.decode(b"\xc1\x02\x01\x40")
        self.assertEqual(ctx.exception.code, ERR_DECODE)

    def test_depth_limit(self):
        raw = b"\xc0\x01\x00"  # empty-bodied list8 used as the innermost value
        for _ in range(40):
            raw = b"\xd0" + struct.pack(">II", len(raw) + 4, 1) + raw
        with self.assertRaises(AmqpMsgError) as ctx:
            Data.decode(raw)
        self.assertEqual(ctx.exception.code, ERR_LIMIT_DEPTH)

    def test_described_chain_depth_limit(self):
        for raw in (b"\x00" * 5000, b"\x00" * 40 + b"\x40\x40"):
            with self.subTest(n=len(raw)):
                with self.assertRaises(AmqpMsgError) as ctx:
                    Data.decode(raw)
                self.assertEqual(ctx.exception.code, ERR_LIMIT_DEPTH)

    def test_described_within_depth(self):
        raw = b"\x00\x53\x01" * 10 + b"\x40"
        self.assertEqual(Data.decode(raw).encode(), raw)

    def test_oversize_input(self):
        with self.assertRaises(AmqpMsgError) as ctx:
            Data.decode(b"\x40" * (MAX_MESSAGE_BYTES + 1))
        self.assertEqual(ctx.exception.code, ERR_LIMIT_SIZE)


if __name__ == "__main__":
    unittest.main()
