#!/usr/bin/env python3
# tools/invariants_runner.py
#
# Randomized property checks for the amqpmsg codecs and wire format.
#
# This runner:
# - generates random bodies, property maps, TTLs and annotation maps
# - checks round-trip and idempotence properties through Message and Data
# - checks that wire encoding is stable and decodes back to the same message
#
# Exit code:
#   0 -> all checks passed
#   1 -> invariant violation

import os, sys, json, math, random
from typing import Any, Dict, List, Tuple

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from amqpmsg import UINT32_MAX, MessageFactory, clamp_ttl

SEED = int(os.environ.get("AMQPMSG_SEED", "1337"))
TRIALS = int(os.environ.get("AMQPMSG_TRIALS", "2000"))
MAX_KEYS = int(os.environ.get("AMQPMSG_GEN_MAX_KEYS", "8"))
MAX_STR = int(os.environ.get("AMQPMSG_GEN_MAX_STR", "24"))
MAX_BYTES = int(os.environ.get("AMQPMSG_GEN_MAX_BYTES", "64"))

random.seed(SEED)

def rand_utf8_string() -> str:
    # Scalars only; surrogates are not encodable.
    out = []
    n = random.randint(0, MAX_STR)
    for _ in range(n):
        r = random.random()
        if r < 0.70:
            out.append(chr(random.randint(0x20, 0x7E)))
        elif r < 0.85:
            out.append(chr(random.randint(0xA0, 0xFF)))
        elif r < 0.95:
            out.append(chr(random.randint(0x0100, 0xD7FF)))
        else:
            out.append(chr(random.randint(0x10000, 0x10FFFF)))
    return "".join(out)

def rand_bytes() -> bytes:
    return bytes(random.getrandbits(8) for _ in range(random.randint(0, MAX_BYTES)))

def rand_property_value() -> Any:
    r = random.random()
    if r < 0.25:
        return rand_utf8_string()
    if r < 0.45:
        return random.randint(-(2**53), 2**53)
    if r < 0.60:
        return random.uniform(-1e12, 1e12)
    if r < 0.70:
        return random.random() < 0.5
    if r < 0.80:
        return None
    if r < 0.90:
        return rand_bytes()
    return [1, 2]  # not encodable; entry must vanish

def expected_property(v: Any) -> Tuple[bool, Any]:
    if v is None or isinstance(v, (bool, str, bytes)):
        return True, v
    if isinstance(v, (int, float)):
        return True, float(v)
    return False, None

def rand_ttl() -> Any:
    r = random.random()
    if r < 0.40:
        return random.randint(0, UINT32_MAX)
    if r < 0.60:
        return random.uniform(-1e10, 1e10)
    if r < 0.75:
        return random.randint(-(2**40), 2**40)
    return random.choice([math.nan, math.inf, -math.inf, "abc", None, -1, UINT32_MAX])

def fail(label: str, context: Dict[str, Any]) -> int:
    print("INVARIANT FAIL:", label)
    print("CTX:", json.dumps(context, default=repr, ensure_ascii=False)[:2000])
    return 1

def main() -> int:
    factory = MessageFactory()
    for t in range(TRIALS):
        msg = factory.create()

        # (1) Body round trip
        body = rand_utf8_string() if random.random() < 0.5 else rand_bytes()
        msg.body = body
        if msg.body != body:
            return fail("body round trip", {"trial": t, "body": body})

        # (2) Properties: supported entries survive in order, the rest vanish
        props: Dict[str, Any] = {}
        for _ in range(random.randint(1, MAX_KEYS)):
            props[rand_utf8_string()] = rand_property_value()
        msg.properties = props
        expected: Dict[str, Any] = {}
        for k, v in props.items():
            ok, ev = expected_property(v)
            if ok:
                expected[k] = ev
        got = msg.properties
        if (got or {}) != expected or list(got or {}) != list(expected):
            return fail("properties round trip", {"trial": t, "in": props, "out": got})

        # (3) TTL always lands in range and clamping is idempotent
        ttl = rand_ttl()
        msg.ttl = ttl
        if not 0 <= msg.ttl <= UINT32_MAX or clamp_ttl(msg.ttl) != msg.ttl:
            return fail("ttl clamp", {"trial": t, "ttl": ttl, "out": msg.ttl})

        # (4) Annotations: repeated reads agree, every entry has a symbol key
        d = msg.instructions
        d.put_map()
        d.enter()
        for _ in range(random.randint(0, MAX_KEYS)):
            if random.random() < 0.8:
                d.put_symbol(rand_utf8_string())
            else:
                d.put_string(rand_utf8_string())
            r = random.random()
            if r < 0.4:
                d.put_symbol(rand_utf8_string())
            elif r < 0.7:
                d.put_string(rand_utf8_string())
            else:
                d.put_int(random.randint(-(2**31), 2**31 - 1))
        d.exit()
        d.rewind()
        a1 = msg.delivery_annotations
        a2 = msg.delivery_annotations
        if a1 != a2 or any(e.key_type != "symbol" for e in (a1 or ())):
            return fail("annotations idempotence", {"trial": t, "a1": a1, "a2": a2})

        # (5) Wire encode stability and round trip
        msg.address = rand_utf8_string()
        w1 = msg.encode()
        w2 = msg.encode()
        if w1 != w2:
            return fail("wire encode stability", {"trial": t})
        back = factory.decode(w1)
        if (back.body, back.address, back.ttl, back.properties, back.delivery_annotations) != \
                (msg.body, msg.address, msg.ttl, msg.properties, msg.delivery_annotations):
            return fail("wire round trip", {"trial": t})
        if back.encode() != w1:
            return fail("wire re-encode", {"trial": t})

        back.destroy()
        msg.destroy()

    factory.close()
    print(f"OK: invariants passed for TRIALS={TRIALS} seed={SEED}")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
