"""amqpmsg command-line interface.

Usage:
    echo '{"body": "hi", "ttl": 500}' | python3 -m amqpmsg encode
    python3 -m amqpmsg encode --input message.json
    python3 -m amqpmsg decode --input message.b64 [--link-address ADDR]
    python3 -m amqpmsg version

encode reads a JSON descriptor and prints the base64 wire encoding.
Recognised keys: body, body_base64, payload, address, content_type, ttl,
properties.  "payload" goes through prepare_payload() and sets the content
type as a side effect.

decode reads base64 wire bytes and prints the message as JSON.  Binary
bodies and property values are shown as {"base64": ...}.
"""

from __future__ import annotations

import argparse
import base64
import json
import logging
import os
import sys
from typing import Any, List, Optional

from . import (
    AmqpMsgError,
    MessageFactory,
    __version__,
)
from ._constants import ENV_LOG_LEVEL


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="amqpmsg",
        description="amqpmsg — encode and inspect AMQP message content",
    )
    parser.add_argument("--log-level", default=None, metavar="LEVEL",
                        help="Logging level (default: ${} or WARNING)".format(ENV_LOG_LEVEL))
    sub = parser.add_subparsers(dest="command")

    # ── encode ──
    enc_p = sub.add_parser("encode", help="Encode a JSON descriptor (base64 output)")
    enc_p.add_argument("--input", "-i", metavar="FILE",
                       help="Read JSON from FILE instead of stdin")

    # ── decode ──
    dec_p = sub.add_parser("decode", help="Decode base64 wire bytes to JSON")
    dec_p.add_argument("--input", "-i", metavar="FILE",
                       help="Read base64 from FILE instead of stdin")
    dec_p.add_argument("--link-address", metavar="ADDR",
                       help="Report ADDR as the receiving link's address")

    # ── version ──
    sub.add_parser("version", help="Print version and exit")

    return parser


def _configure_logging(level: Optional[str]) -> None:
    name = (level or os.environ.get(ENV_LOG_LEVEL) or "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.WARNING),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


def _read_input(filepath: Optional[str]) -> bytes:
    if filepath:
        with open(filepath, "rb") as f:
            return f.read()
    if sys.stdin.isatty():
        print("amqpmsg: reading from stdin (Ctrl-D to end)...", file=sys.stderr)
    return sys.stdin.buffer.read()


def _jsonable(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return {"base64": base64.b64encode(bytes(value)).decode("ascii")}
    raise TypeError("not JSON serializable: {}".format(type(value).__name__))


def _cmd_encode(args: argparse.Namespace, factory: MessageFactory) -> None:
    desc = json.loads(_read_input(args.input))
    if not isinstance(desc, dict):
        raise ValueError("descriptor must be a JSON object")

    with factory.create() as msg:
        if "payload" in desc:
            msg.set_payload(desc["payload"])
        if "body" in desc:
            msg.body = desc["body"]
        if "body_base64" in desc:
            msg.body = base64.b64decode(desc["body_base64"])
        if "address" in desc:
            msg.address = desc["address"]
        if "content_type" in desc:
            msg.content_type = desc["content_type"]
        if "ttl" in desc:
            msg.ttl = desc["ttl"]
        if "properties" in desc:
            msg.properties = desc["properties"]
        print(base64.b64encode(msg.encode()).decode("ascii"))


def _cmd_decode(args: argparse.Namespace, factory: MessageFactory) -> None:
    raw = base64.b64decode(_read_input(args.input).strip(), validate=True)
    with factory.decode(raw, link_address=args.link_address) as msg:
        annotations = msg.delivery_annotations
        view = {
            "address": msg.address,
            "content_type": msg.content_type,
            "link_address": msg.link_address,
            "ttl": msg.ttl,
            "body": msg.body,
            "properties": msg.properties,
            "delivery_annotations": (
                [a.as_dict() for a in annotations] if annotations is not None else None),
        }
        print(json.dumps(view, indent=2, default=_jsonable))


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "version":
        print(f"amqpmsg {__version__}")
        return

    try:
        with MessageFactory() as factory:
            if args.command == "encode":
                _cmd_encode(args, factory)
            elif args.command == "decode":
                _cmd_decode(args, factory)
    except AmqpMsgError as e:
        print(f"amqpmsg: error [{e.code}]: {e}", file=sys.stderr)
        sys.exit(2)
    except ValueError as e:
        # json.JSONDecodeError and binascii.Error are both ValueErrors
        print(f"amqpmsg: invalid input: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
