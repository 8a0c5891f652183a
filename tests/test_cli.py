"""Tests for the amqpmsg command-line interface."""

from __future__ import annotations

import base64
import io
import json
import os
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from amqpmsg import __version__
from amqpmsg._cli import main


class TestCli(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmp.cleanup()

    def _write(self, name, data):
        path = os.path.join(self.tmp.name, name)
        with open(path, "wb") as f:
            f.write(data)
        return path

    def _run(self, argv):
        out, err = io.StringIO(), io.StringIO()
        code = 0
        with redirect_stdout(out), redirect_stderr(err):
            try:
                main(argv)
            except SystemExit as e:
                code = e.code
        return code, out.getvalue(), err.getvalue()

    def _encode(self, desc):
        path = self._write("desc.json", json.dumps(desc).encode())
        code, out, err = self._run(["encode", "--input", path])
        self.assertEqual(code, 0, err)
        return out.strip()

    def _decode(self, b64, *extra):
        path = self._write("msg.b64", b64.encode())
        code, out, err = self._run(["decode", "--input", path, *extra])
        self.assertEqual(code, 0, err)
        return json.loads(out)

    def test_version(self):
        code, out, _ = self._run(["version"])
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "amqpmsg " + __version__)

    def test_no_command(self):
        code, out, _ = self._run([])
        self.assertEqual(code, 1)
        self.assertIn("usage", out)

    def test_encode_bytes(self):
        self.assertEqual(base64.b64decode(self._encode({"body": "hi"})),
                         b"\x00\x53\x77\xa1\x02hi")

    def test_encode_decode(self):
        b64 = self._encode({
            "body": "hello",
            "address": "queue://a",
            "content_type": "text/plain",
            "ttl": -1,
            "properties": {"n": 3, "s": "x"},
        })
        view = self._decode(b64, "--link-address", "queue://a")
        self.assertEqual(view["body"], "hello")
        self.assertEqual(view["address"], "queue://a")
        self.assertEqual(view["link_address"], "queue://a")
        self.assertEqual(view["content_type"], "text/plain")
        self.assertEqual(view["ttl"], 4294967295)
        self.assertEqual(view["properties"], {"n": 3.0, "s": "x"})
        self.assertIsNone(view["delivery_annotations"])

    def test_binary_body_shown_as_base64(self):
        b64 = self._encode({"body_base64": base64.b64encode(b"\x00\x01").decode()})
        view = self._decode(b64)
        self.assertEqual(view["body"], {"base64": "AAE="})

    def test_payload_sets_content_type(self):
        view = self._decode(self._encode({"payload": {"k": [1, 2]}}))
        self.assertEqual(view["content_type"], "application/json")
        self.assertEqual(json.loads(view["body"]), {"k": [1, 2]})

    def test_invalid_base64(self):
        path = self._write("bad.b64", b"!!not base64!!")
        code, _, err = self._run(["decode", "--input", path])
        self.assertEqual(code, 2)
        self.assertIn("invalid input", err)

    def test_malformed_message(self):
        raw = base64.b64encode(b"\x00\x53\x77\xa1\x05hi")
        path = self._write("trunc.b64", raw)
        code, _, err = self._run(["decode", "--input", path])
        self.assertEqual(code, 2)
        self.assertIn("ERR_DECODE", err)

    def test_deeply_nested_message(self):
        path = self._write("deep.b64", base64.b64encode(b"\x00" * 5000))
        code, _, err = self._run(["decode", "--input", path])
        self.assertEqual(code, 2)
        self.assertIn("ERR_LIMIT_DEPTH", err)

    def test_huge_ttl(self):
        path = self._write("desc.json", b'{"ttl": 1' + b"0" * 400 + b"}")
        code, out, err = self._run(["encode", "--input", path])
        self.assertEqual(code, 0, err)
        view = self._decode(out.strip())
        self.assertEqual(view["ttl"], 4294967295)

    def test_descriptor_must_be_object(self):
        path = self._write("list.json", b"[1, 2]")
        code, _, err = self._run(["encode", "--input", path])
        self.assertEqual(code, 2)
        self.assertIn("JSON object", err)


if __name__ == "__main__":
    unittest.main()
