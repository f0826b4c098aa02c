"""Tests for report formatting and the partmet command line."""

from __future__ import annotations

import contextlib
import io
import json
import os
import sys
import tempfile
import time
import unittest
from typing import List, Tuple

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, os.path.dirname(__file__))

from partmet import IntegerValue, StringValue, Tag, TagKind, __version__, decode_bytes, summarize
from partmet._cli import main
from partmet._report import (
    ReportOptions,
    bar_string,
    build_document,
    field_object,
    field_text,
    render_fields,
    render_text,
    tag_line,
    tag_object,
)

from _images import (
    gap_end,
    gap_start,
    image_v14_0,
    image_v14_1,
    special,
    tag_int,
    tag_str,
)

SEQ_HEX = "000102030405060708090A0B0C0D0E0F"


def _sample_image() -> bytes:
    return image_v14_1([
        special(1, b"movie.avi"),
        special(2, 1000),
        special(8, 500),
        special(20, 7),
        gap_start(b"0", 0),
        gap_end(b"0", 100),
        tag_str(b"Artist", b"Someone"),
        tag_int(b"mystery", 42),
    ])


def _itag(name: bytes, value: int) -> Tag:
    return Tag(TagKind.INTEGER, name, IntegerValue(value))


def _stag(name: bytes, value: bytes) -> Tag:
    return Tag(TagKind.STRING, name, StringValue(value))


# ── Per-tag formatting ───────────────────────────────────────

class TestTagLine(unittest.TestCase):
    def test_special_integer(self):
        self.assertEqual(tag_line(_itag(b"\x02", 2097152)),
                         "Tag: (Special, 2) File size in bytes = 2097152")

    def test_special_verbose_mb(self):
        self.assertEqual(tag_line(_itag(b"\x02", 2097152), verbose=True),
                         "Tag: (Special, 2) File size in bytes = 2097152 (2.00 MB)")

    def test_special_verbose_date(self):
        ts = 1700000000
        want = " ({})".format(time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(ts)))
        self.assertTrue(tag_line(_itag(b"\x05", ts), verbose=True).endswith(want))

    def test_status_note(self):
        self.assertEqual(tag_line(_itag(b"\x14", 7), verbose=True),
                         "Tag: (Special, 20) Download status: Paused = 7"
                         " - Download is manually paused")
        self.assertEqual(tag_line(_itag(b"\x14", 3), verbose=True),
                         "Tag: (Special, 20) Download status: Hashing = 3")

    def test_special_string(self):
        self.assertEqual(tag_line(_stag(b"\x01", b"a.avi")),
                         'Tag: (Special, 1) Filename = "a.avi"')

    def test_special_without_meaning(self):
        self.assertEqual(tag_line(_itag(b"\xc8", 3)), "Tag: (Special, 200) Name: 200, Value: 3")
        self.assertEqual(tag_line(_stag(b"\xc8", b"x")),
                         'Tag: (Special, 200) Name: 200, Value: "x"')

    def test_gap(self):
        self.assertEqual(tag_line(_itag(b"\x0912", 1048576)),
                         "Tag: (Gap) Start of gap (undownloaded area), Reference: 12, Value: 1048576")
        self.assertEqual(tag_line(_itag(b"\x0a12", 1048576), verbose=True),
                         "Tag: (Gap) End of gap (undownloaded area), Reference: 12,"
                         " Value: 1048576 (1.00 MB)")

    def test_standard(self):
        self.assertEqual(tag_line(_stag(b"Artist", b"X")), 'Tag: (Standard) Artist = "X"')
        self.assertEqual(tag_line(_itag(b"bitrate", 128), verbose=True),
                         "Tag: (Standard) bitrate = 128 - Media file bitrate")

    def test_unknown(self):
        self.assertEqual(tag_line(_itag(b"foo", 7)), 'Tag: (Unknown) Name: "foo", Value: 7')

    def test_undecodable_bytes_do_not_fail(self):
        line = tag_line(_stag(b"\xff\xfe", b"\x80"))
        self.assertTrue(line.startswith("Tag: (Unknown)"))


class TestTagObject(unittest.TestCase):
    def test_special(self):
        self.assertEqual(tag_object(_itag(b"\x08", 524288)), {
            "type": "special", "id": 8,
            "description": "Number of bytes downloaded so far",
            "value": 524288, "value_mb": 0.5,
        })

    def test_gap(self):
        self.assertEqual(tag_object(_itag(b"\x0a7", 10)), {
            "type": "gap", "gap_type": "end", "reference": "7",
            "description": "End of gap (undownloaded area)", "value": 10,
        })

    def test_unknown_string(self):
        self.assertEqual(tag_object(_stag(b"x\"y", b"a\nb")),
                         {"type": "unknown", "name": 'x"y', "value": "a\nb"})

    def test_serializable(self):
        obj = tag_object(_stag(b"\x01", b"\x00\x1f\\"))
        self.assertEqual(json.loads(json.dumps(obj))["value"], "\x00\x1f\\")


# ── Whole reports ────────────────────────────────────────────

class TestReports(unittest.TestCase):
    def setUp(self):
        self.part = decode_bytes(_sample_image())

    def test_text_header(self):
        lines = render_text(self.part).splitlines()
        self.assertEqual(lines[0], ".part.met file version: 14.1")
        self.assertEqual(lines[1], "ED2K Hash: " + SEQ_HEX)
        self.assertEqual(lines[2], "Number of meta tags: 8")
        self.assertIn("=== META TAGS ===", lines)
        self.assertEqual(sum(1 for l in lines if l.startswith("Tag: ")), 8)

    def test_category_filter(self):
        text = render_text(self.part, ReportOptions(categories=frozenset({"gap"})))
        tag_lines = [l for l in text.splitlines() if l.startswith("Tag: ")]
        self.assertEqual(len(tag_lines), 2)
        self.assertTrue(all(l.startswith("Tag: (Gap)") for l in tag_lines))

    def test_visualization_text(self):
        opts = ReportOptions(categories=frozenset(), visualize=True, width=10)
        lines = render_text(self.part, opts).splitlines()
        self.assertNotIn("=== META TAGS ===", lines)
        self.assertIn("=== FILE DOWNLOAD VISUALIZATION ===", lines)
        self.assertIn("Total size: 1000 bytes (0.00 MB)", lines)
        self.assertIn("Downloaded: 500 bytes (0.00 MB, 50.0%)", lines)
        self.assertIn("[ #########]", lines)
        self.assertIn("Gaps: 1", lines)
        self.assertIn("Total gap size: 0.00 MB (10.0% of file)", lines)

    def test_bar_string(self):
        self.assertEqual(bar_string([True, False, True]), "[# #]")

    def test_document(self):
        doc = build_document(self.part, ReportOptions(visualize=True, width=10))
        self.assertEqual(doc["format_version"], "14.1")
        self.assertEqual(doc["ed2k_hash"], SEQ_HEX)
        self.assertEqual(doc["num_tags"], 8)
        self.assertEqual([t["type"] for t in doc["tags"]],
                         ["special"] * 4 + ["gap"] * 2 + ["standard", "unknown"])
        vis = doc["visualization"]
        self.assertEqual(vis["percentage"], 50.0)
        self.assertEqual(vis["bar"], [0] + [1] * 9)
        self.assertEqual(vis["gaps"]["count"], 1)
        self.assertEqual(vis["gaps"]["details"],
                         [{"start": 0, "end": 100, "size": 100, "size_mb": 0.0}])
        self.assertEqual(vis["gaps"]["percentage"], 10.0)

    def test_fields(self):
        self.assertEqual(field_text(self.part, "filename"), "movie.avi")
        self.assertEqual(field_text(self.part, "size"), "1000")
        self.assertEqual(field_text(self.part, "progress"), "50.0")
        self.assertEqual(field_text(self.part, "date"), "")
        self.assertEqual(field_object(self.part, "date"), {"last_seen": None})
        self.assertEqual(field_object(self.part, "size", verbose=True),
                         {"filesize": 1000, "filesize_mb": 0.0})

    def test_repeated_size_tag_agrees_with_progress(self):
        part = decode_bytes(image_v14_1([special(2, 1000), special(2, 2000), special(8, 500)]))
        self.assertEqual(int(field_text(part, "size")), summarize(part).file_size)
        doc = json.loads(render_fields(part, ["size", "progress"], json_output=True))
        fields = doc["fields"]
        self.assertEqual(fields["filesize"], 2000)
        self.assertEqual(fields["progress"]["total_bytes"], 2000)
        self.assertEqual(fields["progress"]["percentage"], 25.0)

    def test_size_field_missing(self):
        part = decode_bytes(image_v14_1([special(2, b"oops"), special(8, 5)]))
        self.assertEqual(field_object(part, "size"), {"filesize": None})
        self.assertEqual(field_text(part, "size"), "")

    def test_unknown_field(self):
        with self.assertRaises(ValueError):
            field_object(self.part, "colour")


# ── Command line ─────────────────────────────────────────────

class TestCli(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = self._write("sample.part.met", _sample_image())

    def tearDown(self):
        self.tmp.cleanup()

    def _write(self, name: str, data: bytes) -> str:
        path = os.path.join(self.tmp.name, name)
        with open(path, "wb") as f:
            f.write(data)
        return path

    def _run(self, argv: List[str]) -> Tuple[int, str, str]:
        out, err = io.StringIO(), io.StringIO()
        code = 0
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            try:
                main(argv)
            except SystemExit as e:
                code = e.code if isinstance(e.code, int) else 1
        return code, out.getvalue(), err.getvalue()

    def test_default_report(self):
        code, out, _ = self._run([self.path])
        self.assertEqual(code, 0)
        self.assertIn("ED2K Hash: " + SEQ_HEX, out)
        self.assertIn('Tag: (Special, 1) Filename = "movie.avi"', out)
        self.assertIn('Tag: (Unknown) Name: "mystery", Value: 42', out)

    def test_file_flag(self):
        code, out, _ = self._run(["-f", self.path, "-t"])
        self.assertEqual(code, 0)
        self.assertIn('Tag: (Standard) Artist = "Someone"', out)
        self.assertNotIn("(Special", out)

    def test_all_overrides_filters(self):
        _, out, _ = self._run([self.path, "-g", "-a"])
        self.assertIn("(Special", out)

    def test_json_report(self):
        code, out, _ = self._run([self.path, "-j", "-a", "-z"])
        self.assertEqual(code, 0)
        doc = json.loads(out)
        self.assertEqual(len(doc["tags"]), 8)
        self.assertEqual(len(doc["visualization"]["bar"]), 70)

    def test_json_visualize_only(self):
        _, out, _ = self._run([self.path, "-j", "-z"])
        doc = json.loads(out)
        self.assertNotIn("tags", doc)
        self.assertEqual(doc["visualization"]["downloaded"], 500)

    def test_visualize_only(self):
        _, out, _ = self._run([self.path, "-z", "--width", "10"])
        self.assertNotIn("=== META TAGS ===", out)
        self.assertIn("[ #########]", out)

    def test_width_from_environment(self):
        os.environ["PARTMET_BAR_WIDTH"] = "5"
        try:
            _, out, _ = self._run([self.path, "-z"])
        finally:
            del os.environ["PARTMET_BAR_WIDTH"]
        self.assertIn("[ ####]", out)

    def test_header_fields(self):
        self.assertEqual(self._run([self.path, "-e"])[1], SEQ_HEX + "\n")
        self.assertEqual(self._run([self.path, "-m"])[1], "14.1\n")
        self.assertEqual(self._run([self.path, "-c"])[1], "8\n")
        self.assertEqual(json.loads(self._run([self.path, "-e", "-j"])[1]),
                         {"ed2k_hash": SEQ_HEX})

    def test_header_field_skips_bad_tags(self):
        path = self._write("bad.part.met", image_v14_0([b"\x09\x00"], count=3))
        code, out, _ = self._run([path, "-m"])
        self.assertEqual(code, 0)
        self.assertEqual(out, "14.0\n")

    def test_tag_fields_text(self):
        self.assertEqual(self._run([self.path, "-n"])[1], "movie.avi\n")
        self.assertEqual(self._run([self.path, "-S"])[1], "1000\n")
        self.assertEqual(self._run([self.path, "-p"])[1], "50.0\n")
        self.assertEqual(self._run([self.path, "-S", "-p"])[1], "1000\n")

    def test_missing_field_prints_nothing(self):
        code, out, _ = self._run([self.path, "-d"])
        self.assertEqual(code, 0)
        self.assertEqual(out, "")

    def test_tag_fields_json(self):
        _, out, _ = self._run([self.path, "-S", "-p", "-d", "-j"])
        self.assertEqual(json.loads(out), {"fields": {
            "filesize": 1000,
            "last_seen": None,
            "progress": {
                "total_bytes": 1000, "downloaded_bytes": 500,
                "total_mb": 0.0, "downloaded_mb": 0.0, "percentage": 50.0,
            },
        }})

    def test_version(self):
        code, out, _ = self._run(["-V"])
        self.assertEqual(code, 0)
        self.assertEqual(out, "partmet {}\n".format(__version__))
        _, out, _ = self._run(["-V", "-j"])
        self.assertEqual(json.loads(out), {"version": "partmet {}".format(__version__)})

    def test_no_arguments(self):
        code, _, err = self._run([])
        self.assertEqual(code, 1)
        self.assertIn("usage", err)

    def test_no_file(self):
        code, _, err = self._run(["-j"])
        self.assertEqual(code, 1)
        self.assertIn("must specify", err)

    def test_bad_format(self):
        path = self._write("bad.part.met", b"\x42" + bytes(40))
        code, out, err = self._run([path])
        self.assertEqual(code, 2)
        self.assertEqual(out, "")
        self.assertIn("[ERR_FORMAT]", err)

    def test_bad_tag_kind(self):
        path = self._write("bad.part.met", image_v14_1([special(2, 1), b"\x09\x01\x00\x01"], count=2))
        code, _, err = self._run([path])
        self.assertEqual(code, 2)
        self.assertIn("[ERR_TAG_KIND]", err)
        self.assertIn("decoded 1 of 2 tags", err)

    def test_truncated(self):
        path = self._write("short.part.met", image_v14_1([], count=4))
        code, _, err = self._run([path, "-j"])
        self.assertEqual(code, 2)
        self.assertIn("[ERR_IO]", err)

    def test_missing_file(self):
        code, _, err = self._run([os.path.join(self.tmp.name, "nope.part.met")])
        self.assertEqual(code, 2)
        self.assertIn("cannot read", err)


if __name__ == "__main__":
    unittest.main()
