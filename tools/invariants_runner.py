#!/usr/bin/env python3
# tools/invariants_runner.py
#
# Randomized invariants for the partmet decoder.
#
# This runner:
# - generates random tag streams (special / gap / standard / unknown names)
# - wraps them in 14.0 or 14.1 images with random block counts
# - checks decode round-trip, classification rules, gap pairing against the
#   quadratic reference scan, occupancy bar bounds, and truncation behaviour
#
# Exit code:
#   0 -> all checks passed
#   1 -> invariant violation

import os, sys, random, struct
from typing import List, Optional, Tuple

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from partmet import (
    ERR_IO,
    Gap,
    GapInterval,
    GapMarker,
    IntegerValue,
    PartMetError,
    Special,
    StringValue,
    Tag,
    TagKind,
    classify,
    decode_bytes,
    reconcile_gaps,
    render_occupancy,
    summarize,
)

SEED = int(os.environ.get("PARTMET_SEED", "1337"))
TRIALS = int(os.environ.get("PARTMET_TRIALS", "2000"))
MAX_TAGS = int(os.environ.get("PARTMET_GEN_MAX_TAGS", "24"))
MAX_NAME = int(os.environ.get("PARTMET_GEN_MAX_NAME", "12"))
MAX_VALUE = int(os.environ.get("PARTMET_GEN_MAX_VALUE", "32"))
MAX_BLOCKS = int(os.environ.get("PARTMET_GEN_MAX_BLOCKS", "4"))

random.seed(SEED)

STANDARD_NAMES = [b"artist", b"Album", b"TITLE", b"length", b"bitrate", b"Codec"]
GAP_REFS = [b"0", b"1", b"2", b"10", b"\x00", b"a", b"A"]

def rand_bytes(lo: int, hi: int) -> bytes:
    return bytes(random.getrandbits(8) for _ in range(random.randint(lo, hi)))

def rand_name() -> bytes:
    r = random.random()
    if r < 0.30:
        return bytes([random.randint(0, 255)])
    if r < 0.65:
        return bytes([random.choice((9, 10))]) + random.choice(GAP_REFS)
    if r < 0.75:
        return random.choice(STANDARD_NAMES)
    return rand_bytes(0, MAX_NAME)

def rand_tag() -> Tag:
    name = rand_name()
    if random.random() < 0.75:
        return Tag(TagKind.INTEGER, name, IntegerValue(random.getrandbits(32)))
    return Tag(TagKind.STRING, name, StringValue(rand_bytes(0, MAX_VALUE)))

def encode_tag(tag: Tag) -> bytes:
    head = bytes([tag.kind]) + struct.pack("<H", len(tag.name)) + tag.name
    if tag.is_integer:
        return head + struct.pack("<I", tag.raw_value)
    return head + struct.pack("<H", len(tag.raw_value)) + tag.raw_value

def encode_image(tags: List[Tag], content_hash: bytes, blocks: Optional[int]) -> Tuple[bytes, int]:
    """Return (image, offset of the first tag).  blocks=None means 14.1."""
    body = b"".join(encode_tag(t) for t in tags)
    count = struct.pack("<I", len(tags))
    if blocks is None:
        head = b"\xe1" + bytes(5) + content_hash + count
    else:
        head = (b"\xe0" + bytes(4) + content_hash + struct.pack("<H", blocks)
                + rand_bytes(16 * blocks, 16 * blocks) + count)
    return head + body, len(head)

def reference_gaps(tags: List[Tag]) -> List[GapInterval]:
    out = []
    for t in tags:
        if not (t.is_integer and len(t.name) >= 2 and t.name[0] == 9):
            continue
        for u in tags:
            if u.is_integer and len(u.name) >= 2 and u.name[0] == 10 and u.name[1:] == t.name[1:]:
                out.append(GapInterval(t.raw_value, u.raw_value))
                break
    return out

def fail(msg: str) -> None:
    print("FAIL:", msg)
    sys.exit(1)

def check_classify(tag: Tag) -> None:
    cat = classify(tag)
    if len(tag.name) == 1:
        if cat != Special(tag.name[0]):
            fail("1-byte name {!r} classified as {!r}".format(tag.name, cat))
    elif len(tag.name) >= 2 and tag.name[0] in (9, 10):
        want = Gap(GapMarker(tag.name[0]), tag.name[1:])
        if cat != want:
            fail("gap name {!r} classified as {!r}".format(tag.name, cat))
    elif isinstance(cat, (Special, Gap)):
        fail("name {!r} wrongly classified as {!r}".format(tag.name, cat))

def check_bar(gaps: List[GapInterval], size: int) -> None:
    width = random.randint(1, 100)
    cells = render_occupancy(gaps, size, width)
    if len(cells) != width:
        fail("bar length {} != {}".format(len(cells), width))
    if not gaps and not all(cells):
        fail("bar shows missing data with no gaps")
    if size == 0 and not all(cells):
        fail("zero-size file shows missing data")

def check_truncation(image: bytes, first_tag: int) -> None:
    if len(image) <= first_tag:
        return
    cut = random.randint(first_tag, len(image) - 1)
    try:
        decode_bytes(image[:cut])
    except PartMetError as e:
        if e.code != ERR_IO:
            fail("truncated image raised {} instead of ERR_IO".format(e.code))
        return
    fail("truncated image at {} of {} decoded without error".format(cut, len(image)))

def main():
    for trial in range(TRIALS):
        tags = [rand_tag() for _ in range(random.randint(0, MAX_TAGS))]
        content_hash = rand_bytes(16, 16)
        blocks = None if random.random() < 0.5 else random.randint(0, MAX_BLOCKS)
        image, first_tag = encode_image(tags, content_hash, blocks)

        part = decode_bytes(image)
        if list(part.tags) != tags:
            fail("trial {}: round-trip mismatch".format(trial))
        if part.content_hash != content_hash:
            fail("trial {}: hash mismatch".format(trial))
        if part.format_version != ("14.1" if blocks is None else "14.0"):
            fail("trial {}: wrong version {}".format(trial, part.format_version))

        for tag in tags:
            check_classify(tag)

        gaps = reconcile_gaps(tags)
        if gaps != reference_gaps(tags):
            fail("trial {}: gap pairing differs from reference scan".format(trial))

        summary = summarize(part)
        if list(summary.gaps) != gaps:
            fail("trial {}: summary gaps disagree with reconcile_gaps".format(trial))
        check_bar(gaps, summary.file_size)
        check_bar(gaps, 0)

        check_truncation(image, first_tag)

    print("INVARIANTS: {} trials PASS (seed={})".format(TRIALS, SEED))
    sys.exit(0)

if __name__ == "__main__":
    main()
