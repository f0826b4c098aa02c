"""Tag classification: what a decoded tag means.

Four categories, decided from the name bytes alone:

    Special   1-byte name; the byte is a numeric field id
    Gap       name starts with 0x09 (start) or 0x0A (end), rest is a reference
    Standard  name is one of a few known media attributes (case-insensitive)
    Unknown   anything else

classify() is total over well-formed tags.  The description lookups below
it never fail either; unrecognized ids and values degrade to None or an
"...: Unknown" label.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar, Optional, Union

from ._constants import (
    ENUMERATED_SPECIALS,
    GAP_DESCRIPTIONS,
    GAP_END,
    GAP_START,
    SPECIAL_DESCRIPTIONS,
    STANDARD_DESCRIPTIONS,
    STATUS_NOTES,
)
from ._model import Tag


class GapMarker(IntEnum):
    START = GAP_START
    END = GAP_END


@dataclass(frozen=True)
class Special:
    label: ClassVar[str] = "special"
    id: int


@dataclass(frozen=True)
class Gap:
    label: ClassVar[str] = "gap"
    marker: GapMarker
    reference: bytes


@dataclass(frozen=True)
class Standard:
    label: ClassVar[str] = "standard"
    name: str


@dataclass(frozen=True)
class Unknown:
    label: ClassVar[str] = "unknown"
    name: bytes


TagCategory = Union[Special, Gap, Standard, Unknown]

CATEGORY_LABELS = (Special.label, Gap.label, Standard.label, Unknown.label)


def classify(tag: Tag) -> TagCategory:
    """Return the semantic category of a tag."""
    name = tag.name
    if len(name) == 1:
        return Special(name[0])
    if len(name) >= 2 and name[0] in (GAP_START, GAP_END):
        return Gap(GapMarker(name[0]), name[1:])
    # Latin-1 maps every byte, so arbitrary name bytes never fail here.
    text = name.decode("latin-1")
    if text.lower() in STANDARD_DESCRIPTIONS:
        return Standard(text)
    return Unknown(name)


# ── Descriptions ─────────────────────────────────────────────

def special_meaning(tag_id: int, int_value: int = 0) -> Optional[str]:
    """Describe a special tag id.  Some ids are keyed by their value too.

    Returns None for ids with no known meaning.
    """
    if tag_id in ENUMERATED_SPECIALS:
        prefix, labels = ENUMERATED_SPECIALS[tag_id]
        return "{}: {}".format(prefix, labels.get(int_value, "Unknown"))
    return SPECIAL_DESCRIPTIONS.get(tag_id)


def gap_meaning(marker: int) -> Optional[str]:
    return GAP_DESCRIPTIONS.get(marker)


def standard_meaning(name: str) -> Optional[str]:
    return STANDARD_DESCRIPTIONS.get(name.lower())


def status_note(value: int) -> Optional[str]:
    return STATUS_NOTES.get(value)


def describe(tag: Tag, category: Optional[TagCategory] = None) -> Optional[str]:
    """Human meaning of a tag, or None when there is nothing to say."""
    if category is None:
        category = classify(tag)
    if isinstance(category, Special):
        value = tag.raw_value if tag.is_integer else 0
        return special_meaning(category.id, value)
    if isinstance(category, Gap):
        return gap_meaning(category.marker)
    if isinstance(category, Standard):
        return standard_meaning(category.name)
    return None
