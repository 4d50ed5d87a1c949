"""Parse, format and advance scripture references like "Gênesis 1:5"."""

import re
from dataclasses import dataclass, replace
from typing import Optional

# Book text is everything up to the last "N:N" token and must end in a non-digit.
_REFERENCE_RE = re.compile(r"^(.*\D)\s*(\d+):(\d+)$")


@dataclass(frozen=True)
class ScriptureReference:
    book: str
    chapter: int
    verse: int

    def __str__(self) -> str:
        return format_reference(self)


def parse_reference(text: str) -> Optional[ScriptureReference]:
    """Parse free text into a reference.

    Returns None when the text does not match; callers treat that as a
    no-op rather than an error.
    """
    if not text:
        return None
    match = _REFERENCE_RE.match(text.strip())
    if not match:
        return None

    book = match.group(1).strip()
    chapter = int(match.group(2))
    verse = int(match.group(3))
    if not book or chapter < 1 or verse < 1:
        return None
    return ScriptureReference(book=book, chapter=chapter, verse=verse)


def format_reference(ref: ScriptureReference) -> str:
    return f"{ref.book} {ref.chapter}:{ref.verse}"


def next_verse(ref: ScriptureReference) -> ScriptureReference:
    """Return the following verse in the same chapter.

    Chapter lengths are not checked here; the scene service reports
    verses that do not exist.
    """
    return replace(ref, verse=ref.verse + 1)


def normalize_reference(text: str) -> Optional[str]:
    parsed = parse_reference(text)
    return format_reference(parsed) if parsed else None
