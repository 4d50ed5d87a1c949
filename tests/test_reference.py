import pytest

from scripture_scenes.reference import (
    ScriptureReference,
    format_reference,
    next_verse,
    normalize_reference,
    parse_reference,
)


@pytest.mark.parametrize("text,expected", [
    ("Gênesis 1:1", ScriptureReference("Gênesis", 1, 1)),
    ("  João 3:16  ", ScriptureReference("João", 3, 16)),
    ("1 Samuel 4:18", ScriptureReference("1 Samuel", 4, 18)),
    ("Salmos23:1", ScriptureReference("Salmos", 23, 1)),
    ("Song of Songs 2:10", ScriptureReference("Song of Songs", 2, 10)),
])
def test_parse_reference(text, expected):
    assert parse_reference(text) == expected


@pytest.mark.parametrize("text", [
    "",
    "   ",
    "Gênesis",
    "Gênesis 1",
    "1:1",
    "Gênesis 1:1a",
    "Gênesis 0:1",
    "Gênesis 1:0",
])
def test_parse_reference_rejects(text):
    assert parse_reference(text) is None


def test_parse_uses_last_chapter_verse_token():
    ref = parse_reference("Livro 2:3 de 4:5")
    assert ref == ScriptureReference("Livro 2:3 de", 4, 5)


def test_format_reference():
    assert format_reference(ScriptureReference("1 Reis", 8, 27)) == "1 Reis 8:27"
    assert str(ScriptureReference("Rute", 1, 16)) == "Rute 1:16"


@pytest.mark.parametrize("text,normalized", [
    ("Gênesis 1:1", "Gênesis 1:1"),
    ("  Gênesis   1:1 ", "Gênesis 1:1"),
    ("Êxodo 3:14", "Êxodo 3:14"),
    ("2 Crônicas  7:14", "2 Crônicas 7:14"),
])
def test_format_parse_round_trip(text, normalized):
    assert format_reference(parse_reference(text)) == normalized
    assert normalize_reference(text) == normalized
    # Idempotent on the normalized form
    assert normalize_reference(normalized) == normalized


def test_normalize_invalid():
    assert normalize_reference("sem referência") is None


def test_next_verse_only_increments_verse():
    ref = ScriptureReference("Gênesis", 1, 31)
    nxt = next_verse(ref)
    assert nxt == ScriptureReference("Gênesis", 1, 32)
    # The original is immutable and untouched
    assert ref.verse == 31
    with pytest.raises(Exception):
        ref.verse = 2
