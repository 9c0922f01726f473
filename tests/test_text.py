import pytest

from text import (
    composite_string_similarity,
    jaccard_similarity,
    levenshtein_similarity,
    normalize,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Storytime Science for Kids", "storytime science kids"),
        ("Children's Art Workshop!", "childrens art workshop"),
        ("The Amazing Science Show", "amazing science show"),
        ("Family Fun Day at the Park", "family fun day park"),
        ("  Lots   of\tspace  ", "lots of space"),
        ("", ""),
        (None, ""),
    ],
)
def test_normalize(raw, expected):
    assert normalize(raw) == expected


def test_normalize_only_removes_whole_stop_words():
    assert normalize("Another Band Onstage") == "another band onstage"


def test_levenshtein_similarity_counts_edits():
    # kitten -> sitting: two substitutions and one insertion
    assert levenshtein_similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)
    assert levenshtein_similarity("lego night", "lego nights") == pytest.approx(1 - 1 / 11)
    assert levenshtein_similarity("abc", "xyz") == 0.0


def test_levenshtein_similarity_edges():
    assert levenshtein_similarity("", "") == 1.0
    assert levenshtein_similarity("abc", "") == 0.0
    assert levenshtein_similarity("", "abc") == 0.0
    assert levenshtein_similarity("storytime", "storytime") == 1.0
    assert levenshtein_similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)


def test_jaccard_similarity():
    assert jaccard_similarity("a b c", "b c d") == pytest.approx(0.5)
    assert jaccard_similarity("Story Time", "story time") == 1.0
    assert jaccard_similarity("", "") == 0.0


def test_composite_similarity_weights():
    a, b = "family yoga park", "family yoga"
    expected = 0.7 * levenshtein_similarity(a, b) + 0.3 * jaccard_similarity(a, b)
    assert composite_string_similarity(a, b) == pytest.approx(expected)
    assert composite_string_similarity("storytime", "storytime") == pytest.approx(1.0)


@pytest.mark.parametrize(
    "a, b",
    [
        ("outdoor movie moana", "outdoor movie night moana"),
        ("planetarium show", "storytime science kids"),
        ("", "lego night"),
    ],
)
def test_composite_similarity_is_symmetric(a, b):
    assert composite_string_similarity(a, b) == composite_string_similarity(b, a)
