from debrid_search.models import RawListing
from debrid_search.services.keywords import (
    extract_keywords,
    prefilter_by_keywords,
    ultra_fast_fuzzy_match,
)


def test_extract_keywords_strips_punctuation():
    assert extract_keywords("Spider-Man: No Way Home") == "Spider Man No Way Home"


def test_extract_keywords_drops_single_letter_noise():
    assert extract_keywords("Tom & Jerry's b Movie") == "Tom Jerry Movie"
    assert extract_keywords("A Quiet Place") == "A Quiet Place"


def test_extract_keywords_joins_split_roman_numerals():
    assert extract_keywords("Rocky I I") == "Rocky II"


def test_extract_keywords_bad_input():
    assert extract_keywords(None) == ""
    assert extract_keywords("") == ""


def test_extract_keywords_caps_word_count():
    title = " ".join(f"word{i}" for i in range(20))
    assert len(extract_keywords(title).split()) == 15


def test_ultra_fast_fuzzy_match_tolerates_typo():
    assert ultra_fast_fuzzy_match("the matrix reloaded", "reloadid") is True
    assert ultra_fast_fuzzy_match("the matrix reloaded", "abc") is False


def test_prefilter_by_keywords():
    listings = [
        RawListing(id="1", name="The.Matrix.1999.1080p"),
        RawListing(id="2", name="Inception.2010"),
    ]

    kept = prefilter_by_keywords(listings, ["The Matrix"])

    assert [listing.id for listing in kept] == ["1"]
    assert prefilter_by_keywords(listings, []) == listings
