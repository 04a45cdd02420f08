# debrid_search/services/keywords.py

import re
import unicodedata

from ..parsing.roman import is_roman_numeral, join_roman_numerals

MAX_KEYWORDS = 15
PREFILTER_SIMILARITY = 0.85

_PUNCTUATION = re.compile(r"[^\w\s]|_")


def _strip_punctuation(text: str) -> str:
    text = _PUNCTUATION.sub(" ", text)
    return re.sub(r"\s+", " ", text).strip()


def extract_keywords(title: str | None) -> str:
    """
    Reduces a title to its searchable words.

    Punctuation becomes whitespace, split Roman numerals are joined back
    together, and one-letter noise is dropped. At most fifteen words are kept.
    """
    if not title or not isinstance(title, str):
        return ""
    text = _strip_punctuation(unicodedata.normalize("NFKC", title))
    text = join_roman_numerals(text)
    words = [
        word
        for word in text.split()
        if len(word) > 1
        or word.lower() == "a"
        or word == "I"
        or is_roman_numeral(word)
        or word.isdigit()
    ]
    return " ".join(words[:MAX_KEYWORDS])


def normalize_for_substring(text: str) -> str:
    return _strip_punctuation((text or "").lower())


def ultra_fast_fuzzy_match(
    title: str, keyword: str, min_similarity: float = PREFILTER_SIMILARITY
) -> bool:
    """Substring test that tolerates a few typos in keywords of four or more letters."""
    if keyword in title:
        return True
    if len(keyword) < 4:
        return False

    max_differences = int(len(keyword) * (1 - min_similarity))
    for start in range(len(title) - len(keyword) + 1):
        window = title[start : start + len(keyword)]
        differences = 0
        for expected, actual in zip(keyword, window):
            if expected != actual:
                differences += 1
                if differences > max_differences:
                    break
        if differences <= max_differences:
            return True
    return False


def prefilter_by_keywords(listings: list, keywords: list[str]) -> list:
    """Keeps the listings whose name plausibly contains one of the search terms."""
    if not keywords:
        return list(listings)

    prepared = [
        (normalize_for_substring(keyword), extract_keywords(keyword).lower())
        for keyword in keywords
    ]
    relevant = []
    for listing in listings:
        raw_name = normalize_for_substring(listing.name)
        keyword_name = extract_keywords(listing.name).lower()
        for raw_keyword, keyword in prepared:
            if (raw_keyword and raw_keyword in raw_name) or (
                keyword and ultra_fast_fuzzy_match(keyword_name, keyword)
            ):
                relevant.append(listing)
                break
    return relevant
