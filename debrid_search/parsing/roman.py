# debrid_search/parsing/roman.py

from __future__ import annotations

import re
from dataclasses import dataclass

from ..config import logger

_ROMAN_VALUES = [
    ("M", 1000), ("CM", 900), ("D", 500), ("CD", 400),
    ("C", 100), ("XC", 90), ("L", 50), ("XL", 40),
    ("X", 10), ("IX", 9), ("V", 5), ("IV", 4), ("I", 1),
]
_VALID_ROMAN = re.compile(r"^M{0,4}(CM|CD|D?C{0,3})(XC|XL|L?X{0,3})(IX|IV|V?I{0,3})$")
JOIN_ROMAN_NUMERALS = re.compile(r"\b([IVXLCDM]+)\s([IVXLCDM]+)\b")

_ROMAN_SEASON_PATTERNS = [
    re.compile(r"\b([IVX]{1,4})\s*[-–—]\s*(\d{1,3})", re.IGNORECASE),
    re.compile(r"\b([IVX]{1,4})\s+episode\s*(\d{1,3})", re.IGNORECASE),
]


@dataclass(frozen=True)
class RomanSeason:
    season: int
    episode: int
    roman: str


def is_roman_numeral(text: str) -> bool:
    normalized = (text or "").strip().upper()
    if not normalized or not re.fullmatch(r"[IVXLCDM]+", normalized):
        return False
    return bool(_VALID_ROMAN.match(normalized))


def roman_to_number(roman: str) -> int | None:
    """Converts a numeral in the range I..L; anything larger is not a season."""
    if not is_roman_numeral(roman):
        return None
    upper = roman.strip().upper()
    result = 0
    i = 0
    for symbol, value in _ROMAN_VALUES:
        while upper[i : i + len(symbol)] == symbol:
            result += value
            i += len(symbol)
    if i != len(upper) or not 1 <= result <= 50:
        return None
    return result


def join_roman_numerals(text: str) -> str:
    """'Rocky I I' -> 'Rocky II'."""
    return JOIN_ROMAN_NUMERALS.sub(r"\1\2", text)


def parse_roman_season(title: str) -> RomanSeason | None:
    """Finds 'Title III - 04' style season numbering."""
    if not title or re.search(r"s\d{1,2}e\d{1,3}", title, re.IGNORECASE):
        return None

    for pattern in _ROMAN_SEASON_PATTERNS:
        match = pattern.search(title)
        if not match or not is_roman_numeral(match.group(1)):
            continue
        roman = match.group(1).upper()
        season = roman_to_number(roman)
        if season is not None and 1 <= season <= 10:
            logger.debug(
                f"[PARSER] Roman season {roman} = {season}, episode {match.group(2)}: {title}"
            )
            return RomanSeason(season=season, episode=int(match.group(2)), roman=roman)
    return None
