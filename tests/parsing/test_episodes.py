import pytest

from debrid_search.parsing.episodes import (
    check_season_match,
    extract_episode_title,
    matches_absolute_episode,
    parse_absolute_episode,
    parse_episode_from_title,
    parse_season_from_title,
    should_avoid,
)
from debrid_search.parsing.roman import parse_roman_season, roman_to_number


@pytest.mark.parametrize(
    "name, season, episode, pattern",
    [
        ("Show.Name.S02E05.720p.mkv", 2, 5, "season_episode"),
        ("Show Name Season 2 Episode 3", 2, 3, "written_season_episode"),
        ("Show Name 3x07 HDTV", 3, 7, "number_x_number"),
    ],
)
def test_parse_episode_from_title(name, season, episode, pattern):
    match = parse_episode_from_title(name)

    assert match is not None
    assert (match.season, match.episode, match.pattern) == (season, episode, pattern)


def test_parse_episode_from_title_without_numbering():
    assert parse_episode_from_title("") is None
    assert parse_episode_from_title("Inception 1920x1080") is None


@pytest.mark.parametrize(
    "title, expected",
    [
        ("Show Name Season 3", 3),
        ("Show.Name.S04.1080p", 4),
        ("Show Name 2nd Season", 2),
        ("Serie Staffel 5", 5),
        ("", None),
    ],
)
def test_parse_season_from_title(title, expected):
    assert parse_season_from_title(title) == expected


def test_parse_absolute_episode_for_anime_names():
    assert parse_absolute_episode("One Piece - 1015 [1080p].mkv") == 1015
    assert parse_absolute_episode("") is None


def test_should_avoid_numbered_duplicates():
    assert should_avoid("Show S01E01 (1).mkv")
    assert not should_avoid("Show S01E01.mkv")


def test_check_season_match_bounds():
    assert check_season_match(1, 1)
    assert not check_season_match(None, 1)
    assert not check_season_match(2, 1)
    assert not check_season_match(31, 31)


def test_matches_absolute_episode():
    assert matches_absolute_episode("One Piece - 1015 [1080p].mkv", 1015)
    # Explicit season numbering always wins over a bare number
    assert not matches_absolute_episode("Show S01E15.mkv", 15)
    assert not matches_absolute_episode("One Piece - 1015.mkv", None)


def test_extract_episode_title_from_quotes():
    assert extract_episode_title('Show S01E02 "The Pilot".mkv') == "The Pilot"
    assert extract_episode_title("Show S01E02.mkv") is None


def test_roman_seasons():
    assert roman_to_number("IV") == 4
    assert roman_to_number("ABC") is None

    season = parse_roman_season("Overlord III - 05")
    assert season is not None
    assert (season.season, season.episode, season.roman) == (3, 5, "III")
    assert parse_roman_season("Overlord S03E05") is None
