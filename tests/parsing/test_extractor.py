from debrid_search.parsing.extractor import (
    UnifiedParse,
    extract_features,
    extract_movie_info,
    extract_series_info,
    parse_unified,
    parse_video_info,
)


def test_parse_unified_classic_episode():
    parsed = parse_unified("Breaking.Bad.S01E02.720p.BluRay.x264-DEMAND.mkv")

    assert parsed.title == "Breaking Bad"
    assert (parsed.season, parsed.episode) == (1, 2)
    assert parsed.absolute_episode is None
    assert parsed.resolution == "720p"
    assert parsed.source == "BluRay"
    assert parsed.codec == "x264"


def test_parse_unified_never_raises_on_bad_input():
    assert parse_unified("") == UnifiedParse()
    assert parse_unified(None) == UnifiedParse()


def test_parse_video_info_assumes_first_season():
    parsed = parse_video_info("Show Name E05.mkv")

    assert (parsed.season, parsed.episode) == (1, 5)


def test_extract_movie_info():
    info = extract_movie_info("Inception.2010.1080p.BluRay.x264-SPARKS.mkv")

    assert info.title == "Inception"
    assert info.year == 2010
    assert info.resolution == "1080p"
    assert info.release_group == "SPARKS"


def test_extract_series_info_borrows_tags_from_container():
    info = extract_series_info("S01E03.mkv", "The.Expanse.S01.1080p.WEB-DL")

    assert info.resolution == "1080p"
    assert info.source == "WEB-DL"
    assert info.season_episode == "S01E03"


def test_extract_features_bundles_everything():
    features = extract_features("Movie.2019.IMAX.2160p.WEB-DL.x265-GRP.mkv")

    assert features.parse.year == 2019
    assert features.quality_display == "💎 4K UHD"
    assert features.quality_score == 40 + 12 + 11
    assert "🎞️ IMAX" in features.variant_hints
    assert "🎞️ IMAX" in features.technical_details
