from debrid_search.models import StreamRecord
from debrid_search.services.ranking import (
    UNSCORED,
    parse_size,
    quality_score,
    rank_streams,
)


def _stream(quality, size, filename):
    return StreamRecord(
        name=f"[RD⚡] Intell DebridSearch\n{quality}",
        title=f"📁 {filename}\n💾 {size}",
        url=f"https://host.example/{filename}",
        binge_group="RealDebrid|1",
        filename=filename,
    )


def test_quality_score_reads_quality_line():
    assert quality_score(_stream("💎 4K UHD", "1 GB", "a")) == 40
    assert quality_score(_stream("❓ Unknown", "1 GB", "b")) == UNSCORED


def test_parse_size_units():
    assert parse_size(_stream("⭐ 1080p", "1.5 GB", "a")) == 1.5 * 1024**3
    assert parse_size(_stream("⭐ 1080p", "700 MB", "a")) == 700 * 1024**2
    assert parse_size(_stream("⭐ 1080p", "Unknown", "a")) == 0.0


def test_rank_by_score_then_size():
    scores = {"low": 80, "high": 95, "high-big": 95}
    streams = [
        _stream("⭐ 1080p", "1 GB", "low"),
        _stream("⭐ 1080p", "1 GB", "high"),
        _stream("⭐ 1080p", "2 GB", "high-big"),
    ]

    ranked = rank_streams(streams, scorer=lambda stream: scores[stream.filename])

    assert [stream.filename for stream in ranked] == ["high-big", "high", "low"]


def test_unscored_streams_rank_last():
    streams = [
        _stream("❓ Unknown", "10 GB", "unknown"),
        _stream("✨ 720p", "1 GB", "720p"),
        _stream("💎 4K UHD", "5 GB", "4k"),
    ]

    assert [stream.filename for stream in rank_streams(streams)] == ["4k", "720p", "unknown"]


def test_ranking_is_stable_for_ties():
    streams = [_stream("⭐ 1080p", "1 GB", name) for name in ("first", "second", "third")]

    assert [stream.filename for stream in rank_streams(streams)] == ["first", "second", "third"]
