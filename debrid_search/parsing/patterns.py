# debrid_search/parsing/patterns.py

"""Regex tables describing quality, source, codec, language and audio tags."""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class MediaPattern:
    pattern: re.Pattern[str]
    name: str
    display_name: str
    emoji: str
    score: int = 0


@dataclass(frozen=True)
class QualityInfo:
    resolution: str | None = None
    source: str | None = None
    codec: str | None = None
    score: int = 0


def _p(regex: str) -> re.Pattern[str]:
    return re.compile(regex, re.IGNORECASE)


QUALITY_PATTERNS = [
    MediaPattern(_p(r"(2160p|4K|UHD|UHDBD|UHD-BD|4K-UHD|3840x2160)"), "4K", "4K UHD", "💎", 40),
    MediaPattern(_p(r"(1440p|2560x1440)"), "1440p", "1440p", "💍", 30),
    MediaPattern(_p(r"(1080p|1920x1080)"), "1080p", "1080p", "⭐", 20),
    MediaPattern(_p(r"(720p|1280x720)"), "720p", "720p", "✨", 10),
    MediaPattern(_p(r"(576p|720x576)"), "576p", "576p", "🔘", 7),
    MediaPattern(_p(r"(480p|720x480)"), "480p", "480p", "⚫", 5),
    MediaPattern(_p(r"\b(DVD|DVDRIP)\b"), "DVD", "DVD", "📀", 3),
]

# Order matters: BDRip must be tried before the bare BD form.
SOURCE_PATTERNS = [
    MediaPattern(_p(r"\b(BDRIP|BD-RIP)(?:\d+p?)?\b"), "BDRip", "BDRip", "💿", 14),
    MediaPattern(_p(r"\b(BLURAY|BLU-RAY|BD)(?:\d+p?)?\b"), "BluRay", "BluRay", "📀", 15),
    MediaPattern(_p(r"\b(WEBDL|WEB-DL|WEB\.DL)(?:\d+p?)?\b"), "WEB-DL", "WEB-DL", "🌐", 12),
    MediaPattern(_p(r"\b(WEBRIP|WEB-RIP|WEB\.RIP)(?:\d+p?)?\b"), "WEBRip", "WEBRip", "🌐", 10),
    MediaPattern(_p(r"\b(WEB)(?:\d+p?)?\b"), "WEB-DL", "WEB-DL", "🌐", 12),
    MediaPattern(_p(r"\bHDTV\b"), "HDTV", "HDTV", "📺", 5),
]

CODEC_PATTERNS = [
    MediaPattern(_p(r"\b(AV1)\b"), "AV1", "AV1", "🎬", 12),
    MediaPattern(_p(r"\b(x265)\b"), "x265", "x265", "🎥", 11),
    MediaPattern(_p(r"\b(HEVC|H\.?265|h265)\b"), "HEVC", "HEVC", "📹", 10),
    MediaPattern(_p(r"\b(x264|H\.?264|AVC|h264)\b"), "x264", "x264", "🎥", 9),
]

LANGUAGE_PATTERNS = [
    MediaPattern(_p(r"\b(Multiple Subtitles?|Multi-Sub|MULTILINGUAL|MULTILANG)\b"), "MULTI", "MULTI", "🌍"),
    MediaPattern(_p(r"\b(MULTi3|MULTi2|MULTi|MULTI)\b"), "MULTI", "MULTI", "🌍"),
    MediaPattern(_p(r"\b(CUSTOM)\b"), "CUSTOM", "CUSTOM", "🔧"),
    MediaPattern(_p(r"\bTRUEFRENCH\b"), "TrueFrench", "TrueFrench", "🇫🇷"),
    MediaPattern(_p(r"\bSUBFRENCH\b"), "SubFrench", "SubFrench", "🇫🇷"),
    MediaPattern(_p(r"\bVOSTFR\b"), "VOSTFR", "VOSTFR", "🇫🇷"),
    MediaPattern(_p(r"\bVFF\b"), "VFF", "VFF", "🇫🇷"),
    MediaPattern(_p(r"\bVF\b"), "VF", "VF", "🇫🇷"),
    MediaPattern(_p(r"\b(FRENCH|FRANCAIS|FRE|FRA|FR)\b"), "French", "French", "🇫🇷"),
    MediaPattern(_p(r"\b(ENGLISH|ENG)\b"), "English", "English", "🇬🇧"),
    MediaPattern(_p(r"\b(JAPANESE|JAP|JP)\b"), "Japanese", "Japanese", "🇯🇵"),
    MediaPattern(_p(r"\b(SPANISH|SPA)\b"), "Spanish", "Spanish", "🇪🇸"),
    MediaPattern(_p(r"\b(GERMAN|GER)\b"), "German", "German", "🇩🇪"),
    MediaPattern(_p(r"\b(ITALIAN|ITA)\b"), "Italian", "Italian", "🇮🇹"),
    MediaPattern(_p(r"\b(KOREAN|KOR)\b"), "Korean", "Korean", "🇰🇷"),
    MediaPattern(_p(r"\b(CHINESE|CHI|CN)\b"), "Chinese", "Chinese", "🇨🇳"),
    MediaPattern(_p(r"\b(RUSSIAN|RUS)\b"), "Russian", "Russian", "🇷🇺"),
    MediaPattern(_p(r"\b(PORTUGUESE|POR|PT)\b"), "Portuguese", "Portuguese", "🇵🇹"),
]

# Most specific first; the first hit of a family hides the generic forms.
AUDIO_PATTERNS = [
    MediaPattern(_p(r"\b(EAC3[.\-]?5\.1[.\-]?ATMOS|E-AC3[.\-]?5\.1[.\-]?ATMOS)\b"), "EAC3 5.1 Atmos", "EAC3 5.1 Atmos", "🔊"),
    MediaPattern(_p(r"\b(DDP5\.1[.\-]?ATMOS|DD\+5\.1[.\-]?ATMOS)\b"), "DD+ 5.1 Atmos", "DD+ 5.1 Atmos", "🔊"),
    MediaPattern(_p(r"\b(DOLBY[\s.\-]?ATMOS|ATMOS)\b"), "Atmos", "Atmos", "🔊"),
    MediaPattern(_p(r"\b(DTS[\s\-:]?X|DTSX)\b"), "DTS:X", "DTS:X", "🔊"),
    MediaPattern(_p(r"\b(DTS[\s\-:]?HD[\s.\-]?MA|DTS-HD\.MA)\b"), "DTS-HD MA", "DTS-HD MA", "🔊"),
    MediaPattern(_p(r"\b(DTS[\s\-:]?HD)\b"), "DTS-HD", "DTS-HD", "🔊"),
    MediaPattern(_p(r"\b(TRUEHD|TRUE[\s.\-]?HD)\b"), "TrueHD", "TrueHD", "🔊"),
    MediaPattern(_p(r"\b(FLAC)\b"), "FLAC", "FLAC", "🎵"),
    MediaPattern(_p(r"\b(LPCM)\b"), "LPCM", "LPCM", "🔊"),
    MediaPattern(_p(r"\b(EAC3[.\-]?5\.1|E-AC3[.\-]?5\.1)\b"), "EAC3 5.1", "EAC3 5.1", "🎵"),
    MediaPattern(_p(r"\b(EAC3|E-AC3|EAC-3)\b"), "EAC3", "EAC3", "🎵"),
    MediaPattern(_p(r"\b(AC3[.\-]?5\.1|AC-3[.\-]?5\.1)\b"), "AC3 5.1", "AC3 5.1", "🎵"),
    MediaPattern(_p(r"\b(AC3|AC-3)\b"), "AC3", "AC3", "🎵"),
    MediaPattern(_p(r"\b(DDP5\.1|DD\+5\.1|DDPLUS5\.1)\b"), "DD+ 5.1", "DD+ 5.1", "🎵"),
    MediaPattern(_p(r"\b(DDP2\.0|DD\+2\.0|DDPLUS2\.0)\b"), "DD+ 2.0", "DD+ 2.0", "🎵"),
    MediaPattern(_p(r"\b(HE-AAC[.\-]?5\.1|HEAAC[.\-]?5\.1)\b"), "HE-AAC 5.1", "HE-AAC 5.1", "🎵"),
    MediaPattern(_p(r"\b(AAC[.\-]?5\.1)\b"), "AAC 5.1", "AAC 5.1", "🎵"),
    MediaPattern(_p(r"\b(HE-AAC|HEAAC)\b"), "HE-AAC", "HE-AAC", "🎵"),
    MediaPattern(_p(r"\b(AAC)\b"), "AAC", "AAC", "🎵"),
    MediaPattern(_p(r"\b(DTS)\b"), "DTS", "DTS", "🔊"),
    MediaPattern(_p(r"\b(OPUS)\b"), "Opus", "Opus", "🎵"),
    MediaPattern(_p(r"\b(MP3)\b"), "MP3", "MP3", "🎵"),
    MediaPattern(_p(r"\b(OGG)\b"), "OGG", "OGG", "🎵"),
    MediaPattern(_p(r"\b(7\.1)\b"), "7.1", "7.1", "🔊"),
    MediaPattern(_p(r"\b(5\.1)\b"), "5.1", "5.1", "🔊"),
    MediaPattern(_p(r"\b(2\.0)\b"), "2.0", "2.0", "🔊"),
    MediaPattern(_p(r"\b(10BITS?)\b"), "10bit", "10bit", "🎨"),
    MediaPattern(_p(r"\b(12BITS?)\b"), "12bit", "12bit", "🎨"),
]

# (pattern, display) pairs for HDR, bit depth, edition and release flags.
TECHNICAL_TAG_PATTERNS = [
    (_p(r"(HDR10\+|HDR10PLUS)"), "🌈 HDR10+"),
    (_p(r"HDR10(?!\+|PLUS)"), "🌈 HDR10"),
    (_p(r"\b(HDLIGHT[.\-]?10BIT|HD[.\-]?LIGHT[.\-]?10BIT)\b"), "🌈 HDLight 10bit"),
    (_p(r"\b(HDLIGHT|HD[.\-]?LIGHT)\b"), "🌈 HDLight"),
    (_p(r"\b(HDR)\b"), "🌈 HDR"),
    (_p(r"\b(DOLBY\s*VISION|DV)\b"), "🌈 Dolby Vision"),
    (_p(r"\b(10BITS?)\b"), "🎨 10bit"),
    (_p(r"\b(12BITS?)\b"), "🎨 12bit"),
    (_p(r"\b(8BITS?)\b"), "🎨 8bit"),
    (_p(r"\b(LPCM)\b"), "🔊 LPCM"),
    (_p(r"\b(FLAC)\b"), "🎵 FLAC"),
    (_p(r"\b(REMUX)\b"), "🎯 REMUX"),
    (_p(r"\b(REPACK)\b"), "📦 REPACK"),
    (_p(r"\b(PROPER)\b"), "✅ PROPER"),
    (_p(r"\b(INTERNAL)\b"), "🏠 INTERNAL"),
    (_p(r"\b(60FPS|60P)\b"), "🎬 60fps"),
    (_p(r"\b(50FPS|50P)\b"), "🎬 50fps"),
    (_p(r"\b(30FPS|30P)\b"), "🎬 30fps"),
    (_p(r"\b(24FPS|24P)\b"), "🎬 24fps"),
    (_p(r"\b(IMAX)\b"), "🎞️ IMAX"),
    (_p(r"\b(EXTENDED|EXT)\b"), "⏱️ Extended"),
    (_p(r"\b(DIRECTORS?\s*CUT|DC)\b"), "🎬 Director's Cut"),
    (_p(r"\b(UNCUT)\b"), "🔓 Uncut"),
    (_p(r"\b(UNRATED)\b"), "🔞 Unrated"),
]

SERIES_INDICATOR_PATTERNS = [
    re.compile(r"[Ss]\d{1,2}[Ee]\d{1,3}"),
    re.compile(r"\d{1,2}x\d{1,3}"),
    _p(r"Episode\s*\d+"),
    _p(r"Ep\d+"),
    _p(r"Season\s*\d+"),
]

CLEANUP_PATTERNS = {
    "quality": _p(r"\b(2160p|1440p|1080p|720p|576p|480p|4K|UHD|UHDBD|UHD-BD|4K-UHD)\b"),
    "source": _p(r"\b(DVD|DVDRIP|BLURAY|BLU-RAY|BDRIP|BD-RIP|HDTV)\b"),
    "unwanted": _p(r"\b(VRV|CRUNCHYROLL|FUNIMATION|HULU|AMZN|AMAZON|NETFLIX|NF|DSNP|DISNEY)\b"),
    "empty_brackets": re.compile(r"\[\s*\]"),
    "bracket_content": re.compile(r"\[([^\]]+)\]"),
    "empty_parentheses": re.compile(r"\(\s*\)"),
    "dots_underscores": re.compile(r"[._]"),
    "multiple_spaces": re.compile(r"\s+"),
    "trailing_dash": re.compile(r"\s*-\s*$"),
    "group_tags": re.compile(r"^[\[{][^\]}]+[\]}]\s*"),
}

MEANINGFUL_VARIANT_PATTERNS = [
    _p(regex)
    for regex in (
        r"directors?\s*cut",
        r"extended",
        r"uncut",
        r"unrated",
        r"remastered",
        r"special\s*edition",
        r"special",
        r"theatrical",
        r"ultimate",
        r"definitive",
        r"extra",
        r"bonus",
        r"ova",
        r"oav",
        r"nced",
        r"ncop",
        r"collectors?\s*edition",
        r"limited\s*edition",
        r"anniversary\s*edition",
        r"criterion\s*collection",
        r"fan\s*edit",
        r"alternate\s*ending",
        r"final\s*cut",
        r"ona",
        r"oad",
        r"tv\s*special",
        r"recap",
        r"complete\s*series",
        r"miniseries",
        r"webisode",
        r"behind\s*the\s*scenes?",
        r"making\s*of",
    )
]

VIDEO_EXTENSIONS = (
    "3g2", "3gp", "avi", "flv", "mkv", "mk3d", "mov", "mp2", "mp4", "m4v", "mpe",
    "mpeg", "mpg", "mpv", "webm", "wmv", "ogm", "ts", "m2ts",
)
SUBTITLE_EXTENSIONS = (
    "aqt", "gsub", "jss", "sub", "ttxt", "pjs", "psb", "rt", "smi", "slt", "ssf",
    "srt", "ssa", "ass", "usf", "idx", "vtt",
)
DISK_EXTENSIONS = ("iso", "m2ts", "ts", "vob")
ARCHIVE_EXTENSIONS = ("rar", "zip")
ALL_EXTENSIONS = tuple(
    dict.fromkeys(
        VIDEO_EXTENSIONS + SUBTITLE_EXTENSIONS + DISK_EXTENSIONS + ARCHIVE_EXTENSIONS
    )
)

VIDEO_EXTENSION_RE = _p(r"\.(" + "|".join(VIDEO_EXTENSIONS) + r")$")
ANY_EXTENSION_RE = _p(r"\.(" + "|".join(ALL_EXTENSIONS) + r")$")

TECHNICAL_TERM_PATTERNS = [
    _p(pattern.pattern.pattern)
    for table in (
        QUALITY_PATTERNS,
        SOURCE_PATTERNS,
        CODEC_PATTERNS,
        AUDIO_PATTERNS,
        LANGUAGE_PATTERNS,
    )
    for pattern in table
] + [pattern for pattern, _ in TECHNICAL_TAG_PATTERNS]

_FALLBACK_RESOLUTIONS = [
    (("2160", "4K"), "💎 4K UHD"),
    (("1440",), "💍 1440p"),
    (("1080",), "⭐ 1080p"),
    (("720",), "✨ 720p"),
    (("576",), "🔘 576p"),
    (("480",), "⚫ 480p"),
]


def _first_match(table: list[MediaPattern], name: str) -> MediaPattern | None:
    for entry in table:
        if entry.pattern.search(name):
            return entry
    return None


def extract_quality_info(name: str) -> QualityInfo:
    """Sums the scores of the first matching quality, source and codec patterns."""
    if not name:
        return QualityInfo()
    quality = _first_match(QUALITY_PATTERNS, name)
    source = _first_match(SOURCE_PATTERNS, name)
    codec = _first_match(CODEC_PATTERNS, name)
    return QualityInfo(
        resolution=quality.name if quality else None,
        source=source.name if source else None,
        codec=codec.name if codec else None,
        score=sum(entry.score for entry in (quality, source, codec) if entry),
    )


def get_quality_display(name: str, resolution: str | None = None) -> str:
    """Returns the quality line shown under the provider label."""
    quality = _first_match(QUALITY_PATTERNS, name or "")
    if quality:
        return f"{quality.emoji} {quality.display_name}"

    if resolution and resolution != "Unknown":
        for markers, display in _FALLBACK_RESOLUTIONS:
            if any(marker in resolution for marker in markers):
                return display
        return f"📺 {resolution}"

    return "❓ Unknown"


def detect_language(name: str) -> str | None:
    entry = _first_match(LANGUAGE_PATTERNS, name or "")
    return entry.name if entry else None


def detect_languages(name: str) -> list[str]:
    """All distinct language labels found in ``name``, in table order."""
    found: list[str] = []
    for entry in LANGUAGE_PATTERNS:
        if entry.pattern.search(name or "") and entry.name not in found:
            found.append(entry.name)
    return found


def detect_source(name: str) -> str | None:
    entry = _first_match(SOURCE_PATTERNS, name or "")
    return entry.name if entry else None


def detect_codec(name: str) -> str | None:
    entry = _first_match(CODEC_PATTERNS, name or "")
    return entry.name if entry else None


def detect_audio(name: str) -> list[str]:
    found: list[str] = []
    for entry in AUDIO_PATTERNS:
        if entry.pattern.search(name or "") and entry.name not in found:
            found.append(entry.name)
    return found


def build_technical_details(name: str) -> str:
    """Joins language, source, codec, audio and tag displays with bullets."""
    if not name:
        return ""
    parts: list[str] = []
    for entry in LANGUAGE_PATTERNS:
        if entry.pattern.search(name):
            parts.append(f"{entry.emoji} {entry.display_name}")
    source = _first_match(SOURCE_PATTERNS, name)
    if source:
        parts.append(f"{source.emoji} {source.display_name}")
    codec = _first_match(CODEC_PATTERNS, name)
    if codec:
        parts.append(f"🎥 {codec.display_name}")
    for entry in AUDIO_PATTERNS:
        if entry.pattern.search(name):
            parts.append(f"{entry.emoji} {entry.display_name}")
    for pattern, display in TECHNICAL_TAG_PATTERNS:
        if pattern.search(name):
            parts.append(display)
    return " • ".join(dict.fromkeys(parts))


def is_technical_term(text: str) -> bool:
    if not text:
        return False
    return any(pattern.search(text) for pattern in TECHNICAL_TERM_PATTERNS)


def is_meaningful_variant(text: str) -> bool:
    if not text:
        return False
    return any(pattern.search(text) for pattern in MEANINGFUL_VARIANT_PATTERNS)


def has_obvious_episode_indicators(name: str) -> bool:
    if not name:
        return False
    if any(pattern.search(name) for pattern in SERIES_INDICATOR_PATTERNS):
        return True
    # A number directly followed by release info, e.g. "028 MULTI"
    return bool(re.search(r"\d{2,4}\s*(?:multi|bluray)", name, re.IGNORECASE))


def is_video_file(name: str) -> bool:
    return bool(name and VIDEO_EXTENSION_RE.search(name))


def strip_extension(name: str) -> str:
    return ANY_EXTENSION_RE.sub("", name or "")
