# debrid_search/parsing/release_groups.py

from __future__ import annotations

import re

from .patterns import ALL_EXTENSIONS, is_technical_term

# Ordered: when several known groups appear in one name, the first listed wins.
KNOWN_RELEASE_GROUPS = (
    "T3KASHi", "Tsundere-Raws", "Punisher694", "SR-71", "KAF", "MSubs-ToonsHub",
    "Amen", "Monkey D.Lulu", "AMB3R", "SHiNiGAMi", "sam", "Breeze", "SubsPlease",
    "Trix", "FW", "Erai-raws", "NoTag", "AnimeRG", "EMBER", "HorribleSubs",
    "Golumpa", "Judas", "iNSPiRE", "DiabloTripleA", "LTFR", "SceneGuardians",
    "SMILODON", "RARBG", "YTS", "YIFY", "PublicHD", "FGT", "CtrlHD", "DON",
    "SPARKS", "NTb", "NTG", "AMRAP", "FLUX", "ROVERS", "SURCODE", "TEPES",
    "BluDragon", "DTA", "SAMPA", "Garshasp", "matheousse", "Chris44", "ESPER",
    "Serendipity", "UwU", "SHANA", "Ryuu", "RYO", "DragonMax", "QTZ",
    "Tenrai-Sensei", "ToonsHub", "Eaulive", "BOTHD", "Slay3R",
)
_KNOWN_SET = frozenset(KNOWN_RELEASE_GROUPS)

_TRAILING_GROUP_PATTERNS = [
    re.compile(r"\s-\s*([A-Za-z0-9][A-Za-z0-9\-.]{1,25})$"),
    re.compile(r"\.([A-Za-z0-9][A-Za-z0-9\-.]{1,25})\.mkv$", re.IGNORECASE),
    re.compile(r"\.([A-Za-z0-9][A-Za-z0-9\-.]{1,25})\.mp4$", re.IGNORECASE),
    re.compile(r"\.([A-Za-z0-9][A-Za-z0-9\-.]{1,25})\.avi$", re.IGNORECASE),
]

_NOT_A_GROUP = [
    re.compile(r"^\d{4}$"),
    re.compile(r"^[A-F0-9]{8,}$", re.IGNORECASE),
    re.compile(r"^S\d{1,2}E\d{1,3}$", re.IGNORECASE),
    re.compile(r"^S\d{1,2}E\d{1,3}\.", re.IGNORECASE),
    re.compile(r"^\d{1,3}\.mkv$", re.IGNORECASE),
]


def is_known_release_group(group: str) -> bool:
    return bool(group) and group.strip() in _KNOWN_SET


def _looks_technical(group: str) -> bool:
    if is_technical_term(group):
        return True
    lowered = group.lower()
    return any(lowered.endswith(f".{ext}") for ext in ALL_EXTENSIONS)


def is_valid_release_group(group: str) -> bool:
    if not group:
        return False
    trimmed = group.strip()
    if not 2 <= len(trimmed) <= 30:
        return False
    if not re.search(r"[A-Za-z]", trimmed):
        return False
    if _looks_technical(trimmed):
        return False
    if any(pattern.search(trimmed) for pattern in _NOT_A_GROUP):
        return False
    if trimmed in _KNOWN_SET:
        return True

    alpha = len(re.findall(r"[A-Za-z]", trimmed))
    digits = len(re.findall(r"[0-9]", trimmed))
    special = len(re.findall(r"[^A-Za-z0-9]", trimmed))
    if digits > alpha and digits > 3:
        return False
    return special <= 3


def extract_release_group(name: str) -> str | None:
    """Best release-group guess for ``name``, preferring known groups."""
    if not name:
        return None

    detected: list[str] = []
    for bracket in re.findall(r"\[([^\]]+)\]", name):
        group = bracket.strip()
        if is_valid_release_group(group):
            detected.append(group)

    paren = re.search(r"\(([^)]+)\)$", name)
    if paren and is_valid_release_group(paren.group(1)):
        detected.append(paren.group(1).strip())

    for pattern in _TRAILING_GROUP_PATTERNS:
        match = pattern.search(name)
        if match and is_valid_release_group(match.group(1)):
            detected.append(match.group(1).strip())

    for known in KNOWN_RELEASE_GROUPS:
        if known in name and known not in detected:
            detected.append(known)

    msubs = re.search(r"MSubs-([A-Za-z0-9]+)", name)
    if msubs and is_valid_release_group(msubs.group(0)):
        detected.append(msubs.group(0))

    crunchyroll = re.search(r"([A-Za-z0-9\-]+)\s*\(CR\)", name)
    if crunchyroll and is_valid_release_group(crunchyroll.group(1)):
        detected.append(f"{crunchyroll.group(1)} (CR)")

    if not detected:
        return None
    if len(detected) == 1:
        return detected[0]
    known_matches = [group for group in detected if group in _KNOWN_SET]
    if known_matches:
        return known_matches[0]
    return sorted(detected, key=len, reverse=True)[0]
