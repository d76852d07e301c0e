"""Parsing utilities for quality labels, sizes and file names."""

from __future__ import annotations

import re

from leecharr.domain.entities import ResolutionTier

_SIZE_RE = re.compile(r"([0-9.,]+)\s*(GB|MB|KB)", re.IGNORECASE)
_BRACKET_SIZE_RE = re.compile(r"\[\s*([0-9.,]+\s*[KMGT]B)", re.IGNORECASE)
_YEAR_RE = re.compile(r"\b(19[89]\d|20\d{2})\b")
_EMOJI_RE = re.compile("[\u00a9\u00ae\u2000-\u3300\U0001F000-\U0001FFFF]")
_DV_RE = re.compile(r"\bdv\b")
_EXTENSION_RE = re.compile(r"\.[^/.]+$")

_QUALITY_FALLBACKS = (
    re.compile(r"(\d{3,4}p.*?(?:x264|x265|hevc).*?)[\[(]", re.IGNORECASE),
    re.compile(r"(\d{3,4}p.*?)[\[(]", re.IGNORECASE),
    re.compile(r"((?:720p|1080p|2160p|4k).*?)$", re.IGNORECASE),
)
_X265_RE = re.compile(r"x265", re.IGNORECASE)

UNKNOWN_QUALITY = "Unknown Quality"


def parse_size_mb(size: str | None) -> float:
    """Parse a human size label to megabytes (0.0 when unparseable).

    Examples:
        >>> parse_size_mb("2.5 GB")
        2560.0
        >>> parse_size_mb("1,024 MB")
        1024.0
    """
    if not size:
        return 0.0
    match = _SIZE_RE.search(size)
    if not match:
        return 0.0
    value = float(match.group(1).replace(",", ""))
    unit = match.group(2).upper()
    if unit == "GB":
        return value * 1024
    if unit == "KB":
        return value / 1024
    return value


def quality_tier(quality: str | None) -> ResolutionTier:
    """Resolution tier of a free-text quality label."""
    if not quality:
        return ResolutionTier.UNKNOWN
    q = quality.lower()
    if "2160p" in q or "4k" in q:
        return ResolutionTier.UHD_2160P
    if "1080p" in q:
        return ResolutionTier.HD_1080P
    if "720p" in q:
        return ResolutionTier.HD_720P
    if "480p" in q:
        return ResolutionTier.SD_480P
    return ResolutionTier.UNKNOWN


def is_below_tier(quality: str | None, minimum: int) -> bool:
    """True if *quality* names a resolution under *minimum*.

    Labels without a recognizable resolution are never filtered.
    """
    tier = quality_tier(quality)
    return tier is not ResolutionTier.UNKNOWN and tier < minimum


def mentions_season(text: str | None, season: int) -> bool:
    """True if *text* names exactly *season* ("Season 1", "S01").

    "Season 10" and "S11" do not count as season 1.
    """
    pattern = rf"\b(?:season\s*0*{season}|s0*{season})(?!\d)"
    return re.search(pattern, text or "", re.IGNORECASE) is not None


def extract_years(text: str) -> list[int]:
    return [int(y) for y in _YEAR_RE.findall(text)]


def extract_size_label(text: str) -> str | None:
    """Size label from a "[2.3GB]"-style bracket, if present."""
    match = _BRACKET_SIZE_RE.search(text or "")
    return match.group(1).strip() if match else None


def clean_quality(full_text: str | None) -> str:
    """Condense a verbose release header into a short quality label.

    Resolution and notable flags are joined with " | " (e.g.
    "4K | HDR | DV"). Without any known token the header is shortened.
    """
    if not full_text or full_text == UNKNOWN_QUALITY:
        return UNKNOWN_QUALITY

    cleaned = _EMOJI_RE.sub("", full_text).strip()
    text = cleaned.lower()
    parts: list[str] = []

    if "2160p" in text or "4k" in text:
        parts.append("4K")
    elif "1080p" in text:
        parts.append("1080p")
    elif "720p" in text:
        parts.append("720p")
    elif "480p" in text:
        parts.append("480p")

    if "hdr" in text:
        parts.append("HDR")
    if "dolby vision" in text or "dovi" in text or _DV_RE.search(text):
        parts.append("DV")
    if "imax" in text:
        parts.append("IMAX")
    if "bluray" in text or "blu-ray" in text:
        parts.append("BluRay")

    if parts:
        return " | ".join(parts)

    for pattern in _QUALITY_FALLBACKS:
        match = pattern.search(cleaned)
        if match and len(match.group(1).strip()) < 100:
            return _X265_RE.sub("HEVC", match.group(1).strip())

    if len(cleaned) > 80:
        return _X265_RE.sub("HEVC", cleaned[:77]) + "..."
    return _X265_RE.sub("HEVC", cleaned)


def extract_codecs(raw_quality: str) -> list[str]:
    """Video/audio/dynamic-range tags found in a release header."""
    text = raw_quality.lower()
    codecs: list[str] = []

    if "hevc" in text or "x265" in text:
        codecs.append("H.265")
    elif "x264" in text:
        codecs.append("H.264")

    if "10bit" in text or "10-bit" in text:
        codecs.append("10-bit")

    if "atmos" in text:
        codecs.append("Atmos")
    elif "dts-hd" in text:
        codecs.append("DTS-HD")
    elif "dts" in text:
        codecs.append("DTS")
    elif "ddp5.1" in text or "dd+ 5.1" in text or "eac3" in text:
        codecs.append("EAC3")
    elif "ac3" in text:
        codecs.append("AC3")

    if "dovi" in text or "dolby vision" in text or _DV_RE.search(text):
        codecs.append("DV")
    elif "hdr" in text:
        codecs.append("HDR")

    return codecs


def clean_file_name(file_name: str | None) -> str:
    """Display form of a file name: no extension, dots/underscores as spaces."""
    if not file_name:
        return ""
    return re.sub(r"[._]", " ", _EXTENSION_RE.sub("", file_name)).strip()


def encode_last_segment_spaces(url: str) -> str:
    """Percent-encode spaces in the final path segment only."""
    head, sep, last = url.rpartition("/")
    return f"{head}{sep}{last.replace(' ', '%20')}"
