"""Timed-text parsing and windowed SRT formatting.

Supports:
- Tolerant parsing of WEBVTT and SRT documents into SubtitleEntry lists
- Re-deriving a window-relative SRT track for a segment or cut
- Plain-text transcripts for a time window
"""

from __future__ import annotations

import re
from pathlib import Path

from reelcut.errors import SubtitleParseError
from reelcut.models.subtitle import SubtitleEntry

TIME_RANGE_MARKER = "-->"

# Word-level timing tags and class spans emitted by auto-generated captions
_WORD_TIMING_TAG = re.compile(r"<\d{2}:\d{2}:\d{2}\.\d{3}>")
_STYLE_TAG = re.compile(r"</?c(?:\.[\w.-]+)?>")
_MULTI_SPACE = re.compile(r" {2,}")


def parse_timestamp(value: str) -> float:
    """Parse a caption timestamp to seconds.

    Accepts ``HH:MM:SS[.mmm]``, ``MM:SS[.mmm]`` and a comma as fractional
    separator. Anything after the first whitespace (VTT cue settings) is
    ignored. Malformed fields count as zero instead of failing.

    Args:
        value: Timestamp text

    Returns:
        Time in seconds
    """
    value = value.strip()
    if not value:
        return 0.0
    value = value.split()[0].replace(",", ".")

    parts = value.split(":")
    if len(parts) == 3:
        hours, minutes, rest = parts
    elif len(parts) == 2:
        hours, (minutes, rest) = "0", parts
    else:
        hours, minutes, rest = "0", "0", parts[0]

    seconds, _, fraction = rest.partition(".")
    # Milliseconds are padded or truncated to exactly three digits
    millis = (fraction + "000")[:3]

    return (
        _to_int(hours) * 3600
        + _to_int(minutes) * 60
        + _to_int(seconds)
        + _to_int(millis) / 1000
    )


def _to_int(text: str) -> int:
    # Signs, spaces and non-ASCII digits all make a field malformed
    return int(text) if text.isascii() and text.isdigit() else 0


def clean_caption_text(text: str) -> str:
    """Strip inline timing/style tags and normalise whitespace."""
    text = _WORD_TIMING_TAG.sub("", text)
    text = _STYLE_TAG.sub("", text)
    text = _MULTI_SPACE.sub(" ", text)
    return text.strip()


def parse_timed_text(document: str) -> list[SubtitleEntry]:
    """Parse a WEBVTT or SRT document into entries.

    Blank lines, the ``WEBVTT`` header and ``NOTE`` lines are skipped. Each
    time-range line starts a new entry and the following text lines are joined
    with spaces. A line directly followed by a time-range line is a cue
    identifier and is not part of any entry's text.

    Args:
        document: Caption document contents

    Returns:
        Entries in document order, numbered from 1
    """
    lines = [line.strip() for line in document.splitlines()]
    entries: list[SubtitleEntry] = []
    current: dict | None = None

    def flush() -> None:
        if current is not None:
            start, end = current["start"], current["end"]
            entries.append(
                SubtitleEntry(
                    index=len(entries) + 1,
                    start=start,
                    end=max(start, end),
                    text=" ".join(current["text"]),
                )
            )

    for i, line in enumerate(lines):
        if not line or line.startswith("WEBVTT") or line.startswith("NOTE"):
            continue

        if TIME_RANGE_MARKER in line:
            flush()
            start_text, _, end_text = line.partition(TIME_RANGE_MARKER)
            current = {
                "start": parse_timestamp(start_text),
                "end": parse_timestamp(end_text),
                "text": [],
            }
            continue

        # Cue identifier (SRT numbering or a VTT cue id)
        if i + 1 < len(lines) and TIME_RANGE_MARKER in lines[i + 1]:
            continue

        # Header metadata before the first cue is ignored
        if current is not None:
            current["text"].append(line)

    flush()
    return entries


def format_srt_timestamp(seconds: float) -> str:
    """Format seconds to SRT timestamp.

    Args:
        seconds: Time in seconds

    Returns:
        SRT timestamp string (HH:MM:SS,mmm)
    """
    total_millis = max(0, int(round(seconds * 1000)))
    hours, remainder = divmod(total_millis, 3_600_000)
    minutes, remainder = divmod(remainder, 60_000)
    secs, millis = divmod(remainder, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{millis:03d}"


def window_entries(
    entries: list[SubtitleEntry],
    window_start: float,
    window_end: float,
) -> list[SubtitleEntry]:
    """Clamp and shift entries that touch a window.

    An entry is kept when ``start <= window_end`` and ``end >= window_start``.
    Kept entries are clamped into the window, shifted so the window starts at
    zero and renumbered from 1.
    """
    result = []
    for entry in entries:
        if not entry.overlaps(window_start, window_end):
            continue
        start = max(entry.start, window_start) - window_start
        end = min(entry.end, window_end) - window_start
        result.append(
            SubtitleEntry(
                index=len(result) + 1,
                start=start,
                end=max(start, end),
                text=clean_caption_text(entry.text),
            )
        )
    return result


def format_srt(entries: list[SubtitleEntry]) -> str:
    """Render entries as SRT blocks."""
    blocks = []
    for entry in entries:
        start = format_srt_timestamp(entry.start)
        end = format_srt_timestamp(entry.end)
        blocks.append(f"{entry.index}\n{start} --> {end}\n{entry.text}\n\n")
    return "".join(blocks)


def format_window(
    entries: list[SubtitleEntry],
    window_start: float,
    window_end: float,
) -> str:
    """Render the window-relative SRT track for ``[window_start, window_end]``.

    Returns:
        SRT document, or an empty string when no entry touches the window
    """
    return format_srt(window_entries(entries, window_start, window_end))


def transcript_for_window(
    entries: list[SubtitleEntry],
    begin: float,
    end: float,
) -> str:
    """Plain text of the entries lying entirely inside ``[begin, end]``."""
    texts = (clean_caption_text(e.text) for e in entries if e.within(begin, end))
    return " ".join(t for t in texts if t)


def read_timed_text(path: Path | str) -> list[SubtitleEntry]:
    """Parse a caption file from disk.

    Raises:
        SubtitleParseError: If the file cannot be read or decoded
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise SubtitleParseError(f"Cannot read caption file: {e}", context={"path": str(path)}) from e
    return parse_timed_text(content)


def write_timed_text(path: Path | str, document: str) -> Path:
    """Write a caption document to disk, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(document, encoding="utf-8")
    return path
