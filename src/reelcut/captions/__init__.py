"""Caption handling for reelcut.

Parses downloaded timed text and re-derives window-relative SRT tracks for
segments and cuts.
"""

from reelcut.captions.timed_text import (
    clean_caption_text,
    format_srt,
    format_srt_timestamp,
    format_window,
    parse_timed_text,
    parse_timestamp,
    read_timed_text,
    transcript_for_window,
    window_entries,
    write_timed_text,
)

__all__ = [
    "clean_caption_text",
    "format_srt",
    "format_srt_timestamp",
    "format_window",
    "parse_timed_text",
    "parse_timestamp",
    "read_timed_text",
    "transcript_for_window",
    "window_entries",
    "write_timed_text",
]
