"""Small fixed-prefix parsers for ASM file names and SAVE_TIMESTAMPS markers.

Both patterns are "literal token + optional decimal suffix", so they are
matched by hand instead of through ``re``:

    aie_runtime_control12.asm    -> 12
    "    save_timestamps 7"      -> (True, 7)
    "SAVE_TIMESTAMPS"            -> (True, None)
    "nop"                        -> (False, None)
"""

from __future__ import annotations


__all__ = [
    "ASM_PREFIX",
    "ASM_SUFFIX",
    "MARKER_TOKEN",
    "parse_artifact_name",
    "match_marker",
]


ASM_PREFIX = "aie_runtime_control"
ASM_SUFFIX = ".asm"
MARKER_TOKEN = "SAVE_TIMESTAMPS"

_DIGITS = "0123456789"
# Length-preserving upper-casing, so a found position indexes the original line.
_ASCII_UPPER = str.maketrans("abcdefghijklmnopqrstuvwxyz", "ABCDEFGHIJKLMNOPQRSTUVWXYZ")
# Longer runs are not a usable index and exceed int() string conversion limits.
_MAX_INDEX_DIGITS = 18


def _read_digits(text: str, pos: int) -> tuple[str, int]:
    """Consume a run of ASCII digits starting at ``pos``."""
    end = pos
    while end < len(text) and text[end] in _DIGITS:
        end += 1
    return text[pos:end], end


def parse_artifact_name(filename: str) -> int | None:
    """Return the group id encoded in an ASM file name, or None if it doesn't match.

    The whole name must be ``aie_runtime_control<digits>.asm``; matching is
    case-sensitive.
    """
    if not filename.startswith(ASM_PREFIX):
        return None
    digits, end = _read_digits(filename, len(ASM_PREFIX))
    if not digits or filename[end:] != ASM_SUFFIX:
        return None
    return int(digits)


def match_marker(line: str) -> tuple[bool, int | None]:
    """Look for a SAVE_TIMESTAMPS marker anywhere in ``line``.

    The token is matched case-insensitively. Whitespace after the token is
    skipped and a following run of digits becomes the marker index.

    Returns:
        (matched, index) where index is None when no digits follow the token,
        or when the digit run is too long to be an index.
    """
    pos = line.translate(_ASCII_UPPER).find(MARKER_TOKEN)
    if pos < 0:
        return False, None
    pos += len(MARKER_TOKEN)
    while pos < len(line) and line[pos].isspace():
        pos += 1
    digits, _ = _read_digits(line, pos)
    if not digits or len(digits) > _MAX_INDEX_DIGITS:
        return True, None
    return True, int(digits)
