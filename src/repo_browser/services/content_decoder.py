"""Content decoding — turn GitHub's base64 payloads into text or flag them binary.

Decoding never raises: anything that cannot be shown as UTF-8 text is
reported as binary with ``content=None``.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass

DEFAULT_SAMPLE_CHARS = 1000
DEFAULT_CONTROL_RATIO = 0.1

BINARY_EXTENSIONS: frozenset[str] = frozenset(
    {
        # images
        ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".ico", ".webp",
        ".tif", ".tiff", ".psd", ".heic", ".avif",
        # archives
        ".zip", ".tar", ".gz", ".tgz", ".bz2", ".xz", ".rar", ".7z",
        # fonts
        ".woff", ".woff2", ".ttf", ".eot", ".otf",
        # executables / object code
        ".exe", ".dll", ".so", ".dylib", ".o", ".a", ".class", ".jar",
        ".pyc", ".pyo", ".wasm",
        # audio / video
        ".mp3", ".mp4", ".avi", ".mov", ".wav", ".ogg", ".flac", ".webm", ".mkv",
        # documents
        ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
        # generic binary / databases
        ".bin", ".dat", ".db", ".sqlite", ".sqlite3",
    }
)


@dataclass(frozen=True, slots=True)
class DecodedContent:
    """Outcome of decoding one payload."""

    content: str | None
    is_binary: bool


_BINARY = DecodedContent(content=None, is_binary=True)


def has_binary_extension(path: str) -> bool:
    lower = path.lower()
    return any(lower.endswith(ext) for ext in BINARY_EXTENSIONS)


def _strip_whitespace(payload: str) -> str:
    # GitHub wraps base64 at 60-76 columns.
    return "".join(payload.split())


def _is_control(byte: int) -> bool:
    return byte < 0x09 or 0x0E <= byte <= 0x1F


def sniff_binary(
    encoded: str,
    sample_chars: int = DEFAULT_SAMPLE_CHARS,
    control_ratio: float = DEFAULT_CONTROL_RATIO,
) -> bool:
    """Inspect the start of a whitespace-free base64 payload.

    Binary when the sample holds a NUL byte, when more than *control_ratio*
    of its bytes are non-whitespace control characters, or when it does not
    decode at all.
    """
    # Keep the sample on a 4-character boundary so it decodes on its own.
    limit = max(sample_chars - sample_chars % 4, 4)
    try:
        sample = base64.b64decode(encoded[:limit], validate=True)
    except ValueError:
        return True

    if not sample:
        return False
    if 0x00 in sample:
        return True

    controls = sum(1 for byte in sample if _is_control(byte))
    return controls / len(sample) > control_ratio


def decode_content(
    payload: str,
    *,
    path: str = "",
    encoding: str = "base64",
    sample_chars: int = DEFAULT_SAMPLE_CHARS,
    control_ratio: float = DEFAULT_CONTROL_RATIO,
) -> DecodedContent:
    """Classify *payload* and decode it to text when it is not binary."""
    if path and has_binary_extension(path):
        return _BINARY

    if encoding == "utf-8":
        if "\x00" in payload:
            return _BINARY
        return DecodedContent(content=payload, is_binary=False)
    if encoding != "base64":
        # e.g. "none" for files over 1 MB, where GitHub omits the content.
        return _BINARY

    encoded = _strip_whitespace(payload)
    if sniff_binary(encoded, sample_chars, control_ratio):
        return _BINARY

    try:
        text = base64.b64decode(encoded, validate=True).decode("utf-8")
    except ValueError:
        # binascii.Error and UnicodeDecodeError are both ValueErrors.
        return _BINARY
    return DecodedContent(content=text, is_binary=False)
