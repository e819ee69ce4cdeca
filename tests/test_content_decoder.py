from __future__ import annotations

import base64

import pytest

from repo_browser.services.content_decoder import (
    decode_content,
    has_binary_extension,
    sniff_binary,
)


def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode()


def test_printable_text_round_trips():
    text = "def main():\n    print('hello')\n\n# done\n"
    decoded = decode_content(_b64(text.encode()), path="main.py")
    assert decoded.is_binary is False
    assert decoded.content == text


def test_utf8_text_round_trips():
    text = "café ☃\n"
    assert decode_content(_b64(text.encode("utf-8"))).content == text


def test_line_wrapped_payload_is_decoded():
    text = "line of text\n" * 40
    encoded = _b64(text.encode())
    wrapped = "\n".join(encoded[i : i + 60] for i in range(0, len(encoded), 60)) + "\n"
    assert decode_content(wrapped).content == text


def test_null_byte_is_binary():
    decoded = decode_content(_b64(b"abc\x00def"), path="notes.txt")
    assert decoded.is_binary is True
    assert decoded.content is None


@pytest.mark.parametrize("path", ["logo.PNG", "dist/app.zip", "fonts/a.woff2", "lib.so", "data.sqlite"])
def test_known_extensions_short_circuit(path):
    assert has_binary_extension(path)
    decoded = decode_content(_b64(b"plain text"), path=path)
    assert decoded.is_binary is True
    assert decoded.content is None


def test_unknown_extension_is_sniffed():
    assert not has_binary_extension("src/app.tsx")
    assert decode_content(_b64(b"export {}\n"), path="src/app.tsx").content == "export {}\n"


def test_control_characters_over_ratio_are_binary():
    # 2 of 10 bytes are control characters.
    raw = b"\x01\x02abcdefgh"
    assert sniff_binary(_b64(raw)) is True
    assert decode_content(_b64(raw)).is_binary


def test_control_characters_under_ratio_are_text():
    raw = b"\x1b[0m" + b"a" * 40
    assert sniff_binary(_b64(raw)) is False
    assert decode_content(_b64(raw)).content == raw.decode()


def test_common_whitespace_is_not_control():
    raw = b"\t\n\r\x0b\x0c" * 10
    assert sniff_binary(_b64(raw)) is False


def test_ratio_is_configurable():
    raw = b"\x01" + b"a" * 9
    assert sniff_binary(_b64(raw), control_ratio=0.05) is True
    assert sniff_binary(_b64(raw), control_ratio=0.2) is False


def test_only_the_sample_is_sniffed():
    raw = b"a" * 900 + b"\x00"
    encoded = _b64(raw)
    assert sniff_binary(encoded, sample_chars=1000) is False
    assert sniff_binary(encoded, sample_chars=1300) is True


def test_undecodable_sample_is_binary():
    assert sniff_binary("!!!not base64!!!") is True
    assert decode_content("!!!not base64!!!").is_binary


def test_invalid_utf8_falls_back_to_binary():
    raw = b"hello \xff\xfe world"
    assert sniff_binary(_b64(raw)) is False
    decoded = decode_content(_b64(raw))
    assert decoded.is_binary is True
    assert decoded.content is None


def test_empty_payload_is_empty_text():
    decoded = decode_content("")
    assert decoded.is_binary is False
    assert decoded.content == ""


def test_utf8_encoding_is_passed_through():
    assert decode_content("already text", encoding="utf-8").content == "already text"
    assert decode_content("nul\x00here", encoding="utf-8").is_binary


def test_missing_content_encoding_is_binary():
    assert decode_content("", encoding="none").is_binary
