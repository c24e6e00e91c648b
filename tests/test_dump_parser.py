"""Tests for dump format loading."""

import base64
import pytest
from mfdread.rfid.dump_parser import (
    parse_from_binary, parse_from_hex, parse_from_base64, parse_eml,
    parse_proxmark3_dump, detect_format, load_dump,
)
from mfdread.rfid.errors import DumpFormatError
from mfdread.rfid.mifare import BYTES_PER_BLOCK


def make_binary_dump(size: int = 1024) -> bytes:
    """Create a minimal dump."""
    data = bytearray(size)
    # Set some UID bytes
    data[0:4] = bytes.fromhex("DEADBEEF")
    return bytes(data)


def blocks_of(data: bytes) -> list[bytes]:
    return [data[i:i + BYTES_PER_BLOCK] for i in range(0, len(data), BYTES_PER_BLOCK)]


def make_pm3_text(data: bytes) -> str:
    lines = []
    for i, block in enumerate(blocks_of(data)):
        hex_bytes = " ".join(f"{b:02X}" for b in block)
        lines.append(f"Block {i:02d}: {hex_bytes}")
    return "\n".join(lines)


class TestParseFromBinary:
    def test_returns_bytes(self):
        data = bytearray(make_binary_dump())
        result = parse_from_binary(data)
        assert isinstance(result, bytes)
        assert result == bytes(data)


class TestParseFromHex:
    def test_valid_hex(self):
        data = make_binary_dump()
        assert parse_from_hex(data.hex()) == data

    def test_hex_with_whitespace(self):
        data = make_binary_dump(320)
        hex_str = " ".join(data.hex()[i:i+2] for i in range(0, len(data.hex()), 2))
        assert parse_from_hex(hex_str + "\n") == data

    def test_invalid_hex_raises(self):
        with pytest.raises(DumpFormatError):
            parse_from_hex("zz" * 16)


class TestParseFromBase64:
    def test_valid_base64(self):
        data = make_binary_dump()
        assert parse_from_base64(base64.b64encode(data).decode()) == data

    def test_invalid_base64_raises(self):
        with pytest.raises(DumpFormatError):
            parse_from_base64("not base64!")


class TestParseEml:
    def test_valid_eml(self):
        data = make_binary_dump()
        text = "\n".join(b.hex() for b in blocks_of(data))
        assert parse_eml(text) == data

    def test_unread_bytes_as_zero(self):
        line = "DEADBEEF" + "-" * 24
        assert parse_eml(line) == bytes.fromhex("DEADBEEF") + bytes(12)

    def test_bad_line_raises(self):
        with pytest.raises(DumpFormatError):
            parse_eml("DEADBEEF\n")


class TestProxmark3Dump:
    def test_valid_dump(self):
        data = make_binary_dump()
        assert parse_proxmark3_dump(make_pm3_text(data)) == data

    def test_dump_with_comments(self):
        data = make_binary_dump(320)
        text = "# Proxmark3 dump\n\n" + make_pm3_text(data)
        assert parse_proxmark3_dump(text) == data

    def test_short_block_line_raises(self):
        data = make_binary_dump(320)
        lines = make_pm3_text(data).splitlines()
        lines[5] = lines[5][:-3]  # Drop the last byte of block 5
        with pytest.raises(DumpFormatError):
            parse_proxmark3_dump("\n".join(lines))

    def test_non_block_lines_skipped(self):
        data = make_binary_dump(320)
        text = "[usb] pm3 --> hf mf dump\n" + make_pm3_text(data)
        assert parse_proxmark3_dump(text) == data

    def test_empty_dump_raises(self):
        with pytest.raises(DumpFormatError):
            parse_proxmark3_dump("# nothing here\n")


class TestDetectFormat:
    def test_binary_by_size(self):
        # An ASCII dump of a card size that is not hex is binary
        assert detect_format(b"Z" * 1024) == "bin"

    def test_zeroed_binary(self):
        assert detect_format(bytes(2048)) == "bin"

    @pytest.mark.parametrize("size", [1024, 2048])
    def test_hex_of_card_size_length(self, size):
        # A 1K hex dump is 2048 characters, the size of a binary 2K card
        text = make_binary_dump(size).hex().encode()
        assert len(text) in (2048, 4096)
        assert detect_format(text) == "hex"
        assert load_dump(text) == make_binary_dump(size)

    def test_pm3(self):
        assert detect_format(make_pm3_text(make_binary_dump()).encode()) == "pm3"

    def test_eml(self):
        text = "\n".join(b.hex() for b in blocks_of(make_binary_dump()))
        assert detect_format(text.encode()) == "eml"

    def test_hex(self):
        assert detect_format(make_binary_dump(320).hex().encode()) == "hex"

    def test_base64(self):
        assert detect_format(base64.b64encode(make_binary_dump()) + b"\n") == "base64"

    def test_odd_binary(self):
        assert detect_format(b"\xff\x00" * 10) == "bin"


class TestLoadDump:
    def test_auto(self):
        data = make_binary_dump()
        assert load_dump(make_pm3_text(data).encode()) == data
        assert load_dump(data) == data

    def test_explicit_format(self):
        data = make_binary_dump(320)
        assert load_dump(data.hex().encode(), "hex") == data

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            load_dump(b"", "xml")

    def test_binary_as_text_format(self):
        with pytest.raises(DumpFormatError):
            load_dump(b"\xff" * 16, "eml")
