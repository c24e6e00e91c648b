"""Tests for MIFARE Classic geometry helpers."""

import pytest
from mfdread.rfid.errors import InvalidDumpLength
from mfdread.rfid.mifare import (
    resolve_geometry, blocks_in_sector, sector_offset, sector_size,
    first_block_number, trailer_offset, is_sector_trailer, is_extended_sector,
    parse_sector_trailer, ALLOWED_SIZES, BYTES_PER_BLOCK,
)


class TestResolveGeometry:
    @pytest.mark.parametrize("size,sectors", [(320, 5), (1024, 16), (2048, 32), (4096, 40)])
    def test_known_sizes(self, size, sectors):
        geometry = resolve_geometry(size)
        assert geometry.size == size
        assert geometry.sector_count == sectors

    def test_4k_regime_split(self):
        geometry = resolve_geometry(4096)
        assert geometry.standard_sectors == 32
        assert geometry.extended_sectors == 8
        assert geometry.block_count == 256

    def test_1k_has_no_extended_sectors(self):
        geometry = resolve_geometry(1024)
        assert geometry.standard_sectors == 16
        assert geometry.extended_sectors == 0

    @pytest.mark.parametrize("size", [0, 16, 319, 512, 1023, 1025, 4097, 8192])
    def test_unknown_size_raises(self, size):
        with pytest.raises(InvalidDumpLength) as exc:
            resolve_geometry(size)
        assert exc.value.length == size
        assert exc.value.allowed == ALLOWED_SIZES

    def test_error_message_names_sizes(self):
        with pytest.raises(InvalidDumpLength) as exc:
            resolve_geometry(1000)
        message = str(exc.value)
        assert "1000" in message
        assert "320, 1024, 2048 or 4096" in message

    def test_invalid_length_is_value_error(self):
        with pytest.raises(ValueError):
            resolve_geometry(7)


class TestForce1K:
    def test_4k_forced_to_1k(self):
        geometry = resolve_geometry(4096, force_1k=True)
        assert geometry.size == 1024
        assert geometry.sector_count == 16
        assert geometry.extended_sectors == 0

    def test_overread_forced_to_1k(self):
        # Readers that over-read give odd sizes
        assert resolve_geometry(1100, force_1k=True).sector_count == 16

    def test_short_input_still_rejected(self):
        with pytest.raises(InvalidDumpLength):
            resolve_geometry(320, force_1k=True)


class TestSectorLayout:
    def test_standard_sectors(self):
        assert blocks_in_sector(0) == 4
        assert blocks_in_sector(31) == 4
        assert sector_size(5) == 64
        assert sector_offset(0) == 0
        assert sector_offset(1) == 64
        assert sector_offset(31) == 1984

    def test_extended_sectors(self):
        assert is_extended_sector(32)
        assert not is_extended_sector(31)
        assert blocks_in_sector(32) == 16
        assert sector_size(39) == 256
        for k in range(8):
            assert sector_offset(32 + k) == 2048 + k * 256

    def test_extended_area_ends_at_4k(self):
        assert sector_offset(39) + sector_size(39) == 4096

    def test_first_block_number(self):
        assert first_block_number(0) == 0
        assert first_block_number(15) == 60
        assert first_block_number(32) == 128
        assert first_block_number(33) == 144

    def test_trailer_offset(self):
        assert trailer_offset(0) == 48
        assert trailer_offset(1) == 112
        assert trailer_offset(32) == 2048 + 240

    def test_is_sector_trailer(self):
        assert is_sector_trailer(0, 3) is True
        assert is_sector_trailer(0, 2) is False
        assert is_sector_trailer(32, 15) is True
        assert is_sector_trailer(32, 3) is False

    def test_sector_slice(self):
        geometry = resolve_geometry(4096)
        assert geometry.sector_slice(1) == slice(64, 128)
        assert geometry.sector_slice(33) == slice(2304, 2560)

    def test_sector_out_of_range(self):
        geometry = resolve_geometry(320)
        with pytest.raises(ValueError):
            geometry.sector_slice(5)

    def test_to_dict(self):
        d = resolve_geometry(4096).to_dict()
        assert d["sector_count"] == 40
        assert len(d["sectors"]) == 40
        assert d["sectors"][32] == {"sector": 32, "offset": 2048, "blocks": 16, "block_size": 16}


class TestParseSectorTrailer:
    def test_valid_trailer(self):
        # Key A (6 bytes) + access bits (4 bytes) + Key B (6 bytes)
        data = bytes(range(16))
        result = parse_sector_trailer(data)
        assert result["key_a"] == bytes([0, 1, 2, 3, 4, 5])
        assert result["access_bits"] == bytes([6, 7, 8, 9])
        assert result["key_b"] == bytes([10, 11, 12, 13, 14, 15])

    def test_invalid_length_raises(self):
        with pytest.raises(ValueError):
            parse_sector_trailer(bytes(BYTES_PER_BLOCK - 6))
