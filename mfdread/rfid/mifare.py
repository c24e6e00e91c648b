"""
MIFARE Classic constants and dump geometry.

A MIFARE Classic dump is a sequence of sectors:
- Mini (320 bytes): 5 sectors
- 1K (1024 bytes): 16 sectors
- 2K (2048 bytes): 32 sectors
- 4K (4096 bytes): 32 sectors of 4 blocks + 8 sectors of 16 blocks
- 16 bytes per block everywhere
- Block 0 of sector 0: manufacturer data (read-only, contains UID)
- Last block of every sector: sector trailer (Key A + access bits + Key B)
"""

import logging
from dataclasses import dataclass

from .errors import InvalidDumpLength

logger = logging.getLogger(__name__)

# Block geometry
BYTES_PER_BLOCK = 16
BLOCKS_PER_SECTOR = 4
BLOCKS_PER_EXTENDED_SECTOR = 16
SECTOR_SIZE = BLOCKS_PER_SECTOR * BYTES_PER_BLOCK  # 64
EXTENDED_SECTOR_SIZE = BLOCKS_PER_EXTENDED_SECTOR * BYTES_PER_BLOCK  # 256

# Sectors from this index on use the 16-block layout (4K cards only)
FIRST_EXTENDED_SECTOR = 32
EXTENDED_AREA_OFFSET = FIRST_EXTENDED_SECTOR * SECTOR_SIZE  # 2048

# Dump size -> sector count
SECTORS_BY_SIZE = {
    320: 5,
    1024: 16,
    2048: 32,
    4096: 40,
}
ALLOWED_SIZES = tuple(SECTORS_BY_SIZE)
SIZE_1K = 1024

# Sector trailer layout within a 16-byte block
KEY_A_OFFSET = 0
KEY_A_LENGTH = 6
ACCESS_BITS_OFFSET = 6
ACCESS_BITS_LENGTH = 4
KEY_B_OFFSET = 10
KEY_B_LENGTH = 6


def is_extended_sector(sector: int) -> bool:
    """Check if a sector uses the 16-block layout."""
    return sector >= FIRST_EXTENDED_SECTOR


def blocks_in_sector(sector: int) -> int:
    """Return the number of blocks in a given sector."""
    if is_extended_sector(sector):
        return BLOCKS_PER_EXTENDED_SECTOR
    return BLOCKS_PER_SECTOR


def sector_size(sector: int) -> int:
    """Return the size of a sector in bytes."""
    return blocks_in_sector(sector) * BYTES_PER_BLOCK


def sector_offset(sector: int) -> int:
    """Return the byte offset of a sector in a full dump."""
    if is_extended_sector(sector):
        return EXTENDED_AREA_OFFSET + (sector - FIRST_EXTENDED_SECTOR) * EXTENDED_SECTOR_SIZE
    return sector * SECTOR_SIZE


def first_block_number(sector: int) -> int:
    """Return the absolute number of the first block of a sector."""
    return sector_offset(sector) // BYTES_PER_BLOCK


def trailer_offset(sector: int) -> int:
    """Return the byte offset of the sector trailer in a full dump."""
    return sector_offset(sector) + sector_size(sector) - BYTES_PER_BLOCK


def is_sector_trailer(sector: int, block: int) -> bool:
    """Check if a block (index within its sector) is the sector trailer."""
    return block == blocks_in_sector(sector) - 1


def is_manufacturer_block(sector: int, block: int) -> bool:
    return sector == 0 and block == 0


@dataclass(frozen=True)
class Geometry:
    """Sector layout implied by a dump size."""

    size: int
    sector_count: int

    @property
    def standard_sectors(self) -> int:
        return min(self.sector_count, FIRST_EXTENDED_SECTOR)

    @property
    def extended_sectors(self) -> int:
        return self.sector_count - self.standard_sectors

    @property
    def block_count(self) -> int:
        return self.size // BYTES_PER_BLOCK

    def sectors(self) -> range:
        return range(self.sector_count)

    def check_sector(self, sector: int) -> None:
        if not 0 <= sector < self.sector_count:
            raise ValueError(
                f"Sector {sector} out of range for a {self.size}-byte dump "
                f"({self.sector_count} sectors)"
            )

    def sector_slice(self, sector: int) -> slice:
        """Return the byte range covered by a sector."""
        self.check_sector(sector)
        start = sector_offset(sector)
        return slice(start, start + sector_size(sector))

    def to_dict(self) -> dict:
        return {
            "size": self.size,
            "sector_count": self.sector_count,
            "standard_sectors": self.standard_sectors,
            "extended_sectors": self.extended_sectors,
            "block_count": self.block_count,
            "sectors": [
                {
                    "sector": s,
                    "offset": sector_offset(s),
                    "blocks": blocks_in_sector(s),
                    "block_size": BYTES_PER_BLOCK,
                }
                for s in self.sectors()
            ],
        }


def resolve_geometry(length: int, force_1k: bool = False) -> Geometry:
    """
    Map a dump length to its sector geometry.

    Args:
        length: Number of bytes available in the dump.
        force_1k: Treat any dump of at least 1024 bytes as a 1K card.

    Raises:
        InvalidDumpLength: if the length is not a known card size.
    """
    if force_1k:
        if length < SIZE_1K:
            raise InvalidDumpLength(length, (SIZE_1K,))
        if length != SIZE_1K:
            logger.info("Forcing 1K layout, ignoring %d trailing bytes", length - SIZE_1K)
        length = SIZE_1K

    try:
        sectors = SECTORS_BY_SIZE[length]
    except KeyError:
        raise InvalidDumpLength(length, ALLOWED_SIZES) from None
    return Geometry(size=length, sector_count=sectors)


def parse_sector_trailer(data: bytes) -> dict:
    """
    Parse a 16-byte sector trailer block.

    Returns dict with key_a, access_bits, and key_b as bytes.
    """
    if len(data) != BYTES_PER_BLOCK:
        raise ValueError(f"Sector trailer must be {BYTES_PER_BLOCK} bytes, got {len(data)}")
    return {
        "key_a": bytes(data[KEY_A_OFFSET:KEY_A_OFFSET + KEY_A_LENGTH]),
        "access_bits": bytes(data[ACCESS_BITS_OFFSET:ACCESS_BITS_OFFSET + ACCESS_BITS_LENGTH]),
        "key_b": bytes(data[KEY_B_OFFSET:KEY_B_OFFSET + KEY_B_LENGTH]),
    }
