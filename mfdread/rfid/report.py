"""
Report model for a MIFARE Classic dump.

Walks every sector and block of a dump, decodes the access condition of each
block from its sector trailer and attaches the matching permission text.
The resulting rows are what the text renderer and the API serialize.
"""

import logging
from dataclasses import dataclass, field
from functools import reduce
from typing import Iterator, Optional

from mfdread.config import ReportOptions

from .access_bits import AccessCondition, cluster_index, decode_access_condition
from .errors import ChecksumMismatch
from .mifare import (
    ACCESS_BITS_LENGTH, ACCESS_BITS_OFFSET, BYTES_PER_BLOCK, KEY_A_LENGTH,
    KEY_A_OFFSET, KEY_B_LENGTH, KEY_B_OFFSET, Geometry, blocks_in_sector,
    first_block_number, is_extended_sector, parse_sector_trailer, resolve_geometry,
    sector_offset, trailer_offset,
)
from .permissions import BlockRole, block_role, resolve_permission

logger = logging.getLogger(__name__)

# Sector number is printed next to this block of every sector
LABEL_BLOCK = 1


@dataclass(frozen=True)
class ByteRange:
    """A tagged sub-range of a block's bytes, used for highlighting."""

    start: int
    end: int
    tag: str  # "key_a", "access_bits" or "key_b"

    def to_dict(self) -> dict:
        return {"start": self.start, "end": self.end, "tag": self.tag}


TRAILER_RANGES = (
    ByteRange(KEY_A_OFFSET, KEY_A_OFFSET + KEY_A_LENGTH, "key_a"),
    ByteRange(ACCESS_BITS_OFFSET, ACCESS_BITS_OFFSET + ACCESS_BITS_LENGTH, "access_bits"),
    ByteRange(KEY_B_OFFSET, KEY_B_OFFSET + KEY_B_LENGTH, "key_b"),
)


@dataclass(frozen=True)
class PermissionRow:
    """One block of the report, ready for rendering."""

    sector: int
    block: int                  # Index within the sector
    block_number: int           # Absolute block number in the dump
    role: BlockRole
    data: bytes
    condition: AccessCondition
    permissions: str = ""
    show_sector: bool = False
    ranges: tuple[ByteRange, ...] = ()

    @property
    def is_valid(self) -> bool:
        return self.condition.is_valid

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {
            "sector": self.sector,
            "block": self.block,
            "block_number": self.block_number,
            "role": self.role.value,
            "data": self.data.hex().upper(),
            "access_condition": self.condition.bits,
            "valid": self.is_valid,
            "permissions": self.permissions,
            "show_sector": self.show_sector,
            "ranges": [r.to_dict() for r in self.ranges],
        }


@dataclass(frozen=True)
class CardInfo:
    """
    Identification bytes from block 0 of a 4-byte UID card.

     11223344440804006263646566676869
     ^^^^^^^^                         UID
             ^^                       BCC
               ^^                     SAK
                 ^^^^                 ATQA
                     ^^^^^^^^^^^^^^^^ Manufacturer data
    """

    uid: bytes
    bcc: int
    sak: int
    atqa: bytes
    manufacturer_data: bytes

    @classmethod
    def from_block(cls, block: bytes) -> "CardInfo":
        if len(block) < BYTES_PER_BLOCK:
            raise ValueError(f"Block 0 must be {BYTES_PER_BLOCK} bytes, got {len(block)}")
        return cls(
            uid=bytes(block[0:4]),
            bcc=block[4],
            sak=block[5],
            atqa=bytes(block[6:8]),
            manufacturer_data=bytes(block[8:16]),
        )

    @property
    def bcc_valid(self) -> bool:
        """BCC is the XOR of the four UID bytes."""
        return reduce(lambda a, b: a ^ b, self.uid, 0) == self.bcc

    def to_dict(self) -> dict:
        return {
            "uid": self.uid.hex().upper(),
            "bcc": f"{self.bcc:02X}",
            "bcc_valid": self.bcc_valid,
            "sak": f"{self.sak:02X}",
            "atqa": self.atqa.hex().upper(),
            "manufacturer_data": self.manufacturer_data.hex().upper(),
        }


@dataclass
class DumpReport:
    """
    Lazy, restartable report over one dump.

    Every iteration walks the whole dump again and yields one PermissionRow
    per block, in (sector, block) order. Nothing is cached between passes.
    """

    dump: bytes
    geometry: Geometry
    options: ReportOptions = field(default_factory=ReportOptions)

    def __post_init__(self):
        if len(self.dump) < self.geometry.size:
            raise ValueError(
                f"Dump holds {len(self.dump)} bytes, geometry needs {self.geometry.size}"
            )

    def __iter__(self) -> Iterator[PermissionRow]:
        view = memoryview(self.dump)
        for sector in self.geometry.sectors():
            yield from self._sector_rows(view, sector)

    @property
    def card_info(self) -> CardInfo:
        return CardInfo.from_block(self.dump[:BYTES_PER_BLOCK])

    def rows(self) -> list[PermissionRow]:
        return list(self)

    def sector_rows(self, sector: int) -> list[PermissionRow]:
        """Return the rows of a single sector."""
        self.geometry.check_sector(sector)
        return list(self._sector_rows(memoryview(self.dump), sector))

    def invalid_rows(self) -> list[PermissionRow]:
        return [row for row in self if not row.is_valid]

    def _sector_rows(self, view: memoryview, sector: int) -> Iterator[PermissionRow]:
        start = sector_offset(sector)
        trailer = trailer_offset(sector)
        access_bytes = parse_sector_trailer(view[trailer:trailer + BYTES_PER_BLOCK])["access_bits"]
        first_block = first_block_number(sector)

        for block in range(blocks_in_sector(sector)):
            role = block_role(sector, block)
            slot = cluster_index(sector, block)
            try:
                condition = decode_access_condition(access_bytes, slot)
            except ChecksumMismatch as e:
                logger.warning("Sector %d block %d: %s", sector, block, e)
                condition = AccessCondition.INVALID
                permissions = ""
            else:
                permissions = resolve_permission(condition, role)

            block_start = start + block * BYTES_PER_BLOCK
            yield PermissionRow(
                sector=sector,
                block=block,
                block_number=first_block + block,
                role=role,
                data=bytes(view[block_start:block_start + BYTES_PER_BLOCK]),
                condition=condition,
                permissions=permissions,
                show_sector=block == LABEL_BLOCK,
                ranges=TRAILER_RANGES if role is BlockRole.TRAILER else (),
            )

    def to_dict(self) -> dict:
        """Serialize the whole report to a JSON-compatible dict."""
        rows = self.rows()
        return {
            "size": self.geometry.size,
            "sector_count": self.geometry.sector_count,
            "extended_sectors": self.geometry.extended_sectors,
            "card": self.card_info.to_dict(),
            "rows": [row.to_dict() for row in rows],
            "invalid_blocks": sum(1 for row in rows if not row.is_valid),
        }


def build_report(dump: bytes, options: Optional[ReportOptions] = None) -> DumpReport:
    """
    Resolve the geometry of a dump and return its report.

    Raises:
        InvalidDumpLength: if the dump size is not a known card size.
    """
    options = options or ReportOptions()
    geometry = resolve_geometry(len(dump), force_1k=options.force_1k)
    logger.info(
        "Dump of %d bytes: %d sectors (%d with 16 blocks)",
        geometry.size, geometry.sector_count, geometry.extended_sectors,
    )
    return DumpReport(dump=bytes(dump[:geometry.size]), geometry=geometry, options=options)


def sector_summary(report: DumpReport) -> list[dict]:
    """Return keys and decoded conditions per sector, trailer first."""
    summary = []
    for sector in report.geometry.sectors():
        start = trailer_offset(sector)
        trailer = parse_sector_trailer(report.dump[start:start + BYTES_PER_BLOCK])
        rows = report.sector_rows(sector)
        summary.append({
            "sector": sector,
            "offset": sector_offset(sector),
            "extended": is_extended_sector(sector),
            "key_a": trailer["key_a"].hex().upper(),
            "access_bits": trailer["access_bits"].hex().upper(),
            "key_b": trailer["key_b"].hex().upper(),
            "conditions": [row.condition.bits for row in rows],
        })
    return summary
