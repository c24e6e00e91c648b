"""
MIFARE Classic access-condition bits.

Bytes 6-9 of every sector trailer hold the access conditions for the four
"slots" of the sector (three data blocks and the trailer on 4-block sectors,
three 5-block clusters and the trailer on 16-block sectors). Every slot has
three condition bits C1, C2, C3, stored once as-is and once inverted:

    byte 6:  /C2_3 /C2_2 /C2_1 /C2_0 | /C1_3 /C1_2 /C1_1 /C1_0
    byte 7:   C1_3  C1_2  C1_1  C1_0 | /C3_3 /C3_2 /C3_1 /C3_0
    byte 8:   C3_3  C3_2  C3_1  C3_0 |  C2_3  C2_2  C2_1  C2_0
    byte 9:   user data (not part of the access conditions)

The decoded condition is C1 C2 C3 read as a 3-bit number, C1 being the
most significant bit.
"""

import logging
from enum import IntEnum

from .errors import ChecksumMismatch
from .mifare import blocks_in_sector, is_extended_sector

logger = logging.getLogger(__name__)

NUM_SLOTS = 4
CLUSTER_SIZE = 5
DEFAULT_USER_BYTE = 0x69


class AccessCondition(IntEnum):
    """Decoded C1 C2 C3 access condition, or INVALID if the check failed."""

    INVALID = -1
    C000 = 0
    C001 = 1
    C010 = 2
    C011 = 3
    C100 = 4
    C101 = 5
    C110 = 6
    C111 = 7

    @property
    def is_valid(self) -> bool:
        return self is not AccessCondition.INVALID

    @property
    def bits(self) -> str:
        """Return the condition as a 3-character bit string, e.g. "001"."""
        if not self.is_valid:
            return "ERR"
        return f"{int(self):03b}"


# (byte, bit) of C1, C2, C3 and of /C1, /C2, /C3 for every slot
ACCESS_BIT_POSITIONS = {
    0: {"direct": ((1, 4), (2, 0), (2, 4)), "inverted": ((0, 0), (0, 4), (1, 0))},
    1: {"direct": ((1, 5), (2, 1), (2, 5)), "inverted": ((0, 1), (0, 5), (1, 1))},
    2: {"direct": ((1, 6), (2, 2), (2, 6)), "inverted": ((0, 2), (0, 6), (1, 2))},
    3: {"direct": ((1, 7), (2, 3), (2, 7)), "inverted": ((0, 3), (0, 7), (1, 3))},
}


def _read_bits(access_bytes: bytes, positions) -> int:
    """Assemble a 3-bit value from (byte, bit) positions, first one as MSB."""
    value = 0
    for byte_index, bit_index in positions:
        value = (value << 1) | ((access_bytes[byte_index] >> bit_index) & 1)
    return value


def cluster_index(sector: int, block: int) -> int:
    """
    Return the access-condition slot for a block within its sector.

    4-block sectors map every block to its own slot. 16-block sectors
    (4K cards, sector 32 and up) share one slot per cluster of 5 blocks,
    the trailer (block 15) being alone in slot 3.
    """
    if not 0 <= block < blocks_in_sector(sector):
        raise ValueError(
            f"Block {block} out of range for sector {sector} "
            f"({blocks_in_sector(sector)} blocks)"
        )
    if is_extended_sector(sector):
        return block // CLUSTER_SIZE
    return block


def decode_access_condition(access_bytes: bytes, slot: int) -> AccessCondition:
    """
    Decode and verify the access condition of one slot.

    Args:
        access_bytes: The access bytes of a sector trailer (at least 3 bytes,
            the 4th user byte is ignored).
        slot: Slot index 0-3 (block index or cluster index).

    Raises:
        ChecksumMismatch: if the condition bits do not match their inverse.
    """
    if slot not in ACCESS_BIT_POSITIONS:
        raise ValueError(f"Access slot must be 0-{NUM_SLOTS - 1}, got {slot}")
    if len(access_bytes) < 3:
        raise ValueError(f"Access bits need at least 3 bytes, got {len(access_bytes)}")

    positions = ACCESS_BIT_POSITIONS[slot]
    bits = _read_bits(access_bytes, positions["direct"])
    inverted = _read_bits(access_bytes, positions["inverted"])
    logger.debug("slot %d: bits=%03b inverted=%03b", slot, bits, inverted)

    if bits != (~inverted) & 0b111:
        raise ChecksumMismatch(slot, bits, inverted)
    return AccessCondition(bits)


def decode_all(access_bytes: bytes) -> list[AccessCondition]:
    """Decode all four slots, marking inconsistent ones as INVALID."""
    conditions = []
    for slot in range(NUM_SLOTS):
        try:
            conditions.append(decode_access_condition(access_bytes, slot))
        except ChecksumMismatch:
            conditions.append(AccessCondition.INVALID)
    return conditions


def encode_access_bits(conditions, user_byte: int = DEFAULT_USER_BYTE) -> bytes:
    """
    Build the 4 access bytes for four slot conditions.

    Args:
        conditions: Four conditions (0-7), slot 0 first.
        user_byte: Value of the spare 4th byte.

    Returns:
        4 bytes, e.g. FF 07 80 69 for the transport configuration.
    """
    conditions = [int(c) for c in conditions]
    if len(conditions) != NUM_SLOTS:
        raise ValueError(f"Expected {NUM_SLOTS} conditions, got {len(conditions)}")

    out = bytearray([0, 0, 0, user_byte & 0xFF])
    for slot, condition in enumerate(conditions):
        if not 0 <= condition <= 7:
            raise ValueError(f"Access condition must be 0-7, got {condition}")
        positions = ACCESS_BIT_POSITIONS[slot]
        for i, (byte_index, bit_index) in enumerate(positions["direct"]):
            if (condition >> (2 - i)) & 1:
                out[byte_index] |= 1 << bit_index
        for i, (byte_index, bit_index) in enumerate(positions["inverted"]):
            if not (condition >> (2 - i)) & 1:
                out[byte_index] |= 1 << bit_index
    return bytes(out)
