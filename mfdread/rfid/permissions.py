"""
Human-readable permissions for decoded access conditions.

Column layout of the trailer table:
    Key A r w | Access bits r w | Key B r w

Column layout of the data table:
    read | write | increment | decrement, transfer, restore

"A", "B" and "A/B" name the key that grants the operation, "-" means never.
"""

from enum import Enum

from .access_bits import AccessCondition
from .mifare import is_manufacturer_block, is_sector_trailer


class BlockRole(str, Enum):
    MANUFACTURER = "manufacturer"
    DATA = "data"
    TRAILER = "trailer"


# Indexed by the C1 C2 C3 condition value
PERMISSION_TRAILER = (
    "- A | A   - | A A",
    "- A | A   A | A A [transport]",
    "- - | A   - | A -",
    "- B | A/B B | - B",
    "- B | A/B - | - B",
    "- - | A/B B | - -",
    "- - | A/B - | - -",
    "- - | A/B - | - -",
)

PERMISSION_DATA = (
    "A/B | A/B   | A/B | A/B [transport]",
    "A/B |  -    |  -  | A/B [value]",
    "A/B |  -    |  -  |  -  [r/w]",
    "  B |   B   |  -  |  -  [r/w]",
    "A/B |   B   |  -  |  -  [r/w]",
    "  B |  -    |  -  |  -  [r/w]",
    "A/B |   B   |   B | A/B [value]",
    " -  |  -    |  -  |  -  [r/w]",
)

# Block 0 of sector 0 is programmed at the factory and never writable
PERMISSION_MANUFACTURER = "-"


def block_role(sector: int, block: int) -> BlockRole:
    """Return the role of a block (index within its sector)."""
    if is_manufacturer_block(sector, block):
        return BlockRole.MANUFACTURER
    if is_sector_trailer(sector, block):
        return BlockRole.TRAILER
    return BlockRole.DATA


def resolve_permission(condition: AccessCondition, role: BlockRole) -> str:
    """
    Return the permission text for a decoded condition.

    The manufacturer block always resolves to "-" whatever its condition.
    """
    condition = AccessCondition(condition)
    role = BlockRole(role)
    if not condition.is_valid:
        raise ValueError("Cannot resolve permissions of an invalid access condition")

    if role is BlockRole.MANUFACTURER:
        return PERMISSION_MANUFACTURER
    if role is BlockRole.TRAILER:
        return PERMISSION_TRAILER[condition]
    return PERMISSION_DATA[condition]
