"""
Dump loading: converts the supported dump encodings to raw bytes.

Supports multiple input formats:
- Raw binary dump (.mfd / .bin, 320, 1024, 2048 or 4096 bytes)
- Hex string dump
- Base64 string dump
- Proxmark3 emulator dump (.eml, one block of 32 hex chars per line)
- Proxmark3 text dump ("Block 00: AA BB ..." lines)

The returned bytes are not size-checked here; geometry resolution does that.
"""

import base64
import binascii
import logging
import re

from .errors import DumpFormatError
from .mifare import ALLOWED_SIZES, BYTES_PER_BLOCK

logger = logging.getLogger(__name__)

FORMATS = ("auto", "bin", "hex", "base64", "eml", "pm3")

_HEX_BLOCK = re.compile(r"^[0-9A-Fa-f]{32}$")


def parse_from_binary(data: bytes) -> bytes:
    """Return a raw binary dump unchanged, as immutable bytes."""
    return bytes(data)


def parse_from_hex(hex_string: str) -> bytes:
    """Parse from a hex-encoded string, ignoring whitespace."""
    clean = "".join(hex_string.split())
    try:
        return bytes.fromhex(clean)
    except ValueError as e:
        raise DumpFormatError(f"Invalid hex dump: {e}") from e


def parse_from_base64(b64_string: str) -> bytes:
    """Parse from a base64-encoded string."""
    try:
        return base64.b64decode(b64_string, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DumpFormatError(f"Invalid base64 dump: {e}") from e


def parse_eml(dump_text: str) -> bytes:
    """
    Parse a Proxmark3 emulator (.eml) dump.

    Expected format (one block per line, unread bytes may be "--"):
    11223344440804006263646566676869
    """
    blocks = []
    for lineno, line in enumerate(dump_text.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        line = line.replace("-", "0")
        if not _HEX_BLOCK.match(line):
            raise DumpFormatError(f"Line {lineno} is not a 16-byte hex block: {line!r}")
        blocks.append(bytes.fromhex(line))
    return b"".join(blocks)


def parse_proxmark3_dump(dump_text: str) -> bytes:
    """
    Parse a Proxmark3 text dump format.

    Expected format (one block per line):
    Block 00: AA BB CC DD EE FF 00 11 22 33 44 55 66 77 88 99
    Block 01: ...
    """
    blocks = []
    for line in dump_text.strip().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        # Extract hex data after the colon
        if ":" in line:
            hex_part = line.split(":", 1)[1].strip()
        else:
            hex_part = line
        hex_clean = hex_part.replace(" ", "")
        if len(hex_clean) != BYTES_PER_BLOCK * 2:
            # A short block line would shift every following block
            if line.lower().startswith("block"):
                raise DumpFormatError(
                    f"Block line {line!r} holds {len(hex_clean) // 2} bytes, "
                    f"expected {BYTES_PER_BLOCK}"
                )
            continue
        try:
            blocks.append(bytes.fromhex(hex_clean))
        except ValueError as e:
            raise DumpFormatError(f"Invalid block line {line!r}: {e}") from e

    if not blocks:
        raise DumpFormatError("Proxmark3 dump contains no blocks")
    return b"".join(blocks)


def detect_format(data: bytes) -> str:
    """
    Guess the format of a dump read from a file or stream.

    Text forms are checked first: a hex dump of a 1K card is 2048 characters
    long, the size of a binary 2K dump.
    """
    try:
        text = data.decode("ascii")
    except UnicodeDecodeError:
        return "bin"

    lines = [ln.strip() for ln in text.splitlines() if ln.strip() and not ln.strip().startswith("#")]
    if not lines:
        return "bin"
    if lines[0].lower().startswith("block"):
        return "pm3"
    if all(_HEX_BLOCK.match(ln.replace("-", "0")) for ln in lines):
        return "eml"
    if re.fullmatch(r"[0-9A-Fa-f\s]+", text):
        return "hex"
    # Base64 alphabet also covers plain ASCII binary dumps of a card size
    if len(data) in ALLOWED_SIZES:
        return "bin"
    if re.fullmatch(r"[A-Za-z0-9+/=\s]+", text):
        return "base64"
    return "bin"


def load_dump(data: bytes, fmt: str = "auto") -> bytes:
    """
    Convert dump data in any supported format to raw bytes.

    Args:
        data: File or stream contents.
        fmt: One of FORMATS; "auto" sniffs the format.
    """
    if fmt not in FORMATS:
        raise ValueError(f"Unknown dump format {fmt!r}, expected one of {', '.join(FORMATS)}")
    if fmt == "auto":
        fmt = detect_format(data)
        logger.info("Detected %s dump format", fmt)

    if fmt == "bin":
        return parse_from_binary(data)

    try:
        text = data.decode("ascii")
    except UnicodeDecodeError as e:
        raise DumpFormatError(f"{fmt} dump is not ASCII text") from e

    if fmt == "hex":
        return parse_from_hex(text)
    if fmt == "base64":
        return parse_from_base64("".join(text.split()))
    if fmt == "eml":
        return parse_eml(text)
    return parse_proxmark3_dump(text)
