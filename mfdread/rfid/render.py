"""Text-table rendering of a dump report, optionally with ANSI colors."""

from dataclasses import dataclass
from typing import Optional

from .access_bits import AccessCondition
from .report import DumpReport, PermissionRow


@dataclass(frozen=True)
class Palette:
    key_a: str = ""
    key_b: str = ""
    access: str = ""
    warning: str = ""
    reset: str = ""


ANSI = Palette(
    key_a="\x1b[0;31m",
    key_b="\x1b[0;34m",
    access="\x1b[0;32m",
    warning="\x1b[1;93m",
    reset="\x1b[0m",
)
PLAIN = Palette()

TOP = "╔═════════╦═══════╦══════════════════════════════════╦════════╦═════════════════════════════════════╗"
SEP = "╠═════════╬═══════╬══════════════════════════════════╬════════╬═════════════════════════════════════╣"
BOTTOM = "╚═════════╩═══════╩══════════════════════════════════╩════════╩═════════════════════════════════════╝"

HEADER = (
    "║  Sector ║ Block ║            Data                  ║ Access ║   A | Acc.  | B                     ║",
    "║         ║       ║                                  ║        ║ r w | r   w | r w [info]            ║",
    "║         ║       ║                                  ║        ║  r  |  w    |  i  | d/t/r           ║",
)


def printable_ascii(data: bytes) -> str:
    """Return the bytes as ASCII, with non-printable bytes shown as '.'."""
    return "".join(chr(b) if 0x20 <= b < 0x7F else "." for b in data)


def format_data(row: PermissionRow, palette: Palette) -> str:
    """Hex dump of one block, trailer ranges wrapped in their colors."""
    if not row.ranges:
        return row.data.hex()
    colors = {"key_a": palette.key_a, "access_bits": palette.access, "key_b": palette.key_b}
    parts = []
    for r in row.ranges:
        parts.append(colors[r.tag] + row.data[r.start:r.end].hex())
    return "".join(parts) + palette.reset


def format_condition(condition: AccessCondition, palette: Palette) -> str:
    color = palette.access if condition.is_valid else palette.warning
    return f"{color}{condition.bits}{palette.reset}"


def format_row(row: PermissionRow, palette: Palette) -> str:
    label = str(row.sector) if row.show_sector else ""
    ascii_part = "" if row.ranges else printable_ascii(row.data)
    return "║    %-5s║  %-3d  ║ %s ║  %s   ║ %-35s ║ %s" % (
        label, row.block, format_data(row, palette),
        format_condition(row.condition, palette), row.permissions, ascii_part,
    )


def render_header(report: DumpReport, palette: Palette) -> list[str]:
    info = report.card_info
    return [
        f"File size: {report.geometry.size} bytes. Expected {report.geometry.sector_count} sectors",
        "",
        f"\tUID:  {info.uid.hex()}",
        f"\tBCC:  {info.bcc:02x}" + ("" if info.bcc_valid else f" {palette.warning}(mismatch){palette.reset}"),
        f"\tSAK:  {info.sak:02x}",
        f"\tATQA: {info.atqa.hex()}",
        "                   %sKey A%s    %sAccess Bits%s    %sKey B%s" % (
            palette.key_a, palette.reset, palette.access, palette.reset, palette.key_b, palette.reset),
    ]


def render_report(report: DumpReport, colorize: Optional[bool] = None) -> str:
    """
    Render a full report as a text table.

    Args:
        report: The report to render.
        colorize: Override the report options' color setting.
    """
    if colorize is None:
        colorize = report.options.colorize
    palette = ANSI if colorize else PLAIN

    lines = render_header(report, palette)
    lines.append(TOP)
    lines.extend(HEADER)
    current_sector = None
    for row in report:
        if row.sector != current_sector:
            lines.append(SEP)
            current_sector = row.sector
        lines.append(format_row(row, palette))
    lines.append(BOTTOM)
    return "\n".join(lines)
