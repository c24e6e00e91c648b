"""API routes for dump decoding: geometry, access bits, full reports."""

import logging

from fastapi import APIRouter, File, HTTPException, Query, UploadFile
from pydantic import BaseModel

from mfdread.config import MAX_UPLOAD_BYTES, ReportOptions
from mfdread.rfid.access_bits import decode_all
from mfdread.rfid.dump_parser import (
    load_dump, parse_eml, parse_from_base64, parse_from_hex, parse_proxmark3_dump,
)
from mfdread.rfid.errors import DumpError
from mfdread.rfid.mifare import resolve_geometry
from mfdread.rfid.permissions import BlockRole, resolve_permission
from mfdread.rfid.render import render_report
from mfdread.rfid.report import build_report, sector_summary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dumps", tags=["dumps"])


# ──────────────────────────────────────────────
# Request/Response models
# ──────────────────────────────────────────────

class DecodeOptions(BaseModel):
    force_1k: bool = False
    render: bool = False  # Include the plain-text table


class DecodeHexRequest(DecodeOptions):
    hex_data: str


class DecodeBase64Request(DecodeOptions):
    data: str


class DecodeProxmarkRequest(DecodeOptions):
    dump_text: str


class DecodeEmlRequest(DecodeOptions):
    eml_text: str


class AccessBitsRequest(BaseModel):
    access_bits: str  # Hex string, 3 or 4 bytes e.g. "FF078069"


def _report_response(dump: bytes, force_1k: bool, render: bool) -> dict:
    options = ReportOptions(force_1k=force_1k, colorize=False)
    report = build_report(dump, options)
    response = report.to_dict()
    response["sectors"] = sector_summary(report)
    if render:
        response["table"] = render_report(report)
    return response


# ──────────────────────────────────────────────
# Routes
# ──────────────────────────────────────────────

@router.post("/decode/hex")
async def decode_hex(req: DecodeHexRequest):
    """Decode a hex-encoded dump."""
    try:
        return _report_response(parse_from_hex(req.hex_data), req.force_1k, req.render)
    except DumpError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/decode/base64")
async def decode_base64(req: DecodeBase64Request):
    """Decode a base64-encoded dump."""
    try:
        return _report_response(parse_from_base64(req.data), req.force_1k, req.render)
    except DumpError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/decode/proxmark")
async def decode_proxmark(req: DecodeProxmarkRequest):
    """Decode a Proxmark3 text dump."""
    try:
        return _report_response(parse_proxmark3_dump(req.dump_text), req.force_1k, req.render)
    except DumpError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/decode/eml")
async def decode_eml(req: DecodeEmlRequest):
    """Decode a Proxmark3 emulator (.eml) dump."""
    try:
        return _report_response(parse_eml(req.eml_text), req.force_1k, req.render)
    except DumpError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/decode/file")
async def decode_file(
    file: UploadFile = File(...),
    force_1k: bool = Query(False),
    render: bool = Query(False),
    fmt: str = Query("auto", alias="format"),
):
    """Decode an uploaded dump file in any supported format."""
    data = await file.read()
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail=f"Dump larger than {MAX_UPLOAD_BYTES} bytes")
    logger.info("Decoding uploaded dump %s (%d bytes)", file.filename, len(data))
    try:
        return _report_response(load_dump(data, fmt), force_1k, render)
    except DumpError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ValueError as e:
        # Unknown format name
        raise HTTPException(status_code=422, detail=str(e))


@router.get("/geometry/{size}")
async def geometry(size: int, force_1k: bool = False):
    """Return the sector layout for a dump size."""
    try:
        return resolve_geometry(size, force_1k=force_1k).to_dict()
    except DumpError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/access-bits/decode")
async def decode_access_bits(req: AccessBitsRequest):
    """Decode the four slot conditions of a sector trailer's access bytes."""
    try:
        access_bytes = parse_from_hex(req.access_bits)
    except DumpError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if len(access_bytes) not in (3, 4):
        raise HTTPException(status_code=400, detail="Access bits must be 3 or 4 bytes")

    slots = []
    for slot, condition in enumerate(decode_all(access_bytes)):
        role = BlockRole.TRAILER if slot == 3 else BlockRole.DATA
        slots.append({
            "slot": slot,
            "access_condition": condition.bits,
            "valid": condition.is_valid,
            "permissions": resolve_permission(condition, role) if condition.is_valid else "",
        })
    return {"access_bits": access_bytes.hex().upper(), "slots": slots}
