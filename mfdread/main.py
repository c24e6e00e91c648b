"""
mfdread: MIFARE Classic dump inspector.

FastAPI backend providing APIs for:
- Decoding Mini/1K/2K/4K dumps (binary, hex, base64, Proxmark3 text and .eml)
- Validating and explaining sector trailer access bits
- Rendering the human-readable dump table

Run with:
    uvicorn mfdread.main:app
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from mfdread.config import API_HOST, API_PORT, APP_NAME, LOG_FORMAT, LOG_LEVEL, VERSION
from mfdread.api import dumps

logging.basicConfig(
    level=LOG_LEVEL,
    format=LOG_FORMAT,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s %s", APP_NAME, VERSION)
    yield
    logger.info("Shutting down %s", APP_NAME)


app = FastAPI(
    title=APP_NAME,
    description="MIFARE Classic dump inspector",
    version=VERSION,
    lifespan=lifespan,
)

app.include_router(dumps.router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "version": VERSION}


def run():
    """Start the API server with uvicorn."""
    uvicorn.run(app, host=API_HOST, port=API_PORT)
