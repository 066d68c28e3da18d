"""
Glue between the HTTP host and the cleaning core.

Responsibilities:
- decode uploaded bytes into one text buffer
- run parse -> clean -> serialize
- truncate the cleaned table for preview
- build the response envelope
"""

from __future__ import annotations

import base64
import hashlib
from dataclasses import dataclass
from typing import Any, Dict, Optional

import structlog
from charset_normalizer import from_bytes

from .cleaner import clean
from .config import Settings
from .parser import Table, parse
from .rules import DateOrder
from .serializer import serialize

logger = structlog.get_logger(__name__)

DEFAULT_OUTPUT_NAME = "processed-output.csv"


@dataclass(frozen=True)
class DecodedText:
    text: str
    detected: Optional[str]
    decode_used: str
    decode_fallback: bool


@dataclass(frozen=True)
class PipelineResult:
    table: Table
    csv: str
    rows_parsed: int
    duplicates_removed: int

    @property
    def rows_out(self) -> int:
        return len(self.table)


def _sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def decode_text(raw: bytes) -> DecodedText:
    """
    Turn an upload into the single text buffer the parser expects.

    Never raises. The returned DecodedText records the charset-normalizer
    guess, the codec actually applied, and whether that guess had to be
    abandoned. A leading UTF-8 BOM is consumed rather than left in the text;
    bytes no codec accepts come back as U+FFFD.
    """
    detected = None
    match = from_bytes(raw).best()
    if match is not None:
        detected = match.encoding

    decode_used = detected or "utf-8"
    if raw.startswith(b"\xef\xbb\xbf") and (decode_used.lower().replace("-", "_") in ("utf_8", "utf8")):
        decode_used = "utf-8-sig"

    decode_fallback = False

    try:
        text = raw.decode(decode_used)
    except (UnicodeDecodeError, LookupError):
        decode_fallback = True
        try:
            text = raw.decode("utf-8")
            decode_used = "utf-8"
        except UnicodeDecodeError:
            # Last resort: keep going with replacement characters
            text = raw.decode("utf-8", errors="replace")
            decode_used = "utf-8"

    return DecodedText(
        text=text,
        detected=detected,
        decode_used=decode_used,
        decode_fallback=decode_fallback,
    )


def run_pipeline(text: str, date_order: DateOrder = DateOrder.MDY) -> PipelineResult:
    parsed = parse(text)
    cleaned = clean(parsed, date_order)
    # clean() only ever drops duplicates
    return PipelineResult(
        table=cleaned,
        csv=serialize(cleaned),
        rows_parsed=len(parsed),
        duplicates_removed=len(parsed) - len(cleaned),
    )


def preview(table: Table, max_rows: int, max_columns: int) -> Table:
    return [row[:max_columns] for row in table[:max_rows]]


def output_filename(filename: Optional[str]) -> str:
    if not filename:
        return DEFAULT_OUTPUT_NAME
    return f"processed-{filename}"


def format_csv_bytes(raw: bytes, filename: Optional[str], settings: Settings) -> Dict[str, Any]:
    """
    Decode, clean and serialize an upload.
    Returns a dict matching the API's response envelope.
    """
    decoded = decode_text(raw)
    logger.info(
        "csv_decoded",
        filename=filename,
        detected=decoded.detected,
        decode_used=decoded.decode_used,
        decode_fallback=decoded.decode_fallback,
    )

    result = run_pipeline(decoded.text, settings.date_order)
    logger.info(
        "pipeline_completed",
        filename=filename,
        rows_parsed=result.rows_parsed,
        duplicates_removed=result.duplicates_removed,
        rows_out=result.rows_out,
    )

    out_bytes = result.csv.encode("utf-8")
    return {
        "preview": [list(row) for row in preview(result.table, settings.preview_rows, settings.preview_columns)],
        "output": {
            "filename": output_filename(filename),
            "content_type": "text/csv; charset=utf-8",
            "sha256": _sha256_hex(out_bytes),
            "content_b64": base64.b64encode(out_bytes).decode("ascii"),
        },
        "summary": {
            "rows_parsed": result.rows_parsed,
            "duplicates_removed": result.duplicates_removed,
            "rows": result.rows_out,
            "columns": max((len(row) for row in result.table), default=0),
            "date_order": settings.date_order.value,
        },
        "decoding": {
            "detected": decoded.detected,
            "decode_used": decoded.decode_used,
            "decode_fallback": decoded.decode_fallback,
        },
    }
