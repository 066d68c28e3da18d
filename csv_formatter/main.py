import re
from urllib.parse import quote

from fastapi import Depends, FastAPI, File, HTTPException, Response, UploadFile
import structlog

from .config import Settings, configure_logging, get_settings
from .models import ConfigResponse, FormatResponse, HealthResponse
from .pipeline import decode_text, format_csv_bytes, output_filename, run_pipeline

configure_logging(get_settings().log_level)
logger = structlog.get_logger(__name__)

ALLOWED_SUFFIXES = (".csv", ".txt")

# Anything outside printable ASCII, plus characters that would break a quoted header value
_UNSAFE_FILENAME_CHARS_RE = re.compile(r'[^\x20-\x7e]|["\\]')

FEATURES = [
    "Trims whitespace & hidden characters",
    "Removes duplicate rows",
    "Standardizes phone numbers (US format)",
    "Normalizes date columns (YYYY-MM-DD)",
    "Supports quoted CSV fields",
]

app = FastAPI(
    title="csv-formatter",
    description="Clean, deduplicate and standardize messy CSV exports",
    version="0.1.0",
)


async def _read_upload(file: UploadFile, settings: Settings) -> bytes:
    filename = file.filename or ""
    if not filename.lower().endswith(ALLOWED_SUFFIXES):
        logger.info("upload_rejected", filename=filename, reason="unsupported_type")
        raise HTTPException(status_code=422, detail="Only CSV or text files are supported")

    raw = await file.read()
    if len(raw) > settings.max_upload_bytes:
        logger.info("upload_rejected", filename=filename, reason="too_large", size=len(raw))
        raise HTTPException(
            status_code=413,
            detail=f"File too large (limit {settings.max_upload_mb:g}MB)",
        )
    return raw


@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}


@app.get("/config", response_model=ConfigResponse)
def config(settings: Settings = Depends(get_settings)):
    return {
        "app_name": settings.app_name,
        "tagline": settings.tagline,
        "payment_link": settings.payment_link,
        "simulate_unlock": settings.simulate_unlock,
        "max_upload_mb": settings.max_upload_mb,
        "features": FEATURES,
    }


@app.post("/format", response_model=FormatResponse)
async def format_csv(file: UploadFile = File(...), settings: Settings = Depends(get_settings)):
    raw = await _read_upload(file, settings)
    return format_csv_bytes(raw, file.filename, settings)


@app.post("/format/download")
async def download_csv(file: UploadFile = File(...), settings: Settings = Depends(get_settings)):
    raw = await _read_upload(file, settings)
    result = run_pipeline(decode_text(raw).text, settings.date_order)
    logger.info("download_prepared", filename=file.filename, rows=result.rows_out)

    return Response(
        content=result.csv,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": content_disposition(output_filename(file.filename))},
    )


def content_disposition(filename: str) -> str:
    """
    Attachment header safe for any upload name.

    Header values go out as latin-1, so the plain filename is an ASCII
    fallback and the real name travels percent-encoded in filename*.
    """
    fallback = _UNSAFE_FILENAME_CHARS_RE.sub("_", filename)
    return f"attachment; filename=\"{fallback}\"; filename*=utf-8''{quote(filename, safe='')}"
