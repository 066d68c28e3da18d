from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel, Field


class OutputCsv(BaseModel):
    filename: str
    content_type: str = Field(default="text/csv; charset=utf-8")
    sha256: str
    content_b64: str


class FormatSummary(BaseModel):
    rows_parsed: int = 0
    duplicates_removed: int = 0
    rows: int = 0
    columns: int = 0
    date_order: str = Field(default="MDY", examples=["MDY", "DMY"])


class DecodingReport(BaseModel):
    detected: Optional[str] = None
    decode_used: str
    decode_fallback: bool = False


class FormatResponse(BaseModel):
    preview: List[List[str]] = Field(default_factory=list)
    output: OutputCsv
    summary: FormatSummary
    decoding: DecodingReport


class ConfigResponse(BaseModel):
    app_name: str
    tagline: str
    payment_link: str
    simulate_unlock: bool
    max_upload_mb: float
    features: List[str] = Field(default_factory=list)


class HealthResponse(BaseModel):
    ok: bool = True
