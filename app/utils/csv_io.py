"""
CSV Utility - roster upload and result export.

Input: a CSV with a header row. Rows without both first_name and last_name
are dropped before analysis.
Output: processed rows (original columns + placement columns).

Max file size: settings.max_upload_mb
"""

import io
from typing import Dict, List, Sequence, Tuple

import pandas as pd
from fastapi import UploadFile, HTTPException

from app.core.config import get_settings
from app.core.exceptions import InputInvalid
from app.schemas.schemas import ProcessedRecord, StudentRecord

ALLOWED_EXTENSIONS = {'.csv'}


def get_file_extension(filename: str) -> str:
    """Get lowercase file extension."""
    if '.' not in filename:
        return ''
    return '.' + filename.rsplit('.', 1)[1].lower()


def decode_csv(content: bytes) -> str:
    """Decode uploaded bytes (handles the Excel BOM and Windows exports)."""
    for encoding in ['utf-8-sig', 'cp1252']:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    # latin-1 maps every byte
    return content.decode('latin-1')


async def read_upload(file: UploadFile) -> Tuple[str, str]:
    """
    Validate and decode an uploaded CSV.

    Returns:
        Tuple of (csv_text, filename)

    Raises:
        HTTPException on validation errors
    """
    max_mb = get_settings().max_upload_mb

    if not file.filename:
        raise HTTPException(status_code=400, detail="No filename provided")

    ext = get_file_extension(file.filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type '{ext}'. Please upload a CSV file."
        )

    content = await file.read()

    if len(content) > max_mb * 1024 * 1024:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size: {max_mb}MB"
        )

    return decode_csv(content), file.filename


def parse_csv_text(text: str) -> List[Dict[str, str]]:
    """Parse CSV text into header -> cell dicts. Cells stay strings."""
    if not text.strip():
        raise InputInvalid()
    try:
        frame = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise InputInvalid(f"CSV Parsing Error: {e}") from e
    return frame.to_dict(orient="records")


def load_records(rows: Sequence[Dict[str, str]]) -> List[StudentRecord]:
    """Normalize rows and keep only named students."""
    records = [StudentRecord.from_row(row) for row in rows]
    records = [r for r in records if r.has_name]
    if not records:
        raise InputInvalid()
    return records


def records_to_csv(processed: Sequence[ProcessedRecord]) -> str:
    """Serialize processed records back to CSV text."""
    frame = pd.DataFrame([p.to_row() for p in processed])
    return frame.to_csv(index=False, lineterminator="\n")
