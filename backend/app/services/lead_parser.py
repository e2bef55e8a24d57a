"""
Lead spreadsheet parser.

Only the first sheet is read. Its first row is the header; every following
row with at least one non-empty cell is one lead. Blank rows are ignored.
Duplicate rows are still counted but reported as warnings.
"""

from __future__ import annotations

import logging
from typing import IO

import pandas as pd

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS: frozenset[str] = frozenset({".xlsx", ".csv"})


class LeadFileError(ValueError):
    """The uploaded file could not be read as a spreadsheet."""


def file_extension(filename: str | None) -> str:
    if not filename:
        return ""
    idx = filename.rfind(".")
    return filename[idx:].lower() if idx != -1 else ""


def _read_first_sheet(file: IO[bytes], ext: str) -> pd.DataFrame:
    if ext == ".csv":
        return pd.read_csv(file, dtype=str, skip_blank_lines=True)
    return pd.read_excel(file, sheet_name=0, engine="openpyxl", dtype=str, header=0)


def _clean_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Strip cells, turn empty strings into NaN and drop blank rows."""
    df = df.apply(lambda col: col.str.strip())
    df = df.mask(df == "")
    return df.dropna(how="all")


def parse_leads(file: IO[bytes], filename: str | None) -> tuple[int, list[str]]:
    """
    Count the leads in an uploaded spreadsheet.

    Returns ``(total_leads, warnings)``. Raises ``LeadFileError`` when the
    file cannot be parsed at all.
    """
    ext = file_extension(filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise LeadFileError(f"Unsupported file type '{ext}'")

    try:
        df = _read_first_sheet(file, ext)
    except pd.errors.EmptyDataError:
        logger.info("Lead file '%s' is empty", filename)
        return 0, ["File contains no rows"]
    except Exception as exc:
        logger.warning("Could not read lead file '%s': %s", filename, exc)
        raise LeadFileError(f"Could not read file: {exc}") from exc

    raw_rows = len(df)
    df = _clean_frame(df)
    total = len(df)

    warnings: list[str] = []
    blank = raw_rows - total
    if blank:
        warnings.append(f"{blank} blank row(s) ignored")
    duplicates = int(df.duplicated().sum())
    if duplicates:
        warnings.append(f"{duplicates} duplicate row(s) counted")
    if total == 0:
        warnings.append("File contains no leads")

    logger.info(
        "Parsed lead file '%s': leads=%d, blank=%d, duplicates=%d",
        filename, total, blank, duplicates,
    )
    return total, warnings
