"""
CSV Normalizer for Health Exports

Turns a raw CSV export (arbitrary header labels, locale-formatted numbers and
dates) into JSON-serializable records:
- Headers become camel-cased identifiers ("Heart Rate" -> "heartRate")
- The first column is treated as the date and rewritten to ISO format
- Every other column is parsed as a number when possible

Cells that cannot be parsed keep their raw text; a bad cell never aborts the
batch. The only fatal case is an input without a header and a data line.
"""

import math
import re
import unicodedata
from datetime import timezone
from typing import Any, Dict, List, Union

import pandas as pd
import structlog

logger = structlog.get_logger()

CellValue = Union[str, int, float]

_LINE_SPLIT_RE = re.compile(r"\r?\n")
_WORD_RE = re.compile(r"[a-z0-9]+")
_CAMEL_IDENTIFIER_RE = re.compile(r"[a-z0-9][A-Za-z0-9]*")
_US_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")

# Words pandas resolves against the wall clock; an export row never means these
RELATIVE_DATE_WORDS = frozenset({"now", "today", "yesterday", "tomorrow"})


class CSVInputError(ValueError):
    """Raised when the input has no header line or no data line."""


def strip_diacritics(label: str) -> str:
    """Remove combining marks ("Média" -> "Media")."""
    decomposed = unicodedata.normalize("NFD", label)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def to_camel_case(label: str) -> str:
    """
    Convert a header label into a camel-cased identifier.

    Examples:
        "Heart Rate" -> "heartRate"
        "Batimentos Média (bpm)" -> "batimentosMediaBpm"
        "Score Sono (1-100)" -> "scoreSono1100"

    A label that is already a camel-cased identifier is returned as-is, so
    applying the transform to its own output changes nothing. A label with no
    alphanumeric words is returned trimmed.
    """
    trimmed = label.strip()
    if _CAMEL_IDENTIFIER_RE.fullmatch(trimmed):
        return trimmed

    words = _WORD_RE.findall(strip_diacritics(label).lower())
    if not words:
        return trimmed

    return words[0] + "".join(word[0].upper() + word[1:] for word in words[1:])


def is_relative_date_word(raw: str) -> bool:
    """True for "now", "today" and the like, which pandas would read as the current date."""
    return raw.strip().lower() in RELATIVE_DATE_WORDS


def normalize_date_cell(raw: str) -> str:
    """
    Normalize the date column.

    "1/5/2024" -> "2024-01-05". Anything else goes through pandas' general
    date parser and comes back as an ISO-8601 UTC instant. If that fails too,
    or the cell is a relative word such as "today", the raw text is kept.
    """
    match = _US_DATE_RE.match(raw)
    if match:
        month, day, year = match.groups()
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"

    if is_relative_date_word(raw):
        logger.debug("csv_date_relative", value=raw)
        return raw

    try:
        parsed = pd.to_datetime(raw, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        parsed = pd.NaT

    if pd.isna(parsed):
        logger.debug("csv_date_unparsable", value=raw)
        return raw

    if parsed.tzinfo is None:
        parsed = parsed.tz_localize(timezone.utc)
    else:
        parsed = parsed.tz_convert(timezone.utc)

    millis = parsed.microsecond // 1000
    return parsed.strftime("%Y-%m-%dT%H:%M:%S") + f".{millis:03d}Z"


def parse_number(raw: str) -> Union[int, float, None]:
    """
    Parse a locale-formatted number ("36,5" -> 36.5).

    Returns None when the text is not a finite number. Integral values come
    back as int so they serialize without a trailing ".0".
    """
    text = raw.replace(",", ".", 1)
    if not text or "_" in text:
        return None

    try:
        value = float(text)
    except ValueError:
        return None

    if not math.isfinite(value):
        return None
    if value.is_integer():
        return int(value)
    return value


def normalize_value_cell(raw: str) -> CellValue:
    """Parse a non-date cell as a number, keeping the raw text on failure."""
    number = parse_number(raw)
    return raw if number is None else number


def normalize_row(headers: List[str], line: str) -> Dict[str, CellValue]:
    """
    Normalize one data line against the camel-cased headers.

    Missing trailing cells become empty strings; cells beyond the header are
    ignored.
    """
    values = [value.strip() for value in line.split(",")]
    entry: Dict[str, CellValue] = {}

    for index, header in enumerate(headers):
        raw_value = values[index] if index < len(values) else ""

        if raw_value == "":
            entry[header] = raw_value
        elif index == 0:
            entry[header] = normalize_date_cell(raw_value)
        else:
            entry[header] = normalize_value_cell(raw_value)

    return entry


def normalize_csv_text(text: str) -> List[Dict[str, Any]]:
    """
    Normalize a whole CSV export.

    Args:
        text: Comma-delimited text, one header line and at least one data line

    Returns:
        One record per data line, keyed by camel-cased header names

    Raises:
        CSVInputError: If there are fewer than two non-blank lines
    """
    lines = [line.strip() for line in _LINE_SPLIT_RE.split(text)]
    lines = [line for line in lines if line]

    if len(lines) < 2:
        raise CSVInputError("CSV is missing data rows.")

    headers = [to_camel_case(header.strip()) for header in lines[0].split(",")]
    records = [normalize_row(headers, line) for line in lines[1:]]

    logger.info("csv_normalized", columns=len(headers), records=len(records))
    return records


def load_records_from_upload(file_bytes: bytes) -> List[Dict[str, Any]]:
    """
    Normalize CSV data from uploaded file bytes.

    Decodes as UTF-8 (replacing undecodable bytes) and drops a leading BOM.

    Raises:
        CSVInputError: If the upload has no data rows
    """
    try:
        raw_text = file_bytes.decode("utf-8")
    except UnicodeDecodeError:
        raw_text = file_bytes.decode("utf-8", errors="replace")

    # Handle BOM if present
    if raw_text.startswith("\ufeff"):
        raw_text = raw_text[1:]

    return normalize_csv_text(raw_text)
