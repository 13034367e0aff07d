"""
CSV ingestion: raw export text → ordered tuple of LeadRecord.

Rows with no populated field are skipped. Rows whose "Created On" can't be
parsed are dropped and counted; they never abort the ingestion. Only a file
that can't be read as a lead export at all raises IngestionError.
"""
import csv
import io
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from dateutil import parser as date_parser

from lead_dashboard.config import CSV_COLUMNS
from lead_dashboard.models.lead import LeadRecord

logger = logging.getLogger('pipeline.ingestion')


class IngestionError(Exception):
    """The upload could not be read as a lead export."""


@dataclass(frozen=True)
class IngestionResult:
    records: Tuple[LeadRecord, ...]
    rows_read: int
    rows_dropped: int


# ── Date parsing ─────────────────────────────────────────────────────────────

# A value naming its own year, month and day parses the same under both
_DEFAULT_A = datetime(2000, 1, 1)
_DEFAULT_B = datetime(2001, 2, 2)


def parse_pipeline_date(value: str) -> Optional[datetime]:
    """
    Parse the CRM export format "DD-MM-YYYY HH:MM:SS am|pm".

    The meridiem is optional; without it the hour is read as 24-hour.
    Returns None if the value isn't in this format or names an impossible date.
    """
    parts = value.split()
    if len(parts) not in (2, 3):
        return None
    date_part, time_part = parts[0], parts[1]
    meridiem = parts[2].lower() if len(parts) == 3 else None
    if meridiem not in (None, 'am', 'pm'):
        return None

    date_bits = date_part.split('-')
    time_bits = time_part.split(':')
    if len(date_bits) != 3 or len(time_bits) != 3 or len(date_bits[2]) != 4:
        return None
    try:
        day, month, year = (int(b) for b in date_bits)
        hour, minute, second = (int(b) for b in time_bits)
    except ValueError:
        return None

    if meridiem is not None:
        if not 1 <= hour <= 12:
            return None
        if meridiem == 'pm' and hour != 12:
            hour += 12
        elif meridiem == 'am' and hour == 12:
            hour = 0

    try:
        return datetime(year, month, day, hour, minute, second)
    except ValueError:
        return None


def parse_created_on(value: str) -> Optional[datetime]:
    """
    Parse a "Created On" cell.

    The explicit export format is tried first so that day-first values like
    "01-02-2025 10:00:00 am" aren't read month-first by the general parser.
    Values missing a year, month or day are rejected rather than filled in.
    Timezone-aware results are converted to local naive time.
    """
    value = (value or '').strip()
    if not value:
        return None

    parsed = parse_pipeline_date(value)
    if parsed is not None:
        return parsed

    try:
        parsed = date_parser.parse(value, default=_DEFAULT_A)
        # Fragments like "May" or "10:00" get their missing parts from the default
        if parsed != date_parser.parse(value, default=_DEFAULT_B):
            return None
    except (ValueError, OverflowError):
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


# ── CSV → records ────────────────────────────────────────────────────────────

def _map_header(header: List[str]) -> Dict[int, str]:
    """Column index → LeadRecord field, matching header names case-insensitively."""
    mapping = {}
    for idx, raw_name in enumerate(header):
        field_name = CSV_COLUMNS.get(raw_name.strip().lower())
        if field_name and field_name not in mapping.values():
            mapping[idx] = field_name
    return mapping


def _is_blank(row: List[str]) -> bool:
    return all(not (cell or '').strip() for cell in row)


def read_leads(csv_text: str) -> IngestionResult:
    """Parse CSV text and report how many data rows were read and dropped."""
    if csv_text.startswith('\ufeff'):
        csv_text = csv_text[1:]

    try:
        rows = list(csv.reader(io.StringIO(csv_text, newline='')))
    except csv.Error as e:
        raise IngestionError(f"Malformed CSV: {e}") from e

    # Leading blank lines are not a header
    while rows and _is_blank(rows[0]):
        rows.pop(0)
    if not rows:
        return IngestionResult(records=(), rows_read=0, rows_dropped=0)

    header, data_rows = rows[0], [row for row in rows[1:] if not _is_blank(row)]
    columns = _map_header(header)
    if not columns and data_rows:
        raise IngestionError("No recognized lead columns in header row")
    if data_rows and 'created_on' not in columns.values():
        logger.warning("Header has no 'Created On' column; every row will be dropped")

    records = []
    dropped = 0
    for row_no, row in enumerate(data_rows, start=1):
        values = {name: row[idx] if idx < len(row) else '' for idx, name in columns.items()}
        parsed_date = parse_created_on(values.get('created_on', ''))
        if parsed_date is None:
            dropped += 1
            logger.debug("Dropping data row %d: unparseable Created On %r", row_no, values.get('created_on', ''))
            continue
        records.append(LeadRecord.from_row(values, parsed_date))

    if dropped:
        logger.info("Dropped %d of %d rows with unparseable dates", dropped, len(data_rows))

    return IngestionResult(records=tuple(records), rows_read=len(data_rows), rows_dropped=dropped)


def parse_leads(csv_text: str) -> Tuple[LeadRecord, ...]:
    """Raw CSV text → ordered, immutable collection of lead records."""
    return read_leads(csv_text).records


def decode_upload(raw: bytes) -> str:
    """Decode uploaded bytes; spreadsheet exports are UTF-8 (maybe BOM) or cp1252."""
    for encoding in ('utf-8-sig', 'cp1252'):
        try:
            return raw.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise IngestionError("File is not readable as text (expected UTF-8 or Windows-1252 CSV)")


def ingest_upload(raw: bytes, filename: str = '') -> IngestionResult:
    """Decode and parse one uploaded file. Raises IngestionError on whole-file failure."""
    if b'\x00' in raw:
        raise IngestionError("File looks binary, not CSV (was an .xlsx uploaded?)")
    result = read_leads(decode_upload(raw))
    logger.info(
        "Ingested %s: %d rows read, %d kept, %d dropped",
        filename or '<upload>', result.rows_read, len(result.records), result.rows_dropped,
        extra={'upload_filename': filename, 'rows_read': result.rows_read, 'rows_dropped': result.rows_dropped},
    )
    return result
