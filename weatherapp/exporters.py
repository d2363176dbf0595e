"""
Export helpers.

- CSV: 1 row per record, fixed column order, daily series serialized as JSON
- JSON: pretty printed
"""

from __future__ import annotations
import csv
import io
import json
from typing import List, Dict, Any


CSV_COLUMNS = [
    "id",
    "location_query",
    "location_name",
    "latitude",
    "longitude",
    "start_date",
    "end_date",
    "units",
    "daily_json",
    "created_at",
    "updated_at",
]

# compact JSON for the serialized daily series
COMPACT = (",", ":")


def export_json(records: List[Dict[str, Any]]) -> str:
    """Export list of records as pretty JSON."""
    return json.dumps(records, indent=2, default=str)


def _csv_value(record: Dict[str, Any], column: str) -> Any:
    if column == "daily_json" and "daily_json" not in record:
        return json.dumps(record.get("daily") or [], separators=COMPACT)
    value = record.get(column)
    if isinstance(value, (list, dict)):
        return json.dumps(value, separators=COMPACT)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def export_csv(records: List[Dict[str, Any]]) -> str:
    """
    Export list of records as CSV.

    The header is always written, so zero records yields just the header line.
    Fields containing a comma, quote, CR or LF are quoted with inner quotes doubled.
    Rows are joined with LF and there is no trailing newline.
    """
    buffer = io.StringIO()
    # a CRLF terminator makes csv quote fields holding either CR or LF
    writer = csv.writer(buffer, lineterminator="\r\n", quoting=csv.QUOTE_MINIMAL)

    def render(row: List[Any]) -> str:
        buffer.seek(0)
        buffer.truncate()
        # csv writes None as an empty field
        writer.writerow(row)
        return buffer.getvalue().removesuffix("\r\n")

    lines = [render(CSV_COLUMNS)]
    lines.extend(render([_csv_value(r, c) for c in CSV_COLUMNS]) for r in records)
    return "\n".join(lines)
