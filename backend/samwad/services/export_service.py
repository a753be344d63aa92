"""
Export Service — CSV reports of session records for the official's history page.
"""
import csv
import io
from typing import Iterable, Optional

from samwad.schemas.schemas import SessionRecordOut

CSV_HEADERS = ["Date", "Time", "Citizen Name", "Mobile", "District", "Block", "Village", "Session ID"]


def sessions_to_csv(records: Iterable[SessionRecordOut], default_district: str = "N/A") -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for record in records:
        writer.writerow([
            record.end_time.strftime("%Y-%m-%d"),
            record.end_time.strftime("%H:%M:%S"),
            record.citizen_name,
            record.citizen_mobile,
            record.district or default_district,
            record.block or "N/A",
            record.village or "N/A",
            record.id,
        ])
    return buffer.getvalue()


def export_filename(block: Optional[str], village: Optional[str], stamp: int) -> str:
    return f"report_{block or 'All'}_{village or 'All'}_{stamp}.csv"
