"""CSV and JSON renderings of analysis results."""

from __future__ import annotations

import csv
import io
import re
from collections.abc import Iterable

from tenurescope.models import AnalysisResult, NormalizedRecord

CSV_HEADERS = [
    "Name",
    "Title",
    "Start Date",
    "End Date",
    "Tenure (months)",
    "Tenure (years)",
    "Status",
    "Profile URL",
]


def records_to_csv(records: Iterable[NormalizedRecord]) -> str:
    """Render records as CSV with every cell quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for record in records:
        writer.writerow(
            [
                record.name or "",
                record.title,
                record.start_date_text,
                record.end_date_text or "",
                record.tenure_months,
                record.tenure_years,
                "Past" if record.is_past else "Current",
                record.profile_ref,
            ]
        )
    return buffer.getvalue()


def analysis_to_json(analysis: AnalysisResult) -> str:
    return analysis.model_dump_json(indent=2)


def export_filename(company_name: str, fmt: str) -> str:
    """Default file name for an export, e.g. ``acme-tenure-analysis.csv``."""
    slug = re.sub(r"[^a-z0-9]+", "-", company_name.lower()).strip("-")
    slug = slug or "company"
    return f"{slug}-tenure-analysis.{fmt}"
