from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from io import BytesIO
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill

from roadmap_errors import NothingToExportError
from roadmap_models import STATUSES, RoadmapDocument
from roadmap_state import calculate_progress, completed_count, items_frame

logger = logging.getLogger(__name__)

JSON_MIME = "application/json"
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@dataclass(frozen=True)
class ExportFile:
    file_name: str
    data: bytes
    mime: str = JSON_MIME


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def _file_stem(document: RoadmapDocument) -> str:
    return re.sub(r"\s+", "_", document.title)


def export_file_name(document: RoadmapDocument, today: Optional[date] = None) -> str:
    """``My Roadmap`` exported on 2026-01-15 -> ``My_Roadmap_2026-01-15.json``."""
    day = today or today_utc()
    return f"{_file_stem(document)}_{day.isoformat()}.json"


def export_roadmap_json_bytes(document: Optional[RoadmapDocument]) -> bytes:
    """Serialize the current document, edits included, as pretty-printed UTF-8 JSON."""
    if document is None:
        raise NothingToExportError()
    payload = document.model_dump(mode="json", by_alias=True)
    return json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")


def export_roadmap(document: Optional[RoadmapDocument], today: Optional[date] = None) -> ExportFile:
    data = export_roadmap_json_bytes(document)
    name = export_file_name(document, today)
    logger.debug("Exported roadmap '%s' as %s (%d items)", document.title, name, len(document.items))
    return ExportFile(file_name=name, data=data, mime=JSON_MIME)


# ----------------------------
# Spreadsheet progress report
# ----------------------------

PROGRESS_HEADERS = ["id", "title", "status", "due_date", "notes", "links"]


def _style_header(ws) -> None:
    header_fill = PatternFill(start_color="F0F0F0", end_color="F0F0F0", fill_type="solid")
    for c in ws[1]:
        c.font = Font(bold=True)
        c.fill = header_fill
        c.alignment = Alignment(horizontal="left")


def export_progress_xlsx_bytes(document: Optional[RoadmapDocument]) -> bytes:
    """
    Write a two-sheet workbook: "Progress" (one row per item) and "Summary".

    Status cells use the display labels; notes are written in full.
    """
    if document is None:
        raise NothingToExportError()

    wb = Workbook()
    ws = wb.active
    ws.title = "Progress"
    ws.append(PROGRESS_HEADERS)
    _style_header(ws)

    df = items_frame(document)
    for item, (_, row) in zip(document.items, df.iterrows()):
        ws.append(
            [
                row["id"],
                row["title"],
                STATUSES[row["status"]].label,
                row["due_date"],
                item.user_notes or None,
                int(row["links"]),
            ]
        )

    for r in range(2, ws.max_row + 1):
        ws.cell(row=r, column=4).number_format = "yyyy-mm-dd"

    ws.column_dimensions["B"].width = 40
    ws.column_dimensions["E"].width = 60

    summary = wb.create_sheet("Summary")
    summary.append(["key", "value"])
    _style_header(summary)
    summary.append(["title", document.title])
    summary.append(["completed", completed_count(document)])
    summary.append(["total", len(document.items)])
    summary.append(["progress_percent", calculate_progress(document)])

    bio = BytesIO()
    wb.save(bio)
    return bio.getvalue()


def export_progress_report(document: Optional[RoadmapDocument], today: Optional[date] = None) -> ExportFile:
    data = export_progress_xlsx_bytes(document)
    day = today or today_utc()
    name = f"{_file_stem(document)}_progress_{day.isoformat()}.xlsx"
    return ExportFile(file_name=name, data=data, mime=XLSX_MIME)
