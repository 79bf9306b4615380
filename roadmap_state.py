from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd
from pydantic import ValidationError

from roadmap_errors import ItemNotFoundError, ItemUpdateError
from roadmap_io import validation_messages
from roadmap_models import COMPLETED_STATUS, STATUS_VALUES, ItemStatus, RoadmapDocument, RoadmapItem

logger = logging.getLogger(__name__)

ITEM_COLUMNS = ["id", "title", "status", "due_date", "has_notes", "links"]

# JSON names accepted in updates, mapped to model field names.
_UPDATE_ALIASES = {"userNotes": "user_notes", "dueDate": "due_date"}


# ----------------------------
# Progress
# ----------------------------


def completed_count(document: Optional[RoadmapDocument]) -> int:
    if document is None:
        return 0
    return sum(1 for item in document.items if item.status == COMPLETED_STATUS)


def calculate_progress(document: Optional[RoadmapDocument]) -> int:
    """
    Percentage of completed items, 0..100.

    Rounds half up (1 of 8 -> 12.5 -> 13), unlike Python's round(). Done in
    integers so there is no float error at the .5 boundary.
    """
    if document is None or not document.items:
        return 0
    total = len(document.items)
    return (200 * completed_count(document) + total) // (2 * total)


def status_counts(document: Optional[RoadmapDocument]) -> Dict[str, int]:
    counts = {s: 0 for s in STATUS_VALUES}
    if document is None:
        return counts
    for item in document.items:
        counts[item.status] += 1
    return counts


# ----------------------------
# Lookup / mutation
# ----------------------------


def _index_of(document: RoadmapDocument, item_id: str) -> Optional[int]:
    for idx, item in enumerate(document.items):
        if item.id == item_id:
            return idx
    return None


def find_item(document: Optional[RoadmapDocument], item_id: str) -> Optional[RoadmapItem]:
    """First item with this id, or None (also None when nothing is loaded)."""
    if document is None:
        return None
    idx = _index_of(document, item_id)
    return None if idx is None else document.items[idx]


def update_item(
    document: Optional[RoadmapDocument],
    item_id: str,
    updates: Mapping[str, Any],
    *,
    strict: bool = False,
) -> Optional[RoadmapDocument]:
    """Return a new document with one item shallow-merged with ``updates``.

    Keys may be JSON names (``userNotes``) or field names (``user_notes``).
    Every other item is carried over as the same object. An unknown id
    returns ``document`` itself, or raises ItemNotFoundError when ``strict``.
    """
    if document is None:
        return None

    idx = _index_of(document, item_id)
    if idx is None:
        if strict:
            raise ItemNotFoundError(item_id)
        logger.warning("Update ignored: no item with id %r in roadmap '%s'", item_id, document.title)
        return document

    merged: Dict[str, Any] = document.items[idx].model_dump()
    merged.update({_UPDATE_ALIASES.get(k, k): v for k, v in updates.items()})
    try:
        new_item = RoadmapItem.model_validate(merged)
    except ValidationError as ve:
        details = "; ".join(validation_messages(ve))
        raise ItemUpdateError(f"Invalid update for item '{item_id}': {details}") from ve

    items = list(document.items)
    items[idx] = new_item
    logger.info("Updated item %r (%s)", item_id, ", ".join(sorted(updates.keys())))
    return document.model_copy(update={"items": items})


@dataclass
class ItemDraft:
    """Unsaved edits on the detail screen. Applied in one update on save."""

    status: ItemStatus
    due_date: Optional[date] = None
    notes: str = ""

    @classmethod
    def from_item(cls, item: RoadmapItem) -> "ItemDraft":
        return cls(status=item.status, due_date=item.due_date, notes=item.user_notes)

    def as_update(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "dueDate": self.due_date or None,
            "userNotes": self.notes,
        }


# ----------------------------
# Tabular view
# ----------------------------


def items_frame(document: Optional[RoadmapDocument]) -> pd.DataFrame:
    """One row per item in display order, for st.dataframe and the spreadsheet report."""
    if document is None or not document.items:
        return pd.DataFrame(columns=ITEM_COLUMNS)
    rows: List[Dict[str, Any]] = [
        {
            "id": item.id,
            "title": item.title,
            "status": item.status,
            "due_date": item.due_date,
            "has_notes": bool(item.user_notes.strip()),
            "links": len(item.links),
        }
        for item in document.items
    ]
    return pd.DataFrame(rows, columns=ITEM_COLUMNS)
