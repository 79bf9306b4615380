from datetime import date

import pytest

from roadmap_errors import ItemNotFoundError, ItemUpdateError
from roadmap_models import RoadmapDocument
from roadmap_state import (
    ITEM_COLUMNS,
    ItemDraft,
    calculate_progress,
    completed_count,
    find_item,
    items_frame,
    status_counts,
    update_item,
)


def _doc(statuses) -> RoadmapDocument:
    return RoadmapDocument.model_validate(
        {"title": "T", "items": [{"id": f"i{n}", "status": s} for n, s in enumerate(statuses)]}
    )


# ----------------------------
# Progress
# ----------------------------


def test_progress_unset_and_empty_are_zero() -> None:
    assert calculate_progress(None) == 0
    assert calculate_progress(_doc([])) == 0


@pytest.mark.parametrize(
    "completed,total,expected",
    [
        (0, 4, 0),
        (1, 4, 25),
        (4, 4, 100),
        (1, 3, 33),
        (2, 3, 67),
        (1, 8, 13),  # 12.5 rounds up
        (3, 8, 38),  # 37.5 rounds up
        (1, 200, 1),  # 0.5 rounds up
        (1, 7, 14),
    ],
)
def test_progress_rounds_half_up(completed, total, expected) -> None:
    statuses = ["completed"] * completed + ["in-progress"] * (total - completed)
    assert calculate_progress(_doc(statuses)) == expected


def test_only_completed_counts(document) -> None:
    assert completed_count(document) == 1
    assert calculate_progress(document) == 25


def test_status_counts(document) -> None:
    assert status_counts(document) == {"not-started": 2, "in-progress": 1, "completed": 1}
    assert status_counts(None) == {"not-started": 0, "in-progress": 0, "completed": 0}


# ----------------------------
# Lookup
# ----------------------------


def test_find_item(document) -> None:
    assert find_item(document, "types").title == "Types"
    assert find_item(document, "missing") is None
    assert find_item(None, "types") is None


def test_find_item_first_match_wins() -> None:
    doc = RoadmapDocument.model_validate(
        {"title": "T", "items": [{"id": "a", "title": "first"}, {"id": "a", "title": "second"}]}
    )
    assert find_item(doc, "a").title == "first"


# ----------------------------
# Mutation
# ----------------------------


def test_update_changes_only_target_item(document) -> None:
    before = list(document.items)
    updated = update_item(document, "functions", {"status": "completed"})

    assert updated is not document
    assert find_item(updated, "functions").status == "completed"
    assert calculate_progress(updated) == 50
    for old, new in zip(before, updated.items):
        if old.id != "functions":
            assert new is old
    # Original document is untouched.
    assert find_item(document, "functions").status == "not-started"
    assert document.items == before


def test_update_preserves_fields_not_in_update(document) -> None:
    updated = update_item(document, "syntax", {"userNotes": "revisit"})
    item = find_item(updated, "syntax")
    assert item.user_notes == "revisit"
    assert item.status == "completed"
    assert item.due_date == date(2026, 1, 15)
    assert item.links[0].url == "https://docs.python.org/3/tutorial/"


def test_update_accepts_field_names_and_clears_due_date(document) -> None:
    updated = update_item(document, "syntax", {"due_date": None, "user_notes": ""})
    item = find_item(updated, "syntax")
    assert item.due_date is None
    assert item.user_notes == ""


def test_update_parses_iso_due_date(document) -> None:
    updated = update_item(document, "types", {"dueDate": "2026-02-01"})
    assert find_item(updated, "types").due_date == date(2026, 2, 1)


def test_update_unknown_id_is_noop(document, caplog) -> None:
    updated = update_item(document, "missing-id", {"status": "completed"})
    assert updated is document
    assert "missing-id" in caplog.text


def test_update_unknown_id_strict_raises(document) -> None:
    with pytest.raises(ItemNotFoundError):
        update_item(document, "missing-id", {"status": "completed"}, strict=True)


def test_update_unset_document_returns_none() -> None:
    assert update_item(None, "x", {"status": "completed"}) is None


def test_update_with_invalid_status_raises_and_keeps_document(document) -> None:
    with pytest.raises(ItemUpdateError, match="status"):
        update_item(document, "types", {"status": "finished"})
    assert find_item(document, "types").status == "in-progress"


def test_update_only_first_duplicate() -> None:
    doc = RoadmapDocument.model_validate(
        {"title": "T", "items": [{"id": "a"}, {"id": "a"}]}
    )
    updated = update_item(doc, "a", {"status": "completed"})
    assert [i.status for i in updated.items] == ["completed", "not-started"]


# ----------------------------
# Edit draft
# ----------------------------


def test_draft_round_trip(document) -> None:
    item = find_item(document, "syntax")
    draft = ItemDraft.from_item(item)
    assert draft == ItemDraft(status="completed", due_date=date(2026, 1, 15), notes="done in week 1")


def test_draft_update_normalizes_cleared_date(document) -> None:
    draft = ItemDraft(status="in-progress", due_date=None, notes="x")
    assert draft.as_update() == {"status": "in-progress", "dueDate": None, "userNotes": "x"}
    assert ItemDraft(status="completed", due_date="").as_update()["dueDate"] is None


def test_draft_applied_as_one_update(document) -> None:
    draft = ItemDraft.from_item(find_item(document, "functions"))
    draft.status = "in-progress"
    draft.due_date = date(2026, 5, 1)
    draft.notes = "decorators next"
    updated = update_item(document, "functions", draft.as_update())
    item = find_item(updated, "functions")
    assert (item.status, item.due_date, item.user_notes) == ("in-progress", date(2026, 5, 1), "decorators next")


# ----------------------------
# Table
# ----------------------------


def test_items_frame(document) -> None:
    df = items_frame(document)
    assert list(df.columns) == ITEM_COLUMNS
    assert df["id"].tolist() == ["syntax", "types", "functions", "classes"]
    assert df["has_notes"].tolist() == [True, False, False, False]
    assert df["links"].tolist() == [1, 0, 0, 0]


def test_items_frame_empty() -> None:
    df = items_frame(None)
    assert list(df.columns) == ITEM_COLUMNS
    assert df.empty
