from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# The only statuses an item can ever be in. pydantic rejects anything else,
# so a loaded item never carries an unknown status.
ItemStatus = Literal["not-started", "in-progress", "completed"]

STATUS_VALUES: List[str] = ["not-started", "in-progress", "completed"]
DEFAULT_STATUS = "not-started"
COMPLETED_STATUS = "completed"


@dataclass(frozen=True)
class StatusInfo:
    label: str
    color: str
    icon: str


STATUSES: Dict[str, StatusInfo] = {
    "not-started": StatusInfo(label="Not started", color="#9CA3AF", icon="⭕"),
    "in-progress": StatusInfo(label="In progress", color="#F59E0B", icon="🔄"),
    "completed": StatusInfo(label="Completed", color="#10B981", icon="✅"),
}


def _blank_to_none(v: Any) -> Any:
    if v is None:
        return None
    if isinstance(v, str) and not v.strip():
        return None
    return v


class RoadmapLink(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    title: str = ""
    url: str

    @field_validator("title", mode="before")
    @classmethod
    def _title_none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class RoadmapItem(BaseModel):
    """One topic of a roadmap.

    Field names are snake_case in Python; the JSON file uses camelCase for
    ``userNotes`` and ``dueDate``. Keys we do not know about are kept so an
    export gives back everything that was loaded.
    """

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    id: Optional[str] = None
    title: str = ""
    description: str = ""
    links: List[RoadmapLink] = Field(default_factory=list)
    status: ItemStatus = DEFAULT_STATUS
    user_notes: str = Field(default="", alias="userNotes")
    due_date: Optional[date] = Field(default=None, alias="dueDate")

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, v: Any) -> Any:
        # Hand-written files sometimes use numbers as ids.
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("title", "description", "user_notes", mode="before")
    @classmethod
    def _text_none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("links", mode="before")
    @classmethod
    def _links_none_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("status", mode="before")
    @classmethod
    def _status_default(cls, v: Any) -> Any:
        v = _blank_to_none(v)
        if v is None:
            return DEFAULT_STATUS
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("due_date", mode="before")
    @classmethod
    def _due_date_iso(cls, v: Any) -> Any:
        v = _blank_to_none(v)
        if isinstance(v, str):
            # Accept full ISO timestamps, keep the calendar date only.
            return v.strip().split("T", 1)[0]
        return v


class RoadmapDocument(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    title: str
    description: str = ""
    items: List[RoadmapItem]

    @field_validator("title")
    @classmethod
    def _title_not_empty(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("title is required.")
        return v

    @field_validator("description", mode="before")
    @classmethod
    def _description_none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v
