from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List

import requests
from pydantic import ValidationError

from roadmap_errors import FileReadError, FormatError, NetworkFetchError, ParseError
from roadmap_models import RoadmapDocument

logger = logging.getLogger(__name__)

INVALID_FORMAT_MESSAGE = "Invalid file format. Expected JSON with 'title' and 'items' fields."


def validation_messages(ve: ValidationError) -> List[str]:
    """Flatten a pydantic error into lines like ``items.2.status: Input should be ...``."""
    out: List[str] = []
    for err in ve.errors():
        loc = ".".join([str(x) for x in err.get("loc", [])])
        msg = err.get("msg", "Invalid value")
        out.append(f"{loc}: {msg}" if loc else msg)
    return out


def _duplicate_ids(document: RoadmapDocument) -> List[str]:
    seen: set[str] = set()
    dups: List[str] = []
    for item in document.items:
        if item.id is None:
            continue
        if item.id in seen and item.id not in dups:
            dups.append(item.id)
        seen.add(item.id)
    return dups


def _reject_constant(name: str) -> Any:
    # NaN / Infinity cannot be written back out as JSON.
    raise ValueError(f"{name} is not a valid JSON value")


def parse_roadmap_json(data: Any) -> RoadmapDocument:
    """Validate already-decoded JSON and fill in item defaults."""
    if not isinstance(data, dict) or not data.get("title") or not isinstance(data.get("items"), list):
        raise FormatError(INVALID_FORMAT_MESSAGE)

    try:
        document = RoadmapDocument.model_validate(data)
    except ValidationError as ve:
        details = "; ".join(validation_messages(ve))
        raise FormatError(f"{INVALID_FORMAT_MESSAGE} {details}") from ve

    dups = _duplicate_ids(document)
    if dups:
        # Lookups take the first match; later duplicates are unreachable.
        logger.warning("Roadmap '%s' has duplicate item ids: %s", document.title, ", ".join(dups))
    return document


def parse_roadmap_bytes(raw: bytes) -> RoadmapDocument:
    """
    Turn the bytes of a roadmap file into a validated document.

    Steps (each failure has its own error type):
      1) UTF-8 decode            -> FileReadError
      2) JSON parse              -> ParseError (NaN / Infinity rejected)
      3) title / items shape     -> FormatError
      4) per-field validation    -> FormatError
    """
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise FileReadError(f"Unable to read the file as UTF-8 text. Details: {e}") from e

    try:
        data = json.loads(text, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as e:
        # JSONDecodeError is a ValueError; so are over-long integer literals.
        raise ParseError(f"The file is not valid JSON. Details: {e}") from e

    return parse_roadmap_json(data)


def _is_url(source: str) -> bool:
    return source.strip().lower().startswith(("http://", "https://"))


def read_default_bytes(source: str, *, timeout: float = 10.0) -> bytes:
    """Fetch the raw bytes of the default roadmap from a URL or a local path."""
    if _is_url(source):
        try:
            response = requests.get(source.strip(), timeout=timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise NetworkFetchError(f"Could not load the example roadmap. Details: {e}") from e
        return response.content

    try:
        return Path(source).read_bytes()
    except OSError as e:
        raise NetworkFetchError(f"Could not load the example roadmap from {source}. Details: {e}") from e


def read_default_roadmap(source: str, *, timeout: float = 10.0) -> RoadmapDocument:
    raw = read_default_bytes(source, timeout=timeout)
    return parse_roadmap_bytes(raw)
