from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Iterator, Mapping, Optional

from app_config import AppConfig
from export import ExportFile, export_progress_report, export_roadmap
from roadmap_errors import LoadInProgressError, NothingToExportError, RoadmapError
from roadmap_io import parse_roadmap_bytes, read_default_roadmap
from roadmap_models import RoadmapDocument, RoadmapItem
from roadmap_state import calculate_progress, find_item, update_item

logger = logging.getLogger(__name__)

LOAD_SUCCESS_NOTICE = "Roadmap loaded successfully."


class RoadmapSession:
    """
    All mutable state of one browser session.

    The view keeps exactly one instance in ``st.session_state`` and never
    touches the document directly: loads replace it wholesale, edits go
    through update_item(), exports read it.

    Slots:
      - document: current roadmap, or None before the first successful load
      - error: last load error message ("" when the last load succeeded)
      - notice: last one-off message for the user (success / nothing to export)
      - loading: True while a load is running
    """

    def __init__(self, config: Optional[AppConfig] = None) -> None:
        self.config = config or AppConfig()
        self.document: Optional[RoadmapDocument] = None
        self.error: str = ""
        self.notice: str = ""
        self.source_name: str = ""
        self.loaded_at: str = ""
        self._load_lock = threading.Lock()

    @property
    def loading(self) -> bool:
        return self._load_lock.locked()

    @contextmanager
    def _loading(self) -> Iterator[None]:
        # Loads never overlap: a second one is rejected, not queued.
        if not self._load_lock.acquire(blocking=False):
            raise LoadInProgressError()
        try:
            yield
        finally:
            self._load_lock.release()

    def _run_load(self, loader: Callable[[], RoadmapDocument], *, source_name: str, notice: str) -> bool:
        try:
            with self._loading():
                document = loader()
        except RoadmapError as e:
            logger.error("Loading roadmap from %s failed: %s", source_name, e)
            self.error = str(e)
            return False

        # Hard replace: nothing from the previous document survives.
        self.document = document
        self.error = ""
        self.notice = notice
        self.source_name = source_name
        self.loaded_at = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        logger.info("Loaded roadmap '%s' from %s (%d items)", document.title, source_name, len(document.items))
        return True

    # ----------------------------
    # Loading
    # ----------------------------

    def load_default(self) -> bool:
        source = self.config.default_source
        return self._run_load(
            lambda: read_default_roadmap(source, timeout=self.config.fetch_timeout),
            source_name=source,
            notice="",
        )

    def load_from_file(self, raw: Optional[bytes], source_name: str = "uploaded file") -> bool:
        if raw is None:
            return False
        return self._run_load(lambda: parse_roadmap_bytes(raw), source_name=source_name, notice=LOAD_SUCCESS_NOTICE)

    # ----------------------------
    # Reading / editing
    # ----------------------------

    def progress(self) -> int:
        return calculate_progress(self.document)

    def find_item(self, item_id: str) -> Optional[RoadmapItem]:
        return find_item(self.document, item_id)

    def update_item(self, item_id: str, updates: Mapping[str, Any]) -> None:
        self.document = update_item(self.document, item_id, updates)

    def pop_notice(self) -> str:
        notice, self.notice = self.notice, ""
        return notice

    # ----------------------------
    # Export
    # ----------------------------

    def export(self) -> Optional[ExportFile]:
        try:
            return export_roadmap(self.document)
        except NothingToExportError as e:
            self.notice = str(e)
            return None

    def export_report(self) -> Optional[ExportFile]:
        try:
            return export_progress_report(self.document)
        except NothingToExportError as e:
            self.notice = str(e)
            return None
