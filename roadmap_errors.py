from __future__ import annotations

# Every error carries a message that can be shown to the user as-is.
# Subclassing ValueError keeps `except ValueError` call sites working.


class RoadmapError(ValueError):
    """Base class for roadmap load/edit/export failures."""


class NetworkFetchError(RoadmapError):
    """The default roadmap resource could not be obtained."""


class FileReadError(RoadmapError):
    """The selected file could not be read or decoded as UTF-8."""


class ParseError(RoadmapError):
    """The content is not valid JSON."""


class FormatError(RoadmapError):
    """The parsed content is missing required fields or has invalid values."""


class ItemUpdateError(FormatError):
    """An item edit produced an invalid item (bad status, bad date, ...)."""


class ItemNotFoundError(RoadmapError):
    def __init__(self, item_id: str) -> None:
        super().__init__(f"No item with id '{item_id}' in the current roadmap.")
        self.item_id = item_id


class NothingToExportError(RoadmapError):
    def __init__(self) -> None:
        super().__init__("Nothing to export.")


class LoadInProgressError(RoadmapError):
    def __init__(self) -> None:
        super().__init__("A roadmap is already loading. Wait for it to finish and try again.")
