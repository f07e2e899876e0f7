from typing import Optional


class SyncError(Exception):
    """Base class for rejected intents. The table is never touched when one is raised."""

    title = "Error"

    def __init__(self, message: str, title: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if title is not None:
            self.title = title


class ValidationError(SyncError):
    title = "Input Empty"


class ImportBusyError(ValidationError):
    title = "Import Pending"


class ParseError(SyncError):
    title = "CSV Error"


class EmptyResultError(SyncError):
    title = "Parsing Failed"


class StaleReferenceError(SyncError):
    title = "Stale Edit"

    def __init__(self, key: str, cell_index: int, message: Optional[str] = None) -> None:
        if message is None:
            message = f"Row {key!r} has no cell {cell_index}."
        super().__init__(message)
        self.key = key
        self.cell_index = cell_index
