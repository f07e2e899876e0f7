import functools
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from PyQt6 import QtCore

from csv_table.config import STALE_EDIT_POLICIES, STALE_IGNORE, STALE_REPORT
from csv_table.errors import (
    EmptyResultError,
    ImportBusyError,
    ParseError,
    StaleReferenceError,
    SyncError,
    ValidationError,
)
from csv_table.keys import KeyGenerator, assign_row_keys
from csv_table.models import TableSnapshot, TableState
from csv_table.parser import parse_csv_text
from csv_table.patches import DATA_FIELD, Patch, ReplaceField, SetCellField
from csv_table.threads.parse_thread import ParseThread

Parser = Callable[[str], List[List[str]]]


@dataclass
class SyncResult:
    ok: bool
    count: int = 0
    error: Optional[SyncError] = None
    patches: List[Patch] = field(default_factory=list)
    dropped: bool = False
    pending: bool = False


class SyncEngine(QtCore.QObject):
    """Owns the table and turns import, clear and cell edit intents into patches.

    Every intent returns a SyncResult. A rejected intent reports its error
    there and through ``notice`` and never changes the table.
    """

    table_replaced = QtCore.pyqtSignal(object)
    cell_changed = QtCore.pyqtSignal(str, int, str)
    patches_emitted = QtCore.pyqtSignal(object)
    busy_changed = QtCore.pyqtSignal(bool)
    stale_edit = QtCore.pyqtSignal(str, int)
    notice = QtCore.pyqtSignal(str, str, str)  # status, title, description
    import_finished = QtCore.pyqtSignal(object)

    def __init__(
        self,
        state: Optional[TableState] = None,
        key_generator: Optional[KeyGenerator] = None,
        parser: Optional[Parser] = None,
        stale_edit_policy: str = STALE_REPORT,
        parent: Optional[QtCore.QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._state = state if state is not None else TableState()
        self._key_generator = key_generator
        self._parser = parser or parse_csv_text
        self._stale_edit_policy = STALE_REPORT
        self.stale_edit_policy = stale_edit_policy
        self._busy = False
        self._thread: Optional[ParseThread] = None

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def stale_edit_policy(self) -> str:
        return self._stale_edit_policy

    @stale_edit_policy.setter
    def stale_edit_policy(self, value: str) -> None:
        if value not in STALE_EDIT_POLICIES:
            raise ValueError(f"Unknown stale edit policy: {value}")
        self._stale_edit_policy = value

    @property
    def row_count(self) -> int:
        return len(self._state)

    @property
    def has_data(self) -> bool:
        return len(self._state) > 0

    def query(self) -> TableSnapshot:
        return self._state.snapshot()

    def load_state(self, state: TableState) -> SyncResult:
        """Adopt a table read back from the host document without emitting patches.

        Refused while an import is pending, since the import would land on top of it.
        """
        if self._busy:
            return self._reject(ImportBusyError("An import is already in progress."), "warning")
        self._state = state
        self.table_replaced.emit(self._state.snapshot())
        return SyncResult(True, len(state))

    def import_text(self, text: Optional[str], delimiter: Optional[str] = None) -> SyncResult:
        if self._busy:
            return self._reject(ImportBusyError("An import is already in progress."), "warning")
        if not text:
            return self._reject(ValidationError("Please upload a file or paste CSV text."), "warning")
        try:
            parsed_rows = self._parser_for(delimiter)(text)
        except ParseError as exc:
            return self._reject(exc)
        return self._install_parsed(parsed_rows)

    def begin_import(self, text: Optional[str], delimiter: Optional[str] = None) -> SyncResult:
        if self._busy:
            return self._reject(ImportBusyError("An import is already in progress."), "warning")
        if not text:
            return self._reject(ValidationError("Please upload a file or paste CSV text."), "warning")
        thread = ParseThread(text, self._parser_for(delimiter), self)
        thread.parsed.connect(self._on_parsed)
        thread.failed.connect(self._on_parse_failed)
        thread.finished.connect(self._on_thread_finished)
        self._thread = thread
        self._set_busy(True)
        thread.start()
        return SyncResult(True, pending=True)

    def wait_for_import(self) -> None:
        thread = self._thread
        if thread is None:
            return
        thread.wait()
        QtCore.QCoreApplication.processEvents()

    def replace_all(self, parsed_rows: Sequence[Sequence[str]]) -> SyncResult:
        if self._busy:
            return self._reject(ImportBusyError("An import is already in progress."), "warning")
        return self._replace(parsed_rows)

    def clear(self) -> SyncResult:
        result = self.replace_all([])
        if result.ok:
            self.notice.emit(
                "info", "Data Cleared", "The table data has been removed from the document."
            )
        return result

    def edit_cell(self, key: str, cell_index: int, value: str) -> SyncResult:
        try:
            self._state.set_cell(key, cell_index, value)
        except (KeyError, IndexError):
            self.stale_edit.emit(key, cell_index)
            if self._stale_edit_policy == STALE_IGNORE:
                return SyncResult(True, len(self._state), dropped=True)
            return self._reject(StaleReferenceError(key, cell_index), "warning")
        patch = SetCellField(key, cell_index, value)
        self.cell_changed.emit(key, cell_index, value)
        self.patches_emitted.emit([patch])
        return SyncResult(True, len(self._state), patches=[patch])

    def _parser_for(self, delimiter: Optional[str]) -> Parser:
        if delimiter is None:
            return self._parser
        return functools.partial(self._parser, delimiter=delimiter)

    def _install_parsed(self, parsed_rows: Sequence[Sequence[str]]) -> SyncResult:
        if not parsed_rows:
            return self._reject(EmptyResultError("Could not extract any data. Check the format."))
        result = self._replace(parsed_rows)
        if result.ok:
            self.notice.emit(
                "success", "Data Imported", f"Successfully imported {result.count} rows."
            )
        return result

    def _replace(self, parsed_rows: Sequence[Sequence[str]]) -> SyncResult:
        try:
            rows = assign_row_keys(parsed_rows, self._key_generator)
            self._state.replace(rows)
        except ValueError as exc:
            return self._reject(ValidationError(str(exc), title="Import Failed"))
        patch = ReplaceField(DATA_FIELD, self._state.to_data())
        self.table_replaced.emit(self._state.snapshot())
        self.patches_emitted.emit([patch])
        return SyncResult(True, len(rows), patches=[patch])

    def _reject(self, error: SyncError, status: str = "error") -> SyncResult:
        self.notice.emit(status, error.title, error.message)
        return SyncResult(False, error=error)

    def _set_busy(self, busy: bool) -> None:
        if self._busy == busy:
            return
        self._busy = busy
        self.busy_changed.emit(busy)

    @QtCore.pyqtSlot(list)
    def _on_parsed(self, parsed_rows: list) -> None:
        self._set_busy(False)
        self.import_finished.emit(self._install_parsed(parsed_rows))

    @QtCore.pyqtSlot(str)
    def _on_parse_failed(self, message: str) -> None:
        self._set_busy(False)
        self.import_finished.emit(self._reject(ParseError(message)))

    @QtCore.pyqtSlot()
    def _on_thread_finished(self) -> None:
        thread = self._thread
        self._thread = None
        if thread is not None:
            thread.deleteLater()
        if self._busy:
            self._set_busy(False)
            self.import_finished.emit(self._reject(ParseError("The parser stopped unexpectedly.")))
