import os
from typing import Optional

from PyQt6 import QtGui, QtWidgets

from csv_table.config import STALE_IGNORE, STALE_REPORT, Settings
from csv_table.engine import SyncEngine
from csv_table.models import TableSnapshot
from csv_table.patches import TableDocument
from csv_table.widgets.importer import CsvImportWidget
from csv_table.widgets.preview import CsvTablePreview

DOCUMENT_FILTER = "Table Documents (*.json)"


class MainWindow(QtWidgets.QMainWindow):
    def __init__(self, settings: Optional[Settings] = None) -> None:
        super().__init__()
        self.resize(1100, 760)
        self._settings = settings or Settings()
        self._document = TableDocument()
        self._dirty = False

        self._engine = SyncEngine(
            state=self._document.state(),
            stale_edit_policy=self._settings.stale_edit_policy,
            parent=self,
        )
        self._importer = CsvImportWidget(self._engine, self._settings.async_import, self)
        self._importer.set_start_dir(self._settings.last_import_dir)
        self._preview = CsvTablePreview(parent=self)

        self._tabs = QtWidgets.QTabWidget(self)
        self._tabs.addTab(self._importer, "Editor")
        self._tabs.addTab(self._preview, "Preview")
        self.setCentralWidget(self._tabs)
        self._status_bar = self.statusBar()
        self._status_bar.showMessage("Ready")

        self._engine.patches_emitted.connect(self._apply_patches)
        self._engine.table_replaced.connect(self._on_table_replaced)
        self._engine.cell_changed.connect(lambda *_: self._preview.set_rows(self._engine.query().rows))
        self._engine.notice.connect(self._show_notice)
        self._importer.notice.connect(self._show_notice)

        self._build_actions()
        self._update_window_title()
        last_path = self._settings.last_document_path
        if last_path and os.path.exists(last_path):
            self.open_document(last_path)

    @property
    def document(self) -> TableDocument:
        return self._document

    @property
    def engine(self) -> SyncEngine:
        return self._engine

    @property
    def importer(self) -> CsvImportWidget:
        return self._importer

    def is_dirty(self) -> bool:
        return self._dirty

    def _build_actions(self) -> None:
        new_action = QtGui.QAction("New", self)
        new_action.setShortcut(QtGui.QKeySequence.StandardKey.New)
        new_action.triggered.connect(self.new_document)

        open_action = QtGui.QAction("Open Document...", self)
        open_action.setShortcut(QtGui.QKeySequence.StandardKey.Open)
        open_action.triggered.connect(self.open_document_dialog)

        save_action = QtGui.QAction("Save Document", self)
        save_action.setShortcut(QtGui.QKeySequence.StandardKey.Save)
        save_action.triggered.connect(self.save_document)

        save_as_action = QtGui.QAction("Save Document As...", self)
        save_as_action.setShortcut(QtGui.QKeySequence.StandardKey.SaveAs)
        save_as_action.triggered.connect(self.save_document_as)

        import_action = QtGui.QAction("Import CSV...", self)
        import_action.setShortcut(QtGui.QKeySequence("Ctrl+I"))
        import_action.triggered.connect(self._importer.choose_file)

        clear_action = QtGui.QAction("Clear All", self)
        clear_action.triggered.connect(self._importer.clear)

        report_stale_action = QtGui.QAction("Report Stale Edits", self)
        report_stale_action.setCheckable(True)
        report_stale_action.setChecked(self._engine.stale_edit_policy == STALE_REPORT)
        report_stale_action.toggled.connect(self._set_report_stale_edits)

        file_menu = self.menuBar().addMenu("File")
        file_menu.addAction(new_action)
        file_menu.addAction(open_action)
        file_menu.addSeparator()
        file_menu.addAction(save_action)
        file_menu.addAction(save_as_action)
        file_menu.addSeparator()
        file_menu.addAction(import_action)

        edit_menu = self.menuBar().addMenu("Edit")
        edit_menu.addAction(clear_action)
        edit_menu.addSeparator()
        edit_menu.addAction(report_stale_action)

    def _set_report_stale_edits(self, checked: bool) -> None:
        policy = STALE_REPORT if checked else STALE_IGNORE
        self._engine.stale_edit_policy = policy
        self._settings.stale_edit_policy = policy

    def new_document(self) -> bool:
        if self._dirty and not self._confirm_discard():
            return False
        return self._set_document(TableDocument())

    def open_document_dialog(self) -> None:
        if self._dirty and not self._confirm_discard():
            return
        path, _ = QtWidgets.QFileDialog.getOpenFileName(
            self, "Open Document", self._settings.last_import_dir, DOCUMENT_FILTER
        )
        if path:
            self.open_document(path)

    def open_document(self, path: str) -> bool:
        try:
            document = TableDocument.load(path)
        except (OSError, ValueError, KeyError) as exc:
            QtWidgets.QMessageBox.warning(self, "Open failed", str(exc))
            return False
        if not self._set_document(document):
            return False
        self._settings.last_document_path = path
        self._status_bar.showMessage(f"Opened: {os.path.basename(path)}")
        return True

    def save_document(self) -> bool:
        if not self._document.path:
            return self.save_document_as()
        return self._save_to(self._document.path)

    def save_document_as(self) -> bool:
        path, _ = QtWidgets.QFileDialog.getSaveFileName(
            self, "Save Document As", self._document.path or "table.json", DOCUMENT_FILTER
        )
        if not path:
            return False
        return self._save_to(path)

    def _save_to(self, path: str) -> bool:
        try:
            self._document.save(path)
        except (OSError, ValueError) as exc:
            QtWidgets.QMessageBox.warning(self, "Save failed", str(exc))
            return False
        self._dirty = False
        self._settings.last_document_path = path
        self._update_window_title()
        self._status_bar.showMessage(f"Saved: {os.path.basename(path)}")
        return True

    def _set_document(self, document: TableDocument) -> bool:
        if not self._engine.load_state(document.state()).ok:
            return False
        self._document = document
        self._dirty = False
        self._update_window_title()
        return True

    def _apply_patches(self, patches: list) -> None:
        self._document.apply(patches)
        self._dirty = True
        self._update_window_title()

    def _on_table_replaced(self, snapshot: TableSnapshot) -> None:
        self._preview.set_rows(snapshot.rows)
        self._tabs.setTabText(1, f"Preview ({snapshot.count})")

    def _show_notice(self, status: str, title: str, description: str) -> None:
        self._status_bar.showMessage(f"{title}: {description}", 5000)
        if status == "error":
            QtWidgets.QMessageBox.warning(self, title, description)

    def _update_window_title(self) -> None:
        name = os.path.basename(self._document.path) if self._document.path else "Untitled"
        marker = "*" if self._dirty else ""
        self.setWindowTitle(f"{name}{marker} - CsvTable")

    def _confirm_discard(self) -> bool:
        result = QtWidgets.QMessageBox.question(
            self,
            "Unsaved changes",
            "The document has unsaved changes. Save them first?",
            QtWidgets.QMessageBox.StandardButton.Save
            | QtWidgets.QMessageBox.StandardButton.Discard
            | QtWidgets.QMessageBox.StandardButton.Cancel,
        )
        if result == QtWidgets.QMessageBox.StandardButton.Save:
            return self.save_document()
        if result == QtWidgets.QMessageBox.StandardButton.Discard:
            return True
        return False

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:
        self._engine.wait_for_import()
        if self._dirty and not self._confirm_discard():
            event.ignore()
            return
        self._settings.sync()
        event.accept()
