import os
from typing import Optional

from PyQt6 import QtCore, QtWidgets

from csv_table.engine import SyncEngine, SyncResult
from csv_table.models import TableSnapshot
from csv_table.parser import delimiter_for_path
from csv_table.widgets.table_view import CsvTableView

CSV_EXTENSIONS = (".csv", ".tsv")


class CsvImportWidget(QtWidgets.QWidget):
    notice = QtCore.pyqtSignal(str, str, str)  # status, title, description

    def __init__(
        self,
        engine: SyncEngine,
        async_import: bool = True,
        parent: Optional[QtWidgets.QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._engine = engine
        self._async_import = async_import
        self._start_dir = QtCore.QDir.currentPath()
        self._delimiter: Optional[str] = None

        title = QtWidgets.QLabel("CSV Data Importer", self)
        title.setStyleSheet("font-weight: bold;")

        file_box = QtWidgets.QGroupBox("1. Upload a CSV File", self)
        file_layout = QtWidgets.QHBoxLayout(file_box)
        self._choose_btn = QtWidgets.QPushButton("Choose CSV File", self)
        self._ready_label = QtWidgets.QLabel("Content Ready", self)
        self._ready_label.setVisible(False)
        file_layout.addWidget(self._choose_btn)
        file_layout.addWidget(self._ready_label)
        file_layout.addStretch(1)

        text_box = QtWidgets.QGroupBox("2. Or Paste Raw CSV Text", self)
        text_layout = QtWidgets.QVBoxLayout(text_box)
        self._raw_edit = QtWidgets.QPlainTextEdit(self)
        self._raw_edit.setPlaceholderText("Paste your comma-separated values (CSV) here...")
        self._raw_edit.setLineWrapMode(QtWidgets.QPlainTextEdit.LineWrapMode.NoWrap)
        text_layout.addWidget(self._raw_edit)

        self._parse_btn = QtWidgets.QPushButton("Parse and Load Data", self)
        self._clear_btn = QtWidgets.QPushButton("Clear All", self)
        button_layout = QtWidgets.QHBoxLayout()
        button_layout.addWidget(self._parse_btn)
        button_layout.addWidget(self._clear_btn)
        button_layout.addStretch(1)

        self._status_label = QtWidgets.QLabel(self)
        self._status_label.setStyleSheet("font-weight: bold;")
        self._hint_label = QtWidgets.QLabel("You can edit the values directly in the table below.", self)
        self._table = CsvTableView(on_cell_change=self._on_cell_change, parent=self)

        layout = QtWidgets.QVBoxLayout(self)
        layout.addWidget(title)
        layout.addWidget(file_box)
        layout.addWidget(text_box)
        layout.addLayout(button_layout)
        layout.addWidget(self._status_label)
        layout.addWidget(self._hint_label)
        layout.addWidget(self._table, 1)

        self._choose_btn.clicked.connect(self.choose_file)
        self._parse_btn.clicked.connect(self.parse)
        self._clear_btn.clicked.connect(self.clear)
        self._raw_edit.textChanged.connect(self._refresh_controls)

        self._engine.table_replaced.connect(self._on_table_replaced)
        self._engine.cell_changed.connect(self._table.update_cell)
        self._engine.busy_changed.connect(lambda _: self._refresh_controls())
        self._engine.import_finished.connect(self._on_import_finished)

        self._on_table_replaced(self._engine.query())

    @property
    def table(self) -> CsvTableView:
        return self._table

    def raw_input(self) -> str:
        return self._raw_edit.toPlainText()

    def set_raw_input(self, text: str) -> None:
        self._delimiter = None
        self._raw_edit.setPlainText(text)

    def set_start_dir(self, path: str) -> None:
        self._start_dir = path

    def choose_file(self) -> None:
        path, _ = QtWidgets.QFileDialog.getOpenFileName(
            self, "Choose CSV File", self._start_dir, "CSV Files (*.csv *.tsv)"
        )
        if path:
            self._start_dir = os.path.dirname(path)
            self.load_file(path)

    def load_file(self, path: str) -> bool:
        if not path or not path.lower().endswith(CSV_EXTENSIONS):
            self.notice.emit("error", "Invalid File", "Please select a CSV file.")
            return False
        try:
            with open(path, "r", encoding="utf-8", newline="") as handle:
                text = handle.read()
        except (OSError, UnicodeDecodeError):
            self.notice.emit("error", "File Read Error", "Could not read the file.")
            return False
        self.set_raw_input(text)
        self._delimiter = delimiter_for_path(path)
        self.notice.emit(
            "info",
            "File Loaded",
            'CSV content loaded into text area. Click "Parse and Load" to process.',
        )
        return True

    def parse(self) -> SyncResult:
        text = self.raw_input()
        if self._async_import:
            return self._engine.begin_import(text, self._delimiter)
        result = self._engine.import_text(text, self._delimiter)
        self._after_import(result)
        return result

    def clear(self) -> SyncResult:
        result = self._engine.clear()
        if result.ok:
            self._delimiter = None
            self._raw_edit.clear()
        return result

    def _on_cell_change(self, key: str, cell_index: int, value: str) -> None:
        self._engine.edit_cell(key, cell_index, value)

    def _on_import_finished(self, result: SyncResult) -> None:
        self._after_import(result)

    def _after_import(self, result: SyncResult) -> None:
        if result.ok:
            self._delimiter = None
            self._raw_edit.clear()
        self._refresh_controls()

    def _on_table_replaced(self, snapshot: TableSnapshot) -> None:
        self._table.set_rows(snapshot.rows)
        has_rows = snapshot.count > 0
        self._status_label.setText(f"Data Loaded: {snapshot.count} Rows")
        self._status_label.setVisible(has_rows)
        self._hint_label.setVisible(has_rows)
        self._table.setVisible(has_rows)
        self._refresh_controls()

    def _refresh_controls(self) -> None:
        busy = self._engine.busy
        has_input = bool(self.raw_input())
        self._ready_label.setVisible(has_input)
        self._parse_btn.setText("Parsing..." if busy else "Parse and Load Data")
        self._parse_btn.setEnabled(has_input and not busy)
        self._choose_btn.setEnabled(not busy)
        self._raw_edit.setReadOnly(busy)
        self._clear_btn.setEnabled(self._engine.has_data or has_input)
