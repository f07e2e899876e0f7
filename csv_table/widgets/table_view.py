from typing import Iterable, Optional

from PyQt6 import QtCore, QtWidgets

from csv_table.models import CellChangeCallback, CsvRow, CsvTableModel

CELL_MIN_WIDTH = 150


class CsvTableView(QtWidgets.QWidget):
    """Grid over keyed rows. Read-only unless an edit callback is given."""

    def __init__(
        self,
        rows: Optional[Iterable[CsvRow]] = None,
        on_cell_change: Optional[CellChangeCallback] = None,
        parent: Optional[QtWidgets.QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._model = CsvTableModel(rows, on_cell_change, self)

        self._table_view = QtWidgets.QTableView(self)
        self._table_view.setModel(self._model)
        self._table_view.setAlternatingRowColors(True)
        self._table_view.setSelectionBehavior(QtWidgets.QAbstractItemView.SelectionBehavior.SelectItems)
        self._table_view.setWordWrap(True)
        self._table_view.setTextElideMode(QtCore.Qt.TextElideMode.ElideNone)
        self._table_view.horizontalHeader().setStretchLastSection(True)
        self._table_view.horizontalHeader().setMinimumSectionSize(CELL_MIN_WIDTH)
        if self._model.read_only:
            self._table_view.setEditTriggers(QtWidgets.QAbstractItemView.EditTrigger.NoEditTriggers)

        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self._table_view)

    @property
    def model(self) -> CsvTableModel:
        return self._model

    @property
    def read_only(self) -> bool:
        return self._model.read_only

    def set_rows(self, rows: Iterable[CsvRow]) -> None:
        self._model.set_rows(rows)

    def update_cell(self, key: str, cell_index: int, value: str) -> None:
        self._model.update_cell(key, cell_index, value)
