from typing import Iterable, Optional

from PyQt6 import QtWidgets

from csv_table.models import CsvRow
from csv_table.widgets.table_view import CsvTableView


class CsvTablePreview(QtWidgets.QWidget):
    def __init__(
        self, rows: Optional[Iterable[CsvRow]] = None, parent: Optional[QtWidgets.QWidget] = None
    ) -> None:
        super().__init__(parent)
        layout = QtWidgets.QVBoxLayout(self)
        self._title = QtWidgets.QLabel(self)
        self._title.setStyleSheet("font-weight: bold;")
        self._view = CsvTableView(parent=self)
        layout.addWidget(self._title)
        layout.addWidget(self._view)
        self.set_rows(rows or [])

    @property
    def title(self) -> str:
        return self._title.text()

    @property
    def view(self) -> CsvTableView:
        return self._view

    def set_rows(self, rows: Iterable[CsvRow]) -> None:
        rows = list(rows)
        if not rows:
            self._title.setText("No CSV data")
            self._view.hide()
        else:
            self._title.setText(f"CSV Table Preview ({len(rows)} rows)")
            self._view.show()
        self._view.set_rows(rows)
