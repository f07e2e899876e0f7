from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from PyQt6 import QtCore

CellChangeCallback = Callable[[str, int, str], None]

ROW_TYPE = "csvRow"
PREVIEW_CELLS = 5
PREVIEW_LIMIT = 50


@dataclass
class CsvRow:
    key: str
    cells: List[str] = field(default_factory=list)

    def copy(self) -> "CsvRow":
        return CsvRow(self.key, list(self.cells))

    def to_dict(self) -> dict:
        return {"_type": ROW_TYPE, "_key": self.key, "cells": list(self.cells)}

    @classmethod
    def from_dict(cls, data: dict) -> "CsvRow":
        if not isinstance(data, dict):
            raise ValueError(f"Row must be an object, got {type(data).__name__}.")
        key = data.get("_key")
        if not isinstance(key, str) or not key:
            raise ValueError("Row is missing its _key.")
        cells = data.get("cells", [])
        if not isinstance(cells, list) or not all(isinstance(cell, str) for cell in cells):
            raise ValueError(f"Row {key!r} cells must be a list of strings.")
        return cls(key, list(cells))


@dataclass(frozen=True)
class TableSnapshot:
    rows: Tuple[CsvRow, ...] = ()
    present: bool = False

    @property
    def count(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def keys(self) -> List[str]:
        return [row.key for row in self.rows]

    def cells(self) -> List[List[str]]:
        return [list(row.cells) for row in self.rows]


class TableState:
    """Ordered rows keyed by row identity.

    Only ``replace`` and ``set_cell`` mutate the table and each either
    completes or leaves it untouched.
    """

    def __init__(self, rows: Optional[Iterable[CsvRow]] = None) -> None:
        self._rows: Dict[str, CsvRow] = {}
        self._present = False
        if rows is not None:
            self.replace(rows)

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, key: object) -> bool:
        return key in self._rows

    @property
    def present(self) -> bool:
        return self._present

    def snapshot(self) -> TableSnapshot:
        return TableSnapshot(tuple(row.copy() for row in self._rows.values()), self._present)

    def replace(self, rows: Iterable[CsvRow], present: Optional[bool] = None) -> None:
        staged: Dict[str, CsvRow] = {}
        for row in rows:
            if row.key in staged:
                raise ValueError(f"Duplicate row key {row.key!r}.")
            staged[row.key] = row.copy()
        self._rows = staged
        self._present = bool(staged) if present is None else present

    def set_cell(self, key: str, cell_index: int, value: str) -> None:
        row = self._rows[key]
        if cell_index < 0 or cell_index >= len(row.cells):
            raise IndexError(f"Cell index {cell_index} out of range for row {key!r}.")
        row.cells[cell_index] = value

    def to_data(self) -> Optional[List[dict]]:
        if not self._rows:
            return None
        return [row.to_dict() for row in self._rows.values()]

    @classmethod
    def from_data(cls, data: Optional[List[dict]]) -> "TableState":
        state = cls()
        if data:
            state.replace(CsvRow.from_dict(item) for item in data)
        return state


def row_preview(cells: Optional[List[str]]) -> Tuple[str, str]:
    if cells:
        text = ", ".join(cells[:PREVIEW_CELLS])
    else:
        text = "Empty Row"
    if len(text) > PREVIEW_LIMIT:
        text = f"{text[:PREVIEW_LIMIT - 3]}..."
    return text, f"Total Cells: {len(cells or [])}"


class CsvTableModel(QtCore.QAbstractTableModel):
    def __init__(
        self,
        rows: Optional[Iterable[CsvRow]] = None,
        on_cell_change: Optional[CellChangeCallback] = None,
        parent: Optional[QtCore.QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._on_cell_change = on_cell_change
        self._rows: List[CsvRow] = []
        self._key_rows: Dict[str, int] = {}
        self._column_count = 0
        self._load(rows or [])

    @property
    def read_only(self) -> bool:
        return self._on_cell_change is None

    def rowCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return len(self._rows)

    def columnCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return self._column_count

    def data(self, index: QtCore.QModelIndex, role: int = QtCore.Qt.ItemDataRole.DisplayRole):
        if not index.isValid():
            return None
        if role in (QtCore.Qt.ItemDataRole.DisplayRole, QtCore.Qt.ItemDataRole.EditRole):
            try:
                return self._rows[index.row()].cells[index.column()]
            except IndexError:
                return ""
        return None

    def setData(self, index: QtCore.QModelIndex, value, role: int = QtCore.Qt.ItemDataRole.EditRole) -> bool:
        if not index.isValid() or role != QtCore.Qt.ItemDataRole.EditRole:
            return False
        if not self._is_real_cell(index) or self._on_cell_change is None:
            return False
        row = self._rows[index.row()]
        self._on_cell_change(row.key, index.column(), str(value))
        return True

    def flags(self, index: QtCore.QModelIndex) -> QtCore.Qt.ItemFlag:
        if not index.isValid():
            return QtCore.Qt.ItemFlag.NoItemFlags
        flags = QtCore.Qt.ItemFlag.ItemIsSelectable | QtCore.Qt.ItemFlag.ItemIsEnabled
        if not self.read_only and self._is_real_cell(index):
            flags |= QtCore.Qt.ItemFlag.ItemIsEditable
        return flags

    def headerData(self, section: int, orientation: QtCore.Qt.Orientation, role: int = QtCore.Qt.ItemDataRole.DisplayRole):
        if role == QtCore.Qt.ItemDataRole.ToolTipRole and orientation == QtCore.Qt.Orientation.Vertical:
            if 0 <= section < len(self._rows):
                return "\n".join(row_preview(self._rows[section].cells))
            return None
        if role != QtCore.Qt.ItemDataRole.DisplayRole:
            return None
        if orientation == QtCore.Qt.Orientation.Horizontal:
            return f"Column {section + 1}"
        return str(section + 1)

    def set_rows(self, rows: Iterable[CsvRow]) -> None:
        self.beginResetModel()
        self._load(rows)
        self.endResetModel()

    def update_cell(self, key: str, cell_index: int, value: str) -> bool:
        row = self._key_rows.get(key)
        if row is None:
            return False
        cells = self._rows[row].cells
        if cell_index < 0 or cell_index >= len(cells):
            return False
        cells[cell_index] = value
        index = self.index(row, cell_index)
        self.dataChanged.emit(index, index, [QtCore.Qt.ItemDataRole.DisplayRole])
        return True

    def _load(self, rows: Iterable[CsvRow]) -> None:
        self._rows = [row.copy() for row in rows]
        self._key_rows = {row.key: idx for idx, row in enumerate(self._rows)}
        self._column_count = max((len(row.cells) for row in self._rows), default=0)

    def _is_real_cell(self, index: QtCore.QModelIndex) -> bool:
        row = index.row()
        if row < 0 or row >= len(self._rows):
            return False
        return 0 <= index.column() < len(self._rows[row].cells)
