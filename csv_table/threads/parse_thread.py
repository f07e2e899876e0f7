from typing import Callable, List, Optional

from PyQt6.QtCore import QObject, QThread, pyqtSignal

from csv_table.errors import ParseError
from csv_table.parser import parse_csv_text


class ParseThread(QThread):
    parsed = pyqtSignal(list)  # rows of raw string fields
    failed = pyqtSignal(str)  # parser diagnostic

    def __init__(
        self,
        text: str,
        parser: Optional[Callable[[str], List[List[str]]]] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self.text = text
        self._parser = parser or parse_csv_text

    def run(self):
        try:
            rows = self._parser(self.text)
        except ParseError as exc:
            self.failed.emit(exc.message)
            return
        self.parsed.emit(rows)
