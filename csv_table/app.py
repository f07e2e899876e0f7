import argparse
import faulthandler
import signal
import sys
import traceback
from typing import List, Optional

from PyQt6 import QtCore, QtWidgets

from csv_table.config import APPLICATION, ORGANIZATION
from csv_table.widgets.importer import CSV_EXTENSIONS
from csv_table.windows.main_window import MainWindow


def _parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="csv-table", description="Import and edit CSV tables.")
    parser.add_argument("path", nargs="?", help="table document (.json) or CSV file to load")
    args, _ = parser.parse_known_args(argv)
    return args


def _open_path(window: MainWindow, path: Optional[str]) -> bool:
    if not path:
        return False
    if path.lower().endswith(CSV_EXTENSIONS):
        return window.importer.load_file(path)
    return window.open_document(path)


def main(argv: Optional[List[str]] = None) -> None:
    def _log_unhandled(exc_type, exc_value, exc_traceback) -> None:
        traceback.print_exception(exc_type, exc_value, exc_traceback)

    sys.excepthook = _log_unhandled
    faulthandler.enable()

    def _log_sigterm(signum, frame) -> None:
        print(f"Received signal {signum}, dumping stack.", file=sys.stderr)
        faulthandler.dump_traceback(file=sys.stderr, all_threads=True)

    signal.signal(signal.SIGTERM, _log_sigterm)
    argv = sys.argv if argv is None else argv
    args = _parse_args(argv[1:])

    app = QtWidgets.QApplication(argv)
    app.setOrganizationName(ORGANIZATION)
    app.setApplicationName(APPLICATION)
    app.setStyle("Fusion")
    window = MainWindow()
    _open_path(window, args.path)
    window.show()
    window.raise_()
    window.activateWindow()
    QtCore.QTimer.singleShot(0, window.activateWindow)
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
