import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PyQt6 import QtCore, QtWidgets  # noqa: E402

from csv_table.config import Settings  # noqa: E402


@pytest.fixture(scope="session")
def qapp():
    app = QtWidgets.QApplication.instance()
    if app is None:
        app = QtWidgets.QApplication([])
    yield app


@pytest.fixture
def settings(tmp_path):
    path = str(tmp_path / "csv_table.ini")
    return Settings(QtCore.QSettings(path, QtCore.QSettings.Format.IniFormat))
