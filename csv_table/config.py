from typing import Optional

from PyQt6 import QtCore

ORGANIZATION = "CsvTable"
APPLICATION = "CsvTable"

STALE_REPORT = "report"
STALE_IGNORE = "ignore"
STALE_EDIT_POLICIES = (STALE_REPORT, STALE_IGNORE)


class Settings:
    def __init__(self, settings: Optional[QtCore.QSettings] = None) -> None:
        self._settings = settings or QtCore.QSettings(ORGANIZATION, APPLICATION)

    @property
    def stale_edit_policy(self) -> str:
        value = self._settings.value("stale_edit_policy", STALE_REPORT, type=str)
        if value not in STALE_EDIT_POLICIES:
            return STALE_REPORT
        return value

    @stale_edit_policy.setter
    def stale_edit_policy(self, value: str) -> None:
        if value not in STALE_EDIT_POLICIES:
            raise ValueError(f"Unknown stale edit policy: {value}")
        self._settings.setValue("stale_edit_policy", value)

    @property
    def async_import(self) -> bool:
        return self._settings.value("async_import", True, type=bool)

    @async_import.setter
    def async_import(self, value: bool) -> None:
        self._settings.setValue("async_import", bool(value))

    @property
    def last_document_path(self) -> str:
        return self._settings.value("last_document_path", "", type=str)

    @last_document_path.setter
    def last_document_path(self, value: Optional[str]) -> None:
        self._settings.setValue("last_document_path", value or "")

    @property
    def last_import_dir(self) -> str:
        return self._settings.value("last_import_dir", QtCore.QDir.currentPath(), type=str)

    @last_import_dir.setter
    def last_import_dir(self, value: str) -> None:
        self._settings.setValue("last_import_dir", value)

    def sync(self) -> None:
        self._settings.sync()
