import json
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Union

from csv_table.models import TableState

DATA_FIELD = "data"
DOCUMENT_TYPE = "csvTable"


@dataclass(frozen=True)
class ReplaceField:
    """Replace the whole field. A value of None unsets it."""

    path: str = DATA_FIELD
    value: Optional[List[dict]] = None

    def to_dict(self) -> dict:
        if self.value is None:
            return {"op": "unset", "path": [self.path]}
        return {"op": "set", "path": [self.path], "value": self.value}


@dataclass(frozen=True)
class SetCellField:
    """Write one cell, addressed by row key rather than row position."""

    match_key: str
    cell_index: int
    value: str
    path: str = DATA_FIELD

    def to_dict(self) -> dict:
        return {
            "op": "set",
            "path": [self.path, {"_key": self.match_key}, "cells", self.cell_index],
            "value": self.value,
        }


Patch = Union[ReplaceField, SetCellField]


class TableDocument:
    """Host-side document holding the persisted table field."""

    def __init__(self, data: Optional[dict] = None) -> None:
        self._data: dict = {"_type": DOCUMENT_TYPE}
        if data:
            self._data.update(data)
        self.path: Optional[str] = None

    def to_dict(self) -> dict:
        return json.loads(json.dumps(self._data))

    def field(self, name: str = DATA_FIELD) -> Any:
        return self._data.get(name)

    def state(self) -> TableState:
        return TableState.from_data(self._data.get(DATA_FIELD))

    def apply(self, patches: Iterable[Patch]) -> None:
        for patch in patches:
            if isinstance(patch, ReplaceField):
                self._apply_replace(patch)
            elif isinstance(patch, SetCellField):
                self._apply_set_cell(patch)
            else:
                raise TypeError(f"Unsupported patch: {patch!r}")

    def _apply_replace(self, patch: ReplaceField) -> None:
        if patch.value is None:
            self._data.pop(patch.path, None)
        else:
            self._data[patch.path] = json.loads(json.dumps(patch.value))

    def _apply_set_cell(self, patch: SetCellField) -> None:
        for item in self._data.get(patch.path) or []:
            if item.get("_key") == patch.match_key:
                item["cells"][patch.cell_index] = patch.value
                return
        raise KeyError(patch.match_key)

    def save(self, path: Optional[str] = None) -> str:
        target = path or self.path
        if not target:
            raise ValueError("No document path set.")
        with open(target, "w", encoding="utf-8") as handle:
            json.dump(self._data, handle, indent=2, ensure_ascii=False)
        self.path = target
        return target

    @classmethod
    def load(cls, path: str) -> "TableDocument":
        with open(path, "r", encoding="utf-8") as handle:
            raw = json.load(handle)
        if not isinstance(raw, dict):
            raise ValueError("Document root must be an object.")
        if raw.get("_type", DOCUMENT_TYPE) != DOCUMENT_TYPE:
            raise ValueError(f"Unsupported document type: {raw.get('_type')}")
        data = raw.get(DATA_FIELD)
        if data is not None and not isinstance(data, list):
            raise ValueError("Document 'data' must be a list of rows.")
        document = cls(raw)
        document.state()
        document.path = path
        return document
