import itertools
import uuid
from typing import Callable, Iterable, List, Optional, Sequence

from csv_table.models import CsvRow

KeyGenerator = Callable[[], str]


class UuidKeyGenerator:
    """Process counter plus a random uuid4 fragment."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)

    def __call__(self) -> str:
        return f"{next(self._counter):x}{uuid.uuid4().hex[:12]}"


class CounterKeyGenerator:
    def __init__(self, prefix: str = "row", start: int = 1) -> None:
        self._prefix = prefix
        self._counter = itertools.count(start)

    def __call__(self) -> str:
        return f"{self._prefix}-{next(self._counter)}"


_default_generator = UuidKeyGenerator()


def assign_row_keys(
    parsed_rows: Iterable[Sequence[str]], key_generator: Optional[KeyGenerator] = None
) -> List[CsvRow]:
    generate = key_generator or _default_generator
    rows: List[CsvRow] = []
    seen: set[str] = set()
    for fields in parsed_rows:
        key = generate()
        if key in seen:
            raise ValueError(f"Key generator repeated key {key!r}.")
        seen.add(key)
        rows.append(CsvRow(key, [str(field).strip() for field in fields]))
    return rows
