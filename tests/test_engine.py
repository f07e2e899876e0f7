import pytest

from csv_table.config import STALE_IGNORE
from csv_table.engine import SyncEngine
from csv_table.errors import (
    EmptyResultError,
    ImportBusyError,
    ParseError,
    StaleReferenceError,
    ValidationError,
)
from csv_table.keys import CounterKeyGenerator
from csv_table.models import CsvRow, TableState
from csv_table.patches import ReplaceField, SetCellField


@pytest.fixture
def engine(qapp):
    return SyncEngine(key_generator=CounterKeyGenerator())


def _record(signal):
    seen = []
    signal.connect(lambda *args: seen.append(args))
    return seen


def test_import_installs_rows_with_distinct_keys(engine):
    result = engine.import_text("1,2\n3,4")
    assert result.ok
    assert result.count == 2
    snapshot = engine.query()
    assert snapshot.cells() == [["1", "2"], ["3", "4"]]
    assert len(set(snapshot.keys())) == 2


def test_import_emits_replace_patch(engine):
    patches = _record(engine.patches_emitted)
    result = engine.import_text("a,b")
    assert result.patches == [
        ReplaceField("data", [{"_type": "csvRow", "_key": "row-1", "cells": ["a", "b"]}])
    ]
    assert patches == [(result.patches,)]


def test_import_success_notice(engine):
    notices = _record(engine.notice)
    engine.import_text("1,2\n3,4")
    assert notices == [("success", "Data Imported", "Successfully imported 2 rows.")]


@pytest.mark.parametrize("text", ["", None])
def test_import_without_text_is_a_validation_error(engine, text):
    engine.import_text("x,y")
    before = engine.query()
    result = engine.import_text(text)
    assert not result.ok
    assert isinstance(result.error, ValidationError)
    assert engine.query() == before


def test_import_parse_error_keeps_table(engine):
    engine.import_text("x,y")
    before = engine.query()
    notices = _record(engine.notice)
    result = engine.import_text('x,"abc')
    assert not result.ok
    assert isinstance(result.error, ParseError)
    assert engine.query() == before
    assert notices[0][:2] == ("error", "CSV Error")


def test_import_with_no_rows_is_distinct_from_clear(engine):
    engine.import_text("x,y")
    before = engine.query()
    result = engine.import_text("\n\n\n")
    assert not result.ok
    assert isinstance(result.error, EmptyResultError)
    assert engine.query() == before


def test_failed_import_emits_no_patches(engine):
    patches = _record(engine.patches_emitted)
    engine.import_text("")
    engine.import_text("\n")
    assert patches == []


def test_import_trims_once_and_edit_is_verbatim(engine):
    engine.import_text(" a , b")
    key = engine.query().keys()[0]
    assert engine.query().cells() == [["a", "b"]]
    result = engine.edit_cell(key, 0, " c ")
    assert result.ok
    assert engine.query().cells() == [[" c ", "b"]]


def test_import_blank_lines_dropped_and_trimmed(engine):
    result = engine.import_text("only, empty, lines\n\n\n")
    assert result.count == 1
    assert engine.query().cells() == [["only", "empty", "lines"]]


def test_replace_all_discards_prior_keys(engine):
    engine.import_text("1\n2")
    old_keys = set(engine.query().keys())
    engine.import_text("3\n4")
    assert old_keys.isdisjoint(engine.query().keys())


def test_keys_unique_across_many_imports(qapp):
    engine = SyncEngine()
    for _ in range(5):
        result = engine.replace_all([["v"]] * 200)
        keys = engine.query().keys()
        assert result.count == 200
        assert len(set(keys)) == 200


def test_clear_reports_zero_and_unsets_field(engine):
    engine.import_text("1,2")
    notices = _record(engine.notice)
    result = engine.clear()
    assert result.ok
    assert result.count == 0
    assert result.error is None
    assert result.patches == [ReplaceField("data", None)]
    assert engine.query().count == 0
    assert not engine.query().present
    assert notices == [("info", "Data Cleared", "The table data has been removed from the document.")]


def test_clear_on_empty_table_is_idempotent(engine):
    first = engine.clear()
    second = engine.clear()
    assert first.ok and second.ok
    assert first.count == second.count == 0
    assert engine.row_count == 0
    assert not engine.has_data


def test_edit_changes_exactly_one_cell(engine):
    engine.import_text("a,b,c\nd,e\nf")
    before = engine.query()
    key = before.keys()[1]
    changed = _record(engine.cell_changed)
    result = engine.edit_cell(key, 1, "E")
    after = engine.query()
    assert result.ok
    assert result.patches == [SetCellField(key, 1, "E")]
    assert changed == [(key, 1, "E")]
    assert after.keys() == before.keys()
    expected = before.cells()
    expected[1][1] = "E"
    assert after.cells() == expected


def test_edits_preserve_order_and_shape(engine):
    engine.import_text("a,b\nc,d\ne,f")
    before = engine.query()
    for key in before.keys():
        engine.edit_cell(key, 0, "x")
        engine.edit_cell(key, 1, "y")
    after = engine.query()
    assert after.keys() == before.keys()
    assert [len(row.cells) for row in after.rows] == [len(row.cells) for row in before.rows]


def test_edit_unknown_key_is_reported(engine):
    engine.import_text("1,2")
    before = engine.query()
    stale = _record(engine.stale_edit)
    patches = _record(engine.patches_emitted)
    result = engine.edit_cell("missing", 0, "x")
    assert not result.ok
    assert isinstance(result.error, StaleReferenceError)
    assert result.error.key == "missing"
    assert stale == [("missing", 0)]
    assert patches == []
    assert engine.query() == before


def test_edit_out_of_range_index_is_stale(engine):
    engine.import_text("1,2")
    key = engine.query().keys()[0]
    result = engine.edit_cell(key, 2, "x")
    assert isinstance(result.error, StaleReferenceError)
    assert engine.query().cells() == [["1", "2"]]


def test_edit_after_clear_is_stale(engine):
    engine.import_text("1,2")
    key = engine.query().keys()[0]
    engine.clear()
    result = engine.edit_cell(key, 0, "x")
    assert isinstance(result.error, StaleReferenceError)
    assert engine.row_count == 0


def test_ignore_policy_drops_stale_edit_but_signals_it(engine):
    engine.stale_edit_policy = STALE_IGNORE
    engine.import_text("1,2")
    before = engine.query()
    stale = _record(engine.stale_edit)
    notices = _record(engine.notice)
    result = engine.edit_cell("missing", 0, "x")
    assert result.ok
    assert result.dropped
    assert result.patches == []
    assert stale == [("missing", 0)]
    assert notices == []
    assert engine.query() == before


def test_unknown_policy_rejected(engine):
    with pytest.raises(ValueError):
        engine.stale_edit_policy = "shrug"


def test_injected_parser_failure(qapp):
    def failing_parser(text):
        raise ParseError("bad input")

    engine = SyncEngine(parser=failing_parser)
    result = engine.import_text("anything")
    assert isinstance(result.error, ParseError)
    assert result.error.message == "bad input"


def test_begin_import_is_single_flight(engine):
    engine.import_text("old")
    old_key = engine.query().keys()[0]
    busy = _record(engine.busy_changed)
    finished = _record(engine.import_finished)

    first = engine.begin_import("1,2\n3,4")
    assert first.ok and first.pending
    assert engine.busy
    assert isinstance(engine.begin_import("5,6").error, ImportBusyError)
    assert isinstance(engine.import_text("5,6").error, ImportBusyError)
    assert isinstance(engine.clear().error, ImportBusyError)
    assert engine.edit_cell(old_key, 0, "still editable").ok

    engine.wait_for_import()
    assert not engine.busy
    assert busy == [(True,), (False,)]
    result = finished[0][0]
    assert result.ok
    assert result.count == 2
    assert engine.query().cells() == [["1", "2"], ["3", "4"]]


def test_begin_import_failure_clears_busy(engine):
    engine.import_text("keep")
    before = engine.query()
    finished = _record(engine.import_finished)
    assert engine.begin_import('x,"abc').pending
    engine.wait_for_import()
    assert not engine.busy
    assert isinstance(finished[0][0].error, ParseError)
    assert engine.query() == before


def test_begin_import_rejects_empty_text(engine):
    result = engine.begin_import("")
    assert isinstance(result.error, ValidationError)
    assert not engine.busy


def test_import_with_forced_delimiter(engine):
    result = engine.import_text("Smith, John\t42\nDoe, Jane\t37", delimiter="\t")
    assert result.ok
    assert engine.query().cells() == [["Smith, John", "42"], ["Doe, Jane", "37"]]


def test_begin_import_with_forced_delimiter(engine):
    assert engine.begin_import("a;b\tc", delimiter="\t").pending
    engine.wait_for_import()
    assert engine.query().cells() == [["a;b", "c"]]


def test_load_state_adopts_rows_without_patches(engine):
    patches = _record(engine.patches_emitted)
    replaced = _record(engine.table_replaced)
    result = engine.load_state(TableState([CsvRow("k1", ["x"])]))
    assert result.ok and result.count == 1
    assert engine.query().keys() == ["k1"]
    assert patches == []
    assert replaced[0][0].keys() == ["k1"]


def test_load_state_refused_while_import_pending(engine):
    assert engine.begin_import("1,2").pending
    result = engine.load_state(TableState([CsvRow("k1", ["x"])]))
    assert isinstance(result.error, ImportBusyError)
    engine.wait_for_import()
    assert engine.query().cells() == [["1", "2"]]
