import json
from io import StringIO

import pytest

from stacktally import build_report
from stacktally.reporters.heap import HeapReporter
from tests.utils import make_sample


@pytest.fixture
def records():
    return [("TypeX", 10, 1000), ("TypeY", 3, 9000), ("TypeX", 2, 200)]


def test_render(records):
    # GIVEN
    reporter = HeapReporter.from_records(records)
    output = StringIO()

    # WHEN
    reporter.render(file=output)

    # THEN
    text = output.getvalue()
    assert "Heap: 15 objects, 9.961KB" in text
    assert text.index("TypeY") < text.index("TypeX")
    (type_x_line,) = [line for line in text.splitlines() if "TypeX" in line]
    assert "12" in type_x_line


def test_max_rows(records):
    output = StringIO()
    HeapReporter.from_records(records, max_rows=1).render(file=output)
    assert "TypeY" in output.getvalue()
    assert "TypeX" not in output.getvalue()


@pytest.mark.parametrize("max_rows", [0, -1])
def test_invalid_max_rows(records, max_rows):
    with pytest.raises(ValueError, match="max_rows"):
        HeapReporter.from_records(records, max_rows=max_rows)


def test_raw_output_is_shown_when_nothing_was_decoded():
    output = StringIO()
    HeapReporter.from_records(None, raw_output="[not] a heap report").render(
        file=output
    )
    assert output.getvalue() == "[not] a heap report\n"


def test_no_types():
    output = StringIO()
    HeapReporter.from_records([]).render(file=output)
    assert output.getvalue() == "<No heap types>\n"


def test_render_json(records):
    # GIVEN
    reporter = HeapReporter.from_records(records, raw_output="ignored")
    output = StringIO()

    # WHEN
    reporter.render_json(output)

    # THEN
    assert json.loads(output.getvalue()) == {
        "total_count": 15,
        "total_bytes": 10200,
        "types": [
            {"type": "TypeY", "count": 3, "bytes": 9000},
            {"type": "TypeX", "count": 12, "bytes": 1200},
        ],
        "raw_output": None,
    }


def test_to_dict_without_types():
    reporter = HeapReporter.from_records(None, raw_output="raw")
    assert reporter.to_dict() == {
        "total_count": 0,
        "total_bytes": 0,
        "types": [],
        "raw_output": "raw",
    }


def test_type_names_are_shown_as_display_names():
    # GIVEN
    reporter = HeapReporter.from_records(
        [("System.Collections.Generic.Dictionary`2[System.String,System.Int32]", 1, 64)]
    )
    output = StringIO()

    # WHEN
    reporter.render(file=output)

    # THEN
    assert "Dictionary<String,Int32>" in output.getvalue()
    assert "System.Collections" not in output.getvalue()


def test_numeric_columns_fit_an_80_column_terminal(records):
    # GIVEN
    reporter = HeapReporter.from_records(records)
    output = StringIO()

    # WHEN
    reporter.render(file=output)

    # THEN
    lines = output.getvalue().splitlines()
    assert all(len(line) <= 80 for line in lines)
    (type_y_line,) = [line for line in lines if "TypeY" in line]
    assert "8.789KB" in type_y_line
    assert "88.24%" in type_y_line


def test_sampled_allocations_by_type():
    # GIVEN
    report = build_report(
        [
            make_sample("Main;Load", 4096, count=2, type_name="System.Byte[]"),
            make_sample("Main;Parse", 1024, type_name="System.String"),
            make_sample("Main;Idle", 10),
        ]
    )

    # WHEN
    reporter = HeapReporter.from_report(report)
    output = StringIO()
    reporter.render(file=output)

    # THEN
    text = output.getvalue()
    assert "Allocation By Type (Sampled): 3 objects, 5.000KB" in text
    assert text.index("Byte[]") < text.index("String")
    assert reporter.to_dict()["types"] == [
        {"type": "System.Byte[]", "count": 2, "bytes": 4096},
        {"type": "System.String", "count": 1, "bytes": 1024},
    ]


def test_untyped_report_has_no_sampled_types():
    output = StringIO()
    HeapReporter.from_report(build_report([make_sample("Main", 1)])).render(
        file=output
    )
    assert output.getvalue() == "<No heap types>\n"
