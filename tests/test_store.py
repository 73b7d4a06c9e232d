"""Error map store: loading, allocation, serialization."""
import json

import pytest

from errmap.internals.report import Reporter
from errmap.store.error_map import (
    DuplicateTemplateError,
    WorkingIndex,
    build_index,
    load_error_map,
    serialize_error_map,
)


def index_from(text, reporter=None):
    return build_index(load_error_map(text, reporter), reporter)


def codes(reporter):
    return [d.code for d in reporter.items]


def test_missing_map_is_empty_and_silent(reporter):
    assert load_error_map(None, reporter) == {}
    assert reporter.items == []


@pytest.mark.parametrize("raw", [
    "",
    "{ not json",
    "[1, 2]",
    '"text"',
    '{"a": "b"}',
    '{"01": "leading zero"}',
    '{"-1": "negative"}',
    '{"0": 5}',
])
def test_malformed_map_loads_empty_with_warning(raw, reporter):
    assert load_error_map(raw, reporter, path="codes.json") == {}
    assert codes(reporter) == ["EW0001"]
    assert "codes.json" in reporter.items[0].message


def test_malformed_map_without_reporter_is_silent():
    assert load_error_map("{", None) == {}


def test_allocation_from_empty_map_is_sequential():
    index = WorkingIndex()
    assert [index.lookup_or_allocate(t) for t in ["A", "B", "C"]] == [0, 1, 2]
    assert index.next_code == 3
    assert index.to_error_map() == {"0": "A", "1": "B", "2": "C"}


def test_duplicate_template_reuses_code_without_consuming_counter():
    index = WorkingIndex()
    assert index.lookup_or_allocate("X") == 0
    assert index.lookup_or_allocate("X") == 0
    assert index.lookup_or_allocate("Y") == 1
    assert len(index) == 2


def test_next_code_starts_after_max_existing_code():
    index = index_from('{"0": "A", "7": "B", "3": "C"}')
    assert index.next_code == 8
    assert index.lookup_or_allocate("A") == 0
    assert index.lookup_or_allocate("D") == 8


def test_existing_codes_are_stable():
    index = index_from('{"0": "A"}')
    index.lookup_or_allocate("B")
    assert index.to_error_map() == {"0": "A", "1": "B"}


def test_serialization_keeps_existing_order_then_discovery_order():
    index = index_from('{"5": "five", "2": "two"}')
    index.lookup_or_allocate("new one")
    index.lookup_or_allocate("two")
    index.lookup_or_allocate("new two")
    assert list(json.loads(serialize_error_map(index))) == ["5", "2", "6", "7"]


def test_serialized_format():
    index = WorkingIndex()
    index.lookup_or_allocate("Expected %s items")
    index.lookup_or_allocate("naïve ünïcode")
    assert serialize_error_map(index) == (
        '{\n'
        '  "0": "Expected %s items",\n'
        '  "1": "naïve ünïcode"\n'
        '}\n'
    )


def test_empty_index_serializes_to_empty_object():
    assert serialize_error_map(WorkingIndex()) == "{}\n"


def test_round_trip_of_well_formed_map():
    text = '{\n  "0": "A",\n  "3": "B with \\"quotes\\"",\n  "1": "C"\n}\n'
    assert serialize_error_map(index_from(text)) == text


def test_same_inputs_give_same_assignments():
    templates = ["A", "B", "A", "C", "B", "D"]
    first = index_from('{"2": "B"}')
    second = index_from('{"2": "B"}')
    assert [first.lookup_or_allocate(t) for t in templates] == \
           [second.lookup_or_allocate(t) for t in templates]
    assert serialize_error_map(first) == serialize_error_map(second)


def test_corrupt_map_restarts_numbering_at_zero():
    index = index_from('{"0": "A",', Reporter())
    assert index.lookup_or_allocate("B") == 0


def test_duplicate_templates_warn_and_keep_both_entries(reporter):
    index = index_from('{"0": "Same", "1": "Other", "2": "Same"}', reporter)
    assert codes(reporter) == ["EW0003"]
    assert index.code_of("Same") == 0
    assert index.template_of(2) == "Same"
    assert index.next_code == 3
    assert serialize_error_map(index) == '{\n  "0": "Same",\n  "1": "Other",\n  "2": "Same"\n}\n'


def test_duplicate_templates_strict():
    with pytest.raises(DuplicateTemplateError) as excinfo:
        build_index({"0": "Same", "4": "Same"}, strict=True)
    assert (excinfo.value.first, excinfo.value.second) == (0, 4)
    assert excinfo.value.template == "Same"


def test_contains_and_lookups():
    index = index_from('{"0": "A"}')
    assert "A" in index
    assert "B" not in index
    assert index.code_of("B") is None
    assert index.template_of(0) == "A"
    assert index.template_of(1) is None
