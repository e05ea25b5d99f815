from __future__ import annotations

import pytest

from bugsheet_sort.errors import MissingColumns, SheetNotFound
from bugsheet_sort.resolver import (
    describe_columns,
    find_column,
    find_sheet,
    is_placeholder_column,
    normalize_name,
    resolve_columns,
)


def test_normalize_name_strips_all_whitespace() -> None:
    assert normalize_name("  Bugs \t Re ported\n") == "bugsreported"


@pytest.mark.parametrize("name", ["Bugs Reported", "bugsreported", " BUGS  REPORTED ", "Bugs\tReported"])
def test_find_sheet_matches_aliases(name: str) -> None:
    assert find_sheet(["Summary", name]) == name


def test_find_sheet_lists_all_sheets_when_missing() -> None:
    with pytest.raises(SheetNotFound) as excinfo:
        find_sheet(["Summary", "Bugs", "Reported Bugs"])

    assert excinfo.value.sheet_names == ["Summary", "Bugs", "Reported Bugs"]
    assert "Found sheets: Summary, Bugs, Reported Bugs" in str(excinfo.value)


@pytest.mark.parametrize("header", ["Priority", " priority ", "PRIORITY"])
def test_priority_header_variants_resolve(header: str) -> None:
    binding = resolve_columns([{"New/Existing": "New", header: "Major"}])

    assert binding.priority == header


def test_find_column_returns_first_alias_hit() -> None:
    columns = ["Existing / New", "New/Existing"]

    assert find_column(columns, ["new/existing", "existing/new"]) == "New/Existing"


@pytest.mark.parametrize("header", ["New/Existing", "existing/new", "New Existing", "ExistingNew"])
def test_new_existing_aliases(header: str) -> None:
    binding = resolve_columns([{header: "whatever", "Priority": "Major"}])

    assert binding.new_existing == header
    assert binding.new_existing_is_placeholder is False


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("__EMPTY", True),
        ("__EMPTY_3", True),
        ("Unnamed: 1", True),
        ("Empty", False),
        ("Priority", False),
    ],
)
def test_is_placeholder_column(name: str, expected: bool) -> None:
    assert is_placeholder_column(name) is expected


def test_placeholder_column_adopted_from_sample_value() -> None:
    records = [
        {"ID": "1", "__EMPTY": " New ", "Priority": "Blocker"},
        {"ID": "2", "__EMPTY": "Existing", "Priority": "Major"},
    ]

    binding = resolve_columns(records)

    assert binding.new_existing == "__EMPTY"
    assert binding.new_existing_is_placeholder is True
    assert binding.priority == "Priority"


def test_placeholder_scan_uses_first_matching_column_in_order() -> None:
    records = [
        {"__EMPTY": "n/a", "__EMPTY_1": "existing", "__EMPTY_2": "new", "Priority": "Major"}
    ]

    assert resolve_columns(records).new_existing == "__EMPTY_1"


def test_placeholder_scan_only_reads_first_record() -> None:
    records = [
        {"__EMPTY": "", "Priority": "Major"},
        {"__EMPTY": "New", "Priority": "Major"},
    ]

    with pytest.raises(MissingColumns) as excinfo:
        resolve_columns(records)

    assert excinfo.value.missing == ["New/Existing"]


def test_explicit_alias_wins_over_placeholder() -> None:
    records = [{"__EMPTY": "New", "new/existing": "Existing", "Priority": "Major"}]

    binding = resolve_columns(records)

    assert binding.new_existing == "new/existing"
    assert binding.new_existing_is_placeholder is False


def test_bugs_column_is_alias_only() -> None:
    with_bugs = resolve_columns([{"New/Existing": "New", "Priority": "Major", " BUGS ": "01/02"}])
    without = resolve_columns([{"New/Existing": "New", "Priority": "Major", "__EMPTY": "bugs"}])

    assert with_bugs.bugs_text == " BUGS "
    assert without.bugs_text is None


def test_empty_sheet_resolves_nothing_without_error() -> None:
    binding = resolve_columns([])

    assert binding.new_existing is None
    assert binding.priority is None
    assert binding.bugs_text is None


def test_missing_columns_enumerates_every_discovered_column() -> None:
    records = [{"ID": "7", "Type": "New", "Severity": "High"}]

    with pytest.raises(MissingColumns) as excinfo:
        resolve_columns(records)

    exc = excinfo.value
    assert exc.missing == ["New/Existing", "Priority"]
    assert exc.discovered == [(1, "ID", "7"), (2, "Type", "New"), (3, "Severity", "High")]
    message = str(exc)
    assert message.startswith('Missing columns: "New/Existing", "Priority".')
    assert 'Column 2: "Type" (sample: "New")' in message
    assert 'Column 3: "Severity" (sample: "High")' in message


def test_describe_columns_stringifies_samples() -> None:
    assert describe_columns({"a": None, "b": 3}) == [(1, "a", ""), (2, "b", "3")]
