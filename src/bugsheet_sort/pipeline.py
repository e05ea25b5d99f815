"""Triage ordering — pure functions, no side effects."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import date
from functools import cmp_to_key

from bugsheet_sort import NEW_EXISTING_LABEL, PRIORITY_ORDER, TYPE_ORDER, UNRANKED
from bugsheet_sort.dates import extract_date
from bugsheet_sort.models import ColumnBinding, Document, Record, SortKey, SortSummary

logger = logging.getLogger(__name__)

# ── Ranking ─────────────────────────────────────────────────────


def _normalize_value(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def _cell(record: Mapping[str, object], column: str | None) -> object:
    if column is None:
        return None
    return record.get(column)


def type_rank(value: object) -> int:
    """``new`` < ``existing`` < anything else."""
    return TYPE_ORDER.get(_normalize_value(value), UNRANKED)


def priority_rank(value: object) -> int:
    """``blocker`` < ``critical`` < ``major`` < anything else."""
    return PRIORITY_ORDER.get(_normalize_value(value), UNRANKED)


def sort_key(
    record: Mapping[str, object], binding: ColumnBinding, today: date | None = None
) -> SortKey:
    date_value = None
    if binding.bugs_text is not None:
        date_value = extract_date(record.get(binding.bugs_text), today)
    return SortKey(
        type_rank=type_rank(_cell(record, binding.new_existing)),
        priority_rank=priority_rank(_cell(record, binding.priority)),
        date_value=date_value,
    )


def _compare_dates(a: int | None, b: int | None) -> int:
    if a is not None and b is not None:
        return (b > a) - (b < a)  # latest first
    if a is not None:
        return -1
    if b is not None:
        return 1
    return 0


def compare_keys(a: SortKey, b: SortKey) -> int:
    if a.type_rank != b.type_rank:
        return a.type_rank - b.type_rank
    if a.priority_rank != b.priority_rank:
        return a.priority_rank - b.priority_rank
    return _compare_dates(a.date_value, b.date_value)


def compare_records(
    a: Mapping[str, object],
    b: Mapping[str, object],
    binding: ColumnBinding,
    today: date | None = None,
) -> int:
    """Three-level comparator: type, then priority, then report date."""
    return compare_keys(sort_key(a, binding, today), sort_key(b, binding, today))


# ── Sorting ─────────────────────────────────────────────────────


def sort_records(
    records: Sequence[Record], binding: ColumnBinding, today: date | None = None
) -> list[Record]:
    """Return *records* in triage order.

    The sort is stable: records whose type, priority and date all compare
    equal keep their original relative order.
    """
    if not records:
        return []
    if today is None:
        today = date.today()

    keyed = [(sort_key(record, binding, today), record) for record in records]
    keyed.sort(key=cmp_to_key(lambda x, y: compare_keys(x[0], y[0])))
    logger.debug("Sorted %d records with %s", len(keyed), binding)
    return [record for _key, record in keyed]


def relabel_column(records: Sequence[Record], old: str, new: str) -> list[Record]:
    """Rename key *old* to *new* in every record, keeping key order."""
    return [
        {(new if key == old else key): value for key, value in record.items()}
        for record in records
    ]


def build_sorted_document(
    document: Document,
    sheet_name: str,
    binding: ColumnBinding,
    today: date | None = None,
) -> tuple[Document, SortSummary]:
    """Sort *sheet_name* of *document* into a new document.

    The target sheet is always re-read from *document*, which is never
    mutated; every other sheet is shared with it as-is. A placeholder
    New/Existing column is renamed to ``New/Existing`` in the result.
    """
    if today is None:
        today = date.today()

    source = document.sheet(sheet_name)
    records = sort_records(document.records(sheet_name), binding, today)
    columns = list(source.columns)

    relabelled: str | None = None
    old = binding.new_existing
    if binding.new_existing_is_placeholder and old is not None:
        logger.info("Renaming column: %s -> %s", old, NEW_EXISTING_LABEL)
        records = relabel_column(records, old, NEW_EXISTING_LABEL)
        columns = [NEW_EXISTING_LABEL if col == old else col for col in columns]
        relabelled = old

    keys = [sort_key(record, binding, today) for record in source.records]
    dated = sum(1 for key in keys if key.date_value is not None)
    unranked = sum(1 for key in keys if key.type_rank == UNRANKED)

    warnings: list[str] = []
    if binding.bugs_text is None and records:
        warnings.append('No "Bugs" column found; rows with equal rank keep their order')
    if unranked:
        warnings.append(f"Found {unranked} rows without a New/Existing value; placed last")

    summary = SortSummary(
        sheet_name=sheet_name,
        rows_in=source.row_count,
        rows_out=len(records),
        dated_rows=dated,
        new_existing_column=binding.new_existing,
        priority_column=binding.priority,
        bugs_column=binding.bugs_text,
        relabelled_column=relabelled,
        warnings=warnings,
    )
    return document.replace_records(sheet_name, records, columns), summary
