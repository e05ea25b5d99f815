"""Locate the bug sheet and bind the logical columns to its actual headers.

Headers in real trackers drift: ``"Priority "``, ``"PRIORITY"``,
``"New / Existing"``. Worse, the New/Existing column is often left without a
header at all, in which case the codec hands it over under a placeholder name
(``__EMPTY``, ``Unnamed: 3``). Such a column is adopted when its first value
reads ``New`` or ``Existing``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence

from bugsheet_sort import (
    BUGS_ALIASES,
    NEW_EXISTING_ALIASES,
    NEW_EXISTING_LABEL,
    PRIORITY_ALIASES,
    PRIORITY_LABEL,
    SHEET_ALIASES,
    TYPE_ORDER,
)
from bugsheet_sort.errors import MissingColumns, SheetNotFound
from bugsheet_sort.models import ColumnBinding

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_PLACEHOLDER_RE = re.compile(r"__EMPTY(_\d+)?|Unnamed: \d+(_level_\d+)?")


def normalize_name(name: object) -> str:
    """Lower-case *name* and drop every whitespace character."""
    return _WHITESPACE_RE.sub("", str(name).lower())


def _find_by_alias(names: Sequence[str], aliases: Sequence[str]) -> str | None:
    normalized = [normalize_name(name) for name in names]
    for alias in aliases:
        target = normalize_name(alias)
        if target in normalized:
            return names[normalized.index(target)]
    return None


def find_sheet(sheet_names: Sequence[str]) -> str:
    """Return the original name of the "Bugs Reported" sheet.

    Raises
    ------
    SheetNotFound
        If no sheet name matches; the error lists every sheet found.
    """
    name = _find_by_alias(sheet_names, SHEET_ALIASES)
    if name is None:
        raise SheetNotFound(sheet_names)
    return name


def find_column(columns: Sequence[str], aliases: Sequence[str]) -> str | None:
    return _find_by_alias(columns, aliases)


def is_placeholder_column(name: str) -> bool:
    return _PLACEHOLDER_RE.search(name) is not None


def _sample(record: Mapping[str, object], column: str) -> str:
    value = record.get(column)
    return "" if value is None else str(value)


def _find_placeholder_type_column(record: Mapping[str, object]) -> str | None:
    for column in record:
        if not is_placeholder_column(column):
            continue
        if _sample(record, column).strip().lower() in TYPE_ORDER:
            logger.debug("Found New/Existing data in column: %s", column)
            return column
    return None


def describe_columns(record: Mapping[str, object]) -> list[tuple[int, str, str]]:
    """Return ``(position, column, sample)`` for every column of *record*."""
    return [(pos, column, _sample(record, column)) for pos, column in enumerate(record, 1)]


def resolve_columns(records: Sequence[Mapping[str, object]]) -> ColumnBinding:
    """Bind New/Existing, Priority and Bugs to actual column names.

    Resolution looks at the first record only. An empty sheet binds nothing
    and is not an error.

    Raises
    ------
    MissingColumns
        If New/Existing or Priority cannot be bound.
    """
    if not records:
        return ColumnBinding()

    first = records[0]
    columns = list(first)
    logger.debug("Columns in first record: %s", columns)

    priority = find_column(columns, PRIORITY_ALIASES)
    new_existing = find_column(columns, NEW_EXISTING_ALIASES)
    placeholder = False
    if new_existing is None:
        new_existing = _find_placeholder_type_column(first)
        placeholder = new_existing is not None

    missing: list[str] = []
    if new_existing is None:
        missing.append(NEW_EXISTING_LABEL)
    if priority is None:
        missing.append(PRIORITY_LABEL)
    if missing:
        raise MissingColumns(missing, describe_columns(first))

    binding = ColumnBinding(
        new_existing=new_existing,
        priority=priority,
        bugs_text=find_column(columns, BUGS_ALIASES),
        new_existing_is_placeholder=placeholder,
    )
    logger.debug("Resolved columns: %s", binding)
    return binding
