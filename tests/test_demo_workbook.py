from __future__ import annotations

import runpy
from datetime import date
from pathlib import Path

from bugsheet_sort.session import SessionState, SortSession

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "make_demo_workbook.py"


def test_demo_workbook_sorts_cleanly(tmp_path: Path) -> None:
    build = runpy.run_path(str(SCRIPT))["build_demo_workbook"]
    path = build(tmp_path / "demo" / "bug_tracker.xlsx")

    session = SortSession(clock=lambda: date(2026, 2, 15))
    session.load_path(path)

    assert session.state is SessionState.SORTED
    assert session.row_count == 6
    assert session.binding is not None and session.binding.new_existing_is_placeholder
    sheet = session.sorted_document.sheet("Bugs Reported")  # type: ignore[union-attr]
    assert [r["ID"] for r in sheet.records] == [
        "BUG-104",
        "BUG-103",
        "BUG-102",
        "BUG-101",
        "BUG-105",
        "BUG-106",
    ]
    assert session.sorted_document.sheet_names() == ["Summary", "Bugs Reported"]  # type: ignore[union-attr]
