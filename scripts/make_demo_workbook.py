#!/usr/bin/env python3
"""Write a small, deterministic bug-tracker workbook for trying out bugsort."""

from __future__ import annotations

import argparse
from pathlib import Path

from openpyxl import Workbook

# The New/Existing column is left without a header on purpose: trackers
# exported from shared sheets often lose it.
DEMO_HEADER = ["ID", None, "Priority", "Bugs", "Owner"]
DEMO_ROWS = [
    ["BUG-101", "Existing", "Major", "05/01 login page slow", "ana"],
    ["BUG-102", "New", "Critical", "09/01 export drops last row", "raj"],
    ["BUG-103", "New", "Blocker", "crash on save, no date logged", "li"],
    ["BUG-104", "New", "Blocker", "10/01 payment timeout", "ana"],
    ["BUG-105", "Existing", "Minor", "16/12 typo in footer", "raj"],
    ["BUG-106", "", "Critical", "12/01 unknown origin", "li"],
]
SUMMARY_ROWS = [["Sprint", "Open bugs"], ["S42", 6]]


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[1]


def build_demo_workbook(path: Path) -> Path:
    wb = Workbook()
    summary = wb.active
    assert summary is not None
    summary.title = "Summary"
    for row in SUMMARY_ROWS:
        summary.append(row)

    bugs = wb.create_sheet("Bugs Reported")
    bugs.append(DEMO_HEADER)
    for row in DEMO_ROWS:
        bugs.append(row)

    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    return path


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--output",
        type=Path,
        default=_repo_root() / "demo" / "bug_tracker.xlsx",
        help="Where to write the demo workbook.",
    )
    args = parser.parse_args()
    out = build_demo_workbook(args.output)
    print(f"Wrote {out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
