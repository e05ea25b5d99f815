"""bugsheet-sort — Reorder a "Bugs Reported" worksheet by triage priority."""

__version__ = "0.1.0"

MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
XLS_MIME = "application/vnd.ms-excel"
ACCEPTED_MIME_TYPES: tuple[str, ...] = (XLSX_MIME, XLS_MIME)
ACCEPTED_EXTENSIONS: tuple[str, ...] = (".xlsx", ".xls")
OUTPUT_EXTENSION = ".xlsx"

SHEET_ALIASES: list[str] = ["bugsreported", "bugs reported"]
NEW_EXISTING_ALIASES: list[str] = ["new/existing", "existing/new", "newexisting", "existingnew"]
PRIORITY_ALIASES: list[str] = ["priority"]
BUGS_ALIASES: list[str] = ["bugs"]

NEW_EXISTING_LABEL = "New/Existing"
PRIORITY_LABEL = "Priority"

TYPE_ORDER: dict[str, int] = {"new": 0, "existing": 1}
PRIORITY_ORDER: dict[str, int] = {"blocker": 0, "critical": 1, "major": 2}
UNRANKED = 999
