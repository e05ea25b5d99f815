"""Upload → validate → sort → download, as an explicit state machine.

``SortSession`` owns the uploaded document and its sorted copy. Every
transition method catches the package's errors at this boundary and turns
them into a single :class:`Banner`; nothing raises to the caller. Any front
end (CLI, web handler, notebook) drives it through the same methods.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from pathlib import Path, PurePath
from typing import Literal

from bugsheet_sort import (
    ACCEPTED_EXTENSIONS,
    ACCEPTED_MIME_TYPES,
    MAX_UPLOAD_BYTES,
    OUTPUT_EXTENSION,
)
from bugsheet_sort.errors import (
    BugSortError,
    CodecError,
    FileReadError,
    FileSizeError,
    FileTypeError,
    SerializationError,
    SortError,
)
from bugsheet_sort.io import ExcelCodec, SpreadsheetCodec, serialize_document
from bugsheet_sort.models import ColumnBinding, Document, SortSummary
from bugsheet_sort.pipeline import build_sorted_document
from bugsheet_sort.resolver import find_sheet, resolve_columns

logger = logging.getLogger(__name__)

SUCCESS_DISMISS_SECONDS = 5.0
STATUS_READY = "Ready to sort"
STATUS_SORTED = "Sorted successfully"

BannerKind = Literal["success", "error", "info"]


class SessionState(str, Enum):
    EMPTY = "empty"
    LOADED = "loaded"
    VALIDATED = "validated"
    SORTED = "sorted"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class Banner:
    """A dismissible message; success banners expire on their own."""

    kind: BannerKind
    text: str
    auto_dismiss_after: float | None = None
    shown_at: float = field(default_factory=time.monotonic)

    def expired(self, now: float | None = None) -> bool:
        if self.auto_dismiss_after is None:
            return False
        if now is None:
            now = time.monotonic()
        return now - self.shown_at >= self.auto_dismiss_after


@dataclass(frozen=True)
class DownloadArtifact:
    file_name: str
    payload: bytes


def output_file_name(file_name: str) -> str:
    """``report.xls`` → ``report_sorted.xlsx``."""
    base = PurePath(file_name).name
    stem, dot, _ext = base.rpartition(".")
    if not dot:
        stem = base
    return f"{stem}_sorted{OUTPUT_EXTENSION}"


def check_upload(file_name: str, size: int, content_type: str | None = None) -> None:
    """Reject uploads by kind and size before anything is decoded.

    Raises
    ------
    FileTypeError
        Neither *content_type* nor the extension of *file_name* is a
        spreadsheet kind.
    FileSizeError
        *size* is above ``MAX_UPLOAD_BYTES``.
    """
    extension = PurePath(file_name).suffix.lower()
    if content_type not in ACCEPTED_MIME_TYPES and extension not in ACCEPTED_EXTENSIONS:
        raise FileTypeError(file_name)
    if size > MAX_UPLOAD_BYTES:
        raise FileSizeError(size, MAX_UPLOAD_BYTES)


class SortSession:
    """State machine for one user's sort workflow.

    States: ``EMPTY → LOADED → VALIDATED → SORTED → READY``; ``ERROR`` is
    entered from any processing step and behaves like ``LOADED`` when a
    document is still held, so ``sort()`` can be retried.
    """

    def __init__(
        self,
        codec: SpreadsheetCodec | None = None,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self.codec: SpreadsheetCodec = codec if codec is not None else ExcelCodec()
        self.clock = clock
        self.busy = False
        self._in_flight = False
        self._clear()

    # ── State ─────────────────────────────────────────────────────

    def _clear(self) -> None:
        self.state = SessionState.EMPTY
        self.file_name = ""
        self.row_count: int | None = None
        self.status_label = ""
        self.banner: Banner | None = None
        self.last_error: BugSortError | None = None
        self.document: Document | None = None
        self.sorted_document: Document | None = None
        self.sheet_name: str | None = None
        self.binding: ColumnBinding | None = None
        self.summary: SortSummary | None = None
        self.artifact: DownloadArtifact | None = None

    def reset(self) -> None:
        """Discard both documents and everything derived from them."""
        self._clear()
        logger.info("Session reset")

    def dismiss_banner(self) -> None:
        self.banner = None

    def _show(self, kind: BannerKind, text: str) -> Banner:
        after = SUCCESS_DISMISS_SECONDS if kind == "success" else None
        self.banner = Banner(kind=kind, text=text, auto_dismiss_after=after)
        return self.banner

    def _fail(self, exc: BugSortError, *, enter_error_state: bool = True) -> Banner:
        logger.warning("%s: %s", type(exc).__name__, exc)
        self.last_error = exc
        if enter_error_state:
            self.state = SessionState.ERROR
        return self._show("error", str(exc))

    @contextmanager
    def _working(self) -> Iterator[None]:
        self.busy = True
        try:
            yield
        finally:
            self.busy = False

    # ── Transitions ───────────────────────────────────────────────

    def load(self, data: bytes, file_name: str, content_type: str | None = None) -> Banner | None:
        """Accept an upload, decode it, then validate and sort it.

        A rejected kind or size leaves the session exactly as it was apart
        from the banner.
        """
        try:
            check_upload(file_name, len(data), content_type)
        except BugSortError as exc:
            return self._fail(exc, enter_error_state=False)

        self._clear()
        self.file_name = file_name
        with self._working():
            try:
                self.document = self.codec.decode(data)
            except BugSortError as exc:
                return self._fail(exc)
            except Exception as exc:
                logger.exception("Error reading Excel file")
                return self._fail(CodecError(str(exc) or type(exc).__name__))
        self.state = SessionState.LOADED
        logger.info("Loaded %s (%d bytes)", file_name, len(data))

        failure = self.validate()
        if failure is not None:
            return failure
        return self.sort()

    def load_path(self, path: Path, content_type: str | None = None) -> Banner | None:
        path = Path(path)
        try:
            check_upload(path.name, path.stat().st_size, content_type)
            data = path.read_bytes()
        except BugSortError as exc:
            return self._fail(exc, enter_error_state=False)
        except OSError as exc:
            logger.debug("Cannot read %s: %s", path, exc)
            return self._fail(FileReadError(), enter_error_state=False)
        return self.load(data, path.name, content_type)

    def validate(self) -> Banner | None:
        """Locate the bug sheet and bind its columns; ``None`` on success."""
        if self.document is None:
            return self._show("error", "Please upload a file first.")
        try:
            logger.debug("All sheets in workbook: %s", self.document.sheet_names())
            sheet_name = find_sheet(self.document.sheet_names())
            records = self.document.sheet(sheet_name).records
            binding = resolve_columns(records)
        except BugSortError as exc:
            return self._fail(exc)

        logger.debug("Using sheet: %s", sheet_name)
        self.sheet_name = sheet_name
        self.binding = binding
        self.row_count = len(records)
        self.status_label = STATUS_READY
        self.state = SessionState.VALIDATED
        return None

    def sort(self) -> Banner:
        if self.document is None:
            return self._show("error", "Please upload a file first.")
        if self.sheet_name is None or self.binding is None:
            failure = self.validate()
            if failure is not None:
                return failure
        sheet_name, binding = self.sheet_name, self.binding
        if sheet_name is None or binding is None:
            return self._show("error", "Please upload a file first.")

        with self._working():
            try:
                sorted_document, summary = build_sorted_document(
                    self.document, sheet_name, binding, self.clock()
                )
            except Exception as exc:
                logger.exception("Error sorting Excel file")
                return self._fail(SortError(str(exc) or type(exc).__name__))

        self.sorted_document = sorted_document
        self.summary = summary
        self.artifact = None
        self.status_label = STATUS_SORTED
        self.state = SessionState.SORTED
        return self._show(
            "success", "File sorted successfully! Click download to get your sorted file."
        )

    def download(self) -> DownloadArtifact | None:
        """Serialize the sorted document; ``None`` (with an error banner) on failure."""
        if self.sorted_document is None:
            self._show("error", "No sorted file available. Please sort the file first.")
            return None
        try:
            payload = serialize_document(self.sorted_document, self.codec)
        except Exception as exc:
            logger.exception("Error writing sorted file")
            self._fail(SerializationError(str(exc) or type(exc).__name__))
            return None

        self.artifact = DownloadArtifact(output_file_name(self.file_name), payload)
        self.state = SessionState.READY
        self._show("success", "File downloaded successfully!")
        return self.artifact

    # ── Async front-end helpers ──────────────────────────────────

    async def _run_exclusive(self, func: Callable[[], Banner | None]) -> Banner | None:
        if self._in_flight:
            return self._show("error", "Another operation is still running.")
        self._in_flight = True
        try:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, func)
        finally:
            self._in_flight = False

    async def load_async(
        self, data: bytes, file_name: str, content_type: str | None = None
    ) -> Banner | None:
        return await self._run_exclusive(lambda: self.load(data, file_name, content_type))

    async def sort_async(self) -> Banner | None:
        return await self._run_exclusive(self.sort)
