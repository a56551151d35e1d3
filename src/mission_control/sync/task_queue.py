"""Reader and writer for the TASK-QUEUE.md markdown table."""

import logging
from datetime import datetime
from pathlib import Path

from mission_control.api.models import QueueEntry
from mission_control.errors import NotFoundError
from mission_control.files import atomic_write_text, read_text_raw

logger = logging.getLogger(__name__)

HEADER_PREFIX = "| ID |"
ROW_PREFIX = "| T"
MIN_COLUMNS = 5

# Cell positions shared by reader and writer: ID, Title, Assignee, Status, Notes
STATUS_COLUMN = 3
NOTES_COLUMN = 4


class TaskQueueMirror:
    """Human-editable projection of tasks kept in a markdown table.

    No locking: concurrent writers race and the last one wins. Writes
    replace the file atomically, so readers never see a half-written table.
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize mirror for the given TASK-QUEUE.md path."""
        self.path = Path(path)

    def read(self) -> list[QueueEntry]:
        """Parse all task rows from the table.

        Raises:
            NotFoundError: If the file does not exist
        """
        content, _ = self._read_text()
        return parse_task_queue(content)

    def last_modified(self) -> datetime:
        """File modification time."""
        if not self.path.exists():
            raise NotFoundError(f"{self.path.name} not found")
        return datetime.fromtimestamp(self.path.stat().st_mtime)

    def update(
        self, task_id: str, status: str | None = None, notes: str | None = None
    ) -> QueueEntry:
        """Rewrite the Status and/or Notes cell of the row for task_id.

        Returns:
            The updated row, cells read positionally

        Raises:
            NotFoundError: If the file or the row does not exist
        """
        content, encoding = self._read_text()
        # Keep each line's own ending so CRLF files stay CRLF
        lines = content.splitlines(keepends=True)
        row_prefix = f"| {task_id} |"

        for i, line in enumerate(lines):
            row = line.rstrip("\r\n")
            if row.startswith(HEADER_PREFIX) or not row.startswith(row_prefix):
                continue

            cells = split_cells(row)
            if status is not None:
                _set_cell(cells, STATUS_COLUMN, status)
            if notes is not None:
                _set_cell(cells, NOTES_COLUMN, notes)
            if status is not None or notes is not None:
                lines[i] = join_cells(cells) + line[len(row):]
                atomic_write_text(self.path, "".join(lines), encoding)
                logger.info(f"[TaskQueueMirror] Updated {task_id} in {self.path.name}")
            return _row_to_entry(cells)

        raise NotFoundError(f"Task {task_id} not found in {self.path.name}")

    def _read_text(self) -> tuple[str, str]:
        """Raw file content and the encoding it was decoded with."""
        if not self.path.exists():
            raise NotFoundError(f"{self.path.name} not found")

        # Try UTF-8 first, fallback to latin-1 for non-UTF-8 files
        try:
            return read_text_raw(self.path, "utf-8"), "utf-8"
        except UnicodeDecodeError:
            return read_text_raw(self.path, "latin-1"), "latin-1"


def parse_task_queue(content: str) -> list[QueueEntry]:
    """Parse task rows from markdown content.

    The table starts after the ``| ID |`` header and ends at the first line
    that does not start with ``|``. Rows must start with ``| T`` and carry at
    least five non-empty cells; extra cells are ignored.
    """
    entries: list[QueueEntry] = []
    in_table = False

    for line in content.splitlines():
        if line.startswith(HEADER_PREFIX):
            in_table = True
            continue

        if not in_table:
            continue

        if not line.startswith("|"):
            in_table = False
            continue

        if line.startswith(ROW_PREFIX):
            parts = [part.strip() for part in line.split("|")]
            parts = [part for part in parts if part]
            if len(parts) >= MIN_COLUMNS:
                entries.append(_row_to_entry(parts))

    return entries


def split_cells(line: str) -> list[str]:
    """Split a table row into trimmed cells, keeping empty ones."""
    inner = line.strip()
    if inner.startswith("|"):
        inner = inner[1:]
    if inner.endswith("|"):
        inner = inner[:-1]
    return [cell.strip() for cell in inner.split("|")]


def join_cells(cells: list[str]) -> str:
    return "| " + " | ".join(cells) + " |"


def escape_cell(value: str) -> str:
    """Flatten a value so it fits in one table cell."""
    flat = " ".join(value.splitlines()).strip()
    return flat.replace("|", "/")


def _set_cell(cells: list[str], index: int, value: str) -> None:
    while len(cells) <= index:
        cells.append("")
    cells[index] = escape_cell(value)


def _row_to_entry(cells: list[str]) -> QueueEntry:
    padded = cells + [""] * (MIN_COLUMNS - len(cells))
    return QueueEntry(
        id=padded[0],
        title=padded[1],
        assignee=padded[2],
        status=padded[3],
        notes=padded[4],
    )
