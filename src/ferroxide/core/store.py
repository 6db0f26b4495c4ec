"""On-disk log file: line counting, appends and truncating rotation."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from ferroxide.utils.clock import format_timestamp

HEADER_RULE = "=" * 29


def split_lines(text: str) -> list[str]:
    """Split on ``\\n`` only, dropping a final empty segment and trailing ``\\r``."""

    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def session_header(moment: datetime) -> str:
    return f"{HEADER_RULE}[ {format_timestamp(moment)} ]{HEADER_RULE}"


class FileLogStore:
    """Append-only text file that can be truncated to its most recent lines.

    Callers serialise access; the store itself holds no lock.  Rotation rewrites
    the whole file in place and is not atomic for outside readers such as
    ``tail -f``.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read(self) -> str:
        # no newline translation: only "\n" ends a line
        with self.path.open("r", encoding="utf-8", newline="") as handle:
            return handle.read()

    def count_lines(self) -> int:
        """Lines currently in the file, or 0 when it is absent or unreadable."""

        try:
            text = self._read()
        except (OSError, UnicodeDecodeError):
            return 0
        return len(split_lines(text))

    def open_for_append(self) -> None:
        """Create the file if needed; raises ``OSError`` when it cannot be opened."""

        with self.path.open("a", encoding="utf-8"):
            pass

    def write_header(self, moment: datetime) -> None:
        self.append(session_header(moment))

    def append(self, line: str) -> None:
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            handle.write(line + "\n")

    def rotate(self, observed_line_count: int, capacity: int) -> None:
        """Keep the lines after the first ``observed_line_count - capacity + 1``, then a blank line."""

        text = self._read()
        skip = max(observed_line_count - capacity + 1, 0)
        kept = split_lines(text)[skip:]
        kept.append("")
        self.path.write_text("\n".join(kept), encoding="utf-8", newline="")
