from __future__ import annotations

import threading
from collections.abc import Iterable
from pathlib import Path

import structlog

logger = structlog.get_logger("app.services.whitelist")


def parse_whitelist_lines(lines: Iterable[str]) -> dict[str, str]:
    """Parses ``email,group`` lines; blank lines and ``#`` comments are skipped."""
    entries: dict[str, str] = {}
    for line_number, raw_line in enumerate(lines, start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        parts = [part.strip() for part in line.split(",")]
        if len(parts) != 2 or not parts[0] or not parts[1]:
            logger.warning("whitelist_entry_invalid", line_number=line_number)
            continue

        email, group_name = parts
        entries[email.lower()] = group_name
    return entries


class Whitelist:
    """Email to group-name lookup backed by a text file.

    Built once at startup and passed to whoever needs group scoping;
    ``reload`` swaps the whole map atomically.
    """

    def __init__(self, path: str | Path, *, entries: dict[str, str] | None = None) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._entries: dict[str, str] = dict(entries or {})

    @classmethod
    def from_file(cls, path: str | Path) -> Whitelist:
        whitelist = cls(path)
        whitelist.reload()
        return whitelist

    def reload(self) -> int:
        if not self.path.exists():
            logger.warning("whitelist_file_missing", path=str(self.path))
            entries: dict[str, str] = {}
        else:
            with self.path.open(encoding="utf-8") as handle:
                entries = parse_whitelist_lines(handle)

        with self._lock:
            self._entries = entries
        logger.info("whitelist_loaded", entries=len(entries), path=str(self.path))
        return len(entries)

    def is_member(self, email: str) -> bool:
        return self.group_name_for(email) is not None

    def group_name_for(self, email: str) -> str | None:
        with self._lock:
            return self._entries.get(email.strip().lower())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
