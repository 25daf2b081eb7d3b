"""Reading of the run logs archive.

GitHub serves run logs as a zip: one file per job at the top level plus a
directory per job with one file per step. The top-level job file has the
shortest path and holds the whole output, so that is the one relayed.
"""

from __future__ import annotations

import io
import zipfile
from typing import Callable

from core.domain.models import LogArchiveEntry
from core.errors import EmptyLogArchiveError


def list_entries(data: bytes) -> list[LogArchiveEntry]:
    """List the archive entries in archive order."""

    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        return [LogArchiveEntry(path=info.filename, is_file=not info.is_dir()) for info in archive.infolist()]


def select_general_log(
    entries: list[LogArchiveEntry],
    *,
    on_entry: Callable[[LogArchiveEntry], None] | None = None,
) -> LogArchiveEntry:
    """Pick the file entry with the shortest path (first wins on ties).

    `on_entry` is called for every entry, directories included.
    """

    selected: LogArchiveEntry | None = None
    for entry in entries:
        if on_entry is not None:
            on_entry(entry)
        if not entry.is_file:
            continue
        if selected is None or len(entry.path) < len(selected.path):
            selected = entry
    if selected is None:
        raise EmptyLogArchiveError("No files were found in logs archive")
    return selected


def read_text(data: bytes, path: str) -> str:
    """Return the decoded content of one archive member."""

    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        raw = archive.read(path)
    return raw.decode("utf-8", errors="replace")


def open_general_log(
    data: bytes,
    *,
    on_entry: Callable[[LogArchiveEntry], None] | None = None,
) -> tuple[str, str]:
    """Return `(path, text)` of the general log file of an archive."""

    try:
        entries = list_entries(data)
    except zipfile.BadZipFile as exc:
        raise EmptyLogArchiveError(f"Logs archive is not a valid zip: {exc}") from exc
    entry = select_general_log(entries, on_entry=on_entry)
    return entry.path, read_text(data, entry.path)
