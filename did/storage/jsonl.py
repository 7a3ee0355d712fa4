"""
did - JSON Lines Entry Store

Entries live one per line in a JSON Lines file. Identity is positional:
the Nth line is entry N, so every rewrite keeps surviving entries in
their original relative order.

Reads are fault tolerant. A line that fails to decode is skipped and
reported as a ParseWarning carrying its true 1-indexed line number;
one bad line never blocks access to the rest of the file.

Full rewrites go through a temporary file in the same directory that is
then renamed over the target, so an observer sees either the old or the
new content. On filesystems without atomic rename this is best effort.
Appends are not crash-atomic: a crash mid-append can leave a partial
final line, which the reader reports as corrupted.
"""

import logging
import os
import tempfile
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from did.entry import Entry
from did.exceptions import EntryDecodeError, EntryIndexError
from did.logging import record_operation
from did.storage.backup import BackupRotator

logger = logging.getLogger(__name__)

# Length of ParseWarning.preview(), including the ellipsis
PREVIEW_LENGTH = 50
ELLIPSIS = "..."


@dataclass
class ParseWarning:
    """A stored line that could not be decoded."""

    line_number: int  # 1-indexed position in the file
    content: str  # raw line content
    error: str  # decode error description

    def preview(self, limit: int = PREVIEW_LENGTH) -> str:
        """Line content shortened to at most `limit` characters for display."""
        if len(self.content) <= limit:
            return self.content
        return self.content[: limit - len(ELLIPSIS)] + ELLIPSIS


@dataclass
class ReadResult:
    """Entries decoded from the store plus warnings for lines that were skipped."""

    entries: list[Entry] = field(default_factory=list)
    warnings: list[ParseWarning] = field(default_factory=list)

    @property
    def active(self) -> list[Entry]:
        """Entries that are not soft-deleted, in file order."""
        return [e for e in self.entries if e.deleted_at is None]


def iter_raw_lines(path: Path) -> Iterator[tuple[int, bytes]]:
    """
    Yield (line_number, raw_bytes) for every line in the file.

    Only b"\\n" terminates a line. The terminator and a trailing b"\\r"
    are stripped. A missing file yields nothing.
    """
    try:
        f = open(path, "rb")
    except FileNotFoundError:
        return
    with f:
        for line_number, raw in enumerate(f, start=1):
            yield line_number, raw.rstrip(b"\n").rstrip(b"\r")


def _decode_line(raw: bytes) -> Entry:
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise EntryDecodeError(f"invalid UTF-8: {e}") from e
    return Entry.from_json(text)


class EntryStore:
    """
    Append, read and atomically rewrite a JSON Lines file of entries.

    The store holds no state besides its path; every call reads or
    writes the file directly. A missing file is an empty store.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"EntryStore({str(self.path)!r})"

    def exists(self) -> bool:
        """Check if the store file exists."""
        return self.path.exists()

    def append(self, entry: Entry) -> None:
        """
        Append one entry, creating the file and its directory if needed.

        Raises:
            OSError: If the file cannot be opened or written
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        line = entry.to_json() + "\n"
        try:
            with open(self.path, "a", encoding="utf-8", newline="\n") as f:
                f.write(line)
        except OSError as e:
            record_operation("append", self.path, count=1, error=e)
            raise
        record_operation("append", self.path, count=1)

    def read_all(self) -> ReadResult:
        """
        Read every decodable entry, collecting warnings for the rest.

        Returns:
            ReadResult with entries in file order and one ParseWarning per
            undecodable line. Empty when the file does not exist.

        Raises:
            OSError: If the file exists but cannot be read
        """
        result = ReadResult()
        for line_number, raw in iter_raw_lines(self.path):
            try:
                result.entries.append(_decode_line(raw))
            except EntryDecodeError as e:
                result.warnings.append(
                    ParseWarning(
                        line_number=line_number,
                        content=raw.decode("utf-8", errors="replace"),
                        error=e.message,
                    )
                )

        if result.warnings:
            logger.debug(
                f"Skipped {len(result.warnings)} corrupted line(s) in {self.path}"
            )
        return result

    def read_entries(self) -> list[Entry]:
        """All decodable entries, including soft-deleted ones."""
        return self.read_all().entries

    def read_active(self) -> ReadResult:
        """
        Read entries that are not soft-deleted.

        The warnings of the underlying read are kept on the result.
        """
        result = self.read_all()
        return ReadResult(entries=result.active, warnings=result.warnings)

    def rewrite_all(self, entries: Iterable[Entry]) -> None:
        """
        Replace the whole file with the given entries, in the given order.

        The new content is written to a temporary sibling file and renamed
        over the store, so readers never observe a half-written file.

        Raises:
            OSError: If the temporary file cannot be written or renamed
        """
        entries = list(entries)
        try:
            self._replace_with(entries)
        except OSError as e:
            record_operation("rewrite", self.path, count=len(entries), error=e)
            raise
        record_operation("rewrite", self.path, count=len(entries))

    def _replace_with(self, entries: list[Entry]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        mode = self._current_mode()

        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            newline="\n",
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tf:
            tmp_path = Path(tf.name)
            try:
                for entry in entries:
                    tf.write(entry.to_json() + "\n")
                tf.flush()
                os.fsync(tf.fileno())
            except BaseException:
                tf.close()
                tmp_path.unlink(missing_ok=True)
                raise

        try:
            os.chmod(tmp_path, mode)
            tmp_path.replace(self.path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    def update_at(self, index: int, entry: Entry) -> Entry:
        """
        Replace the entry at a 0-based storage index.

        Returns:
            The entry that was replaced

        Raises:
            EntryIndexError: If index is out of range (file left untouched)
        """
        entries = self.read_entries()
        check_index(index, len(entries))

        previous = entries[index]
        entries[index] = entry
        self.rewrite_all(entries)
        record_operation("update", self.path, index=index)
        return previous

    def delete_at(self, index: int) -> Entry:
        """
        Permanently remove the entry at a 0-based storage index.

        A backup of the current file is taken first.

        Returns:
            The removed entry

        Raises:
            EntryIndexError: If index is out of range (file left untouched)
        """
        entries = self.read_entries()
        check_index(index, len(entries))

        removed = entries.pop(index)
        BackupRotator(self.path).create_backup()
        self.rewrite_all(entries)
        record_operation("delete", self.path, index=index)
        return removed

    def _current_mode(self) -> int:
        try:
            return self.path.stat().st_mode & 0o777
        except FileNotFoundError:
            return 0o644


def check_index(index: int, count: int) -> None:
    """
    Validate a 0-based storage index against the number of entries.

    Raises:
        EntryIndexError: If index is not within [0, count)
    """
    if 0 <= index < count:
        return
    if count == 0:
        raise EntryIndexError(f"index {index} out of bounds (no entries)", index=index, count=count)
    raise EntryIndexError(
        f"index {index} out of bounds (0-{count - 1})", index=index, count=count
    )
