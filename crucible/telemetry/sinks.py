"""Append-only file sinks with archival rotation support."""

from __future__ import annotations

from pathlib import Path
from typing import TextIO


class FileSink:
    """One append-mode text file whose size is tracked in bytes.

    Not thread-safe on its own; ``TelemetryLogger`` serializes access.
    """

    def __init__(self, path: Path, header: str | None = None) -> None:
        """Create a closed sink.

        Args:
            path: File to append to.
            header: Line written, and flushed, whenever the file is opened
                empty.
        """
        self.path = path
        self.header = header
        self._handle: TextIO | None = None
        self._size = 0

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    @property
    def size(self) -> int:
        """Bytes in the file, including anything still buffered."""
        return self._size

    def open(self) -> None:
        """Open for appending, writing the header if the file is empty.

        Raises:
            OSError: If the file cannot be opened.
        """
        if self._handle is not None:
            return
        self._handle = open(self.path, "a", encoding="utf-8", newline="\n")
        self._size = self.path.stat().st_size
        if self.header is not None and self._size == 0:
            self.write(self.header)
            self._handle.flush()

    def write(self, line: str) -> None:
        """Append ``line`` plus a newline.

        Raises:
            OSError: If the sink is closed or the write fails.
        """
        if self._handle is None:
            raise OSError(f"sink is closed: {self.path}")
        data = f"{line}\n"
        self._handle.write(data)
        self._size += len(data.encode("utf-8"))

    def flush(self) -> None:
        if self._handle is not None:
            self._handle.flush()

    def close(self) -> None:
        if self._handle is None:
            return
        try:
            self._handle.flush()
        finally:
            self._handle.close()
            self._handle = None

    def archive_path(self, stamp: str) -> Path:
        """Return an unused archive name ``<stem>_<stamp>[_N]<suffix>``."""
        parent, stem, suffix = self.path.parent, self.path.stem, self.path.suffix
        candidate = parent / f"{stem}_{stamp}{suffix}"
        counter = 1
        while candidate.exists():
            candidate = parent / f"{stem}_{stamp}_{counter}{suffix}"
            counter += 1
        return candidate

    def archive(self, stamp: str) -> Path | None:
        """Rename the (closed) file to its archive name.

        Returns:
            The archive path, or None when there was no file to archive.

        Raises:
            OSError: If the rename fails for any reason other than a
                missing source file.
        """
        target = self.archive_path(stamp)
        try:
            self.path.rename(target)
        except FileNotFoundError:
            return None
        return target
