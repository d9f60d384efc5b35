"""File utilities for secure file operations."""

from __future__ import annotations

import os
from pathlib import Path


def write_file_exclusive(path: Path, content: str, mode: int) -> None:
    """Create path with its final permissions before any content lands in it.

    The file is opened with O_CREAT | O_EXCL and the requested mode, so a
    secret is never readable under the umask default, not even briefly.

    Args:
        path: File to create
        content: Exact file body, encoded as UTF-8
        mode: Permission bits for the new file (e.g., 0o600)

    Raises:
        FileExistsError: If the file already exists
        OSError: If the file can't be created or written
    """
    data = content.encode("utf-8")
    fd = os.open(str(path), os.O_WRONLY | os.O_CREAT | os.O_EXCL, mode)
    try:
        # umask may have cleared bits from mode; pin the exact value
        os.fchmod(fd, mode)
        while data:
            written = os.write(fd, data)
            data = data[written:]
    finally:
        os.close(fd)
