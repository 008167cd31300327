"""
File helpers shared by the flat-file stores.

Writes go to a temporary file in the target directory which then
replaces the target in one step, so a failed write never leaves a
truncated file behind.
"""

import os
import tempfile
from pathlib import Path
from typing import Iterable


def write_text_atomic(path: Path, text: str) -> None:
    """Replace the contents of ``path`` with ``text``."""
    directory = path.parent
    directory.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        try:
            os.remove(tmp)
        except OSError:
            pass
        raise


def write_lines_atomic(path: Path, lines: Iterable[str]) -> None:
    """Replace ``path`` with one line per item, each newline terminated."""
    write_text_atomic(path, "".join(f"{line}\n" for line in lines))
