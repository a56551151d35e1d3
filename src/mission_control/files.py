"""File helpers shared by the markdown side channels."""

import os
import stat
import tempfile
from pathlib import Path


def read_text_raw(path: Path, encoding: str) -> str:
    """Read a file without newline translation, so CRLF survives a rewrite."""
    with open(path, encoding=encoding, newline="") as f:
        return f.read()


def atomic_write_text(path: Path, content: str, encoding: str = "utf-8") -> None:
    """Write via temp file plus rename in the same directory.

    Readers see either the old or the new content, never a truncated file.
    The file mode of an existing target is kept.
    """
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as tmp:
            tmp.write(content)
        if path.exists():
            os.chmod(tmp_name, stat.S_IMODE(path.stat().st_mode))
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
