"""
did - Atomic File Replacement

Whole-file writes go to a temporary sibling that is fsynced and then
renamed over the target. The temporary file never outlives a failure.
"""

import os
import shutil
import tempfile
from pathlib import Path

DEFAULT_MODE = 0o644


def write_atomic(path: str | Path, content: bytes) -> None:
    """
    Replace `path` with `content`, keeping the target's permission bits.

    A new file gets mode 0o644.

    Raises:
        OSError: If the temporary file cannot be written or renamed
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        "wb",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    ) as tf:
        tmp_path = Path(tf.name)
        try:
            tf.write(content)
            tf.flush()
            os.fsync(tf.fileno())
        except BaseException:
            tf.close()
            tmp_path.unlink(missing_ok=True)
            raise

    try:
        if path.exists():
            shutil.copymode(path, tmp_path)
        else:
            os.chmod(tmp_path, DEFAULT_MODE)
        tmp_path.replace(path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
