# utils/fs.py

from __future__ import annotations

import logging
import os
import tempfile
import zipfile
from pathlib import Path
from typing import Iterable, Optional

from utils.errors import ArchiveExpansionError, DirectoryCreationError, FileWriteError

ARCHIVE_EXTENSION = ".zip"

log = logging.getLogger(__name__)


def ensure_dir(path: Path) -> bool:
    """
    Create directory (and parents) if missing. Safe to race on the same path.
    Failure is logged and swallowed; the later write into it reports the real error.
    """
    try:
        Path(path).mkdir(parents=True, exist_ok=True)
        return True
    except OSError as e:
        err = DirectoryCreationError(path, f"failed to create directory ({e})")
        log.error("%s", err, extra={"path": str(path)})
        return False


def stream_to_path(chunks: Iterable[bytes], dest: Path) -> int:
    """
    Stream chunks into a temp file beside dest, then atomic-replace.
    A failed write never leaves a partial file at dest. Returns bytes written.
    """
    dest = Path(dest)
    tmp_path: Optional[Path] = None
    written = 0
    try:
        # Create tmp in same directory so os.replace is atomic on the filesystem
        tmp_fd, tmp_name = tempfile.mkstemp(dir=dest.parent, prefix=f".{dest.name}.", suffix=".part")
        tmp_path = Path(tmp_name)
        with os.fdopen(tmp_fd, "wb") as out:
            for chunk in chunks:
                out.write(chunk)
                written += len(chunk)
            out.flush()
            os.fsync(out.fileno())
        os.replace(tmp_path, dest)
    except OSError as e:
        raise FileWriteError(dest, f"failed to write file ({e})") from e
    finally:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink(missing_ok=True)
    return written


def is_archive(name: str | Path) -> bool:
    return str(name).lower().endswith(ARCHIVE_EXTENSION)


def archive_target_dir(archive_path: Path) -> Path:
    """submission.zip -> submission/ next to it."""
    archive_path = Path(archive_path)
    base = archive_path.name[: -len(ARCHIVE_EXTENSION)]
    if not base.strip(" ."):
        raise ArchiveExpansionError(archive_path, "archive has no base name to extract into")
    return archive_path.with_name(base)


def extract_archive(archive_path: Path) -> Optional[Path]:
    """
    Expand a zip into a sibling directory named after its base name.
    The archive itself stays on disk. Any failure is logged and swallowed
    (returns None) so one bad upload never stops the run.
    """
    archive_path = Path(archive_path)
    try:
        target = archive_target_dir(archive_path)
        with zipfile.ZipFile(archive_path) as zf:
            root = target.resolve()
            for member in zf.namelist():
                resolved = (target / member).resolve()
                if resolved != root and root not in resolved.parents:
                    raise ArchiveExpansionError(archive_path, f"member escapes extraction dir: {member!r}")
            target.mkdir(parents=True, exist_ok=True)
            zf.extractall(target)
    except ArchiveExpansionError as e:
        log.error("%s", e, extra={"path": str(archive_path)})
        return None
    except (zipfile.BadZipFile, zipfile.LargeZipFile, NotImplementedError, RuntimeError, ValueError, OSError) as e:
        err = ArchiveExpansionError(archive_path, f"unable to expand archive ({e})")
        log.error("%s", err, extra={"path": str(archive_path)})
        return None
    return target
