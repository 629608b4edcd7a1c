# utils/errors.py
from __future__ import annotations

from pathlib import Path
from typing import Optional


class GrabberError(Exception):
    """Base class for every error raised by this project."""


class ConfigError(GrabberError):
    pass


class RemoteError(GrabberError):
    """
    Non-success HTTP response or network failure while talking to Blackboard.
    `context` names the operation and id that failed (e.g. "attempt 42 files").
    """

    def __init__(self, message: str, *, status: Optional[int] = None, context: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.context = context

    def __str__(self) -> str:
        base = super().__str__()
        parts = [p for p in (self.context, f"status={self.status}" if self.status else "") if p]
        return f"{base} ({', '.join(parts)})" if parts else base


class _PathError(GrabberError):
    def __init__(self, path: Path | str, message: str = "") -> None:
        self.path = Path(path)
        super().__init__(f"{message or self.__class__.__name__}: {self.path}")


class FileWriteError(_PathError):
    pass


class ArchiveExpansionError(_PathError):
    pass


class DirectoryCreationError(_PathError):
    pass
