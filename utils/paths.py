# utils/paths.py
from __future__ import annotations
import re

from models import Student

# Characters rejected by common filesystems (Windows is the strictest).
_illegal_re = re.compile(r'[<>:"|?*\x00-\x1F]')
_separator_re = re.compile(r"[/\\]")
_DOT_SEGMENTS = {".", ".."}


def sanitize_path(path: str) -> str:
    """
    Replace every illegal character in a relative path with "_".
    "/" separators are kept, so this is applied to the composed path.
    Dot segments ("." / "..") become "_" and leading "/" is dropped so the
    result always stays under the directory it is joined onto.

    >>> sanitize_path('HW1/Jo:hn_Doe/attempt_1')
    'HW1/Jo_hn_Doe/attempt_1'
    """
    cleaned = _illegal_re.sub("_", path)
    segments = ["_" if seg in _DOT_SEGMENTS else seg for seg in cleaned.lstrip("/").split("/")]
    return "/".join(segments)


def sanitize_filename(name: str) -> str:
    """Like sanitize_path, but separators are replaced too so the name stays one segment."""
    cleaned = _separator_re.sub("_", _illegal_re.sub("_", name)).strip()
    if cleaned in _DOT_SEGMENTS:
        return ""
    return cleaned


def build_attempt_path(column_name: str, student: Student, attempt_number: int) -> str:
    """<column>/<username>_<first>_<last>/attempt_<n>, sanitized as a whole."""
    return sanitize_path(
        f"{column_name}/{student.username}_{student.first_name}_{student.last_name}/attempt_{attempt_number}"
    )
