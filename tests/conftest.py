# tests/conftest.py
from __future__ import annotations

import io
import sys
import zipfile
from pathlib import Path

import pytest

# ---------- import helpers ----------
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from utils.api import BlackboardAPI  # noqa: E402

BASE = "https://bb.test/learn/api/public/v1"
COURSE = "_101_1"


def zip_bytes(members: dict[str, bytes]) -> bytes:
    """Build an in-memory zip from {name: content}."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in members.items():
            zf.writestr(name, data)
    return buf.getvalue()


class GradebookMock:
    """
    Registers Blackboard endpoints on requests_mock with a small fluent API,
    so tests describe a course instead of URLs.
    """

    def __init__(self, requests_mock, base: str = BASE, course_id: str = COURSE):
        self.m = requests_mock
        self.base = base
        self.course = f"{base}/courses/{course_id}"

    def roster(self, members: list[dict], **kwargs):
        if "status_code" in kwargs:
            self.m.get(f"{self.course}/users", **kwargs)
        else:
            self.m.get(f"{self.course}/users", json={"results": members})
        return self

    def user(self, user_id: str, username: str = "", given: str = "", family: str = "", **kwargs):
        url = f"{self.base}/users/{user_id}"
        if "status_code" in kwargs:
            self.m.get(url, **kwargs)
        else:
            self.m.get(url, json={"id": user_id, "userName": username, "name": {"given": given, "family": family}})
        return self

    def columns(self, columns: list[dict]):
        self.m.get(f"{self.course}/gradebook/columns", json={"results": columns})
        return self

    def attempts(self, column_id: str, attempts: list[dict], **kwargs):
        url = f"{self.course}/gradebook/columns/{column_id}/attempts"
        if "status_code" in kwargs:
            self.m.get(url, **kwargs)
        else:
            self.m.get(url, json={"results": attempts})
        return self

    def files(self, attempt_id: str, files: list[dict], **kwargs):
        url = f"{self.course}/gradebook/attempts/{attempt_id}/files"
        if "status_code" in kwargs:
            self.m.get(url, **kwargs)
        else:
            self.m.get(url, json={"results": files})
        return self

    def download(self, attempt_id: str, file_id: str, content: bytes = b"", **kwargs):
        url = f"{self.course}/gradebook/attempts/{attempt_id}/files/{file_id}/download"
        if "status_code" in kwargs:
            self.m.get(url, **kwargs)
        else:
            self.m.get(url, content=content)
        return self


# ---------- common fixtures ----------
@pytest.fixture
def api():
    return BlackboardAPI(BASE, COURSE, "BbRouter=expires:123,id:abc")


@pytest.fixture
def gradebook(requests_mock):
    return GradebookMock(requests_mock)


@pytest.fixture
def dest(tmp_path: Path) -> Path:
    root = tmp_path / "submissions"
    root.mkdir()
    return root
