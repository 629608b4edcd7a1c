# utils/api.py
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple
from urllib.parse import urljoin

import requests

from models import STUDENT_ROLE, Attempt, Column, SubmissionFile
from utils.config import DEFAULT_TIMEOUT, Settings
from utils.errors import RemoteError

# --- Tunables ---------------------------------------------------------------
CHUNK = 1024 * 1024  # 1 MiB
USER_AGENT = "BlackboardGrabber/1.0"
API_PREFIX = "/learn/api/public/v1"

log = logging.getLogger(__name__)


class BlackboardAPI:
    """
    Read-only Blackboard Learn gradebook client bound to one course.

    Every request carries the browser session cookie. Failures are logged with
    the id that failed and re-raised as RemoteError; there are no retries.
    """

    def __init__(
        self,
        base_url: str | None,
        course_id: str | None,
        cookie: str | None,
        *,
        timeout: Tuple[float, float] = DEFAULT_TIMEOUT,
    ) -> None:
        if not base_url or not course_id or not cookie:
            raise ValueError("BlackboardAPI base_url, course_id and cookie are required (check your .env)")

        base = base_url.rstrip("/")
        # Ensure exactly one API prefix; keep host root for paging links
        if base.endswith(API_PREFIX):
            api_root = base
            host_root = base[: -len(API_PREFIX)]
        else:
            api_root = base + API_PREFIX
            host_root = base

        self.base_url = host_root + "/"
        self.api_root = api_root + "/"
        self.course_id = str(course_id)
        self.timeout = timeout

        self.session = requests.Session()
        self.session.headers.update({
            "Cookie": cookie,
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
        })

    @classmethod
    def from_settings(cls, settings: Settings) -> "BlackboardAPI":
        return cls(settings.base_url, settings.course_id, settings.cookie, timeout=settings.timeout)

    def _full_url(self, endpoint: str) -> str:
        ep = (endpoint or "").strip()
        if ep.startswith(("http://", "https://")):
            return ep
        if ep.startswith(API_PREFIX):
            # paging links come back host-relative
            return urljoin(self.base_url, ep.lstrip("/"))
        return urljoin(self.api_root, ep.lstrip("/"))

    def _request(self, method: str, url: str, *, context: str, **kwargs) -> requests.Response:
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            log.error("request failed: %s: %s (%s)", context, e, url)
            raise RemoteError(f"{method} {url} failed: {e}", context=context) from e

        if not resp.ok:
            status = resp.status_code
            resp.close()
            log.error("request failed: %s (HTTP %s, %s)", context, status, url)
            raise RemoteError(f"{method} {url} returned HTTP {status}", status=status, context=context)
        return resp

    def get(self, endpoint: str, *, context: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """GET a single JSON object."""
        resp = self._request("GET", self._full_url(endpoint), context=context, params=params)
        try:
            data = resp.json()
        except ValueError as e:
            log.error("invalid JSON: %s", context)
            raise RemoteError(f"invalid JSON from {endpoint}", status=resp.status_code, context=context) from e
        if not isinstance(data, dict):
            raise RemoteError(f"expected a JSON object from {endpoint}", status=resp.status_code, context=context)
        return data

    def get_results(self, endpoint: str, *, context: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        GET with transparent pagination.
        Blackboard wraps lists as {"results": [...], "paging": {"nextPage": "/learn/api/..."}}.
        """
        results: List[Dict[str, Any]] = []
        url: Optional[str] = endpoint
        first = True
        while url:
            # Only send params on the first request; nextPage already carries them.
            page = self.get(url, context=context, params=params if first else None)
            first = False
            results.extend(page.get("results") or [])
            url = (page.get("paging") or {}).get("nextPage")
        return results

    # ---- Gradebook helpers --------------------------------------------------

    def list_students(self) -> List[Dict[str, Any]]:
        """Course memberships whose courseRoleId is Student."""
        users = self.get_results(
            f"courses/{self.course_id}/users",
            context=f"students in course {self.course_id}",
        )
        return [u for u in users if u.get("courseRoleId") == STUDENT_ROLE]

    def get_user(self, user_id: str) -> Dict[str, Any]:
        return self.get(f"users/{user_id}", context=f"user {user_id}")

    def list_columns(self) -> List[Column]:
        data = self.get_results(
            f"courses/{self.course_id}/gradebook/columns",
            context=f"gradebook columns for course {self.course_id}",
        )
        return [Column.from_api(c) for c in data]

    def list_ungraded_attempts(self, column_id: str) -> List[Attempt]:
        """Attempts in API order, filtered to NeedsGrading. Ordering is left to the sequencer."""
        data = self.get_results(
            f"courses/{self.course_id}/gradebook/columns/{column_id}/attempts",
            context=f"ungraded attempts for column {column_id}",
        )
        attempts = [Attempt.from_api(a) for a in data]
        return [a for a in attempts if a.needs_grading]

    def list_submission_files(self, attempt_id: str) -> List[SubmissionFile]:
        data = self.get_results(
            f"courses/{self.course_id}/gradebook/attempts/{attempt_id}/files",
            context=f"file list for attempt {attempt_id}",
        )
        return [SubmissionFile.from_api(f) for f in data]

    @contextmanager
    def download_file(self, attempt_id: str, file_id: str) -> Iterator[Iterator[bytes]]:
        """
        Stream a submission file:

            with api.download_file(attempt_id, file_id) as chunks:
                stream_to_path(chunks, dest)

        The status is checked on entry, so a remote failure raises before the
        caller opens a file. The response is released on exit even if the
        chunks were never read.
        """
        context = f"download of file {file_id} for attempt {attempt_id}"
        url = self._full_url(
            f"courses/{self.course_id}/gradebook/attempts/{attempt_id}/files/{file_id}/download"
        )
        resp = self._request("GET", url, context=context, stream=True)
        with resp:
            yield self._iter_body(resp, context)

    @staticmethod
    def _iter_body(resp: requests.Response, context: str) -> Iterator[bytes]:
        try:
            for chunk in resp.iter_content(CHUNK):
                if chunk:
                    yield chunk
        except requests.RequestException as e:
            log.error("stream interrupted: %s: %s", context, e)
            raise RemoteError(f"stream interrupted: {e}", context=context) from e


__all__ = [
    "BlackboardAPI",
    "API_PREFIX",
    "CHUNK",
    "USER_AGENT",
]
