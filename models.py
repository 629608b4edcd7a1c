#models.py
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from utils.dates import UNKNOWN_CREATED, parse_iso8601

NEEDS_GRADING = "NeedsGrading"
STUDENT_ROLE = "Student"


@dataclass(frozen=True, slots=True)
class Student:
    id: str
    username: str
    first_name: str
    last_name: str

    @classmethod
    def from_profile(cls, user_id: str, profile: Mapping[str, Any]) -> "Student":
        """Build from a `/users/{userId}` payload (`userName`, `name.given`, `name.family`)."""
        name = profile.get("name") or {}
        return cls(
            id=str(user_id),
            username=str(profile.get("userName") or ""),
            first_name=str(name.get("given") or ""),
            last_name=str(name.get("family") or ""),
        )


@dataclass(frozen=True, slots=True)
class Column:
    id: str
    name: str

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "Column":
        cid = str(data["id"])
        return cls(id=cid, name=str(data.get("name") or f"column-{cid}"))


@dataclass(frozen=True, slots=True)
class Attempt:
    id: str
    user_id: str
    created: Optional[datetime]
    status: str

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "Attempt":
        return cls(
            id=str(data["id"]),
            user_id=str(data.get("userId") or ""),
            created=parse_iso8601(data.get("created")),
            status=str(data.get("status") or ""),
        )

    @property
    def needs_grading(self) -> bool:
        return self.status == NEEDS_GRADING

    @property
    def sort_key(self) -> datetime:
        return self.created or UNKNOWN_CREATED


@dataclass(frozen=True, slots=True)
class SubmissionFile:
    id: str
    name: str

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "SubmissionFile":
        fid = str(data["id"])
        return cls(id=fid, name=str(data.get("name") or ""))


@dataclass(frozen=True, slots=True)
class SequencedAttempt:
    attempt: Attempt
    number: int  # 1-based, per student within one column


@dataclass(frozen=True, slots=True)
class DownloadTask:
    column: Column
    student: Student
    attempt_id: str
    number: int
    file: SubmissionFile
    destination: Path  # absolute file path, already sanitized


@dataclass(frozen=True, slots=True)
class DownloadResult:
    task: DownloadTask
    ok: bool
    extracted_to: Optional[Path] = None
    error: Optional[str] = None


@dataclass(slots=True)
class RunReport:
    downloaded: List[DownloadResult] = field(default_factory=list)
    failed: List[DownloadResult] = field(default_factory=list)
    skipped_attempts: List[str] = field(default_factory=list)  # attempt ids
    failed_columns: List[str] = field(default_factory=list)    # column ids

    @property
    def extracted(self) -> List[Path]:
        return [r.extracted_to for r in self.downloaded if r.extracted_to is not None]

    @property
    def ok(self) -> bool:
        return not (self.failed or self.skipped_attempts or self.failed_columns)

    def counts(self) -> Dict[str, int]:
        return {
            "downloaded": len(self.downloaded),
            "failed": len(self.failed),
            "extracted": len(self.extracted),
            "skipped_attempts": len(self.skipped_attempts),
            "failed_columns": len(self.failed_columns),
        }
