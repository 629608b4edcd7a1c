# export/export_submissions.py
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple

from export.sequencer import sequence_attempts
from logging_setup import get_logger
from models import Column, DownloadResult, DownloadTask, RunReport, SequencedAttempt, Student, SubmissionFile
from utils.api import BlackboardAPI
from utils.config import DEFAULT_MAX_WORKERS
from utils.errors import FileWriteError, RemoteError
from utils.fs import ensure_dir, extract_archive, is_archive, stream_to_path
from utils.paths import build_attempt_path, sanitize_filename


def export_submissions(
    api: BlackboardAPI,
    dest_root: Path,
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> RunReport:
    """
    Download every ungraded attempt in the course.

    Layout:
      <dest_root>/<column>/<username>_<first>_<last>/attempt_<N>/<file name>
      <dest_root>/.../attempt_<N>/<archive base name>/   (expanded .zip, archive kept)

    Runs in two phases:
      1) sequencing: roster, profiles and columns (any failure is fatal), then per
         column the attempts are numbered and every file is resolved into a task.
      2) fan-out: the finished task list is downloaded on a thread pool.
    """
    log = get_logger(course_id=api.course_id)
    dest_root = Path(dest_root)
    report = RunReport()

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        students = fetch_student_map(api, pool)
        columns = api.list_columns()
        log.info("fetched %d students and %d columns", len(students), len(columns))

        tasks = build_worklist(api, dest_root, columns, students, report=report, pool=pool)
        log.info("worklist ready: %d files", len(tasks))

        for result in pool.map(lambda t: _materialize_isolated(api, t), tasks):
            (report.downloaded if result.ok else report.failed).append(result)

    log.info("download complete: %s", report.counts())
    return report


def fetch_student_map(api: BlackboardAPI, pool: Optional[ThreadPoolExecutor] = None) -> Dict[str, Student]:
    """
    Map user id -> Student for everyone enrolled as a student.
    Any RemoteError propagates: a partial roster would silently drop students.
    """
    members = api.list_students()
    user_ids = [str(m["userId"]) for m in members if m.get("userId")]

    def _resolve(user_id: str) -> Student:
        return Student.from_profile(user_id, api.get_user(user_id))

    if pool is None:
        students = [_resolve(uid) for uid in user_ids]
    else:
        students = list(pool.map(_resolve, user_ids))
    return {s.id: s for s in students}


def build_worklist(
    api: BlackboardAPI,
    dest_root: Path,
    columns: Sequence[Column],
    students: Dict[str, Student],
    *,
    report: Optional[RunReport] = None,
    pool: Optional[ThreadPoolExecutor] = None,
) -> List[DownloadTask]:
    """
    Fully materialize the download tasks for every column.
    Numbering is done per column before any file list is fetched, so the
    task list is deterministic no matter how the fetches interleave.
    """
    report = report if report is not None else RunReport()
    tasks: List[DownloadTask] = []

    for column in columns:
        log = get_logger(course_id=api.course_id, column=column.name)
        try:
            attempts = api.list_ungraded_attempts(column.id)
        except RemoteError as e:
            log.error("skipping column %s: %s", column.id, e)
            report.failed_columns.append(column.id)
            continue

        sequence = sequence_attempts(attempts)
        if not len(sequence):
            log.debug("no ungraded attempts")
            continue
        log.info("sequenced %d attempts from %d students", len(sequence), len(sequence.counts))

        known: List[Tuple[SequencedAttempt, Student]] = []
        for item in sequence:
            student = students.get(item.attempt.user_id)
            if student is None:
                log.warning(
                    "skipping attempt %s: user %s is not on the student roster",
                    item.attempt.id, item.attempt.user_id,
                )
                report.skipped_attempts.append(item.attempt.id)
                continue
            known.append((item, student))

        def _files(pair: Tuple[SequencedAttempt, Student]) -> Optional[List[SubmissionFile]]:
            attempt_id = pair[0].attempt.id
            try:
                return api.list_submission_files(attempt_id)
            except RemoteError as e:
                log.error("skipping attempt %s: %s", attempt_id, e)
                return None

        resolved = pool.map(_files, known) if pool is not None else map(_files, known)

        for (item, student), files in zip(known, resolved):
            if files is None:
                report.skipped_attempts.append(item.attempt.id)
                continue
            attempt_dir = dest_root / build_attempt_path(column.name, student, item.number)
            tasks.extend(_tasks_for_attempt(column, student, item, files, attempt_dir))

    return tasks


def _tasks_for_attempt(
    column: Column,
    student: Student,
    item: SequencedAttempt,
    files: Sequence[SubmissionFile],
    attempt_dir: Path,
) -> List[DownloadTask]:
    used: Set[str] = set()
    out: List[DownloadTask] = []
    for f in files:
        name = sanitize_filename(f.name) or f"file-{sanitize_filename(f.id)}"
        if name in used:
            # two uploads with the same name in one attempt
            stem, dot, ext = name.rpartition(".")
            name = f"{stem}-{f.id}.{ext}" if dot and stem else f"{name}-{f.id}"
            name = sanitize_filename(name)
        used.add(name)
        out.append(DownloadTask(
            column=column,
            student=student,
            attempt_id=item.attempt.id,
            number=item.number,
            file=f,
            destination=attempt_dir / name,
        ))
    return out


def materialize(api: BlackboardAPI, task: DownloadTask) -> DownloadResult:
    """
    Download one file to its destination and expand it if it is an archive.
    Failures are logged and returned, never raised, so sibling downloads carry on.
    """
    log = get_logger(course_id=api.course_id, column=task.column.name)
    dest = task.destination
    where = f"attempt {task.attempt_id} file {task.file.id} -> {dest}"

    ensure_dir(dest.parent)
    try:
        with api.download_file(task.attempt_id, task.file.id) as chunks:
            size = stream_to_path(chunks, dest)
    except RemoteError as e:
        log.error("download failed for %s: %s", where, e)
        return DownloadResult(task=task, ok=False, error=str(e))
    except FileWriteError as e:
        log.error("write failed for %s: %s", where, e)
        return DownloadResult(task=task, ok=False, error=str(e))

    log.debug("saved %s (%d bytes)", where, size)

    extracted = extract_archive(dest) if is_archive(dest.name) else None
    if extracted is not None:
        log.debug("expanded %s into %s", dest.name, extracted)
    return DownloadResult(task=task, ok=True, extracted_to=extracted)


def _materialize_isolated(api: BlackboardAPI, task: DownloadTask) -> DownloadResult:
    """materialize, with any unexpected error recorded against this file instead of the run."""
    try:
        return materialize(api, task)
    except Exception as e:
        log = get_logger(course_id=api.course_id, column=task.column.name)
        log.exception("unexpected error for attempt %s file %s -> %s", task.attempt_id, task.file.id, task.destination)
        return DownloadResult(task=task, ok=False, error=f"{type(e).__name__}: {e}")
