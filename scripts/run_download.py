#!/usr/bin/env python3
"""
Blackboard ungraded-submission downloader.

Usage:
  python scripts/run_download.py -v
  python scripts/run_download.py --dest ~/grading --course-id _1234_1 --max-workers 4 -vv

Connection settings come from the environment (see utils/config.py);
set PYTHON_DOTENV_LOAD=1 to read them from .env / .env.local.
"""

from __future__ import annotations
import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

# --- ensure repo root on sys.path ---
THIS_FILE = Path(__file__).resolve()
REPO_ROOT = THIS_FILE.parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from export.export_submissions import export_submissions
from logging_setup import get_logger, setup_logging
from utils.api import BlackboardAPI
from utils.config import ENV_COURSE_ID, ENV_DEST, ENV_MAX_WORKERS, Settings, load_env_if_opted_in
from utils.errors import ConfigError


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(description="Download ungraded Blackboard submissions")
    p.add_argument("--dest", type=Path, default=None, help="Root destination directory (overrides DESTINATION_DIR)")
    p.add_argument("--course-id", default=None, help="Blackboard course id (overrides COURSE_ID)")
    p.add_argument("--max-workers", type=int, default=None, help="Concurrent downloads (default: 8)")
    p.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v, -vv)")
    args = p.parse_args(argv)

    setup_logging(verbosity=args.verbose)

    load_env_if_opted_in()
    env = dict(os.environ)
    if args.dest is not None:
        env[ENV_DEST] = str(args.dest)
    if args.course_id is not None:
        env[ENV_COURSE_ID] = args.course_id
    if args.max_workers is not None:
        env[ENV_MAX_WORKERS] = str(args.max_workers)

    try:
        settings = Settings.from_env(env)
    except ConfigError as e:
        p.error(str(e))

    log = get_logger(course_id=settings.course_id)
    api = BlackboardAPI.from_settings(settings)

    report = export_submissions(api, settings.dest_root, max_workers=settings.max_workers)

    log.info("run complete", extra=report.counts())
    for result in report.failed:
        print(f"FAILED {result.task.destination}: {result.error}", file=sys.stderr)
    print(
        f"downloaded={len(report.downloaded)} failed={len(report.failed)} "
        f"extracted={len(report.extracted)} skipped_attempts={len(report.skipped_attempts)} "
        f"failed_columns={len(report.failed_columns)}"
    )
    return 0 if report.ok else 2


if __name__ == "__main__":
    raise SystemExit(main())
