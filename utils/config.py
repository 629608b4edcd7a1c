# utils/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple

from utils.errors import ConfigError

REPO_ROOT = Path(__file__).resolve().parents[1]

DEFAULT_TIMEOUT: Tuple[float, float] = (5, 60)  # (connect, read) seconds
DEFAULT_MAX_WORKERS = 8

ENV_BASE_URL = "BLACKBOARD_API_BASE_URL"
ENV_COURSE_ID = "COURSE_ID"
ENV_COOKIE = "SESSION_COOKIE"
ENV_DEST = "DESTINATION_DIR"
ENV_MAX_WORKERS = "BLACKBOARD_MAX_WORKERS"
ENV_TIMEOUT = "BLACKBOARD_HTTP_TIMEOUT"


def load_env_if_opted_in(env: Optional[Mapping[str, str]] = None) -> None:
    """
    only load .env files when explicitly opted in
    - Set PYTHON_DOTENV_LOAD=1 to enable
    - PYTHON_DOTENV_DISABLE=1 always disables
    """
    env = os.environ if env is None else env
    if env.get("PYTHON_DOTENV_DISABLE") == "1":
        return
    if env.get("PYTHON_DOTENV_LOAD") != "1":
        return

    from dotenv import load_dotenv

    # repo defaults, then local overrides
    load_dotenv(str(REPO_ROOT / ".env"))
    load_dotenv(str(REPO_ROOT / ".env.local"), override=True)


def _parse_timeout(raw: Optional[str]) -> Tuple[float, float]:
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        parts = [float(p.strip()) for p in raw.split(",")]
    except ValueError as e:
        raise ConfigError(f"{ENV_TIMEOUT} must look like '5,60': {raw!r}") from e
    if len(parts) == 1:
        return (parts[0], parts[0])
    if len(parts) == 2:
        return (parts[0], parts[1])
    raise ConfigError(f"{ENV_TIMEOUT} must look like '5,60': {raw!r}")


def _parse_workers(raw: Optional[str]) -> int:
    if not raw:
        return DEFAULT_MAX_WORKERS
    try:
        n = int(raw)
    except ValueError as e:
        raise ConfigError(f"{ENV_MAX_WORKERS} must be an integer: {raw!r}") from e
    if n < 1:
        raise ConfigError(f"{ENV_MAX_WORKERS} must be >= 1: {raw!r}")
    return n


@dataclass(frozen=True, slots=True)
class Settings:
    """Run configuration. Built once at startup and passed to whatever needs it."""

    base_url: str
    course_id: str
    cookie: str
    dest_root: Path
    max_workers: int = DEFAULT_MAX_WORKERS
    timeout: Tuple[float, float] = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        if env is None:
            load_env_if_opted_in()
            env = os.environ

        values = {name: (env.get(name) or "").strip() for name in (ENV_BASE_URL, ENV_COURSE_ID, ENV_COOKIE, ENV_DEST)}
        missing = [name for name, v in values.items() if not v]
        if missing:
            raise ConfigError(f"missing required environment variables: {', '.join(missing)}")

        return cls(
            base_url=values[ENV_BASE_URL],
            course_id=values[ENV_COURSE_ID],
            cookie=values[ENV_COOKIE],
            dest_root=Path(values[ENV_DEST]).expanduser(),
            max_workers=_parse_workers(env.get(ENV_MAX_WORKERS)),
            timeout=_parse_timeout(env.get(ENV_TIMEOUT)),
        )
