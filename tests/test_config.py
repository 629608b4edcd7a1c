# tests/test_config.py
from pathlib import Path

import pytest

from utils.config import DEFAULT_MAX_WORKERS, DEFAULT_TIMEOUT, Settings, load_env_if_opted_in
from utils.errors import ConfigError

REQUIRED = {
    "BLACKBOARD_API_BASE_URL": "https://bb.test/learn/api/public/v1",
    "COURSE_ID": "_101_1",
    "SESSION_COOKIE": "BbRouter=abc",
    "DESTINATION_DIR": "/tmp/grading",
}


def test_from_env_reads_required_values():
    s = Settings.from_env(dict(REQUIRED))
    assert s.base_url == REQUIRED["BLACKBOARD_API_BASE_URL"]
    assert s.course_id == "_101_1"
    assert s.cookie == "BbRouter=abc"
    assert s.dest_root == Path("/tmp/grading")
    assert s.max_workers == DEFAULT_MAX_WORKERS
    assert s.timeout == DEFAULT_TIMEOUT


def test_missing_values_are_all_named():
    env = dict(REQUIRED)
    del env["COURSE_ID"]
    env["SESSION_COOKIE"] = "   "
    with pytest.raises(ConfigError) as excinfo:
        Settings.from_env(env)
    assert "COURSE_ID" in str(excinfo.value)
    assert "SESSION_COOKIE" in str(excinfo.value)


def test_optional_tunables():
    env = dict(REQUIRED, BLACKBOARD_MAX_WORKERS="3", BLACKBOARD_HTTP_TIMEOUT="2, 120")
    s = Settings.from_env(env)
    assert s.max_workers == 3
    assert s.timeout == (2.0, 120.0)


@pytest.mark.parametrize("key, value", [("BLACKBOARD_MAX_WORKERS", "0"), ("BLACKBOARD_MAX_WORKERS", "many"),
                                        ("BLACKBOARD_HTTP_TIMEOUT", "fast"), ("BLACKBOARD_HTTP_TIMEOUT", "1,2,3")])
def test_bad_tunables_rejected(key, value):
    with pytest.raises(ConfigError):
        Settings.from_env(dict(REQUIRED, **{key: value}))


def test_settings_are_immutable():
    s = Settings.from_env(dict(REQUIRED))
    with pytest.raises(AttributeError):
        s.course_id = "other"


def test_from_env_uses_process_environment(monkeypatch):
    monkeypatch.setenv("PYTHON_DOTENV_DISABLE", "1")
    for k, v in REQUIRED.items():
        monkeypatch.setenv(k, v)
    assert Settings.from_env().course_id == "_101_1"


def test_dotenv_only_loaded_when_opted_in(monkeypatch):
    calls = []
    monkeypatch.setattr("dotenv.load_dotenv", lambda *a, **k: calls.append(a))

    load_env_if_opted_in({})
    load_env_if_opted_in({"PYTHON_DOTENV_LOAD": "1", "PYTHON_DOTENV_DISABLE": "1"})
    assert calls == []

    load_env_if_opted_in({"PYTHON_DOTENV_LOAD": "1"})
    assert len(calls) == 2
