"""Tests for the environment drift detection script."""

from __future__ import annotations

from pathlib import Path

import pytest

from scripts import check_env

REQUIRED_ENV_KEYS = [
    "CAFE24_MALL_ID",
    "CAFE24_CLIENT_ID",
    "CAFE24_CLIENT_SECRET",
    "CAFE24_REDIRECT_URI",
    "DYNAMODB_TABLE_NAME",
]

COMPLETE_ENV = {
    "CAFE24_MALL_ID": "testmall",
    "CAFE24_CLIENT_ID": "client-id",
    "CAFE24_CLIENT_SECRET": "client-secret",
    "CAFE24_REDIRECT_URI": "https://bridge.example.com/api/auth/callback",
    "DYNAMODB_TABLE_NAME": "cafe24-tokens",
}


def _write_env(env_path: Path, **values: str) -> None:
    contents = "\n".join(f"{key}={value}" for key, value in values.items())
    env_path.write_text(contents + "\n", encoding="utf-8")


def _clear_required_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in REQUIRED_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def _run(command: str, env_file: Path, hash_file: Path) -> int:
    return check_env.main(
        [command, "--env-file", str(env_file), "--hash-file", str(hash_file)]
    )


@pytest.mark.parametrize("command", ["record", "verify", "check"])
def test_main_requires_existing_env_file(tmp_path: Path, command: str) -> None:
    env_file = tmp_path / ".missing-env"
    hash_file = tmp_path / ".env.sha256"

    argv = [command, "--env-file", str(env_file)]
    if command != "check":
        argv.extend(["--hash-file", str(hash_file)])

    exit_code = check_env.main(argv)
    assert exit_code == check_env.EXIT_RUNTIME_ERROR


def test_check_accepts_complete_env(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    _clear_required_env(monkeypatch)
    _write_env(env_file, **COMPLETE_ENV)

    assert check_env.main(["check", "--env-file", str(env_file)]) == check_env.EXIT_OK


def test_record_and_verify_detects_mismatched_checksum(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    hash_file = tmp_path / ".env.sha256"

    _clear_required_env(monkeypatch)
    _write_env(env_file, **COMPLETE_ENV)

    assert _run("record", env_file, hash_file) == check_env.EXIT_OK
    baseline = hash_file.read_text(encoding="utf-8").strip()
    assert baseline

    _clear_required_env(monkeypatch)
    assert _run("verify", env_file, hash_file) == check_env.EXIT_OK

    _write_env(env_file, **{**COMPLETE_ENV, "CAFE24_CLIENT_SECRET": "rotated"})

    _clear_required_env(monkeypatch)
    assert _run("verify", env_file, hash_file) == check_env.EXIT_CHECKSUM_ERROR


def test_verify_without_baseline_is_runtime_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    _clear_required_env(monkeypatch)
    _write_env(env_file, **COMPLETE_ENV)

    exit_code = _run("verify", env_file, tmp_path / "absent.sha256")
    assert exit_code == check_env.EXIT_RUNTIME_ERROR


def test_validation_failure_for_missing_required_values(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    hash_file = tmp_path / ".env.sha256"

    _clear_required_env(monkeypatch)
    values = dict(COMPLETE_ENV)
    values.pop("CAFE24_CLIENT_SECRET")
    _write_env(env_file, **values)

    assert _run("record", env_file, hash_file) == check_env.EXIT_VALIDATION_ERROR
    assert not hash_file.exists()


def test_validation_failure_for_malformed_values(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    _clear_required_env(monkeypatch)
    monkeypatch.setenv("CAFE24_HTTP_TIMEOUT", "soon")
    _write_env(env_file, **COMPLETE_ENV)

    exit_code = check_env.main(["check", "--env-file", str(env_file)])
    assert exit_code == check_env.EXIT_VALIDATION_ERROR
