from __future__ import annotations

import os
import subprocess
import types
from pathlib import Path

import pytest

from sugar_ardrive.binary import ArDriveExecutable
from sugar_ardrive.config import BridgeConfig
from sugar_ardrive.errors import SubprocessFailureError, SubprocessTimeoutError
from sugar_ardrive.invoker import ArDriveInvoker, build_arguments, wallet_file

WALLET = '{"kty": "RSA", "n": "abc", "d": "secret"}'


@pytest.fixture
def executable(monkeypatch):
    monkeypatch.setattr(
        "sugar_ardrive.invoker.resolve_executable",
        lambda config, start=None: ArDriveExecutable(path="/opt/ardrive", vendored=True),
    )


def _fake_run(captured: dict, *, returncode: int = 0, stdout: str = "[]", stderr: str = ""):
    def fake_run(cmd, **kwargs):  # noqa: ANN001
        wallet_path = Path(cmd[cmd.index("--wallet-file") + 1])
        captured["cmd"] = cmd
        captured["kwargs"] = kwargs
        captured["wallet_path"] = wallet_path
        captured["wallet_content"] = wallet_path.read_text(encoding="utf-8")
        return types.SimpleNamespace(returncode=returncode, stdout=stdout, stderr=stderr)

    return fake_run


def test_build_arguments_per_operation() -> None:
    assert build_arguments("list-all-drives", "/tmp/w.json") == [
        "list-all-drives",
        "--wallet-file",
        "/tmp/w.json",
        "--json",
    ]
    assert build_arguments("list-drive", "/tmp/w.json", drive_id="D1") == [
        "list-drive",
        "-d",
        "D1",
        "--wallet-file",
        "/tmp/w.json",
    ]
    assert build_arguments("list-drive-files", "/tmp/w.json", drive_id="D1") == [
        "list-drive",
        "-d",
        "D1",
        "--all",
        "--wallet-file",
        "/tmp/w.json",
    ]


def test_build_arguments_requires_drive_id() -> None:
    with pytest.raises(ValueError, match="drive id"):
        build_arguments("list-drive", "/tmp/w.json", drive_id=" ")


def test_build_arguments_rejects_unknown_operation() -> None:
    with pytest.raises(ValueError):
        build_arguments("upload", "/tmp/w.json")


def test_wallet_file_is_unique_private_and_removed(tmp_path) -> None:
    with wallet_file(WALLET, tool_name="sugar-cli", directory=tmp_path) as first:
        with wallet_file(WALLET, tool_name="sugar-cli", directory=tmp_path) as second:
            assert first != second
            assert first.name.startswith("sugar-cli-wallet-")
            assert first.name.endswith(".tmp.json")
            assert first.read_text(encoding="utf-8") == WALLET
            assert (first.stat().st_mode & 0o777) == 0o600
    assert not first.exists()
    assert not second.exists()


def test_wallet_file_removed_when_body_raises(tmp_path) -> None:
    with pytest.raises(RuntimeError):
        with wallet_file(WALLET, tool_name="sugar-cli", directory=tmp_path) as path:
            raise RuntimeError("boom")
    assert not path.exists()


def test_run_success_passes_wallet_and_production_env(tmp_path, monkeypatch, executable) -> None:
    captured: dict = {}
    monkeypatch.setattr("sugar_ardrive.invoker.subprocess.run", _fake_run(captured, stdout='[{"driveId":"a"}]'))

    invoker = ArDriveInvoker(config=BridgeConfig(timeout_seconds=42.0), temp_dir=tmp_path)
    result = invoker.run("list-all-drives", WALLET)

    assert result.returncode == 0
    assert result.stdout == '[{"driveId":"a"}]'
    assert captured["cmd"][0] == "/opt/ardrive"
    assert captured["cmd"][1] == "list-all-drives"
    assert captured["wallet_content"] == WALLET
    assert captured["kwargs"]["env"]["NODE_ENV"] == "production"
    assert captured["kwargs"]["timeout"] == 42.0
    assert captured["kwargs"]["capture_output"] is True
    assert not captured["wallet_path"].exists()


def test_run_failure_carries_stderr_and_removes_wallet(tmp_path, monkeypatch, executable) -> None:
    captured: dict = {}
    stderr = "Error: drive not found: D-missing\n"
    monkeypatch.setattr(
        "sugar_ardrive.invoker.subprocess.run",
        _fake_run(captured, returncode=1, stdout="partial", stderr=stderr),
    )

    invoker = ArDriveInvoker(temp_dir=tmp_path)
    with pytest.raises(SubprocessFailureError) as excinfo:
        invoker.run("list-drive", WALLET, drive_id="D-missing")

    exc = excinfo.value
    assert exc.stderr == stderr
    assert exc.stdout == "partial"
    assert exc.returncode == 1
    assert "drive not found: D-missing" in str(exc)
    assert exc.command[:4] == ["/opt/ardrive", "list-drive", "-d", "D-missing"]
    assert not captured["wallet_path"].exists()
    assert "secret" not in str(exc)


def test_run_success_with_stderr_is_not_an_error(tmp_path, monkeypatch, executable) -> None:
    monkeypatch.setattr(
        "sugar_ardrive.invoker.subprocess.run",
        _fake_run({}, stdout="[]", stderr="(node:1) ExperimentalWarning: fetch"),
    )

    result = ArDriveInvoker(temp_dir=tmp_path).run("list-all-drives", WALLET)

    assert result.stderr.startswith("(node:1)")


def test_run_timeout_is_surfaced_and_wallet_removed(tmp_path, monkeypatch, executable) -> None:
    seen: dict = {}

    def fake_run(cmd, **kwargs):  # noqa: ANN001
        seen["wallet_path"] = Path(cmd[cmd.index("--wallet-file") + 1])
        raise subprocess.TimeoutExpired(cmd, kwargs["timeout"], output=b"half", stderr=b"")

    monkeypatch.setattr("sugar_ardrive.invoker.subprocess.run", fake_run)

    with pytest.raises(SubprocessTimeoutError) as excinfo:
        ArDriveInvoker(config=BridgeConfig(timeout_seconds=1.0), temp_dir=tmp_path).run("list-all-drives", WALLET)

    assert excinfo.value.stdout == "half"
    assert not seen["wallet_path"].exists()


def test_cleanup_failure_is_logged_not_raised(tmp_path, monkeypatch, executable, caplog) -> None:
    monkeypatch.setattr("sugar_ardrive.invoker.subprocess.run", _fake_run({}))

    def fail_unlink(self, missing_ok=False):  # noqa: ANN001, ARG001
        raise PermissionError("read-only")

    monkeypatch.setattr(Path, "unlink", fail_unlink)

    result = ArDriveInvoker(temp_dir=tmp_path).run("list-all-drives", WALLET)

    assert result.returncode == 0
    assert "failed to remove temporary wallet file" in caplog.text


def test_run_decodes_output_as_utf8_with_replacement(tmp_path, monkeypatch, executable) -> None:
    captured: dict = {}
    monkeypatch.setattr("sugar_ardrive.invoker.subprocess.run", _fake_run(captured))

    ArDriveInvoker(temp_dir=tmp_path).run("list-all-drives", WALLET)

    assert captured["kwargs"]["encoding"] == "utf-8"
    assert captured["kwargs"]["errors"] == "replace"
    assert "text" not in captured["kwargs"]


@pytest.mark.skipif(os.name != "posix", reason="needs a POSIX shell script")
def test_run_tolerates_non_utf8_bytes_from_vendored_binary(tmp_path) -> None:
    script = tmp_path / "node_modules" / ".bin" / "ardrive"
    script.parent.mkdir(parents=True)
    script.write_text("#!/bin/sh\nprintf '[{\"name\":\"caf\\351.png\"}]'\n", encoding="utf-8")
    script.chmod(0o755)
    wallet_dir = tmp_path / "wallets"
    wallet_dir.mkdir()

    result = ArDriveInvoker(cwd=tmp_path, temp_dir=wallet_dir).run("list-all-drives", WALLET)

    assert result.returncode == 0
    assert result.stdout == '[{"name":"caf\ufffd.png"}]'
    assert list(wallet_dir.iterdir()) == []
