"""Run the ardrive CLI with a short-lived wallet file."""

from __future__ import annotations

import logging
import os
import subprocess
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Literal

from sugar_ardrive.binary import resolve_executable
from sugar_ardrive.config import BridgeConfig
from sugar_ardrive.errors import ArDriveBridgeError, SubprocessFailureError, SubprocessTimeoutError

logger = logging.getLogger(__name__)

Operation = Literal["list-all-drives", "list-drive", "list-drive-files"]

ALLOWED_OPERATIONS: tuple[Operation, ...] = ("list-all-drives", "list-drive", "list-drive-files")


@dataclass(frozen=True)
class InvocationResult:
    command: list[str]
    returncode: int
    stdout: str
    stderr: str


@contextmanager
def wallet_file(content: str, *, tool_name: str, directory: str | Path | None = None) -> Iterator[Path]:
    """Write ``content`` to a fresh owner-only temp file and always remove it afterwards."""
    fd, name = tempfile.mkstemp(
        prefix=f"{tool_name}-wallet-",
        suffix=".tmp.json",
        dir=str(directory) if directory else None,
    )
    path = Path(name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        yield path
    finally:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("failed to remove temporary wallet file %s: %s", path, exc)


def build_arguments(operation: str, wallet_path: str | Path, *, drive_id: str | None = None) -> list[str]:
    if operation not in ALLOWED_OPERATIONS:
        raise ValueError(f"operation must be one of: {', '.join(ALLOWED_OPERATIONS)}")
    if operation == "list-all-drives":
        return ["list-all-drives", "--wallet-file", str(wallet_path), "--json"]

    if not drive_id or not drive_id.strip():
        raise ValueError(f"{operation} requires a drive id")
    args = ["list-drive", "-d", drive_id.strip()]
    if operation == "list-drive-files":
        args.append("--all")
    args.extend(["--wallet-file", str(wallet_path)])
    return args


def _child_env(node_env: str) -> dict[str, str]:
    env = os.environ.copy()
    env["NODE_ENV"] = node_env
    return env


@dataclass
class ArDriveInvoker:
    config: BridgeConfig = field(default_factory=BridgeConfig)
    cwd: Path | None = None
    temp_dir: Path | None = None

    def run(
        self,
        operation: Operation,
        wallet_content: str,
        *,
        drive_id: str | None = None,
    ) -> InvocationResult:
        if not wallet_content.strip():
            raise ArDriveBridgeError("wallet content is empty")

        with wallet_file(wallet_content, tool_name=self.config.tool_name, directory=self.temp_dir) as path:
            executable = resolve_executable(self.config, start=self.cwd)
            command = [executable.path, *build_arguments(operation, path, drive_id=drive_id)]
            logger.info("running ardrive %s", operation)
            try:
                completed = subprocess.run(
                    command,
                    capture_output=True,
                    encoding="utf-8",
                    errors="replace",
                    env=_child_env(self.config.node_env),
                    cwd=str(self.cwd) if self.cwd else None,
                    timeout=self.config.timeout_seconds,
                )
            except subprocess.TimeoutExpired as exc:
                raise SubprocessTimeoutError(
                    f"ardrive {operation} did not finish within {self.config.timeout_seconds}s "
                    "and was terminated; raise timeout_seconds or ARDRIVE_TIMEOUT if the drive is large",
                    command=command,
                    stdout=_as_text(exc.stdout),
                    stderr=_as_text(exc.stderr),
                ) from exc
            except OSError as exc:
                raise SubprocessFailureError(
                    f"failed to start {executable.path}: {exc}",
                    command=command,
                ) from exc

        result = InvocationResult(
            command=command,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
        if result.returncode != 0:
            raise SubprocessFailureError(
                f"ardrive {operation} exited with status {result.returncode}: "
                f"{result.stderr.strip() or result.stdout.strip() or '(no output)'}\n"
                f"command: {' '.join(command)}\n"
                "check the wallet and drive id, then retry with `ardrive "
                f"{' '.join(command[1:2])} --help` for the accepted arguments",
                command=command,
                returncode=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
            )
        if result.stderr.strip():
            logger.debug("ardrive %s stderr: %s", operation, result.stderr.strip())
        return result


def _as_text(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value
