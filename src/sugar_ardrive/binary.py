"""Locate the ardrive executable: a project-local copy first, then the system one."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from sugar_ardrive.config import BridgeConfig
from sugar_ardrive.errors import BinaryUnavailableError

logger = logging.getLogger(__name__)

INSTALL_HINT = "npm install -g ardrive-cli (or npm install ardrive-cli inside the project)"
VERSION_PROBE_TIMEOUT = 15


@dataclass(frozen=True)
class ArDriveExecutable:
    path: str
    vendored: bool
    version: str = ""


def locate_vendored_binary(
    start: str | Path | None = None,
    relative_path: str = "node_modules/.bin/ardrive",
) -> Path | None:
    """Walk ``start`` and its ancestors looking for a vendored executable."""
    current = Path(start) if start else Path.cwd()
    current = current.resolve()
    for directory in (current, *current.parents):
        candidate = directory / relative_path
        if candidate.is_file():
            return candidate
    return None


def probe_system_binary(name: str) -> ArDriveExecutable | None:
    path = shutil.which(name)
    if not path:
        return None
    try:
        result = subprocess.run(
            [path, "--version"],
            capture_output=True,
            text=True,
            timeout=VERSION_PROBE_TIMEOUT,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        logger.warning("ardrive version probe failed for %s: %s", path, exc)
        return None
    if result.returncode != 0:
        logger.warning("ardrive version probe exited %s: %s", result.returncode, result.stderr.strip())
        return None
    return ArDriveExecutable(path=path, vendored=False, version=result.stdout.strip())


def _vendored_probe(config: BridgeConfig, start: Path | None) -> ArDriveExecutable | None:
    found = locate_vendored_binary(start, config.vendored_path)
    if found is None:
        return None
    if not os.access(found, os.X_OK):
        logger.warning("vendored ardrive at %s is not executable; ignoring it", found)
        return None
    return ArDriveExecutable(path=str(found), vendored=True)


def _system_probe(config: BridgeConfig, start: Path | None) -> ArDriveExecutable | None:  # noqa: ARG001
    return probe_system_binary(config.binary_name)


_PROBES: tuple[Callable[[BridgeConfig, Path | None], ArDriveExecutable | None], ...] = (
    _vendored_probe,
    _system_probe,
)


def resolve_executable(config: BridgeConfig, *, start: str | Path | None = None) -> ArDriveExecutable:
    start_path = Path(start) if start else None
    for probe in _PROBES:
        found = probe(config, start_path)
        if found is not None:
            logger.debug("using ardrive executable %s (vendored=%s)", found.path, found.vendored)
            return found
    raise BinaryUnavailableError(
        f"ardrive executable not found: no {config.vendored_path} in this directory or its "
        f"parents, and `{config.binary_name} --version` did not run. Install it with: {INSTALL_HINT}"
    )
