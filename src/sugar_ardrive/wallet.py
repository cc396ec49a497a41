"""Wallet resolution and durable storage for ArDrive calls."""

from __future__ import annotations

import base64
import hashlib
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from sugar_ardrive.config import DEFAULT_TOOL_NAME
from sugar_ardrive.errors import WalletUnavailableError

logger = logging.getLogger(__name__)

WALLET_ENV_VAR = "ARDRIVE_WALLET"
WALLET_FILE_NAME = "ardrive_wallet.json"

WalletSource = Literal["explicit-path", "environment", "stored-file"]


@dataclass(frozen=True)
class ResolvedWallet:
    content: str
    source: WalletSource
    path: Path | None = None

    def __repr__(self) -> str:
        return f"ResolvedWallet(source={self.source!r}, path={self.path!r}, bytes={len(self.content)})"


def stored_wallet_path(tool_name: str = DEFAULT_TOOL_NAME) -> Path:
    return Path.home() / ".config" / tool_name / WALLET_FILE_NAME


def _chmod_owner_only(path: Path) -> None:
    if os.name != "posix":
        return
    path.chmod(0o600)


def resolve_wallet(
    explicit: str | Path | None = None,
    *,
    tool_name: str = DEFAULT_TOOL_NAME,
) -> ResolvedWallet:
    """Resolve wallet content from an explicit file, the environment or the stored file.

    An explicit path never falls back: if it cannot be read the call fails.
    """
    if explicit is not None:
        path = Path(explicit)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise WalletUnavailableError(f"failed reading wallet file {path}: {exc}") from exc
        logger.debug("using wallet from explicit path %s", path)
        return ResolvedWallet(content=content, source="explicit-path", path=path)

    env_value = os.getenv(WALLET_ENV_VAR)
    if env_value and env_value.strip():
        logger.debug("using wallet from %s", WALLET_ENV_VAR)
        return ResolvedWallet(content=env_value, source="environment")

    stored = stored_wallet_path(tool_name)
    if stored.exists():
        try:
            content = stored.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise WalletUnavailableError(f"failed reading stored wallet {stored}: {exc}") from exc
        logger.debug("using stored wallet %s", stored)
        return ResolvedWallet(content=content, source="stored-file", path=stored)

    raise WalletUnavailableError(
        "no ardrive wallet provided: pass -w/--wallet <file>, set the "
        f"{WALLET_ENV_VAR} env var to the wallet JSON, or run "
        "`sugar-ardrive set-wallet <file>` to store one"
    )


def persist_wallet(path: str | Path, *, tool_name: str = DEFAULT_TOOL_NAME) -> Path:
    source = Path(path)
    try:
        content = source.read_bytes()
    except OSError as exc:
        raise WalletUnavailableError(f"failed reading wallet file {source}: {exc}") from exc

    target = stored_wallet_path(tool_name)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(content)
    _chmod_owner_only(target)
    logger.info("stored ardrive wallet at %s", target)
    return target


def derive_wallet_address(content: str) -> str | None:
    # Arweave address: base64url(sha256(modulus)) without padding.
    try:
        payload = json.loads(content)
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    modulus = payload.get("n")
    if not isinstance(modulus, str) or not modulus:
        return None
    try:
        raw = base64.urlsafe_b64decode(modulus + "=" * (-len(modulus) % 4))
    except ValueError:
        return None
    digest = hashlib.sha256(raw).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def describe_wallet(resolved: ResolvedWallet, *, reveal: bool = False) -> dict[str, object]:
    payload: dict[str, object] = {
        "source": resolved.source,
        "path": str(resolved.path) if resolved.path else None,
        "bytes": len(resolved.content.encode("utf-8")),
        "address": derive_wallet_address(resolved.content),
    }
    if reveal:
        try:
            payload["content"] = json.dumps(json.loads(resolved.content), indent=2, sort_keys=True)
        except ValueError:
            payload["content"] = resolved.content
    return payload
