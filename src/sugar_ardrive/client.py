"""Typed client over the ardrive CLI."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from sugar_ardrive.cache import CacheItem, filter_by_extension, project_cache
from sugar_ardrive.config import BridgeConfig
from sugar_ardrive.invoker import ArDriveInvoker, Operation
from sugar_ardrive.models import Drive, FileEntry, decode_records
from sugar_ardrive.normalize import normalize_output
from sugar_ardrive.wallet import ResolvedWallet, resolve_wallet

logger = logging.getLogger(__name__)


@dataclass
class ArDriveClient:
    config: BridgeConfig = field(default_factory=BridgeConfig)
    invoker: ArDriveInvoker | None = None

    def __post_init__(self) -> None:
        if self.invoker is None:
            self.invoker = ArDriveInvoker(config=self.config)

    def resolve_wallet(self, wallet: str | Path | None = None) -> ResolvedWallet:
        return resolve_wallet(wallet, tool_name=self.config.tool_name)

    def _records(self, operation: Operation, wallet: str | Path | None, *, drive_id: str | None = None) -> list:
        resolved = self.resolve_wallet(wallet)
        logger.debug("ardrive %s using wallet from %s", operation, resolved.source)
        result = self.invoker.run(operation, resolved.content, drive_id=drive_id)
        return normalize_output(result.stdout)

    def list_all_drives(self, wallet: str | Path | None = None) -> list[Drive]:
        return decode_records(self._records("list-all-drives", wallet), Drive)

    def list_drive(self, drive_id: str, wallet: str | Path | None = None) -> list[FileEntry]:
        return decode_records(self._records("list-drive", wallet, drive_id=drive_id), FileEntry)

    def list_drive_files(
        self,
        drive_id: str,
        wallet: str | Path | None = None,
        *,
        extension: str | None = None,
    ) -> list[FileEntry]:
        entries = decode_records(self._records("list-drive-files", wallet, drive_id=drive_id), FileEntry)
        files = [entry for entry in entries if not entry.is_folder]
        if extension:
            files = filter_by_extension(files, extension)
        return files

    def build_cache_items(
        self,
        drive_id: str,
        wallet: str | Path | None = None,
        *,
        extension: str | None = None,
    ) -> dict[str, CacheItem]:
        files = self.list_drive_files(drive_id, wallet)
        unresolvable = [entry.name for entry in files if not entry.is_resolvable]
        if unresolvable:
            logger.warning("%d files have no transaction id and get empty links", len(unresolvable))
        return project_cache(files, extension=extension, gateway=self.config.gateway)


__all__ = ["ArDriveClient"]
