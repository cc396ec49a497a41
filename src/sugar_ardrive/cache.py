"""Project ArDrive file listings into Sugar cache items."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Optional

from sugar_ardrive.config import DEFAULT_GATEWAY
from sugar_ardrive.models import FileEntry


@dataclass(frozen=True)
class CacheItem:
    name: str
    image_hash: str = ""
    image_link: str = ""
    metadata_hash: str = ""
    metadata_link: str = ""
    on_chain: bool = False
    animation_hash: Optional[str] = None
    animation_link: Optional[str] = None

    def to_dict(self) -> dict:
        payload: dict = {
            "name": self.name,
            "image_hash": self.image_hash,
            "image_link": self.image_link,
            "metadata_hash": self.metadata_hash,
            "metadata_link": self.metadata_link,
            "onChain": self.on_chain,
        }
        if self.animation_hash is not None:
            payload["animation_hash"] = self.animation_hash
        if self.animation_link is not None:
            payload["animation_link"] = self.animation_link
        return payload


def arweave_url(tx_id: str, gateway: str = DEFAULT_GATEWAY) -> str:
    return f"{gateway.rstrip('/')}/{tx_id}"


def _normalize_extension(extension: str) -> str:
    normalized = extension.strip().lstrip(".").lower()
    if not normalized:
        raise ValueError("extension filter must not be empty")
    return normalized


def filter_by_extension(files: Iterable[FileEntry], extension: str) -> list[FileEntry]:
    suffix = "." + _normalize_extension(extension)
    return [entry for entry in files if entry.name and entry.name.lower().endswith(suffix)]


def project_cache(
    files: Iterable[FileEntry],
    *,
    extension: str | None = None,
    gateway: str = DEFAULT_GATEWAY,
) -> dict[str, CacheItem]:
    """Map files to cache items keyed "0", "1", ... in listing order.

    Filtering happens before numbering, so keys stay contiguous.
    """
    selected = filter_by_extension(files, extension) if extension else list(files)
    items: dict[str, CacheItem] = {}
    for index, entry in enumerate(selected):
        key = str(index)
        items[key] = CacheItem(
            name=entry.name or key,
            image_hash=entry.data_tx_id or "",
            image_link=arweave_url(entry.data_tx_id, gateway) if entry.data_tx_id else "",
            metadata_hash=entry.metadata_tx_id or "",
            metadata_link=arweave_url(entry.metadata_tx_id, gateway) if entry.metadata_tx_id else "",
        )
    return items


def build_cache_document(items: Mapping[str, CacheItem]) -> dict:
    return {
        "program": {
            "candyMachine": None,
            "candyMachineCreator": None,
            "collectionMint": None,
        },
        "items": {key: item.to_dict() for key, item in items.items()},
    }


def write_cache(path: str | Path, document: dict) -> Path:
    target = Path(path)
    if target.parent and not target.parent.exists():
        target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")
    return target
