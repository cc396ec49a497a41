"""Build cache items from existing NFT metadata URLs."""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from sugar_ardrive.cache import CacheItem
from sugar_ardrive.errors import MetadataImportError

logger = logging.getLogger(__name__)

DEFAULT_NAME = "Unnamed"


def build_session(retries: int = 2) -> requests.Session:
    session = requests.Session()
    retry = Retry(
        total=max(0, int(retries)),
        connect=max(0, int(retries)),
        read=max(0, int(retries)),
        status=max(0, int(retries)),
        status_forcelist=(429, 500, 502, 503, 504),
        backoff_factor=0.2,
        allowed_methods=("GET",),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def read_metadata_urls(path: str | Path) -> list[str]:
    source = Path(path)
    try:
        raw = source.read_text(encoding="utf-8")
    except OSError as exc:
        raise MetadataImportError(f"failed to read URL list {source}: {exc}") from exc
    return [line.strip() for line in raw.splitlines() if line.strip()]


def _last_segment(url: str) -> str:
    return urlparse(url).path.rstrip("/").rsplit("/", 1)[-1]


def import_metadata(
    urls: list[str],
    *,
    session: requests.Session | None = None,
    timeout: float = 20.0,
) -> dict[str, CacheItem]:
    """Fetch each metadata URL and map it to a cache item.

    URLs answering with a non-2xx status are skipped; keys stay contiguous.
    """
    http = session or build_session()
    items: dict[str, CacheItem] = {}
    for url in urls:
        logger.info("fetching metadata from %s", url)
        try:
            response = http.get(url, timeout=timeout)
        except requests.RequestException as exc:
            raise MetadataImportError(f"failed to fetch {url}: {exc}") from exc

        if not 200 <= response.status_code < 300:
            logger.warning("skipping %s (HTTP %s)", url, response.status_code)
            continue

        try:
            metadata = response.json()
        except ValueError as exc:
            raise MetadataImportError(f"invalid JSON at {url}: {exc}") from exc
        if not isinstance(metadata, dict):
            raise MetadataImportError(f"metadata at {url} must be a JSON object")

        name = metadata.get("name")
        image = metadata.get("image")
        image_link = image if isinstance(image, str) else ""
        animation = metadata.get("animation_url")

        key = str(len(items))
        items[key] = CacheItem(
            name=name if isinstance(name, str) and name else DEFAULT_NAME,
            image_hash=_last_segment(image_link) if image_link else "",
            image_link=image_link,
            metadata_hash=_last_segment(url),
            metadata_link=url,
            animation_hash=_last_segment(animation) if isinstance(animation, str) and animation else None,
            animation_link=animation if isinstance(animation, str) and animation else None,
        )
    return items
