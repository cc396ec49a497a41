from __future__ import annotations

import types

import pytest
import requests

from sugar_ardrive.errors import MetadataImportError
from sugar_ardrive.importer import build_session, import_metadata, read_metadata_urls


class _Session:
    def __init__(self, responses: dict) -> None:
        self.responses = responses
        self.calls: list[tuple[str, float]] = []

    def get(self, url, *, timeout=None):  # noqa: ANN001
        self.calls.append((url, timeout))
        response = self.responses[url]
        if isinstance(response, Exception):
            raise response
        return response


def _ok(payload):
    return types.SimpleNamespace(status_code=200, json=lambda: payload)


def _bad_json():
    def raise_value_error():
        raise ValueError("Expecting value")

    return types.SimpleNamespace(status_code=200, json=raise_value_error)


def test_read_metadata_urls_skips_blank_lines(tmp_path) -> None:
    path = tmp_path / "urls.txt"
    path.write_text("https://arweave.net/A\n\n   \nhttps://arweave.net/B  \n", encoding="utf-8")

    assert read_metadata_urls(path) == ["https://arweave.net/A", "https://arweave.net/B"]


def test_read_metadata_urls_missing_file(tmp_path) -> None:
    with pytest.raises(MetadataImportError):
        read_metadata_urls(tmp_path / "missing.txt")


def test_import_metadata_builds_contiguous_items() -> None:
    session = _Session(
        {
            "https://arweave.net/A": _ok({"name": "Token A", "image": "https://arweave.net/IMG-A"}),
            "https://arweave.net/B": types.SimpleNamespace(status_code=404, json=lambda: {}),
            "https://arweave.net/C": _ok({"image": "https://arweave.net/IMG-C", "animation_url": "https://arweave.net/ANIM"}),
        }
    )

    items = import_metadata(
        ["https://arweave.net/A", "https://arweave.net/B", "https://arweave.net/C"],
        session=session,
    )

    assert list(items) == ["0", "1"]
    assert items["0"].name == "Token A"
    assert items["0"].image_link == "https://arweave.net/IMG-A"
    assert items["0"].image_hash == "IMG-A"
    assert items["0"].metadata_link == "https://arweave.net/A"
    assert items["0"].metadata_hash == "A"
    assert items["0"].on_chain is False
    assert items["1"].name == "Unnamed"
    assert items["1"].animation_link == "https://arweave.net/ANIM"
    assert items["1"].animation_hash == "ANIM"
    assert [url for url, _ in session.calls] == [
        "https://arweave.net/A",
        "https://arweave.net/B",
        "https://arweave.net/C",
    ]


def test_import_metadata_invalid_json_raises() -> None:
    session = _Session({"https://arweave.net/A": _bad_json()})

    with pytest.raises(MetadataImportError, match="invalid JSON"):
        import_metadata(["https://arweave.net/A"], session=session)


def test_import_metadata_network_error_raises() -> None:
    session = _Session({"https://arweave.net/A": requests.ConnectionError("refused")})

    with pytest.raises(MetadataImportError, match="failed to fetch"):
        import_metadata(["https://arweave.net/A"], session=session)


def test_build_session_mounts_retrying_adapters() -> None:
    session = build_session(retries=3)
    adapter = session.get_adapter("https://arweave.net/x")
    assert adapter.max_retries.total == 3
    assert 503 in adapter.max_retries.status_forcelist
