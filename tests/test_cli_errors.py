from __future__ import annotations

import io

from sugar_ardrive.cli.main import main
from sugar_ardrive.errors import SubprocessFailureError


def _client_raising(error: Exception):
    class _Client:
        def __init__(self, *, config) -> None:  # noqa: ANN001, ARG002
            pass

        def list_all_drives(self, wallet=None):  # noqa: ANN001, ARG002
            raise error

    return _Client


def test_ardrive_error_redacts_jwk_private_members(tmp_path, monkeypatch) -> None:
    out = io.StringIO()
    err = io.StringIO()
    error = SubprocessFailureError('ardrive failed: bad wallet {"kty":"RSA","d":"abc123","n":"pub"}')
    monkeypatch.setattr("sugar_ardrive.cli.main.ArDriveClient", _client_raising(error))

    rc = main(["--config", str(tmp_path / "x.toml"), "list-all-drives"], stdout=out, stderr=err)

    assert rc == 2
    assert '"d":"[REDACTED]"' in err.getvalue()
    assert "abc123" not in err.getvalue()
    assert '"n":"pub"' in err.getvalue()


def test_ardrive_error_redacts_named_secret_field(tmp_path, monkeypatch) -> None:
    out = io.StringIO()
    err = io.StringIO()
    error = SubprocessFailureError("ardrive failed: api_key=super-secret-token")
    monkeypatch.setattr("sugar_ardrive.cli.main.ArDriveClient", _client_raising(error))

    rc = main(["--config", str(tmp_path / "x.toml"), "list-all-drives"], stdout=out, stderr=err)

    assert rc == 2
    assert "api_key=[REDACTED]" in err.getvalue()
    assert "super-secret-token" not in err.getvalue()
