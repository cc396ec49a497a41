"""Bridge error types."""

from __future__ import annotations

from typing import Sequence


class ArDriveBridgeError(RuntimeError):
    """Base bridge error."""


class WalletUnavailableError(ArDriveBridgeError):
    """No wallet could be resolved or the given wallet file is unreadable."""


class BinaryUnavailableError(ArDriveBridgeError):
    """Neither a vendored nor a system ardrive executable is runnable."""


class SubprocessFailureError(ArDriveBridgeError):
    """The ardrive process exited with a non-zero status."""

    def __init__(
        self,
        message: str,
        *,
        command: Sequence[str] = (),
        returncode: int | None = None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.command = list(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class SubprocessTimeoutError(SubprocessFailureError):
    """The ardrive process did not finish within the configured timeout."""


class OutputError(ArDriveBridgeError):
    """The ardrive output could not be turned into records."""

    def __init__(self, message: str, *, text: str = "") -> None:
        super().__init__(message)
        self.text = text


class EmptyOutputError(OutputError):
    """The process succeeded but printed nothing."""


class ErrorOutputDetected(OutputError):
    """The output is an error message rather than a JSON payload."""


class OutputUnparseableError(OutputError):
    """No extraction strategy produced valid JSON."""

    def __init__(
        self,
        message: str,
        *,
        text: str = "",
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        super().__init__(message, text=text)
        self.line = line
        self.column = column


class ShapeUnrecognizedError(OutputError):
    """JSON parsed but matched none of the known envelopes."""

    def __init__(self, message: str, *, text: str = "", shape: str = "") -> None:
        super().__init__(message, text=text)
        self.shape = shape


class RecordDecodeError(ArDriveBridgeError):
    """A record did not match the expected entity shape."""

    def __init__(self, message: str, *, index: int, model: str) -> None:
        super().__init__(message)
        self.index = index
        self.model = model


class MetadataImportError(ArDriveBridgeError):
    """A metadata URL returned something that is not usable JSON."""
