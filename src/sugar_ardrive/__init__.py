"""sugar-ardrive public surface."""

from sugar_ardrive.binary import ArDriveExecutable, locate_vendored_binary, resolve_executable
from sugar_ardrive.cache import (
    CacheItem,
    arweave_url,
    build_cache_document,
    filter_by_extension,
    project_cache,
    write_cache,
)
from sugar_ardrive.client import ArDriveClient
from sugar_ardrive.config import BridgeConfig, ConfigError, load_bridge_config
from sugar_ardrive.errors import (
    ArDriveBridgeError,
    BinaryUnavailableError,
    EmptyOutputError,
    ErrorOutputDetected,
    MetadataImportError,
    OutputError,
    OutputUnparseableError,
    RecordDecodeError,
    ShapeUnrecognizedError,
    SubprocessFailureError,
    SubprocessTimeoutError,
    WalletUnavailableError,
)
from sugar_ardrive.importer import import_metadata
from sugar_ardrive.invoker import ArDriveInvoker, InvocationResult
from sugar_ardrive.models import Drive, FileEntry, decode_records
from sugar_ardrive.normalize import normalize_output, strip_ansi
from sugar_ardrive.wallet import ResolvedWallet, persist_wallet, resolve_wallet

__all__ = [
    "ArDriveBridgeError",
    "WalletUnavailableError",
    "BinaryUnavailableError",
    "SubprocessFailureError",
    "SubprocessTimeoutError",
    "OutputError",
    "EmptyOutputError",
    "ErrorOutputDetected",
    "OutputUnparseableError",
    "ShapeUnrecognizedError",
    "RecordDecodeError",
    "MetadataImportError",
    "BridgeConfig",
    "ConfigError",
    "load_bridge_config",
    "ResolvedWallet",
    "resolve_wallet",
    "persist_wallet",
    "ArDriveExecutable",
    "locate_vendored_binary",
    "resolve_executable",
    "ArDriveInvoker",
    "InvocationResult",
    "normalize_output",
    "strip_ansi",
    "Drive",
    "FileEntry",
    "decode_records",
    "CacheItem",
    "arweave_url",
    "filter_by_extension",
    "project_cache",
    "build_cache_document",
    "write_cache",
    "ArDriveClient",
    "import_metadata",
]
