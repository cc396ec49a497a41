"""Command-line interface for sugar-ardrive."""

from __future__ import annotations

import argparse
import json
import logging
import re
import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version
from pathlib import Path
from typing import Sequence

from sugar_ardrive.cache import build_cache_document, write_cache
from sugar_ardrive.client import ArDriveClient
from sugar_ardrive.config import BridgeConfig, ConfigError, load_bridge_config
from sugar_ardrive.errors import (
    ArDriveBridgeError,
    BinaryUnavailableError,
    MetadataImportError,
    OutputError,
    RecordDecodeError,
    SubprocessFailureError,
    SubprocessTimeoutError,
    WalletUnavailableError,
)
from sugar_ardrive.importer import import_metadata, read_metadata_urls
from sugar_ardrive.wallet import WALLET_ENV_VAR, describe_wallet, persist_wallet, resolve_wallet

EXIT_SUCCESS = 0
EXIT_VALIDATION_ERROR = 1
EXIT_EXTERNAL_ERROR = 2
EXIT_TIMEOUT = 3
EXIT_OUTPUT_ERROR = 4

_SENSITIVE_FIELDS = (
    "private_key",
    "secret",
    "token",
    "authorization",
    "api_key",
)
# RSA JWK private members.
_JWK_PRIVATE_MEMBERS = ("d", "p", "q", "dp", "dq", "qi")


def _sdk_version() -> str:
    try:
        return pkg_version("sugar-ardrive")
    except PackageNotFoundError:
        return "0.0.0+local"


def _add_wallet_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-w",
        "--wallet",
        default=None,
        metavar="WALLET",
        help=f"Path to the ardrive wallet JSON file (overrides {WALLET_ENV_VAR} and the stored wallet)",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sugar-ardrive")
    parser.add_argument(
        "--version",
        action="version",
        version=f"sugar-ardrive {_sdk_version()}",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to bridge config TOML (default: ~/.config/sugar-cli/ardrive.toml)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug details to stderr")

    sub = parser.add_subparsers(dest="command", required=True)

    version = sub.add_parser("version", help="Show CLI version and ardrive settings")
    version.add_argument("--json", action="store_true", help="Print version details as JSON")

    set_wallet = sub.add_parser(
        "set-wallet",
        aliases=["export"],
        help="Store an ArDrive wallet file for later commands",
    )
    set_wallet.add_argument("wallet", help="Path to the ardrive wallet JSON file")
    set_wallet.add_argument("--json", action="store_true")

    show_wallet = sub.add_parser("show-wallet", help="Show which wallet would be used")
    _add_wallet_argument(show_wallet)
    show_wallet.add_argument(
        "--reveal",
        action="store_true",
        help="Pretty-print the wallet JSON (sensitive; avoid in shared logs)",
    )
    show_wallet.add_argument("--json", action="store_true")

    list_drives = sub.add_parser("list-drives", help="List the contents of a specific drive")
    _add_wallet_argument(list_drives)
    list_drives.add_argument("-d", "--drive-id", required=True, help="ID of the drive to list")
    list_drives.add_argument("--json", action="store_true")

    list_all = sub.add_parser("list-all-drives", help="List all drives accessible by the wallet")
    _add_wallet_argument(list_all)
    list_all.add_argument("-o", "--output", default=None, help="Write the drive list to this JSON file")
    list_all.add_argument("--json", action="store_true")

    list_files = sub.add_parser("list-drive-files", help="List files in a specific drive")
    _add_wallet_argument(list_files)
    list_files.add_argument("-d", "--drive-id", required=True, help="ID of the drive to list")
    list_files.add_argument("-o", "--output", default=None, help="Write the file list to this JSON file")
    list_files.add_argument("-e", "--filter", default=None, metavar="EXT", help="Keep only this extension (e.g. json)")
    list_files.add_argument("--json", action="store_true")

    cache = sub.add_parser("cache", help="Generate a Sugar cache file from a drive's files")
    _add_wallet_argument(cache)
    cache.add_argument("-d", "--drive-id", required=True, help="ID of the drive holding the assets")
    cache.add_argument("-o", "--output", default="cache.json", help="Cache file to write")
    cache.add_argument("-e", "--filter", default=None, metavar="EXT", help="Keep only this extension (e.g. json)")
    cache.add_argument("--json", action="store_true")

    importer = sub.add_parser("import", help="Generate a Sugar cache file from metadata URLs")
    importer.add_argument("-i", "--import", dest="import_file", required=True, help="Text file with one metadata URL per line")
    importer.add_argument("-o", "--output", default="cache.json", help="Cache file to write")
    importer.add_argument("--json", action="store_true")

    return parser


def _sanitize_error_text(value: str) -> str:
    redacted = value
    for field in _SENSITIVE_FIELDS:
        redacted = re.sub(
            rf"(?i)({field}\s*[=:]\s*)([^,\s]+)",
            r"\1[REDACTED]",
            redacted,
        )
    members = "|".join(_JWK_PRIVATE_MEMBERS)
    redacted = re.sub(rf'("(?:{members})"\s*:\s*")[^"]*(")', r"\1[REDACTED]\2", redacted)
    return redacted


def _print_error(stderr, prefix: str, message: str, *, code: int) -> int:
    print(f"{prefix}: {_sanitize_error_text(message)}", file=stderr)
    return code


def _print_bridge_error(stderr, exc: Exception) -> int:
    if isinstance(exc, WalletUnavailableError):
        return _print_error(stderr, "wallet error", str(exc), code=EXIT_VALIDATION_ERROR)
    if isinstance(exc, BinaryUnavailableError):
        return _print_error(stderr, "ardrive error", str(exc), code=EXIT_EXTERNAL_ERROR)
    if isinstance(exc, SubprocessTimeoutError):
        return _print_error(stderr, "ardrive timeout", str(exc), code=EXIT_TIMEOUT)
    if isinstance(exc, SubprocessFailureError):
        return _print_error(stderr, "ardrive error", str(exc), code=EXIT_EXTERNAL_ERROR)
    if isinstance(exc, (OutputError, RecordDecodeError)):
        return _print_error(stderr, "output error", str(exc), code=EXIT_OUTPUT_ERROR)
    return _print_error(stderr, "error", str(exc), code=EXIT_VALIDATION_ERROR)


_BRIDGE_ERRORS = (ArDriveBridgeError, ValueError)


def _write_json(path: str | Path, payload: object) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    return target


def _print_write_error(stderr, path: str | Path, exc: OSError) -> int:
    return _print_error(stderr, "output error", f"failed to write {path}: {exc}", code=EXIT_VALIDATION_ERROR)


def _run_version(*, config: BridgeConfig, as_json: bool, stdout) -> int:
    payload = {
        "cli": "sugar-ardrive",
        "version": _sdk_version(),
        "tool_name": config.tool_name,
        "binary_name": config.binary_name,
        "gateway": config.gateway,
        "timeout_seconds": config.timeout_seconds,
    }
    if as_json:
        print(json.dumps(payload, sort_keys=True), file=stdout)
        return EXIT_SUCCESS

    print(f"sugar-ardrive {payload['version']}", file=stdout)
    print(f"ardrive binary: {payload['binary_name']}", file=stdout)
    print(f"gateway: {payload['gateway']}", file=stdout)
    return EXIT_SUCCESS


def _run_set_wallet(*, args, config: BridgeConfig, stdout, stderr) -> int:
    try:
        stored = persist_wallet(args.wallet, tool_name=config.tool_name)
    except WalletUnavailableError as exc:
        return _print_bridge_error(stderr, exc)
    except OSError as exc:
        return _print_error(stderr, "wallet error", f"failed to store wallet: {exc}", code=EXIT_VALIDATION_ERROR)

    payload = {
        "stored_path": str(stored),
        "export_hint": f"export {WALLET_ENV_VAR}=$(cat {stored})",
    }
    if args.json:
        print(json.dumps(payload, sort_keys=True), file=stdout)
        return EXIT_SUCCESS

    print(f"Stored ardrive wallet to {stored}. Other ardrive commands will use this wallet.", file=stdout)
    print(f"To export into your shell session run: {payload['export_hint']}", file=stdout)
    return EXIT_SUCCESS


def _run_show_wallet(*, args, config: BridgeConfig, stdout, stderr) -> int:
    try:
        resolved = resolve_wallet(args.wallet, tool_name=config.tool_name)
    except WalletUnavailableError as exc:
        return _print_bridge_error(stderr, exc)

    payload = describe_wallet(resolved, reveal=args.reveal)
    if args.json:
        print(json.dumps(payload, sort_keys=True), file=stdout)
        return EXIT_SUCCESS

    print(f"source: {payload['source']}", file=stdout)
    if payload["path"]:
        print(f"path: {payload['path']}", file=stdout)
    print(f"bytes: {payload['bytes']}", file=stdout)
    print(f"address: {payload['address'] or 'unknown'}", file=stdout)
    if args.reveal:
        print(payload["content"], file=stdout)
    return EXIT_SUCCESS


def _run_list_drives(*, args, client: ArDriveClient, stdout, stderr) -> int:
    try:
        entries = client.list_drive(args.drive_id, args.wallet)
    except _BRIDGE_ERRORS as exc:
        return _print_bridge_error(stderr, exc)

    if args.json:
        payload = [entry.model_dump(by_alias=True, exclude_none=True) for entry in entries]
        print(json.dumps(payload, sort_keys=True), file=stdout)
        return EXIT_SUCCESS

    print(f"Drive {args.drive_id}: {len(entries)} entries", file=stdout)
    for entry in entries:
        print(f"- [{entry.entity_type or '?'}] {entry.path or entry.name or '(unnamed)'}", file=stdout)
    return EXIT_SUCCESS


def _run_list_all_drives(*, args, client: ArDriveClient, stdout, stderr) -> int:
    try:
        drives = client.list_all_drives(args.wallet)
    except _BRIDGE_ERRORS as exc:
        return _print_bridge_error(stderr, exc)

    payload = [drive.model_dump(by_alias=True, exclude_none=True) for drive in drives]
    if args.output:
        try:
            _write_json(args.output, payload)
        except OSError as exc:
            return _print_write_error(stderr, args.output, exc)

    if args.json:
        print(json.dumps(payload, sort_keys=True), file=stdout)
        return EXIT_SUCCESS

    print(f"Found {len(drives)} drives", file=stdout)
    for drive in drives:
        privacy = drive.drive_privacy or "unknown"
        print(f"- {drive.name or '(unnamed)'}: id={drive.drive_id} privacy={privacy}", file=stdout)
    if args.output:
        print(f"Saved drive list to {args.output}", file=stdout)
    return EXIT_SUCCESS


def _run_list_drive_files(*, args, client: ArDriveClient, stdout, stderr) -> int:
    try:
        files = client.list_drive_files(args.drive_id, args.wallet, extension=args.filter)
    except _BRIDGE_ERRORS as exc:
        return _print_bridge_error(stderr, exc)

    payload = [entry.model_dump(by_alias=True, exclude_none=True) for entry in files]
    if args.output:
        try:
            _write_json(args.output, payload)
        except OSError as exc:
            return _print_write_error(stderr, args.output, exc)

    if args.json:
        print(json.dumps(payload, sort_keys=True), file=stdout)
        return EXIT_SUCCESS

    print(f"Found {len(files)} files in drive {args.drive_id}", file=stdout)
    for entry in files:
        size = f"{entry.size} bytes" if entry.size is not None else "size unknown"
        print(f"- {entry.name or '(unnamed)'} ({size}) dataTxId={entry.data_tx_id or '-'}", file=stdout)
    if args.output:
        print(f"Saved file list to {args.output}", file=stdout)
    return EXIT_SUCCESS


def _run_cache(*, args, client: ArDriveClient, stdout, stderr) -> int:
    try:
        items = client.build_cache_items(args.drive_id, args.wallet, extension=args.filter)
    except _BRIDGE_ERRORS as exc:
        return _print_bridge_error(stderr, exc)

    try:
        cache_path = write_cache(args.output, build_cache_document(items))
    except OSError as exc:
        return _print_write_error(stderr, args.output, exc)
    payload = {"cache_file": str(cache_path), "items": len(items)}
    if args.json:
        print(json.dumps(payload, sort_keys=True), file=stdout)
        return EXIT_SUCCESS

    print(f"Wrote {len(items)} items to {cache_path}", file=stdout)
    return EXIT_SUCCESS


def _run_import(*, args, stdout, stderr) -> int:
    try:
        urls = read_metadata_urls(args.import_file)
        items = import_metadata(urls)
    except MetadataImportError as exc:
        return _print_error(stderr, "import error", str(exc), code=EXIT_EXTERNAL_ERROR)

    try:
        cache_path = write_cache(args.output, build_cache_document(items))
    except OSError as exc:
        return _print_write_error(stderr, args.output, exc)
    payload = {"cache_file": str(cache_path), "items": len(items), "skipped": len(urls) - len(items)}
    if args.json:
        print(json.dumps(payload, sort_keys=True), file=stdout)
        return EXIT_SUCCESS

    print(f"Successfully generated cache file at {cache_path} ({len(items)} items)", file=stdout)
    if payload["skipped"]:
        print(f"warning: skipped {payload['skipped']} URLs that did not answer", file=stderr)
    return EXIT_SUCCESS


def _configure_logging(verbose: bool, stderr) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        stream=stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )


def main(argv: Sequence[str] | None = None, *, stdout=sys.stdout, stderr=sys.stderr) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose, stderr)

    try:
        config = load_bridge_config(args.config)
    except ConfigError as exc:
        return _print_error(stderr, "config error", str(exc), code=EXIT_VALIDATION_ERROR)

    if args.command == "version":
        return _run_version(config=config, as_json=args.json, stdout=stdout)

    if args.command in ("set-wallet", "export"):
        return _run_set_wallet(args=args, config=config, stdout=stdout, stderr=stderr)

    if args.command == "show-wallet":
        return _run_show_wallet(args=args, config=config, stdout=stdout, stderr=stderr)

    if args.command == "import":
        return _run_import(args=args, stdout=stdout, stderr=stderr)

    client = ArDriveClient(config=config)

    if args.command == "list-drives":
        return _run_list_drives(args=args, client=client, stdout=stdout, stderr=stderr)

    if args.command == "list-all-drives":
        return _run_list_all_drives(args=args, client=client, stdout=stdout, stderr=stderr)

    if args.command == "list-drive-files":
        return _run_list_drive_files(args=args, client=client, stdout=stdout, stderr=stderr)

    if args.command == "cache":
        return _run_cache(args=args, client=client, stdout=stdout, stderr=stderr)

    print("unknown command", file=stderr)
    return EXIT_VALIDATION_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
