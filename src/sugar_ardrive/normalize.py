"""Turn noisy ardrive output into a list of raw records.

The ardrive CLI prints JSON, but depending on version and flags the payload
can be wrapped in colour codes, preceded by progress lines, or nested inside
one of several envelopes. Normalization runs in three steps: clean the text,
extract a JSON document, then detect the envelope with an ordered list of
detectors.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable

from sugar_ardrive.errors import (
    EmptyOutputError,
    ErrorOutputDetected,
    OutputUnparseableError,
    ShapeUnrecognizedError,
)

logger = logging.getLogger(__name__)

WRAPPER_KEYS = ("drives", "data", "result", "items", "rows")
ERROR_MARKERS = (
    "Error:",
    "error:",
    "ERROR:",
    "ERR!",
    "npm ERR!",
    "Unhandled",
    "fatal:",
    "TypeError",
    "SyntaxError",
)
_SHAPE_PREVIEW_LIMIT = 2000

# CSI sequences run through the first final byte (0x40-0x7E); any other escape eats one char.
_ANSI_RE = re.compile(r"\x1b(?:\[[^\x40-\x7e]*[\x40-\x7e]?|.?)", re.DOTALL)


def strip_ansi(text: str) -> str:
    return _ANSI_RE.sub("", text)


def clean_output(raw: str) -> str:
    return strip_ansi(raw).strip().lstrip("\ufeff").strip()


def _error_marker_line(text: str) -> str | None:
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith(ERROR_MARKERS):
            return stripped
    return None


def extract_json(text: str) -> Any:
    """Parse ``text`` as JSON, falling back to the outermost slice and then to single lines."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        first_error = exc

    openers = [index for index in (text.find("{"), text.find("[")) if index >= 0]
    end = max(text.rfind("}"), text.rfind("]"))
    if openers and end > min(openers):
        try:
            return json.loads(text[min(openers) : end + 1])
        except json.JSONDecodeError:
            pass

    for line in text.splitlines():
        candidate = line.strip()
        if not candidate.startswith(("{", "[")):
            continue
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue

    raise OutputUnparseableError(
        f"ardrive output is not valid JSON (line {first_error.lineno}, column "
        f"{first_error.colno}: {first_error.msg}); run the same ardrive command by hand "
        "to inspect its output, or upgrade ardrive-cli if its output format changed",
        text=text,
        line=first_error.lineno,
        column=first_error.colno,
    )


def _bare_array(value: Any) -> list[Any] | None:
    if isinstance(value, list):
        return list(value)
    return None


def _wrapped_array(value: Any) -> list[Any] | None:
    if not isinstance(value, dict):
        return None
    for key in WRAPPER_KEYS:
        inner = value.get(key)
        if isinstance(inner, list):
            return list(inner)
    return None


def _entity_map(value: Any) -> list[Any] | None:
    # Best-effort fallback: keyed objects such as {"<id>": {...}, ...}.
    if not isinstance(value, dict):
        return None
    entities = [item for item in value.values() if isinstance(item, dict)]
    if not entities:
        return None
    dropped = len(value) - len(entities)
    if dropped:
        logger.debug("ignoring %d non-object members while reading an entity map", dropped)
    return entities


EnvelopeDetector = Callable[[Any], list[Any] | None]

ENVELOPE_DETECTORS: tuple[EnvelopeDetector, ...] = (_bare_array, _wrapped_array, _entity_map)


def detect_records(value: Any) -> list[Any]:
    for detector in ENVELOPE_DETECTORS:
        records = detector(value)
        if records is not None:
            return records

    shape = json.dumps(value, indent=2, sort_keys=True, default=str)
    preview = shape if len(shape) <= _SHAPE_PREVIEW_LIMIT else shape[:_SHAPE_PREVIEW_LIMIT] + "\n..."
    raise ShapeUnrecognizedError(
        "unrecognized ardrive response shape; expected a list, an object with one of "
        f"{', '.join(WRAPPER_KEYS)}, or a map of objects. Received:\n{preview}",
        text=shape,
        shape=preview,
    )


def normalize_output(raw: str) -> list[Any]:
    text = clean_output(raw)
    if not text:
        raise EmptyOutputError(
            "ardrive exited successfully but printed nothing; check that the drive id is "
            "correct and that the wallet owns or can read the drive",
            text=raw,
        )

    if not text.startswith(("{", "[")):
        marker = _error_marker_line(text)
        if marker is not None:
            raise ErrorOutputDetected(f"ardrive reported an error: {marker}", text=text)

    return detect_records(extract_json(text))
