"""JSON read/write helpers shared by repositories and the CLI."""
from __future__ import annotations

import json
from pathlib import Path

from .errors import DataLoadError


def load_json(path: Path) -> object:
    """Load JSON from disk and raise DataLoadError on failure."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise DataLoadError(f"JSON file not found: {path}") from exc
    except OSError as exc:
        raise DataLoadError(f"Unable to read JSON file: {path}") from exc

    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise DataLoadError(f"Invalid JSON in {path}: {exc}") from exc


def dump_json(payload: object, path: Path) -> None:
    """Write ``payload`` as indented JSON, creating parent folders as needed."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    except OSError as exc:
        raise DataLoadError(f"Unable to write JSON file: {path}") from exc
