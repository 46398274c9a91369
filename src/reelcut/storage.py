"""Atomic file writes for reelcut.

Run reports, metadata documents and the OAuth token are replaced in one
``os.replace`` so an interrupted run never leaves a truncated file behind.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import BaseModel


class StorageError(Exception):
    """A document could not be written."""


def atomic_write(path: Path | str, text: str, encoding: str = "utf-8") -> Path:
    """Replace ``path`` with ``text``.

    The content goes to a sibling temporary file first, which is flushed to
    disk and then renamed over the target.

    Raises:
        StorageError: If the directory or the file cannot be written
    """
    path = Path(path)
    temp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding=encoding,
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            temp_name = handle.name
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_name, path)
        temp_name = None
    except OSError as e:
        raise StorageError(f"Failed to write {path}: {e}") from e
    finally:
        if temp_name is not None:
            Path(temp_name).unlink(missing_ok=True)
    return path


def atomic_write_json(path: Path | str, data: Any, indent: int = 2) -> Path:
    """Write ``data`` as UTF-8 JSON, keeping non-ASCII captions readable."""
    return atomic_write(path, json.dumps(data, indent=indent, default=str, ensure_ascii=False) + "\n")


def save_model(path: Path | str, model: BaseModel) -> Path:
    """Write a Pydantic model as a JSON document."""
    return atomic_write_json(path, model.model_dump(mode="json"))
