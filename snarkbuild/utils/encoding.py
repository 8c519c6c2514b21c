from __future__ import annotations

import json
import os
import tempfile
from typing import Any

# Largest integer a JSON consumer running on JavaScript reads back exactly
MAX_SAFE_INTEGER = 2**53 - 1


def encode_artifact(value: Any) -> Any:
    """
    Convert proving-library values into their persisted JSON representation.

    Integers beyond the JavaScript safe range (field elements) are rendered as
    decimal strings. Smaller integers such as `nPublic` or `domainSize` stay
    numbers, as snarkjs writes them. Containers are converted recursively.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value) if abs(value) > MAX_SAFE_INTEGER else value
    if isinstance(value, dict):
        return {str(key): encode_artifact(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_artifact(item) for item in value]
    return value


def dump_artifact(value: Any) -> str:
    return json.dumps(encode_artifact(value))


def write_text_atomic(path: str, content: str) -> None:
    """
    Write a file so readers only ever see the old or the complete new content.
    """
    directory = os.path.dirname(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(
        dir=directory, prefix=f".{os.path.basename(path)}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def write_artifact(path: str, value: Any) -> None:
    write_text_atomic(path, dump_artifact(value))


def remove_if_exists(path: str) -> bool:
    try:
        os.unlink(path)
        return True
    except FileNotFoundError:
        return False
