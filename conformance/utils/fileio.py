"""Basic file IO helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def read_yaml_file(path: Path) -> Any:
    """Return the parsed YAML if the file exists, otherwise ``None``."""

    if not path.exists():
        return None
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle)


def read_text_file(path: Path) -> str:
    """Return the file contents as UTF-8 text, keeping line endings as written.

    Raises ``OSError`` or ``UnicodeDecodeError`` when the file cannot be read.
    """

    with path.open("r", encoding="utf-8", newline="") as handle:
        return handle.read()
