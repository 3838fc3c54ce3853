"""Source file discovery helpers."""

from __future__ import annotations

import os
from fnmatch import fnmatch
from pathlib import Path, PurePath
from typing import Generator, Iterable, Sequence


def normalize_path(path: str) -> str:
    posix = PurePath(path).as_posix()
    while posix.startswith("./"):
        posix = posix[2:]
    return posix


def is_excluded(path: str, patterns: Sequence[str], directory: bool = False) -> bool:
    """Match glob ``patterns`` against ``path`` and every trailing part of it.

    ``node_modules/*`` therefore excludes a ``node_modules`` directory at any depth.
    """

    if not patterns:
        return False
    parts = normalize_path(path).split("/")
    candidates = ["/".join(parts[index:]) for index in range(len(parts))]
    if directory:
        candidates += [candidate + "/" for candidate in candidates]
    return any(fnmatch(candidate, pattern) for pattern in patterns for candidate in candidates)


def iter_code_files(
    root_paths: Iterable[str],
    extensions: Sequence[str],
    exclude: Sequence[str] = (),
) -> Generator[Path, None, None]:
    """Yield code files beneath the provided directories, pruning excluded ones."""

    for root in root_paths:
        for directory, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(
                name for name in dirnames if not is_excluded(os.path.join(directory, name), exclude, directory=True)
            )
            for filename in sorted(filenames):
                path = Path(directory) / filename
                if path.suffix.lower() in extensions and not is_excluded(str(path), exclude):
                    yield path
