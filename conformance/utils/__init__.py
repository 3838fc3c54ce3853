"""Utility helpers for the checker."""

from .code import is_excluded, iter_code_files, normalize_path
from .fileio import read_text_file, read_yaml_file

__all__ = [
    "is_excluded",
    "iter_code_files",
    "normalize_path",
    "read_text_file",
    "read_yaml_file",
]
