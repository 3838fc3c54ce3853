"""Optional pre-step that runs each language's own formatter in place.

The formatters are authoritative; the checker only reports what is left.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from shutil import which
from typing import Dict, List, Optional, Sequence

from .model import Language

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Formatter:
    tool: str
    arguments: Sequence[str]
    width_flag: Optional[str]
    batch: bool = True


FORMATTERS: Dict[Language, Formatter] = {
    Language.TERRAFORM: Formatter("terraform", ("fmt",), None, batch=False),
    Language.JAVASCRIPT: Formatter("prettier", ("--write", "--log-level", "warn"), "--print-width"),
    Language.PYTHON: Formatter("black", ("--quiet",), "--line-length"),
}


@dataclass(frozen=True)
class FormatterRun:
    language: Language
    command: Sequence[str]
    returncode: Optional[int]
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_formatters(files: Sequence[str], line_length: Optional[int] = None) -> List[FormatterRun]:
    """Format ``files`` with the native tool for their language.

    Missing tools and failing formatters are logged and reported, never raised.
    """

    grouped: Dict[Language, List[str]] = {}
    for path in files:
        language = Language.for_path(path)
        if language is not None:
            grouped.setdefault(language, []).append(path)

    runs: List[FormatterRun] = []
    for language in Language:
        paths = grouped.get(language)
        if not paths:
            continue
        formatter = FORMATTERS[language]
        executable = which(formatter.tool)
        if executable is None:
            logger.warning("%s not found on PATH; skipping %s formatting", formatter.tool, language.value)
            runs.append(FormatterRun(language, (formatter.tool,), None, "not installed"))
            continue
        base = [executable, *formatter.arguments]
        if line_length and formatter.width_flag:
            base += [formatter.width_flag, str(line_length)]
        batches = [paths] if formatter.batch else [[path] for path in paths]
        for batch in batches:
            runs.append(_run(language, base + batch))
    return runs


def _run(language: Language, command: List[str]) -> FormatterRun:
    logger.info("Running %s", " ".join(command))
    try:
        completed = subprocess.run(command, text=True, capture_output=True, check=False)
    except OSError as exc:
        logger.warning("Could not run %s: %s", command[0], exc)
        return FormatterRun(language, tuple(command), None, str(exc))
    output = (completed.stdout + completed.stderr).strip()
    if completed.returncode != 0:
        logger.warning("%s exited with %d: %s", command[0], completed.returncode, output)
    return FormatterRun(language, tuple(command), completed.returncode, output)
