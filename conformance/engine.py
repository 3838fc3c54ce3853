"""Run the checker over a set of paths: discover, parse, evaluate, aggregate.

Files are independent, so they fan out over a thread pool. The calling thread
is the only place results are collected.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .adapters import adapter_for
from .config import CheckerConfig
from .errors import ParseError
from .evaluator import evaluate_all
from .model import Language, Span, split_lines
from .result import Finding, Report, Skipped, aggregate
from .rules import PARSE_ERROR_RULE, UNREADABLE_FILE_RULE, Rule
from .utils import is_excluded, iter_code_files, normalize_path, read_text_file

logger = logging.getLogger(__name__)

SOURCE_EXTENSIONS: Tuple[str, ...] = tuple(extension for language in Language for extension in language.extensions)


@dataclass
class FileResult:
    path: str
    findings: List[Finding] = field(default_factory=list)


def collect_files(paths: Iterable[str], exclude: Iterable[str] = ()) -> Tuple[List[str], List[Skipped]]:
    """Expand directories, drop excluded paths, and set aside unsupported files."""

    patterns = tuple(exclude)
    files: Set[str] = set()
    skipped: List[Skipped] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            for found in iter_code_files([raw], SOURCE_EXTENSIONS, patterns):
                files.add(normalize_path(str(found)))
            continue
        normalized = normalize_path(raw)
        if is_excluded(normalized, patterns):
            logger.debug("Excluded %s", normalized)
            continue
        if Language.for_path(normalized) is None:
            logger.info("Skipping %s: unsupported language", normalized)
            skipped.append(Skipped(normalized, "unsupported language"))
            continue
        files.add(normalized)
    return sorted(files), skipped


def _engine_finding(config: CheckerConfig, rule: Rule, path: str, span: Span, message: str) -> Finding:
    return Finding(
        rule_id=rule.id,
        rule_name=rule.name,
        category=rule.category,
        severity=config.severity_for(rule),
        path=path,
        span=span,
        message=message,
    )


def check_file(path: str, config: CheckerConfig) -> FileResult:
    """Read, parse and evaluate a single file. Failures become findings."""

    language = Language.for_path(path)
    if language is None:
        raise ValueError(f"no adapter for {path}")

    try:
        text = read_text_file(Path(path))
    except (OSError, UnicodeDecodeError) as exc:
        reason = exc.strerror if isinstance(exc, OSError) and exc.strerror else str(exc)
        logger.warning("Cannot read %s: %s", path, reason)
        return FileResult(path, [_engine_finding(config, UNREADABLE_FILE_RULE, path, Span.point(1), f"could not read file: {reason}")])

    lines = split_lines(text)
    try:
        unit = adapter_for(language).parse(path, text)
    except ParseError as exc:
        logger.warning("Cannot analyze %s: %s", path, exc)
        span = Span.point(exc.line or 1, exc.column or 1).clamp(lines)
        return FileResult(path, [_engine_finding(config, PARSE_ERROR_RULE, path, span, f"could not analyze: {exc.reason}")])
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Adapter failure on %s", path)
        return FileResult(
            path,
            [_engine_finding(config, PARSE_ERROR_RULE, path, Span.point(1).clamp(lines), f"could not analyze: {exc!r}")],
        )

    findings = evaluate_all(config.rules_for(language), unit, config.options, config.severity_overrides)
    logger.debug("%s: %d finding(s)", path, len(findings))
    return FileResult(path, findings)


def run_check(paths: Iterable[str], config: Optional[CheckerConfig] = None) -> Report:
    """Check every file under ``paths`` and return the aggregated report."""

    config = config or CheckerConfig()
    files, skipped = collect_files(paths, config.exclude)
    if not files:
        return aggregate((), skipped)

    results: List[FileResult] = []
    incomplete = False
    deadline = time.monotonic() + config.timeout if config.timeout else None
    executor = ThreadPoolExecutor(max_workers=max(1, min(config.workers, len(files))))
    pending: Set[Future] = set()
    try:
        futures: Dict[Future, str] = {executor.submit(check_file, path, config): path for path in files}
        pending = set(futures)
        while pending:
            remaining = None if deadline is None else max(deadline - time.monotonic(), 0.0)
            done, pending = wait(pending, timeout=remaining, return_when=FIRST_COMPLETED)
            for future in done:
                results.append(future.result())
            if pending and deadline is not None and time.monotonic() >= deadline:
                logger.warning("Timed out after %ss; %d file(s) not checked", config.timeout, len(pending))
                incomplete = True
                break
    except KeyboardInterrupt:
        logger.warning("Interrupted; %d file(s) not checked", len(pending))
        incomplete = True
    finally:
        executor.shutdown(wait=not incomplete, cancel_futures=True)

    findings = [finding for result in results for finding in result.findings]
    return aggregate(findings, skipped, files_checked=len(results), incomplete=incomplete)
