"""Findings, the aggregated report, and its renderings."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Dict, Iterable, List, Sequence, Tuple

from .model import Span
from .severity import Severity

SEVERITY_ORDER: Sequence[Severity] = (
    Severity.ERROR,
    Severity.WARNING,
    Severity.INFO,
)


@dataclass(frozen=True)
class Finding:
    """A single rule violation at a location in a file."""

    rule_id: str
    rule_name: str
    category: str
    severity: Severity
    path: str
    span: Span
    message: str

    @property
    def identity(self) -> Tuple[str, str, Span]:
        return (self.rule_id, self.path, self.span)

    @property
    def sort_key(self) -> Tuple:
        return (
            self.path,
            self.span.start_line,
            self.severity.rank,
            self.rule_id,
            self.span.start_column,
            self.span.end_line,
            self.span.end_column,
            self.message,
        )

    def to_dict(self) -> Dict[str, object]:
        data = asdict(self)
        data["severity"] = self.severity.value
        data["line"] = self.span.start_line
        data["column"] = self.span.start_column
        return data


@dataclass(frozen=True)
class Skipped:
    """A file that was not analyzed, and why."""

    path: str
    reason: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass
class Summary:
    """Aggregate finding counts by severity."""

    error: int = 0
    warning: int = 0
    info: int = 0

    def increment(self, severity: Severity) -> None:
        setattr(self, severity.value, getattr(self, severity.value) + 1)

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

    def as_rows(self) -> List[Tuple[str, int]]:
        """Return severity/count pairs ordered for reporting."""

        return [(severity.value, getattr(self, severity.value)) for severity in SEVERITY_ORDER]

    @property
    def total(self) -> int:
        return sum(getattr(self, severity.value) for severity in SEVERITY_ORDER)


@dataclass(frozen=True)
class Report:
    """Ordered findings plus summary; built once per run by :func:`aggregate`."""

    findings: Tuple[Finding, ...] = ()
    skipped: Tuple[Skipped, ...] = ()
    files_checked: int = 0
    incomplete: bool = False
    summary: Summary = field(default_factory=Summary)

    @property
    def passed(self) -> bool:
        return not any(finding.severity.blocking for finding in self.findings)

    def exit_code(self) -> int:
        return 0 if self.passed else 1

    def by_file(self) -> List[Tuple[str, List[Finding]]]:
        grouped: Dict[str, List[Finding]] = {}
        for finding in self.findings:
            grouped.setdefault(finding.path, []).append(finding)
        return list(grouped.items())

    def to_dict(self) -> Dict[str, object]:
        return {
            "summary": self.summary.to_dict(),
            "findings": [finding.to_dict() for finding in self.findings],
            "skipped": [entry.to_dict() for entry in self.skipped],
            "files_checked": self.files_checked,
            "incomplete": self.incomplete,
            "passed": self.passed,
        }


def aggregate(
    findings: Iterable[Finding],
    skipped: Iterable[Skipped] = (),
    files_checked: int = 0,
    incomplete: bool = False,
) -> Report:
    """Deduplicate and totally order findings into a :class:`Report`."""

    unique: Dict[Tuple[str, str, Span], Finding] = {}
    for finding in findings:
        current = unique.get(finding.identity)
        if current is None or finding.sort_key < current.sort_key:
            unique[finding.identity] = finding
    ordered = tuple(sorted(unique.values(), key=lambda finding: finding.sort_key))

    summary = Summary()
    for finding in ordered:
        summary.increment(finding.severity)

    return Report(
        findings=ordered,
        skipped=tuple(sorted(set(skipped), key=lambda entry: (entry.path, entry.reason))),
        files_checked=files_checked,
        incomplete=incomplete,
        summary=summary,
    )


def format_summary_table(report: Report) -> str:
    """Create a human-readable summary table for console output."""

    lines: List[str] = []
    lines.append("Conformance Summary")
    lines.append("=" * 40)
    header = f"{'Severity':<10} | {'Count':>5}"
    lines.append(header)
    lines.append("-" * len(header))
    for severity, count in report.summary.as_rows():
        lines.append(f"{severity:<10} | {count:>5}")
    lines.append("-" * len(header))
    status = "PASS" if report.passed else "FAIL"
    if report.incomplete:
        status += " (incomplete)"
    lines.append(f"Status    : {status}")
    lines.append(f"Files     : {report.files_checked}")
    lines.append(f"Findings  : {report.summary.total}")
    return "\n".join(lines)


def render_text(report: Report) -> str:
    """Findings grouped by file, followed by skipped files and the summary table."""

    lines: List[str] = []
    for path, findings in report.by_file():
        lines.append(path)
        for finding in findings:
            location = str(finding.span)
            lines.append(
                f"  {location:<8} {finding.severity.value:<8} {finding.rule_id} {finding.message} [{finding.rule_name}]"
            )
        lines.append("")
    if report.skipped:
        lines.append("Skipped")
        for entry in report.skipped:
            lines.append(f"  {entry.path}: {entry.reason}")
        lines.append("")
    if report.incomplete:
        lines.append("Run interrupted: report is incomplete.")
        lines.append("")
    lines.append(format_summary_table(report))
    return "\n".join(lines) + "\n"


def render_jsonl(report: Report) -> str:
    """One JSON object per finding, one per line."""

    records = [json.dumps(finding.to_dict(), sort_keys=True) for finding in report.findings]
    return "".join(record + "\n" for record in records)


def render_json(report: Report) -> str:
    return json.dumps(report.to_dict(), indent=2, sort_keys=True) + "\n"


RENDERERS = {
    "text": render_text,
    "json": render_json,
    "jsonl": render_jsonl,
}
