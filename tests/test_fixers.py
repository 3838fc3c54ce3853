import subprocess

from conformance import fixers
from conformance.model import Language


class Recorder:
    def __init__(self, returncode=0, stdout="", stderr=""):
        self.calls = []
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr

    def __call__(self, command, **kwargs):
        self.calls.append(command)
        return subprocess.CompletedProcess(command, self.returncode, self.stdout, self.stderr)


def test_formatters_are_grouped_by_language(monkeypatch):
    recorder = Recorder()
    monkeypatch.setattr(fixers, "which", lambda tool: f"/usr/bin/{tool}")
    monkeypatch.setattr(fixers.subprocess, "run", recorder)

    runs = fixers.run_formatters(["a.py", "b.js", "c.tf", "d.tf", "notes.txt", "e.py"], line_length=90)

    assert recorder.calls == [
        ["/usr/bin/terraform", "fmt", "c.tf"],
        ["/usr/bin/terraform", "fmt", "d.tf"],
        ["/usr/bin/prettier", "--write", "--log-level", "warn", "--print-width", "90", "b.js"],
        ["/usr/bin/black", "--quiet", "--line-length", "90", "a.py", "e.py"],
    ]
    assert all(run.ok for run in runs)
    assert [run.language for run in runs] == [Language.TERRAFORM, Language.TERRAFORM, Language.JAVASCRIPT, Language.PYTHON]


def test_missing_formatter_is_skipped(monkeypatch, caplog):
    recorder = Recorder()
    monkeypatch.setattr(fixers, "which", lambda tool: None if tool == "black" else f"/usr/bin/{tool}")
    monkeypatch.setattr(fixers.subprocess, "run", recorder)

    with caplog.at_level("WARNING", logger="conformance.fixers"):
        runs = fixers.run_formatters(["a.py", "b.js"])

    assert recorder.calls == [["/usr/bin/prettier", "--write", "--log-level", "warn", "b.js"]]
    skipped = [run for run in runs if run.returncode is None]
    assert [run.language for run in skipped] == [Language.PYTHON]
    assert "black not found on PATH" in caplog.text


def test_failing_formatter_is_logged_not_raised(monkeypatch, caplog):
    monkeypatch.setattr(fixers, "which", lambda tool: f"/usr/bin/{tool}")
    monkeypatch.setattr(fixers.subprocess, "run", Recorder(returncode=123, stderr="cannot format a.py"))

    with caplog.at_level("WARNING", logger="conformance.fixers"):
        runs = fixers.run_formatters(["a.py"])

    assert runs[0].returncode == 123
    assert not runs[0].ok
    assert "cannot format a.py" in caplog.text


def test_formatter_that_cannot_start_is_reported(monkeypatch):
    def refuse(command, **kwargs):
        raise PermissionError("denied")

    monkeypatch.setattr(fixers, "which", lambda tool: f"/usr/bin/{tool}")
    monkeypatch.setattr(fixers.subprocess, "run", refuse)

    runs = fixers.run_formatters(["a.py"])

    assert runs[0].returncode is None
    assert runs[0].output == "denied"


def test_no_files_means_no_commands(monkeypatch):
    recorder = Recorder()
    monkeypatch.setattr(fixers.subprocess, "run", recorder)

    assert fixers.run_formatters([]) == []
    assert recorder.calls == []
