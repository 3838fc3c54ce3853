import json

from conformance import cli, fixers


def test_cli_writes_json_report_for_violating_samples(tmp_path, capsys, samples_dir):
    output_path = tmp_path / "reports" / "conformance.json"

    exit_code = cli.main([str(samples_dir / "violating"), "--format", "json", "--out", str(output_path)])

    captured = capsys.readouterr()
    assert "Conformance Summary" in captured.out
    assert f"Report written to {output_path}" in captured.out
    assert exit_code == 1
    data = json.loads(output_path.read_text(encoding="utf-8"))
    assert data["summary"]["error"] >= 1
    assert data["passed"] is False


def test_cli_passes_on_clean_samples(capsys, samples_dir):
    exit_code = cli.main([str(samples_dir / "clean")])

    captured = capsys.readouterr()
    assert exit_code == 0
    assert "Status    : PASS" in captured.out
    assert "Files     : 3" in captured.out


def test_cli_without_paths_reports_nothing(capsys):
    exit_code = cli.main(["--format", "json"])

    data = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert data["findings"] == []
    assert data["files_checked"] == 0


def test_cli_jsonl_output(tmp_path, capsys):
    source = tmp_path / "utils.js"
    source.write_text("function Add(a,b){return a+b}\n", encoding="utf-8")

    exit_code = cli.main([str(source), "--format", "jsonl"])

    records = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert exit_code == 1
    assert [record["rule_id"] for record in records] == ["NAM001"]


def test_cli_flags_override_configuration(tmp_path, capsys):
    source = tmp_path / "config.py"
    source.write_text('API_KEY = "sk_live_abcdef123456"\n', encoding="utf-8")

    assert cli.main([str(source), "--severity", "SEC001=error"]) == 1
    assert cli.main([str(source), "--disable-rule", "SEC001"]) == 0
    assert cli.main([str(source), "--disable-category", "security"]) == 0
    assert cli.main([str(source), "--enable-category", "naming"]) == 0
    capsys.readouterr()


def test_cli_reads_configuration_file(tmp_path, capsys):
    source = tmp_path / "wide.py"
    source.write_text("x = '" + "a" * 110 + "'\n", encoding="utf-8")
    config = tmp_path / "conformance.yaml"
    config.write_text("line_length: 120\n", encoding="utf-8")

    assert cli.main([str(source)]) == 1
    assert cli.main([str(source), "--config", str(config)]) == 0
    assert cli.main([str(source), "--config", str(config), "--line-length", "100"]) == 1
    capsys.readouterr()


def test_cli_configuration_errors_exit_with_2(tmp_path, capsys):
    config = tmp_path / "bad.yaml"
    config.write_text("colour: blue\n", encoding="utf-8")

    exit_code = cli.main([str(tmp_path), "--config", str(config)])

    captured = capsys.readouterr()
    assert exit_code == 2
    assert captured.err.startswith("configuration error: unknown configuration keys: colour")
    assert captured.out == ""


def test_cli_rejects_malformed_severity_flag(capsys):
    assert cli.main(["--severity", "SEC001"]) == 2
    assert "RULE=LEVEL" in capsys.readouterr().err


def test_cli_lists_rules(capsys):
    exit_code = cli.main(["--list-rules"])

    lines = capsys.readouterr().out.splitlines()
    assert exit_code == 0
    assert lines[0].startswith("FMT001  line-too-long")
    assert any(line.startswith("SEC001  hardcoded-secret") for line in lines)
    assert len(lines) == 19


def test_cli_fix_runs_formatters_before_checking(tmp_path, capsys, monkeypatch):
    source = tmp_path / "app.py"
    source.write_text("x = 1\n", encoding="utf-8")
    seen = []

    def fake_run_formatters(files, line_length=None):
        seen.append((list(files), line_length))
        return []

    monkeypatch.setattr(cli, "run_formatters", fake_run_formatters)

    assert cli.main([str(source), "--fix", "--line-length", "88"]) == 0
    assert seen == [([str(source)], 88)]
    capsys.readouterr()


def test_cli_fix_reports_missing_tools(tmp_path, capsys, monkeypatch):
    source = tmp_path / "main.tf"
    source.write_text("locals {\n  a = 1\n}\n", encoding="utf-8")
    monkeypatch.setattr(fixers, "which", lambda tool: None)

    exit_code = cli.main([str(source), "--fix"])

    assert exit_code == 0
    assert "fix: terraform unavailable, skipped terraform" in capsys.readouterr().err
