from conformance.rules import RuleOptions


def test_each_long_line_yields_exactly_one_finding(run_rule):
    text = "x = 1\n" + "y = '" + "a" * 120 + "'\n" + "z = '" + "b" * 100 + "'\n"

    findings = run_rule("FMT001", "long.py", text)

    assert [finding.span.start_line for finding in findings] == [2, 3]
    assert findings[0].span.start_column == 101
    assert findings[0].message == "line is 126 characters long (limit 100)"


def test_line_length_is_configurable(run_rule):
    text = "const value = 'abcdefghij';\n"

    assert run_rule("FMT001", "a.js", text, RuleOptions(line_length=20))
    assert run_rule("FMT001", "a.js", text) == []


def test_trailing_whitespace_ignores_crlf(run_rule):
    text = "a = 1\r\nb = 2  \r\nc = 3\t\n"

    findings = run_rule("FMT002", "crlf.py", text)

    assert [(finding.span.start_line, finding.span.start_column) for finding in findings] == [(2, 6), (3, 6)]


def test_missing_final_newline(run_rule):
    assert len(run_rule("FMT003", "a.tf", 'locals {\n  a = 1\n}')) == 1
    assert run_rule("FMT003", "a.tf", 'locals {\n  a = 1\n}\n') == []
    assert run_rule("FMT003", "empty.tf", "") == []


def test_mixed_indentation(run_rule):
    text = "function f() {\n \treturn 1;\n\t}\n"

    findings = run_rule("FMT004", "tabs.js", text)

    assert [finding.span.start_line for finding in findings] == [2]
