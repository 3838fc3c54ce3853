from conformance.rules import RuleOptions


def test_public_python_declarations_need_docstrings(run_rule):
    text = (
        '"""Module."""\n'
        "\n"
        "\n"
        "def documented():\n"
        '    """Return nothing in particular."""\n'
        "\n"
        "\n"
        "def undocumented():\n"
        "    pass\n"
        "\n"
        "\n"
        "def _private():\n"
        "    pass\n"
        "\n"
        "\n"
        "class Service:\n"
        '    """Doc."""\n'
        "\n"
        "    def __init__(self):\n"
        "        pass\n"
        "\n"
        "    def start(self):\n"
        "        pass\n"
    )

    findings = run_rule("DOC001", "service.py", text)

    assert [finding.message for finding in findings] == [
        "function 'undocumented' has no docstring",
        "class 'Service' has a trivial docstring (4 characters)",
        "method 'Service.start' has no docstring",
    ]
    assert all(finding.severity.value == "warning" for finding in findings)


def test_minimum_doc_length_is_configurable(run_rule):
    text = 'def short():\n    """Doc."""\n'

    assert len(run_rule("DOC001", "short.py", text)) == 1
    assert run_rule("DOC001", "short.py", text, RuleOptions(min_doc_length=3)) == []


def test_only_exported_javascript_declarations_need_doc_comments(run_rule):
    text = (
        "function internal() {}\n"
        "\n"
        "/** Parse the request body into JSON. */\n"
        "export function parseBody(body) {\n"
        "  return JSON.parse(body);\n"
        "}\n"
        "\n"
        "export class Router {\n"
        "  constructor() {}\n"
        "  route() {}\n"
        "}\n"
    )

    findings = run_rule("DOC001", "router.js", text)

    assert [finding.message for finding in findings] == [
        "class 'Router' has no doc comment",
        "method 'Router.route' has no doc comment",
    ]


def test_terraform_variables_and_outputs_need_descriptions(run_rule):
    text = (
        'variable "region" {\n'
        "  type = string\n"
        "}\n"
        "\n"
        'variable "zone" {\n'
        '  description = "Availability zone used for subnets."\n'
        "}\n"
        "\n"
        'output "id" {\n'
        '  description = "Id"\n'
        "  value       = 1\n"
        "}\n"
        "\n"
        'resource "aws_s3_bucket" "logs" {\n'
        "}\n"
    )

    findings = run_rule("DOC002", "main.tf", text)

    assert [finding.message for finding in findings] == [
        "variable 'region' has no description",
        "output 'id' has a trivial description (2 characters)",
    ]
