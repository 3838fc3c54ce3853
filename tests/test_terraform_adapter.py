import pytest

from conformance.adapters.terraform import TerraformAdapter
from conformance.errors import ParseError


def parse(text, path="main.tf"):
    return TerraformAdapter().parse(path, text)


MODULE = '''# Size of the web tier.
variable "instance_count" {
  type    = number
  default = 2
}

variable "region" {
  description = "AWS region to deploy into."
  type        = string
}

resource "aws_instance" "web" {
  count = var.instance_count
  ami   = lookup(var.amis, var.region)
  tags = {
    Name = "web-${count.index}"
  }

  lifecycle {
    create_before_destroy = true
  }
}

data "aws_ami" "ubuntu" {
  most_recent = true
}

locals {
  common_tags = { team = "platform" }
}

output "web_ips" {
  description = <<-EOT
    Public addresses of the web instances.
  EOT
  value = aws_instance.web[*].public_ip
}

provider "aws" {
  region = var.region
}
'''


def test_blocks_become_declarations():
    unit = parse(MODULE)

    found = [(declaration.kind, declaration.name, declaration.parent) for declaration in unit.declarations]
    assert found == [
        ("variable", "instance_count", None),
        ("variable", "region", None),
        ("resource", "web", "aws_instance"),
        ("data", "ubuntu", "aws_ami"),
        ("local", "common_tags", None),
        ("output", "web_ips", None),
        ("provider", "aws", None),
    ]


def test_descriptions_and_leading_comments_are_documentation():
    by_name = {declaration.name: declaration for declaration in parse(MODULE).declarations}

    assert by_name["instance_count"].doc == "Size of the web tier."
    assert by_name["region"].doc == "AWS region to deploy into."
    assert by_name["web_ips"].doc == "Public addresses of the web instances."
    assert by_name["region"].annotation == "string"
    assert by_name["region"].exported and by_name["web_ips"].exported
    assert not by_name["web"].exported


def test_block_span_covers_the_whole_block():
    web = next(declaration for declaration in parse(MODULE).declarations if declaration.name == "web")

    assert (web.span.start_line, web.span.end_line) == (12, 22)


def test_literals_and_function_calls():
    unit = parse(MODULE)

    literals = {literal.value: literal for literal in unit.literals}
    assert literals["web-${count.index}"].dynamic
    assert literals["web-${count.index}"].target == "Name"
    assert literals["platform"].target == "team"
    assert literals["AWS region to deploy into."].target == "description"
    assert [call.name for call in unit.calls] == ["lookup"]


def test_terraform_units_have_no_handlers():
    assert parse(MODULE).handlers == ()


def test_resource_without_name_label_is_a_parse_error():
    with pytest.raises(ParseError) as excinfo:
        parse('resource "aws_instance" {\n}\n')

    assert excinfo.value.line == 1
    assert "type and a name" in excinfo.value.reason


def test_unclosed_block_is_a_parse_error():
    with pytest.raises(ParseError) as excinfo:
        parse('variable "x" {\n  type = string\n')

    assert "end of file" in excinfo.value.reason


def test_unterminated_string_is_a_parse_error():
    with pytest.raises(ParseError):
        parse('variable "x" {\n  default = "abc\n}\n')


def test_stray_closing_brace_is_a_parse_error():
    with pytest.raises(ParseError):
        parse("}\n")
