import pytest

from conformance.adapters.python import PythonAdapter
from conformance.errors import ParseError


def parse(text, path="module.py"):
    return PythonAdapter().parse(path, text)


def test_declarations_include_functions_classes_methods_and_module_names():
    unit = parse(
        '"""Module docstring."""\n'
        "import os\n"
        "\n"
        "TIMEOUT = 30\n"
        "retries: int = 3\n"
        "\n"
        "\n"
        "def load(path) -> str:\n"
        '    """Load the thing from disk."""\n'
        "\n"
        "\n"
        "class Store:\n"
        "    def get(self, key):\n"
        "        return key\n"
        "\n"
        "    async def _refresh(self):\n"
        "        pass\n"
    )

    found = [(declaration.name, declaration.kind) for declaration in unit.declarations]
    assert found == [
        ("TIMEOUT", "constant"),
        ("retries", "variable"),
        ("load", "function"),
        ("Store", "class"),
        ("get", "method"),
        ("_refresh", "method"),
    ]
    by_name = {declaration.name: declaration for declaration in unit.declarations}
    assert by_name["retries"].annotation == "int"
    assert by_name["load"].annotation == "str"
    assert by_name["load"].doc == "Load the thing from disk."
    assert by_name["get"].qualified_name == "Store.get"
    assert by_name["get"].span.start_line == 13
    assert by_name["get"].span.end_line == 14
    assert not by_name["_refresh"].exported


def test_methods_of_private_classes_are_not_exported():
    unit = parse("class _Hidden:\n    def visible(self):\n        return 1\n")

    method = unit.declarations[1]
    assert method.name == "visible"
    assert method.exported is False


def test_leading_comment_counts_as_documentation():
    unit = parse(
        "import functools\n"
        "\n"
        "\n"
        "# Compute the sum of two values.\n"
        "@functools.lru_cache()\n"
        "def add(a, b):\n"
        "    return a + b\n"
    )

    assert unit.declarations[0].doc == "Compute the sum of two values."


def test_literals_record_targets_and_dynamic_construction():
    unit = parse(
        'def query(name, client):\n'
        '    """Docstrings are not literals."""\n'
        '    password = "hunter2hunter2"\n'
        '    sql = "SELECT * FROM users WHERE name = " + name\n'
        '    label = f"user {name}"\n'
        '    client.connect(token="abc")\n'
        '    return {"api_key": "value"}\n'
    )

    literals = {literal.value: literal for literal in unit.literals}
    assert "Docstrings are not literals." not in literals
    assert literals["hunter2hunter2"].target == "password"
    assert not literals["hunter2hunter2"].dynamic
    assert literals["SELECT * FROM users WHERE name = "].dynamic
    assert literals["SELECT * FROM users WHERE name = "].target == "sql"
    assert literals["user {}"].dynamic
    assert literals["abc"].target == "token"
    assert literals["value"].target == "api_key"


def test_calls_use_dotted_names():
    unit = parse("import os\n\nos.system('ls')\nprint(eval('1'))\n")

    assert [call.name for call in unit.calls] == ["os.system", "print", "eval"]


def test_handlers_are_classified():
    unit = parse(
        "try:\n"
        "    pass\n"
        "except:\n"
        "    pass\n"
        "try:\n"
        "    pass\n"
        "except (ValueError, Exception) as exc:\n"
        "    print(exc)\n"
        "try:\n"
        "    pass\n"
        "except ValueError:\n"
        "    raise\n"
        "try:\n"
        "    pass\n"
        "except BaseException:\n"
        "    ...\n"
    )

    bare, tuple_handler, narrow, base = unit.handlers
    assert bare.broad and bare.empty and bare.caught is None
    assert tuple_handler.broad and not tuple_handler.empty
    assert not narrow.broad and narrow.reraises
    assert base.broad and base.empty


def test_comments_are_collected_with_positions():
    unit = parse("x = 1  # trailing\n# own line\n")

    assert [(comment.text, comment.span.start_line, comment.span.start_column) for comment in unit.comments] == [
        ("# trailing", 1, 8),
        ("# own line", 2, 1),
    ]


def test_syntax_errors_raise_parse_error_with_location():
    with pytest.raises(ParseError) as excinfo:
        parse("def broken(:\n    return 1\n", path="broken.py")

    assert excinfo.value.path == "broken.py"
    assert excinfo.value.line == 1
    assert str(excinfo.value).startswith("broken.py:1")


def test_empty_file_parses_to_empty_unit():
    unit = parse("")

    assert unit.lines == ()
    assert unit.declarations == ()


def test_type_expressions_bind_aliases():
    unit = parse(
        "from typing import Optional, TypeVar, Union\n"
        "\n"
        "Number = Union[int, float]\n"
        "MaybeName = Optional[str]\n"
        "T = TypeVar('T')\n"
        "Handler = dict | None\n"
        "default_number = Number\n"
        "count = len([])\n"
    )

    found = [(declaration.name, declaration.kind) for declaration in unit.declarations]
    assert found == [
        ("Number", "alias"),
        ("MaybeName", "alias"),
        ("T", "constant"),
        ("Handler", "alias"),
        ("default_number", "alias"),
        ("count", "variable"),
    ]
