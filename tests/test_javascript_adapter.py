import pytest

from conformance.adapters.javascript import JavaScriptAdapter
from conformance.errors import ParseError


def parse(text, path="module.js"):
    return JavaScriptAdapter().parse(path, text)


def names(unit):
    return [(declaration.name, declaration.kind, declaration.exported) for declaration in unit.declarations]


def test_top_level_functions_classes_and_bindings():
    unit = parse(
        "import fs from 'fs';\n"
        "\n"
        "const MAX_SIZE = 10, retries = 3;\n"
        "let counter = 0;\n"
        "const handler = async (event) => {\n"
        "  return event;\n"
        "};\n"
        "const { a, b } = require('./pair');\n"
        "\n"
        "function helper(x) {\n"
        "  return x * 2;\n"
        "}\n"
        "\n"
        "class Shape {\n"
        "  static create() { return new Shape(); }\n"
        "  #secret = 1;\n"
        "  area = () => 0;\n"
        "  get size() { return 1; }\n"
        "}\n"
    )

    assert names(unit) == [
        ("MAX_SIZE", "constant", False),
        ("retries", "variable", False),
        ("counter", "variable", False),
        ("handler", "function", False),
        ("helper", "function", False),
        ("Shape", "class", False),
        ("create", "method", False),
        ("area", "method", False),
        ("size", "method", False),
    ]
    helper = unit.declarations[4]
    assert (helper.span.start_line, helper.span.end_line) == (10, 12)
    assert unit.declarations[6].parent == "Shape"


def test_export_forms_mark_declarations_public():
    unit = parse(
        "export function one() {}\n"
        "export default class Two {\n"
        "  run() {}\n"
        "  _internal() {}\n"
        "}\n"
        "function three() {}\n"
        "function four() {}\n"
        "const five = 5;\n"
        "export { three };\n"
        "module.exports = { four, five };\n"
    )

    exported = {declaration.qualified_name: declaration.exported for declaration in unit.declarations}
    assert exported == {
        "one": True,
        "Two": True,
        "Two.run": True,
        "Two._internal": False,
        "three": True,
        "four": True,
        "five": True,
    }


def test_doc_comments_attach_to_the_following_declaration():
    unit = parse(
        "/**\n"
        " * Add two numbers together.\n"
        " */\n"
        "export function add(a, b) {\n"
        "  return a + b;\n"
        "}\n"
        "\n"
        "// unrelated\n"
        "\n"
        "export function sub(a, b) {\n"
        "  return a - b;\n"
        "}\n"
    )

    add, sub = unit.declarations
    assert add.doc == "Add two numbers together."
    assert sub.doc is None
    assert len(unit.comments) == 2


def test_literals_track_targets_and_interpolation():
    unit = parse(
        "const apiKey = 'abc123xyz';\n"
        "const config = { token: \"tok\", 'password': 'pw' };\n"
        "const sql = 'SELECT * FROM t WHERE id = ' + id;\n"
        "const greeting = `hello ${name}`;\n"
        "const plain = `hello`;\n"
    )

    literals = {literal.value: literal for literal in unit.literals}
    assert literals["abc123xyz"].target == "apiKey"
    assert literals["tok"].target == "token"
    assert literals["pw"].target == "password"
    assert literals["SELECT * FROM t WHERE id = "].dynamic
    assert literals["hello ${name}"].dynamic
    assert not literals["hello"].dynamic


def test_calls_exclude_definitions_and_keywords():
    unit = parse(
        "function run(cmd) {\n"
        "  if (cmd) {\n"
        "    child_process.exec(cmd);\n"
        "  }\n"
        "  return eval(cmd);\n"
        "}\n"
    )

    assert [call.name for call in unit.calls] == ["child_process.exec", "eval"]


def test_catch_clauses_and_promise_callbacks():
    unit = parse(
        "try { a(); } catch (err) {}\n"
        "try { a(); } catch (err) { if (err instanceof TypeError) { log(err); } }\n"
        "try { a(); } catch { throw new Error('x'); }\n"
        "fetchIt().catch((err) => { log(err); });\n"
    )

    empty, narrowed, rethrown, promise = unit.handlers
    assert empty.empty and empty.broad and empty.caught == "err"
    assert not narrowed.broad
    assert rethrown.reraises and rethrown.caught is None
    assert promise.broad and not promise.empty and not promise.reraises


def test_regex_and_jsx_do_not_confuse_the_lexer():
    unit = parse(
        "const pattern = /[}{]+/g;\n"
        "export function Card(props) {\n"
        "  return <div className=\"card\">{props.title}</div>;\n"
        "}\n",
        path="card.jsx",
    )

    assert [declaration.name for declaration in unit.declarations] == ["pattern", "Card"]


def test_unterminated_string_raises_parse_error():
    with pytest.raises(ParseError) as excinfo:
        parse("const a = 'oops;\n")

    assert excinfo.value.line == 1
    assert excinfo.value.column == 11


def test_unbalanced_braces_raise_parse_error():
    with pytest.raises(ParseError):
        parse("function f() {\n  return 1;\n")


def test_optional_chaining_keeps_the_dotted_callee():
    unit = parse("console.log('hi');\nclient?.send(payload);\nrun();\n")

    assert [call.name for call in unit.calls] == ["console.log", "client.send", "run"]


def test_postfix_decrement_before_division_is_not_a_regex():
    unit = parse('const half = count-- / 2; const path = "a/b";\n')

    assert [literal.value for literal in unit.literals] == ["a/b"]
    assert [declaration.name for declaration in unit.declarations] == ["half", "path"]


def test_required_modules_and_class_expressions_are_aliases():
    unit = parse(
        "const EventEmitter = require('events');\n"
        "const Widget = class {};\n"
        "let total = 0;\n"
    )

    assert names(unit) == [
        ("EventEmitter", "alias", False),
        ("Widget", "alias", False),
        ("total", "variable", False),
    ]
