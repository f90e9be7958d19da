"""
Basic parsing tests for FibLang
Tests the grammar's node shapes and error reporting
"""

import pytest
from parsing import (
  FibGrammar, find_nodes_by_type, pretty_print_cst,
  STATEMENTS, DEFINITION, TERNARY, CONDITION, INFIX, CALL, FOR, IDENTIFIER, NUMBER, OPERATOR
)
from error_handling import FibParseError


class TestBasicParsing:
  """Test basic parsing functionality"""

  def test_empty_program(self, parser):
    tree = parser.parse_string("")
    assert tree.type == STATEMENTS
    assert tree.children == ()

  def test_number_is_not_wrapped(self, parser):
    """A bare primary collapses through TERNARY/CONDITION/INFIX/CALL"""
    tree = parser.parse_string("42")
    assert len(tree.children) == 1
    assert tree.children[0].type == NUMBER
    assert tree.children[0].token == "42"

  def test_identifier(self, parser):
    node = parser.parse_expression("abc_1")
    assert node.type == IDENTIFIER
    assert node.value == "abc_1"

  def test_infix_chain(self, parser):
    node = parser.parse_expression("10 - 2 - 3")
    assert node.type == INFIX
    assert [c.type for c in node.children] == [NUMBER, OPERATOR, NUMBER, OPERATOR, NUMBER]
    assert [c.value for c in node.children] == ["10", "-", "2", "-", "3"]

  def test_condition(self, parser):
    node = parser.parse_expression("x < 1 + 2")
    assert node.type == CONDITION
    lhs, op, rhs = node.children
    assert lhs.type == IDENTIFIER
    assert op.value == "<"
    assert rhs.type == INFIX

  def test_ternary(self, parser):
    node = parser.parse_expression("x < 2 ? 1 : f(x)")
    assert node.type == TERNARY
    assert [c.type for c in node.children] == [CONDITION, NUMBER, CALL]

  def test_call(self, parser):
    node = parser.parse_expression("puts(1 + 2)")
    assert node.type == CALL
    callee, arg = node.children
    assert callee.value == "puts"
    assert arg.type == INFIX

  def test_parenthesized_callee(self, parser):
    node = parser.parse_expression("(f)(3)")
    assert node.type == CALL
    assert node.children[0].type == IDENTIFIER

  def test_definition(self, parser):
    tree = parser.parse_string("def inc(x) x + 1")
    definition = tree.children[0]
    assert definition.type == DEFINITION
    name, param, body = definition.children
    assert (name.value, param.value) == ("inc", "x")
    assert body.type == INFIX

  def test_for_loop(self, parser):
    node = parser.parse_expression("for n from 1 to 3 puts(n)")
    assert node.type == FOR
    ident, start, stop, body = node.children
    assert ident.value == "n"
    assert (start.value, stop.value) == ("1", "3")
    assert body.type == CALL

  def test_statements_split_on_whitespace(self, parser):
    tree = parser.parse_string("def inc(x) x + 1\ninc(2)\nputs(3)")
    assert [c.type for c in tree.children] == [DEFINITION, CALL, CALL]

  def test_identifiers_may_start_with_keywords(self, parser):
    tree = parser.parse_string("def total(format) format + tox")
    name, param, body = tree.children[0].children
    assert name.value == "total"
    assert param.value == "format"
    assert body.children[2].value == "tox"

  def test_comments_are_ignored(self, parser):
    tree = parser.parse_string("# leading comment\n1 # trailing\n2")
    assert [c.value for c in tree.children] == ["1", "2"]

  def test_spans(self, parser):
    tree = parser.parse_string("1\n  foo", "prog.fib")
    span = tree.children[1].span
    assert (span.filename, span.line, span.column) == ("prog.fib", 2, 3)
    assert str(span) == "prog.fib:2:3"


class TestTreeUtilities:
  """Test helpers for inspecting trees"""

  def test_find_nodes_by_type(self, parser):
    tree = parser.parse_string("def f(x) f(x - 1) + f(x - 2)")
    assert len(find_nodes_by_type(tree, CALL)) == 2

  def test_pretty_print(self, parser):
    text = pretty_print_cst(parser.parse_string("f(1)"))
    assert text.splitlines() == [
      "STATEMENTS",
      "  CALL",
      "    IDENTIFIER('f')",
      "    NUMBER('1')",
    ]


class TestErrorHandling:
  """Test error handling and reporting"""

  @pytest.mark.parametrize("source", [
    "1 +",
    "def f(x, y) x",
    "def for(x) x",
    "def f() 1",
    "x = 1",
    "for n from a to 3 n",
    "1 ? 2",
  ])
  def test_invalid_syntax(self, parser, source):
    with pytest.raises(FibParseError):
      parser.parse_string(source)

  def test_error_location(self, parser):
    with pytest.raises(FibParseError) as info:
      parser.parse_string("1 + 1\n2 + * 3\n", "bad.fib")
    error = info.value
    assert error.line == 2
    assert error.filename == "bad.fib"
    assert str(error).startswith("bad.fib:2:")
    assert "2 + * 3" in error.context

  def test_suggestions(self, parser):
    with pytest.raises(FibParseError) as info:
      parser.parse_string("x = 1")
    assert any("def name(param)" in s for s in info.value.suggestions)

  def test_grammar_can_be_reused(self):
    grammar = FibGrammar()
    with pytest.raises(FibParseError):
      grammar.parse_program("(")
    assert grammar.parse_program("1").children[0].value == "1"

  def test_moderate_nesting_parses(self, parser):
    tree = parser.parse_string("(" * 100 + "7" + ")" * 100)
    assert (tree.children[0].type, tree.children[0].value) == (NUMBER, "7")

  def test_excessive_nesting_is_a_parse_error(self, parser):
    with pytest.raises(FibParseError) as info:
      parser.parse_string("(" * 5000 + "1" + ")" * 5000, "deep.fib")
    assert info.value.message == "expression nested too deeply"
    assert str(info.value).startswith("deep.fib:1:1:")

  def test_excessive_nesting_in_expression(self, parser):
    with pytest.raises(FibParseError):
      parser.parse_expression("(" * 5000 + "1" + ")" * 5000)
    assert parser.parse_expression("(1)").value == "1"

  def test_parse_file(self, parser, tmp_path):
    path = tmp_path / "prog.fib"
    path.write_text("puts(1)\n", encoding="utf-8")
    tree = parser.parse_file(str(path))
    assert tree.children[0].type == CALL
    assert tree.span.filename == str(path)
    with pytest.raises(OSError):
      parser.parse_file(str(tmp_path / "missing.fib"))
