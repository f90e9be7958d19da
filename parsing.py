"""
FibLang Parser
pyparsing grammar producing a concrete syntax tree with source spans.

Rule nodes that matched without their optional suffix are collapsed into
their single child, so TERNARY, CONDITION, INFIX and CALL only appear in
the tree when '?:', '<', '+'/'-' or a call argument was actually present.
"""

import sys
from typing import List, Any, Tuple, Optional
from dataclasses import dataclass

# Import pyparsing with error handling
try:
    from pyparsing import (
        Optional as PyParsingOptional, ZeroOrMore, Literal, Forward, Keyword,
        ParseException, Regex, Suppress, StringEnd, ParserElement, one_of,
        python_style_comment, lineno, col
    )
    # Enable packrat parsing for performance
    ParserElement.enable_packrat()
except ImportError:
    raise ImportError("pyparsing library not found. Install with: pip install pyparsing")

from error_handling import FibParseError, enhance_parse_exception
from utilities import ensure_recursion_limit


@dataclass(frozen=True)
class SourceSpan:
    """Source location of a node"""
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"


@dataclass(frozen=True)
class CSTNode:
    """Syntax tree node: grammar rule kind, token text for leaves, ordered children"""
    type: str
    value: Any = None
    children: Tuple['CSTNode', ...] = ()
    span: Optional[SourceSpan] = None

    @property
    def token(self) -> str:
        return self.value

    def __str__(self) -> str:
        if self.children:
            children_str = ", ".join(str(child) for child in self.children)
            return f"{self.type}([{children_str}])"
        return f"{self.type}({self.value})"


# Node kinds
STATEMENTS = "STATEMENTS"
DEFINITION = "DEFINITION"
TERNARY = "TERNARY"
CONDITION = "CONDITION"
INFIX = "INFIX"
CALL = "CALL"
FOR = "FOR"
IDENTIFIER = "IDENTIFIER"
NUMBER = "NUMBER"
OPERATOR = "OPERATOR"

KEYWORDS = ("def", "for", "from", "to")


def nesting_error(filename: str) -> FibParseError:
    """Parse failure for input nested deeper than the parser can follow"""
    return FibParseError(
        "expression nested too deeply", line=1, column=1, filename=filename,
        suggestions=["Split deeply parenthesised expressions into helper definitions"]
    )


class FibGrammar:
    """FibLang grammar definition using pyparsing"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.filename = "<input>"
        self._setup_grammar()

    def _span(self, s: str, loc: int) -> SourceSpan:
        return SourceSpan(self.filename, lineno(loc, s), col(loc, s))

    def _leaf(self, node_type: str):
        def action(s, loc, tokens):
            return CSTNode(node_type, tokens[0], (), self._span(s, loc))
        return action

    def _rule(self, node_type: str, collapse: bool = False):
        def action(s, loc, tokens):
            items = list(tokens)
            if collapse and len(items) == 1:
                return items[0]
            return CSTNode(node_type, None, tuple(items), self._span(s, loc))
        return action

    def _setup_grammar(self):
        """Setup the FibLang grammar"""

        expression = Forward()

        # Keywords
        def_kw = Keyword("def")
        for_kw = Keyword("for")
        from_kw = Keyword("from")
        to_kw = Keyword("to")
        keyword = def_kw | for_kw | from_kw | to_kw

        # Tokens
        identifier = (~keyword + Regex(r'[a-zA-Z][a-zA-Z0-9_]*')).set_parse_action(self._leaf(IDENTIFIER))
        number = Regex(r'[0-9]+').set_parse_action(self._leaf(NUMBER))
        condition_operator = Literal("<").set_parse_action(self._leaf(OPERATOR))
        infix_operator = one_of("+ -").set_parse_action(self._leaf(OPERATOR))

        lparen = Suppress("(")
        rparen = Suppress(")")

        # for n from 1 to 10 body
        for_expr = (
            Suppress(for_kw) + identifier +
            Suppress(from_kw) + number +
            Suppress(to_kw) + number +
            expression
        ).set_parse_action(self._rule(FOR))

        parenthesized = lparen + expression + rparen

        primary = for_expr | identifier | parenthesized | number

        call = (
            primary + PyParsingOptional(lparen + expression + rparen)
        ).set_parse_action(self._rule(CALL, collapse=True))

        infix = (
            call + ZeroOrMore(infix_operator + call)
        ).set_parse_action(self._rule(INFIX, collapse=True))

        condition = (
            infix + PyParsingOptional(condition_operator + infix)
        ).set_parse_action(self._rule(CONDITION, collapse=True))

        ternary = (
            condition + PyParsingOptional(Suppress("?") + expression + Suppress(":") + expression)
        ).set_parse_action(self._rule(TERNARY, collapse=True))

        expression <<= ternary

        definition = (
            Suppress(def_kw) + identifier + lparen + identifier + rparen + expression
        ).set_parse_action(self._rule(DEFINITION))

        statement = definition | expression
        program = ZeroOrMore(statement) + StringEnd()
        program.ignore(python_style_comment)

        self.program = program
        self.statement = statement
        self.expression = expression
        self.definition = definition
        self.identifier = identifier
        self.number = number

    def parse_program(self, text: str, filename: str = "<input>") -> CSTNode:
        """Parse a complete program into a STATEMENTS node"""
        self.filename = filename
        ensure_recursion_limit()
        try:
            result = self.program.parse_string(text, parse_all=True)
        except ParseException as e:
            raise enhance_parse_exception(e, text, filename) from e
        except RecursionError:
            raise nesting_error(filename) from None
        if self.debug:
            print(f"Parsed {len(result)} statements", file=sys.stderr)
        return CSTNode(STATEMENTS, None, tuple(result), SourceSpan(filename, 1, 1))

    def parse_expression(self, text: str, filename: str = "<input>") -> CSTNode:
        """Parse a single expression"""
        self.filename = filename
        ensure_recursion_limit()
        try:
            result = self.expression.parse_string(text, parse_all=True)
        except ParseException as e:
            raise enhance_parse_exception(e, text, filename) from e
        except RecursionError:
            raise nesting_error(filename) from None
        return result[0]


class FibParser:
    """Main FibLang parser"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.grammar = FibGrammar(debug)

    def parse_file(self, filepath: str) -> CSTNode:
        """Parse a FibLang source file.

        I/O failures (missing file, permissions, bad encoding) propagate as
        OSError / UnicodeDecodeError so the host can tell them apart from
        syntax errors.
        """
        with open(filepath, 'r', encoding='utf-8') as f:
            content = f.read()
        return self.grammar.parse_program(content, filepath)

    def parse_string(self, text: str, filename: str = "<input>") -> CSTNode:
        """Parse FibLang source code from string"""
        return self.grammar.parse_program(text, filename)

    def parse_expression(self, text: str, filename: str = "<input>") -> CSTNode:
        """Parse a single FibLang expression"""
        return self.grammar.parse_expression(text, filename)


# Factory functions for creating parsers
def create_parser(debug: bool = False) -> FibParser:
    """Create a FibLang parser"""
    return FibParser(debug=debug)


def create_debug_parser() -> FibParser:
    """Create a FibLang parser with debug enabled"""
    return FibParser(debug=True)


# Utility functions for working with the tree
def find_nodes_by_type(cst: CSTNode, node_type: str) -> List[CSTNode]:
    """Find all nodes of a specific type in the tree"""
    result = []

    def search(node: CSTNode):
        if node.type == node_type:
            result.append(node)
        for child in node.children:
            search(child)

    search(cst)
    return result


def pretty_print_cst(cst: CSTNode, indent: int = 0) -> str:
    """Pretty print a tree node for debugging"""
    result = "  " * indent + f"{cst.type}"
    if cst.value is not None:
        result += f"({repr(cst.value)})"
    result += "\n"

    for child in cst.children:
        result += pretty_print_cst(child, indent + 1)

    return result

