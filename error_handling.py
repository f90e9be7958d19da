"""
Error handling for FibLang: parse errors with detailed messages and the
runtime error kinds raised by the evaluator.
Pure functional helpers, classes only for the exceptions themselves.
"""

from typing import List, Optional, Dict
from pyparsing import ParseException
import re


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_parse_error(
    message: str,
    location: int,
    line: int,
    column: int,
    expected: Optional[List[str]] = None,
    got: Optional[str] = None,
    context: Optional[str] = None,
    suggestions: Optional[List[str]] = None
) -> Dict:
    """Create an immutable parse error structure"""
    return {
        'message': message,
        'location': location,
        'line': line,
        'column': column,
        'expected': expected or [],
        'got': got,
        'context': context,
        'suggestions': suggestions or []
    }


def format_parse_error(error: Dict, filename: str = "<input>") -> str:
    """Format parse error as string"""
    error_msg = f"{filename}:{error['line']}:{error['column']}: {error['message']}\n"

    if error['expected']:
        error_msg += f"  Expected: {', '.join(error['expected'])}\n"

    if error['got']:
        error_msg += f"  Got: {error['got']}\n"

    if error['context']:
        error_msg += f"{error['context']}\n"

    if error['suggestions']:
        error_msg += "  Suggestions:\n"
        for suggestion in error['suggestions']:
            error_msg += f"    - {suggestion}\n"

    return error_msg


# ============================================================================
# PURE FUNCTIONS
# ============================================================================

def get_context_lines(source_text: str, line_num: int, col_num: int, context_lines: int = 1) -> str:
    """Get context lines around the error"""
    lines = source_text.split('\n')
    start_line = max(0, line_num - context_lines - 1)
    end_line = min(len(lines), line_num + context_lines)

    context_parts = []
    for i in range(start_line, end_line):
        line_prefix = f"{i+1:4d}: "
        context_parts.append(f"{line_prefix}{lines[i]}")
        if i == line_num - 1:
            context_parts.append(f"{'':6}{' ' * (col_num - 1)}^")

    return '\n'.join(context_parts)


def extract_expected(exc: ParseException) -> List[str]:
    """Extract expected tokens from exception"""
    msg = str(exc)
    expected_match = re.search(r"Expected\s+(.+?)(?:,\s+found|\s+\(at|$)", msg)
    if expected_match:
        return [expected_match.group(1)]
    return ["valid syntax"]


def extract_got(source_text: str, line_num: int, col_num: int) -> str:
    """Extract what was actually found at the error location"""
    lines = source_text.split('\n')

    if 0 < line_num <= len(lines):
        error_line = lines[line_num - 1]
        if col_num <= len(error_line):
            start = max(0, col_num - 1)
            end = min(len(error_line), col_num + 10)
            got_text = error_line[start:end].strip()
            if got_text:
                return f"'{got_text}'"
        return "end of line"
    return "end of input"


def generate_suggestions(got: str, expected: List[str]) -> List[str]:
    """Generate helpful suggestions based on the error"""
    suggestions = []

    if ";" in got:
        suggestions.append("FibLang doesn't use semicolons - separate statements with whitespace")

    if "{" in got or "}" in got:
        suggestions.append("Use parentheses () instead of braces {} to group expressions")

    if "=" in got:
        suggestions.append("There is no assignment - define functions with 'def name(param) body'")

    if "," in got:
        suggestions.append("Functions take exactly one argument")

    if any(op in got for op in ("*", "/", ">", "==")):
        suggestions.append("Only '+', '-' and '<' are supported operators")

    return suggestions


def enhance_parse_exception_dict(exc: ParseException, source_text: str) -> Dict:
    """Convert pyparsing exception to an enhanced FibLang error dict"""
    line_num = exc.lineno
    col_num = exc.column

    context = get_context_lines(source_text, line_num, col_num)
    expected = extract_expected(exc)
    got = extract_got(source_text, line_num, col_num)
    suggestions = generate_suggestions(got, expected)

    return make_parse_error(
        message="syntax error",
        location=exc.loc,
        line=line_num,
        column=col_num,
        expected=expected,
        got=got,
        context=context,
        suggestions=suggestions
    )


# ============================================================================
# EXCEPTION CLASSES
# ============================================================================

class FibParseError(Exception):
    """Parse failure with line/column and source context"""
    def __init__(self, message: str, location: int = 0, line: int = 0, column: int = 0,
                 expected: Optional[List[str]] = None, got: Optional[str] = None,
                 context: Optional[str] = None, suggestions: Optional[List[str]] = None,
                 filename: str = "<input>"):
        self.message = message
        self.location = location
        self.line = line
        self.column = column
        self.expected = expected or []
        self.got = got
        self.context = context
        self.suggestions = suggestions or []
        self.filename = filename
        super().__init__(message)

    def __str__(self) -> str:
        error_dict = make_parse_error(
            self.message, self.location, self.line, self.column,
            self.expected, self.got, self.context, self.suggestions
        )
        return format_parse_error(error_dict, self.filename).rstrip('\n')


class FibRuntimeError(Exception):
    """Base class for every failure raised while evaluating a program"""
    kind = "RuntimeError"

    def __init__(self, message: str, span=None):
        self.message = message
        self.span = span
        super().__init__(message)

    def __str__(self) -> str:
        if self.span:
            return f"{self.kind} at {self.span}: {self.message}"
        return f"{self.kind}: {self.message}"


class FibTypeError(FibRuntimeError):
    """A value was used as a type it does not have"""
    kind = "TypeError"


class FibUndefinedVariable(FibRuntimeError):
    """Identifier lookup reached the root environment without a match"""
    kind = "UndefinedVariable"

    def __init__(self, name: str, span=None):
        self.name = name
        super().__init__(f"undefined variable '{name}'", span)


class FibInternalError(FibRuntimeError):
    """Grammar/evaluator mismatch, e.g. comparing two functions"""
    kind = "InternalError"


class FibOverflowError(FibRuntimeError):
    """Integer result does not fit in a signed 64-bit long"""
    kind = "OverflowError"


class FibRecursionError(FibRuntimeError):
    """Call nesting exhausted the interpreter stack or the configured limit"""
    kind = "RecursionError"


def enhance_parse_exception(exc: ParseException, source_text: str,
                            filename: str = "<input>") -> FibParseError:
    """Convert a pyparsing exception to an enhanced FibParseError"""
    error_dict = enhance_parse_exception_dict(exc, source_text)
    return FibParseError(
        message=error_dict['message'],
        location=error_dict['location'],
        line=error_dict['line'],
        column=error_dict['column'],
        expected=error_dict['expected'],
        got=error_dict['got'],
        context=error_dict['context'],
        suggestions=error_dict['suggestions'],
        filename=filename
    )
