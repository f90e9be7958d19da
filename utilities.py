"""
Utilities module for the FibLang interpreter
Contains common helper functions shared by the value model and evaluator
"""

import sys
from typing import Any, Dict, Optional, Callable

from error_handling import FibTypeError, FibInternalError, FibOverflowError


# Signed 64-bit range of Long values
LONG_MIN = -2 ** 63
LONG_MAX = 2 ** 63 - 1


# ==================== TYPE CHECKING UTILITIES ====================

def is_value_dict(val: Any) -> bool:
  """
  Check if value is a wrapped value dict

  Args:
    val: Value to check

  Returns:
    True if val is a dict with 'type' and 'value' keys
  """
  return isinstance(val, dict) and 'type' in val and 'value' in val


def get_dict_type(val: Dict) -> Optional[str]:
  """Safely get type from dict"""
  return val.get('type') if isinstance(val, dict) else None


def dispatch_by_type(
  value: Dict,
  handlers: Dict[str, Callable],
  default_handler: Optional[Callable] = None
) -> Any:
  """
  Generic type-based dispatch

  Args:
    value: Value dict with 'type' field
    handlers: Map of type names to handler functions
    default_handler: Fallback handler

  Returns:
    Result of calling the appropriate handler

  Raises:
    FibInternalError if no handler found and no default

  Examples:
    dispatch_by_type(
      {"type": "Long", "value": 42},
      {"Long": lambda v: v['value'] * 2}
    ) -> 84
  """
  value_type = get_dict_type(value) or 'Unknown'
  handler = handlers.get(value_type, default_handler)
  if handler is None:
    raise FibInternalError(f"no handler for value of type {value_type}")
  return handler(value)


# ==================== ERROR MESSAGE BUILDERS ====================

def type_mismatch_error(expected: str, actual: Dict) -> FibTypeError:
  """
  Generate type mismatch error

  Args:
    expected: Expected type, or a description such as "Bool or Long"
    actual: Actual value dict

  Returns:
    FibTypeError with formatted message
  """
  actual_type = get_dict_type(actual) or 'Unknown'
  return FibTypeError(f"expected {expected}, got {actual_type}")


def operation_error(op: str, left_type: str, right_type: str) -> FibInternalError:
  """Generate error for an operation that the grammar should never produce"""
  return FibInternalError(f"cannot {op} {left_type} and {right_type}")


# ==================== RANGE CHECKING ====================

def check_long_range(number: int, what: str = "integer") -> int:
  """
  Fail on values that do not fit a signed 64-bit long

  Raises:
    FibOverflowError if number is outside [LONG_MIN, LONG_MAX]
  """
  if number < LONG_MIN or number > LONG_MAX:
    raise FibOverflowError(f"{what} {number} does not fit in a 64-bit signed integer")
  return number


def parse_long_literal(text: str) -> int:
  """
  Convert a decimal literal to a Long

  Raises:
    FibOverflowError if the literal does not fit a signed 64-bit long
  """
  digits = text.lstrip('0') or '0'
  if len(digits) > len(str(LONG_MAX)):
    raise FibOverflowError(f"integer literal {digits[:20]}... does not fit in a 64-bit signed integer")
  return check_long_range(int(digits), "integer literal")


# ==================== HOST LIMITS ====================

# Each FibLang call costs a handful of Python frames, and each nested
# parenthesis a few dozen pyparsing frames
RECURSION_LIMIT = 20000


def ensure_recursion_limit(limit: int = RECURSION_LIMIT) -> None:
  """Raise the interpreter's recursion limit to at least limit; never lowers it"""
  if sys.getrecursionlimit() < limit:
    sys.setrecursionlimit(limit)
