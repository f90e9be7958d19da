"""
FibLang Standard Library
Runtime values and built-in functions
Pure functional style using immutable dictionaries
"""

import sys
from typing import Dict, Callable, Any, List, Optional

from environment import env_bind_value, env_lookup_value, env_root
from error_handling import FibRuntimeError
from utilities import (
  dispatch_by_type,
  type_mismatch_error,
  operation_error,
  check_long_range
)


# Value tags
NIL = "Nil"
BOOL = "Bool"
LONG = "Long"
FUNCTION = "Function"


# ============================================================================
# VALUE CONSTRUCTORS
# ============================================================================

def make_value(value: Any, type_name: str) -> Dict:
  """Create an immutable runtime value"""
  return {
      'value': value,
      'type': type_name
  }


def make_nil() -> Dict:
  return make_value(None, NIL)


def make_bool(flag: bool) -> Dict:
  return make_value(bool(flag), BOOL)


def make_long(number: int) -> Dict:
  """Create a Long, failing if it does not fit in 64 bits"""
  return make_value(check_long_range(number), LONG)


def make_function_value(param: str, body: Any, closure_env: Dict, name: Optional[str] = None) -> Dict:
  """Create a closure over closure_env.

  body is the syntax tree node evaluated on every call, in a fresh scope
  whose parent is closure_env.
  """
  return make_value({
      'name': name,
      'param': param,
      'body': body,
      'closure_env': closure_env,
      'native': None
  }, FUNCTION)


def make_native_function(name: str, param: str, func: Callable, closure_env: Dict) -> Dict:
  """Create a built-in function.

  func(call_env, context) runs in place of a tree body; the argument is
  bound to param in call_env. It returns the call's result value directly,
  there is no exception-based return path.
  """
  return make_value({
      'name': name,
      'param': param,
      'body': None,
      'closure_env': closure_env,
      'native': func
  }, FUNCTION)


# ============================================================================
# VALUE ACCESSORS
# ============================================================================

def value_as_bool(value: Dict) -> bool:
  """Bool as itself, Long as non-zero; anything else is a type error"""
  return dispatch_by_type(value, {
      BOOL: lambda v: v['value'],
      LONG: lambda v: v['value'] != 0,
  }, default_handler=lambda v: _raise(type_mismatch_error("Bool or Long", v)))


def value_as_long(value: Dict) -> int:
  if value['type'] != LONG:
    raise type_mismatch_error(LONG, value)
  return value['value']


def value_as_function(value: Dict) -> Dict:
  if value['type'] != FUNCTION:
    raise type_mismatch_error(FUNCTION, value)
  return value['value']


def value_less_than(lhs: Dict, rhs: Dict) -> bool:
  """Order two values; the left operand's type picks the comparison.

  Nil is never less than anything, Bool orders false before true and Long
  orders numerically. The right operand is read with the same accessor, so
  a mismatched right side is a type error. Functions cannot be compared.
  """
  return dispatch_by_type(lhs, {
      NIL: lambda v: False,
      BOOL: lambda v: value_as_bool(v) < value_as_bool(rhs),
      LONG: lambda v: value_as_long(v) < value_as_long(rhs),
  }, default_handler=lambda v: _raise(operation_error("compare", lhs['type'], rhs['type'])))


def show_value(value: Dict) -> str:
  """Display form of a value, as printed by puts"""
  return dispatch_by_type(value, {
      NIL: lambda v: "nil",
      BOOL: lambda v: "true" if v['value'] else "false",
      LONG: lambda v: str(v['value']),
      FUNCTION: lambda v: "[function]",
  })


def _raise(error: FibRuntimeError):
  raise error


# ============================================================================
# BUILT-IN FUNCTIONS
# ============================================================================

def fib_puts(call_env: Dict, context: Dict) -> Dict:
  """Print the argument's display form followed by a newline"""
  output = context.get('output') or sys.stdout
  print(show_value(env_lookup_value(call_env, "arg")), file=output)
  return make_nil()


def make_builtin_function(name: str, param: str, func: Callable, description: str = "") -> Dict:
  """Describe a built-in for the registry"""
  return {
      'name': name,
      'param': param,
      'func': func,
      'description': description
  }


# Built-in function registry
BUILTIN_FUNCTIONS: Dict[str, Dict] = {
    "puts": make_builtin_function("puts", "arg", fib_puts, "print a value and a newline"),
}


def get_builtin_function(name: str) -> Dict:
  """Get a built-in function by name"""
  if name in BUILTIN_FUNCTIONS:
    return BUILTIN_FUNCTIONS[name]
  raise FibRuntimeError(f"unknown built-in function: {name}")


def list_builtin_functions() -> List[str]:
  """List all available built-in functions"""
  return list(BUILTIN_FUNCTIONS.keys())


def register_native(env: Dict, name: str, param: str, func: Callable) -> Dict:
  """Bind an extra native function in the root of env's chain"""
  root = env_root(env)
  return env_bind_value(root, name, make_native_function(name, param, func, root))
