"""
FibLang Interpreter
Tree-walking evaluator over the parser's syntax tree.
Environments are shared dicts (see environment.py); values are the
immutable dicts built by stdlib.py. Output happens only through puts.
"""

import sys
from typing import Any, Dict, Optional, TextIO

from environment import (
  make_runtime_env, env_bind_value, env_lookup_value, env_depth, env_local_bindings
)
from error_handling import FibRuntimeError, FibInternalError, FibRecursionError
from parsing import (
  CSTNode, STATEMENTS, DEFINITION, TERNARY, CONDITION, INFIX, CALL, FOR,
  IDENTIFIER, NUMBER
)
from stdlib import (
  BUILTIN_FUNCTIONS,
  get_builtin_function,
  list_builtin_functions,
  make_nil,
  make_bool,
  make_long,
  make_function_value,
  make_native_function,
  value_as_bool,
  value_as_long,
  value_as_function,
  value_less_than,
  show_value
)
from utilities import check_long_range, parse_long_literal, ensure_recursion_limit


# ============================================================================
# EXECUTION CONTEXT
# ============================================================================

def make_execution_context(output: Optional[TextIO] = None, max_depth: Optional[int] = None) -> Dict:
  """Create an execution context.

  output is the stream puts writes to (stdout when None). max_depth caps
  the number of nested function calls; None leaves only Python's own
  recursion limit.
  """
  return {
      'output': output,
      'max_depth': max_depth,
      'depth': 0
  }


def create_builtin_runtime_env() -> Dict:
  """Create the root environment with the built-in functions bound"""
  env = make_runtime_env()
  for name in list_builtin_functions():
    builtin = get_builtin_function(name)
    env_bind_value(env, name, make_native_function(name, builtin['param'], builtin['func'], env))
  return env


def _trace(message: str) -> None:
  print(message, file=sys.stderr)


# ============================================================================
# EVALUATION FUNCTIONS
# ============================================================================

def eval_ast(ast_node: CSTNode, env: Dict, debug: bool = False, context: Optional[Dict] = None) -> Dict:
  """
  Evaluate a syntax tree node in env and return its value.
  Runtime errors raised below this node are tagged with the innermost
  node's source location on their way out.
  """
  if context is None:
    context = make_execution_context()

  if debug:
    _trace(f"Evaluating: {ast_node.type}")

  try:
    node_type = ast_node.type

    if node_type == STATEMENTS:
      return eval_statements(ast_node, env, debug, context)
    elif node_type == DEFINITION:
      return eval_definition(ast_node, env, debug, context)
    elif node_type == TERNARY:
      return eval_ternary(ast_node, env, debug, context)
    elif node_type == CONDITION:
      return eval_condition(ast_node, env, debug, context)
    elif node_type == INFIX:
      return eval_infix(ast_node, env, debug, context)
    elif node_type == CALL:
      return eval_call(ast_node, env, debug, context)
    elif node_type == FOR:
      return eval_for(ast_node, env, debug, context)
    elif node_type == IDENTIFIER:
      return eval_identifier(ast_node, env, debug, context)
    elif node_type == NUMBER:
      return eval_number(ast_node, env, debug, context)
    else:
      raise FibInternalError(f"unexpected node type: {node_type}")
  except FibRuntimeError as e:
    if e.span is None:
      e.span = ast_node.span
    raise


def eval_statements(ast_node: CSTNode, env: Dict, debug: bool = False, context: Optional[Dict] = None) -> Dict:
  """Evaluate statements in order; the last one's value is the result"""
  result = make_nil()
  for statement in ast_node.children:
    result = eval_ast(statement, env, debug, context)
  return result


def eval_definition(ast_node: CSTNode, env: Dict, debug: bool = False, context: Optional[Dict] = None) -> Dict:
  """def name(param) body: bind a closure over the current environment"""
  name_node, param_node, body = ast_node.children
  func = make_function_value(param_node.value, body, env, name_node.value)
  env_bind_value(env, name_node.value, func)

  if debug:
    _trace(f"Defined function: {name_node.value}({param_node.value})")

  return make_nil()


def eval_ternary(ast_node: CSTNode, env: Dict, debug: bool = False, context: Optional[Dict] = None) -> Dict:
  """cond ? then : else, evaluating only the selected branch"""
  cond_node, then_node, else_node = ast_node.children
  if value_as_bool(eval_ast(cond_node, env, debug, context)):
    return eval_ast(then_node, env, debug, context)
  return eval_ast(else_node, env, debug, context)


def eval_condition(ast_node: CSTNode, env: Dict, debug: bool = False, context: Optional[Dict] = None) -> Dict:
  """lhs < rhs; both sides are always evaluated, left first"""
  lhs_node, _operator, rhs_node = ast_node.children
  lhs = eval_ast(lhs_node, env, debug, context)
  rhs = eval_ast(rhs_node, env, debug, context)
  return make_bool(value_less_than(lhs, rhs))


def eval_infix(ast_node: CSTNode, env: Dict, debug: bool = False, context: Optional[Dict] = None) -> Dict:
  """Left-associative fold of + and - over Long operands"""
  children = ast_node.children
  total = value_as_long(eval_ast(children[0], env, debug, context))

  for i in range(1, len(children), 2):
    op = children[i].value
    rhs = value_as_long(eval_ast(children[i + 1], env, debug, context))
    if op == "+":
      total = check_long_range(total + rhs, "result of +")
    elif op == "-":
      total = check_long_range(total - rhs, "result of -")
    else:
      raise FibInternalError(f"unknown infix operator: {op}")

  return make_long(total)


def eval_call(ast_node: CSTNode, env: Dict, debug: bool = False, context: Optional[Dict] = None) -> Dict:
  """callee(argument): the argument is evaluated in the caller's environment"""
  callee_node, arg_node = ast_node.children
  func = value_as_function(eval_ast(callee_node, env, debug, context))
  arg = eval_ast(arg_node, env, debug, context)
  return apply_function(func, arg, debug, context)


def apply_function(func: Dict, arg: Dict, debug: bool = False, context: Optional[Dict] = None) -> Dict:
  """
  Call a function value with one argument.

  The call scope's parent is the function's defining environment, not
  the caller's, so free names in the body resolve lexically.
  """
  if context is None:
    context = make_execution_context()

  call_env = make_runtime_env(func['closure_env'])
  env_bind_value(call_env, func['param'], arg)

  max_depth = context.get('max_depth')
  if max_depth is not None and context['depth'] >= max_depth:
    raise FibRecursionError(f"call depth exceeded {max_depth}")

  if debug:
    _trace(f"Calling {func['name'] or '<anonymous>'}({show_value(arg)}) at scope depth {env_depth(call_env)}")

  context['depth'] += 1
  try:
    if func['native'] is not None:
      return func['native'](call_env, context)
    return eval_ast(func['body'], call_env, debug, context)
  finally:
    context['depth'] -= 1


def eval_for(ast_node: CSTNode, env: Dict, debug: bool = False, context: Optional[Dict] = None) -> Dict:
  """for name from a to b body: inclusive, ascending, fresh scope per iteration"""
  ident_node, from_node, to_node, body = ast_node.children
  start = value_as_long(eval_ast(from_node, env, debug, context))
  stop = value_as_long(eval_ast(to_node, env, debug, context))

  if debug:
    _trace(f"Loop {ident_node.value} from {start} to {stop}")

  for i in range(start, stop + 1):
    iteration_env = make_runtime_env(env)
    env_bind_value(iteration_env, ident_node.value, make_long(i))
    eval_ast(body, iteration_env, debug, context)

  return make_nil()


def eval_identifier(ast_node: CSTNode, env: Dict, debug: bool = False, context: Optional[Dict] = None) -> Dict:
  """Evaluate identifier by looking up in environment"""
  return env_lookup_value(env, ast_node.value)


def eval_number(ast_node: CSTNode, env: Dict, debug: bool = False, context: Optional[Dict] = None) -> Dict:
  """Evaluate number literal"""
  return make_long(parse_long_literal(ast_node.value))


# ============================================================================
# PROGRAM EVALUATION
# ============================================================================

def eval_program(tree: CSTNode, env: Optional[Dict] = None, debug: bool = False,
                 context: Optional[Dict] = None) -> Dict:
  """
  Evaluate a whole program and return the value of its last statement.
  Exhausting the Python stack is reported as a FibRecursionError.
  """
  if env is None:
    env = create_builtin_runtime_env()
  if context is None:
    context = make_execution_context()

  ensure_recursion_limit()
  try:
    return eval_ast(tree, env, debug, context)
  except RecursionError:
    raise FibRecursionError("maximum recursion depth exceeded") from None


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

class FibInterpreter:
  """Holds one root environment so successive programs share definitions"""

  def __init__(self, debug: bool = False, output: Optional[TextIO] = None,
               max_depth: Optional[int] = None):
    self.debug = debug
    self.global_env = create_builtin_runtime_env()
    self.context = make_execution_context(output, max_depth)

  def interpret(self, tree: CSTNode) -> Dict:
    """Evaluate tree in the interpreter's root environment"""
    return eval_program(tree, self.global_env, self.debug, self.context)

  def lookup(self, name: str) -> Dict:
    return env_lookup_value(self.global_env, name)

  def user_bindings(self) -> Dict[str, Any]:
    return {name: value for name, value in env_local_bindings(self.global_env)
            if name not in BUILTIN_FUNCTIONS}


def create_interpreter(debug: bool = False, output: Optional[TextIO] = None,
                       max_depth: Optional[int] = None) -> FibInterpreter:
  """Factory function returning an interpreter"""
  return FibInterpreter(debug=debug, output=output, max_depth=max_depth)
