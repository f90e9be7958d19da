"""
FibLang runtime environments

An environment is a dict {'parent': env-or-None, 'bindings': {name: value}}.
Children hold a plain reference to their parent, so one parent can be shared
by every call frame and loop iteration that descends from it, and a closure
keeps its defining environment alive for as long as the closure exists.

Bindings are appended in place, never copied: a closure sees names bound in
its defining environment after the closure itself was created, which is what
lets a function call itself by name.
"""

from typing import Any, Dict, Iterator, Optional, Tuple

from error_handling import FibUndefinedVariable


def make_runtime_env(parent: Optional[Dict] = None, bindings: Optional[Dict] = None) -> Dict:
  """Create a runtime environment, optionally nested inside parent"""
  return {
      'parent': parent,
      'bindings': dict(bindings) if bindings else {}
  }


def env_bind_value(env: Dict, name: str, value: Dict) -> Dict:
  """Bind name in the local scope of env and return env.

  Only the innermost scope is touched; an ancestor's binding of the same
  name is shadowed, not overwritten. Binding a name twice in the same scope
  replaces the earlier value (last write wins). The grammar never produces
  that situation because every def, call and loop iteration has its own
  scope, apart from re-defining a function at the same level.
  """
  env['bindings'][name] = value
  return env


def env_lookup_value(env: Dict, name: str) -> Dict:
  """Look up a value in the environment chain.

  Raises:
    FibUndefinedVariable if no scope up to the root binds name
  """
  scope = env
  while scope is not None:
    bindings = scope['bindings']
    if name in bindings:
      return bindings[name]
    scope = scope['parent']
  raise FibUndefinedVariable(name)


def env_depth(env: Dict) -> int:
  """Number of scopes between env and the root (root is 0)"""
  depth = 0
  while env['parent'] is not None:
    env = env['parent']
    depth += 1
  return depth


def env_root(env: Dict) -> Dict:
  """Outermost environment of the chain"""
  while env['parent'] is not None:
    env = env['parent']
  return env


def env_local_bindings(env: Dict) -> Iterator[Tuple[str, Any]]:
  """Iterate the bindings of env's own scope in definition order"""
  return iter(env['bindings'].items())
