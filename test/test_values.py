"""
Tests for runtime values and environments
"""

import pytest

from environment import (
  make_runtime_env, env_bind_value, env_lookup_value, env_depth, env_root
)
from error_handling import (
  FibRuntimeError, FibTypeError, FibUndefinedVariable, FibInternalError, FibOverflowError
)
from stdlib import (
  make_nil, make_bool, make_long, make_function_value, value_as_bool, value_as_long,
  value_as_function, value_less_than, show_value, get_builtin_function,
  list_builtin_functions
)
from utilities import LONG_MAX, LONG_MIN, check_long_range, is_value_dict


@pytest.fixture
def func():
  return make_function_value("x", None, make_runtime_env(), "f")


class TestAccessors:
  """Accessors are only legal for matching tags"""

  def test_as_bool(self, func):
    assert value_as_bool(make_bool(True)) is True
    assert value_as_bool(make_long(-3)) is True
    assert value_as_bool(make_long(0)) is False
    for bad in (make_nil(), func):
      with pytest.raises(FibTypeError):
        value_as_bool(bad)

  def test_as_long(self, func):
    assert value_as_long(make_long(12)) == 12
    for bad in (make_nil(), make_bool(True), func):
      with pytest.raises(FibTypeError):
        value_as_long(bad)

  def test_as_function(self, func):
    assert value_as_function(func)['param'] == "x"
    with pytest.raises(FibTypeError):
      value_as_function(make_long(1))

  def test_show(self, func):
    assert show_value(make_nil()) == "nil"
    assert show_value(make_bool(True)) == "true"
    assert show_value(make_bool(False)) == "false"
    assert show_value(make_long(-42)) == "-42"
    assert show_value(func) == "[function]"

  def test_less_than(self, func):
    assert value_less_than(make_nil(), make_long(1)) is False
    assert value_less_than(make_bool(False), make_bool(True)) is True
    assert value_less_than(make_long(-1), make_long(0)) is True
    with pytest.raises(FibInternalError):
      value_less_than(func, func)

  def test_long_range(self):
    assert make_long(LONG_MAX)['value'] == LONG_MAX
    assert check_long_range(LONG_MIN) == LONG_MIN
    with pytest.raises(FibOverflowError):
      make_long(LONG_MAX + 1)
    with pytest.raises(FibOverflowError):
      make_long(LONG_MIN - 1)

  def test_values_are_value_dicts(self, func):
    assert all(is_value_dict(v) for v in (make_nil(), make_bool(True), make_long(1), func))


class TestEnvironment:
  """Scope chains"""

  def test_lookup_walks_parents(self):
    root = make_runtime_env()
    env_bind_value(root, "a", make_long(1))
    child = make_runtime_env(root)
    grandchild = make_runtime_env(child)
    assert env_lookup_value(grandchild, "a") == make_long(1)
    assert env_depth(grandchild) == 2
    assert env_root(grandchild) is root

  def test_bind_shadows_without_touching_parent(self):
    root = make_runtime_env()
    env_bind_value(root, "a", make_long(1))
    child = env_bind_value(make_runtime_env(root), "a", make_long(2))
    assert env_lookup_value(child, "a") == make_long(2)
    assert env_lookup_value(root, "a") == make_long(1)

  def test_later_bindings_visible_to_children(self):
    root = make_runtime_env()
    child = make_runtime_env(root)
    env_bind_value(root, "late", make_long(5))
    assert env_lookup_value(child, "late") == make_long(5)

  def test_duplicate_bind_overwrites(self):
    env = make_runtime_env()
    env_bind_value(env, "a", make_long(1))
    env_bind_value(env, "a", make_long(2))
    assert env_lookup_value(env, "a") == make_long(2)

  def test_missing_name(self):
    with pytest.raises(FibUndefinedVariable) as info:
      env_lookup_value(make_runtime_env(make_runtime_env()), "ghost")
    assert info.value.name == "ghost"
    assert str(info.value) == "UndefinedVariable: undefined variable 'ghost'"

  def test_lookup_does_not_mutate(self):
    root = make_runtime_env(bindings={"a": make_long(1)})
    child = make_runtime_env(root)
    env_lookup_value(child, "a")
    assert child['bindings'] == {}


class TestBuiltinRegistry:

  def test_registry(self):
    assert list_builtin_functions() == ["puts"]
    assert get_builtin_function("puts")['param'] == "arg"
    with pytest.raises(FibRuntimeError):
      get_builtin_function("print")
