"""
Test configuration for FibLang tests
"""

import io
import sys
from pathlib import Path

import pytest

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from parsing import create_parser
from interpreter import create_interpreter


@pytest.fixture
def parser():
  """Provide a fresh parser for each test"""
  return create_parser()


@pytest.fixture
def run(parser):
  """Parse and evaluate source; returns (result value, printed lines)"""
  def runner(source, max_depth=None):
    output = io.StringIO()
    interpreter = create_interpreter(output=output, max_depth=max_depth)
    result = interpreter.interpret(parser.parse_string(source))
    return result, output.getvalue().splitlines()
  return runner
