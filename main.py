"""
FibLang - Main Entry Point
A programming language just for writing Fibonacci number programs
"""

import sys
import argparse
import os
import traceback
from typing import List, Optional

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from parsing import create_parser, create_debug_parser, FibParseError, pretty_print_cst
from interpreter import create_interpreter, FibRuntimeError
from stdlib import show_value, list_builtin_functions


VERSION = "FibLang v1.0.0"

# Process exit status per failure category
EXIT_OK = 0
EXIT_IO_ERROR = 1
EXIT_USAGE = 2
EXIT_PARSE_ERROR = 3
EXIT_RUNTIME_ERROR = 4


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      prog='fiblang',
      description='FibLang - definitions, arithmetic, conditionals and bounded loops',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s fib.fib                # Run a FibLang script
  %(prog)s -i                     # Interactive mode
  %(prog)s --parse fib.fib        # Parse and show the syntax tree
  %(prog)s --debug fib.fib        # Run with evaluation trace on stderr
  %(prog)s --max-depth 500 f.fib  # Limit nested function calls
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='FibLang script file to execute'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse file and show the syntax tree (for debugging)'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Enable debug output for all stages'
  )

  parser.add_argument(
      '--max-depth',
      type=int,
      default=None,
      metavar='N',
      help='Fail once function calls nest deeper than N'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def report(message: str) -> None:
  print(message, file=sys.stderr)


def report_read_error(script_path: str, error: Exception) -> None:
  """Explain why a script could not be read"""
  if isinstance(error, FileNotFoundError):
    report(f"Error: can't open the source file '{script_path}'")
    report("  Hint: Check the file path and make sure the file exists")
  elif isinstance(error, PermissionError):
    report(f"Error: Permission denied reading '{script_path}'")
  elif isinstance(error, IsADirectoryError):
    report(f"Error: '{script_path}' is a directory")
  elif isinstance(error, UnicodeDecodeError):
    report(f"Error: Cannot decode file '{script_path}': {error}")
    report("  Hint: Make sure the file is a text file with UTF-8 encoding")
  else:
    report(f"Error: can't read '{script_path}': {error}")


def read_source(script_path: str) -> Optional[str]:
  """Read a script, reporting why it could not be read"""
  try:
    with open(script_path, 'r', encoding='utf-8') as f:
      return f.read()
  except (OSError, UnicodeDecodeError) as e:
    report_read_error(script_path, e)
  return None


def parse_file(script_path: str, debug: bool = False) -> int:
  """Parse a FibLang script file and show the syntax tree"""
  parser = create_debug_parser() if debug else create_parser()
  try:
    tree = parser.parse_file(script_path)
  except (OSError, UnicodeDecodeError) as e:
    report_read_error(script_path, e)
    return EXIT_IO_ERROR
  except FibParseError as e:
    report(str(e))
    return EXIT_PARSE_ERROR

  print(f"Parsed {len(tree.children)} top-level statements:")
  print("=" * 50)
  print(pretty_print_cst(tree), end='')
  return EXIT_OK


def run_script_file(script_path: str, debug: bool = False, max_depth: Optional[int] = None) -> int:
  """Run a FibLang script file"""
  source = read_source(script_path)
  if source is None:
    return EXIT_IO_ERROR

  parser = create_debug_parser() if debug else create_parser()
  interpreter = create_interpreter(debug=debug, max_depth=max_depth)

  try:
    tree = parser.parse_string(source, script_path)
  except FibParseError as e:
    report(str(e))
    return EXIT_PARSE_ERROR

  try:
    interpreter.interpret(tree)
  except FibRuntimeError as e:
    report(str(e))
    if e.span:
      lines = source.split('\n')
      if 0 < e.span.line <= len(lines):
        report(f"  {lines[e.span.line - 1]}")
        report(f"  {' ' * (e.span.column - 1)}^")
    return EXIT_RUNTIME_ERROR
  except Exception as e:
    report(f"Unexpected error while executing '{script_path}': {e}")
    if debug:
      traceback.print_exc()
    return EXIT_RUNTIME_ERROR

  return EXIT_OK


def setup_readline() -> None:
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  history_file = os.path.expanduser("~/.fiblang_history")
  try:
    readline.read_history_file(history_file)
  except OSError:
    pass  # First time, no history yet

  readline.set_history_length(1000)

  completions = ["def", "for", "from", "to", ":parse", ":env", ":help", "exit"] + list_builtin_functions()

  def completer(text, state):
    options = [cmd for cmd in completions if cmd.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  import atexit
  atexit.register(readline.write_history_file, history_file)


def run_interactive_mode(debug: bool = False, max_depth: Optional[int] = None) -> int:
  """Run FibLang in interactive mode; definitions persist across lines"""
  print(f"{VERSION} - Interactive Mode")
  print("Type 'exit' to quit, ':help' for commands")
  print()

  setup_readline()

  parser = create_debug_parser() if debug else create_parser()
  interpreter = create_interpreter(debug=debug, max_depth=max_depth)

  while True:
    try:
      code = input("fib> ")
    except (KeyboardInterrupt, EOFError):
      print("\nGoodbye!")
      break

    if code.strip() == "exit":
      break

    if not code.strip():
      continue

    if code.startswith(":parse "):
      try:
        print(pretty_print_cst(parser.parse_expression(code[7:])), end='')
      except FibParseError as e:
        print(e)
      continue

    if code.strip() == ":env":
      bindings = interpreter.user_bindings()
      if bindings:
        for name, value in bindings.items():
          print(f"  {name} = {show_value(value)}")
      else:
        print("  (no user-defined bindings)")
      continue

    if code.strip() == ":help":
      print("REPL Commands:")
      print("  :parse <expr>     - Show parsed syntax tree")
      print("  :env              - Show top-level definitions")
      print("  :help             - Show this help")
      print("  exit              - Exit REPL")
      print()
      print("Language features:")
      print("  def inc(x) x + 1              - Function definition")
      print("  inc(41)                       - Function call")
      print("  x < 2 ? 1 : 2                 - Conditional")
      print("  for n from 1 to 10 puts(n)    - Bounded loop")
      continue

    try:
      result = interpreter.interpret(parser.parse_string(code, "<stdin>"))
      print(f"=> {show_value(result)}")
    except FibParseError as e:
      print(e)
    except FibRuntimeError as e:
      print(f"Runtime Error: {e}")
    except Exception as e:
      print(f"Unexpected error: {e}")
      if debug:
        traceback.print_exc()

  return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
  """Main entry point for FibLang"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  if args.script:
    if args.parse:
      return parse_file(args.script, debug=args.debug)
    return run_script_file(args.script, debug=args.debug, max_depth=args.max_depth)

  if args.interactive:
    return run_interactive_mode(debug=args.debug, max_depth=args.max_depth)

  arg_parser.print_usage(sys.stderr)
  report("fiblang: error: a script path or -i is required")
  return EXIT_USAGE


if __name__ == "__main__":
  sys.exit(main())
