"""
AQA Pseudocode - Main Entry Point
Runs pseudocode files or an interactive buffer-and-run session
"""

import sys
import argparse
from pathlib import Path
from typing import Dict, List, Optional, Tuple
import os

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from parsing import create_parser, create_debug_parser
from error_handling import AQAParseError, KEYWORDS
from interpreter import create_interpreter, DEFAULT_MAX_CALL_DEPTH
from syntax_tree import SUBROUTINE, ast_to_string, find_nodes_by_type, parameter_names, pretty_print_ast
from values import is_error, show_value, env_values


VERSION = "AQA pseudocode 0.1.0"

REPL_COMMANDS = ["parse", "run", "env", "clear", "help", "quit"]


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      description='AQA pseudocode interpreter',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s program.aqa            # Run a pseudocode file
  %(prog)s -i                     # Interactive mode
  %(prog)s --parse program.aqa    # Parse and show the syntax tree
  %(prog)s --debug program.aqa    # Run with evaluation trace
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='pseudocode file to execute'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse file and show the syntax tree'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Enable debug output for all stages'
  )

  parser.add_argument(
      '--max-depth',
      type=int,
      default=DEFAULT_MAX_CALL_DEPTH,
      help=f'Maximum subroutine call depth (default {DEFAULT_MAX_CALL_DEPTH})'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def print_bindings(env: Dict) -> None:
  """Print the variables and subroutines of an environment"""
  bindings = env_values(env)
  if not bindings:
    print("  (no bindings)")
    return
  for name, val_str in bindings.items():
    if len(val_str) > 60:
      val_str = val_str[:57] + "..."
    print(f"  {name} = {val_str}")


def report_result(value: Dict, env: Dict) -> bool:
  """Report the outcome of a run; returns True when it succeeded"""
  if is_error(value):
    print(value['value'])
    return False
  print("Program executed successfully!")
  print(f"\nFinal environment ({len(env)} bindings):")
  print_bindings(env)
  return True


def print_subroutines(root) -> None:
  """List the subroutines a program defines, with their parameters"""
  subroutines = find_nodes_by_type(root, SUBROUTINE)
  if not subroutines:
    return
  print("=" * 50)
  print(f"Subroutines ({len(subroutines)}):")
  for node in subroutines:
    params = ", ".join(parameter_names(node.child('params')) or [])
    print(f"  {node.prop('name')}({params})")


def parse_file(script_path: str, debug: bool = False) -> None:
  """Parse a pseudocode file and show the syntax tree"""
  try:
    parser = create_debug_parser() if debug else create_parser()
    print(f"Parsing {script_path}...")
    root = parser.parse_file(script_path)
    print("=" * 50)
    if root is None:
      print("(empty program)")
    else:
      print(pretty_print_ast(root), end='')
      print_subroutines(root)
  except AQAParseError as e:
    print(e)
    sys.exit(1)
  except PermissionError:
    print(f"Error: Permission denied reading '{script_path}'")
    print(f"  Hint: Make sure you have read permissions for this file")
    sys.exit(1)
  except Exception as e:
    print(f"Unexpected error while processing '{script_path}': {e}")
    if debug:
      import traceback
      traceback.print_exc()
    sys.exit(1)


def run_script_file(script_path: str, debug: bool = False, max_depth: int = DEFAULT_MAX_CALL_DEPTH) -> None:
  """Run a pseudocode file from an empty environment"""
  try:
    parser = create_debug_parser() if debug else create_parser()
    interpreter = create_interpreter(debug=debug, max_call_depth=max_depth)

    root = parser.parse_file(script_path)
    if debug:
      print("Evaluating program...")
    value, env = interpreter.run(root)

    if not report_result(value, env):
      sys.exit(1)

  except AQAParseError as e:
    print(e)
    sys.exit(1)
  except PermissionError:
    print(f"Error: Permission denied reading '{script_path}'")
    print(f"  Hint: Make sure you have read permissions for this file")
    sys.exit(1)
  except Exception as e:
    print(f"Unexpected error while executing '{script_path}': {e}")
    if debug:
      import traceback
      traceback.print_exc()
    sys.exit(1)


def setup_readline():
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  history_file = os.path.expanduser("~/.aqa_history")
  try:
    readline.read_history_file(history_file)
  except OSError:
    pass  # First time, no history yet, or permission denied

  readline.set_history_length(1000)

  completions = list(KEYWORDS) + ["True", "False"] + REPL_COMMANDS

  def completer(text, state):
    options = [word for word in completions if word.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  import atexit
  atexit.register(readline.write_history_file, history_file)


# ============================================================================
# INTERACTIVE MODE
# ============================================================================

def make_repl_state(buffer: Optional[List[str]] = None, last_env: Optional[Dict] = None) -> Dict:
  """Create an immutable read loop state"""
  return {
      'buffer': list(buffer or []),
      'last_env': dict(last_env or {})
  }


def print_repl_help() -> None:
  print("Type pseudocode lines, then a command on its own line:")
  print("  parse   - Show the syntax tree of the buffered program")
  print("  run     - Run the buffered program from an empty environment")
  print("  env     - Show the bindings left by the last run")
  print("  clear   - Discard the buffered lines")
  print("  help    - Show this help")
  print("  quit    - Exit")


def process_repl_line(state: Dict, line: str, parser, interpreter) -> Tuple[Dict, bool]:
  """
  Handle one line of interactive input.
  Returns (new_state, keep_running).
  """
  command = line.strip()
  source = "\n".join(state['buffer'])

  if command == "quit":
    return state, False

  if command == "help":
    print_repl_help()
    return state, True

  if command == "clear":
    return make_repl_state(last_env=state['last_env']), True

  if command == "env":
    print("Bindings from last run:")
    print_bindings(state['last_env'])
    return state, True

  if command == "parse":
    print("+++PROGRAM+++")
    try:
      root = parser.parse_string(source)
      print(ast_to_string(root) if root is not None else "(empty program)")
    except AQAParseError as e:
      print(e)
    print("+++++++++++++")
    return make_repl_state(last_env=state['last_env']), True

  if command == "run":
    print("+++OUTPUT+++")
    try:
      root = parser.parse_string(source)
    except AQAParseError as e:
      print(e)
      return make_repl_state(last_env=state['last_env']), True
    value, env = interpreter.run(root)
    if is_error(value):
      print(value['value'])
    else:
      print(f"=> {show_value(value)}")
    print("++++++++++++")
    return make_repl_state(last_env=env), True

  if not command:
    return state, True

  return make_repl_state(state['buffer'] + [line], state['last_env']), True


def run_interactive_mode(debug: bool = False, max_depth: int = DEFAULT_MAX_CALL_DEPTH) -> None:
  """Run the interactive buffer-and-run session"""
  print(f"{VERSION} - Interactive Mode")
  print("Type 'help' for commands, 'quit' to exit")
  if READLINE_AVAILABLE:
    print("Readline enabled: Use ↑/↓ for history, Tab for completion")
  if debug:
    print("Debug mode enabled")
  print()

  setup_readline()

  parser = create_debug_parser() if debug else create_parser()
  interpreter = create_interpreter(debug=debug, max_call_depth=max_depth)
  state = make_repl_state()

  print("++++INPUT++++")
  running = True
  while running:
    try:
      line = input("aqa> ")
      state, running = process_repl_line(state, line, parser, interpreter)
    except KeyboardInterrupt:
      print("\nGoodbye!")
      break
    except EOFError:
      print("\nGoodbye!")
      break


def show_language_info() -> None:
  """Show language information"""
  print("AQA Pseudocode")
  print("=" * 50)
  print("A textbook pseudocode language with:")
  print("• Variables and CONSTANT declarations (x <- 1)")
  print("• IF / THEN / ELSE / ENDIF conditionals")
  print("• WHILE / ENDWHILE and REPEAT / UNTIL loops")
  print("• SUBROUTINE definitions with RETURN")
  print("• OUTPUT")
  print()


def main(argv: Optional[List[str]] = None) -> None:
  """Main entry point"""
  if argv is None:
    argv = sys.argv[1:]

  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  if not argv:
    # No arguments - show info and start interactive mode
    show_language_info()
    run_interactive_mode()
    return

  if args.script:
    if not Path(args.script).exists():
      print(f"Error: Script file '{args.script}' does not exist")
      sys.exit(1)

    if args.parse:
      parse_file(args.script, debug=args.debug)
    else:
      run_script_file(args.script, debug=args.debug, max_depth=args.max_depth)

  elif args.interactive:
    run_interactive_mode(debug=args.debug, max_depth=args.max_depth)

  else:
    arg_parser.print_help()
    print()
    show_language_info()


if __name__ == "__main__":
  main()
