"""
toypl Programming Language - Main Entry Point
Scan, parse or evaluate toypl source from the command line, or run a REPL
"""

import json
import os
import sys
import argparse
from typing import Callable, Dict, List, Optional

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from error_handling import ToyplError, ToyplErrorHandler
from interpreter import Interpreter, create_debug_interpreter, create_interpreter
from parsing import create_debug_parser, create_parser
from scanning import tokenize
from stdlib import NATIVE_FUNCTION, format_value
from syntax import ast_to_dict, pretty_print_ast
from utilities import get_git_tag_version, load_source


EX_USAGE = 64

AVAILABLE_COMMANDS = {
  "scan-string": "Convert source code from a string to tokens.",
  "scan-file": "Convert source code from .rr file to tokens.",
  "parse-string": "Convert source code from a string to toypl AST.",
  "parse-file": "Convert source code from .rr file to toypl AST.",
  "eval-string": "Evaluate source code from a string.",
  "eval-file": "Evaluate source code from .rr file.",
}

HISTORY_FILE = os.path.expanduser("~/.toypl_history")


def help_message() -> str:
  output = "Supported commands:\n"
  for name, description in AVAILABLE_COMMANDS.items():
    output += f"toypl {name} [input] -- {description}\n"
  return output


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      prog='toypl',
      description='toypl - a small expression-oriented language',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s eval-string "+(1 2)"      # Evaluate a string
  %(prog)s eval-file script.rr       # Evaluate a file
  %(prog)s parse-file script.rr      # Show the AST as JSON
  %(prog)s scan-string "def x 1"     # Show the tokens
  echo "*(6 7)" | %(prog)s           # Evaluate stdin
  %(prog)s -i                        # Interactive mode
        """
  )

  parser.add_argument(
      'command',
      nargs='?',
      help='one of: ' + ', '.join(AVAILABLE_COMMANDS)
  )

  parser.add_argument(
      'input',
      nargs='?',
      help='source text, or a path for the *-file commands'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Enable debug output for all stages'
  )

  parser.add_argument(
      '--version',
      action='store_true',
      help='Show the toypl version and exit'
  )

  return parser


# ============================================================================
# COMMANDS
# ============================================================================

def scan(source: str, debug: bool = False) -> str:
  return "\n".join(str(token) for token in tokenize(source))


def parse(source: str, debug: bool = False) -> str:
  parser = create_debug_parser() if debug else create_parser()
  return json.dumps(ast_to_dict(parser.parse(source)), indent=2)


def evl(source: str, debug: bool = False) -> str:
  parser = create_debug_parser() if debug else create_parser()
  interpreter = create_debug_interpreter() if debug else create_interpreter()
  return format_value(interpreter.run(parser.parse(source)))


COMMANDS: Dict[str, Callable[[str, bool], str]] = {
  "scan": scan,
  "parse": parse,
  "eval": evl,
}


def run_command(command: str, argument: str, debug: bool = False) -> int:
  """Run one CLI command and print its result; returns the exit status"""
  stage, _, origin = command.partition("-")
  if stage not in COMMANDS or origin not in ("string", "file"):
    print(f'Command "{command}" not supported.\n', file=sys.stderr)
    print(help_message())
    return EX_USAGE

  filename = argument if origin == "file" else "<input>"
  try:
    source = load_source(argument) if origin == "file" else argument
  except FileNotFoundError:
    print(f"Error: Script file '{argument}' not found")
    print("  Hint: Check the file path and make sure the file exists")
    return 1
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{argument}': {e}")
    print("  Hint: Make sure the file is a text file with UTF-8 encoding")
    return 1

  try:
    print(COMMANDS[stage](source, debug))
  except ToyplError as e:
    print(ToyplErrorHandler(source, filename).format(e))
    return 1
  return 0


# ============================================================================
# INTERACTIVE MODE
# ============================================================================

def setup_readline() -> None:
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  try:
    readline.read_history_file(HISTORY_FILE)
  except OSError:
    pass  # First time, no history yet, or permission denied

  readline.set_history_length(1000)

  completions = [
      # Keywords
      "def", "mut", "set", "if", "then", "else", "while", "do", "lambda",
      "class", "new", "true", "false", "null",
      # Built-in functions
      "print", "VERSION",
      # REPL commands
      ":tokens", ":ast", ":env", ":help", "exit",
  ]

  def completer(text, state):
    options = [cmd for cmd in completions if cmd.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  import atexit
  atexit.register(write_history)


def write_history() -> None:
  try:
    readline.write_history_file(HISTORY_FILE)
  except OSError:
    pass


def show_environment(interpreter: Interpreter) -> None:
  print("Current environment:")
  user_bindings = {
      name: value for name, value in interpreter.global_env.bindings().items()
      if name != "VERSION" and value.type != NATIVE_FUNCTION
  }
  if not user_bindings:
    print("  (no user-defined bindings)")
  for name, value in user_bindings.items():
    val_str = format_value(value)
    if len(val_str) > 60:
      val_str = val_str[:57] + "..."
    print(f"  {name} = {val_str}")


def show_repl_help() -> None:
  print("REPL Commands:")
  print("  :tokens <src>     - Show the tokens of src")
  print("  :ast <src>        - Show the parsed AST of src")
  print("  :env              - Show current global bindings")
  print("  :help             - Show this help")
  print("  exit              - Exit REPL")
  print()
  print("Language features:")
  print("  def x 5                      - Immutable binding")
  print("  def mut y 0  set y +(y 1)    - Mutable binding and assignment")
  print("  def square λ(x) *(x x)       - Function")
  print("  def P class { init(x) def this.x x }  new P(1)")


def eval_repl_line(code: str, interpreter: Interpreter, debug: bool = False) -> Optional[str]:
  """Evaluate one REPL line against the session interpreter; returns text to show"""
  if code.startswith(":tokens "):
    return scan(code[len(":tokens "):])
  if code.startswith(":ast "):
    parser = create_debug_parser() if debug else create_parser()
    return pretty_print_ast(parser.parse(code[len(":ast "):])).rstrip("\n")
  parser = create_debug_parser() if debug else create_parser()
  return f"=> {format_value(interpreter.run(parser.parse(code)))}"


def run_interactive_mode(debug: bool = False) -> None:
  """Run toypl in interactive mode; definitions persist across lines"""
  print(f"toypl {get_git_tag_version()} - Interactive Mode")
  print("Type 'exit' to quit, ':help' for commands")
  if READLINE_AVAILABLE:
    print("Readline enabled: Use ↑/↓ for history, Tab for completion")
  if debug:
    print("Debug mode enabled")
  print()

  setup_readline()
  interpreter = create_debug_interpreter() if debug else create_interpreter()

  while True:
    try:
      code = input("toypl> ").strip()
    except (KeyboardInterrupt, EOFError):
      print("\nGoodbye!")
      break

    if code == "exit":
      break
    if not code:
      continue
    if code == ":env":
      show_environment(interpreter)
      continue
    if code == ":help":
      show_repl_help()
      continue

    try:
      print(eval_repl_line(code, interpreter, debug))
    except ToyplError as e:
      print(ToyplErrorHandler(code, "<repl>").format(e))
    except Exception as e:
      print(f"Unexpected error: {e}")
      if debug:
        import traceback
        traceback.print_exc()


# ============================================================================
# ENTRY POINT
# ============================================================================

def main(argv: Optional[List[str]] = None) -> int:
  """Main entry point for toypl"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  if args.version:
    print(f"toypl {get_git_tag_version()}")
    return 0

  if args.interactive:
    run_interactive_mode(debug=args.debug)
    return 0

  if args.command is None and not sys.stdin.isatty():
    return run_command("eval-string", sys.stdin.read(), args.debug)

  if args.command is None or args.input is None:
    print(help_message())
    return EX_USAGE

  return run_command(args.command, args.input, args.debug)


if __name__ == "__main__":
  sys.exit(main())
